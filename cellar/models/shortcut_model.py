# cellar/models/shortcut_model.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Shortcut:
    """A .desktop file found inside a container. Rebuilt on every scan."""

    name: str
    container_id: int
    path: Path
    exec_command: str | None = None
    icon: str | None = None
