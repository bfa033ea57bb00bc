# cellar/models/content_model.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ContentType(Enum):
    WINE = "Wine"
    PROTON = "Proton"
    TURNIP = "Turnip"
    DXVK = "DXVK"
    VKD3D = "VKD3D"
    BOX64 = "Box64"


@dataclass(frozen=True)
class ContentProfile:
    """An installed runtime package described by its profile.json."""

    type: ContentType
    ver_name: str
    ver_code: int
    install_dir: Path
    description: str = ""
    wine_prefix_pack: str | None = None

    @property
    def entry_name(self) -> str:
        return f"{self.type.value.lower()}-{self.ver_name}-{self.ver_code}"
