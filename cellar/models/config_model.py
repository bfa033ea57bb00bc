# cellar/models/config_model.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path

from cellar.core.constants import (
    DEFAULT_ASSETS_DIR,
    DEFAULT_CONTENTS_DIR,
    DEFAULT_EXPORT_DIR,
    DEFAULT_IMAGE_FS_ROOT,
    HOME_DIR_NAME,
    WINE_LIB_DIR,
)


@dataclass(frozen=True)
class AppConfig:
    """Holds the application's settings. Immutable."""

    # --- Image Filesystem ---
    image_fs_root: Path = DEFAULT_IMAGE_FS_ROOT

    # --- Provisioning Sources ---
    assets_dir: Path = DEFAULT_ASSETS_DIR
    contents_dir: Path = DEFAULT_CONTENTS_DIR

    # --- Backups & Diagnostics ---
    export_dir: Path = DEFAULT_EXPORT_DIR
    log_dir: Path | None = field(default=None)

    @property
    def home_dir(self) -> Path:
        return self.image_fs_root / HOME_DIR_NAME

    @property
    def wine_lib_dir(self) -> Path:
        return self.image_fs_root / WINE_LIB_DIR
