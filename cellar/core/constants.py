# cellar/core/constants.py
import re
from pathlib import Path

# --- Application Info ---
APP_NAME: str = "Cellar"
ORG_NAME: str = "cellar"
APP_VERSION: str = "0.1.0"

# --- Container Naming Conventions ---
CONTAINER_USER: str = "xuser"
CONTAINER_DIR_PATTERN = re.compile(rf"^{CONTAINER_USER}-(\d+)$")
CONTAINER_CONFIG_FILE_NAME: str = ".container"
COPY_NAME_SUFFIX: str = " (copy)"
COPY_FILE_MODE: int = 0o771

# --- File & Directory Names ---
CONFIG_FILE_NAME: str = "cellar.json"
CONFIG_ENV_VAR: str = "CELLAR_CONFIG"
LOG_DIR_NAME: str = "logs"
HOME_DIR_NAME: str = "home"
WINE_LIB_DIR: str = "opt/wine/lib/wine"
WINDOWS_DIR: str = ".wine/drive_c/windows"
DESKTOP_DIR: str = f".wine/drive_c/users/{CONTAINER_USER}/Desktop"
STEAM_USER_DESKTOP_DIR: str = ".wine/drive_c/users/steamuser/Desktop"
SHORTCUT_SUFFIX: str = ".desktop"

# --- Default Locations ---
DEFAULT_IMAGE_FS_ROOT: Path = Path.home() / ".local" / "share" / "cellar" / "imagefs"
DEFAULT_ASSETS_DIR: Path = Path.home() / ".local" / "share" / "cellar" / "assets"
DEFAULT_CONTENTS_DIR: Path = Path.home() / ".local" / "share" / "cellar" / "contents"
DEFAULT_EXPORT_DIR: Path = Path.home() / "Downloads" / "Cellar" / "Backups" / "Containers"

# --- Provisioning Assets ---
CONTAINER_PATTERN_FILE: str = "container_pattern.tzst"
CONTAINER_PATTERN_BIONIC_FILE: str = "container_pattern_bionic.tzst"
COMMON_DLLS_MANIFEST: str = "common_dlls.json"
GRAPHICS_DRIVER_DIR: str = "graphics_driver"
GRAPHICS_DRIVER_PREFIX: str = "turnip-"
# (source arch dir, windows target subdir, skipped for bionic containers)
COMMON_DLL_SETS: tuple[tuple[str, str, bool], ...] = (
    ("x86_64-windows", "system32", True),
    ("aarch64-windows", "system32", False),
    ("i386-windows", "syswow64", False),
)
XZ_SUFFIXES: frozenset[str] = frozenset({"xz", "txz"})
ZSTD_SUFFIXES: frozenset[str] = frozenset({"zst", "tzst"})

# --- Runtime Versions ---
MAIN_WINE_VERSION: str = "wine-9.2-x86_64"
PROFILE_JSON_NAME: str = "profile.json"
