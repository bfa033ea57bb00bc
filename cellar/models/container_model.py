# cellar/models/container_model.py
from __future__ import annotations
import os
import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto
from pathlib import Path
from typing import Any

from cellar.core.constants import (
    CONTAINER_CONFIG_FILE_NAME,
    DESKTOP_DIR,
    MAIN_WINE_VERSION,
    STEAM_USER_DESKTOP_DIR,
)


DEFAULT_ENV_VARS: dict[str, str] = {
    "ZINK_DESCRIPTORS": "lazy",
    "ZINK_DEBUG": "compact",
    "MESA_SHADER_CACHE_DISABLE": "false",
    "MESA_SHADER_CACHE_MAX_SIZE": "512MB",
    "mesa_glthread": "true",
    "WINEESYNC": "1",
    "MESA_VK_WSI_PRESENT_MODE": "mailbox",
    "TU_DEBUG": "noconform",
}

DEFAULT_WIN_COMPONENTS: dict[str, bool] = {
    "direct3d": True,
    "directsound": True,
    "directmusic": False,
    "directshow": False,
    "directplay": False,
    "vcrun2010": True,
    "wmdecoder": True,
}


def is_main_wine_version(wine_version: str | None) -> bool:
    """The bundled runtime is used when no version, or the main one, is requested."""
    return not wine_version or wine_version == MAIN_WINE_VERSION


def _default_cpu_list() -> list[int]:
    return list(range(os.cpu_count() or 1))


class StartupSelection(IntEnum):
    NORMAL = 0
    ESSENTIAL = 1
    AGGRESSIVE = 2


class ContainerStatus(Enum):
    """READY for healthy containers, BROKEN when a removal only partly succeeded."""

    READY = auto()
    BROKEN = auto()


@dataclass(frozen=True)
class Drive:
    """A drive letter mapped to a host path."""

    letter: str
    path: str


@dataclass(frozen=True)
class ContainerConfig:
    """The persisted settings document of one container. Immutable."""

    name: str = "Container"
    screen_size: str = "1280x720"
    env_vars: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ENV_VARS))
    cpu_list: list[int] = field(default_factory=_default_cpu_list)
    cpu_list_wow64: list[int] = field(default_factory=_default_cpu_list)
    graphics_driver: str = "turnip"
    graphics_driver_version: str = "24.1.0"
    dxwrapper: str = "dxvk"
    dxwrapper_config: str = ""
    audio_driver: str = "alsa"
    win_components: dict[str, bool] = field(
        default_factory=lambda: dict(DEFAULT_WIN_COMPONENTS)
    )
    drives: list[Drive] = field(
        default_factory=lambda: [Drive("D", str(Path.home() / "Downloads"))]
    )
    show_fps: bool = False
    wow64_mode: bool = True
    startup_selection: StartupSelection = StartupSelection.ESSENTIAL
    box86_preset: str = "COMPATIBILITY"
    box64_preset: str = "COMPATIBILITY"
    desktop_theme: str = "LIGHT,IMAGE,#0277bd"
    rcfile_id: int = 0
    wine_version: str = MAIN_WINE_VERSION
    is_bionic: bool = False
    extra_data: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContainerConfig:
        """
        Builds a config from a JSON document. Missing keys keep their defaults,
        unknown keys (including "id") are ignored.
        """
        kwargs: dict[str, Any] = {}
        for attr, key in FIELD_KEYS.items():
            if key not in data or data[key] is None:
                continue
            parser = _FIELD_PARSERS.get(attr)
            kwargs[attr] = parser(data[key]) if parser else data[key]
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Serializes into the structured JSON form, keyed like the on-disk file."""
        return {
            "name": self.name,
            "screenSize": self.screen_size,
            "envVars": dict(self.env_vars),
            "cpuList": list(self.cpu_list),
            "cpuListWoW64": list(self.cpu_list_wow64),
            "graphicsDriver": self.graphics_driver,
            "graphicsDriverVersion": self.graphics_driver_version,
            "dxwrapper": self.dxwrapper,
            "dxwrapperConfig": self.dxwrapper_config,
            "audioDriver": self.audio_driver,
            "wincomponents": dict(self.win_components),
            "drives": [{"letter": d.letter, "path": d.path} for d in self.drives],
            "showFPS": self.show_fps,
            "wow64Mode": self.wow64_mode,
            "startupSelection": int(self.startup_selection),
            "box86Preset": self.box86_preset,
            "box64Preset": self.box64_preset,
            "desktopTheme": self.desktop_theme,
            "rcfileId": self.rcfile_id,
            "wineVersion": self.wine_version,
            "isBionic": self.is_bionic,
            "extraData": dict(self.extra_data),
        }


# dataclass attribute -> JSON key
FIELD_KEYS: dict[str, str] = {
    "name": "name",
    "screen_size": "screenSize",
    "env_vars": "envVars",
    "cpu_list": "cpuList",
    "cpu_list_wow64": "cpuListWoW64",
    "graphics_driver": "graphicsDriver",
    "graphics_driver_version": "graphicsDriverVersion",
    "dxwrapper": "dxwrapper",
    "dxwrapper_config": "dxwrapperConfig",
    "audio_driver": "audioDriver",
    "win_components": "wincomponents",
    "drives": "drives",
    "show_fps": "showFPS",
    "wow64_mode": "wow64Mode",
    "startup_selection": "startupSelection",
    "box86_preset": "box86Preset",
    "box64_preset": "box64Preset",
    "desktop_theme": "desktopTheme",
    "rcfile_id": "rcfileId",
    "wine_version": "wineVersion",
    "is_bionic": "isBionic",
    "extra_data": "extraData",
}

# Fields copied by duplication. Everything else is reset to its default.
DUPLICATE_FIELDS: tuple[str, ...] = (
    "screen_size",
    "env_vars",
    "cpu_list",
    "cpu_list_wow64",
    "graphics_driver",
    "dxwrapper",
    "dxwrapper_config",
    "audio_driver",
    "win_components",
    "drives",
    "show_fps",
    "wow64_mode",
    "startup_selection",
    "box86_preset",
    "box64_preset",
    "desktop_theme",
    "rcfile_id",
    "wine_version",
)


# --- Legacy-tolerant field parsers ---
def _parse_env_vars(value) -> dict[str, str]:
    if isinstance(value, dict):
        return {str(k): str(v) for k, v in value.items()}
    # "KEY=value KEY2=value2"
    env_vars = {}
    for pair in str(value).split():
        key, sep, val = pair.partition("=")
        if sep:
            env_vars[key] = val
    return env_vars


def _parse_cpu_list(value) -> list[int]:
    if isinstance(value, list):
        return [int(cpu) for cpu in value]
    return [int(cpu) for cpu in str(value).split(",") if cpu.strip()]


def _parse_win_components(value) -> dict[str, bool]:
    if isinstance(value, dict):
        return {str(k): bool(v) for k, v in value.items()}
    # "direct3d=1,directsound=0"
    components = {}
    for pair in str(value).split(","):
        key, sep, val = pair.partition("=")
        if sep:
            components[key.strip()] = val.strip() == "1"
    return components


_LEGACY_DRIVE_PATTERN = re.compile(r"([A-Z]):(.*?)(?=[A-Z]:|$)")


def _parse_drives(value) -> list[Drive]:
    if isinstance(value, list):
        return [Drive(str(d["letter"]), str(d["path"])) for d in value]
    # "D:/storage/DownloadsE:/data"
    return [Drive(letter, path) for letter, path in _LEGACY_DRIVE_PATTERN.findall(str(value))]


_FIELD_PARSERS = {
    "env_vars": _parse_env_vars,
    "cpu_list": _parse_cpu_list,
    "cpu_list_wow64": _parse_cpu_list,
    "win_components": _parse_win_components,
    "drives": _parse_drives,
    "startup_selection": lambda v: StartupSelection(int(v)),
    "show_fps": bool,
    "wow64_mode": bool,
    "is_bionic": bool,
    "rcfile_id": int,
    # an empty version means the bundled runtime
    "wine_version": lambda v: str(v) or MAIN_WINE_VERSION,
    "extra_data": lambda v: {str(k): str(val) for k, val in dict(v).items()},
}


@dataclass(frozen=True)
class Container:
    """A container directory and its parsed configuration."""

    id: int
    root_dir: Path
    config: ContainerConfig = field(default_factory=ContainerConfig)
    status: ContainerStatus = ContainerStatus.READY

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def config_file(self) -> Path:
        return self.root_dir / CONTAINER_CONFIG_FILE_NAME

    @property
    def desktop_dir(self) -> Path:
        return self.root_dir / DESKTOP_DIR

    @property
    def steam_user_desktop_dir(self) -> Path:
        return self.root_dir / STEAM_USER_DESKTOP_DIR

    def to_document(self) -> dict[str, Any]:
        """The full JSON document persisted for this container, id included."""
        return {"id": self.id, **self.config.to_dict()}
