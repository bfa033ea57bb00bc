# cellar/services/shortcut_service.py
import configparser
from pathlib import Path

from cellar.core.constants import SHORTCUT_SUFFIX
from cellar.models.container_model import Container
from cellar.models.shortcut_model import Shortcut
from cellar.services.repository_service import ContainerRepository
from cellar.utils.logger_utils import logger


class ShortcutIndex:
    """Read-only view of the .desktop shortcuts across all containers."""

    def __init__(self, repository: ContainerRepository):
        # ---Injected Services ---
        self.repository = repository

    def scan(self) -> list[Shortcut]:
        """
        Builds a fresh, name-sorted list of shortcuts. Names are compared as plain
        strings, so ordering is case-sensitive ("Mid" < "Zed" < "apple").
        """
        shortcuts: list[Shortcut] = []
        for container in self.repository.list():
            for desktop_dir in (container.desktop_dir, container.steam_user_desktop_dir):
                if not desktop_dir.is_dir():
                    continue
                try:
                    files = sorted(desktop_dir.iterdir())
                except OSError as e:
                    logger.warning(f"Could not list '{desktop_dir}': {e}")
                    continue
                for file in files:
                    if file.is_file() and file.name.endswith(SHORTCUT_SUFFIX):
                        shortcuts.append(self._build_shortcut(container, file))

        shortcuts.sort(key=lambda s: s.name)
        return shortcuts

    def _build_shortcut(self, container: Container, file: Path) -> Shortcut:
        exec_command = icon = None
        parser = configparser.ConfigParser(interpolation=None, strict=False)
        try:
            parser.read(file, encoding="utf-8")
            if parser.has_section("Desktop Entry"):
                entry = parser["Desktop Entry"]
                exec_command = entry.get("Exec")
                icon = entry.get("Icon")
        except (configparser.Error, UnicodeDecodeError) as e:
            logger.debug(f"Shortcut '{file.name}' has no readable [Desktop Entry]: {e}")

        return Shortcut(
            name=file.name[: -len(SHORTCUT_SUFFIX)],
            container_id=container.id,
            path=file,
            exec_command=exec_command,
            icon=icon,
        )

    def get_container_for_shortcut(self, shortcut: Shortcut) -> Container | None:
        return self.repository.get_by_id(shortcut.container_id)
