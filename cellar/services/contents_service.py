# cellar/services/contents_service.py
import json
from pathlib import Path

from cellar.core.constants import PROFILE_JSON_NAME
from cellar.models.content_model import ContentProfile, ContentType
from cellar.utils.logger_utils import logger


class ContentsService:
    """
    Manages the installed runtime packages under the contents directory:
    `<contents_dir>/<type>/<versionName>-<versionCode>/profile.json`.
    It's designed to fail gracefully if a profile is missing or corrupt.
    """

    def __init__(self, contents_dir: Path):
        # --- Service Setup ---
        self.contents_dir = contents_dir
        self._profiles: list[ContentProfile] = []

    def sync_contents(self) -> list[ContentProfile]:
        """Rescans the contents directory and replaces the cached profiles."""
        profiles: list[ContentProfile] = []
        if not self.contents_dir.is_dir():
            logger.debug(f"Contents directory '{self.contents_dir}' does not exist.")
            self._profiles = profiles
            return profiles

        for content_type in ContentType:
            type_dir = self.contents_dir / content_type.value.lower()
            if not type_dir.is_dir():
                continue
            for install_dir in sorted(p for p in type_dir.iterdir() if p.is_dir()):
                profile = self._read_profile(install_dir, content_type)
                if profile:
                    profiles.append(profile)

        self._profiles = profiles
        logger.info(f"Synced {len(profiles)} content profile(s) from '{self.contents_dir}'.")
        return list(profiles)

    def _read_profile(self, install_dir: Path, expected_type: ContentType) -> ContentProfile | None:
        profile_path = install_dir / PROFILE_JSON_NAME
        if not profile_path.is_file():
            return None
        try:
            with open(profile_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            content_type = ContentType(data.get("type", expected_type.value))
            wine = data.get("wine") or {}
            return ContentProfile(
                type=content_type,
                ver_name=str(data["versionName"]),
                ver_code=int(data.get("versionCode", 0)),
                install_dir=install_dir,
                description=data.get("description", ""),
                wine_prefix_pack=wine.get("prefixPack"),
            )
        except (json.JSONDecodeError, OSError, KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring content profile at '{profile_path}': {e}")
            return None

    def get_profiles(self, content_type: ContentType | None = None) -> list[ContentProfile]:
        if content_type is None:
            return list(self._profiles)
        return [p for p in self._profiles if p.type == content_type]

    def get_profile_by_entry_name(self, entry_name: str) -> ContentProfile | None:
        return next((p for p in self._profiles if p.entry_name == entry_name), None)

    @staticmethod
    def get_source_file(profile: ContentProfile, relative_path: str) -> Path:
        return profile.install_dir / relative_path
