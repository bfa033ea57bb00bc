# cellar/services/config_service.py
import json
from pathlib import Path
from typing import Any

from cellar.core.constants import CONTAINER_CONFIG_FILE_NAME
from cellar.models.config_model import AppConfig
from cellar.utils.logger_utils import logger


class ConfigParseError(ValueError):
    pass


class ConfigSaveError(IOError):
    pass


class ConfigService:
    """Reads and writes the app settings file and the per-container documents."""

    PATH_KEYS = ("image_fs_root", "assets_dir", "contents_dir", "export_dir", "log_dir")

    def __init__(self, config_path: Path):
        # --- Service Setup ---
        self.config_path = config_path

    # --- App Settings ---
    def load_config(self) -> AppConfig:
        """
        Loads the app settings from the JSON file.
        A missing or unreadable file yields the default AppConfig.
        """
        if not self.config_path.exists():
            logger.warning(
                f"Config file not found at '{self.config_path}'. Returning default config."
            )
            return AppConfig()

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = json.load(f)

            if not isinstance(data, dict):
                raise ValueError("top level must be an object")

            paths = {}
            for key in self.PATH_KEYS:
                value = data.get(key)
                if value:
                    # Relative entries resolve against the settings file location
                    paths[key] = (self.config_path.parent / Path(value).expanduser()).resolve()

            logger.info(f"Successfully loaded configuration from {self.config_path}.")
            return AppConfig(**paths)

        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Failed to parse {self.config_path}: {e}. Returning default config.")
            return AppConfig()
        except OSError as e:
            logger.error(f"Failed to read {self.config_path}: {e}. Returning default config.")
            return AppConfig()

    def save_config(self, config: AppConfig):
        """Writes the whole AppConfig. Raises ConfigSaveError."""
        logger.info(f"Saving configuration to {self.config_path}...")
        config_data = {
            key: str(value) if (value := getattr(config, key)) is not None else None
            for key in self.PATH_KEYS
        }
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(config_data, f, indent=4)
            logger.info("Configuration saved successfully.")
        except OSError as e:
            logger.error(f"IOError while saving config: {e}", exc_info=True)
            raise ConfigSaveError(f"Failed to write to config file: {e}") from e

    # --- Container Documents ---
    def read_container_data(self, root_dir: Path) -> dict[str, Any]:
        """Reads `<root_dir>/.container`. Raises ConfigParseError."""
        config_file = root_dir / CONTAINER_CONFIG_FILE_NAME
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ConfigParseError(f"Missing container config: {config_file}") from e
        except json.JSONDecodeError as e:
            raise ConfigParseError(f"Malformed container config {config_file}: {e}") from e
        except OSError as e:
            raise ConfigParseError(f"Unreadable container config {config_file}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigParseError(f"Container config {config_file} is not a JSON object.")
        return data

    def write_container_data(self, root_dir: Path, data: dict[str, Any]):
        """Writes `<root_dir>/.container`. Raises ConfigSaveError."""
        config_file = root_dir / CONTAINER_CONFIG_FILE_NAME
        try:
            with open(config_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=4)
        except OSError as e:
            logger.error(f"IOError while saving container config {config_file}: {e}")
            raise ConfigSaveError(f"Failed to write {config_file}: {e}") from e
        except TypeError as e:
            logger.error(f"TypeError during JSON serialization of {config_file}: {e}")
            raise ConfigSaveError(f"A value in {config_file} could not be saved to JSON: {e}") from e
