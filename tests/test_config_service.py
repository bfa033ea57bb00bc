"""Tests for services/config_service.py and the container config document."""

import json

import pytest

from cellar.core.constants import DEFAULT_EXPORT_DIR, MAIN_WINE_VERSION
from cellar.models.config_model import AppConfig
from cellar.models.container_model import (
    Container,
    ContainerConfig,
    Drive,
    StartupSelection,
)
from cellar.services.config_service import ConfigParseError, ConfigSaveError, ConfigService


class TestAppConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        service = ConfigService(tmp_path / "missing.json")
        assert service.load_config() == AppConfig()

    def test_malformed_file_gives_defaults(self, tmp_path):
        path = tmp_path / "cellar.json"
        path.write_text("{not json")
        assert ConfigService(path).load_config() == AppConfig()

    def test_relative_paths_resolve_against_file(self, tmp_path):
        path = tmp_path / "conf" / "cellar.json"
        path.parent.mkdir()
        path.write_text(json.dumps({"image_fs_root": "imagefs", "assets_dir": "/opt/assets"}))

        config = ConfigService(path).load_config()

        assert config.image_fs_root == (tmp_path / "conf" / "imagefs").resolve()
        assert config.home_dir == (tmp_path / "conf" / "imagefs" / "home").resolve()
        assert str(config.assets_dir) == "/opt/assets"
        assert config.export_dir == DEFAULT_EXPORT_DIR

    def test_save_then_load(self, tmp_path):
        path = tmp_path / "cellar.json"
        service = ConfigService(path)
        config = AppConfig(
            image_fs_root=tmp_path / "fs",
            assets_dir=tmp_path / "assets",
            contents_dir=tmp_path / "contents",
            export_dir=tmp_path / "out",
            log_dir=tmp_path / "logs",
        )
        service.save_config(config)
        assert service.load_config() == config


class TestContainerDocument:
    def test_write_then_read_round_trips(self, tmp_path):
        config = ContainerConfig(
            name="Games",
            screen_size="800x600",
            env_vars={"WINEDEBUG": "-all"},
            cpu_list=[0, 2],
            cpu_list_wow64=[1],
            win_components={"direct3d": False},
            drives=[Drive("D", "/data"), Drive("E", "/mnt/usb")],
            show_fps=True,
            startup_selection=StartupSelection.AGGRESSIVE,
            rcfile_id=4,
            is_bionic=True,
            extra_data={"appVersion": "3"},
        )
        container = Container(id=7, root_dir=tmp_path, config=config)
        service = ConfigService(tmp_path / "cellar.json")

        service.write_container_data(tmp_path, container.to_document())
        data = service.read_container_data(tmp_path)

        assert data == container.to_document()
        assert data["id"] == 7
        assert ContainerConfig.from_dict(data) == config

    def test_file_is_indented_json(self, tmp_path):
        service = ConfigService(tmp_path / "cellar.json")
        service.write_container_data(tmp_path, {"id": 1, "name": "A"})
        text = (tmp_path / ".container").read_text(encoding="utf-8")
        assert text == json.dumps({"id": 1, "name": "A"}, indent=4)

    def test_missing_document_raises(self, tmp_path):
        with pytest.raises(ConfigParseError):
            ConfigService(tmp_path / "cellar.json").read_container_data(tmp_path)

    def test_malformed_document_raises(self, tmp_path):
        (tmp_path / ".container").write_text("{")
        with pytest.raises(ConfigParseError):
            ConfigService(tmp_path / "cellar.json").read_container_data(tmp_path)

    def test_non_object_document_raises(self, tmp_path):
        (tmp_path / ".container").write_text("[1, 2]")
        with pytest.raises(ConfigParseError):
            ConfigService(tmp_path / "cellar.json").read_container_data(tmp_path)

    def test_unwritable_document_raises(self, tmp_path):
        service = ConfigService(tmp_path / "cellar.json")
        with pytest.raises(ConfigSaveError):
            service.write_container_data(tmp_path / "missing", {"id": 1})

    def test_unserializable_value_raises(self, tmp_path):
        service = ConfigService(tmp_path / "cellar.json")
        with pytest.raises(ConfigSaveError):
            service.write_container_data(tmp_path, {"id": object()})


class TestContainerConfigParsing:
    def test_defaults(self):
        config = ContainerConfig.from_dict({})
        assert config.name == "Container"
        assert config.wine_version == MAIN_WINE_VERSION
        assert config.startup_selection == StartupSelection.ESSENTIAL
        assert config.extra_data == {}

    def test_unknown_keys_ignored(self):
        config = ContainerConfig.from_dict({"id": 3, "name": "X", "somethingNew": 1})
        assert config.name == "X"

    def test_legacy_string_forms(self):
        config = ContainerConfig.from_dict(
            {
                "envVars": "WINEESYNC=1 DXVK_HUD=fps",
                "cpuList": "0,1,3",
                "wincomponents": "direct3d=1,directsound=0",
                "drives": "D:/storage/DownloadsE:/mnt/media",
            }
        )
        assert config.env_vars == {"WINEESYNC": "1", "DXVK_HUD": "fps"}
        assert config.cpu_list == [0, 1, 3]
        assert config.win_components == {"direct3d": True, "directsound": False}
        assert config.drives == [Drive("D", "/storage/Downloads"), Drive("E", "/mnt/media")]

    def test_legacy_forms_are_written_structured(self):
        config = ContainerConfig.from_dict({"cpuList": "0,1", "drives": "D:/data"})
        data = config.to_dict()
        assert data["cpuList"] == [0, 1]
        assert data["drives"] == [{"letter": "D", "path": "/data"}]

    def test_bad_value_raises(self):
        with pytest.raises(ValueError):
            ContainerConfig.from_dict({"startupSelection": 9})

    def test_empty_wine_version_means_main_runtime(self):
        assert ContainerConfig.from_dict({"wineVersion": ""}).wine_version == MAIN_WINE_VERSION
        assert ContainerConfig.from_dict({"wineVersion": "wine-9.0-1"}).wine_version == "wine-9.0-1"
