"""Shared fixtures for cellar tests."""

import json
from pathlib import Path

import pytest
from PyQt6.QtCore import QCoreApplication

from cellar.core.constants import CONTAINER_PATTERN_BIONIC_FILE, CONTAINER_PATTERN_FILE
from cellar.models.config_model import AppConfig
from cellar.services import (
    ActivationSwitch,
    ArchiveProvisioner,
    ConfigService,
    ContainerRepository,
    ContainerService,
    ContentsService,
    IdentityAllocator,
    ShortcutIndex,
)
from cellar.utils.logger_utils import reconfigure_logger

COMMON_DLLS = {
    "system32": ["d3d9.dll", "ddraw.dll"],
    "syswow64": ["d3d9.dll"],
}
WINE_ARCHES = ("x86_64-windows", "aarch64-windows", "i386-windows")


@pytest.fixture(scope="session")
def qapp_cls():
    """Headless application for pytest-qt."""
    return QCoreApplication


@pytest.fixture(scope="session", autouse=True)
def log_to_tmp(tmp_path_factory):
    """Keep test logs out of the working directory."""
    reconfigure_logger(tmp_path_factory.mktemp("logs"))


class FakeCodec:
    """
    Stands in for PatoolArchiveCodec. Each extraction writes one marker file
    (through the interceptor, if any) and is recorded in `calls`.
    """

    def __init__(self):
        self.calls: list[tuple] = []
        self.fail = False
        self.on_extract = None

    def extract(self, archive_format, archive_path, outdir, interceptor=None) -> bool:
        self.calls.append((archive_format, Path(archive_path), Path(outdir)))
        if self.fail:
            return False
        content = archive_path.name.encode("utf-8")
        destination = Path(outdir) / "extracted.txt"
        if interceptor is not None:
            destination = interceptor(destination, len(content))
        if destination is not None:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(content)
        if self.on_extract:
            self.on_extract()
        return True


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """An image filesystem with empty home, wine libraries and assets."""
    config = AppConfig(
        image_fs_root=tmp_path / "imagefs",
        assets_dir=tmp_path / "assets",
        contents_dir=tmp_path / "contents",
        export_dir=tmp_path / "backups",
        log_dir=tmp_path / "logs",
    )
    config.home_dir.mkdir(parents=True)

    for arch in WINE_ARCHES:
        arch_dir = config.wine_lib_dir / arch
        arch_dir.mkdir(parents=True)
        for name in {n for names in COMMON_DLLS.values() for n in names}:
            (arch_dir / name).write_text(arch)

    config.assets_dir.mkdir()
    (config.assets_dir / "common_dlls.json").write_text(json.dumps(COMMON_DLLS))
    (config.assets_dir / CONTAINER_PATTERN_FILE).write_bytes(b"")
    (config.assets_dir / CONTAINER_PATTERN_BIONIC_FILE).write_bytes(b"")
    return config


@pytest.fixture
def config_service(tmp_path) -> ConfigService:
    return ConfigService(tmp_path / "cellar.json")


@pytest.fixture
def allocator() -> IdentityAllocator:
    return IdentityAllocator()


@pytest.fixture
def repository(app_config, config_service, allocator) -> ContainerRepository:
    return ContainerRepository(app_config.home_dir, config_service, allocator)


@pytest.fixture
def codec() -> FakeCodec:
    return FakeCodec()


@pytest.fixture
def contents_service(app_config) -> ContentsService:
    return ContentsService(app_config.contents_dir)


@pytest.fixture
def provisioner(app_config, contents_service, codec) -> ArchiveProvisioner:
    return ArchiveProvisioner(
        assets_dir=app_config.assets_dir,
        wine_lib_dir=app_config.wine_lib_dir,
        contents_service=contents_service,
        codec=codec,
    )


@pytest.fixture
def activation_switch(repository) -> ActivationSwitch:
    return ActivationSwitch(repository)


@pytest.fixture
def container_service(app_config, repository, provisioner, activation_switch, config_service):
    return ContainerService(
        repository=repository,
        provisioner=provisioner,
        activation_switch=activation_switch,
        config_service=config_service,
        export_dir=app_config.export_dir,
    )


@pytest.fixture
def shortcut_index(repository) -> ShortcutIndex:
    return ShortcutIndex(repository)


@pytest.fixture
def make_container(container_service):
    """Creates a container through the service and returns it."""

    def _make(**data):
        data.setdefault("name", "Container")
        result = container_service.create_container(data)
        assert result.success, result.error
        return result.data

    return _make
