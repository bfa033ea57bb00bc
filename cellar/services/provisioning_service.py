# cellar/services/provisioning_service.py
import json
import os
import shutil
import tempfile
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import patoolib

from cellar.core.constants import (
    COMMON_DLL_SETS,
    COMMON_DLLS_MANIFEST,
    CONTAINER_PATTERN_BIONIC_FILE,
    CONTAINER_PATTERN_FILE,
    GRAPHICS_DRIVER_DIR,
    GRAPHICS_DRIVER_PREFIX,
    WINDOWS_DIR,
    XZ_SUFFIXES,
    ZSTD_SUFFIXES,
)
from cellar.models.container_model import Container, is_main_wine_version
from cellar.models.result_model import FailureKind, OperationResult
from cellar.services.contents_service import ContentsService
from cellar.utils.logger_utils import logger
from cellar.utils.system_utils import SystemUtils

# Receives the planned destination of a file and its size; returns the path to
# write to instead, or None to skip the file.
FileInterceptor = Callable[[Path, int], Optional[Path]]


class ArchiveFormat(Enum):
    ZSTD = ".tar.zst"
    XZ = ".tar.xz"


class ProvisioningError(Exception):
    """A provisioning step failed. `kind` says which."""

    def __init__(self, kind: FailureKind, message: str):
        super().__init__(message)
        self.kind = kind


class PatoolArchiveCodec:
    """Extracts compressed tarballs with patoolib, keyed by ArchiveFormat."""

    def extract(
        self,
        archive_format: ArchiveFormat,
        archive_path: Path,
        outdir: Path,
        interceptor: FileInterceptor | None = None,
    ) -> bool:
        if not archive_path.is_file():
            logger.error(f"Archive not found: {archive_path}")
            return False

        logger.info(f"Extracting '{archive_path.name}' ({archive_format.name}) into '{outdir}'")
        try:
            outdir.mkdir(parents=True, exist_ok=True)
            with tempfile.TemporaryDirectory(prefix="cellar_extract_", dir=outdir.parent) as temp_dir:
                temp_path = Path(temp_dir)
                # patoolib picks its backend from the file name, so the archive is
                # staged under a canonical one (.tzst and .txz are not recognised).
                staged = temp_path / f"archive{archive_format.value}"
                os.symlink(archive_path.resolve(), staged)

                if interceptor is None:
                    patoolib.extract_archive(
                        str(staged), outdir=str(outdir), verbosity=-1, interactive=False
                    )
                    return True

                staging_dir = temp_path / "out"
                staging_dir.mkdir()
                patoolib.extract_archive(
                    str(staged), outdir=str(staging_dir), verbosity=-1, interactive=False
                )
                self._move_intercepted(staging_dir, outdir, interceptor)
                return True

        except patoolib.util.PatoolError as e:
            logger.error(f"Could not extract '{archive_path.name}': {e}")
            return False
        except OSError as e:
            logger.error(f"Filesystem error while extracting '{archive_path.name}': {e}")
            return False

    @staticmethod
    def _move_intercepted(staging_dir: Path, outdir: Path, interceptor: FileInterceptor):
        for dirpath, dirnames, filenames in os.walk(staging_dir):
            relative_dir = Path(dirpath).relative_to(staging_dir)
            for dirname in dirnames:
                source = Path(dirpath) / dirname
                if not source.is_symlink():
                    (outdir / relative_dir / dirname).mkdir(parents=True, exist_ok=True)
            for filename in filenames + [d for d in dirnames if (Path(dirpath) / d).is_symlink()]:
                source = Path(dirpath) / filename
                size = source.lstat().st_size
                destination = interceptor(outdir / relative_dir / filename, size)
                if destination is None:
                    continue
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.move(str(source), str(destination))


class ArchiveProvisioner:
    """
    Populates a fresh container directory: extracts the filesystem template and
    merges the common Windows libraries into it, or extracts the prefix pack
    of an installed runtime version.
    """

    def __init__(
        self,
        assets_dir: Path,
        wine_lib_dir: Path,
        contents_service: ContentsService,
        codec: PatoolArchiveCodec | None = None,
    ):
        # ---Injected Services ---
        self.assets_dir = assets_dir
        self.wine_lib_dir = wine_lib_dir
        self.contents_service = contents_service
        self.codec = codec or PatoolArchiveCodec()

    def provision(
        self,
        container: Container,
        wine_version: str | None,
        target_dir: Path,
        interceptor: FileInterceptor | None = None,
    ) -> OperationResult:
        """
        Returns a failed result if any step fails. Files may already be on disk
        in that case; the caller owns `target_dir` and must discard it.
        """
        try:
            if is_main_wine_version(wine_version):
                self._provision_default(container, target_dir, interceptor)
            else:
                self._provision_from_profile(wine_version, target_dir, interceptor)
        except ProvisioningError as e:
            logger.error(f"Provisioning of container {container.id} failed: {e}")
            return OperationResult.fail(e.kind, str(e))

        logger.info(f"Provisioned container {container.id} in '{target_dir}'")
        return OperationResult.ok(target_dir)

    # --- Default Runtime ---
    def _provision_default(self, container: Container, target_dir: Path, interceptor):
        is_bionic = container.config.is_bionic
        pattern_file = CONTAINER_PATTERN_BIONIC_FILE if is_bionic else CONTAINER_PATTERN_FILE

        if not self.codec.extract(ArchiveFormat.ZSTD, self.assets_dir / pattern_file, target_dir, interceptor):
            raise ProvisioningError(FailureKind.ARCHIVE_EXTRACT, f"Could not extract template '{pattern_file}'.")

        try:
            manifest = self._load_common_dlls()
            for source_arch, target_subdir, skip_for_bionic in COMMON_DLL_SETS:
                if skip_for_bionic and is_bionic:
                    continue
                self._merge_common_dlls(source_arch, target_subdir, manifest, target_dir, interceptor)
        except (OSError, KeyError, TypeError, ValueError) as e:
            raise ProvisioningError(
                FailureKind.COPY_FAILURE, f"Merging common libraries failed: {e}"
            ) from e

    def _load_common_dlls(self) -> dict[str, list[str]]:
        with open(self.assets_dir / COMMON_DLLS_MANIFEST, "r", encoding="utf-8") as f:
            manifest = json.load(f)
        if not isinstance(manifest, dict):
            raise ValueError(f"{COMMON_DLLS_MANIFEST} must map folder names to file lists")
        return manifest

    def _merge_common_dlls(
        self,
        source_arch: str,
        target_subdir: str,
        manifest: dict[str, list[str]],
        target_dir: Path,
        interceptor: FileInterceptor | None,
    ):
        source_dir = self.wine_lib_dir / source_arch
        names = manifest[target_subdir]
        logger.debug(f"Merging {len(names)} file(s) from '{source_arch}' into '{target_subdir}'")

        for name in names:
            source = source_dir / name
            destination = target_dir / WINDOWS_DIR / target_subdir / name
            if interceptor is not None:
                destination = interceptor(destination, source.stat().st_size)
                if destination is None:
                    continue
            SystemUtils.copy_file(source, destination)

    # --- Installed Runtime Versions ---
    def _provision_from_profile(self, wine_version: str, target_dir: Path, interceptor):
        try:
            self.contents_service.sync_contents()
        except OSError as e:
            raise ProvisioningError(
                FailureKind.PROFILE_NOT_FOUND, f"Could not read installed runtimes: {e}"
            ) from e
        profile = self.contents_service.get_profile_by_entry_name(wine_version)
        if profile is None:
            raise ProvisioningError(FailureKind.PROFILE_NOT_FOUND, f"No content profile for '{wine_version}'.")
        if not profile.wine_prefix_pack:
            raise ProvisioningError(
                FailureKind.PROFILE_NOT_FOUND, f"Profile '{wine_version}' has no prefix pack."
            )

        prefix_pack = self.contents_service.get_source_file(profile, profile.wine_prefix_pack)
        suffix = SystemUtils.get_file_suffix(prefix_pack)
        if suffix in XZ_SUFFIXES:
            archive_format = ArchiveFormat.XZ
        elif suffix in ZSTD_SUFFIXES:
            archive_format = ArchiveFormat.ZSTD
        else:
            raise ProvisioningError(
                FailureKind.UNSUPPORTED_FORMAT, f"Unsupported prefix pack format '{prefix_pack.name}'."
            )

        if not self.codec.extract(archive_format, prefix_pack, target_dir, interceptor):
            raise ProvisioningError(FailureKind.ARCHIVE_EXTRACT, f"Could not extract '{prefix_pack.name}'.")

    # --- Graphics Drivers ---
    def extract_graphics_driver_files(
        self, driver_version: str, target_dir: Path, interceptor: FileInterceptor | None = None
    ) -> bool:
        """Extracts the bundled driver package for `driver_version` into `target_dir`."""
        archive = self.assets_dir / GRAPHICS_DRIVER_DIR / f"{GRAPHICS_DRIVER_PREFIX}{driver_version}.tzst"
        logger.info(f"Extracting graphics driver '{driver_version}' into '{target_dir}'")
        result = self.codec.extract(ArchiveFormat.ZSTD, archive, target_dir, interceptor)
        if result:
            logger.info(f"Extraction succeeded for driver version: {driver_version}")
        else:
            logger.error(f"Extraction failed for driver version: {driver_version}")
        return result
