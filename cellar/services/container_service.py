# cellar/services/container_service.py
import copy
import dataclasses
import threading
from pathlib import Path
from typing import Any

from cellar.core.constants import COPY_NAME_SUFFIX
from cellar.models.container_model import (
    DUPLICATE_FIELDS,
    Container,
    ContainerConfig,
    ContainerStatus,
)
from cellar.models.result_model import FailureKind, OperationResult
from cellar.services.activation_service import ActivationSwitch
from cellar.services.config_service import ConfigSaveError, ConfigService
from cellar.services.provisioning_service import ArchiveProvisioner
from cellar.services.repository_service import ContainerRepository
from cellar.utils.logger_utils import logger
from cellar.utils.system_utils import SystemUtils


class ContainerService:
    """
    Runs the container lifecycle: create, duplicate, import, export, remove and
    activate.

    Every mutating operation holds one writer lock from the id peek through the
    allocator commit and index insertion, so two calls can never hand out the
    same id or interleave their index updates.
    """

    def __init__(
        self,
        repository: ContainerRepository,
        provisioner: ArchiveProvisioner,
        activation_switch: ActivationSwitch,
        config_service: ConfigService,
        export_dir: Path,
    ):
        # ---Injected Services ---
        self.repository = repository
        self.provisioner = provisioner
        self.activation_switch = activation_switch
        self.config_service = config_service
        self.export_dir = export_dir

        # --- Internal State ---
        self._write_lock = threading.RLock()

    @property
    def allocator(self):
        return self.repository.allocator

    # --- Creation ---
    def create_container(self, data: dict[str, Any], cancel_flag: list[bool] | None = None) -> OperationResult:
        """
        Creates and provisions a new container from a config document.
        On any failure, including an unexpected exception, the new directory
        is deleted and neither the allocator nor the index is touched.
        """
        with self._write_lock:
            if cancel_flag and cancel_flag[0]:
                return OperationResult.fail(FailureKind.CANCELLED, "Creation cancelled.")

            container_id = self.allocator.next_id()
            data = {**data, "id": container_id}
            root_dir = self.repository.container_dir(container_id)

            failure = self._make_container_dir(root_dir)
            if failure:
                return failure

            registered = False
            try:
                try:
                    config = ContainerConfig.from_dict(data)
                except (TypeError, ValueError, KeyError) as e:
                    return OperationResult.fail(FailureKind.CONFIG_PARSE, f"Invalid container settings: {e}")
                container = Container(id=container_id, root_dir=root_dir, config=config)

                logger.info(f"Creating container {container_id} ('{config.name}') in '{root_dir}'")
                result = self.provisioner.provision(container, config.wine_version, root_dir)
                if not result.success:
                    return result

                if cancel_flag and cancel_flag[0]:
                    logger.info(f"Creation of container {container_id} cancelled. Cleaning up.")
                    return OperationResult.fail(FailureKind.CANCELLED, "Creation cancelled.")

                result = self._register(container)
                registered = result.success
                return result
            finally:
                if not registered:
                    self._discard(root_dir)

    # --- Duplication ---
    def duplicate_container(self, source: Container) -> OperationResult:
        """Copies a container's tree and an allow-list of its settings into a new one."""
        with self._write_lock:
            container_id = self.allocator.next_id()
            root_dir = self.repository.container_dir(container_id)

            failure = self._make_container_dir(root_dir)
            if failure:
                return failure

            registered = False
            try:
                logger.info(f"Duplicating container {source.id} into '{root_dir}'")
                if not SystemUtils.copy_tree(source.root_dir, root_dir):
                    return OperationResult.fail(
                        FailureKind.COPY_FAILURE, f"Could not copy container {source.id}."
                    )

                copied = {name: copy.deepcopy(getattr(source.config, name)) for name in DUPLICATE_FIELDS}
                config = ContainerConfig(name=f"{source.config.name}{COPY_NAME_SUFFIX}", **copied)
                result = self._register(Container(id=container_id, root_dir=root_dir, config=config))
                registered = result.success
                return result
            finally:
                if not registered:
                    self._discard(root_dir)

    # --- Import / Export ---
    def import_container(self, source_dir: Path) -> OperationResult:
        """Copies an external container tree into the repository under a new id."""
        with self._write_lock:
            if not source_dir.exists() or not source_dir.is_dir():
                logger.error(f"Invalid container directory for import: {source_dir}")
                return OperationResult.fail(
                    FailureKind.INVALID_SOURCE, f"'{source_dir}' is not a directory."
                )

            container_id = self.allocator.next_id()
            root_dir = self.repository.container_dir(container_id)
            if root_dir.exists():
                logger.error(f"Container directory already exists: {root_dir}")
                return OperationResult.fail(FailureKind.ALREADY_EXISTS, f"'{root_dir}' already exists.")

            failure = self._make_container_dir(root_dir)
            if failure:
                return failure

            registered = False
            try:
                logger.info(f"Importing '{source_dir}' as container {container_id}")
                if not SystemUtils.copy_tree(source_dir, root_dir):
                    return OperationResult.fail(
                        FailureKind.COPY_FAILURE, f"Failed to copy container files to '{root_dir}'."
                    )

                container = Container(
                    id=container_id, root_dir=root_dir, config=ContainerConfig(name=source_dir.name)
                )
                result = self._register(container)
                registered = result.success
                return result
            finally:
                if not registered:
                    self._discard(root_dir)

    def export_container(self, container: Container) -> OperationResult:
        """
        Copies a container's tree into the backup folder. An existing backup of
        the same directory is never overwritten. The repository is not changed.
        """
        with self._write_lock:
            try:
                self.export_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(f"Failed to create export directory '{self.export_dir}': {e}")
                return OperationResult.fail(FailureKind.DIRECTORY_CREATE, str(e))

            destination = self.export_dir / container.root_dir.name
            if destination.exists() or destination.is_symlink():
                logger.error(f"Export directory already exists: {destination}")
                return OperationResult.fail(
                    FailureKind.ALREADY_EXISTS, f"'{destination}' already exists."
                )

            failure = self._make_container_dir(destination)
            if failure:
                return failure

            exported = False
            try:
                logger.info(f"Exporting container {container.id} to '{destination}'")
                if not SystemUtils.copy_tree(container.root_dir, destination):
                    logger.error(f"Failed to export some container files to: {destination}")
                    return OperationResult.fail(
                        FailureKind.COPY_FAILURE, f"Could not export container {container.id}."
                    )
                exported = True
            finally:
                if not exported:
                    self._discard(destination)

            logger.info(f"Container exported successfully to: {destination}")
            return OperationResult.ok(destination)

    # --- Removal ---
    def remove_container(self, container: Container) -> OperationResult:
        """
        Deletes the container directory and then its index entry. If deletion
        fails part way, the entry stays but is marked BROKEN so the caller can
        surface it and retry.
        """
        with self._write_lock:
            logger.info(f"Removing container {container.id} ('{container.name}')")
            if SystemUtils.delete_path(container.root_dir):
                self.repository.remove(container)
                return OperationResult.ok(container)

            broken = dataclasses.replace(container, status=ContainerStatus.BROKEN)
            try:
                self.repository.replace(broken)
            except KeyError:
                logger.warning(f"Container {container.id} was not in the index.")
            return OperationResult.fail(
                FailureKind.DELETE_FAILURE,
                f"Container {container.id} could only be partly deleted and is now marked broken.",
            )

    # --- Activation ---
    def activate_container(self, container: Container) -> OperationResult:
        with self._write_lock:
            return self.activation_switch.activate(container)

    # --- Private/Internal Logic ---
    def _make_container_dir(self, path: Path) -> OperationResult | None:
        """Creates a directory that must not exist yet. Returns a failure or None."""
        try:
            path.mkdir(parents=True)
        except OSError as e:
            logger.error(f"Failed to create directory '{path}': {e}")
            return OperationResult.fail(FailureKind.DIRECTORY_CREATE, str(e))
        return None

    def _discard(self, path: Path):
        logger.info(f"Discarding unfinished directory '{path}'")
        SystemUtils.delete_path(path)

    def _register(self, container: Container) -> OperationResult:
        """
        Persists the config, then commits the id and indexes the container.
        The caller discards the directory if this fails.
        """
        try:
            self.config_service.write_container_data(container.root_dir, container.to_document())
        except ConfigSaveError as e:
            return OperationResult.fail(FailureKind.CONFIG_SAVE, str(e))

        self.allocator.commit()
        self.repository.insert(container)
        logger.info(f"Container {container.id} ('{container.name}') is ready.")
        return OperationResult.ok(container)
