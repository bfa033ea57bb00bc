# cellar/services/activation_service.py
import os
import uuid
from pathlib import Path

from cellar.core.constants import CONTAINER_DIR_PATTERN, CONTAINER_USER
from cellar.models.container_model import Container
from cellar.models.result_model import FailureKind, OperationResult
from cellar.services.repository_service import ContainerRepository
from cellar.utils.logger_utils import logger
from cellar.utils.system_utils import SystemUtils


class ActivationSwitch:
    """Points the `<home>/xuser` alias at the active container's directory."""

    def __init__(self, repository: ContainerRepository):
        # ---Injected Services ---
        self.repository = repository

    @property
    def alias_path(self) -> Path:
        return self.repository.home_dir / CONTAINER_USER

    def activate(self, container: Container) -> OperationResult:
        """
        Swaps the alias in one rename: the new relative link is created under a
        temporary name and renamed over the old alias.
        """
        home_dir = self.repository.home_dir
        target = f"./{self.repository.container_dir(container.id).name}"
        temp_link = home_dir / f".{CONTAINER_USER}.{uuid.uuid4().hex}"
        alias = self.alias_path

        try:
            os.symlink(target, temp_link)
        except OSError as e:
            logger.error(f"Could not create activation link in '{home_dir}': {e}")
            return OperationResult.fail(FailureKind.DIRECTORY_CREATE, str(e))

        # A real directory cannot be renamed over, so it has to go first.
        if alias.is_dir() and not alias.is_symlink():
            logger.warning(f"Alias '{alias}' is a plain directory. Removing it.")
            if not SystemUtils.delete_path(alias):
                SystemUtils.delete_path(temp_link)
                return OperationResult.fail(FailureKind.DELETE_FAILURE, f"Could not clear '{alias}'.")

        try:
            os.replace(temp_link, alias)
        except OSError as e:
            logger.error(f"Could not swap activation alias: {e}")
            SystemUtils.delete_path(temp_link)
            return OperationResult.fail(FailureKind.DIRECTORY_CREATE, str(e))

        logger.info(f"Activated container {container.id} ('{container.name}')")
        return OperationResult.ok(container)

    def active_container_id(self) -> int | None:
        """Reads the alias back. None when it is missing or not a container link."""
        alias = self.alias_path
        if not alias.is_symlink():
            return None
        match = CONTAINER_DIR_PATTERN.match(Path(os.readlink(alias)).name)
        if not match or not alias.exists():
            return None
        return int(match.group(1))
