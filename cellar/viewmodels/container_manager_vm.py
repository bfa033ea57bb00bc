# cellar/viewmodels/container_manager_vm.py
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Callable

from PyQt6.QtCore import QObject, pyqtSignal

from cellar.models.container_model import Container
from cellar.models.result_model import FailureKind, OperationResult
from cellar.services.container_service import ContainerService
from cellar.services.shortcut_service import ShortcutIndex
from cellar.utils.async_utils import TaskRunner
from cellar.utils.logger_utils import logger


class ContainerManagerViewModel(QObject):
    """
    Front door for presentation layers. Mutations are queued on the TaskRunner
    and their results come back as signals on the thread that owns this object.
    """

    # --- Signals for UI Updates & Feedback ---
    containers_updated = pyqtSignal(list)  # list[Container]
    shortcuts_updated = pyqtSignal(list)  # list[Shortcut]
    active_container_changed = pyqtSignal(object)  # container id or None
    operation_started = pyqtSignal(str)  # operation name
    operation_finished = pyqtSignal(str, object)  # operation name, OperationResult
    toast_requested = pyqtSignal(str, str)  # message, level

    def __init__(
        self,
        container_service: ContainerService,
        shortcut_index: ShortcutIndex,
        task_runner: TaskRunner,
    ):
        super().__init__()
        # ---Injected Services ---
        self.container_service = container_service
        self.repository = container_service.repository
        self.shortcut_index = shortcut_index
        self.task_runner = task_runner

        # --- Internal State ---
        self._cancel_flag: list[bool] = [False]

    # --- Initialization ---
    def start_initial_load(self) -> Future:
        """Rebuilds the container index in the background."""
        logger.info("Starting initial container load...")
        self.operation_started.emit("load")
        return self.task_runner.submit(
            self.repository.load,
            on_result=self._on_load_finished,
            on_error=lambda error, name="load": self._on_operation_error(name, error),
        )

    def _on_load_finished(self, containers: list):
        self.containers_updated.emit(containers)
        self.operation_finished.emit("load", OperationResult.ok(containers))

    # --- Public Methods (API for the View) ---
    def get_containers(self) -> list[Container]:
        return self.repository.list()

    def create_container(self, data: dict[str, Any]) -> Future:
        self._cancel_flag = [False]
        return self._start_operation(
            "create", self.container_service.create_container, data, self._cancel_flag
        )

    def cancel_creation(self):
        """Asks the running or queued creation to stop and clean up after itself."""
        logger.info("Cancellation requested for container creation.")
        self._cancel_flag[0] = True

    def duplicate_container(self, container_id: int) -> Future | None:
        container = self._find_container(container_id)
        if container is None:
            return None
        return self._start_operation("duplicate", self.container_service.duplicate_container, container)

    def import_container(self, source_dir: Path) -> Future:
        return self._start_operation("import", self.container_service.import_container, source_dir)

    def export_container(self, container_id: int) -> Future | None:
        container = self._find_container(container_id)
        if container is None:
            return None
        return self._start_operation("export", self.container_service.export_container, container)

    def remove_container(self, container_id: int) -> Future | None:
        container = self._find_container(container_id)
        if container is None:
            return None
        return self._start_operation("remove", self.container_service.remove_container, container)

    def activate_container(self, container_id: int) -> OperationResult:
        container = self._find_container(container_id)
        if container is None:
            return OperationResult.fail(FailureKind.NOT_FOUND, f"No container with id {container_id}.")

        result = self.container_service.activate_container(container)
        if result.success:
            self.active_container_changed.emit(container.id)
            self.toast_requested.emit(f"'{container.name}' is now the active container.", "success")
        else:
            self.toast_requested.emit(result.error or "Activation failed.", "error")
        return result

    def refresh_shortcuts(self) -> list:
        shortcuts = self.shortcut_index.scan()
        self.shortcuts_updated.emit(shortcuts)
        return shortcuts

    # --- Private/Internal Logic ---
    def _find_container(self, container_id: int) -> Container | None:
        container = self.repository.get_by_id(container_id)
        if container is None:
            logger.warning(f"Container {container_id} not found.")
            self.toast_requested.emit(f"Container {container_id} not found.", "error")
        return container

    def _start_operation(self, name: str, service_function: Callable, *args) -> Future:
        """Queues a service call and routes its outcome back to the signals."""
        self.operation_started.emit(name)
        return self.task_runner.submit(
            service_function,
            *args,
            on_result=lambda result, op=name: self._on_operation_finished(op, result),
            on_error=lambda error, op=name: self._on_operation_error(op, error),
        )

    def _on_operation_finished(self, name: str, result: OperationResult):
        if result.success:
            self.toast_requested.emit(f"Container {name} finished.", "success")
        else:
            self.toast_requested.emit(result.error or f"Container {name} failed.", "error")
        self.containers_updated.emit(self.repository.list())
        self.operation_finished.emit(name, result)

    def _on_operation_error(self, name: str, error_info: tuple):
        exctype, value, tb = error_info
        logger.error(f"Unexpected error during '{name}': {exctype.__name__}: {value}\n{tb}")
        self.toast_requested.emit(
            f"A critical error occurred during {name}. Please check the logs.", "error"
        )
        self.containers_updated.emit(self.repository.list())
        self.operation_finished.emit(name, OperationResult(success=False, error=str(value)))
