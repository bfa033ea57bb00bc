# cellar/services/repository_service.py
import os
import threading
from pathlib import Path

from cellar.core.constants import CONTAINER_DIR_PATTERN, CONTAINER_USER
from cellar.models.container_model import Container, ContainerConfig
from cellar.services.config_service import ConfigParseError, ConfigService
from cellar.services.identity_service import IdentityAllocator
from cellar.utils.logger_utils import logger


class ContainerRepository:
    """
    In-memory index of the containers under the home directory.

    The `.container` file inside each container directory is the source of
    truth; this index is rebuilt from disk by `load()`. Mutators are only
    called after the matching on-disk change has succeeded.
    """

    def __init__(self, home_dir: Path, config_service: ConfigService, allocator: IdentityAllocator):
        # ---Injected Services ---
        self.home_dir = home_dir
        self.config_service = config_service
        self.allocator = allocator

        # --- Internal State ---
        self._containers: list[Container] = []
        self._lock = threading.RLock()

    def container_dir(self, container_id: int) -> Path:
        return self.home_dir / f"{CONTAINER_USER}-{container_id}"

    # --- Loading ---
    def load(self) -> list[Container]:
        """
        Scans the home directory and rebuilds the index.
        A container whose config cannot be read is logged and skipped, but its
        id still raises the allocator watermark so the directory name is never
        handed out again.
        """
        logger.info(f"Loading containers from '{self.home_dir}'")
        loaded: list[Container] = []
        max_id = 0

        try:
            with os.scandir(self.home_dir) as it:
                entries = [entry for entry in it if entry.is_dir(follow_symlinks=False)]
        except FileNotFoundError:
            logger.warning(f"Home directory '{self.home_dir}' does not exist yet.")
            entries = []

        for entry in entries:
            match = CONTAINER_DIR_PATTERN.match(entry.name)
            if not match:
                continue
            container_id = int(match.group(1))
            max_id = max(max_id, container_id)
            root_dir = Path(entry.path)
            try:
                data = self.config_service.read_container_data(root_dir)
                config = ContainerConfig.from_dict(data)
            except ConfigParseError as e:
                logger.warning(f"Skipping container '{entry.name}': {e}")
                continue
            except (TypeError, ValueError, KeyError) as e:
                logger.warning(f"Skipping container '{entry.name}': invalid field value ({e})")
                continue
            loaded.append(Container(id=container_id, root_dir=root_dir, config=config))

        loaded.sort(key=lambda c: c.id)
        with self._lock:
            self._containers = loaded
            self.allocator.observe(max_id)

        logger.info(f"Loaded {len(loaded)} container(s). Next id: {self.allocator.next_id()}")
        return list(loaded)

    # --- Reads ---
    def list(self) -> list[Container]:
        with self._lock:
            return list(self._containers)

    def get_by_id(self, container_id: int) -> Container | None:
        with self._lock:
            return next((c for c in self._containers if c.id == container_id), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._containers)

    # --- Mutations ---
    def insert(self, container: Container):
        with self._lock:
            if any(c.id == container.id for c in self._containers):
                raise ValueError(f"Container id {container.id} is already registered.")
            self._containers.append(container)

    def remove(self, container: Container) -> bool:
        with self._lock:
            before = len(self._containers)
            self._containers = [c for c in self._containers if c.id != container.id]
            return len(self._containers) != before

    def replace(self, container: Container):
        """Swaps the entry with the same id for an updated copy."""
        with self._lock:
            for idx, existing in enumerate(self._containers):
                if existing.id == container.id:
                    self._containers[idx] = container
                    return
            raise KeyError(container.id)
