# cellar/utils/__init__.py
from .system_utils import SystemUtils
from .async_utils import TaskRunner, Worker

__all__ = ["SystemUtils", "TaskRunner", "Worker"]
