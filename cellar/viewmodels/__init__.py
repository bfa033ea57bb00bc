# cellar/viewmodels/__init__.py
from .container_manager_vm import ContainerManagerViewModel

__all__ = ["ContainerManagerViewModel"]
