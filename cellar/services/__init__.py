# cellar/services/__init__.py
from .config_service import ConfigService, ConfigParseError, ConfigSaveError
from .identity_service import IdentityAllocator
from .repository_service import ContainerRepository
from .contents_service import ContentsService
from .provisioning_service import ArchiveFormat, ArchiveProvisioner, PatoolArchiveCodec
from .activation_service import ActivationSwitch
from .shortcut_service import ShortcutIndex
from .container_service import ContainerService

__all__ = [
    "ConfigService",
    "ConfigParseError",
    "ConfigSaveError",
    "IdentityAllocator",
    "ContainerRepository",
    "ContentsService",
    "ArchiveFormat",
    "ArchiveProvisioner",
    "PatoolArchiveCodec",
    "ActivationSwitch",
    "ShortcutIndex",
    "ContainerService",
]
