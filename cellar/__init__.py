# cellar/__init__.py
from cellar.core.constants import APP_VERSION

__version__ = APP_VERSION
