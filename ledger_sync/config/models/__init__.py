# Configuration models
from .app import AppConfig
from .base import BaseConfig
from .provider import ProviderConfig
from .sync import SyncConfig

__all__ = [
    "BaseConfig",
    "ProviderConfig",
    "SyncConfig",
    "AppConfig",
]
