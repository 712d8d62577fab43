# Config module - Application configuration system
from .exceptions import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigValidationError,
)
from .env import expand_env, expand_tree
from .loader import ConfigLoader, load_config, overlay, read_document
from .models import (
    AppConfig,
    BaseConfig,
    ProviderConfig,
    SyncConfig,
)

__all__ = [
    # Exceptions
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
    # Loader
    "ConfigLoader",
    "load_config",
    "read_document",
    "overlay",
    "expand_env",
    "expand_tree",
    # Models
    "BaseConfig",
    "ProviderConfig",
    "SyncConfig",
    "AppConfig",
]
