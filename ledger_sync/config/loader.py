"""
Settings file loading.

A settings file is a YAML mapping. For an environment name such as
"development" a sibling file config.development.yaml is laid over it
when present. Variables from a .env file are exported before the models
expand ${NAME} references.
"""

from copy import deepcopy
from pathlib import Path
from typing import Any, Iterator, Optional

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from ledger_sync.core import get_logger

from .exceptions import (
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigValidationError,
    PathLike,
)
from .models import AppConfig

logger = get_logger(__name__)


def read_document(path: PathLike) -> dict[str, Any]:
    """
    Read one YAML settings document.

    An empty document reads as an empty mapping.

    Raises:
        ConfigFileNotFoundError: If the file does not exist
        ConfigParseError: If it is not YAML or not a mapping
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigFileNotFoundError(path) from e

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigParseError(path, str(e).splitlines()[0]) from e

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigParseError(path, f"expected a mapping, got {type(document).__name__}")
    return document


def overlay(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Lay one settings mapping over another.

    Nested mappings combine key by key; anything else in override wins.
    Neither argument is modified.
    """
    combined = deepcopy(base)
    for key, value in override.items():
        current = combined.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            combined[key] = overlay(current, value)
        else:
            combined[key] = deepcopy(value)
    return combined


def overlay_paths(path: PathLike, env: Optional[str]) -> Iterator[Path]:
    """Yield the existing environment overlay for a settings file."""
    if not env:
        return
    path = Path(path)
    candidate = path.with_name(f"{path.stem}.{env}{path.suffix}")
    if candidate.is_file():
        yield candidate


class ConfigLoader:
    """
    Builds an AppConfig from a settings file.

    Example:
        >>> config = ConfigLoader().load("config/config.yaml", env="development")
        >>> config.provider.rpc_url
        'http://localhost:8545'
    """

    def __init__(self, env_file: Optional[PathLike] = None):
        """
        Initialize ConfigLoader.

        Args:
            env_file: .env file to export. Without one, a .env beside
                the settings file or in its parent directory is used.
        """
        self._env_file = Path(env_file) if env_file else None

    def load(self, path: PathLike, env: Optional[str] = None) -> AppConfig:
        """
        Load and validate the settings.

        Raises:
            ConfigFileNotFoundError: If the settings file does not exist
            ConfigParseError: If a file is not a YAML mapping
            ConfigValidationError: If the models reject a value
        """
        path = Path(path)
        self.export_env_file(path.parent)

        document = read_document(path)
        for extra in overlay_paths(path, env):
            logger.debug(f"Applying settings overlay {extra}")
            document = overlay(document, read_document(extra))

        try:
            config = AppConfig.model_validate(document)
        except ValidationError as e:
            raise ConfigValidationError.from_pydantic(e, path) from e

        logger.debug(f"Loaded settings from {path} (environment {config.environment})")
        return config

    def export_env_file(self, config_dir: Path) -> Optional[Path]:
        """
        Export the first .env file found; variables already set win.

        Returns:
            The exported file, None when there was none
        """
        if self._env_file is not None:
            candidates = [self._env_file]
        else:
            candidates = [config_dir / ".env", config_dir.parent / ".env"]

        for candidate in candidates:
            if candidate.is_file():
                load_dotenv(candidate, override=False)
                logger.debug(f"Exported variables from {candidate}")
                return candidate
        return None


def load_config(
    path: PathLike,
    env: Optional[str] = None,
    env_file: Optional[PathLike] = None,
) -> AppConfig:
    """Load settings with a one-off ConfigLoader."""
    return ConfigLoader(env_file=env_file).load(path, env=env)
