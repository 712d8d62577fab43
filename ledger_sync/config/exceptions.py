"""
Configuration errors.

Each error names the file it concerns when one is known, so a runner
can report the problem on a single line.
"""

from pathlib import Path
from typing import Optional, Sequence, Union

from pydantic import ValidationError

PathLike = Union[str, Path]


class ConfigError(Exception):
    """Base class for configuration problems."""

    def __init__(self, message: str, path: Optional[PathLike] = None):
        self.path = str(path) if path is not None else None
        super().__init__(f"{self.path}: {message}" if self.path else message)


class ConfigFileNotFoundError(ConfigError):
    """The settings file does not exist."""

    def __init__(self, path: PathLike):
        super().__init__("no such configuration file", path)


class ConfigParseError(ConfigError):
    """The settings file is not a YAML mapping."""

    def __init__(self, path: PathLike, reason: str):
        self.reason = reason
        super().__init__(f"unreadable configuration ({reason})", path)


class ConfigValidationError(ConfigError):
    """
    Settings were read but rejected by the models.

    Attributes:
        errors: One "dotted.field: message" entry per rejected value
    """

    def __init__(self, errors: Sequence[str], path: Optional[PathLike] = None):
        self.errors = list(errors)
        super().__init__("invalid settings: " + "; ".join(self.errors), path)

    @classmethod
    def from_pydantic(
        cls,
        error: ValidationError,
        path: Optional[PathLike] = None,
    ) -> "ConfigValidationError":
        entries = []
        for item in error.errors():
            location = ".".join(str(part) for part in item["loc"]) or "<root>"
            entries.append(f"{location}: {item['msg']}")
        return cls(entries, path)
