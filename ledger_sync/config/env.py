"""
Environment references in configuration values.

A reference is written ${NAME} or ${NAME:fallback}. Expansion is purely
textual: the config models turn the resulting strings into numbers or
flags when they validate.
"""

import os
import re
from typing import Any, Mapping, Optional

ENV_REFERENCE = re.compile(
    r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::(?P<fallback>[^}]*))?\}"
)


def expand_env(text: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Replace every environment reference in a string.

    An unset variable without a fallback expands to the empty string.

    Example:
        >>> expand_env("http://node:${PORT:8545}", {})
        'http://node:8545'
    """
    source = os.environ if environ is None else environ

    def lookup(match: re.Match) -> str:
        value = source.get(match.group("name"))
        if value is not None:
            return value
        return match.group("fallback") or ""

    return ENV_REFERENCE.sub(lookup, text)


def expand_tree(data: Any, environ: Optional[Mapping[str, str]] = None) -> Any:
    """Expand references in every string of a nested mapping/sequence."""
    if isinstance(data, str):
        return expand_env(data, environ)
    if isinstance(data, Mapping):
        return {key: expand_tree(value, environ) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return type(data)(expand_tree(item, environ) for item in data)
    return data
