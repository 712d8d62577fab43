"""
Shared base for the configuration models.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from ..env import expand_tree


class BaseConfig(BaseModel):
    """
    Immutable settings model.

    String values may hold ${NAME} or ${NAME:fallback} references, which
    are expanded before field validation. Keys a model does not declare
    are dropped so one YAML file can serve several versions.

    Example:
        >>> class NodeConfig(BaseConfig):
        ...     rpc_url: str = "${LEDGER_RPC_URL:http://localhost:8545}"
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        validate_default=True,
        str_strip_whitespace=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _expand_environment(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return expand_tree(data)
        return data
