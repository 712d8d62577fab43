"""
Provider Configuration Model.

Connection settings for the ledger node.
"""

from pydantic import Field, field_validator

from .base import BaseConfig


class ProviderConfig(BaseConfig):
    """
    Ledger node connection configuration.

    An empty rpc_url means no connection is available to the
    synchronizer, which then reports NO_TRANSPORT.

    Example:
        >>> config = ProviderConfig(rpc_url="${LEDGER_RPC_URL}")
    """

    rpc_url: str = Field(
        default="",
        description="JSON-RPC endpoint of the ledger node",
    )
    poll_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Network identity polling interval",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="HTTP timeout for a single JSON-RPC request",
    )

    @field_validator("rpc_url")
    @classmethod
    def validate_rpc_url(cls, v: str) -> str:
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("rpc_url must be an http(s) URL")
        return v

    @property
    def has_endpoint(self) -> bool:
        return bool(self.rpc_url)
