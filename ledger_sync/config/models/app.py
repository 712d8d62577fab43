"""
Application Configuration Model.

Integrates all sub-configurations into a single configuration object.
"""

from pydantic import Field, field_validator

from .base import BaseConfig
from .provider import ProviderConfig
from .sync import SyncConfig


class AppConfig(BaseConfig):
    """
    Main application configuration.

    Example:
        >>> config = AppConfig(
        ...     provider=ProviderConfig(rpc_url="http://localhost:8545"),
        ...     sync=SyncConfig(demo_request_count=10),
        ... )
    """

    app_name: str = Field(
        default="Valentine Ledger Sync",
        description="Application name",
    )
    environment: str = Field(
        default="development",
        description="Environment (development, staging, production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    provider: ProviderConfig = Field(
        default_factory=ProviderConfig,
        description="Ledger node configuration",
    )
    sync: SyncConfig = Field(
        default_factory=SyncConfig,
        description="Synchronizer configuration",
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate and normalize environment."""
        v = v.lower().strip()
        valid_envs = {"development", "staging", "production", "dev", "prod", "test"}
        if v not in valid_envs:
            v = "development"
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        v = v.upper().strip()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v not in valid_levels:
            v = "INFO"
        return v

    @property
    def is_production(self) -> bool:
        return self.environment in ("production", "prod")
