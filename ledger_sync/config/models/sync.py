"""
Synchronizer Configuration Model.
"""

from typing import Optional

from pydantic import Field

from .base import BaseConfig


class SyncConfig(BaseConfig):
    """
    Ledger state synchronizer configuration.

    Attributes:
        call_timeout_seconds: Bound on each ledger call during boot,
            None waits indefinitely
        demo_request_count: Synthetic requests seeded after a successful load
        demo_name_length: Length of generated requester names
    """

    call_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Timeout applied to each ledger call during boot",
    )
    demo_request_count: int = Field(
        default=0,
        ge=0,
        le=500,
        description="Number of synthetic requests to seed",
    )
    demo_name_length: int = Field(
        default=10,
        ge=1,
        le=64,
        description="Length of generated names",
    )
