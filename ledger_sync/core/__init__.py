"""
Core module for the ledger synchronizer.

Provides logging utilities, the exception hierarchy and timeout handling.
"""

from .exceptions import (
    CallTimeoutError,
    ContractNotDeployedError,
    DuplicateKeyError,
    LedgerError,
    LedgerSyncError,
    NotFoundError,
    NotReadyError,
    ProviderError,
    StoreError,
    TransportError,
    ValidationError,
)
from .logger import get_logger, set_log_level, setup_logger
from .timeout import with_timeout

__all__ = [
    # Logging
    "setup_logger",
    "get_logger",
    "set_log_level",
    # Exceptions
    "LedgerSyncError",
    "TransportError",
    "ProviderError",
    "LedgerError",
    "ContractNotDeployedError",
    "NotReadyError",
    "StoreError",
    "DuplicateKeyError",
    "NotFoundError",
    "ValidationError",
    "CallTimeoutError",
    # Timeout
    "with_timeout",
]
