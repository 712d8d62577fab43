"""
Custom exceptions for the ledger synchronizer.

Exception hierarchy:
    LedgerSyncError (base)
    ├── TransportError
    │   └── ProviderError
    ├── LedgerError
    │   ├── ContractNotDeployedError
    │   └── NotReadyError
    ├── StoreError
    │   ├── DuplicateKeyError
    │   └── NotFoundError
    ├── ValidationError
    └── CallTimeoutError
"""

from typing import Any


class LedgerSyncError(Exception):
    """Base exception for all ledger synchronizer errors."""

    default_message = "Ledger sync error occurred"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.default_message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.code:
            parts.append(f"[{self.code}]")
        if self.details:
            parts.append(f"Details: {self.details}")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"details={self.details!r})"
        )


# Transport-related errors
class TransportError(LedgerSyncError):
    """Base exception for transport-related errors."""

    default_message = "Transport error occurred"


class ProviderError(TransportError):
    """The ledger node rejected or failed a request."""

    default_message = "Ledger provider request failed"


# Ledger-related errors
class LedgerError(LedgerSyncError):
    """Base exception for ledger contract errors."""

    default_message = "Ledger error occurred"


class ContractNotDeployedError(LedgerError):
    """Contract has no deployment on the detected network."""

    default_message = "Contract has not been deployed to detected network"


class NotReadyError(LedgerError):
    """Operation requires a resolved contract binding."""

    default_message = "Ledger synchronizer is not ready"


# Store-related errors
class StoreError(LedgerSyncError):
    """Base exception for request store consistency errors."""

    default_message = "Request store error occurred"

    def __init__(
        self,
        message: str | None = None,
        address: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)
        self.address = address

    def __str__(self) -> str:
        base = super().__str__()
        if self.address:
            return f"{base} address={self.address}"
        return base


class DuplicateKeyError(StoreError):
    """Requester address already present in the store."""

    default_message = "Request already exists"


class NotFoundError(StoreError):
    """Requester address not present in the store."""

    default_message = "Request not found"


class ValidationError(LedgerSyncError):
    """Invalid argument supplied to a ledger operation."""

    default_message = "Validation failed"


class CallTimeoutError(LedgerSyncError):
    """Ledger call exceeded its time bound."""

    default_message = "Ledger call timed out"

    def __init__(self, operation: str, timeout: float, message: str | None = None):
        self.operation = operation
        self.timeout = timeout
        super().__init__(
            message or f"Operation '{operation}' timed out after {timeout}s",
            details={"operation": operation, "timeout": timeout},
        )
