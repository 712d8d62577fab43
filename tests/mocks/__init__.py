# Mock classes for testing
"""Mock ledger provider, registry binding and resolver for testing."""

from .ledger_mock import (
    PLACEHOLDER_FIELDS,
    MockConnection,
    MockProvider,
    MockRegistry,
    MockResolver,
    MockWatcher,
    created_args,
    make_address,
    wire_request,
)

__all__ = [
    "MockProvider",
    "MockConnection",
    "MockRegistry",
    "MockResolver",
    "MockWatcher",
    "PLACEHOLDER_FIELDS",
    "make_address",
    "wire_request",
    "created_args",
]
