"""
Pytest configuration and fixtures for ledger sync tests.
"""

import pytest

from ledger_sync.config.models import SyncConfig
from ledger_sync.ledger.models import ValentineRequest
from tests.mocks import (
    MockConnection,
    MockProvider,
    MockRegistry,
    MockResolver,
    make_address,
    wire_request,
)


# =============================================================================
# Request Fixtures
# =============================================================================


@pytest.fixture
def sample_request() -> ValentineRequest:
    """A single open request."""
    return ValentineRequest(
        requester_name="alice",
        valentine_name="bob",
        custom_message="be mine",
        requester_address=make_address(1),
    )


@pytest.fixture
def ledger_requests() -> list[tuple]:
    """Three stored requests as returned by get_request_by_index."""
    return [
        wire_request(make_address(1), requester_name="alice"),
        wire_request(make_address(2), requester_name="carol", valentine_address=make_address(9)),
        wire_request(make_address(3), requester_name="dave", was_accepted=True),
    ]


# =============================================================================
# Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_provider() -> MockProvider:
    """Provider attached to network "1"."""
    return MockProvider(network_id="1")


@pytest.fixture
def mock_connection(mock_provider: MockProvider) -> MockConnection:
    """Host connection wrapping the mock provider."""
    return MockConnection(current_provider=mock_provider)


@pytest.fixture
def mock_registry(ledger_requests) -> MockRegistry:
    """Registry deployed on network "1"."""
    return MockRegistry(ledger_requests)


@pytest.fixture
def mock_resolver(mock_registry: MockRegistry) -> MockResolver:
    """Resolver knowing only network "1"."""
    return MockResolver({"1": mock_registry})


@pytest.fixture
def sync_config() -> SyncConfig:
    """Synchronizer config with a short call timeout."""
    return SyncConfig(call_timeout_seconds=2.0)
