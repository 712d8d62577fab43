"""
Registry contract interface.

The synchronizer talks to the ledger through a binding resolved for the
detected network. Bindings are supplied by the host; this module only
describes their shape and how resolution failures are classified.
"""

from typing import (
    Any,
    Awaitable,
    Callable,
    Mapping,
    Optional,
    Protocol,
    Sequence,
)

from ledger_sync.core import get_logger
from ledger_sync.core.exceptions import CallTimeoutError, ContractNotDeployedError

from .models import Address, ErrorKind

logger = get_logger(__name__)

# Text the contract loader uses when the registry is missing on a network
NOT_DEPLOYED_MARKER = "not been deployed to detected network"

EventCallback = Callable[[Mapping[str, Any]], None]
EventErrorCallback = Callable[[Exception], None]


class EventWatcher(Protocol):
    """Handle for an active event subscription."""

    def stop_watching(self) -> None:
        """Detach; no callback fires afterwards."""
        ...


class ValentineRegistry(Protocol):
    """Protocol for a resolved registry contract binding."""

    async def num_requesters(self) -> int:
        ...

    async def get_request_by_index(self, index: int) -> Sequence[Any]:
        ...

    async def get_request_by_requester_address(self, address: Address) -> Sequence[Any]:
        ...

    async def create_open_valentine_request(
        self,
        requester_name: str,
        valentine_name: str,
        custom_message: str,
        *,
        sender: Address,
        value: int,
    ) -> Any:
        ...

    async def create_targeted_valentine_request(
        self,
        requester_name: str,
        valentine_name: str,
        custom_message: str,
        valentine_address: Address,
        *,
        sender: Address,
        value: int,
    ) -> Any:
        ...

    async def accept_valentine_request(
        self,
        requester_address: Address,
        *,
        sender: Address,
    ) -> Any:
        ...

    def watch_event(
        self,
        event_name: str,
        on_event: EventCallback,
        on_error: EventErrorCallback,
    ) -> EventWatcher:
        """Start delivering events emitted from the latest block onward."""
        ...


# (network_id, provider) -> binding; raises when the contract is unavailable
ContractResolver = Callable[[Any, Any], Awaitable[ValentineRegistry]]


def classify_resolution_error(error: BaseException) -> ErrorKind:
    """Map a resolver failure to the status reported to consumers."""
    if isinstance(error, ContractNotDeployedError):
        return ErrorKind.NOT_DEPLOYED
    if isinstance(error, CallTimeoutError):
        return ErrorKind.UNHANDLED
    if NOT_DEPLOYED_MARKER in str(error):
        return ErrorKind.NOT_DEPLOYED
    return ErrorKind.UNHANDLED


def stop_quietly(watcher: Optional[EventWatcher]) -> None:
    """Stop a watcher, logging rather than raising on failure."""
    if watcher is None:
        return
    try:
        watcher.stop_watching()
    except Exception as e:
        logger.warning(f"Failed to stop event watcher: {e}")
