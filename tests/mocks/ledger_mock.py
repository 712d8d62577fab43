"""
Mock ledger collaborators for testing.

Simulates a node provider, a registry contract binding with controllable
event delivery, and a per-network contract resolver.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from ledger_sync.ledger.models import NULL_ADDRESS

PLACEHOLDER_FIELDS = ("", "", "", False, NULL_ADDRESS, NULL_ADDRESS)


def make_address(n: int) -> str:
    """Deterministic test address, never the null address for n > 0."""
    return "0x" + format(n, "040x")


def wire_request(
    requester_address: str,
    requester_name: str = "alice",
    valentine_name: str = "bob",
    custom_message: str = "be mine",
    was_accepted: bool = False,
    valentine_address: str = NULL_ADDRESS,
) -> Tuple[Any, ...]:
    """Request in the contract's positional return layout."""
    return (
        requester_name,
        valentine_name,
        custom_message,
        was_accepted,
        valentine_address,
        requester_address,
    )


def created_args(
    requester_address: str,
    requester_name: str = "alice",
    valentine_name: str = "bob",
    custom_message: str = "be mine",
    valentine_address: str = NULL_ADDRESS,
) -> Dict[str, Any]:
    """LogValentineRequestCreated arguments."""
    return {
        "requesterName": requester_name,
        "valentineName": valentine_name,
        "customMessage": custom_message,
        "valentineAddress": valentine_address,
        "requesterAddress": requester_address,
    }


class MockProvider:
    """
    Mock ledger node provider.

    Example:
        >>> provider = MockProvider(network_id="1")
        >>> provider.push_network("3")  # notifies listeners synchronously
    """

    def __init__(
        self,
        network_id: Optional[str] = "1",
        accounts: Optional[List[str]] = None,
        supports_push: bool = True,
    ):
        self.network_id = network_id
        self.accounts = accounts if accounts is not None else [make_address(0xA11CE)]
        self.fail_network_query = False
        self.network_queries = 0
        self.closed = False
        self._listeners: List[Callable[[Optional[str]], None]] = []
        if not supports_push:
            self.add_network_listener = None  # type: ignore[assignment]
            self.remove_network_listener = None  # type: ignore[assignment]

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def get_network_id(self) -> Optional[str]:
        self.network_queries += 1
        if self.fail_network_query:
            raise RuntimeError("node unreachable")
        return self.network_id

    async def get_accounts(self) -> List[str]:
        return list(self.accounts)

    def add_network_listener(self, callback: Callable[[Optional[str]], None]) -> None:
        self._listeners.append(callback)

    def remove_network_listener(self, callback: Callable[[Optional[str]], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    async def close(self) -> None:
        self.closed = True
        self._listeners.clear()

    def push_network(self, network_id: Optional[str], switch: bool = True) -> None:
        """Simulate the node switching networks and notifying listeners."""
        if switch:
            self.network_id = network_id
        for callback in list(self._listeners):
            callback(network_id)


@dataclass
class MockConnection:
    """Host connection object exposing only current_provider."""
    current_provider: Any


class MockWatcher:
    """Event subscription handle."""

    def __init__(self, event_name: str, on_event, on_error):
        self.event_name = event_name
        self.on_event = on_event
        self.on_error = on_error
        self.stopped = False

    def stop_watching(self) -> None:
        self.stopped = True

    def deliver(self, args: Dict[str, Any]) -> None:
        if not self.stopped:
            self.on_event(args)

    def fail(self, error: Exception) -> None:
        if not self.stopped:
            self.on_error(error)


class MockRegistry:
    """
    Mock registry contract binding.

    Records every call in call_log so tests can assert ordering, and can
    hold num_requesters open until load_gate is set.
    """

    def __init__(self, requests: Optional[List[Tuple[Any, ...]]] = None):
        self.requests: List[Tuple[Any, ...]] = list(requests or [])
        self.call_log: List[str] = []
        self.watchers: List[MockWatcher] = []
        self.transactions: List[Dict[str, Any]] = []
        self.load_gate: Optional[asyncio.Event] = None
        self.load_started: Optional[asyncio.Event] = None

    # Reads

    async def num_requesters(self) -> int:
        self.call_log.append("num_requesters")
        if self.load_started is not None:
            self.load_started.set()
        if self.load_gate is not None:
            await self.load_gate.wait()
        return len(self.requests)

    async def get_request_by_index(self, index: int) -> Tuple[Any, ...]:
        self.call_log.append(f"get_request_by_index:{index}")
        return self.requests[index]

    async def get_request_by_requester_address(self, address: str) -> Tuple[Any, ...]:
        self.call_log.append(f"get_request_by_requester_address:{address}")
        for fields in self.requests:
            if fields[5].lower() == address.lower():
                return fields
        return PLACEHOLDER_FIELDS

    # Transactions

    async def create_open_valentine_request(
        self, requester_name, valentine_name, custom_message, *, sender, value,
    ) -> str:
        self.transactions.append({
            "method": "create_open_valentine_request",
            "args": (requester_name, valentine_name, custom_message),
            "sender": sender,
            "value": value,
        })
        return "0xtx-open"

    async def create_targeted_valentine_request(
        self, requester_name, valentine_name, custom_message, valentine_address, *, sender, value,
    ) -> str:
        self.transactions.append({
            "method": "create_targeted_valentine_request",
            "args": (requester_name, valentine_name, custom_message, valentine_address),
            "sender": sender,
            "value": value,
        })
        return "0xtx-targeted"

    async def accept_valentine_request(self, requester_address, *, sender) -> str:
        self.transactions.append({
            "method": "accept_valentine_request",
            "args": (requester_address,),
            "sender": sender,
        })
        return "0xtx-accept"

    # Events

    def watch_event(self, event_name: str, on_event, on_error) -> MockWatcher:
        self.call_log.append(f"watch:{event_name}")
        watcher = MockWatcher(event_name, on_event, on_error)
        self.watchers.append(watcher)
        return watcher

    def active_watchers(self, event_name: Optional[str] = None) -> List[MockWatcher]:
        return [
            w for w in self.watchers
            if not w.stopped and (event_name is None or w.event_name == event_name)
        ]

    def emit_created(self, args: Dict[str, Any]) -> None:
        for watcher in self.active_watchers("LogValentineRequestCreated"):
            watcher.deliver(args)

    def emit_accepted(self, requester_address: str) -> None:
        for watcher in self.active_watchers("LogRequestAccepted"):
            watcher.deliver({"requesterAddress": requester_address})

    def emit_error(self, event_name: str, error: Exception) -> None:
        for watcher in self.active_watchers(event_name):
            watcher.fail(error)


class MockResolver:
    """
    Resolves a registry per network id.

    Unknown networks fail with the contract loader's "not deployed" message;
    entries in errors raise the given exception instead.
    """

    def __init__(self, registries: Optional[Dict[str, MockRegistry]] = None):
        self.registries: Dict[str, MockRegistry] = dict(registries or {})
        self.errors: Dict[str, BaseException] = {}
        self.calls: List[Tuple[Any, Any]] = []
        self.delay: Optional[float] = None

    async def __call__(self, network_id: Any, provider: Any) -> MockRegistry:
        self.calls.append((network_id, provider))
        if self.delay is not None:
            await asyncio.sleep(self.delay)
        if network_id in self.errors:
            raise self.errors[network_id]
        if network_id not in self.registries:
            raise RuntimeError(
                "ValentineRegistry has not been deployed to detected network "
                f"(network/artifact mismatch) {network_id}"
            )
        return self.registries[network_id]
