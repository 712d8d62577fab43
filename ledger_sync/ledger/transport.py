"""
Transport Handle.

Wraps the connection object supplied by the host and exposes the few
capabilities the synchronizer depends on: network identity queries,
network change notifications and account lookup.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol

from ledger_sync.core import get_logger
from ledger_sync.core.exceptions import TransportError

from .contract import EventWatcher, stop_quietly
from .models import Address

logger = get_logger(__name__)

NetworkListener = Callable[[Optional[Any]], None]


class LedgerProvider(Protocol):
    """
    Protocol for a ledger node provider.

    Providers may additionally implement add_network_listener and
    remove_network_listener to push network identity changes.
    """

    async def get_network_id(self) -> Optional[Any]:
        """Get the current network identity, None when disconnected."""
        ...

    async def get_accounts(self) -> List[Address]:
        """Get the accounts managed by the provider."""
        ...


@dataclass
class LedgerConnection:
    """Connection object handed to the synchronizer by the host."""
    current_provider: Any


class TransportHandle:
    """
    Thin wrapper around a possibly absent connection object.

    Owns no business logic. Network change notifications from the
    underlying provider are forwarded to one subscriber, once per
    underlying notification, without de-duplication.

    Example:
        >>> handle = TransportHandle(host_connection)
        >>> if handle.exists():
        ...     network_id = await handle.get_network_identity()
    """

    def __init__(self, connection: Optional[Any]):
        """
        Initialize handle.

        Args:
            connection: Host supplied object exposing current_provider, or None
        """
        self._supplied = connection is not None
        self._connection = connection
        self._subscriber: Optional[NetworkListener] = None
        self._attached_provider: Optional[Any] = None
        self._watchers: List[EventWatcher] = []
        self._released = False

    @classmethod
    def from_provider(cls, provider: Any) -> "TransportHandle":
        """Create a handle owning nothing but the given provider."""
        return cls(LedgerConnection(current_provider=provider))

    # =========================================================================
    # Accessors
    # =========================================================================

    def exists(self) -> bool:
        """True iff a connection object was supplied at construction."""
        return self._supplied

    @property
    def is_released(self) -> bool:
        return self._released

    def get(self, attribute: str) -> Any:
        """
        Read an attribute of the wrapped connection.

        Raises:
            TransportError: If released, never supplied, or the attribute is missing
        """
        if self._connection is None:
            raise TransportError("No connection available")
        try:
            return getattr(self._connection, attribute)
        except AttributeError as e:
            raise TransportError(f"Connection has no attribute '{attribute}'") from e

    @property
    def provider(self) -> Any:
        """The wrapped connection's current provider."""
        return self.get("current_provider")

    # =========================================================================
    # Network Identity
    # =========================================================================

    async def get_network_identity(self) -> Optional[Any]:
        """
        Query the current network identity.

        Returns:
            Network token, or None if disconnected or the query failed
        """
        if self._connection is None:
            return None
        try:
            return await self.provider.get_network_id()
        except Exception as e:
            logger.debug(f"Network identity query failed: {e}")
            return None

    async def get_first_account_if_exists(self) -> Optional[Address]:
        """Get the provider's first account, or None."""
        if self._connection is None:
            return None
        try:
            accounts = await self.provider.get_accounts()
        except Exception as e:
            logger.debug(f"Account query failed: {e}")
            return None
        if not accounts:
            return None
        return accounts[0]

    def on_network_change(self, listener: NetworkListener) -> None:
        """
        Subscribe to network identity changes.

        Replaces any previous subscriber. Providers without push support
        never notify.
        """
        if self._released:
            raise TransportError("Transport handle has been released")

        self._subscriber = listener

        if self._attached_provider is not None:
            return

        provider = self.provider
        add_listener = getattr(provider, "add_network_listener", None)
        if add_listener is None:
            logger.debug("Provider does not push network changes")
            return

        try:
            add_listener(self._handle_network_change)
        except Exception as e:
            logger.warning(f"Failed to attach network listener: {e}")
            return
        self._attached_provider = provider

    def _handle_network_change(self, network_id: Optional[Any]) -> None:
        if self._released or self._subscriber is None:
            return
        try:
            self._subscriber(network_id)
        except Exception as e:
            logger.warning(f"Network change listener error: {e}")

    # =========================================================================
    # Watchers
    # =========================================================================

    def track_watcher(self, watcher: EventWatcher) -> None:
        """Register an event watcher to be stopped on release."""
        if self._released:
            stop_quietly(watcher)
            return
        self._watchers.append(watcher)

    def untrack_watcher(self, watcher: EventWatcher) -> None:
        """Forget a watcher without stopping it."""
        if watcher in self._watchers:
            self._watchers.remove(watcher)

    @property
    def watcher_count(self) -> int:
        return len(self._watchers)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def release(self) -> None:
        """
        Detach from the underlying connection.

        Stops tracked watchers and the network listener. Idempotent and
        safe to call on a handle that never attached.
        """
        if self._released:
            return
        self._released = True

        for watcher in self._watchers:
            stop_quietly(watcher)
        self._watchers.clear()

        if self._attached_provider is not None:
            remove_listener = getattr(self._attached_provider, "remove_network_listener", None)
            if remove_listener is not None:
                try:
                    remove_listener(self._handle_network_change)
                except Exception as e:
                    logger.warning(f"Failed to detach network listener: {e}")
            self._attached_provider = None

        self._subscriber = None
        self._connection = None
