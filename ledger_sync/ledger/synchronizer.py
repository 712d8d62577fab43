"""
Ledger State Synchronizer.

Keeps a local mirror of the valentine registry in step with the ledger:
- Waits for the host to be ready, then acquires a transport
- Detects the network and resolves the registry binding for it
- Loads every existing request, then watches creation/acceptance events
- Re-runs detection and loading whenever the network changes

Consumers see a single status (loaded / error / ready) and one coarse
update notification. All ledger I/O runs on the event loop; nothing here
blocks the caller or spawns threads.
"""

import asyncio
from datetime import datetime, timezone
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional

from ledger_sync.config.models import SyncConfig
from ledger_sync.core import get_logger, with_timeout
from ledger_sync.core.exceptions import (
    CallTimeoutError,
    NotReadyError,
    TransportError,
    ValidationError,
)

from .contract import (
    ContractResolver,
    EventWatcher,
    ValentineRegistry,
    classify_resolution_error,
    stop_quietly,
)
from .demo import DemoRequestGenerator
from .host import ReadySignal
from .models import (
    NULL_ADDRESS,
    REQUEST_VALUE_ETHER,
    Address,
    ErrorKind,
    LedgerEvent,
    MarkAccepted,
    SyncStatus,
    UpdateKind,
    ValentineRequest,
    decode_created_event,
    decode_request,
    is_valid_address,
    normalize_address,
    requester_address_of,
    to_wei,
)
from .store import RequestStore
from .transport import TransportHandle

logger = get_logger(__name__)

UpdateListener = Callable[[UpdateKind], None]

# Marks "no network change waiting to be processed"
_NO_PENDING = object()


class AcceptanceIssue(str, Enum):
    """Reasons a request cannot be accepted by the current account."""
    NO_ACCOUNT = "no_account"
    MISSING_ADDRESS = "missing_address"
    INVALID_ADDRESS = "invalid_address"
    NO_SUCH_REQUEST = "no_such_request"
    ALREADY_ACCEPTED = "already_accepted"
    NOT_TARGETED_AT_USER = "not_targeted_at_user"


class LedgerStateSynchronizer:
    """
    Mirrors registry requests from the ledger.

    Example:
        >>> synchronizer = LedgerStateSynchronizer(connection, resolve_registry)
        >>> synchronizer.add_listener(lambda kind: render())
        >>> synchronizer.start()
        >>> await synchronizer.wait_loaded()
        >>> if not synchronizer.has_error():
        ...     requests = synchronizer.get_all()
    """

    def __init__(
        self,
        connection: Optional[Any],
        resolver: ContractResolver,
        config: Optional[SyncConfig] = None,
        ready: Optional[ReadySignal] = None,
        demo_generator: Optional[DemoRequestGenerator] = None,
    ):
        """
        Initialize synchronizer.

        Args:
            connection: Host connection object exposing current_provider, or None
            resolver: Resolves the registry binding for a network
            config: Synchronizer configuration
            ready: Host readiness signal, already fired when omitted
            demo_generator: Source of synthetic requests
        """
        self.config = config or SyncConfig()
        self._connection = connection
        self._resolver = resolver
        self._ready = ready or ReadySignal.already_fired()
        self._demo = demo_generator or DemoRequestGenerator(
            name_length=self.config.demo_name_length,
        )

        # Status
        self._status = SyncStatus.INITIALIZING
        self._error: Optional[ErrorKind] = None
        self._is_loaded = False
        self._loaded_event: Optional[asyncio.Event] = None  # Lazy init inside the event loop
        self._last_loaded_at: Optional[datetime] = None

        # Ledger access
        self._transport: Optional[TransportHandle] = None
        self._network_id: Optional[Any] = None
        self._registry: Optional[ValentineRegistry] = None

        # Local mirror
        self._store = RequestStore(on_updated=self._on_requests_updated)
        self._listeners: List[UpdateListener] = []

        # Event subscriptions; callbacks from an older generation are ignored
        self._created_watcher: Optional[EventWatcher] = None
        self._accepted_watcher: Optional[EventWatcher] = None
        self._generation = 0

        # Serialization of boot and reloads
        self._boot_lock = asyncio.Lock()
        self._boot_task: Optional[asyncio.Task] = None
        self._reload_task: Optional[asyncio.Task] = None
        self._pending_network: Any = _NO_PENDING
        self._reload_count = 0
        self._released = False

    # =========================================================================
    # Status Accessors
    # =========================================================================

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def network_id(self) -> Optional[Any]:
        """Last known network identity."""
        return self._network_id

    @property
    def transport(self) -> Optional[TransportHandle]:
        return self._transport

    def has_error(self) -> bool:
        return self._error is not None

    def get_error(self) -> Optional[ErrorKind]:
        return self._error

    def is_loaded(self) -> bool:
        """True once the first boot attempt finished, successfully or not."""
        return self._is_loaded

    def get_all(self) -> List[ValentineRequest]:
        """Snapshot of mirrored requests in ledger order."""
        return self._store.get_all()

    # =========================================================================
    # Listeners
    # =========================================================================

    def add_listener(self, listener: UpdateListener) -> None:
        """Register for update notifications."""
        self._listeners.append(listener)

    def remove_listener(self, listener: UpdateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, kind: UpdateKind) -> None:
        for listener in list(self._listeners):
            try:
                listener(kind)
            except Exception as e:
                logger.warning(f"Update listener error: {e}")

    def _on_requests_updated(self) -> None:
        self._emit(UpdateKind.REQUESTS)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> asyncio.Task:
        """Schedule the boot sequence and return without waiting for it."""
        if self._released:
            raise TransportError("Synchronizer has been released")
        if self._boot_task is None:
            self._boot_task = asyncio.get_running_loop().create_task(self._boot())
        return self._boot_task

    async def wait_loaded(self) -> None:
        """
        Suspend until the first boot attempt has finished.

        Also returns once the synchronizer is released, in which case
        is_loaded() may still be False.
        """
        if self._is_loaded or self._released:
            return
        await self._get_loaded_event().wait()

    def release(self) -> None:
        """
        Stop watching the ledger.

        Cancels any in-flight boot or reload, stops both event watchers and
        detaches from the transport. No callback fires afterwards and
        pending wait_loaded() calls return.

        The provider stays open: it belongs to whoever built the
        connection (see rpc_provider.close_connection).
        """
        if self._released:
            return
        self._released = True

        for task in (self._boot_task, self._reload_task):
            if task is not None and not task.done():
                task.cancel()

        self._stop_watching()
        if self._transport is not None:
            self._transport.release()
        self._listeners.clear()

        if self._loaded_event is not None:
            self._loaded_event.set()

        logger.info("Ledger state synchronizer released")

    async def stop(self) -> None:
        """Release and wait for cancelled tasks to unwind."""
        self.release()
        for task in (self._boot_task, self._reload_task):
            if task is None:
                continue
            try:
                await task
            except asyncio.CancelledError:
                pass

    def _get_loaded_event(self) -> asyncio.Event:
        if self._loaded_event is None:
            self._loaded_event = asyncio.Event()
            if self._is_loaded:
                self._loaded_event.set()
        return self._loaded_event

    # =========================================================================
    # Boot Sequence
    # =========================================================================

    async def _boot(self) -> None:
        await self._ready.wait()

        async with self._boot_lock:
            if self._released:
                return

            logger.info("Booting ledger state synchronizer")

            host_handle = TransportHandle(self._connection)
            if not host_handle.exists():
                logger.warning("No ledger connection supplied")
                self._finish_attempt(ErrorKind.NO_TRANSPORT)
                return

            # Keep only the provider so later changes to the host object cannot reach us
            try:
                provider = host_handle.provider
            except TransportError as e:
                logger.warning(f"Ledger connection unusable: {e}")
                self._finish_attempt(ErrorKind.NO_TRANSPORT)
                return
            finally:
                host_handle.release()
                self._connection = None

            self._transport = TransportHandle.from_provider(provider)
            self._transport.on_network_change(self._on_network_changed)

            await self._instantiate_registry()

    async def _instantiate_registry(self) -> None:
        """Detect the network, resolve the binding, load and watch."""
        self._stop_watching()
        self._registry = None
        timeout = self.config.call_timeout_seconds

        try:
            self._network_id = await with_timeout(
                self._transport.get_network_identity(),
                timeout,
                "get_network_identity",
            )
        except CallTimeoutError as e:
            logger.error(f"Network detection failed: {e}")
            self._finish_attempt(ErrorKind.UNHANDLED)
            return

        if self._network_id is None:
            logger.warning("Disconnected from ledger node")
            self._finish_attempt(ErrorKind.DISCONNECTED)
            return

        logger.info(f"Detected network {self._network_id}")

        try:
            registry = await with_timeout(
                self._resolver(self._network_id, self._transport.provider),
                timeout,
                "resolve_registry",
            )
            await self._load_existing_requests(registry)
        except Exception as e:
            kind = classify_resolution_error(e)
            if kind is ErrorKind.NOT_DEPLOYED:
                logger.warning(f"Registry not deployed on network {self._network_id}")
            else:
                logger.error(f"Unhandled error encountered: {e!r}", exc_info=e)
            self._finish_attempt(kind)
            return

        self._registry = registry
        self._start_watching()
        self._seed_demo_requests()
        self._finish_attempt(None)

    async def _load_existing_requests(self, registry: ValentineRegistry) -> None:
        """Replace the mirror with every non-placeholder request on the ledger."""
        timeout = self.config.call_timeout_seconds
        self._store.clear_all()

        count = int(await with_timeout(registry.num_requesters(), timeout, "num_requesters"))

        skipped = 0
        for index in range(count):
            fields = await with_timeout(
                registry.get_request_by_index(index),
                timeout,
                "get_request_by_index",
            )
            request = decode_request(fields)
            if request.is_placeholder():
                skipped += 1
                continue
            self._store.add(request)

        logger.info(
            f"Loaded {self._store.size} requests from network {self._network_id}"
            + (f" ({skipped} placeholders skipped)" if skipped else "")
        )

    def _seed_demo_requests(self) -> None:
        count = self.config.demo_request_count
        if count <= 0:
            return
        for request in self._demo.generate(count, taken=self._store):
            self._store.add(request)
        logger.debug(f"Seeded {count} demo requests")

    def _finish_attempt(self, error: Optional[ErrorKind]) -> None:
        self._error = error
        self._status = SyncStatus.ERROR if error else SyncStatus.READY
        self._is_loaded = True
        self._last_loaded_at = datetime.now(timezone.utc)
        self._get_loaded_event().set()

        if error:
            logger.warning(f"Boot attempt stopped: {error.value}")
        else:
            logger.info(f"Ledger state synchronizer ready ({self._store.size} requests)")

        self._emit(UpdateKind.STATUS)

    # =========================================================================
    # Network Changes
    # =========================================================================

    def _on_network_changed(self, network_id: Optional[Any]) -> None:
        """Queue a network change; bursts collapse to the latest identity."""
        if self._released:
            return

        self._pending_network = network_id
        if self._reload_task is None or self._reload_task.done():
            self._reload_task = asyncio.get_running_loop().create_task(
                self._process_network_changes()
            )

    async def _process_network_changes(self) -> None:
        async with self._boot_lock:
            while self._pending_network is not _NO_PENDING and not self._released:
                network_id = self._pending_network
                self._pending_network = _NO_PENDING
                await self._apply_network_change(network_id)

    async def _apply_network_change(self, network_id: Optional[Any]) -> None:
        if network_id is None:
            logger.warning("Lost connection to ledger node")
            self._stop_watching()
            self._registry = None
            self._network_id = None
            self._finish_attempt(ErrorKind.DISCONNECTED)
            return

        if network_id == self._network_id:
            logger.debug(f"Network {network_id} unchanged")
            return

        logger.info(f"Network changed from {self._network_id} to {network_id}, reloading")
        self._reload_count += 1
        self._error = None
        self._status = SyncStatus.INITIALIZING
        self._emit(UpdateKind.STATUS)

        await self._instantiate_registry()

    # =========================================================================
    # Event Subscriptions
    # =========================================================================

    def _start_watching(self) -> None:
        self._stop_watching()
        generation = self._generation

        self._created_watcher = self._registry.watch_event(
            LedgerEvent.REQUEST_CREATED.value,
            partial(self._on_request_created, generation),
            partial(self._on_event_error, LedgerEvent.REQUEST_CREATED),
        )
        self._transport.track_watcher(self._created_watcher)

        self._accepted_watcher = self._registry.watch_event(
            LedgerEvent.REQUEST_ACCEPTED.value,
            partial(self._on_request_accepted, generation),
            partial(self._on_event_error, LedgerEvent.REQUEST_ACCEPTED),
        )
        self._transport.track_watcher(self._accepted_watcher)

        logger.debug(f"Watching registry events (generation {generation})")

    def _stop_watching(self) -> None:
        self._generation += 1
        for watcher in (self._created_watcher, self._accepted_watcher):
            if watcher is None:
                continue
            stop_quietly(watcher)
            if self._transport is not None:
                self._transport.untrack_watcher(watcher)
        self._created_watcher = None
        self._accepted_watcher = None

    def _is_current(self, generation: int) -> bool:
        return not self._released and generation == self._generation

    def _on_request_created(self, generation: int, args: Mapping[str, Any]) -> None:
        if not self._is_current(generation):
            return
        try:
            request = decode_created_event(args)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed {LedgerEvent.REQUEST_CREATED.value}: {e}")
            return

        # Bulk load may already hold this request
        if request.is_placeholder() or self._store.has(request.requester_address):
            return
        self._store.add(request)

    def _on_request_accepted(self, generation: int, args: Mapping[str, Any]) -> None:
        if not self._is_current(generation):
            return
        try:
            address = requester_address_of(args)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed {LedgerEvent.REQUEST_ACCEPTED.value}: {e}")
            return

        request = self._store.get(address)
        if request is None or request.was_accepted:
            return
        self._store.update(address, MarkAccepted())

    def _on_event_error(self, event: LedgerEvent, error: Exception) -> None:
        logger.warning(f"An error occurred while listening to {event.value} events: {error}")

    # =========================================================================
    # Ledger Operations
    # =========================================================================

    def _require_registry(self) -> ValentineRegistry:
        if self._registry is None:
            raise NotReadyError(details={"status": self._status.value})
        return self._registry

    def is_valid_address(self, address: Any) -> bool:
        return is_valid_address(address)

    async def get_first_account_if_exists(self) -> Optional[Address]:
        if self._transport is None:
            return None
        return await self._transport.get_first_account_if_exists()

    async def _require_account(self) -> Address:
        account = await self.get_first_account_if_exists()
        if account is None:
            raise ValidationError("An account must be available to send a transaction")
        return account

    async def is_request_targeted_at_user(self, valentine_address: Address) -> bool:
        """Open requests and requests addressed to the current account."""
        target = normalize_address(valentine_address)
        if target == NULL_ADDRESS:
            return True
        account = await self.get_first_account_if_exists()
        return account is not None and normalize_address(account) == target

    async def create_valentine_request(
        self,
        requester_name: str,
        valentine_name: str,
        custom_message: str,
        valentine_address: str = "",
    ) -> Any:
        """
        Submit a new request from the current account.

        An empty valentine address creates an open request.

        Raises:
            NotReadyError: If no registry binding is held
            ValidationError: On bad arguments or when no account is available
        """
        for name, value in (
            ("requester_name", requester_name),
            ("valentine_name", valentine_name),
            ("custom_message", custom_message),
        ):
            if not isinstance(value, str):
                raise ValidationError(f"{name} must be a string")
        if valentine_address and not is_valid_address(valentine_address):
            raise ValidationError(
                "valentine_address must either be a valid address or an empty string"
            )

        registry = self._require_registry()
        sender = await self._require_account()
        value = to_wei(REQUEST_VALUE_ETHER)

        if not valentine_address:
            return await registry.create_open_valentine_request(
                requester_name, valentine_name, custom_message,
                sender=sender, value=value,
            )
        return await registry.create_targeted_valentine_request(
            requester_name, valentine_name, custom_message,
            normalize_address(valentine_address),
            sender=sender, value=value,
        )

    async def accept_valentine_request(self, requester_address: Address) -> Any:
        """
        Accept a request from the current account.

        Raises:
            NotReadyError: If no registry binding is held
            ValidationError: On a bad address or when no account is available
        """
        if not is_valid_address(requester_address):
            raise ValidationError("requester_address must be a valid address")

        registry = self._require_registry()
        sender = await self._require_account()
        return await registry.accept_valentine_request(
            normalize_address(requester_address),
            sender=sender,
        )

    async def get_request_if_exists(self, address: Address) -> Optional[ValentineRequest]:
        """Fetch a request straight from the ledger, None for unknown requesters."""
        if not is_valid_address(address):
            raise ValidationError("address must be a valid address")

        registry = self._require_registry()
        fields = await registry.get_request_by_requester_address(normalize_address(address))
        request = decode_request(fields)
        if request.is_placeholder():
            return None
        return request

    async def did_requester_already_request(self) -> bool:
        """Check whether the current account already created a request."""
        account = await self._require_account()
        return await self.get_request_if_exists(account) is not None

    async def check_acceptance(self, requester_address: str) -> List[AcceptanceIssue]:
        """
        Check whether the current account may accept a request.

        Returns:
            Issues found, empty when the request can be accepted
        """
        issues = []
        account = await self.get_first_account_if_exists()
        if account is None:
            issues.append(AcceptanceIssue.NO_ACCOUNT)

        if not requester_address:
            issues.append(AcceptanceIssue.MISSING_ADDRESS)
        elif not is_valid_address(requester_address):
            issues.append(AcceptanceIssue.INVALID_ADDRESS)
        elif account is not None:
            request = await self.get_request_if_exists(requester_address)
            if request is None:
                issues.append(AcceptanceIssue.NO_SUCH_REQUEST)
            elif request.was_accepted:
                issues.append(AcceptanceIssue.ALREADY_ACCEPTED)
            elif not await self.is_request_targeted_at_user(request.valentine_address):
                issues.append(AcceptanceIssue.NOT_TARGETED_AT_USER)

        return issues

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_statistics(self) -> Dict[str, Any]:
        """Get synchronizer statistics."""
        return {
            "status": self._status.value,
            "error": self._error.value if self._error else None,
            "is_loaded": self._is_loaded,
            "network_id": self._network_id,
            "request_count": self._store.size,
            "accepted_count": sum(1 for r in self._store.get_all() if r.was_accepted),
            "reload_count": self._reload_count,
            "watching": self._created_watcher is not None and self._accepted_watcher is not None,
            "last_loaded_at": self._last_loaded_at.isoformat() if self._last_loaded_at else None,
        }
