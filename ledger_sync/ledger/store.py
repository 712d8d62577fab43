"""
Request Store.

Ordered in-memory mirror of the valentine requests recorded on the
ledger, keyed by requester address.
"""

from typing import Callable, Dict, List, Optional

from ledger_sync.core import get_logger
from ledger_sync.core.exceptions import DuplicateKeyError, NotFoundError

from .models import Address, RequestMutation, ValentineRequest, normalize_address

logger = get_logger(__name__)


class RequestStore:
    """
    Keyed collection of valentine requests.

    Provides:
    - Insertion-ordered enumeration
    - Unique requester addresses
    - One change notification per mutating call

    Operations are synchronous and never suspend, so event callbacks can
    apply them without interleaving with each other.

    Example:
        >>> store = RequestStore(on_updated=lambda: print("changed"))
        >>> store.add(request)
        changed
        >>> store.has(request.requester_address)
        True
    """

    def __init__(self, on_updated: Optional[Callable[[], None]] = None):
        """
        Initialize store.

        Args:
            on_updated: Called once after every add, update or clear
        """
        self._requests: Dict[Address, ValentineRequest] = {}
        self._on_updated = on_updated

    @property
    def size(self) -> int:
        """Get number of stored requests."""
        return len(self._requests)

    def __len__(self) -> int:
        return len(self._requests)

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and self.has(address)

    def _notify(self) -> None:
        if self._on_updated is None:
            return
        try:
            self._on_updated()
        except Exception as e:
            logger.warning(f"Store update callback error: {e}")

    def add(self, request: ValentineRequest) -> None:
        """
        Append a request.

        Raises:
            DuplicateKeyError: If the requester address is already stored
        """
        key = normalize_address(request.requester_address)
        if key in self._requests:
            raise DuplicateKeyError(address=key)

        self._requests[key] = request
        self._notify()

    def update(self, address: Address, mutation: RequestMutation) -> ValentineRequest:
        """
        Apply a mutation to a stored request.

        Returns:
            The updated request

        Raises:
            NotFoundError: If the address is not stored
        """
        key = normalize_address(address)
        current = self._requests.get(key)
        if current is None:
            raise NotFoundError(address=key)

        updated = mutation.apply(current)
        self._requests[key] = updated
        self._notify()
        return updated

    def has(self, address: Address) -> bool:
        """Check whether a requester address is stored."""
        return normalize_address(address) in self._requests

    def get(self, address: Address) -> Optional[ValentineRequest]:
        """Get request by requester address."""
        return self._requests.get(normalize_address(address))

    def get_all(self) -> List[ValentineRequest]:
        """Get a snapshot of all requests in insertion order."""
        return list(self._requests.values())

    def clear_all(self) -> int:
        """
        Remove every request.

        Returns:
            Number of requests removed
        """
        count = len(self._requests)
        self._requests.clear()
        self._notify()
        return count
