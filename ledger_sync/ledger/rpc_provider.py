"""
JSON-RPC provider for Ethereum-style ledger nodes.

Speaks JSON-RPC 2.0 over HTTP with aiohttp and polls the node's
network identity so subscribers learn about network switches.
"""

import asyncio
import itertools
from typing import Any, Callable, List, Optional

import aiohttp

from ledger_sync.config.models import ProviderConfig
from ledger_sync.core import get_logger
from ledger_sync.core.exceptions import ProviderError

from .models import Address
from .transport import LedgerConnection

logger = get_logger(__name__)

NetworkCallback = Callable[[Optional[str]], None]

# Marks "not polled yet"; the first poll always notifies
_UNPOLLED = object()


class JsonRpcProvider:
    """
    HTTP JSON-RPC provider.

    Supports:
    - Single request/response calls
    - Network identity via net_version
    - Account listing via eth_accounts
    - Polling based network change notifications

    Example:
        >>> async with JsonRpcProvider("http://localhost:8545") as provider:
        ...     network_id = await provider.get_network_id()
    """

    def __init__(
        self,
        url: str,
        poll_interval: float = 1.0,
        timeout: float = 10.0,
    ):
        """
        Initialize JsonRpcProvider.

        Args:
            url: Node endpoint
            poll_interval: Seconds between network identity polls
            timeout: HTTP timeout for a single request
        """
        self._url = url
        self._poll_interval = poll_interval
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None
        self._ids = itertools.count(1)

        self._listeners: List[NetworkCallback] = []
        self._poll_task: Optional[asyncio.Task] = None
        self._last_network_id: Any = _UNPOLLED

    @classmethod
    def from_config(cls, config: ProviderConfig) -> "JsonRpcProvider":
        return cls(
            config.rpc_url,
            poll_interval=config.poll_interval_seconds,
            timeout=config.request_timeout_seconds,
        )

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def connect(self) -> None:
        """Create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            logger.debug(f"Connected to {self._url}")

    async def close(self) -> None:
        """Stop polling and close the HTTP session."""
        await self._stop_polling()
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
            logger.debug("Session closed")

    async def __aenter__(self) -> "JsonRpcProvider":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # =========================================================================
    # Requests
    # =========================================================================

    async def request(self, method: str, params: Optional[list] = None) -> Any:
        """
        Send a JSON-RPC request.

        Returns:
            The response's result member

        Raises:
            ProviderError: On HTTP failure, malformed response or RPC error
        """
        if self._session is None or self._session.closed:
            await self.connect()

        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }

        try:
            async with self._session.post(self._url, json=payload) as resp:
                if resp.status >= 400:
                    text = await resp.text()
                    raise ProviderError(f"HTTP {resp.status}: {text}", code=str(resp.status))
                data = await resp.json(content_type=None)
        except aiohttp.ClientError as e:
            raise ProviderError(f"Request {method} failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise ProviderError(f"Request {method} timed out") from e
        except ValueError as e:
            raise ProviderError(f"Invalid JSON from {method}: {e}") from e

        if not isinstance(data, dict):
            raise ProviderError(f"Malformed response to {method}")

        error = data.get("error")
        if error:
            message = error.get("message", "unknown error") if isinstance(error, dict) else str(error)
            code = error.get("code") if isinstance(error, dict) else None
            raise ProviderError(
                message,
                code=str(code) if code is not None else None,
                details={"method": method},
            )

        if "result" not in data:
            raise ProviderError(f"Response to {method} has no result")
        return data["result"]

    async def get_network_id(self) -> Optional[str]:
        """Get the network identity, None when the node is unreachable."""
        try:
            result = await self.request("net_version")
        except ProviderError as e:
            logger.debug(f"net_version failed: {e}")
            return None
        return str(result) if result is not None else None

    async def get_accounts(self) -> List[Address]:
        """Get accounts exposed by the node."""
        result = await self.request("eth_accounts")
        return [str(account).lower() for account in result or []]

    # =========================================================================
    # Network Change Notifications
    # =========================================================================

    def add_network_listener(self, callback: NetworkCallback) -> None:
        """Register a listener and start polling if needed."""
        self._listeners.append(callback)
        if not self.is_polling:
            self._poll_task = asyncio.get_running_loop().create_task(self._poll_loop())

    def remove_network_listener(self, callback: NetworkCallback) -> None:
        """Unregister a listener; polling stops with the last one."""
        if callback in self._listeners:
            self._listeners.remove(callback)
        if not self._listeners and self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

    async def _stop_polling(self) -> None:
        self._listeners.clear()
        if self._poll_task is None:
            return
        self._poll_task.cancel()
        try:
            await self._poll_task
        except asyncio.CancelledError:
            pass
        self._poll_task = None

    async def _poll_loop(self) -> None:
        """Push the network id to listeners whenever it changes."""
        while self._listeners:
            try:
                await self.poll_once()
                await asyncio.sleep(self._poll_interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Network poll error: {e}")
                await asyncio.sleep(self._poll_interval)

    async def poll_once(self) -> None:
        """
        Query the network id and notify listeners if it changed.

        The first poll always notifies, even when the node is unreachable.
        """
        network_id = await self.get_network_id()
        if network_id == self._last_network_id:
            return

        previous = self._last_network_id
        if previous is _UNPOLLED:
            logger.debug(f"Polled network {network_id}")
        else:
            logger.info(f"Network changed: {previous} -> {network_id}")
        self._last_network_id = network_id
        for callback in list(self._listeners):
            try:
                callback(network_id)
            except Exception as e:
                logger.warning(f"Network listener error: {e}")


def create_connection(config: ProviderConfig) -> Optional[LedgerConnection]:
    """Build the host connection object, None when no endpoint is configured."""
    if not config.has_endpoint:
        return None
    return LedgerConnection(current_provider=JsonRpcProvider.from_config(config))


async def close_connection(connection: Optional[Any]) -> None:
    """Close the provider of a connection, if it has anything to close."""
    provider = getattr(connection, "current_provider", None)
    close = getattr(provider, "close", None)
    if close is None:
        return
    await close()
    logger.debug("Ledger connection closed")
