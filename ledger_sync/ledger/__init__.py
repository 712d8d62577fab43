# Ledger module - registry mirror and its collaborators
from .contract import (
    ContractResolver,
    EventWatcher,
    ValentineRegistry,
    classify_resolution_error,
)
from .demo import DemoRequestGenerator
from .host import ReadySignal
from .models import (
    NULL_ADDRESS,
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
    to_wei,
)
from .rpc_provider import JsonRpcProvider, close_connection, create_connection
from .store import RequestStore
from .synchronizer import AcceptanceIssue, LedgerStateSynchronizer
from .transport import LedgerConnection, LedgerProvider, TransportHandle

__all__ = [
    # Synchronizer
    "LedgerStateSynchronizer",
    "AcceptanceIssue",
    # Store
    "RequestStore",
    # Transport
    "TransportHandle",
    "LedgerConnection",
    "LedgerProvider",
    "JsonRpcProvider",
    "create_connection",
    "close_connection",
    "ReadySignal",
    # Contract
    "ValentineRegistry",
    "EventWatcher",
    "ContractResolver",
    "classify_resolution_error",
    # Models
    "Address",
    "NULL_ADDRESS",
    "ValentineRequest",
    "MarkAccepted",
    "SyncStatus",
    "ErrorKind",
    "UpdateKind",
    "LedgerEvent",
    "decode_request",
    "decode_created_event",
    "is_valid_address",
    "to_wei",
    # Demo
    "DemoRequestGenerator",
]
