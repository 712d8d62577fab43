"""
Valentine ledger sync.

Keeps a local view of valentine requests recorded on a ledger in step
with the ledger's state across network switches and live events.
"""

from .ledger import (
    ErrorKind,
    LedgerStateSynchronizer,
    ReadySignal,
    SyncStatus,
    ValentineRequest,
)

__version__ = "0.1.0"

__all__ = [
    "LedgerStateSynchronizer",
    "ReadySignal",
    "ValentineRequest",
    "SyncStatus",
    "ErrorKind",
]
