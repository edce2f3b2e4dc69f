"""
betledger.runtime — the platform the bet ledger runs on.

Host-facing primitives (storage, treasury, events, hashing, call
environments) plus the in-memory `Chain` that ties them together with
serialized, atomic execution.

    from betledger.runtime import BlockEnv, TxEnv, CallEnv
    from betledger.runtime import Chain    # lazy, pulls in the contracts

Nothing here reads wall-clock time or system randomness.
"""

from __future__ import annotations

import importlib
from typing import Any

from . import events_api as events
from . import hash_api as hashing  # avoid shadowing builtin `hash`
from . import storage_api as storage
from . import treasury_api as treasury
from .context import BlockEnv, CallEnv, ContextError, TxEnv
from .events_api import EventLog
from .storage_api import MemoryBackend
from .treasury_api import LedgerError, Treasury

_LAZY = {"Chain", "Receipt", "derive_address"}


def __getattr__(name: str) -> Any:
    # chain.py imports the contracts, which import this package.
    if name in _LAZY:
        return getattr(importlib.import_module(".chain", __name__), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "BlockEnv",
    "TxEnv",
    "CallEnv",
    "ContextError",
    "EventLog",
    "MemoryBackend",
    "Treasury",
    "LedgerError",
    "Chain",
    "Receipt",
    "derive_address",
    "events",
    "hashing",
    "storage",
    "treasury",
]
