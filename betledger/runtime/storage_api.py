"""
betledger.runtime.storage_api — deterministic key/value storage for the ledger.

Design goals
------------
- Deterministic: pure functions over (key, value) with no wall-clock or I/O.
- Simple default: in-process memory backend for local runs & tests.
- Pluggable: a tiny backend interface so a host can swap in a real state DB.
- Atomic: the memory backend journals writes so the platform can roll a
  rejected call back to its exact prior state.

Backend API
-----------
- get(key) -> Optional[bytes]
- set(key, value) -> None
- delete(key) -> None
- exists(key) -> bool
- begin() / commit() / rollback()
"""

from __future__ import annotations

import threading
from typing import Dict, Optional, Protocol, runtime_checkable

MAX_STORAGE_KEY_BYTES = 64
MAX_STORAGE_VALUE_BYTES = 64 * 1024


class StorageError(Exception):
    """Malformed storage access (bad key/value type or size, journal misuse)."""


@runtime_checkable
class StorageBackend(Protocol):
    """Minimal backend interface for ledger storage."""

    def get(self, key: bytes) -> Optional[bytes]: ...
    def set(self, key: bytes, value: bytes) -> None: ...
    def delete(self, key: bytes) -> None: ...
    def exists(self, key: bytes) -> bool: ...
    def begin(self) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


# --------------------------- Validation helpers --------------------------- #


def _check_key(key: bytes) -> bytes:
    if not isinstance(key, (bytes, bytearray)):
        raise StorageError("storage key must be bytes")
    if len(key) == 0:
        raise StorageError("storage key must be non-empty")
    if len(key) > MAX_STORAGE_KEY_BYTES:
        raise StorageError(f"storage key too long (>{MAX_STORAGE_KEY_BYTES} bytes)")
    return bytes(key)


def _check_value(value: bytes) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise StorageError("storage value must be bytes")
    if len(value) > MAX_STORAGE_VALUE_BYTES:
        raise StorageError(f"storage value too large (>{MAX_STORAGE_VALUE_BYTES} bytes)")
    return bytes(value)


# ------------------------------ Memory backend ----------------------------- #


class MemoryBackend:
    """Thread-safe in-memory backend with a single-level write journal."""

    def __init__(self) -> None:
        self._store: Dict[bytes, bytes] = {}
        # key -> value before the first write in the open journal (None = absent)
        self._journal: Optional[Dict[bytes, Optional[bytes]]] = None
        self._lock = threading.RLock()

    def _record(self, key: bytes) -> None:
        if self._journal is not None and key not in self._journal:
            self._journal[key] = self._store.get(key)

    def get(self, key: bytes) -> Optional[bytes]:
        k = _check_key(key)
        with self._lock:
            return self._store.get(k)

    def set(self, key: bytes, value: bytes) -> None:
        k = _check_key(key)
        v = _check_value(value)
        with self._lock:
            self._record(k)
            self._store[k] = v

    def delete(self, key: bytes) -> None:
        """Delete `key` if present (no-op otherwise)."""
        k = _check_key(key)
        with self._lock:
            if k in self._store:
                self._record(k)
                del self._store[k]

    def exists(self, key: bytes) -> bool:
        k = _check_key(key)
        with self._lock:
            return k in self._store

    # --- journal ---

    def begin(self) -> None:
        with self._lock:
            if self._journal is not None:
                raise StorageError("storage journal already open")
            self._journal = {}

    def commit(self) -> None:
        with self._lock:
            if self._journal is None:
                raise StorageError("no open storage journal")
            self._journal = None

    def rollback(self) -> None:
        with self._lock:
            if self._journal is None:
                raise StorageError("no open storage journal")
            for k, prior in self._journal.items():
                if prior is None:
                    self._store.pop(k, None)
                else:
                    self._store[k] = prior
            self._journal = None

    # --- introspection (tests, tooling) ---

    def snapshot(self) -> Dict[bytes, bytes]:
        with self._lock:
            return dict(self._store)

    def __len__(self) -> int:
        return len(self._store)


# ------------------------------ Typed helpers ----------------------------- #


def u64_to_bytes(x: int) -> bytes:
    if not isinstance(x, int) or not 0 <= x <= 0xFFFFFFFFFFFFFFFF:
        raise StorageError("value does not fit u64")
    return x.to_bytes(8, "big")


def u256_to_bytes(x: int) -> bytes:
    if not isinstance(x, int) or not 0 <= x < (1 << 256):
        raise StorageError("value does not fit u256")
    return x.to_bytes(32, "big")


def uint_from_bytes(b: bytes) -> int:
    return int.from_bytes(b, "big", signed=False)


__all__ = [
    "StorageError",
    "StorageBackend",
    "MemoryBackend",
    "MAX_STORAGE_KEY_BYTES",
    "MAX_STORAGE_VALUE_BYTES",
    "u64_to_bytes",
    "u256_to_bytes",
    "uint_from_bytes",
]
