"""
betledger.runtime.context — the per-call environment a ledger operation sees.

The platform vouches for three things on every call: the timestamp, the
authenticated sender and the value attached to the call. Operations read them
from the `CallEnv` they are handed and never from wall-clock time or globals.

Addresses and hashes are raw bytes; hex strings ("0x.." or bare) are accepted
on construction and normalized.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

BytesOrHex = Union[bytes, bytearray, memoryview, str]


class ContextError(Exception):
    """Malformed call environment."""


def to_bytes(value: BytesOrHex) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if not isinstance(value, str):
        raise ContextError(f"expected bytes or hex str, got {type(value).__name__}")
    text = value.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise ContextError(f"not a hex string: {value!r}") from None


def to_hex(b: Union[bytes, bytearray, memoryview]) -> str:
    return "0x" + bytes(b).hex()


def _uint(field: str, v: Any) -> int:
    if isinstance(v, bool) or not isinstance(v, int) or v < 0:
        raise ContextError(f"{field} must be a non-negative int, got {v!r}")
    return v


@dataclass(frozen=True)
class BlockEnv:
    height: int
    # seconds, as agreed by the platform
    timestamp: int

    def __post_init__(self) -> None:
        _uint("height", self.height)
        _uint("timestamp", self.timestamp)


@dataclass(frozen=True)
class TxEnv:
    tx_hash: bytes
    sender: bytes
    # already moved from the sender into escrow when the operation runs
    value: int
    nonce: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "tx_hash", to_bytes(self.tx_hash))
        object.__setattr__(self, "sender", to_bytes(self.sender))
        _uint("value", self.value)
        _uint("nonce", self.nonce)


@dataclass(frozen=True)
class CallEnv:
    """What a single ledger operation gets to see about its caller and time."""

    block: BlockEnv
    tx: TxEnv

    @property
    def sender(self) -> bytes:
        return self.tx.sender

    @property
    def value(self) -> int:
        return self.tx.value

    @property
    def now(self) -> int:
        return self.block.timestamp


__all__ = ["ContextError", "to_bytes", "to_hex", "BlockEnv", "TxEnv", "CallEnv"]
