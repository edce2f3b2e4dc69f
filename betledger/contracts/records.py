"""
Persisted bet records and their fixed-width storage encodings.

All integers are big-endian and unsigned. Addresses are length-prefixed
(1 byte) so the codec does not depend on the configured address width.

    ProposedBet      = addr(proposer) | u256 stake | u64 proposed_at | u8 accepted
    AcceptedBet      = addr(acceptor) | u64 accepted_at | bytes32 counter_commitment
    RevealedSecrets  = u8 flags | u256 secret_a | u256 secret_b
    SettledMarker    = u64 settled_at
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from betledger.runtime.storage_api import (
    StorageError,
    u64_to_bytes,
    u256_to_bytes,
    uint_from_bytes,
)


class Side(str, Enum):
    PROPOSER = "proposer"
    ACCEPTOR = "acceptor"

    @property
    def other(self) -> "Side":
        return Side.ACCEPTOR if self is Side.PROPOSER else Side.PROPOSER


# ---- small codec helpers -----------------------------------------------------


def _put_addr(addr: bytes) -> bytes:
    if not 0 < len(addr) < 256:
        raise StorageError("address length out of range")
    return bytes([len(addr)]) + bytes(addr)


def _take(raw: bytes, pos: int, n: int) -> Tuple[bytes, int]:
    chunk = raw[pos:pos + n]
    if len(chunk) != n:
        raise StorageError("truncated record")
    return chunk, pos + n


def _take_addr(raw: bytes, pos: int) -> Tuple[bytes, int]:
    n, pos = _take(raw, pos, 1)
    return _take(raw, pos, n[0])


def _finish(raw: bytes, pos: int) -> None:
    if pos != len(raw):
        raise StorageError("trailing bytes in record")


# ---- records -----------------------------------------------------------------


@dataclass(frozen=True)
class ProposedBet:
    proposer: bytes
    stake: int
    proposed_at: int
    accepted: bool = False

    def mark_accepted(self) -> "ProposedBet":
        return replace(self, accepted=True)

    def encode(self) -> bytes:
        return (
            _put_addr(self.proposer)
            + u256_to_bytes(self.stake)
            + u64_to_bytes(self.proposed_at)
            + (b"\x01" if self.accepted else b"\x00")
        )

    @classmethod
    def decode(cls, raw: bytes) -> "ProposedBet":
        proposer, pos = _take_addr(raw, 0)
        stake, pos = _take(raw, pos, 32)
        at, pos = _take(raw, pos, 8)
        flag, pos = _take(raw, pos, 1)
        _finish(raw, pos)
        return cls(proposer, uint_from_bytes(stake), uint_from_bytes(at), flag != b"\x00")


@dataclass(frozen=True)
class AcceptedBet:
    acceptor: bytes
    accepted_at: int
    # Basic variant: side B's raw secret (32 bytes). Two-sided: hash of it.
    counter_commitment: bytes

    def encode(self) -> bytes:
        if len(self.counter_commitment) != 32:
            raise StorageError("counter commitment must be 32 bytes")
        return _put_addr(self.acceptor) + u64_to_bytes(self.accepted_at) + self.counter_commitment

    @classmethod
    def decode(cls, raw: bytes) -> "AcceptedBet":
        acceptor, pos = _take_addr(raw, 0)
        at, pos = _take(raw, pos, 8)
        counter, pos = _take(raw, pos, 32)
        _finish(raw, pos)
        return cls(acceptor, uint_from_bytes(at), counter)


_FLAG_A = 0x01
_FLAG_B = 0x02


@dataclass(frozen=True)
class RevealedSecrets:
    """Secrets revealed so far in the two-sided variant."""

    secret_a: Optional[int] = None
    secret_b: Optional[int] = None

    def secret(self, side: Side) -> Optional[int]:
        return self.secret_a if side is Side.PROPOSER else self.secret_b

    def with_secret(self, side: Side, secret: int) -> "RevealedSecrets":
        if side is Side.PROPOSER:
            return replace(self, secret_a=secret)
        return replace(self, secret_b=secret)

    @property
    def complete(self) -> bool:
        return self.secret_a is not None and self.secret_b is not None

    def encode(self) -> bytes:
        flags = (_FLAG_A if self.secret_a is not None else 0) | (_FLAG_B if self.secret_b is not None else 0)
        return (
            bytes([flags])
            + u256_to_bytes(self.secret_a or 0)
            + u256_to_bytes(self.secret_b or 0)
        )

    @classmethod
    def decode(cls, raw: bytes) -> "RevealedSecrets":
        flags, pos = _take(raw, 0, 1)
        a, pos = _take(raw, pos, 32)
        b, pos = _take(raw, pos, 32)
        _finish(raw, pos)
        f = flags[0]
        return cls(
            secret_a=uint_from_bytes(a) if f & _FLAG_A else None,
            secret_b=uint_from_bytes(b) if f & _FLAG_B else None,
        )


@dataclass(frozen=True)
class Settlement:
    """Outcome of a settled bet, returned to the caller of the settling operation."""

    commitment: bytes
    winner: bytes
    loser: bytes
    winning_side: Side
    stake: int
    payout: int
    forfeited: bool
    agreed_random: Optional[int] = None


__all__ = [
    "Side",
    "ProposedBet",
    "AcceptedBet",
    "RevealedSecrets",
    "Settlement",
]
