"""
Commitments and the agreed random outcome.

Secrets are unsigned 256-bit integers. A commitment is the hash of the
secret's 32-byte big-endian encoding. Once both secrets are known the agreed
random value is their XOR and its parity picks the winner: even pays the
proposer, odd pays the acceptor. The rule is arbitrary but fixed; all that
matters is that neither side could predict the XOR when it committed.
"""

from __future__ import annotations

import secrets as _secrets
from typing import Union

from betledger.errors import InvalidArgument
from betledger.runtime import hash_api

from .records import Side

SECRET_BITS = 256
MAX_SECRET = (1 << SECRET_BITS) - 1


def check_secret(secret: int) -> int:
    if not isinstance(secret, int) or isinstance(secret, bool):
        raise InvalidArgument("secret must be int", context={"type": type(secret).__name__})
    if not 0 <= secret <= MAX_SECRET:
        raise InvalidArgument("secret must fit 256 bits unsigned")
    return secret


def secret_to_bytes(secret: int) -> bytes:
    return check_secret(secret).to_bytes(32, "big")


def secret_from_bytes(raw: bytes) -> int:
    if len(raw) != 32:
        raise InvalidArgument("secret encoding must be 32 bytes", context={"len": len(raw)})
    return int.from_bytes(raw, "big")


def commitment_for(secret: int, hash_name: str = "keccak256") -> bytes:
    """hash(secret) as used for Propose (and for Accept in the two-sided variant)."""
    return hash_api.digest(hash_name, secret_to_bytes(secret))


def coerce_secret(value: Union[int, bytes, bytearray]) -> int:
    """Accept a secret given either as an int or as its 32-byte encoding."""
    if isinstance(value, (bytes, bytearray)):
        return secret_from_bytes(bytes(value))
    return check_secret(value)


def random_secret() -> int:
    """Fresh secret for client tooling; never called by ledger operations."""
    return _secrets.randbits(SECRET_BITS)


def agreed_random(secret_a: int, secret_b: int) -> int:
    return check_secret(secret_a) ^ check_secret(secret_b)


def winner_side(agreed: int) -> Side:
    return Side.PROPOSER if agreed % 2 == 0 else Side.ACCEPTOR


__all__ = [
    "SECRET_BITS",
    "MAX_SECRET",
    "check_secret",
    "secret_to_bytes",
    "secret_from_bytes",
    "commitment_for",
    "coerce_secret",
    "random_secret",
    "agreed_random",
    "winner_side",
]
