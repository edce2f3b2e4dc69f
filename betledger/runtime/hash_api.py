"""
betledger.runtime.hash_api — deterministic hashing for commitments.

- Strictly bytes-in, bytes-out (no implicit text/encoding).
- Keccak-256 (the pre-standard SHA-3 variant used by EVM-style ledgers) comes
  from pycryptodome; SHA3-256 comes from hashlib.

APIs
----
- keccak256(data) -> bytes
- sha3_256(data) -> bytes
- digest(name, data) -> bytes      # name in {"keccak256", "sha3_256"}
"""

from __future__ import annotations

import hashlib
from typing import Callable, Dict, Union

from Crypto.Hash import keccak as _keccak

BytesLike = Union[bytes, bytearray, memoryview]


class HashError(Exception):
    pass


def _ensure_bytes(buf: object, name: str) -> bytes:
    if isinstance(buf, (bytes, bytearray, memoryview)):
        return bytes(buf)
    raise HashError(f"{name} must be bytes-like (got {type(buf).__name__})")


def keccak256(data: BytesLike) -> bytes:
    h = _keccak.new(digest_bits=256)
    h.update(_ensure_bytes(data, "data"))
    return h.digest()


def sha3_256(data: BytesLike) -> bytes:
    return hashlib.sha3_256(_ensure_bytes(data, "data")).digest()


_BY_NAME: Dict[str, Callable[[BytesLike], bytes]] = {
    "keccak256": keccak256,
    "sha3_256": sha3_256,
}


def digest(name: str, data: BytesLike) -> bytes:
    try:
        fn = _BY_NAME[name]
    except KeyError:
        raise HashError(f"unsupported hash {name!r}") from None
    return fn(data)


__all__ = ["HashError", "keccak256", "sha3_256", "digest"]
