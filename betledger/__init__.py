"""
betledger — two-party commit/reveal betting on a deterministic ledger.

Two parties escrow matching stakes, commit to secrets, reveal them, and the
XOR of the secrets decides who takes the pot. Neither party has to trust the
other: a proposer who refuses to reveal forfeits, and the two-sided variant
keeps both secrets hidden until both parties have committed.

Public entrypoints:

- Chain(variant="basic" | "two-sided", config=None)
    In-memory platform; `chain.call(operation, sender, *args, value=0)`.
- commitment_for(secret, hash_name="keccak256") -> bytes
- load_config() -> BetConfig

Heavy imports are lazy so `import betledger` stays cheap.
"""

from __future__ import annotations

import importlib
from typing import Any

from .version import __version__

_LAZY = {
    "Chain": ".runtime.chain",
    "Receipt": ".runtime.chain",
    "commitment_for": ".contracts.outcome",
    "random_secret": ".contracts.outcome",
    "load_config": ".config",
    "BetConfig": ".config",
    "BetError": ".errors",
}


def version() -> str:
    return __version__


def __getattr__(name: str) -> Any:
    target = _LAZY.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(importlib.import_module(target, __name__), name)


__all__ = ["__version__", "version", *sorted(_LAZY)]
