"""
Bet ledger contracts.

Two variants share the same records and Propose/Accept transitions:

- `basic`      side B accepts with its raw secret; side A reveals and settles.
- `two_sided`  side B accepts with hash(secret_b); both reveal, the second settles.

Each variant module exposes `NAME`, `ENTRYPOINTS` (operation name -> function)
and `PAYABLE` (operations that accept attached value).
"""

from __future__ import annotations

from types import ModuleType
from typing import Dict

from betledger.errors import UnknownOperation

from . import basic, two_sided
from .records import AcceptedBet, ProposedBet, RevealedSecrets, Settlement, Side
from .store import BetStore, LedgerState

CONTRACTS: Dict[str, ModuleType] = {
    basic.NAME: basic,
    two_sided.NAME: two_sided,
}


def get_contract(name: str) -> ModuleType:
    try:
        return CONTRACTS[name]
    except KeyError:
        raise UnknownOperation(
            f"unknown bet variant {name!r}", context={"known": sorted(CONTRACTS)}
        ) from None


__all__ = [
    "basic",
    "two_sided",
    "CONTRACTS",
    "get_contract",
    "AcceptedBet",
    "ProposedBet",
    "RevealedSecrets",
    "Settlement",
    "Side",
    "BetStore",
    "LedgerState",
]
