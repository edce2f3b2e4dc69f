"""
Explicit associative stores for the bet ledger.

`BetStore` presents typed tables over a byte storage backend, each keyed by
the 32-byte commitment:

    bet:p:<commitment>  -> ProposedBet
    bet:a:<commitment>  -> AcceptedBet
    bet:r:<commitment>  -> RevealedSecrets   (two-sided variant)
    bet:s:<commitment>  -> settled marker    (u64 settled_at)

Lookups return None for absent records; nothing relies on a zero-valued
record standing in for "no such bet".

`LedgerState` bundles everything an operation may touch. It is passed into
every operation explicitly, so tests can build one around in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from betledger.config import BetConfig
from betledger.runtime.events_api import EventLog
from betledger.runtime.storage_api import StorageBackend, u64_to_bytes, uint_from_bytes
from betledger.runtime.treasury_api import Treasury

from .records import AcceptedBet, ProposedBet, RevealedSecrets

_P_PROPOSED = b"bet:p:"
_P_ACCEPTED = b"bet:a:"
_P_REVEALS = b"bet:r:"
_P_SETTLED = b"bet:s:"


class BetStore:
    def __init__(self, backend: StorageBackend) -> None:
        self.backend = backend

    # ---- proposed ----

    def get_proposed(self, commitment: bytes) -> Optional[ProposedBet]:
        raw = self.backend.get(_P_PROPOSED + commitment)
        return ProposedBet.decode(raw) if raw is not None else None

    def put_proposed(self, commitment: bytes, bet: ProposedBet) -> None:
        self.backend.set(_P_PROPOSED + commitment, bet.encode())

    # ---- accepted ----

    def get_accepted(self, commitment: bytes) -> Optional[AcceptedBet]:
        raw = self.backend.get(_P_ACCEPTED + commitment)
        return AcceptedBet.decode(raw) if raw is not None else None

    def put_accepted(self, commitment: bytes, bet: AcceptedBet) -> None:
        self.backend.set(_P_ACCEPTED + commitment, bet.encode())

    # ---- reveals ----

    def get_reveals(self, commitment: bytes) -> Optional[RevealedSecrets]:
        raw = self.backend.get(_P_REVEALS + commitment)
        return RevealedSecrets.decode(raw) if raw is not None else None

    def put_reveals(self, commitment: bytes, reveals: RevealedSecrets) -> None:
        self.backend.set(_P_REVEALS + commitment, reveals.encode())

    # ---- settled markers ----

    def settled_at(self, commitment: bytes) -> Optional[int]:
        raw = self.backend.get(_P_SETTLED + commitment)
        return uint_from_bytes(raw) if raw is not None else None

    def is_settled(self, commitment: bytes) -> bool:
        return self.backend.exists(_P_SETTLED + commitment)

    def mark_settled(self, commitment: bytes, now: int) -> None:
        self.backend.set(_P_SETTLED + commitment, u64_to_bytes(now))

    # ---- lifecycle ----

    def clear(self, commitment: bytes) -> None:
        """Delete every live record for `commitment` together."""
        for prefix in (_P_PROPOSED, _P_ACCEPTED, _P_REVEALS):
            self.backend.delete(prefix + commitment)


@dataclass
class LedgerState:
    store: BetStore
    treasury: Treasury
    events: EventLog
    # Escrow account holding pooled stakes between proposal and settlement.
    address: bytes
    config: BetConfig


__all__ = ["BetStore", "LedgerState"]
