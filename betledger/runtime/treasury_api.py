"""
betledger.runtime.treasury_api — deterministic balance ledger for the simulator.

The treasury is the platform's account model, reduced to what the bet ledger
needs: balances per address, host-side credit/debit (funding test accounts,
moving attached value into escrow), and `transfer` for payouts.

- Deterministic: no wall-clock, no randomness, pure arithmetic with explicit caps.
- Total supply never exceeds `max_balance_bits` bits. Credits are the only way
  to mint, so the cap is enforced there, and no single balance (the winner of
  a pot, the escrow account) can overflow when value merely moves.
- Journaled like the memory storage backend so a rejected call is rolled back.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

log = logging.getLogger(__name__)


class LedgerError(Exception):
    """Platform-level accounting failure (bad address, insufficient balance, overflow)."""


class Treasury:
    def __init__(self, *, address_len: int = 32, max_balance_bits: int = 256) -> None:
        self._address_len = int(address_len)
        self._max_balance = (1 << int(max_balance_bits)) - 1
        self._balances: Dict[bytes, int] = {}
        self._journal: Optional[Dict[bytes, int]] = None
        self._lock = threading.RLock()

    # ------------------------------ checks ------------------------------ #

    def check_address(self, addr: bytes) -> bytes:
        """Return `addr` as bytes or raise LedgerError if it is not a valid account."""
        if not isinstance(addr, (bytes, bytearray)):
            raise LedgerError("address must be bytes")
        if len(addr) != self._address_len:
            raise LedgerError(f"address must be exactly {self._address_len} bytes")
        return bytes(addr)

    def _check_amount(self, amount: int) -> int:
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise LedgerError("amount must be int")
        if amount < 0:
            raise LedgerError("amount must be non-negative")
        if amount > self._max_balance:
            raise LedgerError("amount exceeds balance width")
        return amount

    @property
    def max_balance(self) -> int:
        return self._max_balance

    def _write(self, addr: bytes, value: int) -> None:
        if self._journal is not None and addr not in self._journal:
            self._journal[addr] = self._balances.get(addr, 0)
        if value:
            self._balances[addr] = value
        else:
            self._balances.pop(addr, None)

    # ------------------------------ public ------------------------------ #

    def balance(self, addr: bytes) -> int:
        a = self.check_address(addr)
        with self._lock:
            return self._balances.get(a, 0)

    def credit(self, addr: bytes, amount: int) -> None:
        """Host helper: increase the balance of `addr` by `amount`."""
        a = self.check_address(addr)
        amt = self._check_amount(amount)
        with self._lock:
            if self.total_supply() + amt > self._max_balance:
                raise LedgerError("credit would exceed the supply cap")
            self._write(a, self._balances.get(a, 0) + amt)

    def debit(self, addr: bytes, amount: int) -> None:
        """Host helper: decrease the balance of `addr` by `amount` if sufficient."""
        a = self.check_address(addr)
        amt = self._check_amount(amount)
        with self._lock:
            cur = self._balances.get(a, 0)
            if amt > cur:
                raise LedgerError("insufficient balance")
            self._write(a, cur - amt)

    def transfer(self, frm: bytes, to: bytes, amount: int) -> None:
        """Debit `frm` and credit `to` by `amount`; atomic w.r.t. this ledger."""
        f = self.check_address(frm)
        t = self.check_address(to)
        amt = self._check_amount(amount)
        if amt == 0:
            return
        with self._lock:
            cur_from = self._balances.get(f, 0)
            if amt > cur_from:
                raise LedgerError("insufficient balance")
            self._write(f, cur_from - amt)
            self._write(t, self._balances.get(t, 0) + amt)
        log.debug("transfer", extra={"frm": f, "to": t, "amount": amt})

    def total_supply(self) -> int:
        with self._lock:
            return sum(self._balances.values())

    def snapshot(self) -> Dict[bytes, int]:
        with self._lock:
            return dict(self._balances)

    # ------------------------------ journal ----------------------------- #

    def begin(self) -> None:
        with self._lock:
            if self._journal is not None:
                raise LedgerError("treasury journal already open")
            self._journal = {}

    def commit(self) -> None:
        with self._lock:
            if self._journal is None:
                raise LedgerError("no open treasury journal")
            self._journal = None

    def rollback(self) -> None:
        with self._lock:
            if self._journal is None:
                raise LedgerError("no open treasury journal")
            for addr, prior in self._journal.items():
                if prior:
                    self._balances[addr] = prior
                else:
                    self._balances.pop(addr, None)
            self._journal = None


__all__ = ["LedgerError", "Treasury"]
