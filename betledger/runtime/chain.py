"""
betledger.runtime.chain — in-memory platform that drives the bet ledger.

The ledger relies on its platform for four things, all provided here:

- serialized execution: one call at a time, under a lock;
- atomicity: storage, balances and the event log are journaled for the
  duration of a call and rolled back byte-for-byte if it raises;
- authenticated identity and attached value: the caller's address and the
  amount moved into the ledger's escrow account before the operation runs;
- a timestamp: a deterministic clock that only moves through `advance()`.

Usage
-----
    chain = Chain("basic")
    chain.fund(alice, 100)
    chain.call("propose", alice, commitment, value=10)
    chain.advance(seconds=60)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any, Dict, List, Optional, Union

from betledger import logging as blog
from betledger.config import BetConfig, load_config
from betledger.contracts import get_contract
from betledger.contracts.store import BetStore, LedgerState
from betledger.errors import BetError, NonPayable, UnknownOperation

from . import hash_api
from .context import BlockEnv, CallEnv, TxEnv, to_hex
from .events_api import CanonicalEvent, Event, EventLog
from .storage_api import MemoryBackend, StorageBackend
from .treasury_api import Treasury

log = logging.getLogger(__name__)

DEFAULT_GENESIS_TIME = 1_700_000_000


def derive_address(label: bytes, length: int = 32) -> bytes:
    """Deterministic address for a named account (escrow, test users)."""
    out = b""
    counter = 0
    while len(out) < length:
        out += hash_api.sha3_256(label + counter.to_bytes(4, "big"))
        counter += 1
    return out[:length]


@dataclass
class Receipt:
    tx_hash: bytes
    operation: str
    sender: bytes
    value: int
    height: int
    timestamp: int
    return_value: Any = None
    events: List[Event] = field(default_factory=list)

    def logs(self) -> List[CanonicalEvent]:
        return EventLog().for_receipt(self.events)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "txHash": to_hex(self.tx_hash),
            "operation": self.operation,
            "sender": to_hex(self.sender),
            "value": self.value,
            "height": self.height,
            "timestamp": self.timestamp,
            "logs": [ev.to_dict() for ev in self.logs()],
        }


class Chain:
    def __init__(
        self,
        contract: Union[str, ModuleType] = "basic",
        *,
        config: Optional[BetConfig] = None,
        backend: Optional[StorageBackend] = None,
        genesis_time: int = DEFAULT_GENESIS_TIME,
    ) -> None:
        self.config = config or load_config()
        self.contract = get_contract(contract) if isinstance(contract, str) else contract
        self.backend = backend if backend is not None else MemoryBackend()
        self.treasury = Treasury(
            address_len=self.config.address_len, max_balance_bits=self.config.max_balance_bits
        )
        self.events = EventLog()
        self.address = derive_address(b"betledger:escrow:" + self.contract.NAME.encode(), self.config.address_len)
        self.state = LedgerState(
            store=BetStore(self.backend),
            treasury=self.treasury,
            events=self.events,
            address=self.address,
            config=self.config,
        )
        self.height = 0
        self.timestamp = int(genesis_time)
        self._nonces: Dict[bytes, int] = {}
        self._lock = threading.RLock()

    # ------------------------------ accounts ------------------------------ #

    def account(self, label: str) -> bytes:
        return derive_address(b"betledger:account:" + label.encode(), self.config.address_len)

    def fund(self, addr: bytes, amount: int) -> None:
        with self._lock:
            self.treasury.credit(addr, amount)

    def balance(self, addr: bytes) -> int:
        return self.treasury.balance(addr)

    def escrow_balance(self) -> int:
        return self.treasury.balance(self.address)

    # -------------------------------- clock -------------------------------- #

    def advance(self, seconds: int = 0, blocks: int = 1) -> None:
        if seconds < 0 or blocks < 0:
            raise ValueError("clock only moves forward")
        with self._lock:
            self.timestamp += seconds
            self.height += blocks

    # -------------------------------- calls -------------------------------- #

    def _tx_hash(self, sender: bytes, nonce: int, operation: str) -> bytes:
        return hash_api.sha3_256(b"betledger:tx:" + sender + nonce.to_bytes(8, "big") + operation.encode())

    def call(self, operation: str, sender: bytes, *args: Any, value: int = 0) -> Receipt:
        """
        Execute one ledger operation atomically on behalf of `sender`.

        `value` is moved from the sender into escrow before the operation
        runs. Any exception rolls back every effect of the call (including
        that transfer) and is re-raised unchanged.
        """
        fn = self.contract.ENTRYPOINTS.get(operation)
        if fn is None:
            raise UnknownOperation(
                f"{self.contract.NAME} has no operation {operation!r}",
                context={"known": sorted(self.contract.ENTRYPOINTS)},
            )
        if value and operation not in self.contract.PAYABLE:
            raise NonPayable(f"{operation} does not accept value", context={"value": value})
        self.treasury.check_address(sender)

        with self._lock:
            nonce = self._nonces.get(sender, 0)
            tx = TxEnv(tx_hash=self._tx_hash(sender, nonce, operation), sender=sender, value=value, nonce=nonce)
            env = CallEnv(block=BlockEnv(height=self.height, timestamp=self.timestamp), tx=tx)

            with blog.trace_scope(tx.tx_hash.hex()[:12]):
                blog.bind(component=self.contract.NAME, sender=to_hex(sender)[:12])
                self.backend.begin()
                self.treasury.begin()
                self.events.begin()
                try:
                    if value:
                        self.treasury.transfer(sender, self.address, value)
                    ret = fn(self.state, env, *args)
                except BetError as exc:
                    self._rollback()
                    log.info("call rejected", extra={"operation": operation, "code": exc.code})
                    raise
                except Exception:
                    self._rollback()
                    log.warning("call failed", extra={"operation": operation}, exc_info=True)
                    raise

                self.backend.commit()
                self.treasury.commit()
                emitted = self.events.commit()

            self._nonces[sender] = nonce + 1
            receipt = Receipt(
                tx_hash=tx.tx_hash,
                operation=operation,
                sender=sender,
                value=value,
                height=self.height,
                timestamp=self.timestamp,
                return_value=ret,
                events=emitted,
            )
            self.height += 1
            return receipt

    def _rollback(self) -> None:
        self.backend.rollback()
        self.treasury.rollback()
        self.events.rollback()
        log.debug("call rolled back")


__all__ = ["Chain", "Receipt", "derive_address", "DEFAULT_GENESIS_TIME"]
