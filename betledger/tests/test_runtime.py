from __future__ import annotations

import pytest

from betledger.runtime import BlockEnv, CallEnv, ContextError, TxEnv
from betledger.runtime.chain import Chain, derive_address
from betledger.runtime.events_api import EventError, EventLog
from betledger.runtime.hash_api import HashError, digest, keccak256, sha3_256
from betledger.runtime.storage_api import (
    MAX_STORAGE_KEY_BYTES,
    MemoryBackend,
    StorageBackend,
    StorageError,
    u64_to_bytes,
)
from betledger.runtime.treasury_api import LedgerError, Treasury

A = b"\x0a" * 32
B = b"\x0b" * 32


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


def test_memory_backend_rollback_restores_exact_state():
    db = MemoryBackend()
    assert isinstance(db, StorageBackend)
    db.set(b"k1", b"v1")
    db.set(b"k2", b"v2")

    db.begin()
    db.set(b"k1", b"changed")
    db.delete(b"k2")
    db.set(b"k3", b"new")
    db.rollback()

    assert db.snapshot() == {b"k1": b"v1", b"k2": b"v2"}


def test_memory_backend_commit_keeps_writes():
    db = MemoryBackend()
    db.begin()
    db.set(b"k", b"v")
    db.commit()
    assert db.get(b"k") == b"v"
    with pytest.raises(StorageError):
        db.commit()


def test_memory_backend_rejects_nested_journal():
    db = MemoryBackend()
    db.begin()
    with pytest.raises(StorageError):
        db.begin()


@pytest.mark.parametrize("key", [b"", b"x" * (MAX_STORAGE_KEY_BYTES + 1), "text"])
def test_memory_backend_key_validation(key):
    with pytest.raises(StorageError):
        MemoryBackend().set(key, b"v")


def test_u64_bounds():
    assert u64_to_bytes(0) == b"\x00" * 8
    with pytest.raises(StorageError):
        u64_to_bytes(1 << 64)


# ---------------------------------------------------------------------------
# Treasury
# ---------------------------------------------------------------------------


def test_treasury_transfer_and_supply():
    t = Treasury()
    t.credit(A, 50)
    t.transfer(A, B, 20)
    assert (t.balance(A), t.balance(B)) == (30, 20)
    assert t.total_supply() == 50
    with pytest.raises(LedgerError):
        t.transfer(A, B, 31)


def test_treasury_debit_and_zero_balances():
    t = Treasury()
    t.credit(A, 3)
    t.debit(A, 3)
    assert t.snapshot() == {}
    with pytest.raises(LedgerError):
        t.debit(A, 1)
    with pytest.raises(LedgerError):
        t.credit(A, -1)


def test_treasury_rollback():
    t = Treasury()
    t.credit(A, 5)
    t.begin()
    t.transfer(A, B, 5)
    assert t.balance(A) == 0
    t.rollback()
    assert t.snapshot() == {A: 5}


def test_treasury_overflow_is_an_error():
    t = Treasury(max_balance_bits=64)
    t.credit(A, (1 << 64) - 1)
    with pytest.raises(LedgerError):
        t.credit(A, 1)


@pytest.mark.parametrize("addr", [b"\x01" * 20, "0x" + "00" * 32])
def test_treasury_address_validation(addr):
    with pytest.raises(LedgerError):
        Treasury().balance(addr)


def test_check_address_normalizes_and_rejects():
    t = Treasury()
    assert t.check_address(bytearray(A)) == A
    assert t.snapshot() == {}
    with pytest.raises(LedgerError):
        t.check_address(b"\x01" * 20)


def test_chain_rejects_malformed_sender_before_running():
    chain = Chain("basic")
    with pytest.raises(LedgerError):
        chain.call("propose", b"\x01" * 20, b"\x00" * 32, value=1)
    assert chain.treasury.snapshot() == {}
    assert len(chain.events) == 0


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def test_event_log_rollback_and_polling():
    log = EventLog()
    log.begin()
    log.emit(b"One", {"x": 1})
    log.commit()

    log.begin()
    log.emit(b"Two", {"x": 2})
    log.rollback()

    assert [e.name for e in log.events()] == [b"One"]
    assert log.events(since=1) == []


def test_subscribers_only_see_committed_events():
    log = EventLog()
    seen = []
    log.subscribe(seen.append)
    log.begin()
    log.emit(b"Dropped", {})
    assert seen == []
    log.rollback()
    log.begin()
    log.emit(b"Kept", {"flag": True})
    log.commit()
    assert [e.name for e in seen] == [b"Kept"]


@pytest.mark.parametrize(
    "name,args",
    [
        ("Text", {}),
        (b"", {}),
        (b"Ev", {"1bad": 1}),
        (b"Ev", {"neg": -1}),
        (b"Ev", {"f": 1.5}),
        (b"Ev", {"big": 1 << 256}),
    ],
)
def test_event_validation(name, args):
    with pytest.raises(EventError):
        EventLog().emit(name, args)


# ---------------------------------------------------------------------------
# Hashing / context / chain helpers
# ---------------------------------------------------------------------------


def test_digest_dispatch():
    assert digest("keccak256", b"") == keccak256(b"")
    assert digest("sha3_256", b"") == sha3_256(b"")
    assert keccak256(b"") != sha3_256(b"")
    with pytest.raises(HashError):
        digest("md5", b"")
    with pytest.raises(HashError):
        keccak256("text")


def test_call_env_exposes_caller_and_time():
    env = CallEnv(
        block=BlockEnv(height=3, timestamp=1_000),
        tx=TxEnv(tx_hash="0x" + "00" * 32, sender="0x" + "0a" * 32, value=7, nonce=0),
    )
    assert env.sender == A
    assert env.value == 7
    assert env.now == 1_000
    with pytest.raises(ContextError):
        BlockEnv(height=-1, timestamp=0)


def test_derive_address_is_deterministic():
    assert derive_address(b"x") == derive_address(b"x")
    assert derive_address(b"x") != derive_address(b"y")
    assert len(derive_address(b"x", 20)) == 20
    assert len(derive_address(b"x", 64)) == 64


def test_chain_clock_only_moves_forward():
    chain = Chain("basic")
    t0, h0 = chain.timestamp, chain.height
    chain.advance(seconds=10)
    assert (chain.timestamp, chain.height) == (t0 + 10, h0 + 1)
    with pytest.raises(ValueError):
        chain.advance(seconds=-1)
