from __future__ import annotations

import pytest

from betledger.contracts.common import EV_ACCEPTED, EV_PROPOSED, EV_SETTLED
from betledger.errors import (
    BetError,
    InvalidArgument,
    NonPayable,
    StakeMismatch,
    UnknownOperation,
)
from betledger.runtime.treasury_api import LedgerError

from .conftest import FUNDS, STAKE, commit


def _world(chain):
    return (
        chain.backend.snapshot(),
        chain.treasury.snapshot(),
        len(chain.events),
        chain.height,
    )


def test_rejected_calls_leave_no_trace(basic):
    chain, alice, bob, carol = basic
    c = commit(0xAAAA)
    chain.call("propose", alice, c, value=STAKE)
    before = _world(chain)

    rejected = [
        ("propose", bob, (c,), STAKE),  # duplicate
        ("propose", bob, (commit(1),), 0),  # zero stake
        ("accept", bob, (c, 0xBBBB), STAKE + 1),  # stake mismatch
        ("accept", bob, (commit(2), 0xBBBB), STAKE),  # no such bet
        ("reveal", alice, (0xAAAA,), 0),  # not yet accepted
        ("forfeit", carol, (c,), 0),  # not yet accepted
    ]
    for op, who, args, value in rejected:
        with pytest.raises(BetError):
            chain.call(op, who, *args, value=value)
        assert _world(chain) == before, op


def test_stake_mismatch_refunds_attached_value(basic):
    chain, alice, bob, _ = basic
    c = commit(0xAAAA)
    chain.call("propose", alice, c, value=STAKE)
    with pytest.raises(StakeMismatch):
        chain.call("accept", bob, c, 0xBBBB, value=STAKE * 3)
    assert chain.balance(bob) == FUNDS
    assert chain.escrow_balance() == STAKE


def test_insufficient_funds_fails_before_any_write(basic):
    chain, alice, _, _ = basic
    before = _world(chain)
    with pytest.raises(LedgerError):
        chain.call("propose", alice, commit(5), value=FUNDS + 1)
    assert _world(chain) == before


def test_value_on_non_payable_operation(basic):
    chain, alice, bob, _ = basic
    c = commit(0xAAAA)
    chain.call("propose", alice, c, value=STAKE)
    chain.call("accept", bob, c, 0xBBBB, value=STAKE)
    with pytest.raises(NonPayable):
        chain.call("reveal", alice, 0xAAAA, value=1)
    assert chain.balance(alice) == FUNDS - STAKE


def test_unknown_operation(basic, two_sided):
    chain, alice, _, _ = basic
    with pytest.raises(UnknownOperation) as exc:
        chain.call("reveal_secret", alice, commit(1), 1)
    assert "reveal" in exc.value.context["known"]

    chain2, alice2, _, _ = two_sided
    with pytest.raises(UnknownOperation):
        chain2.call("reveal", alice2, 1)


def test_malformed_commitment(basic):
    chain, alice, _, _ = basic
    with pytest.raises(InvalidArgument):
        chain.call("propose", alice, b"\x00" * 31, value=STAKE)
    with pytest.raises(InvalidArgument):
        chain.call("propose", alice, "0x00", value=STAKE)
    assert chain.balance(alice) == FUNDS


def test_exactly_one_event_per_transition(basic):
    chain, alice, bob, _ = basic
    c = commit(0xAAAA)
    seen = []
    unsubscribe = chain.events.subscribe(seen.append)

    chain.call("propose", alice, c, value=STAKE)
    with pytest.raises(BetError):
        chain.call("propose", alice, c, value=STAKE)
    chain.call("accept", bob, c, 0xBBBB, value=STAKE)
    chain.call("reveal", alice, 0xAAAA)

    assert [e.name for e in seen] == [EV_PROPOSED, EV_ACCEPTED, EV_SETTLED]
    assert [e.seq for e in seen] == [0, 1, 2]
    assert chain.events.events(name=EV_SETTLED)[0]["winner"] == bob

    unsubscribe()
    chain.call("propose", alice, commit(3), value=STAKE)
    assert len(seen) == 3
    assert len(chain.events) == 4


def test_pot_is_conserved(basic):
    chain, alice, bob, carol = basic
    supply = chain.treasury.total_supply()
    c = commit(0xAAAA)
    chain.call("propose", alice, c, value=STAKE)
    chain.call("accept", bob, c, 0xBBBA, value=STAKE)
    assert chain.treasury.total_supply() == supply
    chain.call("reveal", alice, 0xAAAA)
    assert chain.treasury.total_supply() == supply
    assert chain.balance(carol) == FUNDS


def test_nonce_and_height_advance_only_on_success(basic):
    chain, alice, _, _ = basic
    c = commit(0xAAAA)
    r1 = chain.call("propose", alice, c, value=STAKE)
    with pytest.raises(BetError):
        chain.call("propose", alice, c, value=STAKE)
    r2 = chain.call("propose", alice, commit(1), value=STAKE)

    assert r2.height == r1.height + 1
    assert r1.tx_hash != r2.tx_hash
    assert chain._nonces[alice] == 2


def test_receipt_to_dict_has_canonical_logs(basic):
    chain, alice, _, _ = basic
    c = commit(0xAAAA)
    d = chain.call("propose", alice, c, value=STAKE).to_dict()
    assert d["operation"] == "propose"
    assert d["value"] == STAKE
    assert d["logs"] == [
        {
            "name": "BetProposed",
            "args": [
                {"k": "commitment", "t": "b", "v": "0x" + c.hex()},
                {"k": "stake", "t": "i", "v": STAKE},
            ],
        }
    ]
