from __future__ import annotations

import pytest

from betledger.contracts.outcome import (
    MAX_SECRET,
    agreed_random,
    check_secret,
    coerce_secret,
    commitment_for,
    random_secret,
    secret_to_bytes,
    winner_side,
)
from betledger.contracts.records import Side
from betledger.errors import InvalidArgument

KECCAK_OF_ZERO_WORD = bytes.fromhex(
    "290decd9548b62a8d60345a988386fc84ba6bc95484008f6362f93160ef3e563"
)

PAIRS = [(0, 0), (1, 0), (0xAAAA, 0xBBBB), (0xAAAA, 0xBBBA), (MAX_SECRET, 1), (MAX_SECRET, MAX_SECRET)]


def test_commitment_of_zero_matches_known_keccak():
    assert commitment_for(0) == KECCAK_OF_ZERO_WORD
    assert commitment_for(0, "sha3_256") != KECCAK_OF_ZERO_WORD
    assert len(commitment_for(MAX_SECRET, "sha3_256")) == 32


def test_distinct_secrets_distinct_commitments():
    assert commitment_for(0xAAAA) != commitment_for(0xAAAB)


@pytest.mark.parametrize("a,b", PAIRS)
def test_outcome_is_symmetric_in_the_secrets(a, b):
    assert agreed_random(a, b) == agreed_random(b, a)
    assert winner_side(agreed_random(a, b)) is winner_side(agreed_random(b, a))


@pytest.mark.parametrize("x", [0, 1, 0xAAAA, MAX_SECRET])
def test_same_secret_twice_pays_proposer(x):
    assert agreed_random(x, x) == 0
    assert winner_side(agreed_random(x, x)) is Side.PROPOSER


def test_parity_rule():
    assert agreed_random(0xAAAA, 0xBBBB) == 0x1111
    assert winner_side(0x1111) is Side.ACCEPTOR
    assert agreed_random(0xAAAA, 0xBBBA) == 0x1110
    assert winner_side(0x1110) is Side.PROPOSER


@pytest.mark.parametrize("bad", [-1, MAX_SECRET + 1, True, "1", 1.0])
def test_bad_secrets_are_rejected(bad):
    with pytest.raises(InvalidArgument):
        check_secret(bad)


def test_coerce_secret_accepts_int_or_word():
    assert coerce_secret(0xAAAA) == 0xAAAA
    assert coerce_secret(secret_to_bytes(0xAAAA)) == 0xAAAA
    with pytest.raises(InvalidArgument):
        coerce_secret(b"\xaa\xaa")


def test_random_secret_fits():
    for _ in range(8):
        assert 0 <= random_secret() <= MAX_SECRET
