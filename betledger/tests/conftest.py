from __future__ import annotations

from typing import Tuple

import pytest

from betledger.config import BetConfig
from betledger.contracts.outcome import commitment_for
from betledger.runtime.chain import Chain

STAKE = 10
FUNDS = 100
TIMEOUT = 3_600


def make_config(**overrides) -> BetConfig:
    base = dict(
        forfeit_timeout_secs=TIMEOUT,
        hash_name="keccak256",
        allow_commitment_reuse=False,
        max_balance_bits=256,
        address_len=32,
        log_level="INFO",
        log_format="text",
    )
    base.update(overrides)
    return BetConfig(**base)


def make_chain(variant: str, **overrides) -> Tuple[Chain, bytes, bytes, bytes]:
    chain = Chain(variant, config=make_config(**overrides))
    alice, bob, carol = chain.account("alice"), chain.account("bob"), chain.account("carol")
    for who in (alice, bob, carol):
        chain.fund(who, FUNDS)
    return chain, alice, bob, carol


@pytest.fixture
def config() -> BetConfig:
    return make_config()


@pytest.fixture
def basic():
    """Basic-variant chain with alice, bob and carol funded."""
    return make_chain("basic")


@pytest.fixture
def two_sided():
    """Two-sided-variant chain with alice, bob and carol funded."""
    return make_chain("two-sided")


def commit(secret: int) -> bytes:
    return commitment_for(secret, "keccak256")
