"""
Basic commit/reveal bet.

Flow
----
1. propose(commitment)            side A escrows `stake` under commitment = hash(secret_a)
2. accept(commitment, secret_b)   side B matches the stake and supplies its raw secret
3. reveal(secret_a)               side A reveals; agreed = secret_a XOR secret_b,
                                  even pays A, odd pays B, 2 * stake in total
   forfeit(commitment)            if A never reveals, B claims the pot once
                                  `forfeit_timeout_secs` have passed since acceptance

Side B's secret is public from the moment it is accepted, so side A knows the
outcome before revealing. The forfeiture path removes the incentive to simply
walk away from a losing bet. See `two_sided` for the variant that also closes
the frontrunning hole this leaves open.

`reveal` re-derives the commitment from the secret instead of taking it as an
argument: knowing the preimage is what binds the reveal to the proposer.
"""

from __future__ import annotations

from typing import Union

from betledger.errors import (
    AlreadySettled,
    NotAcceptor,
    NotYetAccepted,
    NotYourBet,
    TimeoutNotElapsed,
)
from betledger.runtime.context import CallEnv, to_hex

from . import common
from .outcome import agreed_random, coerce_secret, commitment_for, secret_to_bytes, winner_side
from .records import Settlement, Side
from .store import LedgerState

NAME = "basic"


def propose(state: LedgerState, env: CallEnv, commitment: bytes) -> None:
    common.propose(state, env, commitment)


def accept(state: LedgerState, env: CallEnv, commitment: bytes, secret_b: Union[int, bytes]) -> None:
    """Accept with side B's raw secret (an int, or its 32-byte encoding)."""
    counter = secret_to_bytes(coerce_secret(secret_b))
    common.accept(state, env, commitment, counter)


def reveal(state: LedgerState, env: CallEnv, secret_a: int) -> Settlement:
    secret = coerce_secret(secret_a)
    c = commitment_for(secret, state.config.hash_name)

    bet = state.store.get_proposed(c)
    if bet is None:
        if state.store.is_settled(c):
            raise AlreadySettled("bet already settled", context={"commitment": to_hex(c)})
        # A wrong secret derives a commitment nobody proposed.
        raise NotYourBet("no live bet of yours matches this secret")
    if bet.proposer != env.sender:
        raise NotYourBet("only the proposer can reveal", context={"commitment": to_hex(c)})
    if not bet.accepted:
        raise NotYetAccepted("bet has not been accepted", context={"commitment": to_hex(c)})

    accepted = common.accepted_record(state, c)
    agreed = agreed_random(secret, int.from_bytes(accepted.counter_commitment, "big"))
    return common.settle(
        state, env, c, bet, accepted, winner_side(agreed), forfeited=False, agreed=agreed
    )


def forfeit(state: LedgerState, env: CallEnv, commitment: bytes) -> Settlement:
    """Acceptor claims the whole pot after the proposer failed to reveal in time."""
    c = common.check_commitment(commitment)
    bet = common.live_bet(state, c)
    if not bet.accepted:
        raise NotYetAccepted("bet has not been accepted", context={"commitment": to_hex(c)})

    accepted = common.accepted_record(state, c)
    if env.sender != accepted.acceptor:
        raise NotAcceptor("only the acceptor can claim a forfeit", context={"commitment": to_hex(c)})

    deadline = common.deadline(state, accepted)
    if env.now <= deadline:
        raise TimeoutNotElapsed(
            "reveal window still open", context={"now": env.now, "deadline": deadline}
        )

    return common.settle(state, env, c, bet, accepted, Side.ACCEPTOR, forfeited=True)


ENTRYPOINTS = {
    "propose": propose,
    "accept": accept,
    "reveal": reveal,
    "forfeit": forfeit,
}
PAYABLE = frozenset({"propose", "accept"})

__all__ = ["NAME", "propose", "accept", "reveal", "forfeit", "ENTRYPOINTS", "PAYABLE"]
