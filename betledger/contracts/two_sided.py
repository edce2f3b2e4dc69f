"""
Two-sided commit/reveal bet (frontrunning resistant).

In the basic variant side B publishes its raw secret when accepting. A
proposer watching pending transactions could then compute the outcome and
race a better-priced Accept of their own into the pool. Here side B only
publishes hash(secret_b), so nobody knows the outcome until both reveal.

Flow
----
1. propose(commitment)                      side A: commitment = hash(secret_a)
2. accept(commitment, counter_commitment)   side B: counter_commitment = hash(secret_b)
3. reveal_secret(commitment, secret)        either side, any order. The first
                                            reveal is recorded; the second settles.
4. forfeit(commitment)                      a side that revealed claims the pot once
                                            `forfeit_timeout_secs` passed since
                                            acceptance without the other side revealing.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Union

from betledger.errors import (
    AlreadyRevealed,
    CommitmentMismatch,
    NotYetAccepted,
    NotYourBet,
    RevealRequired,
    TimeoutNotElapsed,
)
from betledger.runtime.context import CallEnv, to_hex

from . import common
from .outcome import agreed_random, coerce_secret, commitment_for, winner_side
from .records import AcceptedBet, ProposedBet, RevealedSecrets, Settlement, Side
from .store import LedgerState

log = logging.getLogger(__name__)

NAME = "two-sided"


def _caller_sides(env: CallEnv, bet: ProposedBet, accepted: AcceptedBet) -> List[Side]:
    sides = []
    if env.sender == bet.proposer:
        sides.append(Side.PROPOSER)
    if env.sender == accepted.acceptor:
        sides.append(Side.ACCEPTOR)
    return sides


def _accepted_bet(state: LedgerState, env: CallEnv, c: bytes):
    bet = common.live_bet(state, c)
    if not bet.accepted:
        if env.sender == bet.proposer:
            raise NotYetAccepted("bet has not been accepted", context={"commitment": to_hex(c)})
        raise NotYourBet("caller is not a participant", context={"commitment": to_hex(c)})
    accepted = common.accepted_record(state, c)
    sides = _caller_sides(env, bet, accepted)
    if not sides:
        raise NotYourBet("caller is not a participant", context={"commitment": to_hex(c)})
    return bet, accepted, sides


def propose(state: LedgerState, env: CallEnv, commitment: bytes) -> None:
    common.propose(state, env, commitment)


def accept(state: LedgerState, env: CallEnv, commitment: bytes, counter_commitment: bytes) -> None:
    """Accept with hash(secret_b); the secret itself stays private until reveal."""
    counter = common.check_commitment(counter_commitment)
    common.accept(state, env, commitment, counter)


def reveal_secret(
    state: LedgerState, env: CallEnv, commitment: bytes, secret: Union[int, bytes]
) -> Optional[Settlement]:
    """
    Record the caller's secret. Returns the Settlement when this reveal is the
    second one, None otherwise.
    """
    c = common.check_commitment(commitment)
    s = coerce_secret(secret)
    bet, accepted, sides = _accepted_bet(state, env, c)

    expected = {Side.PROPOSER: c, Side.ACCEPTOR: accepted.counter_commitment}
    digest = commitment_for(s, state.config.hash_name)
    matching = [side for side in sides if expected[side] == digest]
    if not matching:
        raise CommitmentMismatch(
            "secret does not match the caller's commitment",
            context={"commitment": to_hex(c), "got": to_hex(digest)},
        )

    reveals = state.store.get_reveals(c) or RevealedSecrets()
    pending = [side for side in matching if reveals.secret(side) is None]
    if not pending:
        raise AlreadyRevealed("secret already revealed", context={"commitment": to_hex(c)})
    side = pending[0]

    reveals = reveals.with_secret(side, s)
    if not reveals.complete:
        state.store.put_reveals(c, reveals)
        state.events.emit(
            common.EV_REVEALED,
            {"commitment": c, "revealer": env.sender, "proposer_side": side is Side.PROPOSER},
        )
        log.info("secret revealed", extra={"commitment": c, "side": side.value})
        return None

    agreed = agreed_random(reveals.secret_a, reveals.secret_b)
    return common.settle(
        state, env, c, bet, accepted, winner_side(agreed), forfeited=False, agreed=agreed
    )


def forfeit(state: LedgerState, env: CallEnv, commitment: bytes) -> Settlement:
    """
    Symmetric forfeiture: whichever side revealed is owed the pot once the
    window after acceptance closes without the other side revealing.
    """
    c = common.check_commitment(commitment)
    bet, accepted, sides = _accepted_bet(state, env, c)

    reveals = state.store.get_reveals(c) or RevealedSecrets()
    owed = [side for side in sides if reveals.secret(side) is not None and reveals.secret(side.other) is None]
    if not owed:
        raise RevealRequired(
            "only a side that revealed can claim a forfeit", context={"commitment": to_hex(c)}
        )

    deadline = common.deadline(state, accepted)
    if env.now <= deadline:
        raise TimeoutNotElapsed(
            "reveal window still open", context={"now": env.now, "deadline": deadline}
        )

    return common.settle(state, env, c, bet, accepted, owed[0], forfeited=True)


ENTRYPOINTS = {
    "propose": propose,
    "accept": accept,
    "reveal_secret": reveal_secret,
    "forfeit": forfeit,
}
PAYABLE = frozenset({"propose", "accept"})

__all__ = ["NAME", "propose", "accept", "reveal_secret", "forfeit", "ENTRYPOINTS", "PAYABLE"]
