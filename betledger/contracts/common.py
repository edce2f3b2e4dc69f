"""
Transitions shared by both bet variants: Propose, Accept and settlement.

Every function takes the `LedgerState` and the caller's `CallEnv` explicitly.
Guards run before any write; the platform rolls back the call if a later
step fails, so each operation either fully applies or leaves no trace.
"""

from __future__ import annotations

import logging
from typing import Optional

from betledger.errors import (
    AlreadyAccepted,
    AlreadySettled,
    ArithmeticOverflow,
    DuplicateCommitment,
    InvalidArgument,
    NoSuchBet,
    StakeMismatch,
    ZeroStake,
)
from betledger.runtime.context import CallEnv, to_hex
from betledger.runtime.storage_api import StorageError

from .records import AcceptedBet, ProposedBet, Settlement, Side
from .store import LedgerState

log = logging.getLogger(__name__)

# ---- events (canonical names) ----------------------------------------------

EV_PROPOSED = b"BetProposed"
EV_ACCEPTED = b"BetAccepted"
EV_REVEALED = b"SecretRevealed"
EV_SETTLED = b"BetSettled"

COMMITMENT_LEN = 32


# ---- guards ------------------------------------------------------------------


def check_commitment(commitment: bytes) -> bytes:
    if not isinstance(commitment, (bytes, bytearray)):
        raise InvalidArgument("commitment must be bytes", context={"type": type(commitment).__name__})
    if len(commitment) != COMMITMENT_LEN:
        raise InvalidArgument("commitment must be 32 bytes", context={"len": len(commitment)})
    return bytes(commitment)


def live_bet(state: LedgerState, commitment: bytes) -> ProposedBet:
    """Return the live ProposedBet for `commitment` or raise NoSuchBet/AlreadySettled."""
    bet = state.store.get_proposed(commitment)
    if bet is not None:
        return bet
    if state.store.is_settled(commitment):
        raise AlreadySettled("bet already settled", context={"commitment": to_hex(commitment)})
    raise NoSuchBet("no bet for commitment", context={"commitment": to_hex(commitment)})


def accepted_record(state: LedgerState, commitment: bytes) -> AcceptedBet:
    rec = state.store.get_accepted(commitment)
    if rec is None:
        raise StorageError(f"accepted bet {to_hex(commitment)} has no acceptance record")
    return rec


# ---- Propose / Accept -----------------------------------------------------------


def propose(state: LedgerState, env: CallEnv, commitment: bytes) -> None:
    """
    Open a bet under `commitment` = hash(secret_a), escrowing the attached value.

    Emits BetProposed(commitment, stake).
    """
    c = check_commitment(commitment)
    cfg = state.config

    if state.store.get_proposed(c) is not None:
        raise DuplicateCommitment("commitment already has a live bet", context={"commitment": to_hex(c)})
    if not cfg.allow_commitment_reuse and state.store.is_settled(c):
        raise DuplicateCommitment(
            "commitment was used by a settled bet",
            context={"commitment": to_hex(c), "settled_at": state.store.settled_at(c)},
        )

    stake = env.value
    if stake == 0:
        raise ZeroStake("propose requires a non-zero stake")
    if stake > cfg.max_stake:
        raise ArithmeticOverflow(
            "stake too large to double", context={"stake": stake, "max_stake": cfg.max_stake}
        )

    state.store.put_proposed(c, ProposedBet(proposer=env.sender, stake=stake, proposed_at=env.now))
    state.events.emit(EV_PROPOSED, {"commitment": c, "stake": stake})
    log.info("bet proposed", extra={"commitment": c, "stake": stake})


def accept(state: LedgerState, env: CallEnv, commitment: bytes, counter_commitment: bytes) -> None:
    """
    Take the other side of a proposed bet, matching its stake exactly.

    Emits BetAccepted(commitment, proposer) so the proposer can discover the
    acceptance by watching the log.
    """
    c = check_commitment(commitment)
    bet = live_bet(state, c)
    if bet.accepted:
        raise AlreadyAccepted("bet already accepted", context={"commitment": to_hex(c)})
    if env.value != bet.stake:
        raise StakeMismatch(
            "attached value must equal the proposed stake",
            context={"expected": bet.stake, "got": env.value},
        )

    state.store.put_accepted(
        c, AcceptedBet(acceptor=env.sender, accepted_at=env.now, counter_commitment=counter_commitment)
    )
    state.store.put_proposed(c, bet.mark_accepted())
    state.events.emit(EV_ACCEPTED, {"commitment": c, "proposer": bet.proposer})
    log.info("bet accepted", extra={"commitment": c})


# ---- settlement ------------------------------------------------------------------


def deadline(state: LedgerState, accepted: AcceptedBet) -> int:
    """Last timestamp at which forfeiture is still refused."""
    return accepted.accepted_at + state.config.forfeit_timeout_secs


def settle(
    state: LedgerState,
    env: CallEnv,
    commitment: bytes,
    bet: ProposedBet,
    accepted: AcceptedBet,
    side: Side,
    *,
    forfeited: bool,
    agreed: Optional[int] = None,
) -> Settlement:
    """Pay the pooled stake to `side`, emit BetSettled and delete every record."""
    if side is Side.PROPOSER:
        winner, loser = bet.proposer, accepted.acceptor
    else:
        winner, loser = accepted.acceptor, bet.proposer

    payout = bet.stake * 2
    if payout > state.config.max_balance:
        raise ArithmeticOverflow("payout exceeds balance width", context={"payout": payout})

    state.treasury.transfer(state.address, winner, payout)
    state.store.clear(commitment)
    if not state.config.allow_commitment_reuse:
        state.store.mark_settled(commitment, env.now)

    state.events.emit(
        EV_SETTLED,
        {
            "commitment": commitment,
            "winner": winner,
            "loser": loser,
            "stake": bet.stake,
            "forfeited": forfeited,
        },
    )
    log.info(
        "bet settled",
        extra={"commitment": commitment, "winning_side": side.value, "payout": payout, "forfeited": forfeited},
    )
    return Settlement(
        commitment=commitment,
        winner=winner,
        loser=loser,
        winning_side=side,
        stake=bet.stake,
        payout=payout,
        forfeited=forfeited,
        agreed_random=agreed,
    )


__all__ = [
    "EV_PROPOSED",
    "EV_ACCEPTED",
    "EV_REVEALED",
    "EV_SETTLED",
    "check_commitment",
    "live_bet",
    "accepted_record",
    "propose",
    "accept",
    "deadline",
    "settle",
]
