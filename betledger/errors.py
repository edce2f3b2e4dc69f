"""
Bet ledger errors.

Every rejection raised by the betting state machine derives from `BetError`,
a structured exception carrying a machine-readable `code`, a human-readable
`message` and optional `context` fields. Callers can catch `BetError` to handle
all protocol rejections, or the concrete subclasses for granular control.

All of these are precondition failures raised before any state is mutated.
The platform (see betledger.runtime.chain) rolls back anything that happened
during the call, so a rejected operation never leaves a trace.

Supported call patterns:

    NoSuchBet("no bet for commitment")
    NoSuchBet("no bet for commitment", context={"commitment": "0x.."})
    BetError("message", code="custom_code")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


@dataclass
class BetError(Exception):
    """Base class for all bet ledger rejections."""

    code: str
    message: str
    context: Dict[str, Any]

    default_code = "bet_error"

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        object.__setattr__(self, "code", code or type(self).default_code)
        object.__setattr__(self, "message", str(message))
        object.__setattr__(self, "context", dict(context or {}))

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" if self.message else self.code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
        }


# ---------------------------------------------------------------------------
# Propose
# ---------------------------------------------------------------------------


class DuplicateCommitment(BetError):
    """A live (or previously settled) bet already occupies this commitment."""

    default_code = "duplicate_commitment"


class ZeroStake(BetError):
    """Propose was called without attaching any value."""

    default_code = "zero_stake"


class ArithmeticOverflow(BetError):
    """Stake too large: doubling it would not fit the platform balance width."""

    default_code = "arithmetic_overflow"


# ---------------------------------------------------------------------------
# Accept
# ---------------------------------------------------------------------------


class NoSuchBet(BetError):
    default_code = "no_such_bet"


class AlreadySettled(NoSuchBet):
    """
    The commitment reached settlement earlier. A settled bet is no longer
    live, so this is also a `NoSuchBet`.
    """

    default_code = "already_settled"


class AlreadyAccepted(BetError):
    default_code = "already_accepted"


class StakeMismatch(BetError):
    default_code = "stake_mismatch"


# ---------------------------------------------------------------------------
# Reveal / Forfeit
# ---------------------------------------------------------------------------


class NotYourBet(BetError):
    """Caller is not a participant, or the revealed secret binds to no bet of theirs."""

    default_code = "not_your_bet"


class NotYetAccepted(BetError):
    default_code = "not_yet_accepted"


class NotAcceptor(BetError):
    default_code = "not_acceptor"


class TimeoutNotElapsed(BetError):
    default_code = "timeout_not_elapsed"


class CommitmentMismatch(BetError):
    """Revealed secret does not hash to the caller's stored commitment."""

    default_code = "commitment_mismatch"


class AlreadyRevealed(BetError):
    default_code = "already_revealed"


class RevealRequired(BetError):
    """Forfeiture in the two-sided variant is only open to a side that revealed."""

    default_code = "reveal_required"


# ---------------------------------------------------------------------------
# Call envelope
# ---------------------------------------------------------------------------


class NonPayable(BetError):
    """Value was attached to an operation that does not accept funds."""

    default_code = "non_payable"


class InvalidArgument(BetError):
    default_code = "invalid_argument"


class UnknownOperation(BetError):
    default_code = "unknown_operation"


__all__ = [
    "BetError",
    "DuplicateCommitment",
    "ZeroStake",
    "ArithmeticOverflow",
    "NoSuchBet",
    "AlreadySettled",
    "AlreadyAccepted",
    "StakeMismatch",
    "NotYourBet",
    "NotYetAccepted",
    "NotAcceptor",
    "TimeoutNotElapsed",
    "CommitmentMismatch",
    "AlreadyRevealed",
    "RevealRequired",
    "NonPayable",
    "InvalidArgument",
    "UnknownOperation",
]
