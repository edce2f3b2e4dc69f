"""
betledger - command-line helpers for the commit/reveal bet ledger.

Commands:
  commitment SECRET        print hash(secret) for use as a Propose/Accept commitment
  simulate                 run a full bet on an in-memory chain and print the result
  config                   print the effective configuration

Examples:
  betledger commitment 0xAAAA
  betledger simulate --secret-a 0xAAAA --secret-b 0xBBBB --stake 10
  betledger simulate --variant two-sided --no-reveal
  BETLEDGER_HASH=sha3_256 betledger config
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import typer

from betledger import logging as blog
from betledger.config import SUPPORTED_HASHES, load_config
from betledger.contracts import CONTRACTS
from betledger.contracts.outcome import MAX_SECRET, agreed_random, commitment_for, random_secret
from betledger.errors import BetError
from betledger.runtime.chain import Chain, Receipt
from betledger.runtime.context import to_hex

app = typer.Typer(
    name="betledger",
    help="Two-party commit/reveal betting on a deterministic ledger",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level", envvar="BETLEDGER_LOG_LEVEL"
    ),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON"),
) -> None:
    cfg = load_config()
    blog.configure(json=json_logs or cfg.log_format == "json", level=log_level or cfg.log_level)


def _parse_secret(raw: Optional[str], name: str) -> int:
    if raw is None:
        return random_secret()
    try:
        value = int(raw, 0)
    except ValueError:
        raise typer.BadParameter(f"{raw!r} is not an integer (decimal or 0x-hex)", param_hint=name) from None
    if not 0 <= value <= MAX_SECRET:
        raise typer.BadParameter("secret must fit 256 bits unsigned", param_hint=name)
    return value


def _echo_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=True))


@app.command()
def commitment(
    secret: str = typer.Argument(..., help="Secret as decimal or 0x-hex integer"),
    hash_name: Optional[str] = typer.Option(
        None, "--hash", help=f"Hash function ({', '.join(SUPPORTED_HASHES)})"
    ),
) -> None:
    """Print the commitment for SECRET."""
    name = hash_name or load_config().hash_name
    if name not in SUPPORTED_HASHES:
        raise typer.BadParameter(f"unsupported hash {name!r}", param_hint="--hash")
    typer.echo(to_hex(commitment_for(_parse_secret(secret, "SECRET"), name)))


@app.command()
def config() -> None:
    """Print the effective configuration as JSON."""
    _echo_json(load_config().as_dict())


@app.command()
def simulate(
    variant: str = typer.Option("basic", "--variant", help=f"Bet variant ({', '.join(CONTRACTS)})"),
    secret_a: Optional[str] = typer.Option(None, "--secret-a", help="Proposer secret; random if omitted"),
    secret_b: Optional[str] = typer.Option(None, "--secret-b", help="Acceptor secret; random if omitted"),
    stake: int = typer.Option(10, "--stake", min=1, help="Stake each side escrows"),
    no_reveal: bool = typer.Option(
        False, "--no-reveal", help="Withhold the proposer's reveal and settle by forfeiture"
    ),
) -> None:
    """Run one bet end to end on an in-memory chain."""
    if variant not in CONTRACTS:
        raise typer.BadParameter(f"unknown variant {variant!r}", param_hint="--variant")
    a = _parse_secret(secret_a, "--secret-a")
    b = _parse_secret(secret_b, "--secret-b")

    chain = Chain(variant)
    cfg = chain.config
    alice, bob = chain.account("alice"), chain.account("bob")
    chain.fund(alice, stake)
    chain.fund(bob, stake)
    c = commitment_for(a, cfg.hash_name)

    receipts: List[Receipt] = []
    try:
        receipts.append(chain.call("propose", alice, c, value=stake))
        if variant == "basic":
            receipts.append(chain.call("accept", bob, c, b, value=stake))
            if no_reveal:
                chain.advance(seconds=cfg.forfeit_timeout_secs + 1)
                receipts.append(chain.call("forfeit", bob, c))
            else:
                receipts.append(chain.call("reveal", alice, a))
        else:
            receipts.append(chain.call("accept", bob, c, commitment_for(b, cfg.hash_name), value=stake))
            receipts.append(chain.call("reveal_secret", bob, c, b))
            if no_reveal:
                chain.advance(seconds=cfg.forfeit_timeout_secs + 1)
                receipts.append(chain.call("forfeit", bob, c))
            else:
                receipts.append(chain.call("reveal_secret", alice, c, a))
    except BetError as exc:
        _echo_json({"ok": False, "error": exc.to_dict()})
        raise typer.Exit(code=1)

    settlement = receipts[-1].return_value
    names = {alice: "alice", bob: "bob"}
    result: Dict[str, Any] = {
        "ok": True,
        "variant": variant,
        "commitment": to_hex(c),
        "agreedRandom": None if no_reveal else hex(agreed_random(a, b)),
        "winner": names[settlement.winner],
        "forfeited": settlement.forfeited,
        "payout": settlement.payout,
        "balances": {"alice": chain.balance(alice), "bob": chain.balance(bob), "escrow": chain.escrow_balance()},
        "receipts": [r.to_dict() for r in receipts],
    }
    _echo_json(result)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
