from __future__ import annotations

import json
import logging
from typing import Any, List

import pytest
from typer.testing import CliRunner

from betledger.cli import app

runner = CliRunner()

KECCAK_OF_ZERO_WORD = "0x290decd9548b62a8d60345a988386fc84ba6bc95484008f6362f93160ef3e563"


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    root = logging.getLogger("betledger")
    for h in list(root.handlers):
        root.removeHandler(h)
    root.propagate = True
    root.setLevel(logging.NOTSET)


def _invoke(args: List[str]) -> Any:
    return runner.invoke(app, ["--log-level", "WARNING", *args])


def test_commitment_command() -> None:
    result = _invoke(["commitment", "0"])
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == KECCAK_OF_ZERO_WORD

    hexed = _invoke(["commitment", "0x0"])
    assert hexed.stdout.strip() == KECCAK_OF_ZERO_WORD

    sha3 = _invoke(["commitment", "0", "--hash", "sha3_256"])
    assert sha3.exit_code == 0
    assert sha3.stdout.strip() != KECCAK_OF_ZERO_WORD


def test_commitment_rejects_bad_input() -> None:
    assert _invoke(["commitment", "not-a-number"]).exit_code != 0
    assert _invoke(["commitment", "-1"]).exit_code != 0
    assert _invoke(["commitment", "1", "--hash", "md5"]).exit_code != 0


def test_config_command() -> None:
    result = _invoke(["config"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["hash_name"] in ("keccak256", "sha3_256")
    assert data["forfeit_timeout_secs"] > 0


def test_simulate_basic_reveal() -> None:
    result = _invoke(["simulate", "--secret-a", "0xAAAA", "--secret-b", "0xBBBA", "--stake", "10"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["ok"] is True
    assert data["agreedRandom"] == "0x1110"
    assert data["winner"] == "alice"
    assert data["forfeited"] is False
    assert data["payout"] == 20
    assert data["balances"] == {"alice": 20, "bob": 0, "escrow": 0}
    assert [r["operation"] for r in data["receipts"]] == ["propose", "accept", "reveal"]


def test_simulate_two_sided_forfeit() -> None:
    result = _invoke(
        ["simulate", "--variant", "two-sided", "--secret-a", "0xAAAA", "--secret-b", "0xBBBA", "--no-reveal"]
    )
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["winner"] == "bob"
    assert data["forfeited"] is True
    assert data["agreedRandom"] is None
    assert [r["operation"] for r in data["receipts"]] == ["propose", "accept", "reveal_secret", "forfeit"]
    assert data["receipts"][-1]["logs"][0]["name"] == "BetSettled"


def test_simulate_unknown_variant() -> None:
    result = _invoke(["simulate", "--variant", "three-sided"])
    assert result.exit_code != 0
