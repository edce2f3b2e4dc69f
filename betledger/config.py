"""
betledger.config — protocol timeouts, hashing choice and numeric caps.

Configuration precedence:
  1) Environment variables (BETLEDGER_*)
  2) Hardcoded safe defaults below

Key env vars (case-insensitive where boolean):
  - BETLEDGER_FORFEIT_TIMEOUT_SECS   (int)    default: 86_400 (one day)
  - BETLEDGER_HASH                   (str)    default: keccak256   (or sha3_256)
  - BETLEDGER_ALLOW_COMMITMENT_REUSE (bool)   default: false
  - BETLEDGER_MAX_BALANCE_BITS       (int)    default: 256
  - BETLEDGER_ADDRESS_LEN            (int)    default: 32
  - BETLEDGER_LOG_LEVEL              (str)    default: INFO
  - BETLEDGER_LOG_FORMAT             (str)    default: text   (or json)

Out-of-range integers are clamped; unparsable values fall back to defaults.

Usage:
    from betledger.config import load_config
    CFG = load_config()
    if now - accepted_at > CFG.forfeit_timeout_secs: ...
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Any, Dict

SUPPORTED_HASHES = ("keccak256", "sha3_256")
LOG_FORMATS = ("text", "json")


# ----------------------------- helpers ---------------------------------------


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "t", "yes", "y", "on")


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_choice(name: str, default: str, choices: tuple) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    return val if val in choices else default


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class BetConfig:
    forfeit_timeout_secs: int
    hash_name: str
    allow_commitment_reuse: bool

    # Platform numeric caps
    max_balance_bits: int
    address_len: int

    # Logging
    log_level: str
    log_format: str

    @property
    def max_balance(self) -> int:
        return (1 << self.max_balance_bits) - 1

    @property
    def max_stake(self) -> int:
        """Largest stake whose doubled payout still fits a balance."""
        return self.max_balance // 2

    def with_overrides(self, **changes: Any) -> "BetConfig":
        return replace(self, **changes)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "forfeit_timeout_secs": self.forfeit_timeout_secs,
            "hash_name": self.hash_name,
            "allow_commitment_reuse": self.allow_commitment_reuse,
            "max_balance_bits": self.max_balance_bits,
            "address_len": self.address_len,
            "max_stake": self.max_stake,
            "log_level": self.log_level,
            "log_format": self.log_format,
        }


@lru_cache(maxsize=1)
def load_config() -> BetConfig:
    """
    Build and cache a BetConfig from environment + safe defaults.
    Call `load_config.cache_clear()` after changing the environment.
    """
    return BetConfig(
        forfeit_timeout_secs=_env_int(
            "BETLEDGER_FORFEIT_TIMEOUT_SECS", 86_400, min_v=1, max_v=365 * 86_400
        ),
        hash_name=_env_choice("BETLEDGER_HASH", "keccak256", SUPPORTED_HASHES),
        allow_commitment_reuse=_env_bool("BETLEDGER_ALLOW_COMMITMENT_REUSE", False),
        max_balance_bits=_env_int("BETLEDGER_MAX_BALANCE_BITS", 256, min_v=64, max_v=256),
        address_len=_env_int("BETLEDGER_ADDRESS_LEN", 32, min_v=20, max_v=64),
        log_level=(os.getenv("BETLEDGER_LOG_LEVEL") or "INFO").strip().upper(),
        log_format=_env_choice("BETLEDGER_LOG_FORMAT", "text", LOG_FORMATS),
    )


__all__ = ["BetConfig", "load_config", "SUPPORTED_HASHES", "LOG_FORMATS"]
