"""
betledger.logging
-----------------

Structured logging for the bet ledger and its platform simulator.

Modules log through plain `logging.getLogger(__name__)`. This module owns the
handler and formatter on the `betledger` logger tree, and a small set of
context fields (trace_id, component, sender, commitment) kept in a
`contextvars.ContextVar` so every line written during a call carries them.

    from betledger import logging as blog

    blog.configure(json=True, level="INFO")
    with blog.trace_scope():
        blog.bind(commitment=c)
        log.info("bet proposed", extra={"stake": 10})

Bytes are rendered as 0x-hex, dataclasses as dicts.
"""

from __future__ import annotations

import json as _json
import logging
import os
import sys
import traceback
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from typing import IO, Any, Dict, Iterator, Optional, Union

ROOT_LOGGER = "betledger"

# Printed first, in this order, by the text formatter.
DEFAULT_CONTEXT_KEYS = ("trace_id", "component", "commitment", "sender")

_fields: ContextVar[Dict[str, Any]] = ContextVar("betledger_log_fields", default={})

# Attributes every LogRecord carries; anything else on a record came from `extra=`.
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime", "taskName"}


def _plain(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    if is_dataclass(v) and not isinstance(v, type):
        return {k: _plain(x) for k, x in asdict(v).items()}
    if v is None or isinstance(v, (bool, int, float, str, list, dict)):
        return v
    return str(v)


# ---- context fields ----------------------------------------------------------


def context() -> Dict[str, Any]:
    """Copy of the fields bound in the current context."""
    return dict(_fields.get())


def bind(**fields: Any) -> None:
    _fields.set({**_fields.get(), **{k: _plain(v) for k, v in fields.items()}})


def unbind(*keys: str) -> None:
    _fields.set({k: v for k, v in _fields.get().items() if k not in keys})


def clear_context() -> None:
    _fields.set({})


def short_uuid() -> str:
    return uuid.uuid4().hex[:12]


@contextmanager
def trace_scope(trace_id: Optional[str] = None) -> Iterator[str]:
    """Bind a trace_id (fresh unless given) and restore the previous fields on exit."""
    token = _fields.set(dict(_fields.get()))
    tid = trace_id or short_uuid()
    bind(trace_id=tid)
    try:
        yield tid
    finally:
        _fields.reset(token)


# ---- formatters ----------------------------------------------------------------


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def _record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: _plain(v)
        for k, v in vars(record).items()
        if k not in _RESERVED and not k.startswith("_")
    }


def _exc_text(record: logging.LogRecord) -> str:
    return "".join(traceback.format_exception(*record.exc_info)).rstrip()


class JSONFormatter(logging.Formatter):
    """One JSON object per line; bound fields win over same-named extras."""

    def format(self, record: logging.LogRecord) -> str:
        out: Dict[str, Any] = {
            "ts": _now(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        out.update(context())
        for k, v in _record_extras(record).items():
            out.setdefault(k, v)
        if record.exc_info:
            out["err"] = _exc_text(record)
        return _json.dumps(out, default=str, separators=(",", ":"))


class TextFormatter(logging.Formatter):
    """
    2026-01-05T12:34:56.789+00:00 | INFO  | betledger.contracts.common | trace_id=ab12.. component=basic stake=10 | bet proposed
    """

    def format(self, record: logging.LogRecord) -> str:
        ctx = context()
        pairs = [f"{k}={ctx[k]}" for k in DEFAULT_CONTEXT_KEYS if ctx.get(k) is not None]
        pairs += [f"{k}={v}" for k, v in _record_extras(record).items() if k not in ctx]

        parts = [_now(), f"{record.levelname:<5}", record.name]
        if pairs:
            parts.append(" ".join(pairs))
        parts.append(record.getMessage())
        line = " | ".join(parts)
        if record.exc_info:
            line += "\n" + _exc_text(record)
        return line


# ---- setup -----------------------------------------------------------------------


def configure(
    *,
    json: Optional[bool] = None,
    level: Union[str, int] = "INFO",
    stream: Optional[IO[str]] = None,
) -> None:
    """
    Install a single console handler on the `betledger` logger.

    `json=None` defers to BETLEDGER_LOG_FORMAT (json|text, default text).
    `stream` defaults to whatever sys.stderr is at call time. Calling again
    replaces the previous handler.
    """
    if json is None:
        json = os.environ.get("BETLEDGER_LOG_FORMAT", "").strip().lower() == "json"

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if json else TextFormatter())

    root = logging.getLogger(ROOT_LOGGER)
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)
    root.setLevel(_level(level))
    root.propagate = False


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or ROOT_LOGGER)


def _level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else logging.INFO


__all__ = [
    "context",
    "bind",
    "unbind",
    "clear_context",
    "trace_scope",
    "short_uuid",
    "JSONFormatter",
    "TextFormatter",
    "configure",
    "get_logger",
]
