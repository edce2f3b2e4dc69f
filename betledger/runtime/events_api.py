"""
betledger.runtime.events_api — append-only notification log.

Events are the only caller-facing notification channel: a proposer cannot be
pushed a message when their bet is accepted, so interested parties poll or
subscribe to this log. The contract is "exactly one notification per
successful transition"; delivery to specific recipients is not modelled.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

MAX_EVENT_NAME_BYTES = 64
MAX_KEY_LEN = 64
MAX_BYTES_LEN = 4096
MAX_INT_BITS = 256

# Keys must be identifier-like: letters/underscore, then letters/digits/underscore.
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class EventError(Exception):
    """Invalid event name or argument."""


@dataclass(frozen=True)
class Event:
    """In-ledger representation of an emitted event."""

    name: bytes
    args: Dict[str, Any]
    seq: int

    def __getitem__(self, key: str) -> Any:
        return self.args[key]


@dataclass(frozen=True)
class CanonicalEvent:
    """
    Canonical event representation for receipts:

        name: event name decoded as ASCII
        args: sequence of {"k", "t", "v"} dicts
              t="b" => bytes encoded as 0x-prefixed hex
              t="i" => integer
              t="z" => boolean
    """

    name: str
    args: Sequence[Mapping[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "args": [dict(a) for a in self.args]}


Subscriber = Callable[[Event], None]


def _check_name(name: Any) -> bytes:
    if not isinstance(name, (bytes, bytearray)):
        raise EventError("event name must be bytes")
    b = bytes(name)
    if not b:
        raise EventError("event name must be non-empty")
    if len(b) > MAX_EVENT_NAME_BYTES:
        raise EventError("event name too long")
    return b


def _check_key(key: Any) -> str:
    if not isinstance(key, str) or not key:
        raise EventError("event key must be a non-empty str")
    if len(key) > MAX_KEY_LEN or not _KEY_RE.match(key):
        raise EventError(f"invalid event key {key!r}")
    return key


def _check_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        b = bytes(value)
        if len(b) > MAX_BYTES_LEN:
            raise EventError("event bytes arg too long")
        return b
    # bool is a subclass of int, so check it before int.
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value < 0 or value.bit_length() > MAX_INT_BITS:
            raise EventError("event int arg out of range")
        return value
    raise EventError(f"unsupported event arg type {type(value).__name__}")


def _canonical(ev: Event) -> CanonicalEvent:
    enc: List[Dict[str, Any]] = []
    for k, v in ev.args.items():
        if isinstance(v, bytes):
            enc.append({"k": k, "t": "b", "v": "0x" + v.hex()})
        elif isinstance(v, bool):
            enc.append({"k": k, "t": "z", "v": v})
        else:
            enc.append({"k": k, "t": "i", "v": int(v)})
    return CanonicalEvent(name=ev.name.decode("ascii", errors="replace"), args=tuple(enc))


class EventLog:
    def __init__(self) -> None:
        self._events: List[Event] = []
        self._subscribers: List[Subscriber] = []
        self._mark: Optional[int] = None
        self._lock = threading.RLock()

    def emit(self, name: bytes, args: Mapping[str, Any]) -> Event:
        bname = _check_name(name)
        if not isinstance(args, Mapping):
            raise EventError("event args must be a mapping")
        checked = {_check_key(k): _check_value(v) for k, v in args.items()}
        with self._lock:
            ev = Event(bname, checked, len(self._events))
            self._events.append(ev)
        return ev

    def subscribe(self, fn: Subscriber) -> Callable[[], None]:
        """
        Register `fn` to be called for each event once its call commits.
        Returns an unsubscribe callable.
        """
        with self._lock:
            self._subscribers.append(fn)

        def _unsubscribe() -> None:
            with self._lock:
                if fn in self._subscribers:
                    self._subscribers.remove(fn)

        return _unsubscribe

    def events(self, name: Optional[bytes] = None, since: int = 0) -> List[Event]:
        """Poll the log: every event from sequence `since`, optionally filtered by name."""
        with self._lock:
            return [e for e in self._events[since:] if name is None or e.name == name]

    def for_receipt(self, events: Sequence[Event]) -> List[CanonicalEvent]:
        return [_canonical(e) for e in events]

    def __len__(self) -> int:
        return len(self._events)

    # --- journal ---

    def begin(self) -> None:
        with self._lock:
            if self._mark is not None:
                raise EventError("event journal already open")
            self._mark = len(self._events)

    def commit(self) -> List[Event]:
        """Close the journal and deliver the committed events to subscribers."""
        with self._lock:
            if self._mark is None:
                raise EventError("no open event journal")
            committed = self._events[self._mark:]
            self._mark = None
            subscribers = list(self._subscribers)
        for ev in committed:
            for fn in subscribers:
                fn(ev)
        return committed

    def rollback(self) -> None:
        with self._lock:
            if self._mark is None:
                raise EventError("no open event journal")
            del self._events[self._mark:]
            self._mark = None


__all__ = [
    "EventError",
    "Event",
    "CanonicalEvent",
    "EventLog",
    "MAX_EVENT_NAME_BYTES",
    "MAX_KEY_LEN",
    "MAX_BYTES_LEN",
    "MAX_INT_BITS",
]
