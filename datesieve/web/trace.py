"""
Decision trace for a filtering run.

Every branch the engine takes (provided date accepted, page scraped, fetch
failed, deadline fallback, ...) is recorded as a ``TraceEvent`` so callers and
tests can inspect why an item was kept or dropped without parsing log text.
Events are mirrored to ``logging`` at DEBUG (WARNING for the deadline fallback).
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Event names
PROVIDED = "provided"
SCRAPED = "scraped"
UNKNOWN = "unknown"
FETCH_FAILED = "fetch_failed"
TIMEOUT = "timeout"
RESOLVER_ERROR = "resolver_error"
KEPT = "kept"
DROPPED_OUT_OF_RANGE = "dropped_out_of_range"
DROPPED_UNDATED = "dropped_undated"
WAVE_STARTED = "wave_started"
DEADLINE_FALLBACK = "deadline_fallback"
BATCH_SUMMARY = "batch_summary"

_WARN_EVENTS = {DEADLINE_FALLBACK}


@dataclass
class TraceEvent:
    event: str
    url: Optional[str] = None
    detail: Dict[str, Any] = field(default_factory=dict)
    ts: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class DateTrace:
    """In-memory event sink. Safe to share across threads."""

    def __init__(self, *, log: bool = True) -> None:
        self._events: List[TraceEvent] = []
        self._lock = threading.Lock()
        self._log = log

    def record(self, event: str, url: Optional[str] = None, **detail: Any) -> TraceEvent:
        ev = TraceEvent(event=event, url=url, detail=detail)
        with self._lock:
            self._events.append(ev)
        if self._log:
            level = logging.WARNING if event in _WARN_EVENTS else logging.DEBUG
            logger.log(level, "%s %s %s", event, url or "-", detail or "")
        return ev

    @property
    def events(self) -> List[TraceEvent]:
        with self._lock:
            return list(self._events)

    def of(self, event: str) -> List[TraceEvent]:
        return [e for e in self.events if e.event == event]

    def urls(self, event: str) -> List[str]:
        return [e.url for e in self.of(event) if e.url]

    def counts(self) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for e in self.events:
            out[e.event] = out.get(e.event, 0) + 1
        return out

    def to_list(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self.events]


class NullTrace(DateTrace):
    """Sink that only logs."""

    def record(self, event: str, url: Optional[str] = None, **detail: Any) -> TraceEvent:
        ev = TraceEvent(event=event, url=url, detail=detail)
        level = logging.WARNING if event in _WARN_EVENTS else logging.DEBUG
        logger.log(level, "%s %s %s", event, url or "-", detail or "")
        return ev
