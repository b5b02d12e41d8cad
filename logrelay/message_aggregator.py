"""Pairs HTTP start and stop events and keeps running counter totals."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import Callable, Iterable, Optional

from .events import CounterEvent, Envelope, EventType, HttpStart, HttpStartStop, HttpStop
from .instrumentation import Context, Metric

logger = logging.getLogger(__name__)

MAX_TTL = 60.0
_UINT64_MASK = (1 << 64) - 1

_METRIC_NAMES = (
    "httpStartReceived",
    "httpStopReceived",
    "httpStartStopEmitted",
    "uncategorizedEvents",
    "httpUnmatchedStartReceived",
    "httpUnmatchedStopReceived",
    "counterEventReceived",
)


class MessageAggregator:
    """Combines matching HTTP start/stop events and totals counter deltas.

    Start events older than ``max_ttl`` seconds without a matching stop are
    discarded and counted as unmatched.
    """

    def __init__(self, max_ttl: float = MAX_TTL, clock: Callable[[], float] = time.monotonic):
        self.max_ttl = max_ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._pending_starts: dict[tuple, tuple[HttpStart, float]] = {}
        self._counter_totals: dict[tuple, int] = {}
        self._counts = dict.fromkeys(_METRIC_NAMES, 0)

    def process(self, envelope: Envelope) -> Optional[Envelope]:
        """Handle one envelope; return what should be passed on, if anything."""
        with self._lock:
            self._expire_orphaned_starts()
            kind = envelope.event_type
            if kind is EventType.HTTP_START:
                self._handle_start(envelope)
                return None
            if kind is EventType.HTTP_STOP:
                return self._handle_stop(envelope)
            if kind is EventType.COUNTER_EVENT:
                return self._handle_counter(envelope)
            self._counts["uncategorizedEvents"] += 1
            logger.debug("passing through message %r", envelope)
            return envelope

    def run(self, inputs: Iterable[Envelope], output: Callable[[Envelope], object]) -> None:
        """Process every envelope from ``inputs``, handing results to ``output``."""
        for envelope in inputs:
            result = self.process(envelope)
            if result is not None:
                output(result)

    def emit(self) -> Context:
        with self._lock:
            metrics = [Metric(name, self._counts[name]) for name in _METRIC_NAMES]
        return Context("MessageAggregator", metrics)

    def _handle_start(self, envelope: Envelope) -> None:
        self._counts["httpStartReceived"] += 1
        logger.debug("handling HTTP start message %r", envelope)
        start = envelope.http_start or HttpStart()
        key = (start.request_id, start.peer_type)
        self._pending_starts[key] = (start, self._clock())

    def _handle_stop(self, envelope: Envelope) -> Optional[Envelope]:
        self._counts["httpStopReceived"] += 1
        logger.debug("handling HTTP stop message %r", envelope)
        stop = envelope.http_stop or HttpStop()
        key = (stop.request_id, stop.peer_type)

        entry = self._pending_starts.pop(key, None)
        if entry is None:
            logger.warning("no matching HTTP start message found for %r", key)
            self._counts["httpUnmatchedStopReceived"] += 1
            return None

        self._counts["httpStartStopEmitted"] += 1
        start = entry[0]
        return Envelope(
            origin=envelope.origin,
            timestamp=stop.timestamp,
            event_type=EventType.HTTP_START_STOP,
            http_start_stop=HttpStartStop(
                start_timestamp=start.timestamp,
                stop_timestamp=stop.timestamp,
                request_id=start.request_id,
                peer_type=start.peer_type,
                method=start.method,
                uri=start.uri,
                remote_address=start.remote_address,
                user_agent=start.user_agent,
                status_code=stop.status_code,
                content_length=stop.content_length,
                parent_request_id=start.parent_request_id,
                application_id=stop.application_id,
                instance_index=start.instance_index,
                instance_id=start.instance_id,
            ),
        )

    def _handle_counter(self, envelope: Envelope) -> Envelope:
        self._counts["counterEventReceived"] += 1
        event = envelope.counter_event or CounterEvent()
        key = (envelope.origin or "", event.name or "")
        total = (self._counter_totals.get(key, 0) + event.delta) & _UINT64_MASK
        self._counter_totals[key] = total
        return replace(envelope, counter_event=replace(event, total=total))

    def _expire_orphaned_starts(self) -> None:
        now = self._clock()
        expired = [key for key, (_, entered) in self._pending_starts.items() if now - entered > self.max_ttl]
        for key in expired:
            self._counts["httpUnmatchedStartReceived"] += 1
            del self._pending_starts[key]