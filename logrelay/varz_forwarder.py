"""Keeps the latest metric values per origin for the varz endpoint."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from .events import Envelope, EventType
from .instrumentation import Context, Metric

logger = logging.getLogger(__name__)

_STATUS_BUCKETS = (
    (100, 200, "responseCount1XX"),
    (200, 300, "responseCount2XX"),
    (300, 400, "responseCount3XX"),
    (400, 500, "responseCount4XX"),
    (500, 600, "responseCount5XX"),
)


@dataclass
class _OriginMetrics:
    values: dict[str, float] = field(default_factory=dict)
    timer: Optional[threading.Timer] = None
    token: object = None

    def record(self, envelope: Envelope) -> None:
        kind = envelope.event_type
        if kind is EventType.VALUE_METRIC and envelope.value_metric is not None:
            metric = envelope.value_metric
            self.values[metric.name or ""] = metric.value if metric.value is not None else 0.0
        elif kind is EventType.COUNTER_EVENT and envelope.counter_event is not None:
            counter = envelope.counter_event
            name = counter.name or ""
            self.values[name] = self.values.get(name, 0.0) + float(counter.delta)
        elif kind is EventType.HTTP_START_STOP:
            self._add("requestCount")
            start_stop = envelope.http_start_stop
            status = (start_stop.status_code if start_stop else None) or 0
            for low, high, name in _STATUS_BUCKETS:
                if low <= status < high:
                    self._add(name)
                    break

    def _add(self, name: str) -> None:
        self.values[name] = self.values.get(name, 0.0) + 1


class VarzForwarder:
    """Tracks metric values per origin and forgets an origin after ``ttl`` seconds of silence."""

    def __init__(self, component_name: str, ttl: float):
        self.component_name = component_name
        self.ttl = ttl
        self._lock = threading.RLock()
        self._by_origin: dict[str, _OriginMetrics] = {}

    def process(self, envelope: Envelope) -> Envelope:
        """Record ``envelope`` and return it unchanged for passing on."""
        origin = envelope.origin or ""
        with self._lock:
            entry = self._by_origin.get(origin)
            if entry is None:
                logger.debug("creating metrics for origin %s", origin)
                entry = self._by_origin[origin] = _OriginMetrics()
            entry.record(envelope)
            self._schedule_expiry(origin, entry)
        return envelope

    def run(self, inputs: Iterable[Envelope], output: Callable[[Envelope], object]) -> None:
        """Record every envelope from ``inputs`` and hand each on to ``output``."""
        for envelope in inputs:
            output(self.process(envelope))

    def emit(self) -> Context:
        with self._lock:
            metrics = [
                Metric(f"{origin}.{name}", value, {"component": self.component_name})
                for origin, entry in self._by_origin.items()
                for name, value in entry.values.items()
            ]
        return Context("forwarder", metrics)

    def close(self) -> None:
        """Cancel every pending expiry timer."""
        with self._lock:
            for entry in self._by_origin.values():
                if entry.timer is not None:
                    entry.timer.cancel()
                    entry.timer = None

    def _schedule_expiry(self, origin: str, entry: _OriginMetrics) -> None:
        if entry.timer is not None:
            entry.timer.cancel()
        token = object()
        entry.token = token
        entry.timer = threading.Timer(self.ttl, self._expire, args=(origin, entry, token))
        entry.timer.daemon = True
        entry.timer.start()

    def _expire(self, origin: str, entry: _OriginMetrics, token: object) -> None:
        with self._lock:
            if self._by_origin.get(origin) is entry and entry.token is token:
                logger.debug("deleting metrics for origin %s", origin)
                del self._by_origin[origin]