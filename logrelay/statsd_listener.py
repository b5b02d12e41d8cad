"""Receives statsd lines over UDP and turns them into value metrics."""

from __future__ import annotations

import logging
import math
import re
import socket
import threading
import time
from typing import Callable, Iterator, Optional

from .events import Envelope, EventType, ValueMetric

logger = logging.getLogger(__name__)

_STATSD_PATTERN = re.compile(
    r"([^.]+)\.([^:]+):([+-]?)(\d+(\.\d+)?)\|(ms|g|c)(\|@(\d+(\.\d+)?))?",
    re.ASCII,
)
_MAX_DATAGRAM = 65535
_POLL_INTERVAL = 0.1


class StatsdParseError(ValueError):
    """A line is not a valid statsd stat."""


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"address {address!r} has no port")
    return host.strip("[]"), int(port)


def _lines(data: bytes) -> Iterator[str]:
    parts = data.split(b"\n")
    if parts and parts[-1] == b"":
        parts.pop()
    for part in parts:
        if part.endswith(b"\r"):
            part = part[:-1]
        yield part.decode("utf-8", errors="replace")


def _divide(value: float, rate: float) -> float:
    if rate == 0:
        return math.nan if value == 0 else math.inf
    return value / rate


class StatsdListener:
    """Listens for statsd datagrams and emits one envelope per valid line.

    Gauge and counter state is kept per ``origin.name`` so that signed
    values adjust the previous value.
    """

    def __init__(self, address: str, name: str = "statsdListener", clock: Callable[[], int] = time.time_ns):
        self.host, self.port = _split_address(address)
        self.name = name
        self._clock = clock
        self._stopped = threading.Event()
        self.listening = threading.Event()
        self.local_address: Optional[tuple] = None
        self._gauges: dict[str, float] = {}
        self._counters: dict[str, float] = {}

    def run(self, output: Callable[[Envelope], object]) -> None:
        """Serve until ``stop`` is called, passing each envelope to ``output``."""
        family, kind, proto, _, sockaddr = socket.getaddrinfo(self.host, self.port, type=socket.SOCK_DGRAM)[0]
        with socket.socket(family, kind, proto) as sock:
            sock.bind(sockaddr)
            sock.settimeout(_POLL_INTERVAL)
            self.local_address = sock.getsockname()[:2]
            logger.info("Listening for statsd on host %s:%s", *self.local_address)
            self.listening.set()

            while not self._stopped.is_set():
                try:
                    data, sender = sock.recvfrom(_MAX_DATAGRAM)
                except socket.timeout:
                    continue
                except OSError as err:
                    logger.debug("Error while reading. %s", err)
                    return
                logger.debug("StatsdListener: Read %d bytes from address %s", len(data), sender)
                for line in _lines(data):
                    try:
                        envelope = self.parse_stat(line)
                    except StatsdParseError as err:
                        logger.warning('Error parsing stat line "%s": %s', line, err)
                        continue
                    output(envelope)

    def stop(self) -> None:
        self._stopped.set()

    def parse_stat(self, data: str) -> Envelope:
        """Turn one statsd line into a value-metric envelope."""
        match = _STATSD_PATTERN.search(data)
        if match is None:
            raise StatsdParseError(f"Input line '{data}' was not a valid statsd line.")

        origin, name, sign, value_text = match.group(1, 2, 3, 4)
        stat_type = match.group(6)
        rate_text = match.group(8)

        sample_rate = float(rate_text) if rate_text else 1.0
        value = _divide(float(value_text), sample_rate)

        if stat_type == "ms":
            unit = "ms"
        elif stat_type == "c":
            unit = "counter"
            value = self._counter_value(origin, name, value, sign)
        else:
            unit = "gauge"
            value = self._gauge_value(origin, name, value, sign)

        return Envelope(
            origin=origin,
            timestamp=self._clock(),
            event_type=EventType.VALUE_METRIC,
            value_metric=ValueMetric(name=name, value=value, unit=unit),
        )

    def _counter_value(self, origin: str, name: str, value: float, sign: str) -> float:
        key = f"{origin}.{name}"
        old = self._counters.get(key, 0.0)
        new = old - value if sign == "-" else old + value
        self._counters[key] = new
        return new

    def _gauge_value(self, origin: str, name: str, value: float, sign: str) -> float:
        key = f"{origin}.{name}"
        old = self._gauges.get(key, 0.0)
        if sign == "+":
            new = old + value
        elif sign == "-":
            new = old - value
        else:
            new = value
        self._gauges[key] = new
        return new