"""Periodically asks event senders for heartbeats until they go quiet."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Hashable

logger = logging.getLogger(__name__)

METRON_ORIGIN = "MET"
_HEARTBEAT_REQUEST = 1


def _varint(number: int) -> bytes:
    number &= (1 << 64) - 1
    out = bytearray()
    while True:
        low = number & 0x7F
        number >>= 7
        if number:
            out.append(low | 0x80)
        else:
            out.append(low)
            return bytes(out)


def _field(number: int, wire_type: int) -> bytes:
    return _varint(number << 3 | wire_type)


def _length_delimited(number: int, payload: bytes) -> bytes:
    return _field(number, 2) + _varint(len(payload)) + payload


def _encode_heartbeat_request(origin: str, identifier: uuid.UUID, timestamp: int) -> bytes:
    raw = identifier.bytes
    low = int.from_bytes(raw[:8], "little")
    high = int.from_bytes(raw[8:], "little")
    identifier_bytes = _field(1, 0) + _varint(low) + _field(2, 0) + _varint(high)
    return (
        _length_delimited(1, origin.encode("utf-8"))
        + _length_delimited(2, identifier_bytes)
        + _field(3, 0)
        + _varint(timestamp)
        + _field(4, 0)
        + _varint(_HEARTBEAT_REQUEST)
    )


def _new_heartbeat_request() -> bytes:
    return _encode_heartbeat_request(METRON_ORIGIN, uuid.uuid4(), time.time_ns())


@dataclass(eq=False)
class _PingTarget:
    stopped: threading.Event = field(default_factory=threading.Event)
    timer: threading.Timer | None = None


class HeartbeatRequester:
    """Sends heartbeat requests to each sender every ``interval`` seconds.

    A sender that is not seen again within five intervals is dropped.
    """

    def __init__(self, interval: float):
        self.interval = interval
        self.timeout = interval * 5
        self._lock = threading.Lock()
        self._targets: dict[Hashable, _PingTarget] = {}

    @property
    def targets(self) -> frozenset:
        """Addresses currently being pinged."""
        with self._lock:
            return frozenset(self._targets)

    def start(self, sender_addr: Hashable, connection: Any) -> None:
        """Ping ``sender_addr`` over ``connection``; blocks until the target is stopped.

        For a sender that is already being pinged, only its timeout is reset.
        """
        with self._lock:
            target = self._targets.get(sender_addr)
            if target is not None:
                self._arm_timer(sender_addr, target)
                return
            target = _PingTarget()
            self._arm_timer(sender_addr, target)
            self._targets[sender_addr] = target

        try:
            while not target.stopped.wait(self.interval):
                try:
                    connection.sendto(_new_heartbeat_request(), sender_addr)
                except OSError as err:
                    logger.debug("failed to send heartbeat request to %s: %s", sender_addr, err)
        finally:
            with self._lock:
                if target.timer is not None:
                    target.timer.cancel()
                if self._targets.get(sender_addr) is target:
                    del self._targets[sender_addr]

    def stop(self, target: Hashable) -> None:
        """Stop pinging ``target``; unknown targets are ignored."""
        with self._lock:
            ping_target = self._targets.get(target)
        if ping_target is not None:
            ping_target.stopped.set()

    def _arm_timer(self, sender_addr: Hashable, target: _PingTarget) -> None:
        if target.timer is not None:
            target.timer.cancel()
        target.timer = threading.Timer(self.timeout, self.stop, args=(sender_addr,))
        target.timer.daemon = True
        target.timer.start()