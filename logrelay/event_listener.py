"""Receives event datagrams over UDP and queues them for unmarshalling."""

from __future__ import annotations

import logging
import queue
import socket
import threading
from typing import Any, Optional, Protocol

from .instrumentation import Context, Metric

logger = logging.getLogger(__name__)

_MAX_DATAGRAM = 65535
_BUFFER_SIZE = 1024
_POLL_INTERVAL = 0.1


class _Requester(Protocol):
    def start(self, sender_addr: Any, connection: Any) -> None: ...


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"address {address!r} has no port")
    return host.strip("[]"), int(port)


class EventListener:
    """Listens on a UDP address and puts each datagram on ``messages``.

    Every sender is handed to ``requester`` so it can be asked for
    heartbeats. When the listener stops, ``None`` is put on ``messages``.
    """

    def __init__(self, address: str, name: str, requester: _Requester):
        self.host, self.port = _split_address(address)
        self.name = name
        self.requester = requester
        self.messages: queue.Queue[Optional[bytes]] = queue.Queue(maxsize=_BUFFER_SIZE)
        self.listening = threading.Event()
        self.local_address: Optional[tuple] = None
        self._stopped = threading.Event()
        self._lock = threading.Lock()
        self._message_count = 0
        self._byte_count = 0

    def start(self) -> None:
        """Serve until ``stop`` is called."""
        family, kind, proto, _, sockaddr = socket.getaddrinfo(self.host, self.port, type=socket.SOCK_DGRAM)[0]
        try:
            with socket.socket(family, kind, proto) as sock:
                sock.bind(sockaddr)
                sock.settimeout(_POLL_INTERVAL)
                self.local_address = sock.getsockname()[:2]
                logger.info("Listening on port %s:%s", *self.local_address)
                self.listening.set()
                self._serve(sock)
        finally:
            self.messages.put(None)

    def stop(self) -> None:
        self._stopped.set()

    def emit(self) -> Context:
        with self._lock:
            received, byte_count = self._message_count, self._byte_count
        return Context(
            self.name,
            [
                Metric("currentBufferCount", self.messages.qsize()),
                Metric("receivedMessageCount", received),
                Metric("receivedByteCount", byte_count),
            ],
        )

    def _serve(self, sock: socket.socket) -> None:
        while not self._stopped.is_set():
            try:
                data, sender = sock.recvfrom(_MAX_DATAGRAM)
            except socket.timeout:
                continue
            except OSError as err:
                logger.debug("Error while reading. %s", err)
                return
            logger.debug("EventListener: Read %d bytes from address %s", len(data), sender)
            with self._lock:
                self._message_count += 1
                self._byte_count += len(data)
            self.messages.put(data)
            threading.Thread(target=self.requester.start, args=(sender, sock), daemon=True).start()