"""Event records carried through the relay pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional


class EventType(enum.IntEnum):
    """Kind of event held by an envelope."""

    HEARTBEAT = 1
    HTTP_START = 2
    HTTP_STOP = 3
    HTTP_START_STOP = 4
    LOG_MESSAGE = 5
    VALUE_METRIC = 6
    COUNTER_EVENT = 7
    ERROR = 8
    CONTAINER_METRIC = 9


class PeerType(enum.IntEnum):
    """Side of an HTTP exchange that reported the event."""

    CLIENT = 1
    SERVER = 2


@dataclass(frozen=True)
class UUID:
    """A 128-bit identifier split into two 64-bit halves."""

    low: int = 0
    high: int = 0


@dataclass
class HttpStart:
    timestamp: Optional[int] = None
    request_id: Optional[UUID] = None
    peer_type: Optional[PeerType] = None
    method: Optional[str] = None
    uri: Optional[str] = None
    remote_address: Optional[str] = None
    user_agent: Optional[str] = None
    parent_request_id: Optional[UUID] = None
    instance_index: Optional[int] = None
    instance_id: Optional[str] = None


@dataclass
class HttpStop:
    timestamp: Optional[int] = None
    uri: Optional[str] = None
    request_id: Optional[UUID] = None
    peer_type: Optional[PeerType] = None
    status_code: Optional[int] = None
    content_length: Optional[int] = None
    application_id: Optional[UUID] = None


@dataclass
class HttpStartStop:
    start_timestamp: Optional[int] = None
    stop_timestamp: Optional[int] = None
    request_id: Optional[UUID] = None
    peer_type: Optional[PeerType] = None
    method: Optional[str] = None
    uri: Optional[str] = None
    remote_address: Optional[str] = None
    user_agent: Optional[str] = None
    status_code: Optional[int] = None
    content_length: Optional[int] = None
    parent_request_id: Optional[UUID] = None
    application_id: Optional[UUID] = None
    instance_index: Optional[int] = None
    instance_id: Optional[str] = None


@dataclass
class ValueMetric:
    name: Optional[str] = None
    value: Optional[float] = None
    unit: Optional[str] = None


@dataclass
class CounterEvent:
    name: Optional[str] = None
    delta: int = 0
    total: Optional[int] = None


@dataclass
class LogMessage:
    class MessageType(enum.IntEnum):
        OUT = 1
        ERR = 2

    message: Optional[bytes] = None
    message_type: Optional[LogMessage.MessageType] = None
    timestamp: Optional[int] = None
    app_id: Optional[str] = None
    source_type: Optional[str] = None
    source_instance: Optional[str] = None


@dataclass
class Heartbeat:
    sent_count: int = 0
    received_count: int = 0
    error_count: int = 0


_PAYLOAD_FIELDS = {
    EventType.HEARTBEAT: "heartbeat",
    EventType.HTTP_START: "http_start",
    EventType.HTTP_STOP: "http_stop",
    EventType.HTTP_START_STOP: "http_start_stop",
    EventType.LOG_MESSAGE: "log_message",
    EventType.VALUE_METRIC: "value_metric",
    EventType.COUNTER_EVENT: "counter_event",
}


@dataclass
class Envelope:
    """One event together with where and when it came from."""

    origin: Optional[str] = None
    event_type: Optional[EventType] = None
    timestamp: Optional[int] = None
    heartbeat: Optional[Heartbeat] = None
    http_start: Optional[HttpStart] = None
    http_stop: Optional[HttpStop] = None
    http_start_stop: Optional[HttpStartStop] = None
    log_message: Optional[LogMessage] = None
    value_metric: Optional[ValueMetric] = None
    counter_event: Optional[CounterEvent] = None

    @property
    def payload(self) -> Any:
        """The event matching ``event_type``, or None."""
        field_name = _PAYLOAD_FIELDS.get(self.event_type) if self.event_type else None
        return getattr(self, field_name) if field_name else None