import pytest

from logrelay.events import (
    CounterEvent,
    Envelope,
    EventType,
    Heartbeat,
    HttpStart,
    HttpStartStop,
    HttpStop,
    LogMessage,
    ValueMetric,
    UUID,
)


@pytest.mark.parametrize(
    "event_type, field_name, event",
    [
        (EventType.HEARTBEAT, "heartbeat", Heartbeat(1, 2, 3)),
        (EventType.HTTP_START, "http_start", HttpStart(timestamp=1)),
        (EventType.HTTP_STOP, "http_stop", HttpStop(timestamp=100)),
        (EventType.HTTP_START_STOP, "http_start_stop", HttpStartStop(status_code=103)),
        (EventType.LOG_MESSAGE, "log_message", LogMessage(message=b"\x04\x05\x06")),
        (EventType.VALUE_METRIC, "value_metric", ValueMetric(name="metric", value=1.0)),
        (EventType.COUNTER_EVENT, "counter_event", CounterEvent(name="total", delta=4)),
    ],
)
def test_payload_returns_event_of_declared_type(event_type, field_name, event):
    envelope = Envelope(origin="fake-origin", event_type=event_type, **{field_name: event})
    assert envelope.payload is event


def test_payload_is_none_without_event_type():
    envelope = Envelope(heartbeat=Heartbeat(1, 2, 3))
    assert envelope.payload is None


def test_payload_ignores_fields_of_other_types():
    envelope = Envelope(event_type=EventType.HTTP_STOP, http_start=HttpStart(timestamp=1))
    assert envelope.payload is None


def test_uuid_is_usable_as_key():
    keys = {UUID(low=123, high=124): "first"}
    assert keys[UUID(low=123, high=124)] == "first"
    assert UUID(low=123, high=124) != UUID(low=124, high=123)


def test_counter_event_starts_without_total():
    event = CounterEvent(name="total", delta=4)
    assert event.total is None
    assert event.delta == 4


def test_message_type_from_wire_value():
    assert LogMessage.MessageType(1) is LogMessage.MessageType.OUT


def test_envelopes_compare_by_value():
    first = Envelope(origin="o", event_type=EventType.VALUE_METRIC, value_metric=ValueMetric("m", 2.0, "ms"))
    second = Envelope(origin="o", event_type=EventType.VALUE_METRIC, value_metric=ValueMetric("m", 2.0, "ms"))
    assert first == second