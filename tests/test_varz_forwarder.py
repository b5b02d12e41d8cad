import threading
import time

import pytest

from logrelay.events import (
    CounterEvent,
    Envelope,
    EventType,
    Heartbeat,
    HttpStartStop,
    ValueMetric,
)
from logrelay.varz_forwarder import VarzForwarder


@pytest.fixture
def forwarder():
    fwd = VarzForwarder("test-component", 0.1)
    yield fwd
    fwd.close()


def metric(origin, name, value):
    return Envelope(
        origin=origin,
        event_type=EventType.VALUE_METRIC,
        value_metric=ValueMetric(name=name, value=value),
    )


def counter_event(origin, name, delta):
    return Envelope(
        origin=origin,
        event_type=EventType.COUNTER_EVENT,
        counter_event=CounterEvent(name=name, delta=delta),
    )


def heartbeat(origin):
    return Envelope(origin=origin, event_type=EventType.HEARTBEAT, heartbeat=Heartbeat())


def httpmetric(origin, status):
    return Envelope(
        origin=origin,
        event_type=EventType.HTTP_START_STOP,
        http_start_stop=HttpStartStop(status_code=status),
    )


def test_includes_metrics_for_each_value_metric(forwarder):
    forwarder.process(metric("origin-1", "metric", 0))
    forwarder.process(metric("origin-2", "metric", 0))
    varz = forwarder.emit()
    assert len(varz.metrics) == 2
    assert varz.metric("origin-1.metric").value == 0
    assert varz.metric("origin-2.metric").value == 0


def test_tracks_logging_agent_total(forwarder):
    forwarder.process(metric("dea-logging-agent", "logSenderTotalMessagesRead", 100))
    forwarder.process(metric("dea-logging-agent", "logSenderTotalMessagesRead.appId1", 40))
    forwarder.process(metric("dea-logging-agent", "logSenderTotalMessagesRead.appId2", 60))
    varz = forwarder.emit()
    assert len(varz.metrics) == 3
    assert varz.metric("dea-logging-agent.logSenderTotalMessagesRead").value == 100.0


def test_includes_each_name_in_origin(forwarder):
    forwarder.process(metric("origin", "metric-1", 1))
    forwarder.process(metric("origin", "metric-2", 2))
    varz = forwarder.emit()
    assert len(varz.metrics) == 2
    assert varz.metric("origin.metric-1").value == 1
    assert varz.metric("origin.metric-2").value == 2


def test_http_request_counts(forwarder):
    for status in (100, 199, 200, 299, 300, 399, 400, 499, 500, 599):
        forwarder.process(httpmetric("origin", status))
    varz = forwarder.emit()
    assert len(varz.metrics) == 6
    assert varz.metric("origin.requestCount").value == 10
    for bucket in ("1XX", "2XX", "3XX", "4XX", "5XX"):
        assert varz.metric(f"origin.responseCount{bucket}").value == 2


def test_status_outside_ranges_only_counts_request(forwarder):
    forwarder.process(httpmetric("origin", 600))
    varz = forwarder.emit()
    assert [m.name for m in varz.metrics] == ["origin.requestCount"]


def test_counter_events_increment(forwarder):
    forwarder.process(counter_event("origin-0", "metric-1", 1))
    forwarder.process(counter_event("origin-0", "metric-1", 3))
    forwarder.process(counter_event("origin-1", "metric-1", 1))
    varz = forwarder.emit()
    assert len(varz.metrics) == 2
    assert varz.metric("origin-0.metric-1").value == 4
    assert varz.metric("origin-1.metric-1").value == 1


def test_component_tag(forwarder):
    forwarder.process(metric("origin", "metric", 1))
    varz = forwarder.emit()
    assert varz.name == "forwarder"
    assert varz.metric("origin.metric").tags["component"] == "test-component"


def test_ignores_non_metric_messages(forwarder):
    forwarder.process(metric("origin", "metric-1", 0))
    forwarder.process(heartbeat("origin"))
    assert len(forwarder.emit().metrics) == 1


def test_forgets_origin_after_ttl(forwarder):
    forwarder.process(metric("origin", "metric-X", 0))
    assert len(forwarder.emit().metrics) == 1
    time.sleep(0.3)
    assert forwarder.emit().metrics == []


def test_keeps_origin_while_events_arrive(forwarder):
    forwarder.process(metric("origin", "metric-X", 0))
    deadline = time.monotonic() + 0.3
    while time.monotonic() < deadline:
        forwarder.process(heartbeat("origin"))
        time.sleep(0.01)
    assert [m.name for m in forwarder.emit().metrics] == ["origin.metric-X"]


def test_run_passes_value_metrics_through(forwarder):
    expected = metric("origin", "metric", 0)
    received = []
    forwarder.run([expected], received.append)
    assert received == [expected]


def test_run_passes_other_events_through(forwarder):
    expected = heartbeat("origin")
    received = []
    thread = threading.Thread(target=forwarder.run, args=([expected], received.append))
    thread.start()
    thread.join(1)
    assert received == [expected]