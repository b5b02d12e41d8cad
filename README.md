# logrelay

Building blocks for a host-local relay of logs and metrics, and for a
service that keeps syslog drain bindings up to date in a key/value store.
The package uses only the standard library.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## What is inside

### Relay components

- `logrelay.events`: the event model. `Envelope` holds an `origin`,
  `event_type` (an `EventType`), a `timestamp` and one payload among
  `heartbeat`, `http_start`, `http_stop`, `http_start_stop`, `log_message`,
  `value_metric` and `counter_event`; `Envelope.payload` returns the one
  matching `event_type`. Also `PeerType`, `UUID`, `HttpStart`, `HttpStop`,
  `HttpStartStop`, `ValueMetric`, `CounterEvent`, `LogMessage` and
  `Heartbeat`.
- `logrelay.instrumentation`: `Metric` (name, value, tags) and `Context`,
  the snapshot every component returns from `emit()`.
  `Context.metric(name)` returns the first metric of that name and raises
  `KeyError` if there is none.
- `logrelay.message_aggregator.MessageAggregator(max_ttl=60.0, clock=time.monotonic)`:
  `process(envelope)` returns the envelope to pass on, or `None`.
  An HTTP start is held until its stop arrives (matched by request id and
  peer type), and the pair comes out as one `HTTP_START_STOP` envelope; a
  stop without a start is dropped. Starts older than `max_ttl` seconds are
  discarded. Counter events get their `total` set to the running sum of
  deltas per origin and name. Everything else passes through unchanged.
  `run(inputs, output)` processes an iterable and calls `output` for every
  result. `emit()` reports the counters `httpStartReceived`,
  `httpStopReceived`, `httpStartStopEmitted`, `uncategorizedEvents`,
  `httpUnmatchedStartReceived`, `httpUnmatchedStopReceived` and
  `counterEventReceived`.
- `logrelay.statsd_listener.StatsdListener(address, name="statsdListener")`:
  `parse_stat(line)` turns a line of the form
  `origin.name:value|type[|@rate]` into a `VALUE_METRIC` envelope. The
  types are `g` (unit `gauge`), `c` (unit `counter`) and `ms` (unit `ms`).
  The value is divided by the sample rate. A signed gauge value adjusts the
  previous gauge; counters always add to (or with `-`, subtract from)
  their previous value. A line that does not match raises
  `StatsdParseError`. `run(output)` binds a UDP socket on `address`, sets
  the `listening` event and `local_address`, and calls `output` for every
  valid line of every datagram until `stop()` is called; bad lines are
  logged and skipped.
- `logrelay.varz_forwarder.VarzForwarder(component_name, ttl)`:
  `process(envelope)` records value metrics (latest value), counter events
  (summed deltas) and HTTP start/stop events (`requestCount` and
  `responseCount1XX` to `responseCount5XX`) per origin, and returns the
  envelope unchanged. An origin not seen for `ttl` seconds is forgotten.
  `emit()` returns a `forwarder` context with one metric per
  `origin.name`, each tagged with `component`. `close()` cancels the
  pending expiry timers.
- `logrelay.legacy_converter`: `LegacyEnvelope` and `LegacyLogMessage`,
  `convert_message(legacy_envelope)`, which builds a `LOG_MESSAGE`
  envelope with origin `legacy` (raising `ValueError` if the legacy
  envelope carries no log message), and `LegacyMessageConverter.run(inputs, output)`.
- `logrelay.event_listener.EventListener(address, name, requester)`:
  `start()` serves UDP on `address` until `stop()` is called, puts every
  datagram on the `messages` queue (and `None` once it stops), and starts
  `requester.start(sender, socket)` in a thread for each datagram.
  `emit()` reports `currentBufferCount`, `receivedMessageCount` and
  `receivedByteCount`.
- `logrelay.heartbeat_requester.HeartbeatRequester(interval)`:
  `start(sender_addr, connection)` sends a heartbeat-request control
  message to `sender_addr` every `interval` seconds through
  `connection.sendto`, blocking until the target is stopped. Calling it
  again for a known sender only resets that sender's timeout of five
  intervals, after which it is stopped. `stop(target)` ends pinging a
  target; unknown targets are ignored. `targets` lists the addresses being
  pinged.

### Drain binder components

- `logrelay.store`: `StoreNode(key, value=b"", ttl=0)`, the thread-safe
  `InMemoryStore` with `connect`, `create`, `get`, `delete`, `set_multi`,
  `compare_and_swap` and `compare_and_delete`, and the errors it raises:
  `StoreError`, `KeyExistsError`, `KeyNotFoundError` and
  `KeyComparisonFailedError`. Failures can be injected through
  `connect_error`, `create_error_injector` and `set_error_injector`
  (the last two are `(pattern, error)` pairs matched against keys).
- `logrelay.elector.Elector(instance_name, adapter, update_interval)`:
  connects to the store (retrying every `update_interval` seconds), then
  competes for the key `syslog_drain_binder/leader`.
  `run_for_election()` retries while another instance holds the key and
  re-raises any other store error; `stay_as_leader()` refreshes the key
  and raises if this instance does not hold it; `vacate()` gives up
  leadership; `is_leader()` reports the current state.
- `logrelay.drain_store`: `SyslogDrainStore(store_adapter, ttl).update_drains(mapping)`
  writes one node per drain URL at `drain_key(app_id, drain_url)`, under
  `app_key(app_id)`, with the given time to live. Blank URLs are skipped;
  the first store error is raised.
- `logrelay.poller`: `build_url(base_url, batch_size, next_id)` and
  `poll(hostname, username, password, batch_size, skip_cert_verify)`,
  which pages through `/v2/syslog_drain_urls` with basic authentication
  until a page has no `next_id`, and returns a mapping of application id
  to drain URLs. Any failure raises `PollError`, whose `drain_urls` holds
  what was gathered before it.

## Examples

Parsing statsd lines:

```python
from logrelay.statsd_listener import StatsdListener

listener = StatsdListener("127.0.0.1:0")
listener.parse_stat("app.load:17.5|g|@0.2").value_metric.value   # 87.5
listener.parse_stat("app.hits:23|c").value_metric.value           # 23.0
listener.parse_stat("app.hits:-5|c").value_metric.value           # 18.0
```

Aggregating events:

```python
from logrelay.message_aggregator import MessageAggregator

aggregator = MessageAggregator()
for envelope in incoming_envelopes:
    result = aggregator.process(envelope)
    if result is not None:
        forward(result)

print(aggregator.emit().metric("counterEventReceived").value)
```

Electing a leader and publishing drains:

```python
from logrelay.store import InMemoryStore
from logrelay.elector import Elector
from logrelay.drain_store import SyslogDrainStore

store = InMemoryStore()
elector = Elector("binder-0", store, update_interval=1.0)
elector.run_for_election()
SyslogDrainStore(store, ttl=10).update_drains({"app-id": ["syslog://logs.example.com:514"]})
```

Polling for drain URLs:

```python
from logrelay.poller import build_url, poll, PollError

build_url("https://cc.example.com", 50, 100)
# 'https://cc.example.com/v2/syslog_drain_urls?batch_size=50&next_id=100'

password = "password"
try:
    drains = poll("https://cc.example.com", "user", password=password,
                  batch_size=50, skip_cert_verify=False)
except PollError as error:
    print("poll failed:", error, "partial:", error.drain_urls)
```

## What this package does not do

- It has no command-line program: nothing here reads a configuration file
  and wires the components into a running agent or binder loop. Each
  component is used from your own code.
- The only store is `InMemoryStore`; there is no client for a networked
  key/value store.
- `EventListener` queues raw datagrams; there is no decoding of binary
  event envelopes, no signing of outgoing messages and no forwarding of
  events to a downstream server.