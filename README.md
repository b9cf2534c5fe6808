# voicedriver

Building blocks for the driver side of an encrypted RTP voice connection. The package
covers packet encryption, retry timing, error types and event dispatch.

## Modules

- `voicedriver.crypto`
  - `CryptoMode` (`NORMAL`, `SUFFIX`, `LITE`) describes where an XSalsa20-Poly1305
    nonce sits in a packet. `nonce_size()`, `payload_prefix_len()`,
    `payload_suffix_len()` and `payload_overhead()` give the byte layout.
    `to_request_str()` gives the name used during negotiation.
  - `encrypt_in_place(packet, header_len, key, payload_len)` and
    `decrypt_in_place(packet, header_len, key)` work on a `bytearray`.
    `decrypt_in_place` returns how many bytes to skip at the start and end of the
    payload.
  - `CryptoState.from_mode(mode)` keeps per-connection nonce state. In `LITE` mode it
    holds a 32-bit counter that starts at a random value and goes up by one with
    each packet. `write_packet_nonce(packet, header_len, payload_end)` writes the
    nonce after the payload and returns the new payload length.
  - Failures raise `CryptoError`, for example a packet too small for its nonce or
    tag, a key that is not 32 bytes, or a failed authentication check.
  - `DecodeMode` (`PASS`, `DECRYPT`, `DECODE`) has the method `should_decrypt()`.
- `voicedriver.retry`
  - `Retry(strategy, retry_limit)` returns from `retry_in(last_wait, attempts)` the
    number of seconds to wait, or `None` once `attempts` reaches the limit. A
    `retry_limit` of `None` means no limit.
  - There are two strategies. `Every(duration)` always waits the same time.
    `ExponentialBackoff(min=0.25, max=10.0, jitter=0.1)` doubles the last wait, adds
    jitter and clamps the result to `[min, max]`.
- `voicedriver.errors`
  - `JoinError` carries a `JoinErrorKind`. It has `should_leave_server()` and
    `should_reconnect_driver()`, and `JoinError.from_driver(error)` wraps a failed
    driver connection.
  - `DriverConnectionError` carries a `ConnectionErrorKind`. It may also carry an
    `inner` exception or a `recipient`, a `Recipient` member.
    `DriverConnectionError.from_exception(exc)` classifies crypto, timeout, JSON and
    OS errors.
  - `TaskError` carries a `TaskErrorKind`. It has `should_trigger_connect()`,
    `should_trigger_interconnect_rebuild()` and `from_exception(exc)`.
- `voicedriver.events`
  - Event types:
    - `Periodic(period, phase=None)`
    - `Delayed(delay)`
    - `Cancel()`
    - the enums `TrackEvent` and `CoreEvent`
  - `is_global_only(event)` reports whether an event may only be attached to the
    global context.
  - `EventHandler` is an abstract base class with the async method `act(ctx)`.
  - `EventData(event, action)` pairs an event with its handler.
    `compute_activation(now)` sets the handler's next fire time.
- `voicedriver.event_store`
  - `EventStore` keeps timed events in a heap and untimed events by kind. Its
    methods are:
    - `add_event(evt, now)`
    - `timed_event_ready(now)`
    - async `process_timed(now, ctx)`
    - async `process_untimed(now, untimed_event, ctx)`
  - `EventStore.new_local()` makes a per-track store that ignores core events.
  - `GlobalEvents` keeps the global store and clock. Its methods are:
    - `add_event(evt)`
    - async `fire_core_event(evt, ctx)`
    - `fire_track_event(evt, index)`, which queues the event in `awaiting_tick`
    - `remove_handlers()`
- `voicedriver.context`
  - `EventContext(kind, data)` has a `ContextKind`, and `to_core_event()` maps it to
    a `CoreEvent`.
  - Payload types:
    - `ConnectData`
    - `DisconnectData`, with `DisconnectKind` and `DisconnectReason`
    - `SpeakingUpdateData`
    - `VoiceData`
    - `RtcpData`
  - `DisconnectReason.from_connection_error(error)` classifies a
    `DriverConnectionError`.

## Installing

```
pip install .
```

## Example: encrypting a packet

```python
from voicedriver.crypto import CryptoMode, CryptoState

key = (b"secret" * 6)[:32]           # made-up 32-byte key
header_len = 12
payload = b"\x01\x02\x03\x04"
tag = 16

packet = bytearray(header_len + tag + len(payload) + 24)
packet[header_len + tag:header_len + tag + len(payload)] = payload

mode = CryptoMode.LITE
state = CryptoState.from_mode(mode)
size = state.write_packet_nonce(packet, header_len, tag + len(payload))
mode.encrypt_in_place(packet, header_len, key, size)

received = packet[:header_len + size]
start, tail = mode.decrypt_in_place(received, header_len, key)   # (16, 4)
```

## Example: retry timing

```python
from voicedriver.retry import Retry

retry = Retry()                        # exponential backoff, up to 5 retries
wait = retry.retry_in(None, 0)         # between 0.25 s and 0.3 s
later = retry.retry_in(wait, 1)
assert retry.retry_in(wait, 5) is None # limit reached
```

## Example: handling events

```python
import asyncio
from voicedriver.events import EventData, EventHandler, Periodic
from voicedriver.event_store import EventStore

class Tick(EventHandler):
    async def act(self, ctx):
        print("tick")
        return None

store = EventStore()
store.add_event(EventData(Periodic(1.0), Tick()), 0.0)
asyncio.run(store.process_timed(1.0, None))   # prints "tick", re-arms for 2.0
```

## What this package does not do

This is a library of parts, not a running driver:

- It opens no network connections, and does not speak to a voice gateway or voice
  server.
- It does not mix, encode or decode Opus audio.
- It has no command-line program.

It defines the error types, event contexts and data that such a driver would
produce. Sending packets and producing those events is left to the caller.

## Running the tests

```
pip install .[test]
pytest
```