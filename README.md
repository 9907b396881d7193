# voicedriver

Building blocks for a voice connection driver that sends and receives
encrypted RTP audio.

## What it contains

- `voicedriver.crypto`: the three XSalsa20-Poly1305 packet modes (`CryptoMode`).
  Their negotiation names are `xsalsa20_poly1305`, `xsalsa20_poly1305_suffix` and
  `xsalsa20_poly1305_lite`. `CryptoMode.encrypt_in_place` and
  `CryptoMode.decrypt_in_place` work on a `bytearray` packet with a 32-byte key.
  `CryptoState` writes each packet's nonce through `write_packet_nonce`. In lite mode
  it keeps a 32-bit counter that starts at a random value.
  `DecodeMode` (`PASS`, `DECRYPT`, `DECODE`) says how received packets are handled.
  A failed encryption or decryption raises `CryptoError`.
- `voicedriver.retry`: reconnection timing, in seconds. `Every` waits a fixed period.
  `ExponentialBackoff` doubles the last wait, adds jitter and clamps the result to
  `[min, max]`; the defaults are 0.25 s, 10 s and a jitter of 0.1. `Retry` pairs a
  strategy with a `retry_limit`, which defaults to 5; `None` means retry forever.
- `voicedriver.connection`: helpers for setting up a connection.
  - `generate_url` builds the `wss://` gateway URL and drops a trailing `:80`.
  - `has_valid_mode` checks whether the server offered a crypto mode.
  - `build_ip_discovery_request` and `parse_ip_discovery_response` build and read the
    74-byte UDP IP discovery packets.
- `voicedriver.events`: the event kinds.
  - `TrackEvent` and `CoreEvent` are untimed events.
  - `Periodic` and `Delayed` are timed events, and a handler returns `Cancel` to remove itself.
  - `EventHandler` is the abstract async handler.
  - `EventData` pairs an event with its handler.
- `voicedriver.store`: `EventStore` keeps timed handlers in a heap and untimed handlers
  by event. `GlobalEvents` holds the global store and its clock, and queues track events
  until the next tick.
- `voicedriver.context`: the data handed to handlers.
  - `CoreContext.to_user_context` turns the driver's internal records (`InternalConnect`,
    `InternalDisconnect`, `InternalVoicePacket` and others) into an `EventContext`.
    `ConnectData`, `DisconnectData`, `SpeakingUpdateData`, `VoiceData` and `RtcpData`
    are the records that context carries.
  - `disconnect_reason_from_error` maps an error to a `DisconnectReason`.
- `voicedriver.errors`: the exceptions `JoinError`, `DriverConnectionError` and
  `TaskError`, each with a kind enum. `Recipient` names the background task that could
  not be reached.

## Install

```
pip install .
```

To run the tests, install the test extra and run pytest:

```
pip install ".[test]"
pytest
```

## Example

```python
from voicedriver.crypto import CryptoMode, CryptoState
from voicedriver.retry import Retry

mode = CryptoMode.LITE
print(mode.to_request_str())      # xsalsa20_poly1305_lite
print(mode.payload_overhead())    # 20

state = CryptoState(mode)
print(state.kind() is mode)       # True

retry = Retry()
print(retry.retry_in(None, 0))    # first wait, between 0.25 and 0.3 seconds
print(retry.retry_in(None, 5))    # None: the retry limit has been reached
```

## What it does not do

This package is a set of parts, not a running driver. It contains none of the following:

- no websocket gateway client and no heartbeat;
- no UDP sockets and no send or receive loops;
- no audio mixing and no Opus encoding or decoding;
- no tracks or track queue;
- no background tasks that tie these pieces together.

`GlobalEvents` queues track events, but the package has no tick that runs them.
There is no command-line program.