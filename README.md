# sessionwire

`sessionwire` reads and writes the binary client messages exchanged over a
session data channel, decodes and encodes the JSON payloads they carry
(acknowledgements, channel-closed notices, handshake requests, responses and
completions), and provides the back-off helpers used when reconnecting or
retrying service requests.

It has no dependencies outside the standard library.

## Installing

```
pip install .
```

With the test dependencies:

```
pip install ".[test]"
```

## Message layout

A client message starts with a header whose first field, the header length,
is 116: the number of bytes from the start of the message up to the payload
length field. The payload length (4 bytes) and the payload follow:

| field           | size |
|-----------------|------|
| header length   | 4    |
| message type    | 32   |
| schema version  | 4    |
| created date    | 8    |
| sequence number | 8    |
| flags           | 8    |
| message id      | 16   |
| payload digest  | 32   |
| payload type    | 4    |
| payload length  | 4    |
| payload         | rest |

Integers are big-endian. The message type is padded with spaces. The message
id is written as the low eight bytes of the UUID followed by the high eight
bytes. The payload digest is the SHA-256 of the payload.

## Messages

`sessionwire.clientmessage.ClientMessage` is a dataclass holding every field
above.

```python
import uuid
from sessionwire.clientmessage import ClientMessage

message = ClientMessage(
    message_type="input_stream_data",
    schema_version=1,
    created_date=1503434274948,
    sequence_number=1,
    flags=2,
    message_id=uuid.UUID("dd01e56b-ff48-483e-a508-b5f073f31b16"),
    payload=b"payload",
)
wire = message.serialize()      # also sets message.payload_length

parsed = ClientMessage.deserialize(wire)
parsed.validate()               # raises MessageFormatError if malformed
assert parsed.payload == b"payload"
assert parsed.header_length == 116
```

`validate()` accepts `start_publication` and `pause_publication` messages
without further checks; otherwise it requires a non-zero header length, a
message type and a created date, and, when the payload length is non-zero, a
digest matching the payload.

Typed payloads are read from a parsed message with
`deserialize_acknowledge_content()`, `deserialize_channel_closed()`,
`deserialize_handshake_request()` and `deserialize_handshake_complete()`.
The first two check the message type, the last two the payload type; each
raises `MessageFormatError` on a mismatch or on malformed JSON.

`serialize_payload(obj)` encodes an object (anything with `to_dict()`, or
plain JSON data) as compact JSON bytes. `serialize_acknowledge_message(content)`
builds a complete acknowledge message with a fresh random id, schema version
1, flags 3 and the current time in milliseconds:

```python
from sessionwire.clientmessage import serialize_acknowledge_message
from sessionwire.payloads import AcknowledgeContent

ack = AcknowledgeContent(
    message_type="output_stream_data",
    message_id="dd01e56b-ff48-483e-a508-b5f073f31b16",
    sequence_number=2,
    is_sequential_message=True,
)
wire = serialize_acknowledge_message(ack)
```

## Payloads

`sessionwire.payloads` holds the message type names
(`INPUT_STREAM_MESSAGE`, `ACKNOWLEDGE_MESSAGE`, `CHANNEL_CLOSED_MESSAGE`, ...),
the enums `PayloadType`, `PayloadTypeFlag`, `ActionType` and `ActionStatus`,
and dataclasses for each JSON payload. Payloads that arrive are read with
`from_dict()` (`AcknowledgeContent`, `ChannelClosed`, `SizeData`,
`KMSEncryptionRequest`, `SessionTypeRequest`, `RequestedClientAction`,
`HandshakeRequestPayload`, `EncryptionChallengeRequest`,
`HandshakeCompletePayload`); payloads that are sent are written with
`to_dict()` (`AcknowledgeContent`, `ChannelClosed`, `SizeData`,
`KMSEncryptionResponse`, `ProcessedClientAction`, `HandshakeResponsePayload`,
`EncryptionChallengeResponse`). Byte fields travel as base64 strings.
`HandshakeCompletePayload.time_to_complete` gives the handshake duration, which
arrives in nanoseconds, as a `timedelta`.

## Field codec

`sessionwire.binary` has the low-level readers and writers: `get_string`,
`get_integer`, `get_uinteger`, `get_long`, `get_ulong`, `get_uuid`,
`get_bytes`, `put_string`, `put_bytes`, `put_integer`, `put_uinteger`,
`put_long`, `put_ulong`, `put_uuid`, and the conversions `bytes_to_integer`,
`bytes_to_long`, `integer_to_bytes` and `long_to_bytes`. The writers work on a
`bytearray` in place. All of them raise `MessageFormatError` (a `ValueError`)
when an offset falls outside the buffer, a value does not fit, or the nil UUID
is written.

## Retrying

```python
from sessionwire.retry import RepeatableExponentialRetryer, retry

def connect():
    ...

retryer = RepeatableExponentialRetryer(
    callable_func=connect,
    geometric_ratio=2.0,
    initial_delay_in_milli=100,
    max_delay_in_milli=5000,
    max_attempts=5,
)
retryer.call()
```

`call()` returns what the function returns, sleeping between failures with
delays that grow by `geometric_ratio` and start again from the initial delay
once they would exceed `max_delay_in_milli`; after `max_attempts` retries the
last exception is raised. `next_sleep_time(attempt)` gives a delay as a
`timedelta`.

`retry(attempts, sleep, fn)` calls `fn` up to `attempts` times, sleeping
`sleep` seconds after the first failure and doubling each time, and re-raises
the last exception if every attempt fails.

`sessionwire.sdkretry.retry_delay(operation_name, error, retry_count)` gives
the delay before retrying a service request: 100 ms for a `Client.Timeout`
error on `GetMessages`, otherwise 1 to 1.5 seconds multiplied by
`2 ** retry_count`.

## Open-data-channel requests

`sessionwire.service.OpenDataChannelInput` holds `message_schema_version`,
`request_id`, `token_value` and `client_id`. `validate()` raises `ValueError`
listing every missing field and every field below its minimum length (16
characters for the request id, 1 for the others); `to_dict()` returns the
fields under their wire names.

## What it does not do

`sessionwire` only encodes, decodes and checks messages and computes retry
delays. It opens no connections: there is no websocket client, no data channel
or session handling, no encryption of payloads, no service client, and no
command-line tool.

## Tests

```
pytest
```