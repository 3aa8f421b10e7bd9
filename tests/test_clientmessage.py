import hashlib
import json
import uuid

import pytest

from sessionwire.binary import (
    MessageFormatError,
    get_bytes,
    get_long,
    get_uinteger,
    get_ulong,
    get_uuid,
)
from sessionwire.clientmessage import (
    CREATED_DATE_OFFSET,
    FLAGS_OFFSET,
    MESSAGE_ID_OFFSET,
    MESSAGE_TYPE_LENGTH,
    MESSAGE_TYPE_OFFSET,
    PAYLOAD_DIGEST_LENGTH,
    PAYLOAD_DIGEST_OFFSET,
    SCHEMA_VERSION_OFFSET,
    SEQUENCE_NUMBER_OFFSET,
    ClientMessage,
    serialize_acknowledge_message,
    serialize_payload,
)
from sessionwire.payloads import (
    ACKNOWLEDGE_MESSAGE,
    CHANNEL_CLOSED_MESSAGE,
    INPUT_STREAM_MESSAGE,
    START_PUBLICATION_MESSAGE,
    PAUSE_PUBLICATION_MESSAGE,
    AcknowledgeContent,
    ActionType,
    ChannelClosed,
    PayloadType,
)

MESSAGE_ID = "dd01e56b-ff48-483e-a508-b5f073f31b16"
MESSAGE_TYPE = INPUT_STREAM_MESSAGE
SCHEMA_VERSION = 1
CREATED_DATE = 1503434274948
PAYLOAD = b"payload"
SESSION_ID = "sessionId_01234567890abcedf"
AGENT_VERSION = "3.0"
TIME_TO_COMPLETE = 1000000
CUSTOMER_MESSAGE = "Handshake Complete"
SEQUENCE_NUMBER = 2

ACK_PAYLOAD = json.dumps(
    {"AcknowledgedMessageType": ACKNOWLEDGE_MESSAGE, "AcknowledgedMessageId": MESSAGE_ID}
).encode()
CHANNEL_CLOSED_PAYLOAD = json.dumps(
    {
        "MessageType": CHANNEL_CLOSED_MESSAGE,
        "MessageId": MESSAGE_ID,
        "CreatedDate": str(CREATED_DATE),
        "SessionId": SESSION_ID,
        "SchemaVersion": SCHEMA_VERSION,
        "Output": PAYLOAD.decode(),
    }
).encode()
HANDSHAKE_REQ_PAYLOAD = (
    '{"AgentVersion": "3.0", "RequestedClientActions": '
    '[{"ActionType": "start", "ActionParameters": {"name": "richard"}}]}'
).encode()
HANDSHAKE_COMPLETE_PAYLOAD = json.dumps(
    {"HandshakeTimeToComplete": TIME_TO_COMPLETE, "CustomerMessage": CUSTOMER_MESSAGE}
).encode()


def _sample_message(**overrides):
    values = dict(
        message_type=MESSAGE_TYPE,
        schema_version=SCHEMA_VERSION,
        created_date=CREATED_DATE,
        sequence_number=1,
        flags=2,
        message_id=uuid.UUID(MESSAGE_ID),
        payload=PAYLOAD,
    )
    values.update(overrides)
    return ClientMessage(**values)


def test_validate_reports_each_missing_field_in_order():
    message = ClientMessage(
        schema_version=SCHEMA_VERSION,
        sequence_number=1,
        flags=2,
        message_id=uuid.UUID(MESSAGE_ID),
        payload=PAYLOAD,
        payload_length=3,
    )
    with pytest.raises(MessageFormatError, match="HeaderLength cannot be zero"):
        message.validate()

    message.header_length = 1
    with pytest.raises(MessageFormatError, match="MessageType is missing"):
        message.validate()

    message.message_type = MESSAGE_TYPE
    with pytest.raises(MessageFormatError, match="CreatedDate is missing"):
        message.validate()

    message.created_date = CREATED_DATE
    with pytest.raises(MessageFormatError, match="payload Hash is not valid"):
        message.validate()

    message.payload_digest = hashlib.sha256(PAYLOAD).digest()
    assert message.validate() is None


@pytest.mark.parametrize("message_type", [START_PUBLICATION_MESSAGE, PAUSE_PUBLICATION_MESSAGE])
def test_validate_accepts_publication_messages(message_type):
    message = ClientMessage(
        schema_version=SCHEMA_VERSION,
        sequence_number=1,
        flags=2,
        message_id=uuid.UUID(MESSAGE_ID),
        payload=PAYLOAD,
        payload_length=3,
        message_type=message_type,
    )
    assert message.validate() is None


def test_deserialize_acknowledge_content():
    message = ClientMessage(payload=PAYLOAD)
    with pytest.raises(MessageFormatError, match="not of type AcknowledgeMessage"):
        message.deserialize_acknowledge_content()

    message.message_type = ACKNOWLEDGE_MESSAGE
    with pytest.raises(MessageFormatError, match="Could not deserialize"):
        message.deserialize_acknowledge_content()

    message.payload = ACK_PAYLOAD
    content = message.deserialize_acknowledge_content()
    assert content.message_type == ACKNOWLEDGE_MESSAGE
    assert content.message_id == MESSAGE_ID


def test_deserialize_channel_closed():
    message = ClientMessage(payload=PAYLOAD)
    with pytest.raises(MessageFormatError, match="not of type ChannelClosed"):
        message.deserialize_channel_closed()

    message.message_type = CHANNEL_CLOSED_MESSAGE
    with pytest.raises(MessageFormatError):
        message.deserialize_channel_closed()

    message.payload = CHANNEL_CLOSED_PAYLOAD
    closed = message.deserialize_channel_closed()
    assert closed.message_type == CHANNEL_CLOSED_MESSAGE
    assert closed.message_id == MESSAGE_ID
    assert closed.created_date == str(CREATED_DATE)
    assert closed.schema_version == SCHEMA_VERSION
    assert closed.session_id == SESSION_ID
    assert closed.output == "payload"


def test_deserialize_handshake_request():
    message = ClientMessage(payload=PAYLOAD)
    with pytest.raises(MessageFormatError, match="HandshakeRequestPayloadType"):
        message.deserialize_handshake_request()

    message.payload_type = PayloadType.HANDSHAKE_REQUEST
    with pytest.raises(MessageFormatError):
        message.deserialize_handshake_request()

    message.payload = HANDSHAKE_REQ_PAYLOAD
    request = message.deserialize_handshake_request()
    assert request.agent_version == AGENT_VERSION
    assert request.requested_client_actions[0].action_type == "start"
    assert request.requested_client_actions[0].action_parameters == {"name": "richard"}


def test_deserialize_handshake_request_known_action_type():
    message = ClientMessage(
        payload_type=PayloadType.HANDSHAKE_REQUEST,
        payload=b'{"AgentVersion":"3.0","RequestedClientActions":'
        b'[{"ActionType":"SessionType","ActionParameters":null}]}',
    )
    request = message.deserialize_handshake_request()
    assert request.requested_client_actions[0].action_type is ActionType.SESSION_TYPE


def test_deserialize_handshake_complete():
    message = ClientMessage(payload=PAYLOAD)
    with pytest.raises(MessageFormatError, match="HandshakeCompletePayloadType"):
        message.deserialize_handshake_complete()

    message.payload_type = PayloadType.HANDSHAKE_COMPLETE
    with pytest.raises(MessageFormatError):
        message.deserialize_handshake_complete()

    message.payload = HANDSHAKE_COMPLETE_PAYLOAD
    complete = message.deserialize_handshake_complete()
    assert complete.handshake_time_to_complete == TIME_TO_COMPLETE
    assert complete.customer_message == CUSTOMER_MESSAGE


def test_serialize_and_deserialize_client_message():
    message = _sample_message()
    data = message.serialize()

    raw_type = data[MESSAGE_TYPE_OFFSET:MESSAGE_TYPE_OFFSET + MESSAGE_TYPE_LENGTH - 1]
    assert raw_type.decode().rstrip(" ") == MESSAGE_TYPE
    assert get_uinteger(data, SCHEMA_VERSION_OFFSET) == SCHEMA_VERSION
    assert get_ulong(data, CREATED_DATE_OFFSET) == CREATED_DATE
    assert get_long(data, SEQUENCE_NUMBER_OFFSET) == 1
    assert get_ulong(data, FLAGS_OFFSET) == 2
    assert str(get_uuid(data, MESSAGE_ID_OFFSET)) == MESSAGE_ID
    digest = get_bytes(data, PAYLOAD_DIGEST_OFFSET, PAYLOAD_DIGEST_LENGTH)
    assert digest == hashlib.sha256(PAYLOAD).digest()

    decoded = ClientMessage.deserialize(data)
    assert decoded.message_type == MESSAGE_TYPE
    assert decoded.schema_version == SCHEMA_VERSION
    assert str(decoded.message_id) == MESSAGE_ID
    assert decoded.created_date == CREATED_DATE
    assert decoded.flags == 2
    assert decoded.sequence_number == 1
    assert decoded.payload == PAYLOAD


def test_serialized_frame_layout():
    message = _sample_message()
    data = message.serialize()
    assert len(data) == 120 + len(PAYLOAD)
    assert message.payload_length == len(PAYLOAD)
    decoded = ClientMessage.deserialize(data)
    assert decoded.header_length == 116
    assert decoded.payload_length == len(PAYLOAD)
    decoded.validate()
    assert decoded.payload_digest == hashlib.sha256(PAYLOAD).digest()


def test_serialize_rejects_nil_message_id():
    message = _sample_message(message_id=uuid.UUID(int=0))
    with pytest.raises(MessageFormatError, match="null"):
        message.serialize()


def test_serialize_rejects_empty_payload():
    message = _sample_message(payload=b"")
    with pytest.raises(MessageFormatError, match="Offset is outside"):
        message.serialize()


def test_serialize_rejects_long_message_type():
    message = _sample_message(message_type="x" * 40)
    with pytest.raises(MessageFormatError, match="Not enough space"):
        message.serialize()


def test_deserialize_rejects_short_input():
    with pytest.raises(MessageFormatError):
        ClientMessage.deserialize(b"\x00" * 20)


def test_deserialize_rejects_header_length_past_end():
    data = bytearray(_sample_message().serialize())
    data[0:4] = (10_000).to_bytes(4, "big")
    with pytest.raises(MessageFormatError):
        ClientMessage.deserialize(bytes(data))


def test_serialize_payload_rejects_function():
    with pytest.raises(MessageFormatError):
        serialize_payload(lambda: None)


def test_serialize_payload_uses_wire_names():
    content = AcknowledgeContent(message_type="acknowledge", message_id=MESSAGE_ID)
    assert json.loads(serialize_payload(content)) == {
        "AcknowledgedMessageType": "acknowledge",
        "AcknowledgedMessageId": MESSAGE_ID,
        "AcknowledgedMessageSequenceNumber": 0,
        "IsSequentialMessage": False,
    }


def test_serialize_and_deserialize_acknowledge_message():
    content = AcknowledgeContent(
        message_type=MESSAGE_TYPE,
        message_id=MESSAGE_ID,
        sequence_number=SEQUENCE_NUMBER,
        is_sequential_message=True,
    )
    data = serialize_acknowledge_message(content)
    decoded = ClientMessage.deserialize(data)
    assert decoded.message_type == ACKNOWLEDGE_MESSAGE
    assert decoded.schema_version == 1
    assert decoded.flags == 3
    assert decoded.sequence_number == 0
    result = decoded.deserialize_acknowledge_content()
    assert result.message_type == MESSAGE_TYPE
    assert result.message_id == MESSAGE_ID
    assert result.sequence_number == SEQUENCE_NUMBER
    assert result.is_sequential_message is True


def test_deserialize_agent_message_with_channel_closed():
    closed = ChannelClosed(
        message_type=CHANNEL_CLOSED_MESSAGE,
        message_id=MESSAGE_ID,
        destination_id="destination-id",
        session_id=SESSION_ID,
        schema_version=1,
        created_date="2018-01-01",
    )
    message = _sample_message(
        message_type=CHANNEL_CLOSED_MESSAGE, payload=serialize_payload(closed)
    )
    result = message.deserialize_channel_closed()
    assert result.message_type == CHANNEL_CLOSED_MESSAGE
    assert result.message_id == MESSAGE_ID
    assert result.session_id == SESSION_ID
    assert result.destination_id == "destination-id"