"""The client message frame exchanged over the data channel."""

from __future__ import annotations

import hashlib
import json
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sessionwire.binary import (
    MessageFormatError,
    get_bytes,
    get_long,
    get_string,
    get_uinteger,
    get_ulong,
    get_uuid,
    put_bytes,
    put_long,
    put_string,
    put_uinteger,
    put_ulong,
    put_uuid,
)
from sessionwire.payloads import (
    ACKNOWLEDGE_MESSAGE,
    CHANNEL_CLOSED_MESSAGE,
    PAUSE_PUBLICATION_MESSAGE,
    START_PUBLICATION_MESSAGE,
    AcknowledgeContent,
    ChannelClosed,
    HandshakeCompletePayload,
    HandshakeRequestPayload,
    PayloadType,
)

HL_LENGTH = 4
MESSAGE_TYPE_LENGTH = 32
SCHEMA_VERSION_LENGTH = 4
CREATED_DATE_LENGTH = 8
SEQUENCE_NUMBER_LENGTH = 8
FLAGS_LENGTH = 8
MESSAGE_ID_LENGTH = 16
PAYLOAD_DIGEST_LENGTH = 32
PAYLOAD_TYPE_LENGTH = 4
PAYLOAD_LENGTH_LENGTH = 4

HL_OFFSET = 0
MESSAGE_TYPE_OFFSET = HL_OFFSET + HL_LENGTH
SCHEMA_VERSION_OFFSET = MESSAGE_TYPE_OFFSET + MESSAGE_TYPE_LENGTH
CREATED_DATE_OFFSET = SCHEMA_VERSION_OFFSET + SCHEMA_VERSION_LENGTH
SEQUENCE_NUMBER_OFFSET = CREATED_DATE_OFFSET + CREATED_DATE_LENGTH
FLAGS_OFFSET = SEQUENCE_NUMBER_OFFSET + SEQUENCE_NUMBER_LENGTH
MESSAGE_ID_OFFSET = FLAGS_OFFSET + FLAGS_LENGTH
PAYLOAD_DIGEST_OFFSET = MESSAGE_ID_OFFSET + MESSAGE_ID_LENGTH
PAYLOAD_TYPE_OFFSET = PAYLOAD_DIGEST_OFFSET + PAYLOAD_DIGEST_LENGTH
PAYLOAD_LENGTH_OFFSET = PAYLOAD_TYPE_OFFSET + PAYLOAD_TYPE_LENGTH
PAYLOAD_OFFSET = PAYLOAD_LENGTH_OFFSET + PAYLOAD_LENGTH_LENGTH


def _load_json(payload: bytes) -> Any:
    try:
        return json.loads(payload)
    except (ValueError, UnicodeDecodeError) as exc:
        raise MessageFormatError(f"Could not deserialize rawMessage: {exc}") from exc


@dataclass
class ClientMessage:
    """A framed message sent to or received from the session service.

    Layout: | HL | MessageType | Ver | CD | Seq | Flags |
            | MessageId | Digest | PayType | PayLen | Payload |
    """

    header_length: int = 0
    message_type: str = ""
    schema_version: int = 0
    created_date: int = 0
    sequence_number: int = 0
    flags: int = 0
    message_id: uuid.UUID = field(default_factory=lambda: uuid.UUID(int=0))
    payload_digest: bytes = b""
    payload_type: int = 0
    payload_length: int = 0
    payload: bytes = b""

    @classmethod
    def deserialize(cls, data: bytes) -> ClientMessage:
        """Parse a framed message from bytes."""
        data = bytes(data)
        header_length = get_uinteger(data, HL_OFFSET)
        payload_start = header_length + PAYLOAD_LENGTH_LENGTH
        message = cls(
            message_type=get_string(data, MESSAGE_TYPE_OFFSET, MESSAGE_TYPE_LENGTH),
            schema_version=get_uinteger(data, SCHEMA_VERSION_OFFSET),
            created_date=get_ulong(data, CREATED_DATE_OFFSET),
            sequence_number=get_long(data, SEQUENCE_NUMBER_OFFSET),
            flags=get_ulong(data, FLAGS_OFFSET),
            message_id=get_uuid(data, MESSAGE_ID_OFFSET),
            payload_digest=get_bytes(data, PAYLOAD_DIGEST_OFFSET, PAYLOAD_DIGEST_LENGTH),
            payload_type=get_uinteger(data, PAYLOAD_TYPE_OFFSET),
            payload_length=get_uinteger(data, PAYLOAD_LENGTH_OFFSET),
            header_length=header_length,
        )
        if payload_start > len(data):
            raise MessageFormatError("Header length points outside the byte array.")
        message.payload = data[payload_start:]
        return message

    def serialize(self) -> bytes:
        """Encode the message; also records the payload length on the message."""
        payload = bytes(self.payload)
        payload_length = len(payload)
        header_length = PAYLOAD_LENGTH_OFFSET
        self.payload_length = payload_length

        result = bytearray(header_length + PAYLOAD_LENGTH_LENGTH + payload_length)
        put_uinteger(result, HL_OFFSET, header_length)
        put_string(
            result,
            MESSAGE_TYPE_OFFSET,
            MESSAGE_TYPE_OFFSET + MESSAGE_TYPE_LENGTH - 1,
            self.message_type,
        )
        put_uinteger(result, SCHEMA_VERSION_OFFSET, self.schema_version)
        put_ulong(result, CREATED_DATE_OFFSET, self.created_date)
        put_long(result, SEQUENCE_NUMBER_OFFSET, self.sequence_number)
        put_ulong(result, FLAGS_OFFSET, self.flags)
        put_uuid(result, MESSAGE_ID_OFFSET, self.message_id)
        put_bytes(
            result,
            PAYLOAD_DIGEST_OFFSET,
            PAYLOAD_DIGEST_OFFSET + PAYLOAD_DIGEST_LENGTH - 1,
            hashlib.sha256(payload).digest(),
        )
        put_uinteger(result, PAYLOAD_TYPE_OFFSET, self.payload_type)
        put_uinteger(result, PAYLOAD_LENGTH_OFFSET, payload_length)
        put_bytes(result, PAYLOAD_OFFSET, PAYLOAD_OFFSET + payload_length - 1, payload)
        return bytes(result)

    def validate(self) -> None:
        """Raise MessageFormatError if the message is not well formed."""
        if self.message_type in (START_PUBLICATION_MESSAGE, PAUSE_PUBLICATION_MESSAGE):
            return
        if self.header_length == 0:
            raise MessageFormatError("HeaderLength cannot be zero")
        if self.message_type == "":
            raise MessageFormatError("MessageType is missing")
        if self.created_date == 0:
            raise MessageFormatError("CreatedDate is missing")
        if self.payload_length != 0:
            if hashlib.sha256(bytes(self.payload)).digest() != bytes(self.payload_digest):
                raise MessageFormatError("payload Hash is not valid")

    def deserialize_acknowledge_content(self) -> AcknowledgeContent:
        """Parse the payload of an acknowledge message."""
        if self.message_type != ACKNOWLEDGE_MESSAGE:
            raise MessageFormatError(
                "ClientMessage is not of type AcknowledgeMessage. "
                f"Found message type: {self.message_type}"
            )
        return AcknowledgeContent.from_dict(_load_json(self.payload))

    def deserialize_channel_closed(self) -> ChannelClosed:
        """Parse the payload of a channel-closed message."""
        if self.message_type != CHANNEL_CLOSED_MESSAGE:
            raise MessageFormatError(
                "ClientMessage is not of type ChannelClosed. "
                f"Found message type: {self.message_type}"
            )
        return ChannelClosed.from_dict(_load_json(self.payload))

    def deserialize_handshake_request(self) -> HandshakeRequestPayload:
        """Parse a handshake request payload."""
        if self.payload_type != PayloadType.HANDSHAKE_REQUEST:
            raise MessageFormatError(
                "ClientMessage PayloadType is not of type HandshakeRequestPayloadType. "
                f"Found payload type: {self.payload_type}"
            )
        return HandshakeRequestPayload.from_dict(_load_json(self.payload))

    def deserialize_handshake_complete(self) -> HandshakeCompletePayload:
        """Parse a handshake complete payload."""
        if self.payload_type != PayloadType.HANDSHAKE_COMPLETE:
            raise MessageFormatError(
                "ClientMessage PayloadType is not of type HandshakeCompletePayloadType. "
                f"Found payload type: {self.payload_type}"
            )
        return HandshakeCompletePayload.from_dict(_load_json(self.payload))


def _json_default(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (bytes, bytearray)):
        import base64

        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize_payload(obj: Any) -> bytes:
    """Encode a session payload object as compact JSON bytes."""
    if hasattr(obj, "to_dict"):
        obj = obj.to_dict()
    try:
        return json.dumps(obj, default=_json_default, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise MessageFormatError(f"Could not serialize message with err: {exc}") from exc


def serialize_acknowledge_message(content: AcknowledgeContent) -> bytes:
    """Build and encode an acknowledge message carrying the given content."""
    message = ClientMessage(
        message_type=ACKNOWLEDGE_MESSAGE,
        schema_version=1,
        created_date=time.time_ns() // 1_000_000,
        sequence_number=0,
        flags=3,
        message_id=uuid.uuid4(),
        payload=serialize_payload(content),
    )
    return message.serialize()