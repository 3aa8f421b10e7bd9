"""Message types, payload kinds and the JSON payloads carried on the data channel."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum, IntEnum
from typing import Any

from sessionwire.binary import MessageFormatError

INPUT_STREAM_MESSAGE = "input_stream_data"
OUTPUT_STREAM_MESSAGE = "output_stream_data"
ACKNOWLEDGE_MESSAGE = "acknowledge"
CHANNEL_CLOSED_MESSAGE = "channel_closed"
START_PUBLICATION_MESSAGE = "start_publication"
PAUSE_PUBLICATION_MESSAGE = "pause_publication"

_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1
_UINT32_MAX = 2**32 - 1


class PayloadType(IntEnum):
    """Kind of data held in a client message payload."""

    OUTPUT = 1
    ERROR = 2
    SIZE = 3
    PARAMETER = 4
    HANDSHAKE_REQUEST = 5
    HANDSHAKE_RESPONSE = 6
    HANDSHAKE_COMPLETE = 7
    ENC_CHALLENGE_REQUEST = 8
    ENC_CHALLENGE_RESPONSE = 9
    FLAG = 10
    STDERR = 11
    EXIT_CODE = 12


class PayloadTypeFlag(IntEnum):
    """Control flags sent with a FLAG payload."""

    DISCONNECT_TO_PORT = 1
    TERMINATE_SESSION = 2
    CONNECT_TO_PORT_ERROR = 3


class ActionType(str, Enum):
    """Action requested by the agent during the handshake."""

    KMS_ENCRYPTION = "KMSEncryption"
    SESSION_TYPE = "SessionType"


class ActionStatus(IntEnum):
    """Outcome of processing a requested action."""

    SUCCESS = 1
    FAILED = 2
    UNSUPPORTED = 3


def _mapping(data: Any) -> Mapping:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise MessageFormatError(f"Expected a JSON object, got {type(data).__name__}.")
    return data


def _get_str(data: Mapping, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MessageFormatError(f"Field {key!r} must be a string.")
    return value


def _get_int(data: Mapping, key: str, low: int = _INT64_MIN, high: int = _INT64_MAX) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise MessageFormatError(f"Field {key!r} must be an integer.")
    if not low <= value <= high:
        raise MessageFormatError(f"Field {key!r} is out of range.")
    return value


def _get_bool(data: Mapping, key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise MessageFormatError(f"Field {key!r} must be a boolean.")
    return value


def _get_bytes(data: Mapping, key: str) -> bytes:
    value = data.get(key)
    if value is None:
        return b""
    if not isinstance(value, str):
        raise MessageFormatError(f"Field {key!r} must be a base64 string.")
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as exc:
        raise MessageFormatError(f"Field {key!r} is not valid base64: {exc}") from exc


def _encode_bytes(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def _to_json_value(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (bytes, bytearray)):
        return _encode_bytes(bytes(value))
    if isinstance(value, Enum):
        return value.value
    return value


def _action_type(value: str) -> ActionType | str:
    try:
        return ActionType(value)
    except ValueError:
        return value


@dataclass
class AcknowledgeContent:
    """Tells the sender of a message that it has been received."""

    message_type: str = ""
    message_id: str = ""
    sequence_number: int = 0
    is_sequential_message: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "AcknowledgedMessageType": self.message_type,
            "AcknowledgedMessageId": self.message_id,
            "AcknowledgedMessageSequenceNumber": self.sequence_number,
            "IsSequentialMessage": self.is_sequential_message,
        }

    @classmethod
    def from_dict(cls, data: Any) -> AcknowledgeContent:
        data = _mapping(data)
        return cls(
            message_type=_get_str(data, "AcknowledgedMessageType"),
            message_id=_get_str(data, "AcknowledgedMessageId"),
            sequence_number=_get_int(data, "AcknowledgedMessageSequenceNumber"),
            is_sequential_message=_get_bool(data, "IsSequentialMessage"),
        )


@dataclass
class ChannelClosed:
    """Tells the client to close the channel."""

    message_id: str = ""
    created_date: str = ""
    destination_id: str = ""
    session_id: str = ""
    message_type: str = ""
    schema_version: int = 0
    output: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "MessageId": self.message_id,
            "CreatedDate": self.created_date,
            "DestinationId": self.destination_id,
            "SessionId": self.session_id,
            "MessageType": self.message_type,
            "SchemaVersion": self.schema_version,
            "Output": self.output,
        }

    @classmethod
    def from_dict(cls, data: Any) -> ChannelClosed:
        data = _mapping(data)
        return cls(
            message_id=_get_str(data, "MessageId"),
            created_date=_get_str(data, "CreatedDate"),
            destination_id=_get_str(data, "DestinationId"),
            session_id=_get_str(data, "SessionId"),
            message_type=_get_str(data, "MessageType"),
            schema_version=_get_int(data, "SchemaVersion"),
            output=_get_str(data, "Output"),
        )


@dataclass
class SizeData:
    """Terminal dimensions."""

    cols: int = 0
    rows: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"cols": self.cols, "rows": self.rows}

    @classmethod
    def from_dict(cls, data: Any) -> SizeData:
        data = _mapping(data)
        return cls(
            cols=_get_int(data, "cols", 0, _UINT32_MAX),
            rows=_get_int(data, "rows", 0, _UINT32_MAX),
        )


@dataclass
class KMSEncryptionRequest:
    """Sent by the agent to start KMS encryption."""

    kms_key_id: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> KMSEncryptionRequest:
        return cls(kms_key_id=_get_str(_mapping(data), "KMSKeyId"))


@dataclass
class KMSEncryptionResponse:
    """Returned to the agent to set up KMS encryption."""

    kms_cipher_text_key: bytes = b""
    kms_cipher_text_hash: bytes = b""

    def to_dict(self) -> dict[str, str]:
        return {
            "KMSCipherTextKey": _encode_bytes(self.kms_cipher_text_key),
            "KMSCipherTextHash": _encode_bytes(self.kms_cipher_text_hash),
        }


@dataclass
class SessionTypeRequest:
    """Type of session to launch and the properties for its plugin."""

    session_type: str = ""
    properties: Any = None

    @classmethod
    def from_dict(cls, data: Any) -> SessionTypeRequest:
        data = _mapping(data)
        return cls(session_type=_get_str(data, "SessionType"), properties=data.get("Properties"))


@dataclass
class RequestedClientAction:
    """An action the agent asks the client to perform."""

    action_type: ActionType | str = ""
    action_parameters: Any = None

    @classmethod
    def from_dict(cls, data: Any) -> RequestedClientAction:
        data = _mapping(data)
        return cls(
            action_type=_action_type(_get_str(data, "ActionType")),
            action_parameters=data.get("ActionParameters"),
        )


@dataclass
class HandshakeRequestPayload:
    """Handshake request sent by the agent."""

    agent_version: str = ""
    requested_client_actions: list[RequestedClientAction] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> HandshakeRequestPayload:
        data = _mapping(data)
        actions = data.get("RequestedClientActions")
        if actions is None:
            actions = []
        elif not isinstance(actions, list):
            raise MessageFormatError("Field 'RequestedClientActions' must be a list.")
        return cls(
            agent_version=_get_str(data, "AgentVersion"),
            requested_client_actions=[RequestedClientAction.from_dict(item) for item in actions],
        )


@dataclass
class ProcessedClientAction:
    """Result of processing one requested action."""

    action_type: ActionType | str = ""
    action_status: ActionStatus | int = 0
    action_result: Any = None
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "ActionType": _to_json_value(self.action_type),
            "ActionStatus": int(self.action_status),
            "ActionResult": _to_json_value(self.action_result),
            "Error": self.error,
        }


@dataclass
class HandshakeResponsePayload:
    """Handshake response sent by the client."""

    client_version: str = ""
    processed_client_actions: list[ProcessedClientAction] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ClientVersion": self.client_version,
            "ProcessedClientActions": [a.to_dict() for a in self.processed_client_actions],
            "Errors": list(self.errors),
        }


@dataclass
class EncryptionChallengeRequest:
    """Data encrypted by the agent that the client must decrypt and re-encrypt."""

    challenge: bytes = b""

    @classmethod
    def from_dict(cls, data: Any) -> EncryptionChallengeRequest:
        return cls(challenge=_get_bytes(_mapping(data), "Challenge"))


@dataclass
class EncryptionChallengeResponse:
    """The challenge re-encrypted by the client."""

    challenge: bytes = b""

    def to_dict(self) -> dict[str, str]:
        return {"Challenge": _encode_bytes(self.challenge)}


@dataclass
class HandshakeCompletePayload:
    """Signals that the handshake is complete."""

    handshake_time_to_complete: int = 0
    customer_message: str = ""

    @property
    def time_to_complete(self) -> timedelta:
        """Handshake duration; the wire value is in nanoseconds."""
        return timedelta(microseconds=self.handshake_time_to_complete / 1000)

    @classmethod
    def from_dict(cls, data: Any) -> HandshakeCompletePayload:
        data = _mapping(data)
        return cls(
            handshake_time_to_complete=_get_int(data, "HandshakeTimeToComplete"),
            customer_message=_get_str(data, "CustomerMessage"),
        )