"""Request parameters for opening a data channel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

_FIELDS = (
    ("message_schema_version", "MessageSchemaVersion", 1),
    ("request_id", "RequestId", 16),
    ("token_value", "TokenValue", 1),
    ("client_id", "ClientId", 1),
)


@dataclass
class OpenDataChannelInput:
    """Parameters sent to open a data channel; every field is required."""

    message_schema_version: str | None = None
    request_id: str | None = None
    token_value: str | None = None
    client_id: str | None = None

    def validate(self) -> None:
        """Raise ValueError listing every missing or too-short field."""
        problems = []
        for attr, key, minimum in _FIELDS:
            value = getattr(self, attr)
            if value is None:
                problems.append(f"missing required field, OpenDataChannelInput.{key}.")
            elif len(value) < minimum:
                problems.append(
                    f"minimum field size of {minimum}, OpenDataChannelInput.{key}."
                )
        if problems:
            raise ValueError("invalid OpenDataChannelInput: " + " ".join(problems))

    def to_dict(self) -> dict[str, Any]:
        """JSON form of the request, keyed as on the wire."""
        return {key: getattr(self, attr) for attr, key, _ in _FIELDS}