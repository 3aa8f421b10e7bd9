"""Big-endian field codec for the data channel wire format."""

from __future__ import annotations

import struct
import uuid

_OUTSIDE = "Offset is outside the byte array."
_NIL_UUID = uuid.UUID(int=0)


class MessageFormatError(ValueError):
    """Raised when a wire field cannot be read or written."""


def _outside(size: int, offset: int, length: int) -> bool:
    return offset < 0 or offset > size - 1 or offset + length > size


def _span_outside(size: int, start: int, end: int) -> bool:
    return start < 0 or start > size - 1 or end > size - 1 or start > end


def _pack(fmt: str, value: int) -> bytes:
    try:
        return struct.pack(fmt, value)
    except struct.error as exc:
        raise MessageFormatError(f"Value {value} does not fit the field: {exc}") from exc


def get_string(data: bytes, offset: int, length: int) -> str:
    """Read a fixed-width string, dropping surrounding NULs and whitespace."""
    if _outside(len(data), offset, length):
        raise MessageFormatError(_OUTSIDE)
    raw = bytes(data[offset:offset + length]).strip(b"\x00")
    return raw.decode("utf-8", errors="replace").strip()


def bytes_to_integer(data: bytes) -> int:
    """Decode exactly four bytes as a signed 32-bit integer."""
    if len(data) != 4:
        raise MessageFormatError("Input array size is not equal to 4.")
    return struct.unpack(">i", bytes(data))[0]


def bytes_to_long(data: bytes) -> int:
    """Decode exactly eight bytes as a signed 64-bit integer."""
    if len(data) != 8:
        raise MessageFormatError("Input array size is not equal to 8.")
    return struct.unpack(">q", bytes(data))[0]


def get_integer(data: bytes, offset: int) -> int:
    """Read a signed 32-bit integer at offset."""
    if _outside(len(data), offset, 4):
        raise MessageFormatError("Offset is bigger than the byte array.")
    return bytes_to_integer(data[offset:offset + 4])


def get_uinteger(data: bytes, offset: int) -> int:
    """Read an unsigned 32-bit integer at offset."""
    return get_integer(data, offset) & 0xFFFFFFFF


def get_long(data: bytes, offset: int) -> int:
    """Read a signed 64-bit integer at offset."""
    if _outside(len(data), offset, 8):
        raise MessageFormatError(_OUTSIDE)
    return bytes_to_long(data[offset:offset + 8])


def get_ulong(data: bytes, offset: int) -> int:
    """Read an unsigned 64-bit integer at offset."""
    return get_long(data, offset) & 0xFFFFFFFFFFFFFFFF


def get_uuid(data: bytes, offset: int) -> uuid.UUID:
    """Read a UUID stored as its low eight bytes followed by its high eight bytes."""
    if _outside(len(data), offset, 16):
        raise MessageFormatError(_OUTSIDE)
    low = bytes(data[offset:offset + 8])
    high = bytes(data[offset + 8:offset + 16])
    return uuid.UUID(bytes=high + low)


def get_bytes(data: bytes, offset: int, length: int) -> bytes:
    """Read length bytes starting at offset."""
    if _outside(len(data), offset, length):
        raise MessageFormatError(_OUTSIDE)
    return bytes(data[offset:offset + length])


def integer_to_bytes(value: int) -> bytes:
    """Encode a signed 32-bit integer."""
    return _pack(">i", value)


def long_to_bytes(value: int) -> bytes:
    """Encode a signed 64-bit integer."""
    return _pack(">q", value)


def put_string(buffer: bytearray, offset_start: int, offset_end: int, value: str) -> None:
    """Write a string into an inclusive range, padding the rest with spaces."""
    if _span_outside(len(buffer), offset_start, offset_end):
        raise MessageFormatError(_OUTSIDE)
    encoded = value.encode("utf-8")
    width = offset_end - offset_start + 1
    if width < len(encoded):
        raise MessageFormatError("Not enough space to save the string.")
    buffer[offset_start:offset_end + 1] = encoded.ljust(width, b" ")


def put_bytes(buffer: bytearray, offset_start: int, offset_end: int, value: bytes) -> None:
    """Write bytes that exactly fill an inclusive range."""
    if _span_outside(len(buffer), offset_start, offset_end):
        raise MessageFormatError(_OUTSIDE)
    if offset_end - offset_start + 1 != len(value):
        raise MessageFormatError("Not enough space to save the bytes.")
    buffer[offset_start:offset_end + 1] = value


def _put(buffer: bytearray, offset: int, fmt: str, value: int) -> None:
    size = struct.calcsize(fmt)
    if _outside(len(buffer), offset, size):
        raise MessageFormatError(_OUTSIDE)
    buffer[offset:offset + size] = _pack(fmt, value)


def put_integer(buffer: bytearray, offset: int, value: int) -> None:
    """Write a signed 32-bit integer at offset."""
    _put(buffer, offset, ">i", value)


def put_uinteger(buffer: bytearray, offset: int, value: int) -> None:
    """Write an unsigned 32-bit integer at offset."""
    _put(buffer, offset, ">I", value)


def put_long(buffer: bytearray, offset: int, value: int) -> None:
    """Write a signed 64-bit integer at offset."""
    _put(buffer, offset, ">q", value)


def put_ulong(buffer: bytearray, offset: int, value: int) -> None:
    """Write an unsigned 64-bit integer at offset."""
    _put(buffer, offset, ">Q", value)


def put_uuid(buffer: bytearray, offset: int, value: uuid.UUID) -> None:
    """Write a UUID as its low eight bytes followed by its high eight bytes."""
    if value == _NIL_UUID:
        raise MessageFormatError("putUuid failed: input is null.")
    if _outside(len(buffer), offset, 16):
        raise MessageFormatError(_OUTSIDE)
    raw = value.bytes
    buffer[offset:offset + 8] = raw[8:16]
    buffer[offset + 8:offset + 16] = raw[0:8]