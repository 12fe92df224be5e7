"""
wire.py — Protocol Buffers wire-format scanner

Splits a serialized message into chunks, one per top-level field entry
(key plus payload), without any schema. Payloads are never decoded beyond
what is needed to find where the entry ends; length-delimited payloads are
opaque, so embedded messages are not descended into.

Varints are accumulated most-significant-group-first:

    value = (value << 7) | (byte & 0x7F)

Canonical order is defined by field ids decoded this way. The result
differs from standard protobuf decoding (least-significant group first)
only for varints of two or more bytes, i.e. field numbers above 15 and
length prefixes above 127.
"""

from __future__ import annotations
import logging
import sys
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Tuple, Union

from .errors import (
    EmptyVarintError,
    LengthOverflowError,
    TruncatedFieldError,
    TruncatedVarintError,
    UnsupportedWireTypeError,
    VarintTooLongError,
)

logger = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]

# A 64-bit value needs at most 10 groups of 7 bits.
MAX_VARINT_BYTES = 10

# Largest declared payload size accepted for a length-delimited field.
MAX_LENGTH = sys.maxsize


class WireType(IntEnum):
    VARINT = 0
    FIXED64 = 1
    LENGTH_DELIMITED = 2
    START_GROUP = 3
    END_GROUP = 4
    FIXED32 = 5


@dataclass(frozen=True)
class Chunk:
    """One field entry of a message, as a byte range of the source buffer."""
    id: int
    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length


def as_view(msg: BytesLike) -> memoryview:
    """Return a flat unsigned-byte view over *msg* without copying."""
    view = memoryview(msg)
    if view.format != "B" or view.ndim != 1:
        view = view.cast("B")
    return view


def read_varint(buf: BytesLike, offset: int = 0) -> Tuple[int, int]:
    """Decode the varint starting at *offset*.

    Returns:
        (value, number of bytes consumed)

    Raises:
        EmptyVarintError: no bytes remain at *offset*.
        TruncatedVarintError: the buffer ends before a terminating byte.
        VarintTooLongError: more than ``MAX_VARINT_BYTES`` bytes.
    """
    end = len(buf)
    if offset >= end:
        raise EmptyVarintError(offset=offset)
    value = 0
    pos = offset
    while True:
        if pos - offset == MAX_VARINT_BYTES:
            raise VarintTooLongError(offset=offset)
        if pos >= end:
            raise TruncatedVarintError(offset=offset)
        byte = buf[pos]
        pos += 1
        value = (value << 7) | (byte & 0x7F)
        if not byte & 0x80:
            return value, pos - offset


def _payload_length(buf: BytesLike, offset: int, wire_type: int) -> int:
    if wire_type == WireType.VARINT:
        # Only the size of the value matters, not the value itself.
        _, length = read_varint(buf, offset)
        return length
    if wire_type == WireType.FIXED64:
        return 8
    if wire_type == WireType.LENGTH_DELIMITED:
        size, length = read_varint(buf, offset)
        if size > MAX_LENGTH:
            raise LengthOverflowError(context=f"declared size {size}", offset=offset)
        return length + size
    if wire_type == WireType.FIXED32:
        return 4
    if wire_type in (WireType.START_GROUP, WireType.END_GROUP):
        raise UnsupportedWireTypeError(wire_type, context="group encoding is deprecated", offset=offset)
    raise UnsupportedWireTypeError(wire_type, context="unrecognized wire type", offset=offset)


def read_field(buf: BytesLike, offset: int) -> Chunk:
    """Decode the key of the field entry at *offset* and measure the entry.

    The returned chunk covers key and payload. Whether it fits inside
    *buf* is left to the caller.
    """
    key, key_length = read_varint(buf, offset)
    field_id, wire_type = key >> 3, key & 0x7
    payload_length = _payload_length(buf, offset + key_length, wire_type)
    return Chunk(id=field_id, offset=offset, length=key_length + payload_length)


def scan_message(msg: BytesLike) -> List[Chunk]:
    """Split *msg* into chunks in encounter order.

    The chunks exactly partition the message. An empty message gives an
    empty list.

    Raises:
        ParseError: on the first malformed field; no partial result.
    """
    view = as_view(msg)
    total = len(view)
    chunks: List[Chunk] = []
    offset = 0
    while offset < total:
        chunk = read_field(view, offset)
        if chunk.end > total:
            raise TruncatedFieldError(
                context=f"field {chunk.id} needs {chunk.length} bytes, {total - offset} remain",
                offset=offset,
            )
        chunks.append(chunk)
        offset = chunk.end
    logger.debug("scanned %d fields from %d-byte message", len(chunks), total)
    return chunks
