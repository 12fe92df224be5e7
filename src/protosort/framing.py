"""
framing.py — Length-delimited message streams

A stream holds any number of messages, each preceded by its length as a
standard protobuf varint (least-significant group first), the layout
written by ``writeDelimitedTo`` and read by ``parseDelimitedFrom``.

Frame prefixes are plain lengths, not message content, so they use the
standard decoding rather than the ordering in ``wire.read_varint``.
"""

from __future__ import annotations
from typing import BinaryIO, Iterable, Iterator, Tuple

from .errors import FrameError
from .wire import MAX_VARINT_BYTES, BytesLike, as_view


def encode_varint(n: int) -> bytes:
    """LEB128 unsigned varint encoding."""
    if n < 0:
        raise ValueError("varint of negative value")
    out = bytearray()
    while True:
        to_write = n & 0x7F
        n >>= 7
        if n:
            out.append(to_write | 0x80)
        else:
            out.append(to_write)
            break
    return bytes(out)


def decode_varint(data: BytesLike, offset: int = 0) -> Tuple[int, int]:
    """Return (value, new_offset)."""
    shift = 0
    result = 0
    i = offset
    while True:
        if i >= len(data):
            raise FrameError("truncated length prefix", offset=offset)
        b = data[i]
        i += 1
        result |= (b & 0x7F) << shift
        if (b & 0x80) == 0:
            break
        shift += 7
        if i - offset >= MAX_VARINT_BYTES:
            raise FrameError("length prefix too long", offset=offset)
    return result, i


def iter_delimited(data: BytesLike) -> Iterator[memoryview]:
    """Yield each message of a delimited stream as a view into *data*."""
    view = as_view(data)
    offset = 0
    while offset < len(view):
        size, start = decode_varint(view, offset)
        end = start + size
        if end > len(view):
            raise FrameError(
                f"frame declares {size} bytes, {len(view) - start} remain",
                offset=offset,
            )
        yield view[start:end]
        offset = end


def encode_delimited(messages: Iterable[BytesLike]) -> bytes:
    """Join *messages* into one delimited stream."""
    out = bytearray()
    for msg in messages:
        out += encode_varint(len(msg))
        out += msg
    return bytes(out)


def write_delimited(stream: BinaryIO, messages: Iterable[BytesLike]) -> int:
    """Write *messages* to *stream* as a delimited stream; return bytes written."""
    written = 0
    for msg in messages:
        prefix = encode_varint(len(msg))
        stream.write(prefix)
        stream.write(msg)
        written += len(prefix) + len(msg)
    return written
