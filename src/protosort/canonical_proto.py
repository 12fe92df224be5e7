"""
canonical_proto.py — Deterministic field order for serialized protobuf messages

A message is canonical when its top-level field entries appear in ascending
field-number order. Entries sharing a field number keep their relative
order: repeated fields and last-one-wins merges depend on it.

Sorting is a pure permutation of the original entry bytes. Nothing is
re-encoded, so the canonical form of a message has exactly its length.
"""

from __future__ import annotations
import hashlib
import logging
from dataclasses import dataclass
from typing import List, Sequence, Union

from .errors import TruncatedFieldError
from .wire import BytesLike, Chunk, as_view, scan_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SortedMessage:
    """Result of ``sort_message``.

    When the input was already canonical, ``borrowed`` is True and ``data``
    is a read-only view sharing storage with the input; nothing was copied.
    Otherwise ``data`` is a newly built ``bytes`` object.
    """
    data: Union[memoryview, bytes]
    borrowed: bool

    def __bytes__(self) -> bytes:
        return self.tobytes()

    def __len__(self) -> int:
        return len(self.data)

    def tobytes(self) -> bytes:
        if isinstance(self.data, memoryview):
            return self.data.tobytes()
        return self.data


def is_sorted(chunks: Sequence[Chunk]) -> bool:
    """True if field ids never decrease along *chunks*."""
    for i in range(1, len(chunks)):
        if chunks[i].id < chunks[i - 1].id:
            return False
    return True


def reassemble(chunks: List[Chunk], msg: BytesLike) -> bytes:
    """Stable-sort *chunks* by field id and concatenate their byte ranges."""
    # TODO: embedded messages could be canonicalized recursively here once a
    # descriptor is available to tell them apart from bytes/string payloads.
    view = as_view(msg)
    out = bytearray()
    for chunk in sorted(chunks, key=lambda c: c.id):
        piece = view[chunk.offset:chunk.end]
        if len(piece) != chunk.length:
            raise TruncatedFieldError(context=f"field {chunk.id}", offset=chunk.offset)
        out += piece.tobytes()
    return bytes(out)


def is_message_sorted(msg: BytesLike) -> bool:
    """Return True if *msg* already has its fields in canonical order.

    Raises:
        ParseError: *msg* is not a well-formed message.
    """
    return is_sorted(scan_message(msg))


def sort_message(msg: BytesLike) -> SortedMessage:
    """Return *msg* with its fields in canonical order.

    Already-canonical input comes back as a borrowed, read-only view of
    *msg*; callers must not rely on it outliving or diverging from *msg*.

    Raises:
        ParseError: *msg* is not a well-formed message.
    """
    chunks = scan_message(msg)
    if is_sorted(chunks):
        logger.debug("message already canonical, returning borrowed view")
        return SortedMessage(data=as_view(msg).toreadonly(), borrowed=True)
    logger.debug("reordering %d fields", len(chunks))
    return SortedMessage(data=reassemble(chunks, msg), borrowed=False)


def sort_message_inplace(msg: Union[bytearray, memoryview]) -> None:
    """Reorder the fields of a writable buffer in place.

    The buffer is left untouched if already canonical or if parsing fails.

    Raises:
        TypeError: *msg* is not writable.
        ParseError: *msg* is not a well-formed message.
    """
    view = as_view(msg)
    if view.readonly:
        raise TypeError(f"in-place sort needs a writable buffer, got {type(msg).__name__}")
    chunks = scan_message(view)
    if is_sorted(chunks):
        return
    logger.debug("reordering %d fields in place", len(chunks))
    view[:] = reassemble(chunks, view)


def canonical_bytes(msg: BytesLike) -> bytes:
    """Return the canonical form of *msg* as ``bytes``."""
    return sort_message(msg).tobytes()


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def canonical_hash(msg: BytesLike) -> str:
    """Content hash of a protobuf message, independent of its field order.

    Two encodings that differ only in the order of distinct top-level
    fields hash the same; repeated entries of one field must still appear
    in the same relative order.
    """
    return sha256_hex(canonical_bytes(msg))
