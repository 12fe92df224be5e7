"""protosort public API.

Deterministic top-level field order for serialized Protocol Buffers
messages, computed from the wire format alone.

Example:
    from protosort import sort_message, is_message_sorted

    canonical = sort_message(payload)
    assert is_message_sorted(canonical.data)
"""

from .canonical_proto import (
    SortedMessage,
    canonical_bytes,
    canonical_hash,
    is_message_sorted,
    sort_message,
    sort_message_inplace,
)
from .errors import ParseError, ProtosortError, FrameError
from .framing import encode_delimited, iter_delimited
from .wire import Chunk, WireType, read_varint, scan_message

__version__ = "0.1.0"
__all__ = [
    # Operations
    "is_message_sorted",
    "sort_message",
    "sort_message_inplace",
    "canonical_bytes",
    "canonical_hash",
    "SortedMessage",
    # Wire format
    "Chunk",
    "WireType",
    "read_varint",
    "scan_message",
    # Streams
    "iter_delimited",
    "encode_delimited",
    # Errors
    "ProtosortError",
    "ParseError",
    "FrameError",
]
