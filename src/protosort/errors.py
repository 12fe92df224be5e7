"""
errors.py — protosort Error Taxonomy

Every failure surfaced to callers is a ``ParseError`` (or a subclass naming
the cause). ``FrameError`` covers the delimited-stream layer used by the CLI.
"""

from typing import Optional

__all__ = [
    "ProtosortError",
    "ParseError",
    "EmptyVarintError",
    "TruncatedVarintError",
    "VarintTooLongError",
    "UnsupportedWireTypeError",
    "LengthOverflowError",
    "TruncatedFieldError",
    "FrameError",
]

class ProtosortError(Exception):
    """Base class for all protosort errors."""
    def __init__(
        self,
        code: str,
        message: str,
        context: Optional[str] = None,
        offset: Optional[int] = None,
    ):
        self.code = code
        self.message = message
        self.context = context
        self.offset = offset

        full_msg = f"[{code}] {message}"
        if offset is not None:
            full_msg += f" At byte offset {offset}."
        if context:
            full_msg += f" Context: {context}"

        super().__init__(full_msg)

# Parse Errors (E0xx)
class ParseError(ProtosortError):
    """Failed to parse a protobuf message."""
    def __init__(
        self,
        context: Optional[str] = None,
        offset: Optional[int] = None,
        code: str = "PROTOSORT_E001",
        message: str = "Failed to parse protobuf message.",
    ):
        super().__init__(code, message, context, offset)

class EmptyVarintError(ParseError):
    def __init__(self, context: Optional[str] = None, offset: Optional[int] = None):
        super().__init__(context, offset, "PROTOSORT_E002", "A varint was expected but no bytes remain.")

class TruncatedVarintError(ParseError):
    def __init__(self, context: Optional[str] = None, offset: Optional[int] = None):
        super().__init__(context, offset, "PROTOSORT_E003", "The buffer ends inside a varint (continuation bit still set).")

class VarintTooLongError(ParseError):
    def __init__(self, context: Optional[str] = None, offset: Optional[int] = None):
        super().__init__(context, offset, "PROTOSORT_E004", "A varint is longer than the maximum of 10 bytes.")

class UnsupportedWireTypeError(ParseError):
    def __init__(self, wire_type: int, context: Optional[str] = None, offset: Optional[int] = None):
        self.wire_type = wire_type
        super().__init__(context, offset, "PROTOSORT_E005", f"Wire type {wire_type} is not supported.")

class LengthOverflowError(ParseError):
    def __init__(self, context: Optional[str] = None, offset: Optional[int] = None):
        super().__init__(context, offset, "PROTOSORT_E006", "A length-delimited field declares a size larger than any addressable buffer.")

class TruncatedFieldError(ParseError):
    def __init__(self, context: Optional[str] = None, offset: Optional[int] = None):
        super().__init__(context, offset, "PROTOSORT_E007", "A field extends past the end of the message.")

# Framing Errors (E1xx)
class FrameError(ProtosortError):
    def __init__(self, context: Optional[str] = None, offset: Optional[int] = None):
        super().__init__("PROTOSORT_E100", "A length-delimited message stream is malformed.", context, offset)
