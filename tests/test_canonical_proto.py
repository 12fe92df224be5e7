"""
Canonical field order tests.

The two reference messages carry the same twelve fields; the second has
field 13 moved directly after field 1.

Run:
  PYTHONPATH=src pytest tests/test_canonical_proto.py -v
"""

import hashlib

import pytest

from protosort.canonical_proto import (
    SortedMessage,
    canonical_bytes,
    canonical_hash,
    is_message_sorted,
    is_sorted,
    reassemble,
    sha256_hex,
    sort_message,
    sort_message_inplace,
)
from protosort.errors import ParseError, TruncatedFieldError, UnsupportedWireTypeError
from protosort.wire import Chunk, scan_message

CANONICAL_FIELD_ORDER = bytes.fromhex(
    "08541a206519a0dd8255be656014fc1e89efad6871a111bc0837ec13b886c94b"
    "d08cf41a22220a203cc289d22a301557d04e3e88b76b1299785a1dee92c1ccb2"
    "334dc86c98501bc1280130904e38904e40f7b7df81923048f787b2b097305204"
    "10e0a71258046a41c95509f78a317a01e39c9fbf5a7541f04b47181ac46a3e12"
    "a31c0489d14bddd54cb71b13554b1acae37ffecc936bd448db604d2796a94c81"
    "2482133e343a9d0e1b7002"
)

NON_CANONICAL_FIELD_ORDER = bytes.fromhex(
    "08546a41c95509f78a317a01e39c9fbf5a7541f04b47181ac46a3e12a31c0489"
    "d14bddd54cb71b13554b1acae37ffecc936bd448db604d2796a94c812482133e"
    "343a9d0e1b1a206519a0dd8255be656014fc1e89efad6871a111bc0837ec13b8"
    "86c94bd08cf41a22220a203cc289d22a301557d04e3e88b76b1299785a1dee92"
    "c1ccb2334dc86c98501bc1280130904e38904e40f7b7df81923048f787b2b097"
    "30520410e0a71258047002"
)

# Field 2 twice around field 1: the two field-2 entries must keep their order.
REPEATED_FIELD = b"\x10\x01" + b"\x08\x05" + b"\x10\x02"


def _chunks(*ids):
    return [Chunk(id=i, offset=n, length=1) for n, i in enumerate(ids)]


# ---------------------------------------------------------------------------
# Order check
# ---------------------------------------------------------------------------

def test_is_sorted_empty_and_single():
    assert is_sorted([]) is True
    assert is_sorted(_chunks(7)) is True


def test_is_sorted_allows_equal_ids():
    assert is_sorted(_chunks(1, 1, 2, 2, 9)) is True


def test_is_sorted_detects_inversion():
    assert is_sorted(_chunks(1, 3, 2)) is False
    assert is_sorted(_chunks(2, 1)) is False


def test_reference_messages_parse():
    assert len(scan_message(CANONICAL_FIELD_ORDER)) == 12
    assert len(scan_message(NON_CANONICAL_FIELD_ORDER)) == 12


def test_is_message_sorted():
    assert is_message_sorted(b"") is True
    assert is_message_sorted(CANONICAL_FIELD_ORDER) is True
    assert is_message_sorted(NON_CANONICAL_FIELD_ORDER) is False
    assert is_message_sorted(REPEATED_FIELD) is False


def test_is_message_sorted_propagates_parse_error():
    with pytest.raises(UnsupportedWireTypeError):
        is_message_sorted(b"\x08\x01\x0b")


# ---------------------------------------------------------------------------
# Copy sort
# ---------------------------------------------------------------------------

def test_sort_empty_message():
    result = sort_message(b"")
    assert bytes(result) == b""
    assert len(result) == 0


def test_sort_already_sorted_is_borrowed():
    result = sort_message(CANONICAL_FIELD_ORDER)
    assert isinstance(result, SortedMessage)
    assert result.borrowed is True
    assert result.data.readonly
    assert bytes(result) == CANONICAL_FIELD_ORDER


def test_borrowed_result_aliases_input():
    buf = bytearray(b"\x08\x01\x10\x02")
    result = sort_message(buf)
    assert result.borrowed is True
    buf[1] = 0x7F
    assert result.data[1] == 0x7F


def test_sort_reorders_fields():
    result = sort_message(NON_CANONICAL_FIELD_ORDER)
    assert result.borrowed is False
    assert isinstance(result.data, bytes)
    assert len(result) == len(NON_CANONICAL_FIELD_ORDER)
    assert result.tobytes() == CANONICAL_FIELD_ORDER
    assert is_message_sorted(result.data)


def test_sort_moves_field_1_before_field_13():
    ids = [c.id for c in scan_message(sort_message(NON_CANONICAL_FIELD_ORDER).data)]
    assert ids.index(1) < ids.index(13)
    assert ids == sorted(ids)


def test_sort_scenario_field1_then_field3():
    msg = b"\x08\x54\x1a\x20" + bytes(range(32))
    assert is_message_sorted(msg) is True
    assert bytes(sort_message(msg)) == msg


def test_sort_is_stable_for_repeated_fields():
    assert bytes(sort_message(REPEATED_FIELD)) == b"\x08\x05\x10\x01\x10\x02"


def test_sort_is_idempotent():
    once = canonical_bytes(NON_CANONICAL_FIELD_ORDER)
    twice = sort_message(once)
    assert twice.borrowed is True
    assert bytes(twice) == once


def test_sort_rejects_malformed_message():
    with pytest.raises(ParseError):
        sort_message(b"\x10\x01\x08")


def test_sort_strided_view():
    strided = memoryview(b"\x10\x00\x01\x00\x08\x00\x02\x00")[::2]
    assert is_message_sorted(strided) is False
    result = sort_message(strided)
    assert result.borrowed is False
    assert bytes(result) == b"\x08\x02\x10\x01"


def test_sort_strided_view_already_sorted():
    strided = memoryview(b"\x08\x00\x02\x00\x10\x00\x01\x00")[::2]
    result = sort_message(strided)
    assert result.borrowed is True
    assert result.tobytes() == b"\x08\x02\x10\x01"


def test_reassemble_checks_ranges():
    with pytest.raises(TruncatedFieldError):
        reassemble([Chunk(id=2, offset=0, length=2), Chunk(id=1, offset=2, length=4)], b"\x10\x01\x08\x01")


# ---------------------------------------------------------------------------
# In-place sort
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "msg,expected",
    [
        (b"", b""),
        (CANONICAL_FIELD_ORDER, CANONICAL_FIELD_ORDER),
        (NON_CANONICAL_FIELD_ORDER, CANONICAL_FIELD_ORDER),
        (REPEATED_FIELD, b"\x08\x05\x10\x01\x10\x02"),
    ],
)
def test_sort_message_inplace(msg, expected):
    buf = bytearray(msg)
    sort_message_inplace(buf)
    assert bytes(buf) == expected
    assert is_message_sorted(buf)


def test_sort_inplace_through_memoryview():
    backing = bytearray(NON_CANONICAL_FIELD_ORDER)
    sort_message_inplace(memoryview(backing))
    assert bytes(backing) == CANONICAL_FIELD_ORDER


def test_sort_inplace_through_strided_view():
    backing = bytearray(b"\x10\x00\x01\x00\x08\x00\x02\x00")
    sort_message_inplace(memoryview(backing)[::2])
    assert bytes(backing) == b"\x08\x00\x02\x00\x10\x00\x01\x00"


def test_sort_inplace_requires_writable_buffer():
    with pytest.raises(TypeError):
        sort_message_inplace(NON_CANONICAL_FIELD_ORDER)


def test_sort_inplace_leaves_buffer_on_parse_error():
    original = b"\x10\x01\x08\x01\x1a\x09short"
    buf = bytearray(original)
    with pytest.raises(TruncatedFieldError):
        sort_message_inplace(buf)
    assert bytes(buf) == original


# ---------------------------------------------------------------------------
# Hashing
# ---------------------------------------------------------------------------

def test_canonical_hash_ignores_field_order():
    assert canonical_hash(NON_CANONICAL_FIELD_ORDER) == canonical_hash(CANONICAL_FIELD_ORDER)


def test_canonical_hash_is_sha256_of_canonical_bytes():
    expected = hashlib.sha256(CANONICAL_FIELD_ORDER).hexdigest()
    assert canonical_hash(NON_CANONICAL_FIELD_ORDER) == expected
    assert sha256_hex(CANONICAL_FIELD_ORDER) == expected


def test_canonical_hash_changes_with_content():
    assert canonical_hash(b"\x08\x01") != canonical_hash(b"\x08\x02")


def test_canonical_hash_keeps_repeated_field_order():
    assert canonical_hash(b"\x10\x01\x08\x05\x10\x02") == canonical_hash(b"\x08\x05\x10\x01\x10\x02")
    assert canonical_hash(b"\x10\x01\x10\x02") != canonical_hash(b"\x10\x02\x10\x01")
