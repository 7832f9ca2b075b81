"""Canonical CBOR wire form for Plutus Data.

Matches the chain's serialization as emitted by the wallet SDK, so the
bytes can be attached to a transaction as an inline datum or redeemer
without transcoding:

- Constr index 0..6 -> tag 121+i, 7..127 -> tag 1280+(i-7),
  anything else -> tag 102 over [index, fields]
- lists: empty -> 0x80, non-empty -> indefinite array (0x9f ... 0xff)
- maps: definite length
- integers: major type 0/1 inside 64 bits, bignum tags 2/3 outside
- byte strings: definite up to 64 bytes, longer ones as an indefinite
  string of 64-byte chunks
- heads always use the shortest argument form

The decoder is lenient about definite vs indefinite containers but
rejects anything that is not Plutus Data (text, floats, simple values,
unknown tags), trailing bytes, truncation and excessive nesting.
"""

from __future__ import annotations

from typing import Optional

from spal.codec.data import ByteString, Constr, DataList, DataMap, Integer, PlutusData
from spal.codec.errors import DecodingError, DecodingErrorKind, EncodingError


# Major types
_UINT = 0
_NINT = 1
_BYTES = 2
_TEXT = 3
_ARRAY = 4
_MAP = 5
_TAG = 6

_INDEFINITE = 31
_BREAK = 0xFF

_TAG_POS_BIGNUM = 2
_TAG_NEG_BIGNUM = 3
_TAG_CONSTR_GENERAL = 102
_TAG_CONSTR_SMALL = 121  # indexes 0..6
_TAG_CONSTR_LARGE = 1280  # indexes 7..127

BYTES_CHUNK_SIZE = 64
MAX_DEPTH = 128

_U64_LIMIT = 2**64


# ------------------------------------------------------------------ #
# Encoding                                                            #
# ------------------------------------------------------------------ #

def _head(major: int, value: int) -> bytes:
    prefix = major << 5
    if value < 24:
        return bytes([prefix | value])
    if value < 0x100:
        return bytes([prefix | 24, value])
    if value < 0x10000:
        return bytes([prefix | 25]) + value.to_bytes(2, "big")
    if value < 0x100000000:
        return bytes([prefix | 26]) + value.to_bytes(4, "big")
    if value < _U64_LIMIT:
        return bytes([prefix | 27]) + value.to_bytes(8, "big")
    raise EncodingError(f"CBOR head argument too large: {value}")


def _encode_bytes(value: bytes) -> bytes:
    if len(value) <= BYTES_CHUNK_SIZE:
        return _head(_BYTES, len(value)) + value
    out = bytearray([(_BYTES << 5) | _INDEFINITE])
    for start in range(0, len(value), BYTES_CHUNK_SIZE):
        chunk = value[start:start + BYTES_CHUNK_SIZE]
        out += _head(_BYTES, len(chunk)) + chunk
    out.append(_BREAK)
    return bytes(out)


def _encode_int(value: int) -> bytes:
    if 0 <= value < _U64_LIMIT:
        return _head(_UINT, value)
    if -_U64_LIMIT <= value < 0:
        return _head(_NINT, -1 - value)
    if value > 0:
        tag, magnitude = _TAG_POS_BIGNUM, value
    else:
        tag, magnitude = _TAG_NEG_BIGNUM, -1 - value
    raw = magnitude.to_bytes((magnitude.bit_length() + 7) // 8, "big")
    return _head(_TAG, tag) + _encode_bytes(raw)


def _encode_list(items: tuple[PlutusData, ...], out: bytearray) -> None:
    if not items:
        out.append(_ARRAY << 5)
        return
    out.append((_ARRAY << 5) | _INDEFINITE)
    for item in items:
        _encode_into(item, out)
    out.append(_BREAK)


def _encode_into(node: PlutusData, out: bytearray) -> None:
    if isinstance(node, Constr):
        if node.index <= 6:
            out += _head(_TAG, _TAG_CONSTR_SMALL + node.index)
        elif node.index <= 127:
            out += _head(_TAG, _TAG_CONSTR_LARGE + node.index - 7)
        else:
            out += _head(_TAG, _TAG_CONSTR_GENERAL)
            out += _head(_ARRAY, 2)
            out += _encode_int(node.index)
        _encode_list(node.fields, out)
    elif isinstance(node, Integer):
        out += _encode_int(node.value)
    elif isinstance(node, ByteString):
        out += _encode_bytes(node.value)
    elif isinstance(node, DataList):
        _encode_list(node.items, out)
    elif isinstance(node, DataMap):
        out += _head(_MAP, len(node.entries))
        for key, value in node.entries:
            _encode_into(key, out)
            _encode_into(value, out)
    else:
        raise EncodingError(f"not a Plutus Data node: {type(node).__name__}")


def to_cbor(node: PlutusData) -> bytes:
    """Serialize a tree to canonical CBOR bytes."""
    out = bytearray()
    _encode_into(node, out)
    return bytes(out)


# ------------------------------------------------------------------ #
# Decoding                                                            #
# ------------------------------------------------------------------ #

def _malformed(message: str) -> DecodingError:
    return DecodingError(DecodingErrorKind.MALFORMED_CBOR, message)


class _Reader:
    """Cursor over a CBOR byte string."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def take(self, n: int) -> bytes:
        if n > self.remaining:
            raise _malformed(
                f"truncated input: need {n} bytes at offset {self._pos}, "
                f"have {self.remaining}"
            )
        chunk = self._data[self._pos:self._pos + n]
        self._pos += n
        return chunk

    def peek(self) -> int:
        if self.remaining < 1:
            raise _malformed(f"truncated input at offset {self._pos}")
        return self._data[self._pos]

    def at_break(self) -> bool:
        if self.peek() == _BREAK:
            self._pos += 1
            return True
        return False

    def head(self) -> tuple[int, Optional[int]]:
        """Read an item head. Returns (major, argument); argument is None
        for indefinite length."""
        initial = self.take(1)[0]
        major, info = initial >> 5, initial & 0x1F
        if info < 24:
            return major, info
        if info == 24:
            return major, self.take(1)[0]
        if info == 25:
            return major, int.from_bytes(self.take(2), "big")
        if info == 26:
            return major, int.from_bytes(self.take(4), "big")
        if info == 27:
            return major, int.from_bytes(self.take(8), "big")
        if info == _INDEFINITE and major in (_BYTES, _ARRAY, _MAP):
            return major, None
        raise _malformed(f"invalid additional info {info} for major type {major}")


def _read_bytes(reader: _Reader, length: Optional[int]) -> bytes:
    if length is not None:
        return reader.take(length)
    chunks = bytearray()
    while not reader.at_break():
        major, chunk_len = reader.head()
        if major != _BYTES or chunk_len is None:
            raise _malformed("indefinite byte string chunk must be a definite byte string")
        chunks += reader.take(chunk_len)
    return bytes(chunks)


def _read_items(reader: _Reader, length: Optional[int], depth: int) -> tuple[PlutusData, ...]:
    items: list[PlutusData] = []
    if length is None:
        while not reader.at_break():
            items.append(_decode_item(reader, depth))
    else:
        if length > reader.remaining:
            raise _malformed(f"array length {length} exceeds remaining input")
        for _ in range(length):
            items.append(_decode_item(reader, depth))
    return tuple(items)


def _read_entries(
    reader: _Reader, length: Optional[int], depth: int,
) -> tuple[tuple[PlutusData, PlutusData], ...]:
    entries: list[tuple[PlutusData, PlutusData]] = []
    if length is None:
        while not reader.at_break():
            key = _decode_item(reader, depth)
            entries.append((key, _decode_item(reader, depth)))
    else:
        if length * 2 > reader.remaining:
            raise _malformed(f"map length {length} exceeds remaining input")
        for _ in range(length):
            key = _decode_item(reader, depth)
            entries.append((key, _decode_item(reader, depth)))
    return tuple(entries)


def _read_fields(reader: _Reader, depth: int) -> tuple[PlutusData, ...]:
    major, length = reader.head()
    if major != _ARRAY:
        raise DecodingError(
            DecodingErrorKind.WRONG_CONSTRUCTOR_SHAPE,
            f"constructor fields must be an array, got major type {major}",
        )
    return _read_items(reader, length, depth)


def _decode_tag(reader: _Reader, tag: int, depth: int) -> PlutusData:
    if _TAG_CONSTR_SMALL <= tag <= _TAG_CONSTR_SMALL + 6:
        return Constr(tag - _TAG_CONSTR_SMALL, _read_fields(reader, depth))
    if _TAG_CONSTR_LARGE <= tag <= _TAG_CONSTR_LARGE + 120:
        return Constr(tag - _TAG_CONSTR_LARGE + 7, _read_fields(reader, depth))
    if tag == _TAG_CONSTR_GENERAL:
        major, length = reader.head()
        if major != _ARRAY or length != 2:
            raise DecodingError(
                DecodingErrorKind.WRONG_CONSTRUCTOR_SHAPE,
                "tag 102 constructor must wrap a 2-element array",
            )
        index = _decode_item(reader, depth)
        if not isinstance(index, Integer) or index.value < 0:
            raise DecodingError(
                DecodingErrorKind.WRONG_CONSTRUCTOR_SHAPE,
                "tag 102 constructor index must be a non-negative integer",
            )
        return Constr(index.value, _read_fields(reader, depth))
    if tag in (_TAG_POS_BIGNUM, _TAG_NEG_BIGNUM):
        major, length = reader.head()
        if major != _BYTES:
            raise _malformed(f"bignum tag {tag} must wrap a byte string")
        magnitude = int.from_bytes(_read_bytes(reader, length), "big")
        return Integer(magnitude if tag == _TAG_POS_BIGNUM else -1 - magnitude)
    raise _malformed(f"unsupported tag {tag}")


def _decode_item(reader: _Reader, depth: int) -> PlutusData:
    if depth >= MAX_DEPTH:
        raise _malformed(f"nesting deeper than {MAX_DEPTH}")
    major, arg = reader.head()
    if major == _UINT:
        return Integer(arg)
    if major == _NINT:
        return Integer(-1 - arg)
    if major == _BYTES:
        return ByteString(_read_bytes(reader, arg))
    if major == _ARRAY:
        return DataList(_read_items(reader, arg, depth + 1))
    if major == _MAP:
        return DataMap(_read_entries(reader, arg, depth + 1))
    if major == _TAG:
        return _decode_tag(reader, arg, depth + 1)
    if major == _TEXT:
        raise _malformed("text strings are not valid Plutus Data")
    raise _malformed(f"simple values and floats are not valid Plutus Data (major type {major})")


def from_cbor(data: bytes) -> PlutusData:
    """Parse canonical (or lenient) CBOR bytes into a tree.

    Raises DecodingError for anything that is not exactly one Plutus Data
    item.
    """
    reader = _Reader(bytes(data))
    node = _decode_item(reader, 0)
    if reader.remaining:
        raise _malformed(f"{reader.remaining} trailing bytes after data item")
    return node
