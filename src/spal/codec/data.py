"""Plutus Data constructor tree.

Every on-chain datum and redeemer is a tree of five node kinds:

- Constr(index, fields): tagged constructor with ordered fields
- Integer(value): arbitrary-precision signed integer
- ByteString(value): raw bytes
- DataList(items): ordered list
- DataMap(entries): ordered key/value pairs

Booleans have no node of their own. False is Constr(0, []) and True is
Constr(1, []); there is no other valid boolean form.

The ``expect_*`` helpers are the single place decode sites check shape,
so every unexpected node kind ends in a DecodingError rather than an
AttributeError further down.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from spal.codec.errors import DecodingError, DecodingErrorKind


@dataclass(frozen=True)
class Constr:
    index: int
    fields: tuple[PlutusData, ...] = ()

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"constructor index must be >= 0, got {self.index}")
        object.__setattr__(self, "fields", tuple(self.fields))


@dataclass(frozen=True)
class Integer:
    value: int


@dataclass(frozen=True)
class ByteString:
    value: bytes


@dataclass(frozen=True)
class DataList:
    items: tuple[PlutusData, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True)
class DataMap:
    entries: tuple[tuple[PlutusData, PlutusData], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", tuple(tuple(e) for e in self.entries))


PlutusData = Union[Constr, Integer, ByteString, DataList, DataMap]

FALSE = Constr(0)
TRUE = Constr(1)


def kind_name(node: PlutusData) -> str:
    """Short human-readable node kind for error messages."""
    return type(node).__name__


def bool_to_data(value: bool) -> Constr:
    return TRUE if value else FALSE


def data_to_bool(node: PlutusData, what: str = "Bool") -> bool:
    """Decode a boolean constructor.

    Only Constr(0, []) and Constr(1, []) are accepted.
    """
    if not isinstance(node, Constr):
        raise DecodingError(
            DecodingErrorKind.TYPE_MISMATCH,
            f"{what}: expected Constr, got {kind_name(node)}",
        )
    if node.index not in (0, 1):
        raise DecodingError(
            DecodingErrorKind.INVALID_BOOLEAN,
            f"{what}: constructor index must be 0 or 1, got {node.index}",
        )
    if node.fields:
        raise DecodingError(
            DecodingErrorKind.INVALID_BOOLEAN,
            f"{what}: boolean constructor must have no fields, got {len(node.fields)}",
        )
    return node.index == 1


def expect_constr(
    node: PlutusData, index: int, arity: int, what: str,
) -> tuple[PlutusData, ...]:
    """Check a record constructor and return its fields."""
    if not isinstance(node, Constr):
        raise DecodingError(
            DecodingErrorKind.WRONG_CONSTRUCTOR_SHAPE,
            f"{what}: expected Constr, got {kind_name(node)}",
        )
    if node.index != index:
        raise DecodingError(
            DecodingErrorKind.WRONG_CONSTRUCTOR_SHAPE,
            f"{what}: expected constructor index {index}, got {node.index}",
        )
    if len(node.fields) != arity:
        raise DecodingError(
            DecodingErrorKind.WRONG_FIELD_COUNT,
            f"{what}: expected {arity} fields, got {len(node.fields)}",
        )
    return node.fields


def expect_int(
    node: PlutusData, what: str, maximum: Optional[int] = None,
) -> int:
    """Check an unsigned integer leaf, optionally bounded above."""
    if not isinstance(node, Integer):
        raise DecodingError(
            DecodingErrorKind.TYPE_MISMATCH,
            f"{what}: expected Integer, got {kind_name(node)}",
        )
    if node.value < 0 or (maximum is not None and node.value > maximum):
        raise DecodingError(
            DecodingErrorKind.TYPE_MISMATCH,
            f"{what}: integer out of range: {node.value}",
        )
    return node.value


def expect_bytes(node: PlutusData, what: str, length: Optional[int] = None) -> bytes:
    """Check a byte-string leaf, optionally of a fixed length."""
    if not isinstance(node, ByteString):
        raise DecodingError(
            DecodingErrorKind.TYPE_MISMATCH,
            f"{what}: expected ByteString, got {kind_name(node)}",
        )
    if length is not None and len(node.value) != length:
        raise DecodingError(
            DecodingErrorKind.TYPE_MISMATCH,
            f"{what}: expected {length} bytes, got {len(node.value)}",
        )
    return node.value


def expect_text(node: PlutusData, what: str) -> str:
    """Check a byte-string leaf holding UTF-8 text."""
    raw = expect_bytes(node, what)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodingError(
            DecodingErrorKind.TYPE_MISMATCH,
            f"{what}: bytes are not valid UTF-8 ({exc.reason})",
        ) from exc
