"""Codec error taxonomy.

EncodingError signals a programming defect (a domain value that cannot be
represented). DecodingError signals malformed or adversarial input and is
always recoverable: the caller rejects the datum and carries on.
"""

from __future__ import annotations

import enum


class DecodingErrorKind(str, enum.Enum):
    """Why a tree or byte string could not be decoded."""
    WRONG_FIELD_COUNT = "wrong_field_count"
    WRONG_CONSTRUCTOR_SHAPE = "wrong_constructor_shape"
    TYPE_MISMATCH = "type_mismatch"
    INVALID_BOOLEAN = "invalid_boolean"
    MALFORMED_CBOR = "malformed_cbor"


class CodecError(Exception):
    """Base class for codec failures."""


class EncodingError(CodecError):
    """Raised when a domain value cannot be encoded."""


class DecodingError(CodecError):
    """Raised when input does not have the expected shape."""

    def __init__(self, kind: DecodingErrorKind, message: str) -> None:
        super().__init__(f"{kind.value}: {message}")
        self.kind = kind
