"""Plutus Data codec — constructor tree, CBOR wire form, datum/redeemer builders."""

from spal.codec.cbor import from_cbor, to_cbor
from spal.codec.data import ByteString, Constr, DataList, DataMap, Integer, PlutusData
from spal.codec.datum import (
    decode_policy,
    decode_request,
    deserialize_datum,
    deserialize_redeemer,
    encode_policy,
    encode_request,
    serialize_datum,
    serialize_redeemer,
)
from spal.codec.errors import CodecError, DecodingError, DecodingErrorKind, EncodingError

__all__ = [
    "ByteString",
    "CodecError",
    "Constr",
    "DataList",
    "DataMap",
    "DecodingError",
    "DecodingErrorKind",
    "EncodingError",
    "Integer",
    "PlutusData",
    "decode_policy",
    "decode_request",
    "deserialize_datum",
    "deserialize_redeemer",
    "encode_policy",
    "encode_request",
    "from_cbor",
    "serialize_datum",
    "serialize_redeemer",
    "to_cbor",
]
