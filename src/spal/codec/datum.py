"""Policy datum and access redeemer builders.

Maps the domain records onto the constructor layout the on-chain
validator expects. Field order is load-bearing: the chain decodes by
position, not by name.

    PolicyDatum     = Constr 0 [owner, min_payment, max_retention_ms,
                                identity_linkage, required_proof_hash,
                                context_scope]
    IdentityLinkage = Constr 0 [ephemeral_required, proof_of_root_allowed,
                                zk_continuity_allowed]
    AccessRedeemer  = Constr 0 [requester_did, proof_reference,
                                access_time, payment_amount]

Text fields (DID, context scope, proof reference) are stored as their
UTF-8 bytes because the contract types them as byte arrays. Hex fields
(owner, required proof hash) are stored as the raw bytes they denote.
"""

from __future__ import annotations

from spal.codec.cbor import from_cbor, to_cbor
from spal.codec.data import (
    ByteString,
    Constr,
    Integer,
    PlutusData,
    bool_to_data,
    data_to_bool,
    expect_bytes,
    expect_constr,
    expect_int,
    expect_text,
)
from spal.codec.errors import DecodingError, DecodingErrorKind, EncodingError
from spal.models.access import U64_MAX, AccessRequest
from spal.models.policy import OWNER_PKH_BYTES, IdentityLinkage, Policy


LINKAGE_FIELDS = 3
POLICY_FIELDS = 6
REDEEMER_FIELDS = 4


def _utf8(value: str, what: str) -> bytes:
    try:
        return value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EncodingError(f"{what} cannot be encoded as UTF-8: {exc.reason}") from exc


# ------------------------------------------------------------------ #
# Domain -> tree                                                      #
# ------------------------------------------------------------------ #

def linkage_to_data(linkage: IdentityLinkage) -> Constr:
    return Constr(0, (
        bool_to_data(linkage.ephemeral_required),
        bool_to_data(linkage.proof_of_root_allowed),
        bool_to_data(linkage.zk_continuity_allowed),
    ))


def policy_to_data(policy: Policy) -> Constr:
    """Build the PolicyDatum tree. ``policy.id`` is not included."""
    return Constr(0, (
        ByteString(bytes.fromhex(policy.owner_pkh)),
        Integer(policy.min_payment),
        Integer(policy.max_retention_ms),
        linkage_to_data(policy.identity_linkage),
        ByteString(bytes.fromhex(policy.required_proof_hash)),
        ByteString(_utf8(policy.context_scope, "context_scope")),
    ))


def request_to_data(request: AccessRequest) -> Constr:
    """Build the AccessRedeemer tree."""
    return Constr(0, (
        ByteString(_utf8(request.requester_did, "requester_did")),
        ByteString(_utf8(request.proof_reference, "proof_reference")),
        Integer(request.access_time),
        Integer(request.payment_amount),
    ))


# ------------------------------------------------------------------ #
# Tree -> domain                                                      #
# ------------------------------------------------------------------ #

def data_to_linkage(node: PlutusData) -> IdentityLinkage:
    fields = expect_constr(node, 0, LINKAGE_FIELDS, "IdentityLinkage")
    return IdentityLinkage(
        ephemeral_required=data_to_bool(fields[0], "IdentityLinkage.ephemeral_required"),
        proof_of_root_allowed=data_to_bool(fields[1], "IdentityLinkage.proof_of_root_allowed"),
        zk_continuity_allowed=data_to_bool(fields[2], "IdentityLinkage.zk_continuity_allowed"),
    )


def data_to_policy(node: PlutusData, policy_id: str = "") -> Policy:
    """Parse a PolicyDatum tree.

    The datum does not carry the policy id; pass ``policy_id`` if the
    caller knows it from context.
    """
    fields = expect_constr(node, 0, POLICY_FIELDS, "PolicyDatum")
    owner = expect_bytes(fields[0], "PolicyDatum.owner", length=OWNER_PKH_BYTES)
    return Policy(
        id=policy_id,
        owner_pkh=owner.hex(),
        min_payment=expect_int(fields[1], "PolicyDatum.min_payment", maximum=U64_MAX),
        max_retention_ms=expect_int(fields[2], "PolicyDatum.max_retention_ms"),
        identity_linkage=data_to_linkage(fields[3]),
        required_proof_hash=expect_bytes(fields[4], "PolicyDatum.required_proof_hash").hex(),
        context_scope=expect_text(fields[5], "PolicyDatum.context_scope"),
    )


def data_to_request(node: PlutusData) -> AccessRequest:
    """Parse an AccessRedeemer tree."""
    fields = expect_constr(node, 0, REDEEMER_FIELDS, "AccessRedeemer")
    return AccessRequest(
        requester_did=expect_text(fields[0], "AccessRedeemer.requester_did"),
        proof_reference=expect_text(fields[1], "AccessRedeemer.proof_reference"),
        access_time=expect_int(fields[2], "AccessRedeemer.access_time"),
        payment_amount=expect_int(fields[3], "AccessRedeemer.payment_amount", maximum=U64_MAX),
    )


# ------------------------------------------------------------------ #
# Bytes and hex                                                       #
# ------------------------------------------------------------------ #

def encode_policy(policy: Policy) -> bytes:
    """Serialize a policy to canonical datum bytes.

    Deterministic: equal policies always give identical bytes.
    """
    return to_cbor(policy_to_data(policy))


def decode_policy(data: bytes, policy_id: str = "") -> Policy:
    return data_to_policy(from_cbor(data), policy_id=policy_id)


def encode_request(request: AccessRequest) -> bytes:
    return to_cbor(request_to_data(request))


def decode_request(data: bytes) -> AccessRequest:
    return data_to_request(from_cbor(data))


def _from_hex(cbor_hex: str) -> bytes:
    try:
        return bytes.fromhex(cbor_hex)
    except ValueError as exc:
        raise DecodingError(
            DecodingErrorKind.MALFORMED_CBOR, f"not a hex string: {exc}",
        ) from exc


def serialize_datum(policy: Policy) -> str:
    """Datum CBOR as lowercase hex, ready for an inline datum."""
    return encode_policy(policy).hex()


def deserialize_datum(cbor_hex: str, policy_id: str = "") -> Policy:
    return decode_policy(_from_hex(cbor_hex), policy_id=policy_id)


def serialize_redeemer(request: AccessRequest) -> str:
    """Redeemer CBOR as lowercase hex."""
    return encode_request(request).hex()


def deserialize_redeemer(cbor_hex: str) -> AccessRequest:
    return decode_request(_from_hex(cbor_hex))
