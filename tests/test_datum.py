"""Tests for datum and redeemer builders — proves the on-chain field layout is exact."""

import dataclasses

import pytest

from spal.codec.cbor import from_cbor, to_cbor
from spal.codec.data import ByteString, Constr, DataList, Integer, bool_to_data, data_to_bool
from spal.codec.datum import (
    data_to_linkage,
    data_to_policy,
    data_to_request,
    decode_policy,
    decode_request,
    deserialize_datum,
    deserialize_redeemer,
    encode_policy,
    encode_request,
    linkage_to_data,
    policy_to_data,
    request_to_data,
    serialize_datum,
    serialize_redeemer,
)
from spal.codec.errors import DecodingError, DecodingErrorKind, EncodingError
from spal.models import AccessRequest, IdentityLinkage, Policy


OWNER = "abcd1234" * 7


@pytest.fixture
def policy() -> Policy:
    return Policy(
        id="spal:test:health",
        owner_pkh=OWNER,
        min_payment=1_000_000,
        max_retention_ms=86_400_000,
        identity_linkage=IdentityLinkage(
            ephemeral_required=True,
            proof_of_root_allowed=True,
            zk_continuity_allowed=False,
        ),
        required_proof_hash="deadbeef",
        context_scope="medical/allergies",
    )


@pytest.fixture
def request_() -> AccessRequest:
    return AccessRequest(
        requester_did="did:key:z6MkhaXgBZDvotDkL5257faiztiGiC2QtKLGpbnnEGta2doK",
        proof_reference="proof123abc",
        access_time=1_704_067_200_000,
        payment_amount=1_000_000,
    )


def _kind(excinfo: pytest.ExceptionInfo) -> DecodingErrorKind:
    return excinfo.value.kind


class TestBooleans:
    def test_false_is_constr_zero(self) -> None:
        assert bool_to_data(False) == Constr(0, ())

    def test_true_is_constr_one(self) -> None:
        assert bool_to_data(True) == Constr(1, ())

    def test_decode_both(self) -> None:
        assert data_to_bool(Constr(0)) is False
        assert data_to_bool(Constr(1)) is True

    @pytest.mark.parametrize("index", [2, 3, 121])
    def test_other_index_is_invalid_boolean(self, index: int) -> None:
        with pytest.raises(DecodingError) as excinfo:
            data_to_bool(Constr(index))
        assert _kind(excinfo) == DecodingErrorKind.INVALID_BOOLEAN

    def test_boolean_with_fields_is_invalid(self) -> None:
        with pytest.raises(DecodingError) as excinfo:
            data_to_bool(Constr(1, (Integer(0),)))
        assert _kind(excinfo) == DecodingErrorKind.INVALID_BOOLEAN

    def test_non_constr_boolean_is_type_mismatch(self) -> None:
        with pytest.raises(DecodingError) as excinfo:
            data_to_bool(Integer(1))
        assert _kind(excinfo) == DecodingErrorKind.TYPE_MISMATCH


class TestIdentityLinkage:
    def test_all_false(self) -> None:
        node = linkage_to_data(IdentityLinkage())
        assert node == Constr(0, (Constr(0), Constr(0), Constr(0)))

    def test_field_order(self) -> None:
        node = linkage_to_data(IdentityLinkage(
            ephemeral_required=True,
            proof_of_root_allowed=False,
            zk_continuity_allowed=True,
        ))
        assert node.fields == (Constr(1), Constr(0), Constr(1))

    def test_round_trip(self) -> None:
        linkage = IdentityLinkage(True, False, True)
        assert data_to_linkage(linkage_to_data(linkage)) == linkage

    @pytest.mark.parametrize("count", [0, 2, 4])
    def test_wrong_field_count(self, count: int) -> None:
        with pytest.raises(DecodingError) as excinfo:
            data_to_linkage(Constr(0, (Constr(0),) * count))
        assert _kind(excinfo) == DecodingErrorKind.WRONG_FIELD_COUNT

    def test_invalid_flag(self) -> None:
        with pytest.raises(DecodingError) as excinfo:
            data_to_linkage(Constr(0, (Constr(0), Constr(2), Constr(0))))
        assert _kind(excinfo) == DecodingErrorKind.INVALID_BOOLEAN


class TestPolicyDatum:
    def test_shape(self, policy: Policy) -> None:
        node = policy_to_data(policy)
        assert node.index == 0
        assert len(node.fields) == 6

    def test_field_values(self, policy: Policy) -> None:
        fields = policy_to_data(policy).fields
        assert fields[0] == ByteString(bytes.fromhex(OWNER))
        assert fields[1] == Integer(1_000_000)
        assert fields[2] == Integer(86_400_000)
        assert fields[3] == Constr(0, (Constr(1), Constr(1), Constr(0)))
        assert fields[4] == ByteString(bytes.fromhex("deadbeef"))
        assert fields[5] == ByteString(b"medical/allergies")

    def test_empty_proof_hash_is_empty_bytes(self, policy: Policy) -> None:
        no_proof = dataclasses.replace(policy, required_proof_hash="")
        assert policy_to_data(no_proof).fields[4] == ByteString(b"")

    def test_id_not_encoded(self, policy: Policy) -> None:
        other = dataclasses.replace(policy, id="something-else")
        assert encode_policy(policy) == encode_policy(other)

    def test_golden_bytes(self) -> None:
        p = Policy(
            owner_pkh="ab" * 28,
            min_payment=0,
            max_retention_ms=1000,
            identity_linkage=IdentityLinkage(ephemeral_required=True),
            required_proof_hash="",
            context_scope="a",
        )
        expected = (
            "d8799f"
            "581c" + "ab" * 28
            + "00"
            + "1903e8"
            + "d8799fd87a80d87980d87980ff"
            + "40"
            + "4161"
            + "ff"
        )
        assert serialize_datum(p) == expected

    def test_round_trip(self, policy: Policy) -> None:
        decoded = decode_policy(encode_policy(policy), policy_id=policy.id)
        assert decoded == policy

    def test_decode_without_id(self, policy: Policy) -> None:
        decoded = decode_policy(encode_policy(policy))
        assert decoded.id == ""
        assert dataclasses.replace(decoded, id=policy.id) == policy

    def test_round_trip_unicode_scope(self, policy: Policy) -> None:
        p = dataclasses.replace(policy, context_scope="santé/données.π")
        assert decode_policy(encode_policy(p), policy_id=p.id) == p

    def test_round_trip_large_values(self, policy: Policy) -> None:
        p = dataclasses.replace(
            policy,
            min_payment=2**64 - 1,
            max_retention_ms=2**70,
            context_scope="x" * 200,
            required_proof_hash="ff" * 100,
        )
        assert decode_policy(encode_policy(p), policy_id=p.id) == p

    def test_deterministic(self, policy: Policy) -> None:
        assert encode_policy(policy) == encode_policy(policy)

    def test_different_scope_different_bytes(self, policy: Policy) -> None:
        other = dataclasses.replace(policy, context_scope="medical/diagnosis_codes")
        assert encode_policy(policy) != encode_policy(other)

    @pytest.mark.parametrize("change", [
        {"owner_pkh": "00" * 28},
        {"min_payment": 2_000_000},
        {"max_retention_ms": 1},
        {"identity_linkage": IdentityLinkage()},
        {"identity_linkage": IdentityLinkage(True, True, True)},
        {"required_proof_hash": ""},
        {"required_proof_hash": "deadbeef00"},
        {"context_scope": ""},
    ])
    def test_any_field_change_changes_bytes(self, policy: Policy, change: dict) -> None:
        other = dataclasses.replace(policy, **change)
        assert encode_policy(policy) != encode_policy(other)

    @pytest.mark.parametrize("field", ["owner_pkh", "required_proof_hash"])
    def test_whitespace_hex_cannot_alias_encoding(self, policy: Policy, field: str) -> None:
        with pytest.raises(ValueError):
            dataclasses.replace(policy, **{field: getattr(policy, field) + "\n"})

    def test_unencodable_scope(self, policy: Policy) -> None:
        bad = dataclasses.replace(policy, context_scope="bad\ud800surrogate")
        with pytest.raises(EncodingError):
            encode_policy(bad)


class TestPolicyDecodeErrors:
    def _valid_fields(self, policy: Policy) -> tuple:
        return policy_to_data(policy).fields

    @pytest.mark.parametrize("count", [0, 5, 7])
    def test_wrong_field_count(self, policy: Policy, count: int) -> None:
        fields = (self._valid_fields(policy) * 2)[:count]
        with pytest.raises(DecodingError) as excinfo:
            data_to_policy(Constr(0, fields))
        assert _kind(excinfo) == DecodingErrorKind.WRONG_FIELD_COUNT

    def test_wrong_constructor_index(self, policy: Policy) -> None:
        with pytest.raises(DecodingError) as excinfo:
            data_to_policy(Constr(1, self._valid_fields(policy)))
        assert _kind(excinfo) == DecodingErrorKind.WRONG_CONSTRUCTOR_SHAPE

    def test_not_a_constr(self) -> None:
        with pytest.raises(DecodingError) as excinfo:
            data_to_policy(DataList((Integer(1),)))
        assert _kind(excinfo) == DecodingErrorKind.WRONG_CONSTRUCTOR_SHAPE

    def test_owner_must_be_bytes(self, policy: Policy) -> None:
        fields = list(self._valid_fields(policy))
        fields[0] = Integer(5)
        with pytest.raises(DecodingError) as excinfo:
            data_to_policy(Constr(0, fields))
        assert _kind(excinfo) == DecodingErrorKind.TYPE_MISMATCH

    def test_owner_must_be_28_bytes(self, policy: Policy) -> None:
        fields = list(self._valid_fields(policy))
        fields[0] = ByteString(b"\x00" * 27)
        with pytest.raises(DecodingError) as excinfo:
            data_to_policy(Constr(0, fields))
        assert _kind(excinfo) == DecodingErrorKind.TYPE_MISMATCH

    def test_min_payment_must_be_integer(self, policy: Policy) -> None:
        fields = list(self._valid_fields(policy))
        fields[1] = ByteString(b"\x01")
        with pytest.raises(DecodingError) as excinfo:
            data_to_policy(Constr(0, fields))
        assert _kind(excinfo) == DecodingErrorKind.TYPE_MISMATCH

    def test_negative_payment_rejected(self, policy: Policy) -> None:
        fields = list(self._valid_fields(policy))
        fields[1] = Integer(-1)
        with pytest.raises(DecodingError) as excinfo:
            data_to_policy(Constr(0, fields))
        assert _kind(excinfo) == DecodingErrorKind.TYPE_MISMATCH

    def test_payment_above_u64_rejected(self, policy: Policy) -> None:
        fields = list(self._valid_fields(policy))
        fields[1] = Integer(2**64)
        with pytest.raises(DecodingError) as excinfo:
            data_to_policy(Constr(0, fields))
        assert _kind(excinfo) == DecodingErrorKind.TYPE_MISMATCH

    def test_scope_must_be_utf8(self, policy: Policy) -> None:
        fields = list(self._valid_fields(policy))
        fields[5] = ByteString(b"\xff\xfe")
        with pytest.raises(DecodingError) as excinfo:
            data_to_policy(Constr(0, fields))
        assert _kind(excinfo) == DecodingErrorKind.TYPE_MISMATCH

    def test_nested_linkage_field_count(self, policy: Policy) -> None:
        fields = list(self._valid_fields(policy))
        fields[3] = Constr(0, (Constr(0), Constr(0)))
        with pytest.raises(DecodingError) as excinfo:
            data_to_policy(Constr(0, fields))
        assert _kind(excinfo) == DecodingErrorKind.WRONG_FIELD_COUNT

    def test_redeemer_bytes_are_not_a_datum(self, request_: AccessRequest) -> None:
        with pytest.raises(DecodingError) as excinfo:
            decode_policy(encode_request(request_))
        assert _kind(excinfo) == DecodingErrorKind.WRONG_FIELD_COUNT

    def test_bad_hex(self) -> None:
        with pytest.raises(DecodingError) as excinfo:
            deserialize_datum("not hex")
        assert _kind(excinfo) == DecodingErrorKind.MALFORMED_CBOR

    def test_garbage_bytes(self) -> None:
        with pytest.raises(DecodingError):
            decode_policy(b"\xff\x00\x01")


class TestAccessRedeemer:
    def test_shape(self, request_: AccessRequest) -> None:
        node = request_to_data(request_)
        assert node.index == 0
        assert len(node.fields) == 4

    def test_field_values(self, request_: AccessRequest) -> None:
        fields = request_to_data(request_).fields
        assert fields[0] == ByteString(request_.requester_did.encode("utf-8"))
        assert fields[1] == ByteString(b"proof123abc")
        assert fields[2] == Integer(1_704_067_200_000)
        assert fields[3] == Integer(1_000_000)

    def test_empty_proof_reference(self, request_: AccessRequest) -> None:
        no_proof = dataclasses.replace(request_, proof_reference="")
        assert request_to_data(no_proof).fields[1] == ByteString(b"")

    def test_hex_is_lowercase(self, request_: AccessRequest) -> None:
        cbor_hex = serialize_redeemer(request_)
        assert cbor_hex == cbor_hex.lower()
        assert cbor_hex.startswith("d8799f")

    def test_round_trip(self, request_: AccessRequest) -> None:
        assert decode_request(encode_request(request_)) == request_
        assert deserialize_redeemer(serialize_redeemer(request_)) == request_

    def test_deterministic(self, request_: AccessRequest) -> None:
        assert encode_request(request_) == encode_request(request_)

    @pytest.mark.parametrize("count", [3, 5])
    def test_wrong_field_count(self, request_: AccessRequest, count: int) -> None:
        fields = (request_to_data(request_).fields * 2)[:count]
        with pytest.raises(DecodingError) as excinfo:
            data_to_request(Constr(0, fields))
        assert _kind(excinfo) == DecodingErrorKind.WRONG_FIELD_COUNT

    def test_wrong_field_count_via_bytes(self, request_: AccessRequest) -> None:
        fields = request_to_data(request_).fields[:3]
        with pytest.raises(DecodingError) as excinfo:
            decode_request(to_cbor(Constr(0, fields)))
        assert _kind(excinfo) == DecodingErrorKind.WRONG_FIELD_COUNT

    def test_access_time_type_mismatch(self, request_: AccessRequest) -> None:
        fields = list(request_to_data(request_).fields)
        fields[2] = ByteString(b"")
        with pytest.raises(DecodingError) as excinfo:
            data_to_request(Constr(0, fields))
        assert _kind(excinfo) == DecodingErrorKind.TYPE_MISMATCH

    def test_decoded_tree_matches_built_tree(self, request_: AccessRequest) -> None:
        assert from_cbor(encode_request(request_)) == request_to_data(request_)
