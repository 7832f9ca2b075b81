"""S-PAL enforcer — off-chain codec and validation mirror for the S-PAL contract."""

from spal.chain.script import BlueprintError, ScriptArtifact
from spal.chain.utxo import PolicyUtxo, RawUtxo
from spal.codec.datum import decode_policy, decode_request, encode_policy, encode_request
from spal.codec.errors import CodecError, DecodingError, DecodingErrorKind, EncodingError
from spal.enforcer import SpalEnforcer
from spal.engine.validator import PolicyValidator, evaluate
from spal.models import AccessRequest, IdentityLinkage, Outcome, Policy

__all__ = [
    "AccessRequest",
    "BlueprintError",
    "CodecError",
    "DecodingError",
    "DecodingErrorKind",
    "EncodingError",
    "IdentityLinkage",
    "Outcome",
    "Policy",
    "PolicyUtxo",
    "PolicyValidator",
    "RawUtxo",
    "ScriptArtifact",
    "SpalEnforcer",
    "decode_policy",
    "decode_request",
    "encode_policy",
    "encode_request",
    "evaluate",
]
