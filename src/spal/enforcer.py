"""S-PAL enforcer — unified facade over the codec, validator and script artifact.

This is the primary interface for callers that sit next to the
transaction layer:
- Identify the on-chain validator (script hash, compiled code)
- Serialize policies to datums and requests to redeemers
- Read policies back from datums supplied by the wallet layer
- Reject non-conforming requests before paying for a submission

The enforcer owns one immutable ScriptArtifact and one PolicyValidator.
It keeps no other state, so a single instance can serve many threads.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

from spal.chain.script import SPEND_VALIDATOR_TITLE, BlueprintError, ScriptArtifact
from spal.chain.utxo import PolicyUtxo, RawUtxo, collect_policy_utxos
from spal.codec.datum import deserialize_datum, serialize_datum, serialize_redeemer
from spal.config import Settings
from spal.engine.validator import PolicyValidator
from spal.models.access import AccessRequest, Outcome
from spal.models.policy import Policy


logger = logging.getLogger(__name__)


class SpalEnforcer:
    """Off-chain companion to the S-PAL validator.

    Usage:
        from pathlib import Path

        from spal.chain.script import ScriptArtifact
        from spal.enforcer import SpalEnforcer

        script = ScriptArtifact.from_blueprint(Path("plutus.json"))
        enforcer = SpalEnforcer(script)

        datum_hex = enforcer.datum_cbor(policy)
        outcome = enforcer.validate(policy, request)
        if outcome.valid:
            redeemer_hex = enforcer.redeemer_cbor(request)
            # hand datum/redeemer to the transaction builder
    """

    def __init__(
        self,
        script: ScriptArtifact,
        validator: Optional[PolicyValidator] = None,
    ) -> None:
        self._script = script
        self._validator = validator or PolicyValidator()

    @classmethod
    def from_blueprint(
        cls,
        source: Union[Path, str, Mapping[str, Any]],
        title: str = SPEND_VALIDATOR_TITLE,
        validator: Optional[PolicyValidator] = None,
    ) -> SpalEnforcer:
        return cls(ScriptArtifact.from_blueprint(source, title=title), validator)

    @classmethod
    def from_settings(cls, settings: Settings) -> SpalEnforcer:
        """Build from loaded settings. Requires SPAL_BLUEPRINT_PATH."""
        if settings.blueprint_path is None:
            raise BlueprintError("no blueprint path configured (SPAL_BLUEPRINT_PATH)")
        return cls.from_blueprint(
            settings.blueprint_path,
            title=settings.validator_title,
            validator=PolicyValidator(settings.ephemeral_prefixes),
        )

    @property
    def script(self) -> ScriptArtifact:
        return self._script

    @property
    def script_hash(self) -> str:
        return self._script.hash

    @property
    def cbor_hex(self) -> str:
        return self._script.compiled_code

    @property
    def validator(self) -> PolicyValidator:
        return self._validator

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, policy: Policy, request: AccessRequest) -> Outcome:
        """Off-chain check of a request against a policy.

        Mirrors the on-chain rules for ephemeral identity, payment and
        proof presence. A valid outcome does not guarantee the chain
        accepts the transaction (signatures and retention are checked
        there).
        """
        outcome = self._validator.evaluate(policy, request)
        if not outcome.valid:
            logger.debug(
                "rejected request from %s against policy %s: %s",
                request.requester_did, policy.id or policy.context_scope, outcome.reason,
            )
        return outcome

    def validate_many(
        self, policy: Policy, requests: Iterable[AccessRequest],
    ) -> list[Outcome]:
        return [self.validate(policy, request) for request in requests]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def datum_cbor(self, policy: Policy) -> str:
        return serialize_datum(policy)

    def redeemer_cbor(self, request: AccessRequest) -> str:
        return serialize_redeemer(request)

    def read_policy(self, datum_hex: str, policy_id: str = "") -> Policy:
        """Decode an on-chain datum. Raises DecodingError on malformed input."""
        return deserialize_datum(datum_hex, policy_id=policy_id)

    def find_policies(
        self,
        utxos: Iterable[RawUtxo],
        policy_ids: Optional[Mapping[tuple[str, int], str]] = None,
    ) -> list[PolicyUtxo]:
        """Policy outputs among those the wallet layer found at the script address."""
        found = collect_policy_utxos(utxos, policy_ids=policy_ids)
        logger.debug("found %d policy outputs for script %s", len(found), self.script_hash)
        return found
