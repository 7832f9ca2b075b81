"""Policy validator — off-chain mirror of the on-chain acceptance predicate.

Checks run in a fixed order and stop at the first failure, so the reason
a caller sees is always the earliest violated rule:

1. Identity linkage: an ephemeral-only policy needs an ephemeral DID.
2. Payment: a priced policy needs payment_amount >= min_payment.
3. Proof presence: a proof-gated policy needs a non-empty proof reference.

Owner signatures, retention at settlement time and proof validity are
enforced on-chain or by the external proof verifier, not here. Any change
to the on-chain script's handling of these three rules must be made here
as well.
"""

from __future__ import annotations

from typing import Iterable

from spal.models.access import AccessRequest, Outcome
from spal.models.policy import Policy


# did:key with a multibase base58btc key: unlinkable, key-derived identifiers.
DEFAULT_EPHEMERAL_PREFIXES: tuple[str, ...] = ("did:key:z",)


class PolicyValidator:
    """Evaluates access requests against a policy.

    Holds only the immutable ephemeral-prefix allow-list, so a single
    instance can be shared across threads.
    """

    def __init__(
        self,
        ephemeral_prefixes: Iterable[str] = DEFAULT_EPHEMERAL_PREFIXES,
    ) -> None:
        # A bare string would iterate into one-character prefixes.
        if isinstance(ephemeral_prefixes, (str, bytes)):
            raise TypeError(
                "ephemeral_prefixes must be a collection of strings, "
                f"not a single string: {ephemeral_prefixes!r}"
            )
        prefixes = tuple(ephemeral_prefixes)
        if not prefixes:
            raise ValueError("at least one ephemeral DID prefix is required")
        if any(not isinstance(p, str) for p in prefixes):
            raise TypeError("ephemeral DID prefixes must be strings")
        if any(not p for p in prefixes):
            raise ValueError("ephemeral DID prefixes must be non-empty strings")
        self._ephemeral_prefixes = prefixes

    @property
    def ephemeral_prefixes(self) -> tuple[str, ...]:
        return self._ephemeral_prefixes

    def is_ephemeral(self, did: str) -> bool:
        return did.startswith(self._ephemeral_prefixes)

    def evaluate(self, policy: Policy, request: AccessRequest) -> Outcome:
        if policy.identity_linkage.ephemeral_required:
            if not self.is_ephemeral(request.requester_did):
                return Outcome.invalid(
                    "ephemeral identity required: requester DID must start with "
                    + " or ".join(self._ephemeral_prefixes)
                )

        if policy.min_payment > 0:
            if request.payment_amount < policy.min_payment:
                return Outcome.invalid(
                    f"insufficient payment: required {policy.min_payment}, "
                    f"got {request.payment_amount}"
                )

        if policy.required_proof_hash:
            if not request.proof_reference:
                return Outcome.invalid("proof reference required")

        return Outcome.ok()

    def evaluate_many(
        self, policy: Policy, requests: Iterable[AccessRequest],
    ) -> list[Outcome]:
        """Evaluate a batch of requests against one policy, in order."""
        return [self.evaluate(policy, request) for request in requests]


def evaluate(
    policy: Policy,
    request: AccessRequest,
    ephemeral_prefixes: Iterable[str] = DEFAULT_EPHEMERAL_PREFIXES,
) -> Outcome:
    """Evaluate one request with a throwaway validator."""
    return PolicyValidator(ephemeral_prefixes).evaluate(policy, request)
