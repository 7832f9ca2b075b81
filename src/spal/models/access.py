"""Access request (redeemer) and validation outcome models.

Time convention: ``access_time`` is milliseconds since the Unix epoch,
the same unit as ``Policy.max_retention_ms``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


U64_MAX = 2**64 - 1


@dataclass(frozen=True)
class AccessRequest:
    """A requester's attempt to consume a policy output.

    proof_reference is opaque (e.g. a proof-system transaction pointer).
    An empty string means no proof was supplied.
    """
    requester_did: str
    proof_reference: str = ""
    access_time: int = 0
    payment_amount: int = 0

    def __post_init__(self) -> None:
        if self.access_time < 0:
            raise ValueError(f"access_time must be >= 0, got {self.access_time}")
        if not 0 <= self.payment_amount <= U64_MAX:
            raise ValueError(f"payment_amount out of range: {self.payment_amount}")


@dataclass(frozen=True)
class Outcome:
    """Result of evaluating a request against a policy.

    An invalid outcome means the request is well-formed but violates
    the policy. Malformed data never produces an Outcome; it raises
    DecodingError at the codec.
    """
    valid: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> Outcome:
        return cls(valid=True)

    @classmethod
    def invalid(cls, reason: str) -> Outcome:
        return cls(valid=False, reason=reason)
