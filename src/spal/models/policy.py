"""Policy datum models.

A policy is the access-control record a data owner publishes on-chain.
Everything except ``id`` travels in the datum; ``id`` is an off-chain
handle the caller keeps alongside the output that holds the policy.

Byte-valued fields (owner key hash, required proof hash) are carried as
lowercase hex strings, two digits per byte, no prefix.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from spal.models.access import U64_MAX


OWNER_PKH_BYTES = 28

_OWNER_PKH_PATTERN = re.compile(r"[0-9a-f]{%d}" % (OWNER_PKH_BYTES * 2))
_HEX_PATTERN = re.compile(r"(?:[0-9a-f]{2})*")


@dataclass(frozen=True)
class IdentityLinkage:
    """How a requester's ephemeral identity may relate to a root identity.

    The three flags are independent. Which combinations make sense is
    decided by the validator, not here.
    """
    ephemeral_required: bool = False
    proof_of_root_allowed: bool = False
    zk_continuity_allowed: bool = False


@dataclass(frozen=True)
class Policy:
    """A published S-PAL policy.

    Invariants:
    - owner_pkh is 28 bytes (56 lowercase hex digits)
    - 0 <= min_payment <= 2**64 - 1 (lovelace, 0 = free)
    - max_retention_ms >= 0
    - required_proof_hash is lowercase hex; "" means no proof required
    """
    owner_pkh: str
    min_payment: int
    max_retention_ms: int
    identity_linkage: IdentityLinkage
    required_proof_hash: str = ""
    context_scope: str = ""
    id: str = ""

    def __post_init__(self) -> None:
        if not _OWNER_PKH_PATTERN.fullmatch(self.owner_pkh):
            raise ValueError(
                f"owner_pkh must be {OWNER_PKH_BYTES * 2} lowercase hex digits, "
                f"got: {self.owner_pkh[:64]!r}"
            )
        if not 0 <= self.min_payment <= U64_MAX:
            raise ValueError(f"min_payment out of range: {self.min_payment}")
        if self.max_retention_ms < 0:
            raise ValueError(f"max_retention_ms must be >= 0, got {self.max_retention_ms}")
        if not _HEX_PATTERN.fullmatch(self.required_proof_hash):
            raise ValueError(
                "required_proof_hash must be lowercase hex with an even "
                f"number of digits, got: {self.required_proof_hash[:64]!r}"
            )

    @property
    def requires_payment(self) -> bool:
        return self.min_payment > 0

    @property
    def requires_proof(self) -> bool:
        return self.required_proof_hash != ""
