"""Domain models for the S-PAL enforcer."""

from spal.models.access import AccessRequest, Outcome
from spal.models.policy import IdentityLinkage, Policy

__all__ = [
    "AccessRequest",
    "IdentityLinkage",
    "Outcome",
    "Policy",
]
