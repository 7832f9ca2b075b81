"""Validation engine — off-chain mirror of the S-PAL acceptance predicate."""

from spal.engine.validator import DEFAULT_EPHEMERAL_PREFIXES, PolicyValidator, evaluate

__all__ = ["DEFAULT_EPHEMERAL_PREFIXES", "PolicyValidator", "evaluate"]
