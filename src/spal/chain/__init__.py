"""Chain-facing records — compiled validator artifact and policy outputs."""

from spal.chain.script import BlueprintError, ScriptArtifact, compute_script_hash
from spal.chain.utxo import MIN_UTXO_LOVELACE, PolicyUtxo, RawUtxo, collect_policy_utxos

__all__ = [
    "BlueprintError",
    "MIN_UTXO_LOVELACE",
    "PolicyUtxo",
    "RawUtxo",
    "ScriptArtifact",
    "collect_policy_utxos",
    "compute_script_hash",
]
