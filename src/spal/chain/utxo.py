"""Policy outputs held at the validator address.

The wallet/provider layer fetches outputs; this module turns the ones
carrying a well-formed policy datum into PolicyUtxo records. Outputs
without a datum, or with a datum that does not decode, are skipped: an
attacker can lock anything at a script address, so garbage there is
expected and must not stop discovery.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from spal.codec.datum import deserialize_datum
from spal.codec.errors import DecodingError
from spal.models.policy import Policy


logger = logging.getLogger(__name__)

# Lovelace locked alongside each policy datum (protocol minimum).
MIN_UTXO_LOVELACE = 2_000_000


@dataclass(frozen=True)
class RawUtxo:
    """An output as reported by the provider. ``datum`` is inline datum hex."""
    tx_hash: str
    output_index: int
    datum: Optional[str] = None
    lovelace: int = 0

    @property
    def ref(self) -> tuple[str, int]:
        return (self.tx_hash, self.output_index)


@dataclass(frozen=True)
class PolicyUtxo:
    """An output whose datum decoded to a policy."""
    tx_hash: str
    output_index: int
    datum: Policy
    lovelace: int

    @property
    def ref(self) -> tuple[str, int]:
        return (self.tx_hash, self.output_index)


def collect_policy_utxos(
    utxos: Iterable[RawUtxo],
    policy_ids: Optional[Mapping[tuple[str, int], str]] = None,
) -> list[PolicyUtxo]:
    """Decode policy datums, skipping outputs that do not carry one.

    ``policy_ids`` maps (tx_hash, output_index) to the off-chain policy id,
    which the datum cannot carry.
    """
    policy_ids = policy_ids or {}
    result: list[PolicyUtxo] = []

    for utxo in utxos:
        if not utxo.datum:
            continue
        try:
            policy = deserialize_datum(utxo.datum, policy_id=policy_ids.get(utxo.ref, ""))
        except DecodingError as exc:
            logger.warning(
                "skipping %s#%d: datum is not a policy (%s)",
                utxo.tx_hash, utxo.output_index, exc,
            )
            continue
        result.append(PolicyUtxo(
            tx_hash=utxo.tx_hash,
            output_index=utxo.output_index,
            datum=policy,
            lovelace=utxo.lovelace,
        ))

    return result
