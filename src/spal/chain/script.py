"""Compiled validator artifact.

The on-chain S-PAL validator is compiled elsewhere (Aiken) and shipped as
a blueprint, ``plutus.json``. This module only identifies the script: it
reads the compiled code and declared hash from the blueprint and can
recompute the hash to prove the two agree. The bytecode itself is never
interpreted.

A ScriptArtifact is built once and handed to whoever needs it. There is
no module-level cache.

Script hash: blake2b-224 over the Plutus language tag byte followed by
the compiled (CBOR-wrapped) script bytes.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Union


logger = logging.getLogger(__name__)

SPEND_VALIDATOR_TITLE = "spal.spal.spend"
SCRIPT_HASH_BYTES = 28

_HEX_PATTERN = re.compile(r"(?:[0-9a-fA-F]{2})+")

_LANGUAGE_TAGS = {
    "v1": 0x01,
    "v2": 0x02,
    "v3": 0x03,
}


class BlueprintError(Exception):
    """Raised when a blueprint is missing, unreadable or lacks the validator."""


def compute_script_hash(compiled_code: str, plutus_version: str = "v3") -> str:
    """Compute the script hash of hex-encoded compiled code."""
    tag = _LANGUAGE_TAGS.get(plutus_version.lower())
    if tag is None:
        raise ValueError(f"unknown Plutus version: {plutus_version}")
    digest = hashlib.blake2b(
        bytes([tag]) + bytes.fromhex(compiled_code),
        digest_size=SCRIPT_HASH_BYTES,
    )
    return digest.hexdigest()


@dataclass(frozen=True)
class ScriptArtifact:
    """An on-chain validator, identified by hash and compiled bytes."""
    title: str
    hash: str
    compiled_code: str  # CBOR hex
    plutus_version: str = "v3"

    @property
    def compiled_bytes(self) -> bytes:
        return bytes.fromhex(self.compiled_code)

    def verify_hash(self) -> bool:
        """True if the declared hash matches the compiled code."""
        return compute_script_hash(self.compiled_code, self.plutus_version) == self.hash.lower()

    @classmethod
    def from_blueprint(
        cls,
        source: Union[Path, str, Mapping[str, Any]],
        title: str = SPEND_VALIDATOR_TITLE,
    ) -> ScriptArtifact:
        """Load a validator from a blueprint file or parsed blueprint.

        Raises BlueprintError if the validator cannot be found, or if the
        blueprint's preamble, compiled code or hash is malformed.
        """
        if isinstance(source, Mapping):
            blueprint = source
        else:
            blueprint = _read_blueprint(Path(source))

        preamble = blueprint.get("preamble") or {}
        if not isinstance(preamble, Mapping):
            raise BlueprintError("blueprint preamble must be an object")
        plutus_version = str(preamble.get("plutusVersion", "v3")).lower()
        if plutus_version not in _LANGUAGE_TAGS:
            raise BlueprintError(f"unsupported plutusVersion: {plutus_version}")

        validators = blueprint.get("validators") or []
        if not isinstance(validators, (list, tuple)):
            raise BlueprintError("blueprint validators must be a list")

        for validator in validators:
            if not isinstance(validator, Mapping) or validator.get("title") != title:
                continue
            compiled_code = validator.get("compiledCode")
            if not compiled_code:
                raise BlueprintError(f"validator {title!r} has no compiledCode")
            if not isinstance(compiled_code, str) or not _HEX_PATTERN.fullmatch(compiled_code):
                raise BlueprintError(f"validator {title!r} compiledCode is not hex")
            declared = validator.get("hash") or compute_script_hash(compiled_code, plutus_version)
            if not isinstance(declared, str) or not _HEX_PATTERN.fullmatch(declared):
                raise BlueprintError(f"validator {title!r} hash is not hex")
            artifact = cls(
                title=title,
                hash=declared.lower(),
                compiled_code=compiled_code.lower(),
                plutus_version=plutus_version,
            )
            logger.debug("loaded validator %s (hash %s)", title, artifact.hash)
            return artifact

        raise BlueprintError(f"validator {title!r} not found in blueprint")


def _read_blueprint(path: Path) -> Mapping[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise BlueprintError(f"cannot read blueprint {path}: {exc}") from exc
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise BlueprintError(f"blueprint {path} is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise BlueprintError(f"blueprint {path} must be a JSON object")
    return parsed
