"""Runtime settings.

Settings come from the process environment, optionally seeded from a
``.env`` file. Values already in the environment win over the file.

    SPAL_EPHEMERAL_PREFIXES   comma-separated DID prefixes treated as ephemeral
    SPAL_NETWORK              Mainnet | Preprod | Preview | Custom
    SPAL_PROVIDER_URL         provider endpoint (defaults per network)
    SPAL_API_KEY              hosted provider key
    SPAL_NETWORK_MAGIC        network magic for Custom networks
    SPAL_BLUEPRINT_PATH       path to the validator blueprint (plutus.json)
    SPAL_VALIDATOR_TITLE      validator title inside the blueprint
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values

from spal.chain.script import SPEND_VALIDATOR_TITLE
from spal.engine.validator import DEFAULT_EPHEMERAL_PREFIXES


class ConfigError(Exception):
    """Raised when a setting has an unusable value."""


class Network(str, enum.Enum):
    """Cardano networks the wallet layer can target."""
    MAINNET = "Mainnet"
    PREPROD = "Preprod"
    PREVIEW = "Preview"
    CUSTOM = "Custom"  # local devnet


YACI_NETWORK_MAGIC = 764824073

_DEFAULT_PROVIDER_URLS = {
    Network.MAINNET: "https://cardano-mainnet.blockfrost.io/api/v0",
    Network.PREPROD: "https://cardano-preprod.blockfrost.io/api/v0",
    Network.PREVIEW: "https://cardano-preview.blockfrost.io/api/v0",
    Network.CUSTOM: "http://localhost:1337",
}


@dataclass(frozen=True)
class NetworkConfig:
    """Where the wallet layer should connect. Not used by the codec or validator."""
    network: Network
    provider_url: str
    api_key: Optional[str] = None
    network_magic: Optional[int] = None

    @property
    def is_local(self) -> bool:
        return "localhost" in self.provider_url or "127.0.0.1" in self.provider_url

    def validate(self) -> list[str]:
        """Return configuration problems. Empty list = usable."""
        errors: list[str] = []
        if not self.provider_url:
            errors.append("provider_url is empty")
        if not self.is_local and not self.api_key:
            errors.append(
                f"{self.network.value}: API key required for hosted provider "
                f"{self.provider_url}"
            )
        if self.network == Network.CUSTOM and self.network_magic is None:
            errors.append("Custom network requires network_magic")
        return errors


def default_network_config(network: Network) -> NetworkConfig:
    """Default endpoints for each network (local devnet for Custom)."""
    return NetworkConfig(
        network=network,
        provider_url=_DEFAULT_PROVIDER_URLS[network],
        network_magic=YACI_NETWORK_MAGIC if network == Network.CUSTOM else None,
    )


@dataclass(frozen=True)
class Settings:
    ephemeral_prefixes: tuple[str, ...]
    network: NetworkConfig
    blueprint_path: Optional[Path] = None
    validator_title: str = SPEND_VALIDATOR_TITLE


def _parse_prefixes(raw: Optional[str]) -> tuple[str, ...]:
    if raw is None:
        return DEFAULT_EPHEMERAL_PREFIXES
    prefixes = tuple(p.strip() for p in raw.split(",") if p.strip())
    if not prefixes:
        raise ConfigError("SPAL_EPHEMERAL_PREFIXES must name at least one prefix")
    return prefixes


def _parse_network(raw: Optional[str]) -> Network:
    if not raw:
        return Network.PREVIEW
    for network in Network:
        if network.value.lower() == raw.strip().lower():
            return network
    raise ConfigError(
        f"SPAL_NETWORK must be one of {', '.join(n.value for n in Network)}, got {raw!r}"
    )


def _parse_magic(raw: Optional[str]) -> Optional[int]:
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"SPAL_NETWORK_MAGIC must be an integer, got {raw!r}") from exc


def load_settings(
    env_file: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build settings from ``environ`` (default: os.environ) over ``env_file``."""
    values: dict[str, Optional[str]] = {}
    if env_file is not None and env_file.exists():
        values.update(dotenv_values(env_file))
    values.update(os.environ if environ is None else environ)

    network = _parse_network(values.get("SPAL_NETWORK"))
    defaults = default_network_config(network)
    magic = _parse_magic(values.get("SPAL_NETWORK_MAGIC"))

    network_config = NetworkConfig(
        network=network,
        provider_url=values.get("SPAL_PROVIDER_URL") or defaults.provider_url,
        api_key=values.get("SPAL_API_KEY") or None,
        network_magic=magic if magic is not None else defaults.network_magic,
    )

    blueprint = values.get("SPAL_BLUEPRINT_PATH")
    return Settings(
        ephemeral_prefixes=_parse_prefixes(values.get("SPAL_EPHEMERAL_PREFIXES")),
        network=network_config,
        blueprint_path=Path(blueprint) if blueprint else None,
        validator_title=values.get("SPAL_VALIDATOR_TITLE") or SPEND_VALIDATOR_TITLE,
    )
