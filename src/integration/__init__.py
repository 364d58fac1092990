"""
Reference collaborators: ledger-backed asset/token, governance, registry, config
"""

from .capabilities import LedgerAsset, LedgerToken, MintCapability
from .config import AmmConfig, ConfigError, load_config, parse_config
from .governance import InMemoryGovernance
from .registry import PoolRegistry

__all__ = [
    "LedgerAsset",
    "LedgerToken",
    "MintCapability",
    "AmmConfig",
    "ConfigError",
    "load_config",
    "parse_config",
    "InMemoryGovernance",
    "PoolRegistry",
]
