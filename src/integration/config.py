"""
YAML configuration for pools and revenue governance.

Example::

    curve:
      crr_ppm: 100000
      trade_fee_bps: 25
      flat_curve_threshold: 25000000000   # reserve base units
      flat_curve_price: 10000             # reserve base units per token
      ibr_duration_seconds: 604800
      max_trade_bps: 2000
    governance:
      default_infra_accrual_bps: 8000
      models:
        sales-lead-scoring: 7000

Only the `curve` block is required. Unknown keys are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from ..core.errors import AmmError
from ..core.pool import CurveParameters
from .governance import DEFAULT_INFRA_ACCRUAL_BPS, InMemoryGovernance, validate_infra_accrual_bps

_CURVE_REQUIRED = ("crr_ppm", "trade_fee_bps", "flat_curve_threshold", "flat_curve_price")
_CURVE_OPTIONAL = ("ibr_duration_seconds", "max_trade_bps")


class ConfigError(AmmError, ValueError):
    """Malformed configuration document."""


@dataclass(frozen=True)
class AmmConfig:
    curve: CurveParameters
    default_infra_accrual_bps: int = DEFAULT_INFRA_ACCRUAL_BPS
    model_infra_accrual_bps: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        validate_infra_accrual_bps(self.default_infra_accrual_bps)
        for bps in self.model_infra_accrual_bps.values():
            validate_infra_accrual_bps(bps)

    def build_governance(self) -> InMemoryGovernance:
        return InMemoryGovernance(self.default_infra_accrual_bps, self.model_infra_accrual_bps)


def _require_mapping(obj: Any, *, name: str) -> Dict[str, Any]:
    if not isinstance(obj, dict):
        raise ConfigError(f"{name} must be a mapping")
    return obj


def _require_int(obj: Any, *, name: str) -> int:
    if not isinstance(obj, int) or isinstance(obj, bool):
        raise ConfigError(f"{name} must be an integer")
    return obj


def _reject_unknown(obj: Mapping[str, Any], allowed: tuple[str, ...], *, name: str) -> None:
    unknown = sorted(set(obj) - set(allowed))
    if unknown:
        raise ConfigError(f"{name}: unknown keys {unknown}")


def curve_parameters_from_mapping(obj: Any) -> CurveParameters:
    curve = _require_mapping(obj, name="curve")
    _reject_unknown(curve, _CURVE_REQUIRED + _CURVE_OPTIONAL, name="curve")
    kwargs: Dict[str, int] = {}
    for key in _CURVE_REQUIRED:
        if key not in curve:
            raise ConfigError(f"curve.{key} is required")
        kwargs[key] = _require_int(curve[key], name=f"curve.{key}")
    for key in _CURVE_OPTIONAL:
        if key in curve:
            kwargs[key] = _require_int(curve[key], name=f"curve.{key}")
    return CurveParameters(**kwargs)


def config_from_mapping(obj: Any) -> AmmConfig:
    root = _require_mapping(obj, name="config")
    _reject_unknown(root, ("curve", "governance"), name="config")
    curve = curve_parameters_from_mapping(root.get("curve"))

    gov = _require_mapping(root.get("governance", {}), name="governance")
    _reject_unknown(gov, ("default_infra_accrual_bps", "models"), name="governance")
    default_bps = _require_int(
        gov.get("default_infra_accrual_bps", DEFAULT_INFRA_ACCRUAL_BPS),
        name="governance.default_infra_accrual_bps",
    )
    models = _require_mapping(gov.get("models", {}), name="governance.models")
    overrides = {
        str(model_id): _require_int(bps, name=f"governance.models.{model_id}")
        for model_id, bps in models.items()
    }
    return AmmConfig(curve=curve, default_infra_accrual_bps=default_bps, model_infra_accrual_bps=overrides)


def parse_config(text: str) -> AmmConfig:
    try:
        obj = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML: {exc}") from exc
    return config_from_mapping(obj)


def load_config(path: Path | str) -> AmmConfig:
    return parse_config(Path(path).read_text(encoding="utf-8"))
