"""
Governance-owned revenue parameters.

`InMemoryGovernance` implements the `GovernanceParams` protocol read by the
`RevenueSplitter`: a default `infra_accrual_bps` plus per-model overrides.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

from ..core.errors import EmptyIdentifierError, ParameterOutOfBoundsError

log = logging.getLogger(__name__)

MIN_INFRA_ACCRUAL_BPS = 5_000
MAX_INFRA_ACCRUAL_BPS = 10_000
DEFAULT_INFRA_ACCRUAL_BPS = 8_000


def validate_infra_accrual_bps(bps: int) -> None:
    if not isinstance(bps, int) or isinstance(bps, bool):
        raise TypeError("infra_accrual_bps must be an int")
    if not (MIN_INFRA_ACCRUAL_BPS <= bps <= MAX_INFRA_ACCRUAL_BPS):
        raise ParameterOutOfBoundsError("Infra accrual bps out of bounds")


class InMemoryGovernance:
    def __init__(
        self,
        default_infra_accrual_bps: int = DEFAULT_INFRA_ACCRUAL_BPS,
        overrides: Optional[Mapping[str, int]] = None,
    ) -> None:
        validate_infra_accrual_bps(default_infra_accrual_bps)
        self._default = default_infra_accrual_bps
        self._overrides: Dict[str, int] = {}
        for model_id, bps in (overrides or {}).items():
            self.set_infra_accrual_bps(model_id, bps)

    @property
    def default_infra_accrual_bps(self) -> int:
        return self._default

    def infra_accrual_bps(self, model_id: str) -> int:
        return self._overrides.get(model_id, self._default)

    def set_default_infra_accrual_bps(self, bps: int) -> None:
        validate_infra_accrual_bps(bps)
        log.info("default infra accrual bps %d -> %d", self._default, bps)
        self._default = bps

    def set_infra_accrual_bps(self, model_id: str, bps: int) -> None:
        if not isinstance(model_id, str) or not model_id:
            raise EmptyIdentifierError("Empty model ID")
        validate_infra_accrual_bps(bps)
        log.info("infra accrual bps for %s set to %d", model_id, bps)
        self._overrides[model_id] = bps

    def clear_override(self, model_id: str) -> None:
        self._overrides.pop(model_id, None)
