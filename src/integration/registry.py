"""
Model id -> pool registry.

Creates pools against one shared reserve asset and serves as the `PoolLookup`
used by the revenue layer.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..core.errors import EmptyIdentifierError, PoolExistsError, PoolNotFoundError
from ..core.interfaces import MintBurnToken, ReserveAsset
from ..core.pool import CurveParameters, PoolState, PoolStateMachine
from ..core.pool.engine import Clock

log = logging.getLogger(__name__)


class PoolRegistry:
    def __init__(self, *, asset: ReserveAsset, treasury: str, clock: Optional[Clock] = None) -> None:
        self.asset = asset
        self.treasury = treasury
        self._clock = clock
        self._pools: Dict[str, PoolStateMachine] = {}

    def create_pool(
        self,
        model_id: str,
        *,
        token: MintBurnToken,
        params: Optional[CurveParameters] = None,
        state: Optional[PoolState] = None,
    ) -> PoolStateMachine:
        if not isinstance(model_id, str) or not model_id:
            raise EmptyIdentifierError("Empty model ID")
        if model_id in self._pools:
            raise PoolExistsError(f"Pool already exists: {model_id}")
        pool = PoolStateMachine(
            model_id,
            token=token,
            asset=self.asset,
            treasury=self.treasury,
            params=params,
            state=state,
            clock=self._clock,
        )
        self._pools[model_id] = pool
        log.info("pool created: %r", pool)
        return pool

    def has_pool(self, model_id: str) -> bool:
        return model_id in self._pools

    def get(self, model_id: str) -> PoolStateMachine:
        pool = self._pools.get(model_id)
        if pool is None:
            raise PoolNotFoundError("Pool does not exist")
        return pool

    def model_ids(self) -> List[str]:
        return sorted(self._pools)

    def __len__(self) -> int:
        return len(self._pools)
