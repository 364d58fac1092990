"""
State persistence for model-token pools
"""

from .balances import BalanceTable
from .pool_snapshot import compute_pool_state_root, pool_state_from_dict, pool_state_to_dict

__all__ = [
    "BalanceTable",
    "compute_pool_state_root",
    "pool_state_from_dict",
    "pool_state_to_dict",
]
