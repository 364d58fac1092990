"""
Persisted layout for pool state.

`pool_state_to_dict` / `pool_state_from_dict` round-trip a `PoolState` through
a plain JSON-compatible dict (ints, bools, str only).
`compute_pool_state_root` hashes that dict canonically, domain-separated and
keyed by model id, for audit and parity checks.

Round-trip property (tested): `pool_state_from_dict(pool_state_to_dict(s)) == s`.
"""

from __future__ import annotations

from typing import Any, Mapping

from ..core.pool import CurveParameters, PoolState
from .canonical import CANONICAL_ENCODING_VERSION, canonical_json_bytes, domain_sep_bytes, sha256_hex

POOL_SNAPSHOT_VERSION = 1

PARAM_NAMES: tuple[str, ...] = tuple(CurveParameters.__dataclass_fields__)
STATE_VAR_NAMES: tuple[str, ...] = tuple(n for n in PoolState.__dataclass_fields__ if n != "params")


def pool_state_to_dict(state: PoolState) -> dict[str, Any]:
    out: dict[str, Any] = {name: getattr(state, name) for name in STATE_VAR_NAMES}
    out["params"] = {name: getattr(state.params, name) for name in PARAM_NAMES}
    out["version"] = POOL_SNAPSHOT_VERSION
    return out


def _int_field(d: Mapping[str, Any], name: str) -> int:
    val = d[name]
    if isinstance(val, bool) or not isinstance(val, int):
        raise TypeError(f"{name!r} must be int, got {type(val).__name__}")
    return int(val)


def pool_state_from_dict(d: Mapping[str, Any]) -> PoolState:
    """Deserialize a snapshot dict. Raises KeyError on missing fields."""
    version = d.get("version", POOL_SNAPSHOT_VERSION)
    if version != POOL_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported pool snapshot version: {version!r}")

    raw_params = d["params"]
    params = CurveParameters(**{name: _int_field(raw_params, name) for name in PARAM_NAMES})

    kwargs: dict[str, Any] = {}
    for name in STATE_VAR_NAMES:
        if name in ("has_graduated", "paused"):
            val = d[name]
            if not isinstance(val, bool):
                raise TypeError(f"{name!r} must be bool, got {type(val).__name__}")
            kwargs[name] = val
        else:
            kwargs[name] = _int_field(d, name)
    return PoolState(params=params, **kwargs)


def compute_pool_state_root(model_id: str, state: PoolState) -> str:
    """0x-prefixed sha256 over the canonical snapshot of one pool."""
    if not isinstance(model_id, str) or not model_id:
        raise ValueError("model_id must be a non-empty str")
    payload = (
        domain_sep_bytes("pool_state", version=CANONICAL_ENCODING_VERSION)
        + canonical_json_bytes({"model_id": model_id, "state": pool_state_to_dict(state)})
    )
    return sha256_hex(payload)
