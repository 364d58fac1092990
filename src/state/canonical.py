"""
Canonical bytes for pool snapshots.

A snapshot is a tree of `None`, `bool`, `int`, `str`, lists and str-keyed
dicts. `canonical_json_bytes` encodes such a tree as compact, key-sorted UTF-8
JSON so that equal snapshots hash to equal digests. Anything outside that
vocabulary is refused with the path of the offending value, e.g.
``$.params.crr_ppm``.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


CANONICAL_ENCODING_VERSION = 1
DOMAIN_PREFIX = b"model-amm:"

_SCALARS = (type(None), bool, int)


def _check_text(text: str, path: str) -> None:
    if any(0xD800 <= ord(ch) <= 0xDFFF for ch in text):
        raise TypeError(f"{path}: lone surrogate in string")


def _check_tree(value: Any, path: str) -> None:
    if isinstance(value, _SCALARS):
        return
    if isinstance(value, str):
        _check_text(value, path)
        return
    if isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _check_tree(item, f"{path}[{i}]")
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"{path}: key {key!r} is not a str")
            _check_tree(item, f"{path}.{key}")
            _check_text(key, f"{path}.{key}")
        return
    # floats have no single canonical decimal form
    raise TypeError(f"{path}: {type(value).__name__} is not encodable")


def canonical_json_bytes(value: Any) -> bytes:
    """Sorted keys, no whitespace, UTF-8, no NaN."""
    _check_tree(value, "$")
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = CANONICAL_ENCODING_VERSION) -> bytes:
    """``model-amm:<label>:v<version>`` followed by a NUL terminator."""
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if not label.isascii() or "\x00" in label or ":" in label:
        raise ValueError(f"label must be ASCII without ':' or NUL: {label!r}")
    if isinstance(version, bool) or not isinstance(version, int) or version <= 0:
        raise ValueError("version must be a positive int")
    return DOMAIN_PREFIX + f"{label}:v{version}".encode("ascii") + b"\x00"
