"""Merge/replace update engine.

One structural operation over JSON-like values, used identically for every
resource type:

* **merge** (default): mappings present on both sides merge key-wise, arrays
  present on both sides are appended (no de-duplication), everything else in
  the patch overwrites.  Unmentioned keys survive at every depth.
* **replace** (``replaceObjectFields=true``): every top-level key in the patch
  replaces the whole subtree stored under that key.  Sibling data inside a
  replaced subtree is lost.

Neither input is mutated.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any


def _merge(current: Any, patch: Any) -> Any:
    if isinstance(current, Mapping) and isinstance(patch, Mapping):
        merged = {k: copy.deepcopy(v) for k, v in current.items()}
        for key, value in patch.items():
            merged[key] = _merge(current[key], value) if key in current else copy.deepcopy(value)
        return merged
    if isinstance(current, list) and isinstance(patch, list):
        return [*copy.deepcopy(current), *copy.deepcopy(patch)]
    return copy.deepcopy(patch)


def apply_update(current: Mapping[str, Any], patch: Mapping[str, Any], replace: bool = False) -> dict[str, Any]:
    """Return *current* with *patch* applied under the merge or replace policy."""
    if replace:
        result = copy.deepcopy(dict(current))
        for key, value in patch.items():
            result[key] = copy.deepcopy(value)
        return result
    merged: dict[str, Any] = _merge(dict(current), dict(patch))
    return merged


def _leaf_paths(value: Any, prefix: str) -> list[str]:
    if isinstance(value, Mapping) and value:
        paths: list[str] = []
        for key, child in value.items():
            paths.extend(_leaf_paths(child, f"{prefix}.{key}"))
        return paths
    if isinstance(value, list) and value:
        paths = []
        for i, child in enumerate(value):
            paths.extend(_leaf_paths(child, f"{prefix}[{i}]"))
        return paths
    return [prefix]


def _lost(current: Any, patch: Any, prefix: str) -> list[str]:
    if isinstance(current, Mapping) and isinstance(patch, Mapping):
        lost: list[str] = []
        for key, value in current.items():
            path = f"{prefix}.{key}"
            if key not in patch:
                lost.extend(_leaf_paths(value, path))
            else:
                lost.extend(_lost(value, patch[key], path))
        return lost
    if isinstance(current, list) and isinstance(patch, list):
        # Replaced arrays lose every current element the patch does not repeat.
        return [f"{prefix}[{i}]" for i, item in enumerate(current) if item not in patch]
    if isinstance(current, (Mapping, list)):
        # A container replaced by a scalar or null loses its whole subtree.
        return _leaf_paths(current, prefix)
    return []


def lost_paths(current: Mapping[str, Any], patch: Mapping[str, Any]) -> list[str]:
    """Key paths in *current* that a replace-mode update with *patch* would discard.

    Only keys reached by the patch are considered: top-level keys the patch does
    not mention are untouched by replace and never reported.
    """
    lost: list[str] = []
    for key, value in patch.items():
        if key in current:
            lost.extend(_lost(current[key], value, key))
    return lost
