"""Foundational TypedDicts shared by the session and its callers."""

from __future__ import annotations

from typing import Any, NewType, TypedDict

ISOTimestamp = NewType("ISOTimestamp", str)

# A platform record: catalog fields plus id/createdAt/updatedAt.
ResourceRecord = dict[str, Any]


class ProjectConfig(TypedDict, total=False):
    """Shape of .constellation/config.json."""

    name: str
    version: int
    enduser_fields: list[str]
    mode: str
