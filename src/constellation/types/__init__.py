# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
# NEVER import from core.py, schema.py, or the validators; this prevents circular imports.
"""Typed contracts for constellation's core, MCP and CLI layers."""

from __future__ import annotations

from constellation.types.api import (
    ErrorResponse,
    FormReport,
    JourneyReport,
    PageResponse,
    UpdatePreview,
    UpdateResponse,
)
from constellation.types.core import ISOTimestamp, ProjectConfig, ResourceRecord

__all__ = [
    "ErrorResponse",
    "FormReport",
    "ISOTimestamp",
    "JourneyReport",
    "PageResponse",
    "ProjectConfig",
    "ResourceRecord",
    "UpdatePreview",
    "UpdateResponse",
]
