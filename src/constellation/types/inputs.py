# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
"""TypedDict contracts for MCP tool handler input arguments.

Each TypedDict mirrors the JSON Schema ``inputSchema`` on the corresponding
``mcp.types.Tool``.  ``TOOL_ARGS_MAP`` covers the fixed tools;
``RESOURCE_TOOL_ARGS`` covers the four tools generated per resource type,
keyed by tool-name suffix.  The sync test checks both against the live
tool list.

These are static-analysis aids: ``cast()`` narrows types only.  Payload
contents are validated by the schema registry.
"""

# NOTE: Do NOT add ``from __future__ import annotations`` to this module.
# It breaks TypedDict.__required_keys__ / __optional_keys__ introspection,
# which test_input_type_contracts.py relies on.

from typing import Any, NotRequired, TypedDict

# ---------------------------------------------------------------------------
# Per-resource tools (resources.py)
# ---------------------------------------------------------------------------


class UpdateOptions(TypedDict, total=False):
    replaceObjectFields: bool


class CreateOneArgs(TypedDict):
    data: dict[str, Any]


class UpdateOneArgs(TypedDict):
    id: str
    updates: dict[str, Any]
    options: NotRequired[UpdateOptions]


class GetOneArgs(TypedDict):
    id: str


class GetPageArgs(TypedDict):
    filter: NotRequired[dict[str, Any]]
    limit: NotRequired[int]
    lastId: NotRequired[str]


# ---------------------------------------------------------------------------
# checks.py handlers
# ---------------------------------------------------------------------------


class ValidateFormArgs(TypedDict):
    form_id: str


class ValidateJourneyArgs(TypedDict):
    journey_id: str


class ValidateTriggerArgs(TypedDict):
    trigger: dict[str, Any]


class PreviewUpdateArgs(TypedDict):
    resource: str
    id: str
    updates: dict[str, Any]
    options: NotRequired[UpdateOptions]


class ArchiveResourceArgs(TypedDict):
    resource: str
    id: str


class RunPlanArgs(TypedDict):
    plan: dict[str, Any]


# ---------------------------------------------------------------------------
# meta.py handlers
# ---------------------------------------------------------------------------


class DescribeResourceArgs(TypedDict):
    resource: str


class ExplainVariantArgs(TypedDict):
    family: str
    type: NotRequired[str]


class ExplainConceptArgs(TypedDict):
    concept: str


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------

RESOURCE_TOOL_ARGS: dict[str, type] = {
    "create_one": CreateOneArgs,
    "update_one": UpdateOneArgs,
    "get_one": GetOneArgs,
    "get_page": GetPageArgs,
}

TOOL_ARGS_MAP: dict[str, type] = {
    # checks.py
    "validate_form": ValidateFormArgs,
    "validate_journey": ValidateJourneyArgs,
    "validate_trigger": ValidateTriggerArgs,
    "preview_update": PreviewUpdateArgs,
    "archive_resource": ArchiveResourceArgs,
    "unarchive_resource": ArchiveResourceArgs,
    "run_plan": RunPlanArgs,
    # meta.py
    "describe_resource": DescribeResourceArgs,
    "explain_variant": ExplainVariantArgs,
    "explain_concept": ExplainConceptArgs,
}
