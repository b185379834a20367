"""Tests for discovery MCP tools."""

from __future__ import annotations

from constellation.core import BuildSession
from constellation.mcp_server import call_tool
from tests.mcp._helpers import _parse


class TestListResourceTypes:
    async def test_dependency_order(self, mcp_session: BuildSession) -> None:
        result = _parse(await call_tool("list_resource_types", {}))
        names = [r["resource"] for r in result]
        assert names.index("forms") < names.index("form_fields")
        assert names.index("journeys") < names.index("automation_steps")
        fields = next(r for r in result if r["resource"] == "form_fields")
        assert "forms" in fields["depends_on"]

    async def test_update_only_flagged(self, mcp_session: BuildSession) -> None:
        result = _parse(await call_tool("list_resource_types", {}))
        flags = {r["resource"]: r["creatable"] for r in result}
        assert flags["organizations"] is False
        assert flags["forms"] is True


class TestDescribeResource:
    async def test_describe(self, mcp_session: BuildSession) -> None:
        result = _parse(await call_tool("describe_resource", {"resource": "form_fields"}))
        assert result["required_options"]["multiple_choice"] == ["choices"]

    async def test_unknown(self, mcp_session: BuildSession) -> None:
        result = _parse(await call_tool("describe_resource", {"resource": "widgets"}))
        assert result["code"] == "unknown_resource"


class TestExplainVariant:
    async def test_single_type(self, mcp_session: BuildSession) -> None:
        result = _parse(await call_tool("explain_variant", {"family": "step_event", "type": "waitForTrigger"}))
        assert result["field"] == "events"
        assert result["types"][0]["required"] == ["automationStepId", "triggerId"]

    async def test_whole_family(self, mcp_session: BuildSession) -> None:
        result = _parse(await call_tool("explain_variant", {"family": "link"}))
        assert [t["type"] for t in result["types"]] == ["root", "after", "previousEquals", "compoundLogic"]

    async def test_unknown_family(self, mcp_session: BuildSession) -> None:
        result = _parse(await call_tool("explain_variant", {"family": "events"}))
        assert result["code"] == "invalid_variant"
        assert result["path"] == "family"


class TestExplainConcept:
    async def test_known(self, mcp_session: BuildSession) -> None:
        result = _parse(await call_tool("explain_concept", {"concept": "triggerPlacement"}))
        assert isinstance(result, str)
        assert "Move To Step" in result

    async def test_unknown(self, mcp_session: BuildSession) -> None:
        result = _parse(await call_tool("explain_concept", {"concept": "nope"}))
        assert result["path"] == "concept"
