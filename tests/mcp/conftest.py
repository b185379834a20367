"""Fixtures for MCP server tests."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from constellation.core import BuildSession
from constellation.platform import DryRunPlatform


@pytest.fixture
def mcp_session() -> Generator[BuildSession, None, None]:
    """Set up a dry-run BuildSession and patch the MCP module global."""
    s = BuildSession(DryRunPlatform(), enduser_fields=["Risk Level"])

    import constellation.mcp_server as mcp_mod

    original = mcp_mod.session
    mcp_mod.session = s

    yield s

    mcp_mod.session = original
    s.close()
