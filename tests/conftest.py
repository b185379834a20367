"""Shared pytest fixtures for constellation tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from constellation.core import PROJECT_DIR_NAME, BuildSession, default_config, write_config
from constellation.platform import DryRunPlatform
from constellation.schema import SchemaRegistry


@pytest.fixture
def registry() -> SchemaRegistry:
    return SchemaRegistry()


@pytest.fixture
def platform() -> DryRunPlatform:
    return DryRunPlatform()


@pytest.fixture
def session(platform: DryRunPlatform) -> Generator[BuildSession, None, None]:
    """Fresh dry-run BuildSession for each test."""
    s = BuildSession(platform, enduser_fields=["Risk Level"])
    yield s
    s.close()


@pytest.fixture
def form(session: BuildSession) -> dict[str, Any]:
    return session.create("forms", {"title": "Intake"})


@pytest.fixture
def journey(session: BuildSession) -> dict[str, Any]:
    return session.create("journeys", {"title": "Onboarding"})


@pytest.fixture
def constellation_project(tmp_path: Path) -> Path:
    """A tmp directory set up as a constellation project (.constellation/ with config).

    Returns the project root (parent of .constellation/).
    """
    project_dir = tmp_path / PROJECT_DIR_NAME
    project_dir.mkdir()
    config = default_config("clinic")
    config["enduser_fields"] = ["Risk Level"]
    write_config(project_dir, config)
    return tmp_path


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()
