"""Constellation: validated builds of care-platform forms, journeys and automations."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("constellation")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from constellation.core import BuildSession
from constellation.errors import ConstellationError, DestructiveUpdateWarning

__all__ = ["BuildSession", "ConstellationError", "DestructiveUpdateWarning", "__version__"]
