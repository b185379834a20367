"""Client-side error taxonomy.

Every fatal error is raised before a request reaches the platform, so a failed
validation never leaves a partial resource behind.  Each error carries a stable
``code`` plus the offending field ``path`` and, where it helps the caller fix
the input, the ``expected`` shape.
"""

from __future__ import annotations

from typing import Any


class ConstellationError(ValueError):
    """Base class for pre-dispatch validation failures."""

    code = "validation_error"

    def __init__(self, message: str, *, path: str = "", expected: str = "") -> None:
        self.path = path
        self.expected = expected
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"error": str(self), "code": self.code}
        if self.path:
            data["path"] = self.path
        if self.expected:
            data["expected"] = self.expected
        return data


class InvalidVariant(ConstellationError):
    """Unrecognized tagged-union ``type`` or an ``info`` that does not match it."""

    code = "invalid_variant"


class InvalidField(ConstellationError):
    """A plain (non-variant) resource field is missing, unknown or mistyped."""

    code = "invalid_field"


class UnknownResource(ConstellationError):
    code = "unknown_resource"

    def __init__(self, resource: str, known: list[str]) -> None:
        self.resource = resource
        super().__init__(
            f"Unknown resource type '{resource}'. Known types: {', '.join(known)}",
            path="resource",
            expected=" | ".join(known),
        )


class MissingRoot(ConstellationError):
    code = "missing_root"


class DuplicateRoot(ConstellationError):
    code = "duplicate_root"


class DanglingReference(ConstellationError):
    """A link or condition references an id or key the validator does not know."""

    code = "dangling_reference"


class DanglingStepReference(ConstellationError):
    code = "dangling_step_reference"


class MissingEntryStep(ConstellationError):
    code = "missing_entry_step"


class CyclicStepChain(ConstellationError):
    code = "cyclic_step_chain"

    def __init__(self, cycle: list[str], *, path: str = "") -> None:
        self.cycle = cycle
        super().__init__(
            f"Automation steps form a cycle: {' -> '.join(cycle)}. "
            f"afterAction/waitForTrigger events must point back to an earlier step.",
            path=path,
        )


class UnexpectedJourneyIdOnGlobalTrigger(ConstellationError):
    code = "unexpected_journey_id"


class MissingJourneyIdForStepActivation(ConstellationError):
    code = "missing_journey_id"


class InvalidPlan(ConstellationError):
    """A build plan document is malformed (not a missing id or a failed check)."""

    code = "invalid_plan"


class DestructiveUpdateWarning(UserWarning):
    """Advisory: ``replaceObjectFields=true`` used without reading the resource first."""

    def __init__(self, resource: str, resource_id: str, lost_paths: list[str]) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.lost_paths = lost_paths
        detail = f"; data at {', '.join(lost_paths)} will be discarded" if lost_paths else ""
        super().__init__(
            f"replaceObjectFields=true on {resource} '{resource_id}' without reading its current state first{detail}"
        )
