"""Build session: local validation in front of the platform.

Single entry point for every create/update issued by the CLI, the MCP server
and build plans.  Each request is validated against the schema registry, the
variant codec and the graph arenas before it is dispatched; nothing reaches
the platform when a check fails.

Convention-based discovery: a project has a ``.constellation/`` directory
containing ``config.json`` (project name, custom enduser fields, mode) and the
JSONL log.
"""

from __future__ import annotations

import json
import logging
import warnings
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from constellation.errors import DanglingReference, DestructiveUpdateWarning, InvalidField
from constellation.form_graph import FormFieldNode, FormGraph
from constellation.merge import apply_update, lost_paths
from constellation.platform import DEFAULT_PAGE_LIMIT, DryRunPlatform, Platform
from constellation.schema import SchemaRegistry
from constellation.step_chain import StepChain, StepNode
from constellation.triggers import validate_trigger
from constellation.types.api import FormReport, JourneyReport, UpdatePreview
from constellation.types.core import ProjectConfig
from constellation.validation import json_kind, sanitize_id

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Convention-based discovery
# ---------------------------------------------------------------------------

PROJECT_DIR_NAME = ".constellation"
CONFIG_FILENAME = "config.json"

VALID_MODES: frozenset[str] = frozenset({"dry-run"})


def find_project_root(start: Path | None = None) -> Path:
    """Walk up from start (default cwd) looking for a .constellation/ directory.

    Returns the .constellation/ directory path (not the project root).
    """
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        candidate = parent / PROJECT_DIR_NAME
        if candidate.is_dir():
            return candidate
    msg = f"No {PROJECT_DIR_NAME}/ directory found in {current} or any parent"
    raise FileNotFoundError(msg)


def default_config(name: str = "constellation") -> ProjectConfig:
    return ProjectConfig(name=name, version=1, enduser_fields=[], mode="dry-run")


def read_config(project_dir: Path) -> ProjectConfig:
    """Read .constellation/config.json. Returns defaults if missing or corrupt."""
    defaults = default_config()
    config_path = project_dir / CONFIG_FILENAME
    if not config_path.exists():
        return defaults
    try:
        loaded = json.loads(config_path.read_text())
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read %s, using defaults: %s", config_path, exc)
        return defaults
    if not isinstance(loaded, dict):
        logger.warning("%s does not contain a JSON object, using defaults", config_path)
        return defaults
    result: ProjectConfig = {**defaults, **loaded}  # type: ignore[typeddict-item]
    return result


def write_config(project_dir: Path, config: dict[str, Any] | ProjectConfig) -> None:
    """Write .constellation/config.json."""
    config_path = project_dir / CONFIG_FILENAME
    config_path.write_text(json.dumps(config, indent=2) + "\n")


def get_mode(project_dir: Path) -> str:
    """Return the dispatch mode for a project. Only 'dry-run' is available."""
    config = read_config(project_dir)
    mode: str = config.get("mode", "dry-run")
    if mode not in VALID_MODES:
        logger.warning("Unknown mode '%s' in config, falling back to 'dry-run'", mode)
        return "dry-run"
    return mode


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class UpdateResult:
    """Resource returned by the platform plus advisory warnings raised on the way."""

    resource: dict[str, Any]
    warnings: list[str] = field(default_factory=list)
    lost_paths: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"resource": self.resource}
        if self.warnings:
            data["warnings"] = self.warnings
            data["lost_paths"] = self.lost_paths
        return data


# References checked against the platform before dispatch: (resource, dotted path, target resource).
_REFERENCES: tuple[tuple[str, str, str], ...] = (
    ("form_fields", "formId", "forms"),
    ("automation_steps", "journeyId", "journeys"),
    ("database_records", "databaseId", "databases"),
    ("automation_triggers", "journeyId", "journeys"),
    ("automation_triggers", "action.info.journeyId", "journeys"),
    ("automation_triggers", "event.info.formId", "forms"),
)


def _dig(data: Mapping[str, Any], dotted: str) -> Any:
    value: Any = data
    for part in dotted.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def _replace_flag(options: Any) -> bool:
    """Read ``replaceObjectFields`` from update options; only a real boolean turns replace on."""
    if options is None:
        return False
    if not isinstance(options, Mapping):
        msg = f"options must be an object, got {json_kind(options)}"
        raise InvalidField(msg, path="options", expected="object")
    value = options.get("replaceObjectFields", False)
    if not isinstance(value, bool):
        msg = f"options.replaceObjectFields must be a boolean, got {json_kind(value)}"
        raise InvalidField(msg, path="options.replaceObjectFields", expected="boolean")
    return value


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class BuildSession:
    """Validates and dispatches resource operations for one build.

    Keeps creation-order arenas for form fields (per form) and automation
    steps (per journey), and remembers which resources the caller has read so
    destructive updates on unread resources can be flagged.
    """

    def __init__(
        self,
        platform: Platform | None = None,
        *,
        registry: SchemaRegistry | None = None,
        enduser_fields: Iterable[str] = (),
        project_dir: Path | None = None,
    ) -> None:
        self.platform: Platform = platform if platform is not None else DryRunPlatform()
        self.registry = registry if registry is not None else SchemaRegistry()
        self.enduser_fields = frozenset(enduser_fields)
        self.project_dir = project_dir
        self._forms: dict[str, FormGraph] = {}
        self._journeys: dict[str, StepChain] = {}
        self._known: dict[str, set[str]] = {}
        self._read: set[tuple[str, str]] = set()

    @classmethod
    def from_project(cls, project_path: Path | None = None) -> BuildSession:
        """Create a session by discovering .constellation/ from project_path (or cwd)."""
        project_dir = find_project_root(project_path)
        config = read_config(project_dir)
        logger.debug("Opening %s session for %s", get_mode(project_dir), project_dir)
        return cls(DryRunPlatform(), enduser_fields=config.get("enduser_fields", []), project_dir=project_dir)

    def __enter__(self) -> BuildSession:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self._forms.clear()
        self._journeys.clear()
        self._read.clear()

    # -- Bookkeeping ---------------------------------------------------------

    def _remember(self, resource: str, record: Mapping[str, Any], *, read: bool = True) -> None:
        resource_id = record.get("id")
        if isinstance(resource_id, str):
            self._known.setdefault(resource, set()).add(resource_id)
            if read:
                self._read.add((resource, resource_id))

    def has_read(self, resource: str, resource_id: str) -> bool:
        return (resource, resource_id) in self._read

    def _clean_id(self, value: Any, name: str = "id") -> str:
        cleaned, err = sanitize_id(value, name)
        if err:
            raise InvalidField(err, path=name)
        return cleaned

    def _require(self, resource: str, resource_id: Any, path: str) -> None:
        """The referenced record must exist on the platform."""
        if not isinstance(resource_id, str) or not resource_id:
            return
        if resource_id in self._known.get(resource, set()):
            return
        try:
            record = self.platform.get(resource, resource_id)
        except KeyError:
            msg = f"{path} '{resource_id}' does not name an existing {resource} record; create it first and use the returned id"
            raise DanglingReference(msg, path=path) from None
        self._remember(resource, record, read=False)

    def _check_references(self, resource: str, data: Mapping[str, Any]) -> None:
        for owner, path, target in _REFERENCES:
            if owner == resource:
                self._require(target, _dig(data, path), path)

    def _check_wait_triggers(self, node: StepNode) -> None:
        for i, event in enumerate(node.events):
            if event.type == "waitForTrigger":
                self._require("automation_triggers", event.info.get("triggerId"), f"events[{i}].info.triggerId")

    def _all(self, resource: str, filter: Mapping[str, Any]) -> list[dict[str, Any]]:
        records: list[dict[str, Any]] = []
        last_id: str | None = None
        while True:
            page = self.platform.list(resource, filter, DEFAULT_PAGE_LIMIT, last_id)
            records.extend(page)
            if len(page) < DEFAULT_PAGE_LIMIT:
                return records
            last_id = page[-1]["id"]

    def form_graph(self, form_id: str) -> FormGraph:
        """The arena for *form_id*, hydrated from the platform on first use."""
        graph = self._forms.get(form_id)
        if graph is None:
            self._require("forms", form_id, "formId")
            graph = FormGraph(form_id, self.enduser_fields)
            for record in self._all("form_fields", {"formId": form_id}):
                graph.add(FormFieldNode.from_resource(record))
            self._forms[form_id] = graph
        return graph

    def step_chain(self, journey_id: str) -> StepChain:
        """The arena for *journey_id*, hydrated from the platform on first use."""
        chain = self._journeys.get(journey_id)
        if chain is None:
            self._require("journeys", journey_id, "journeyId")
            chain = StepChain(journey_id)
            for record in self._all("automation_steps", {"journeyId": journey_id}):
                chain.add(StepNode.from_resource(record))
            self._journeys[journey_id] = chain
        return chain

    # -- Operations ----------------------------------------------------------

    def create(self, resource: str, data: Any) -> dict[str, Any]:
        """Validate *data* and create it; returns the platform record with its id."""
        payload = self.registry.validate_create(resource, data)
        if resource == "automation_triggers":
            validate_trigger(payload)
        self._check_references(resource, payload)

        if resource == "form_fields":
            self.form_graph(payload["formId"]).check_new(FormFieldNode.from_resource(payload, field_id=""))
        elif resource == "automation_steps":
            node = StepNode.from_resource(payload, step_id="")
            self.step_chain(payload["journeyId"]).check_new(node)
            self._check_wait_triggers(node)

        record = self.platform.create(resource, payload)
        self._remember(resource, record)
        if resource == "form_fields":
            self.form_graph(payload["formId"]).add(FormFieldNode.from_resource(record))
        elif resource == "automation_steps":
            self.step_chain(payload["journeyId"]).add(StepNode.from_resource(record))
        logger.debug("created %s", resource, extra={"resource": resource, "resource_id": record.get("id")})
        return record

    def update(
        self,
        resource: str,
        resource_id: Any,
        updates: Any,
        options: Mapping[str, Any] | None = None,
    ) -> UpdateResult:
        """Validate and apply an update under the merge (default) or replace policy.

        Emits :class:`DestructiveUpdateWarning` when ``replaceObjectFields`` is
        set on a resource this session has not read.
        """
        resource_id = self._clean_id(resource_id)
        patch = self.registry.validate_update(resource, updates)
        replace = _replace_flag(options)
        current = self.platform.get(resource, resource_id)

        merged = apply_update(current, patch, replace=replace)
        if resource == "automation_triggers" and {"event", "action", "journeyId"} & patch.keys():
            validate_trigger(merged)
        self._check_references(resource, merged)
        if resource == "form_fields":
            if "options" in patch:
                self.registry.check_required_options(resource, merged)
            if "previousFields" in patch:
                self.form_graph(merged["formId"]).check_replace(FormFieldNode.from_resource(merged, resource_id))
        elif resource == "automation_steps" and ("events" in patch or "action" in patch):
            node = StepNode.from_resource(merged, resource_id)
            self.step_chain(merged["journeyId"]).check_replace(node)
            self._check_wait_triggers(node)

        result = UpdateResult(resource={})
        if replace and not self.has_read(resource, resource_id):
            result.lost_paths = lost_paths(current, patch)
            warning = DestructiveUpdateWarning(resource, resource_id, result.lost_paths)
            warnings.warn(warning, stacklevel=2)
            logger.warning(str(warning), extra={"resource": resource, "resource_id": resource_id})
            result.warnings.append(str(warning))

        record = self.platform.update(resource, resource_id, patch, replace=replace)
        self._remember(resource, record)
        if resource == "form_fields":
            self.form_graph(record["formId"]).add(FormFieldNode.from_resource(record))
        elif resource == "automation_steps":
            self.step_chain(record["journeyId"]).add(StepNode.from_resource(record))
        logger.debug(
            "updated %s (replace=%s)", resource, replace, extra={"resource": resource, "resource_id": resource_id}
        )
        result.resource = record
        return result

    def get(self, resource: str, resource_id: Any) -> dict[str, Any]:
        self.registry.get(resource)
        record = self.platform.get(resource, self._clean_id(resource_id))
        self._remember(resource, record)
        return record

    def list(
        self,
        resource: str,
        filter: Mapping[str, Any] | None = None,
        limit: int = DEFAULT_PAGE_LIMIT,
        last_id: str | None = None,
    ) -> list[dict[str, Any]]:
        self.registry.get(resource)
        records = self.platform.list(resource, filter, limit, last_id)
        for record in records:
            self._remember(resource, record)
        return records

    def preview_update(
        self,
        resource: str,
        resource_id: Any,
        updates: Any,
        options: Mapping[str, Any] | None = None,
    ) -> UpdatePreview:
        """Show what an update would produce without dispatching it."""
        resource_id = self._clean_id(resource_id)
        patch = self.registry.validate_update(resource, updates)
        replace = _replace_flag(options)
        current = self.platform.get(resource, resource_id)
        self._remember(resource, current)
        return {
            "resource": resource,
            "id": resource_id,
            "replace": replace,
            "current": current,
            "result": apply_update(current, patch, replace=replace),
            "lost_paths": lost_paths(current, patch) if replace else [],
        }

    def archive(self, resource: str, resource_id: Any) -> dict[str, Any]:
        """Archive a resource; nothing is ever deleted."""
        return self._set_archived(resource, resource_id, _now_iso())

    def unarchive(self, resource: str, resource_id: Any) -> dict[str, Any]:
        return self._set_archived(resource, resource_id, "")

    def _set_archived(self, resource: str, resource_id: Any, value: str) -> dict[str, Any]:
        schema = self.registry.get(resource)
        if not schema.archivable:
            msg = f"{resource} cannot be archived (no archivedAt field)"
            raise InvalidField(msg, path="archivedAt")
        resource_id = self._clean_id(resource_id)
        record = self.platform.update(resource, resource_id, {"archivedAt": value})
        self._remember(resource, record)
        logger.debug("archivedAt=%r", value, extra={"resource": resource, "resource_id": resource_id})
        return record

    # -- Completion checks ---------------------------------------------------

    def validate_form(self, form_id: Any) -> FormReport:
        """Whole-form check: one root, resolvable links, scoring rules naming real fields."""
        form_id = self._clean_id(form_id, "form_id")
        graph = self.form_graph(form_id)
        graph.validate()
        form = self.platform.get("forms", form_id)
        for i, rule in enumerate(form.get("scoring") or []):
            field_id = rule.get("fieldId") if isinstance(rule, Mapping) else None
            if field_id not in graph:
                msg = f"scoring[{i}].fieldId '{field_id}' is not a field of form '{form_id}'"
                raise DanglingReference(msg, path=f"scoring[{i}].fieldId")
        root = graph.root()
        return {
            "form_id": form_id,
            "fields": len(graph),
            "root": root.id if root else None,
            "order": graph.order(),
        }

    def validate_journey(self, journey_id: Any) -> JourneyReport:
        """Whole-journey check: an onJourneyStart entry, resolvable references, no cycles."""
        journey_id = self._clean_id(journey_id, "journey_id")
        chain = self.step_chain(journey_id)
        advisories = chain.validate()
        for node in chain.nodes:
            self._check_wait_triggers(node)
        return {
            "journey_id": journey_id,
            "steps": len(chain),
            "entry_steps": [n.id for n in chain.entry_steps()],
            "warnings": advisories,
        }
