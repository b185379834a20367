"""Build plans: ordered operations with forward-id substitution.

A plan is a JSON document::

    {"operations": [
        {"op": "create", "resource": "forms", "ref": "intake", "data": {"title": "Intake"}},
        {"op": "create", "resource": "form_fields", "ref": "q1",
         "data": {"formId": {"$ref": "intake"}, "title": "Name", "type": "string",
                  "previousFields": [{"type": "root", "info": {}}]}},
        {"op": "validate_form", "form_id": "$ref:intake"}
    ]}

Any ``{"$ref": name}`` value, or a ``"$ref:name"`` string, is replaced by the
id produced by the earlier operation labelled ``ref``.  Execution stops at the
first failing operation; everything before it has already been dispatched.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from constellation.errors import ConstellationError, DanglingReference, InvalidPlan

if TYPE_CHECKING:
    from constellation.core import BuildSession

logger = logging.getLogger(__name__)

PLAN_OPS: frozenset[str] = frozenset(
    {"create", "update", "archive", "unarchive", "validate_form", "validate_journey"}
)

_REF_PREFIX = "$ref:"


@dataclass
class PlanResult:
    """Outcome of a plan run: per-operation results, the ref table, and the first error."""

    steps: list[dict[str, Any]] = field(default_factory=list)
    refs: dict[str, str] = field(default_factory=dict)
    error: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"ok": self.ok, "steps": self.steps, "refs": self.refs}
        if self.error is not None:
            data["error"] = self.error
        return data


def load_plan(path: Path) -> dict[str, Any]:
    try:
        plan = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        msg = f"{path}: not valid JSON ({exc})"
        raise InvalidPlan(msg) from exc
    check_plan(plan)
    return plan


def check_plan(plan: Any) -> list[Mapping[str, Any]]:
    """Shape check for the whole plan before anything is dispatched."""
    if not isinstance(plan, Mapping) or not isinstance(plan.get("operations"), list):
        msg = "A plan must be an object with an 'operations' array"
        raise InvalidPlan(msg, path="operations")
    operations: list[Mapping[str, Any]] = plan["operations"]
    labels: set[str] = set()
    for i, op in enumerate(operations):
        path = f"operations[{i}]"
        if not isinstance(op, Mapping):
            msg = f"{path} must be an object"
            raise InvalidPlan(msg, path=path)
        if op.get("op") not in PLAN_OPS:
            msg = f"{path}.op '{op.get('op')}' is not one of {', '.join(sorted(PLAN_OPS))}"
            raise InvalidPlan(msg, path=f"{path}.op", expected=" | ".join(sorted(PLAN_OPS)))
        options = op.get("options")
        if options is not None and not isinstance(options, Mapping):
            msg = f"{path}.options must be an object"
            raise InvalidPlan(msg, path=f"{path}.options", expected="object")
        ref = op.get("ref")
        if ref is not None:
            if not isinstance(ref, str) or not ref:
                msg = f"{path}.ref must be a non-empty string"
                raise InvalidPlan(msg, path=f"{path}.ref")
            if ref in labels:
                msg = f"{path}.ref '{ref}' is already used by an earlier operation"
                raise InvalidPlan(msg, path=f"{path}.ref")
            labels.add(ref)
    return operations


def resolve_refs(value: Any, refs: Mapping[str, str], path: str) -> Any:
    """Replace every ``$ref`` in *value* with the id recorded in *refs*."""
    if isinstance(value, Mapping):
        if set(value) == {"$ref"}:
            return _lookup(value["$ref"], refs, path)
        return {k: resolve_refs(v, refs, f"{path}.{k}") for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_refs(v, refs, f"{path}[{i}]") for i, v in enumerate(value)]
    if isinstance(value, str) and value.startswith(_REF_PREFIX):
        return _lookup(value[len(_REF_PREFIX) :], refs, path)
    return value


def _lookup(name: Any, refs: Mapping[str, str], path: str) -> str:
    if not isinstance(name, str) or name not in refs:
        known = ", ".join(refs) or "none yet"
        msg = f"{path}: $ref '{name}' does not name an earlier operation (known: {known})"
        raise DanglingReference(msg, path=path)
    return refs[name]


def _run_one(session: BuildSession, op: Mapping[str, Any]) -> tuple[str | None, dict[str, Any]]:
    """Dispatch one resolved operation; returns (produced id, result payload)."""
    resource = op.get("resource", "")
    match op["op"]:
        case "create":
            record = session.create(resource, op.get("data"))
            return record["id"], record
        case "update":
            result = session.update(resource, op.get("id"), op.get("updates"), op.get("options"))
            return result.resource["id"], result.to_dict()
        case "archive":
            record = session.archive(resource, op.get("id"))
            return record["id"], record
        case "unarchive":
            record = session.unarchive(resource, op.get("id"))
            return record["id"], record
        case "validate_form":
            return None, session.validate_form(op.get("form_id"))
        case "validate_journey":
            return None, session.validate_journey(op.get("journey_id"))
        case other:
            msg = f"Unsupported plan op '{other}'"
            raise InvalidPlan(msg, path="op")


def _stop(result: PlanResult, path: str, error: dict[str, Any]) -> PlanResult:
    result.error = error
    logger.warning("Plan stopped at %s: %s", path, error["error"], extra={"code": error["code"]})
    return result


def run_plan(session: BuildSession, plan: Any) -> PlanResult:
    """Run every operation in order, stopping at the first error.

    Malformed plans raise :class:`InvalidPlan` before anything is dispatched;
    errors raised by an operation are reported in the result with its index.
    """
    operations = check_plan(plan)
    result = PlanResult()
    for i, raw_op in enumerate(operations):
        path = f"operations[{i}]"
        try:
            op = {k: (v if k in ("op", "ref") else resolve_refs(v, result.refs, f"{path}.{k}")) for k, v in raw_op.items()}
            produced_id, outcome = _run_one(session, op)
        except ConstellationError as exc:
            return _stop(result, path, {**exc.to_dict(), "index": i, "op": raw_op.get("op")})
        except KeyError as exc:
            detail = exc.args[0] if exc.args else exc
            return _stop(result, path, {"error": f"Not found: {detail}", "code": "not_found", "index": i, "op": raw_op.get("op")})
        ref = raw_op.get("ref")
        if ref is not None and produced_id is not None:
            result.refs[ref] = produced_id
        result.steps.append(
            {"index": i, "op": raw_op["op"], "resource": raw_op.get("resource"), "ref": ref, "id": produced_id, "result": outcome}
        )
    return result
