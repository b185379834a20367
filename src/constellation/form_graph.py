"""Ordering graph validation for FormField ``previousFields`` links.

A form's fields form a graph rooted at the single field carrying a ``root``
link; every other link names a field that must already exist.  Field ids are
assigned by the platform, so :class:`FormGraph` is an arena populated strictly
in creation order: a new field can only point at fields created before it.

Validation is fail-fast: the first error found is raised, matching the order
in which a caller creates fields one by one.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from constellation.errors import DanglingReference, DuplicateRoot, InvalidVariant, MissingRoot
from constellation.validation import json_kind
from constellation.variants import LINK, Variant, decode_variants

logger = logging.getLogger(__name__)

# Values the platform derives from responses and enduser data.
DERIVED_KEYS: frozenset[str] = frozenset({"age", "bmi", "score", "gender", "state"})

# Built-in enduser properties usable as condition keys.
ENDUSER_KEYS: frozenset[str] = frozenset(
    {"tags", "fname", "lname", "email", "phone", "dateOfBirth", "gender", "state", "timezone", "journeys"}
)

CONDITION_OPERATORS: frozenset[str] = frozenset({"$exists", "$gt", "$gte", "$lt", "$lte", "$eq", "$ne", "$in", "$nin"})

_COMPOUND_KEYS = ("$and", "$or")


@dataclass(frozen=True)
class FormFieldNode:
    """One FormField as seen by the ordering graph."""

    id: str
    form_id: str
    links: tuple[Variant, ...]
    type: str = ""
    choices: tuple[str, ...] = ()

    @property
    def is_root(self) -> bool:
        return any(link.type == "root" for link in self.links)

    @classmethod
    def from_resource(cls, resource: Mapping[str, Any], field_id: str | None = None) -> FormFieldNode:
        """Build a node from a FormField payload (``previousFields`` decoded via the codec)."""
        node_id = field_id if field_id is not None else str(resource.get("id", ""))
        options = resource.get("options")
        raw_choices = options.get("choices") if isinstance(options, Mapping) else None
        choices = tuple(c for c in raw_choices if isinstance(c, str)) if isinstance(raw_choices, list) else ()
        return cls(
            id=node_id,
            form_id=str(resource.get("formId", "")),
            links=decode_variants(resource.get("previousFields", []), LINK, "previousFields"),
            type=str(resource.get("type", "")),
            choices=choices,
        )


class FormGraph:
    """Arena of the FormFields of one form, keyed by id in creation order."""

    def __init__(self, form_id: str, enduser_keys: Iterable[str] = ()) -> None:
        self.form_id = form_id
        self.enduser_keys = frozenset(enduser_keys) | ENDUSER_KEYS
        self._nodes: dict[str, FormFieldNode] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, field_id: object) -> bool:
        return field_id in self._nodes

    def get(self, field_id: str) -> FormFieldNode | None:
        return self._nodes.get(field_id)

    @property
    def nodes(self) -> list[FormFieldNode]:
        return list(self._nodes.values())

    # -- Incremental checks --------------------------------------------------

    def check_new(self, node: FormFieldNode) -> None:
        """Check a field about to be created against the fields created so far."""
        self._check_form(node)
        if node.is_root:
            existing = self.root()
            if existing is not None:
                msg = (
                    f"Form '{self.form_id}' already has a root field ('{existing.id}'); "
                    f"link this field with 'after' instead"
                )
                raise DuplicateRoot(msg, path="previousFields", expected="{ type: 'after', info: { fieldId } }")
        self._check_links(node, self._nodes)

    def check_replace(self, node: FormFieldNode) -> None:
        """Check an updated field against every other field of the form."""
        self._check_form(node)
        if node.is_root:
            for other in self._nodes.values():
                if other.id != node.id and other.is_root:
                    msg = f"Form '{self.form_id}' already has a root field ('{other.id}')"
                    raise DuplicateRoot(msg, path="previousFields")
        others = {k: v for k, v in self._nodes.items() if k != node.id}
        self._check_links(node, others)

    def add(self, node: FormFieldNode) -> None:
        """Record a created field (its id was assigned by the platform)."""
        logger.debug("Form %s: recorded field %s", self.form_id, node.id)
        self._nodes[node.id] = node

    def validate(self) -> None:
        """Completion check over every recorded field."""
        _validate_nodes(self.form_id, list(self._nodes.values()), self.enduser_keys)

    # -- Queries -------------------------------------------------------------

    def root(self) -> FormFieldNode | None:
        for node in self._nodes.values():
            if node.is_root:
                return node
        return None

    def order(self) -> list[str]:
        """Field ids in display order: root first, then breadth-first along links.

        Fields that cannot be reached from the root are appended in creation order.
        """
        children: dict[str, list[str]] = {}
        for node in self._nodes.values():
            for link in node.links:
                if link.field_ref is not None:
                    children.setdefault(link.field_ref, []).append(node.id)
        root = self.root()
        seen: list[str] = []
        if root is not None:
            queue = deque([root.id])
            while queue:
                current = queue.popleft()
                if current in seen:
                    continue
                seen.append(current)
                queue.extend(children.get(current, []))
        seen.extend(fid for fid in self._nodes if fid not in seen)
        return seen

    # -- Internals -----------------------------------------------------------

    def _check_form(self, node: FormFieldNode) -> None:
        if node.form_id and node.form_id != self.form_id:
            msg = f"Field '{node.id}' belongs to form '{node.form_id}', not '{self.form_id}'"
            raise DanglingReference(msg, path="formId")

    def _check_links(self, node: FormFieldNode, known: Mapping[str, FormFieldNode]) -> None:
        for i, link in enumerate(node.links):
            _check_link(node, link, f"previousFields[{i}]", known, self.enduser_keys)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_link(
    node: FormFieldNode,
    link: Variant,
    path: str,
    known: Mapping[str, FormFieldNode],
    enduser_keys: frozenset[str],
) -> None:
    if link.type == "root":
        return
    target_id = link.field_ref
    if target_id is None or target_id == node.id or target_id not in known:
        msg = (
            f"{path}: fieldId '{target_id}' does not reference an existing field of this form; "
            f"create the referenced field first and use the id it returns"
        )
        raise DanglingReference(msg, path=f"{path}.info.fieldId")

    if link.type == "previousEquals":
        target = known[target_id]
        equals = link.info.get("equals")
        if target.choices and equals not in target.choices:
            msg = f"{path}: equals '{equals}' is not one of the choices of field '{target_id}'"
            raise DanglingReference(msg, path=f"{path}.info.equals", expected=" | ".join(target.choices))
    elif link.type == "compoundLogic":
        check_condition(link.info.get("condition"), f"{path}.info.condition", known, enduser_keys)


def check_condition(
    condition: Any,
    path: str,
    field_ids: Iterable[str],
    enduser_keys: Iterable[str] = ENDUSER_KEYS,
) -> None:
    """Walk a ``$and``/``$or`` condition tree and resolve every leaf key.

    Leaves look like ``{"condition": {key: value-or-operator-object}}``; a key is
    a FormField id, a derived value (age, score, ...), or an enduser property.
    Only referential integrity is checked; evaluation semantics are left to the
    platform.
    """
    known_fields = set(field_ids)
    allowed_keys = frozenset(enduser_keys) | DERIVED_KEYS | ENDUSER_KEYS
    _walk_condition(condition, path, known_fields, allowed_keys)


def _walk_condition(node: Any, path: str, field_ids: set[str], allowed_keys: frozenset[str]) -> None:
    if not isinstance(node, Mapping) or len(node) != 1:
        msg = f"{path} must be an object with exactly one of '$and', '$or' or 'condition'"
        raise InvalidVariant(msg, path=path, expected="{ $and: [...] } | { $or: [...] } | { condition: {...} }")

    key, value = next(iter(node.items()))
    if key in _COMPOUND_KEYS:
        if not isinstance(value, list) or not value:
            msg = f"{path}.{key} must be a non-empty array, got {json_kind(value)}"
            raise InvalidVariant(msg, path=f"{path}.{key}")
        for i, child in enumerate(value):
            _walk_condition(child, f"{path}.{key}[{i}]", field_ids, allowed_keys)
        return
    if key != "condition":
        msg = f"{path}: unexpected key '{key}'"
        raise InvalidVariant(msg, path=f"{path}.{key}", expected="$and | $or | condition")
    if not isinstance(value, Mapping) or not value:
        msg = f"{path}.condition must be a non-empty object"
        raise InvalidVariant(msg, path=f"{path}.condition")

    for leaf_key, leaf_value in value.items():
        leaf_path = f"{path}.condition.{leaf_key}"
        if leaf_key not in field_ids and leaf_key not in allowed_keys:
            msg = f"{leaf_path}: '{leaf_key}' is not a field of this form, a derived value, or an enduser property"
            raise DanglingReference(msg, path=leaf_path)
        if isinstance(leaf_value, Mapping):
            for op in leaf_value:
                if op not in CONDITION_OPERATORS:
                    msg = f"{leaf_path}: unsupported operator '{op}'"
                    raise InvalidVariant(msg, path=f"{leaf_path}.{op}", expected=" | ".join(sorted(CONDITION_OPERATORS)))


def _validate_nodes(form_id: str, nodes: list[FormFieldNode], enduser_keys: frozenset[str]) -> None:
    lookup = {n.id: n for n in nodes}
    roots = [n.id for n in nodes if n.is_root]
    if not roots:
        msg = f"Form '{form_id}' has no field with a root link; exactly one field needs previousFields [{{type: 'root'}}]"
        raise MissingRoot(msg, path="previousFields", expected="[{ type: 'root', info: {} }]")
    if len(roots) > 1:
        msg = f"Form '{form_id}' has {len(roots)} root fields ({', '.join(roots)}); exactly one is allowed"
        raise DuplicateRoot(msg, path="previousFields")
    for node in nodes:
        if node.form_id and node.form_id != form_id:
            msg = f"Field '{node.id}' belongs to form '{node.form_id}', not '{form_id}'"
            raise DanglingReference(msg, path="formId")
        for i, link in enumerate(node.links):
            _check_link(node, link, f"fields[{node.id}].previousFields[{i}]", lookup, enduser_keys)


def validate_form_fields(
    form_id: str,
    fields: Iterable[FormFieldNode | Mapping[str, Any]],
    enduser_keys: Iterable[str] = (),
) -> FormGraph:
    """Validate a complete field set for one form and return its graph.

    Raises:
        MissingRoot / DuplicateRoot: zero or several root links.
        DanglingReference: a link or condition key that does not resolve.
        InvalidVariant: a malformed link or condition.
    """
    nodes = [f if isinstance(f, FormFieldNode) else FormFieldNode.from_resource(f) for f in fields]
    graph = FormGraph(form_id, enduser_keys)
    _validate_nodes(form_id, nodes, graph.enduser_keys)
    for node in nodes:
        graph.add(node)
    return graph
