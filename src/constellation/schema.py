"""Resource schema registry -- catalog parsing, payload validation, tool input schemas.

One generic factory turns each declarative catalog entry into a create
validator, an update validator, and the JSON Schema advertised for the
``<resource>_create_one`` / ``<resource>_update_one`` tools.  Tagged-union
fields are delegated to the variant codec.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal

from constellation.catalog import RESOURCE_CATALOG
from constellation.errors import InvalidField, UnknownResource
from constellation.validation import json_kind, matches_kind
from constellation.variants import FAMILIES, decode_variant, decode_variants

logger = logging.getLogger(__name__)

FieldType = Literal["string", "number", "integer", "boolean", "object", "array", "any"]

_VALID_FIELD_TYPES: frozenset[str] = frozenset({"string", "number", "integer", "boolean", "object", "array", "any"})

REPLACE_OBJECT_FIELDS_DESCRIPTION = (
    "Controls merge vs. replace for objects and arrays. Default (false) merges: nested objects merge key-wise "
    "and arrays are appended. True replaces every top-level key in updates wholesale, discarding anything not "
    "repeated. Read the resource first (get_one) or call explain_concept('replaceObjectFields') before using it."
)

# ---------------------------------------------------------------------------
# Frozen dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldSpec:
    """Schema for one resource property."""

    name: str
    type: FieldType
    description: str = ""
    enum: tuple[Any, ...] = ()
    items: str | None = None
    variant: str | None = None
    required: bool = False
    fields: tuple[FieldSpec, ...] = ()
    updatable: bool = True
    nullable: bool = False

    def __post_init__(self) -> None:
        if self.type not in _VALID_FIELD_TYPES:
            allowed = sorted(_VALID_FIELD_TYPES)
            msg = f"Invalid field type '{self.type}' for field '{self.name}': must be one of {allowed}"
            raise ValueError(msg)
        if self.items is not None and (self.type != "array" or self.items not in _VALID_FIELD_TYPES):
            msg = f"Field '{self.name}': 'items' is only valid on arrays and must be a field type, got '{self.items}'"
            raise ValueError(msg)
        if self.variant is not None:
            if self.variant not in FAMILIES:
                msg = f"Field '{self.name}': unknown variant family '{self.variant}' (known: {sorted(FAMILIES)})"
                raise ValueError(msg)
            if self.type not in ("object", "array"):
                msg = f"Field '{self.name}': variant fields must be of type object or array"
                raise ValueError(msg)

    def json_schema(self) -> dict[str, Any]:
        """JSON Schema fragment advertised to tool callers."""
        schema: dict[str, Any] = {}
        if self.type != "any":
            schema["type"] = [self.type, "null"] if self.nullable else self.type
        schema["description"] = self.description
        if self.enum:
            schema["enum"] = list(self.enum)
        if self.variant is not None:
            variant_schema = {
                "type": "object",
                "properties": {
                    "type": {"type": "string", "enum": FAMILIES[self.variant].types},
                    "info": {"type": "object"},
                },
                "required": ["type", "info"],
            }
            if self.type == "array":
                schema["items"] = variant_schema
            else:
                schema.update({k: v for k, v in variant_schema.items() if k != "type"})
        elif self.fields:
            nested = {
                "type": "object",
                "properties": {f.name: f.json_schema() for f in self.fields},
                "required": [f.name for f in self.fields if f.required],
            }
            if self.type == "array":
                schema["items"] = nested
            else:
                schema.update({k: v for k, v in nested.items() if k != "type"})
        elif self.items is not None and self.items != "any":
            schema["items"] = {"type": self.items}
        return schema


@dataclass(frozen=True)
class ResourceSchema:
    """Complete field catalog for one resource type."""

    name: str
    display_name: str
    description: str
    fields: tuple[FieldSpec, ...]
    depends_on: tuple[str, ...] = ()
    required_options: tuple[tuple[str, tuple[str, ...]], ...] = ()
    creatable: bool = True

    @property
    def required(self) -> list[str]:
        return [f.name for f in self.fields if f.required]

    @property
    def archivable(self) -> bool:
        return self.field("archivedAt") is not None

    def field(self, name: str) -> FieldSpec | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "resource": self.name,
            "display_name": self.display_name,
            "description": self.description,
            "depends_on": list(self.depends_on),
            "required": self.required,
            "archivable": self.archivable,
            "creatable": self.creatable,
            "fields": {f.name: f.json_schema() for f in self.fields},
        }
        if self.required_options:
            data["required_options"] = {t: list(keys) for t, keys in self.required_options}
        return data


# ---------------------------------------------------------------------------
# Value checks
# ---------------------------------------------------------------------------


def _check_object(
    fields: Sequence[FieldSpec],
    values: Any,
    path: str,
    *,
    require: bool,
    resource: str,
) -> None:
    """Strict key check of *values* against *fields* (unknown keys rejected)."""
    if not isinstance(values, Mapping):
        msg = f"{path or resource} must be an object, got {json_kind(values)}"
        raise InvalidField(msg, path=path, expected="object")
    by_name = {f.name: f for f in fields}
    prefix = f"{path}." if path else ""
    if require:
        for f in fields:
            if f.required and f.name not in values:
                msg = f"{resource}: missing required field '{prefix}{f.name}'"
                raise InvalidField(msg, path=f"{prefix}{f.name}", expected=f.type)
    for key, value in values.items():
        spec = by_name.get(key)
        if spec is None:
            msg = f"{resource}: unknown field '{prefix}{key}'. Known fields: {', '.join(sorted(by_name))}"
            raise InvalidField(msg, path=f"{prefix}{key}")
        _check_value(spec, value, f"{prefix}{key}", resource)


def _check_value(spec: FieldSpec, value: Any, path: str, resource: str) -> None:
    if value is None and spec.nullable:
        return
    if spec.variant is not None:
        family = FAMILIES[spec.variant]
        if spec.type == "array":
            decode_variants(value, family, path)
        else:
            decode_variant(value, family, path)
        return
    if not matches_kind(value, spec.type):
        msg = f"{resource}: {path} must be {spec.type}, got {json_kind(value)}"
        raise InvalidField(msg, path=path, expected=spec.type)
    if spec.enum and value not in spec.enum:
        options = " | ".join(repr(v) for v in spec.enum)
        msg = f"{resource}: {path} must be one of {options}, got {value!r}"
        raise InvalidField(msg, path=path, expected=options)
    if spec.type == "array":
        for i, item in enumerate(value):
            item_path = f"{path}[{i}]"
            if spec.items is not None and not matches_kind(item, spec.items):
                msg = f"{resource}: {item_path} must be {spec.items}, got {json_kind(item)}"
                raise InvalidField(msg, path=item_path, expected=spec.items)
            if spec.fields:
                _check_object(spec.fields, item, item_path, require=True, resource=resource)
    elif spec.type == "object" and spec.fields:
        _check_object(spec.fields, value, path, require=True, resource=resource)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class SchemaRegistry:
    """Parses the resource catalog once and serves validators and tool schemas."""

    # Size limit per resource (guards against runaway custom catalogs)
    MAX_FIELDS = 100

    def __init__(self, catalog: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        raw_catalog = RESOURCE_CATALOG if catalog is None else catalog
        self._resources: dict[str, ResourceSchema] = {}
        for raw in raw_catalog.values():
            schema = self.parse_resource(raw)
            if schema.name in self._resources:
                msg = f"Duplicate resource '{schema.name}' in catalog"
                raise ValueError(msg)
            self._resources[schema.name] = schema
        for schema in self._resources.values():
            for dep in schema.depends_on:
                if dep not in self._resources:
                    msg = f"Resource '{schema.name}' depends on unknown resource '{dep}'"
                    raise ValueError(msg)
        self._order = self._dependency_order()
        logger.debug("Schema registry loaded %d resources", len(self._resources))

    # -- Parsing (from dict/JSON) -------------------------------------------

    @staticmethod
    def parse_field(raw: Mapping[str, Any], owner: str) -> FieldSpec:
        if not isinstance(raw, Mapping) or "name" not in raw or "type" not in raw:
            msg = f"Resource '{owner}': every field must be a dict with 'name' and 'type'"
            raise ValueError(msg)
        raw_nested = raw.get("fields", [])
        if not isinstance(raw_nested, list):
            msg = f"Resource '{owner}': field '{raw['name']}' 'fields' must be a list"
            raise ValueError(msg)
        nested = tuple(SchemaRegistry.parse_field(f, f"{owner}.{raw['name']}") for f in raw_nested)
        _check_duplicates(nested, f"{owner}.{raw['name']}")
        return FieldSpec(
            name=raw["name"],
            type=raw["type"],
            description=raw.get("description", ""),
            enum=tuple(raw.get("enum", ())),
            items=raw.get("items"),
            variant=raw.get("variant"),
            required=bool(raw.get("required", False)),
            fields=nested,
            updatable=bool(raw.get("updatable", True)),
            nullable=bool(raw.get("nullable", False)),
        )

    @staticmethod
    def parse_resource(raw: Mapping[str, Any]) -> ResourceSchema:
        """Parse one catalog entry.

        Raises:
            ValueError: If the entry is malformed, has unknown field types,
                duplicate field names, or exceeds size limits.
            KeyError: If 'resource' or 'display_name' is missing.
        """
        name = raw["resource"]
        raw_fields = raw.get("fields")
        if not isinstance(raw_fields, list):
            msg = f"Resource '{name}': 'fields' must be a list, got {type(raw_fields).__name__}"
            raise ValueError(msg)
        if len(raw_fields) > SchemaRegistry.MAX_FIELDS:
            msg = f"Resource '{name}' has {len(raw_fields)} fields (max {SchemaRegistry.MAX_FIELDS})"
            raise ValueError(msg)

        logger.debug("Parsing catalog for resource: %s", name)
        fields = tuple(SchemaRegistry.parse_field(f, name) for f in raw_fields)
        _check_duplicates(fields, name)

        raw_options = raw.get("required_options", {})
        if not isinstance(raw_options, Mapping):
            msg = f"Resource '{name}': 'required_options' must be a dict"
            raise ValueError(msg)
        return ResourceSchema(
            name=name,
            display_name=raw["display_name"],
            description=raw.get("description", ""),
            fields=fields,
            depends_on=tuple(raw.get("depends_on", ())),
            required_options=tuple((k, tuple(v)) for k, v in raw_options.items()),
            creatable=bool(raw.get("creatable", True)),
        )

    # -- Queries -------------------------------------------------------------

    def __contains__(self, resource: object) -> bool:
        return resource in self._resources

    def list_resources(self) -> list[ResourceSchema]:
        return list(self._resources.values())

    def get(self, resource: str) -> ResourceSchema:
        schema = self._resources.get(resource)
        if schema is None:
            raise UnknownResource(resource, list(self._resources))
        return schema

    def resources_in_dependency_order(self) -> list[str]:
        """Resource names such that every resource follows those it depends on."""
        return list(self._order)

    def _dependency_order(self) -> list[str]:
        remaining = {name: set(s.depends_on) for name, s in self._resources.items()}
        order: list[str] = []
        while remaining:
            ready = [name for name, deps in remaining.items() if not deps]
            if not ready:
                msg = f"Catalog dependencies form a cycle among: {', '.join(sorted(remaining))}"
                raise ValueError(msg)
            for name in ready:
                order.append(name)
                del remaining[name]
            for deps in remaining.values():
                deps.difference_update(ready)
        return order

    # -- Validation ----------------------------------------------------------

    def validate_create(self, resource: str, data: Any) -> dict[str, Any]:
        """Check a create payload; returns a shallow copy on success.

        Raises:
            UnknownResource, InvalidField, InvalidVariant
        """
        schema = self.get(resource)
        if not schema.creatable:
            msg = f"{resource} records cannot be created; update an existing record by id instead"
            raise InvalidField(msg, path="resource")
        _check_object(schema.fields, data, "", require=True, resource=resource)
        self.check_required_options(resource, data)
        return dict(data)

    def validate_update(self, resource: str, updates: Any) -> dict[str, Any]:
        """Check an update patch: same per-field checks, nothing required, at least one key."""
        schema = self.get(resource)
        if not isinstance(updates, Mapping):
            msg = f"{resource}: updates must be an object, got {json_kind(updates)}"
            raise InvalidField(msg, path="updates", expected="object")
        if not updates:
            msg = f"{resource}: updates must contain at least one field"
            raise InvalidField(msg, path="updates")
        for key in updates:
            spec = schema.field(key)
            if spec is not None and not spec.updatable:
                msg = f"{resource}: '{key}' cannot be changed after creation"
                raise InvalidField(msg, path=f"updates.{key}")
        _check_object(schema.fields, updates, "", require=False, resource=resource)
        return dict(updates)

    def check_required_options(self, resource: str, data: Mapping[str, Any]) -> None:
        """Check that ``options`` carries the keys its ``type`` needs (e.g. choices for Dropdown)."""
        schema = self.get(resource)
        required = dict(schema.required_options).get(data.get("type", ""))
        if not required:
            return
        options = data.get("options")
        options = options if isinstance(options, Mapping) else {}
        for key in required:
            if key not in options:
                msg = f"{resource}: type '{data.get('type')}' requires options.{key}"
                raise InvalidField(msg, path=f"options.{key}", expected=", ".join(required))

    # -- Tool input schemas --------------------------------------------------

    def create_input_schema(self, resource: str) -> dict[str, Any]:
        schema = self.get(resource)
        return {
            "type": "object",
            "properties": {
                "data": {
                    "type": "object",
                    "description": f"{schema.display_name} creation data",
                    "properties": {f.name: f.json_schema() for f in schema.fields},
                    "required": schema.required,
                },
            },
            "required": ["data"],
        }

    def update_input_schema(self, resource: str) -> dict[str, Any]:
        schema = self.get(resource)
        return {
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": f"Id of the {schema.display_name.lower()} to update"},
                "updates": {
                    "type": "object",
                    "description": "Fields to change; unmentioned fields are left as they are",
                    "properties": {f.name: f.json_schema() for f in schema.fields if f.updatable},
                },
                "options": {
                    "type": "object",
                    "description": "Update options",
                    "properties": {
                        "replaceObjectFields": {"type": "boolean", "description": REPLACE_OBJECT_FIELDS_DESCRIPTION},
                    },
                },
            },
            "required": ["id", "updates"],
        }


def _check_duplicates(fields: Sequence[FieldSpec], owner: str) -> None:
    seen: set[str] = set()
    for f in fields:
        if f.name in seen:
            msg = f"Resource '{owner}': duplicate field name '{f.name}'"
            raise ValueError(msg)
        seen.add(f.name)
