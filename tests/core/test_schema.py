"""Tests for the resource schema registry and its catalog."""

from __future__ import annotations

from typing import Any

import pytest

from constellation.catalog import FORM_FIELD_TYPES, RESOURCE_CATALOG
from constellation.errors import InvalidField, InvalidVariant, UnknownResource
from constellation.schema import FieldSpec, SchemaRegistry
from tests._builders import EMAIL_ACTION, ENTRY_EVENTS, ROOT_LINK


def _catalog(*entries: dict[str, Any]) -> dict[str, dict[str, Any]]:
    return {e["resource"]: e for e in entries}


def _resource(name: str, fields: list[dict[str, Any]], depends_on: list[str] | None = None) -> dict[str, Any]:
    return {"resource": name, "display_name": name.title(), "fields": fields, "depends_on": depends_on or []}


class TestCatalog:
    def test_every_resource_parses(self, registry: SchemaRegistry) -> None:
        assert {s.name for s in registry.list_resources()} == set(RESOURCE_CATALOG)

    def test_dependency_order(self, registry: SchemaRegistry) -> None:
        order = registry.resources_in_dependency_order()
        for name in order:
            for dep in registry.get(name).depends_on:
                assert order.index(dep) < order.index(name)
        assert order.index("automation_triggers") < len(order)

    def test_form_field_types(self) -> None:
        assert len(FORM_FIELD_TYPES) == len(set(FORM_FIELD_TYPES))
        assert "multiple_choice" in FORM_FIELD_TYPES
        assert "Database Select" in FORM_FIELD_TYPES

    def test_archivable(self, registry: SchemaRegistry) -> None:
        assert registry.get("forms").archivable
        assert registry.get("journeys").archivable
        assert not registry.get("form_fields").archivable

    def test_update_only_resource(self, registry: SchemaRegistry) -> None:
        orgs = registry.get("organizations")
        assert orgs.creatable is False
        assert orgs.to_dict()["creatable"] is False
        assert registry.get("forms").creatable
        assert orgs.depends_on == ()
        with pytest.raises(InvalidField, match="cannot be created") as exc:
            registry.validate_create("organizations", {"timezone": "UTC"})
        assert exc.value.path == "resource"
        assert registry.validate_update("organizations", {"settings": {"calendar": {}}}) == {"settings": {"calendar": {}}}

    def test_unknown_resource(self, registry: SchemaRegistry) -> None:
        with pytest.raises(UnknownResource) as exc:
            registry.get("widgets")
        assert exc.value.code == "unknown_resource"
        assert "forms" in exc.value.expected
        assert "widgets" not in registry


class TestParsing:
    def test_duplicate_field_rejected(self) -> None:
        fields = [{"name": "a", "type": "string"}, {"name": "a", "type": "number"}]
        with pytest.raises(ValueError, match="Duplicate"):
            SchemaRegistry(_catalog(_resource("things", fields)))

    def test_bad_field_type(self) -> None:
        with pytest.raises(ValueError, match="Invalid field type"):
            SchemaRegistry(_catalog(_resource("things", [{"name": "a", "type": "date"}])))

    def test_unknown_variant_family(self) -> None:
        with pytest.raises(ValueError, match="unknown variant family"):
            FieldSpec(name="x", type="object", variant="nope")

    def test_variant_on_scalar_rejected(self) -> None:
        with pytest.raises(ValueError, match="object or array"):
            FieldSpec(name="x", type="string", variant="link")

    def test_items_only_on_arrays(self) -> None:
        with pytest.raises(ValueError, match="only valid on arrays"):
            FieldSpec(name="x", type="string", items="string")

    def test_unknown_dependency(self) -> None:
        with pytest.raises(ValueError, match="unknown resource 'ghosts'"):
            SchemaRegistry(_catalog(_resource("things", [], ["ghosts"])))

    def test_dependency_cycle(self) -> None:
        catalog = _catalog(_resource("a", [], ["b"]), _resource("b", [], ["a"]))
        with pytest.raises(ValueError, match="cycle"):
            SchemaRegistry(catalog)

    def test_too_many_fields(self) -> None:
        fields = [{"name": f"f{i}", "type": "string"} for i in range(SchemaRegistry.MAX_FIELDS + 1)]
        with pytest.raises(ValueError, match="max"):
            SchemaRegistry(_catalog(_resource("things", fields)))


class TestValidateCreate:
    def test_minimal_form(self, registry: SchemaRegistry) -> None:
        assert registry.validate_create("forms", {"title": "Intake"}) == {"title": "Intake"}

    def test_missing_required(self, registry: SchemaRegistry) -> None:
        with pytest.raises(InvalidField) as exc:
            registry.validate_create("forms", {})
        assert exc.value.path == "title"
        assert exc.value.expected == "string"

    def test_unknown_field(self, registry: SchemaRegistry) -> None:
        with pytest.raises(InvalidField, match="unknown field 'colour'"):
            registry.validate_create("forms", {"title": "x", "colour": "red"})

    def test_wrong_kind(self, registry: SchemaRegistry) -> None:
        with pytest.raises(InvalidField, match="must be string, got integer"):
            registry.validate_create("forms", {"title": 7})

    def test_payload_must_be_object(self, registry: SchemaRegistry) -> None:
        with pytest.raises(InvalidField, match="must be an object"):
            registry.validate_create("forms", ["title"])

    def test_enum(self, registry: SchemaRegistry) -> None:
        with pytest.raises(InvalidField) as exc:
            registry.validate_create("templates", {"title": "t", "subject": "s", "message": "m", "mode": "markdown"})
        assert "'html'" in exc.value.expected

    def test_array_items(self, registry: SchemaRegistry) -> None:
        with pytest.raises(InvalidField) as exc:
            registry.validate_create("journeys", {"title": "j", "tags": ["ok", 3]})
        assert exc.value.path == "tags[1]"

    def test_nested_object_fields_strict(self, registry: SchemaRegistry) -> None:
        data = {"title": "PHQ-9", "scoring": [{"title": "total", "fieldId": "f1", "score": 1, "bonus": 2}]}
        with pytest.raises(InvalidField) as exc:
            registry.validate_create("forms", data)
        assert exc.value.path == "scoring[0].bonus"

    def test_nested_object_required(self, registry: SchemaRegistry) -> None:
        with pytest.raises(InvalidField) as exc:
            registry.validate_create("forms", {"title": "PHQ-9", "scoring": [{"title": "total", "score": 1}]})
        assert exc.value.path == "scoring[0].fieldId"

    def test_variant_field_decoded(self, registry: SchemaRegistry) -> None:
        data = {"formId": "f", "title": "q", "type": "string", "previousFields": [{"type": "root"}]}
        with pytest.raises(InvalidVariant) as exc:
            registry.validate_create("form_fields", data)
        assert exc.value.path == "previousFields[0].info"

    def test_nullable(self, registry: SchemaRegistry) -> None:
        data = {"formId": "f", "title": "q", "type": "string", "previousFields": ROOT_LINK, "intakeField": None}
        assert registry.validate_create("form_fields", data)["intakeField"] is None

    def test_step_action_variant(self, registry: SchemaRegistry) -> None:
        data = {"journeyId": "j", "events": ENTRY_EVENTS, "action": EMAIL_ACTION}
        assert registry.validate_create("automation_steps", data)["action"] == EMAIL_ACTION


class TestRequiredOptions:
    def _field(self, type_name: str, options: dict[str, Any] | None = None) -> dict[str, Any]:
        data: dict[str, Any] = {"formId": "f", "title": "q", "type": type_name, "previousFields": ROOT_LINK}
        if options is not None:
            data["options"] = options
        return data

    def test_multiple_choice_needs_choices(self, registry: SchemaRegistry) -> None:
        with pytest.raises(InvalidField) as exc:
            registry.validate_create("form_fields", self._field("multiple_choice"))
        assert exc.value.path == "options.choices"

    def test_rating_needs_range(self, registry: SchemaRegistry) -> None:
        with pytest.raises(InvalidField) as exc:
            registry.validate_create("form_fields", self._field("rating", {"from": 1}))
        assert exc.value.path == "options.to"

    def test_unlisted_options_pass_through(self, registry: SchemaRegistry) -> None:
        data = self._field("Dropdown", {"choices": ["a"], "ehrMapping": {"code": "x"}})
        assert registry.validate_create("form_fields", data)["options"]["ehrMapping"] == {"code": "x"}

    def test_types_without_requirements(self, registry: SchemaRegistry) -> None:
        registry.validate_create("form_fields", self._field("email"))


class TestValidateUpdate:
    def test_partial_update(self, registry: SchemaRegistry) -> None:
        assert registry.validate_update("forms", {"description": "new"}) == {"description": "new"}

    def test_empty_update_rejected(self, registry: SchemaRegistry) -> None:
        with pytest.raises(InvalidField, match="at least one field"):
            registry.validate_update("forms", {})

    def test_non_object_rejected(self, registry: SchemaRegistry) -> None:
        with pytest.raises(InvalidField) as exc:
            registry.validate_update("forms", "title")
        assert exc.value.path == "updates"

    def test_create_only_field_rejected(self, registry: SchemaRegistry) -> None:
        with pytest.raises(InvalidField, match="cannot be changed after creation") as exc:
            registry.validate_update("form_fields", {"formId": "other"})
        assert exc.value.path == "updates.formId"

    def test_unknown_field_rejected(self, registry: SchemaRegistry) -> None:
        with pytest.raises(InvalidField):
            registry.validate_update("journeys", {"name": "x"})


class TestToolSchemas:
    def test_create_schema(self, registry: SchemaRegistry) -> None:
        schema = registry.create_input_schema("form_fields")
        assert schema["required"] == ["data"]
        data = schema["properties"]["data"]
        assert set(data["required"]) == {"formId", "title", "type", "previousFields"}
        links = data["properties"]["previousFields"]
        assert links["type"] == "array"
        assert links["items"]["properties"]["type"]["enum"] == ["root", "after", "previousEquals", "compoundLogic"]
        assert data["properties"]["intakeField"]["type"] == ["string", "null"]

    def test_update_schema_omits_create_only_fields(self, registry: SchemaRegistry) -> None:
        schema = registry.update_input_schema("form_fields")
        assert schema["required"] == ["id", "updates"]
        updatable = schema["properties"]["updates"]["properties"]
        assert "formId" not in updatable
        assert "type" not in updatable
        assert "title" in updatable
        replace = schema["properties"]["options"]["properties"]["replaceObjectFields"]
        assert replace["type"] == "boolean"
        assert "merge" in replace["description"]

    def test_nested_fields_in_schema(self, registry: SchemaRegistry) -> None:
        scoring = registry.get("forms").field("scoring")
        assert scoring is not None
        items = scoring.json_schema()["items"]
        assert set(items["required"]) == {"title", "fieldId", "score"}

    def test_to_dict_includes_required_options(self, registry: SchemaRegistry) -> None:
        data = registry.get("form_fields").to_dict()
        assert data["required_options"]["rating"] == ["from", "to"]
        assert "required_options" not in registry.get("forms").to_dict()
