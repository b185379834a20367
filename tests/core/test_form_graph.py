"""Tests for previousFields ordering-graph validation."""

from __future__ import annotations

from typing import Any

import pytest

from constellation.errors import DanglingReference, DuplicateRoot, InvalidVariant, MissingRoot
from constellation.form_graph import FormFieldNode, FormGraph, check_condition, validate_form_fields
from tests._builders import ROOT_LINK, after


def _field(field_id: str, links: list[dict[str, Any]], **extra: Any) -> dict[str, Any]:
    return {"id": field_id, "formId": "form1", "title": field_id, "type": "string", "previousFields": links, **extra}


def _compound(field_id: str, condition: dict[str, Any]) -> list[dict[str, Any]]:
    return [
        {
            "type": "compoundLogic",
            "info": {"fieldId": field_id, "priority": 1, "label": "branch", "condition": condition},
        }
    ]


class TestWholeFormValidation:
    def test_linear_form(self) -> None:
        graph = validate_form_fields("form1", [_field("a", ROOT_LINK), _field("b", after("a")), _field("c", after("b"))])
        assert graph.order() == ["a", "b", "c"]
        assert graph.root() is not None
        assert graph.root().id == "a"  # type: ignore[union-attr]

    def test_missing_root(self) -> None:
        with pytest.raises(MissingRoot) as exc:
            validate_form_fields("form1", [_field("a", after("b")), _field("b", after("a"))])
        assert exc.value.path == "previousFields"
        assert exc.value.expected == "[{ type: 'root', info: {} }]"

    def test_empty_form_has_no_root(self) -> None:
        with pytest.raises(MissingRoot):
            validate_form_fields("form1", [])

    def test_duplicate_root(self) -> None:
        with pytest.raises(DuplicateRoot, match="2 root fields"):
            validate_form_fields("form1", [_field("a", ROOT_LINK), _field("b", ROOT_LINK)])

    def test_dangling_link(self) -> None:
        with pytest.raises(DanglingReference) as exc:
            validate_form_fields("form1", [_field("a", ROOT_LINK), _field("b", after("zzz"))])
        assert exc.value.path == "fields[b].previousFields[0].info.fieldId"

    def test_self_link_rejected(self) -> None:
        with pytest.raises(DanglingReference):
            validate_form_fields("form1", [_field("a", ROOT_LINK), _field("b", after("b"))])

    def test_field_from_another_form(self) -> None:
        other = _field("b", after("a"))
        other["formId"] = "form2"
        with pytest.raises(DanglingReference) as exc:
            validate_form_fields("form1", [_field("a", ROOT_LINK), other])
        assert exc.value.path == "formId"

    def test_branching_order_is_breadth_first(self) -> None:
        fields = [
            _field("q1", ROOT_LINK, type="multiple_choice", options={"choices": ["Yes", "No"]}),
            _field("yes", [{"type": "previousEquals", "info": {"fieldId": "q1", "equals": "Yes"}}]),
            _field("no", [{"type": "previousEquals", "info": {"fieldId": "q1", "equals": "No"}}]),
            _field("end", after("yes")),
        ]
        graph = validate_form_fields("form1", fields)
        assert graph.order() == ["q1", "yes", "no", "end"]


class TestPreviousEquals:
    def test_equals_must_be_a_choice(self) -> None:
        fields = [
            _field("q1", ROOT_LINK, type="Dropdown", options={"choices": ["Yes", "No"]}),
            _field("q2", [{"type": "previousEquals", "info": {"fieldId": "q1", "equals": "Maybe"}}]),
        ]
        with pytest.raises(DanglingReference) as exc:
            validate_form_fields("form1", fields)
        assert exc.value.path.endswith("info.equals")
        assert exc.value.expected == "Yes | No"

    def test_free_text_target_accepts_any_value(self) -> None:
        fields = [
            _field("q1", ROOT_LINK),
            _field("q2", [{"type": "previousEquals", "info": {"fieldId": "q1", "equals": "anything"}}]),
        ]
        assert len(validate_form_fields("form1", fields)) == 2


class TestCompoundLogic:
    def test_field_derived_and_enduser_keys_resolve(self) -> None:
        condition = {
            "$and": [
                {"condition": {"q1": "Yes"}},
                {"$or": [{"condition": {"age": {"$gte": 18}}}, {"condition": {"Risk Level": "High"}}]},
            ]
        }
        fields = [_field("q1", ROOT_LINK), _field("q2", _compound("q1", condition))]
        assert len(validate_form_fields("form1", fields, enduser_keys=["Risk Level"])) == 2

    def test_unknown_leaf_key(self) -> None:
        fields = [_field("q1", ROOT_LINK), _field("q2", _compound("q1", {"condition": {"ghost": 1}}))]
        with pytest.raises(DanglingReference) as exc:
            validate_form_fields("form1", fields)
        assert exc.value.path.endswith("condition.condition.ghost")

    def test_custom_enduser_key_requires_configuration(self) -> None:
        fields = [_field("q1", ROOT_LINK), _field("q2", _compound("q1", {"condition": {"Risk Level": "High"}}))]
        with pytest.raises(DanglingReference):
            validate_form_fields("form1", fields)

    def test_unsupported_operator(self) -> None:
        with pytest.raises(InvalidVariant, match=r"unsupported operator '\$regex'"):
            check_condition({"condition": {"q1": {"$regex": "^a"}}}, "c", ["q1"])

    def test_empty_compound_rejected(self) -> None:
        with pytest.raises(InvalidVariant, match="non-empty array"):
            check_condition({"$or": []}, "c", ["q1"])

    def test_node_with_two_keys_rejected(self) -> None:
        with pytest.raises(InvalidVariant, match="exactly one"):
            check_condition({"$and": [], "$or": []}, "c", [])

    def test_unknown_node_key(self) -> None:
        with pytest.raises(InvalidVariant) as exc:
            check_condition({"$not": [{"condition": {"q1": 1}}]}, "c", ["q1"])
        assert exc.value.expected == "$and | $or | condition"


class TestIncrementalChecks:
    def _graph(self) -> FormGraph:
        graph = FormGraph("form1")
        graph.add(FormFieldNode.from_resource(_field("a", ROOT_LINK)))
        return graph

    def test_new_field_may_link_existing(self) -> None:
        graph = self._graph()
        graph.check_new(FormFieldNode.from_resource(_field("b", after("a"))))

    def test_forward_reference_rejected(self) -> None:
        graph = self._graph()
        with pytest.raises(DanglingReference) as exc:
            graph.check_new(FormFieldNode.from_resource(_field("", after("not-created-yet"))))
        assert exc.value.path == "previousFields[0].info.fieldId"

    def test_second_root_rejected(self) -> None:
        graph = self._graph()
        with pytest.raises(DuplicateRoot) as exc:
            graph.check_new(FormFieldNode.from_resource(_field("", ROOT_LINK)))
        assert "'a'" in str(exc.value)

    def test_replace_may_keep_own_root(self) -> None:
        graph = self._graph()
        graph.check_replace(FormFieldNode.from_resource(_field("a", ROOT_LINK)))

    def test_replace_cannot_link_to_itself(self) -> None:
        graph = self._graph()
        graph.add(FormFieldNode.from_resource(_field("b", after("a"))))
        with pytest.raises(DanglingReference):
            graph.check_replace(FormFieldNode.from_resource(_field("b", after("b"))))

    def test_node_from_other_form_rejected(self) -> None:
        graph = self._graph()
        node = FormFieldNode.from_resource({**_field("b", after("a")), "formId": "elsewhere"})
        with pytest.raises(DanglingReference):
            graph.check_new(node)

    def test_choices_read_from_options(self) -> None:
        node = FormFieldNode.from_resource(_field("a", ROOT_LINK, options={"choices": ["x", "y", 3]}))
        assert node.choices == ("x", "y")
