"""Tests for BuildSession: validation in front of dispatch, graph arenas, update policy."""

from __future__ import annotations

import warnings
from typing import Any

import pytest

from constellation.core import BuildSession
from constellation.errors import (
    CyclicStepChain,
    DanglingReference,
    DanglingStepReference,
    DestructiveUpdateWarning,
    DuplicateRoot,
    InvalidField,
    InvalidVariant,
    MissingEntryStep,
    MissingRoot,
    UnexpectedJourneyIdOnGlobalTrigger,
    UnknownResource,
)
from constellation.platform import DryRunPlatform
from tests._builders import ENTRY_EVENTS, ROOT_LINK, add_field, add_step, after, after_action, field_payload, wait_for


def _trigger(form_id: str, action: dict[str, Any], **extra: Any) -> dict[str, Any]:
    return {
        "title": "On submit",
        "event": {"type": "Form Submitted", "info": {"formId": form_id}},
        "action": action,
        **extra,
    }


class TestCreateFormFields:
    def test_root_then_after(self, session: BuildSession, form: dict[str, Any]) -> None:
        root = add_field(session, form["id"], "Name", ROOT_LINK)
        second = add_field(session, form["id"], "Email", after(root), type="email")
        assert session.form_graph(form["id"]).order() == [root, second]

    def test_second_root_rejected_before_dispatch(
        self, session: BuildSession, platform: DryRunPlatform, form: dict[str, Any]
    ) -> None:
        add_field(session, form["id"], "Name", ROOT_LINK)
        with pytest.raises(DuplicateRoot):
            add_field(session, form["id"], "Other", ROOT_LINK)
        assert platform.count("form_fields") == 1

    def test_unknown_form(self, session: BuildSession, platform: DryRunPlatform) -> None:
        with pytest.raises(DanglingReference) as exc:
            add_field(session, "000000000000000000000000", "Name", ROOT_LINK)
        assert exc.value.path == "formId"
        assert platform.count("form_fields") == 0

    def test_forward_reference_rejected(self, session: BuildSession, form: dict[str, Any]) -> None:
        add_field(session, form["id"], "Name", ROOT_LINK)
        with pytest.raises(DanglingReference):
            add_field(session, form["id"], "Email", after("not-created-yet"))

    def test_malformed_link_rejected(self, session: BuildSession, form: dict[str, Any]) -> None:
        with pytest.raises(InvalidVariant):
            add_field(session, form["id"], "Name", [{"type": "first", "info": {}}])

    def test_configured_enduser_field_in_condition(self, session: BuildSession, form: dict[str, Any]) -> None:
        root = add_field(session, form["id"], "Name", ROOT_LINK)
        condition = {"condition": {"Risk Level": "High"}}
        link = {"type": "compoundLogic", "info": {"fieldId": root, "priority": 1, "label": "high", "condition": condition}}
        add_field(session, form["id"], "Escalate", [link])

    def test_arena_hydrated_from_platform(
        self, session: BuildSession, platform: DryRunPlatform, form: dict[str, Any]
    ) -> None:
        root = add_field(session, form["id"], "Name", ROOT_LINK)
        fresh = BuildSession(platform)
        with pytest.raises(DuplicateRoot, match=root):
            fresh.create("form_fields", field_payload(form["id"], "Other", ROOT_LINK))

    def test_unknown_resource(self, session: BuildSession) -> None:
        with pytest.raises(UnknownResource):
            session.create("widgets", {})


class TestCreateSteps:
    def test_entry_then_follow_up(self, session: BuildSession, journey: dict[str, Any]) -> None:
        first = add_step(session, journey["id"], ENTRY_EVENTS)
        second = add_step(session, journey["id"], [after_action(first, 86400000)])
        assert [n.id for n in session.step_chain(journey["id"]).nodes] == [first, second]

    def test_dangling_step_reference(self, session: BuildSession, journey: dict[str, Any]) -> None:
        with pytest.raises(DanglingStepReference):
            add_step(session, journey["id"], [after_action("ghost")])

    def test_unknown_journey(self, session: BuildSession) -> None:
        with pytest.raises(DanglingReference) as exc:
            add_step(session, "nope", ENTRY_EVENTS)
        assert exc.value.path == "journeyId"

    def test_wait_for_unknown_trigger(self, session: BuildSession, journey: dict[str, Any]) -> None:
        first = add_step(session, journey["id"], ENTRY_EVENTS)
        with pytest.raises(DanglingReference) as exc:
            add_step(session, journey["id"], [wait_for(first, "missing-trigger")])
        assert exc.value.path == "events[0].info.triggerId"

    def test_wait_for_existing_trigger(
        self, session: BuildSession, journey: dict[str, Any], form: dict[str, Any]
    ) -> None:
        first = add_step(session, journey["id"], ENTRY_EVENTS)
        trigger = session.create("automation_triggers", _trigger(form["id"], {"type": "Move To Step", "info": {}}, journeyId=journey["id"]))
        add_step(session, journey["id"], [wait_for(first, trigger["id"])])


class TestCreateTriggers:
    def test_global_trigger(self, session: BuildSession, journey: dict[str, Any], form: dict[str, Any]) -> None:
        data = _trigger(form["id"], {"type": "Add To Journey", "info": {"journeyId": journey["id"]}})
        assert session.create("automation_triggers", data)["id"]

    def test_global_trigger_with_journey_id(
        self, session: BuildSession, platform: DryRunPlatform, journey: dict[str, Any], form: dict[str, Any]
    ) -> None:
        data = _trigger(form["id"], {"type": "Add To Journey", "info": {"journeyId": journey["id"]}}, journeyId=journey["id"])
        with pytest.raises(UnexpectedJourneyIdOnGlobalTrigger):
            session.create("automation_triggers", data)
        assert platform.count("automation_triggers") == 0

    def test_action_journey_must_exist(self, session: BuildSession, form: dict[str, Any]) -> None:
        data = _trigger(form["id"], {"type": "Add To Journey", "info": {"journeyId": "ghost"}})
        with pytest.raises(DanglingReference) as exc:
            session.create("automation_triggers", data)
        assert exc.value.path == "action.info.journeyId"

    def test_event_form_must_exist(self, session: BuildSession) -> None:
        with pytest.raises(DanglingReference) as exc:
            session.create("automation_triggers", _trigger("ghost", {"type": "Add Tags", "info": {"tags": ["x"]}}))
        assert exc.value.path == "event.info.formId"


class TestUpdate:
    def test_merge_appends_choices(self, session: BuildSession, form: dict[str, Any]) -> None:
        fid = add_field(session, form["id"], "Colour", ROOT_LINK, type="multiple_choice", options={"choices": ["Red"]})
        result = session.update("form_fields", fid, {"options": {"choices": ["Blue"]}})
        assert result.resource["options"]["choices"] == ["Red", "Blue"]
        assert result.warnings == []
        assert "warnings" not in result.to_dict()

    def test_replace_without_read_warns(
        self, session: BuildSession, platform: DryRunPlatform, form: dict[str, Any]
    ) -> None:
        fid = add_field(session, form["id"], "Colour", ROOT_LINK, type="multiple_choice", options={"choices": ["Red"], "other": True})
        fresh = BuildSession(platform)
        with pytest.warns(DestructiveUpdateWarning, match="without reading"):
            result = fresh.update("form_fields", fid, {"options": {"choices": ["Blue"]}}, {"replaceObjectFields": True})
        assert result.resource["options"] == {"choices": ["Blue"]}
        assert "options.other" in result.lost_paths
        assert result.to_dict()["warnings"] == result.warnings

    def test_replace_after_read_is_silent(
        self, session: BuildSession, platform: DryRunPlatform, form: dict[str, Any]
    ) -> None:
        fid = add_field(session, form["id"], "Colour", ROOT_LINK, type="multiple_choice", options={"choices": ["Red"]})
        fresh = BuildSession(platform)
        fresh.get("form_fields", fid)
        with warnings.catch_warnings():
            warnings.simplefilter("error", DestructiveUpdateWarning)
            result = fresh.update("form_fields", fid, {"options": {"choices": ["Blue"]}}, {"replaceObjectFields": True})
        assert result.warnings == []

    def test_list_counts_as_read(self, session: BuildSession, platform: DryRunPlatform, form: dict[str, Any]) -> None:
        fid = add_field(session, form["id"], "Name", ROOT_LINK)
        fresh = BuildSession(platform)
        fresh.list("form_fields", {"formId": form["id"]})
        assert fresh.has_read("form_fields", fid)

    @pytest.mark.parametrize("flag", ["false", "no", 1, [0]])
    def test_non_boolean_replace_flag_rejected(
        self, session: BuildSession, platform: DryRunPlatform, flag: Any
    ) -> None:
        form = session.create("forms", {"title": "Intake", "tags": ["a"]})
        with pytest.raises(InvalidField) as exc:
            session.update("forms", form["id"], {"tags": ["b"]}, {"replaceObjectFields": flag})
        assert exc.value.path == "options.replaceObjectFields"
        assert exc.value.expected == "boolean"
        assert platform.get("forms", form["id"])["tags"] == ["a"]

    def test_options_must_be_object(self, session: BuildSession, form: dict[str, Any]) -> None:
        with pytest.raises(InvalidField) as exc:
            session.update("forms", form["id"], {"tags": ["b"]}, True)  # type: ignore[arg-type]
        assert exc.value.path == "options"
        with pytest.raises(InvalidField):
            session.preview_update("forms", form["id"], {"tags": ["b"]}, ["replaceObjectFields"])  # type: ignore[arg-type]

    def test_explicit_false_merges(self, session: BuildSession) -> None:
        form = session.create("forms", {"title": "Intake", "tags": ["a"]})
        result = session.update("forms", form["id"], {"tags": ["b"]}, {"replaceObjectFields": False})
        assert result.resource["tags"] == ["a", "b"]

    def test_rejected_replace_does_not_warn(
        self, session: BuildSession, platform: DryRunPlatform, form: dict[str, Any]
    ) -> None:
        fid = add_field(session, form["id"], "Name", ROOT_LINK)
        fresh = BuildSession(platform)
        with warnings.catch_warnings():
            warnings.simplefilter("error", DestructiveUpdateWarning)
            with pytest.raises(DanglingReference):
                fresh.update("form_fields", fid, {"previousFields": after("ghost")}, {"replaceObjectFields": True})

    def test_create_only_field_rejected(self, session: BuildSession, form: dict[str, Any]) -> None:
        fid = add_field(session, form["id"], "Name", ROOT_LINK)
        with pytest.raises(InvalidField, match="cannot be changed"):
            session.update("form_fields", fid, {"formId": "elsewhere"})

    def test_replace_dropping_required_options(self, session: BuildSession, form: dict[str, Any]) -> None:
        fid = add_field(session, form["id"], "Colour", ROOT_LINK, type="Dropdown", options={"choices": ["Red"]})
        with pytest.raises(InvalidField) as exc:
            session.update("form_fields", fid, {"options": {"other": True}}, {"replaceObjectFields": True})
        assert exc.value.path == "options.choices"

    def test_relink_to_second_root_rejected(self, session: BuildSession, form: dict[str, Any]) -> None:
        root = add_field(session, form["id"], "Name", ROOT_LINK)
        second = add_field(session, form["id"], "Email", after(root))
        with pytest.raises(DuplicateRoot):
            session.update("form_fields", second, {"previousFields": ROOT_LINK}, {"replaceObjectFields": True})

    def test_step_update_closing_cycle(self, session: BuildSession, journey: dict[str, Any]) -> None:
        first = add_step(session, journey["id"], ENTRY_EVENTS)
        s2 = add_step(session, journey["id"], [after_action(first)])
        s3 = add_step(session, journey["id"], [after_action(s2)])
        with pytest.raises(CyclicStepChain):
            session.update("automation_steps", s2, {"events": [after_action(s3)]}, {"replaceObjectFields": True})

    def test_trigger_update_rechecks_placement(
        self, session: BuildSession, journey: dict[str, Any], form: dict[str, Any]
    ) -> None:
        trigger = session.create("automation_triggers", _trigger(form["id"], {"type": "Add Tags", "info": {"tags": ["a"]}}))
        with pytest.raises(UnexpectedJourneyIdOnGlobalTrigger):
            session.update("automation_triggers", trigger["id"], {"journeyId": journey["id"]})

    def test_unknown_id(self, session: BuildSession) -> None:
        with pytest.raises(KeyError):
            session.update("forms", "nope", {"title": "x"})

    def test_bad_id(self, session: BuildSession) -> None:
        with pytest.raises(InvalidField, match="control characters"):
            session.update("forms", "bad\nid", {"title": "x"})


class TestPreview:
    def test_preview_does_not_dispatch(self, session: BuildSession, platform: DryRunPlatform, form: dict[str, Any]) -> None:
        fid = add_field(session, form["id"], "Colour", ROOT_LINK, type="Dropdown", options={"choices": ["Red"], "other": True})
        preview = session.preview_update("form_fields", fid, {"options": {"choices": ["Blue"]}}, {"replaceObjectFields": True})
        assert preview["result"]["options"] == {"choices": ["Blue"]}
        assert preview["lost_paths"] == ["options.choices[0]", "options.other"]
        assert platform.get("form_fields", fid)["options"]["choices"] == ["Red"]

    def test_merge_preview_loses_nothing(self, session: BuildSession, form: dict[str, Any]) -> None:
        preview = session.preview_update("forms", form["id"], {"title": "New"})
        assert preview["replace"] is False
        assert preview["lost_paths"] == []
        assert preview["result"]["title"] == "New"


class TestOrganizations:
    @pytest.fixture
    def org(self, platform: DryRunPlatform) -> dict[str, Any]:
        return platform.seed(
            "organizations",
            {
                "id": "org1",
                "settings": {
                    "endusers": {"tags": ["vip"]},
                    "calendar": {"dayStart": {"hour": 8, "minute": 0}},
                },
            },
        )

    def test_merge_keeps_sibling_sections(self, session: BuildSession, org: dict[str, Any]) -> None:
        result = session.update("organizations", org["id"], {"settings": {"endusers": {"tags": ["new"]}}})
        settings = result.resource["settings"]
        assert settings["endusers"]["tags"] == ["vip", "new"]
        assert settings["calendar"] == {"dayStart": {"hour": 8, "minute": 0}}
        assert result.lost_paths == []

    def test_replace_drops_sibling_sections(self, platform: DryRunPlatform, org: dict[str, Any]) -> None:
        fresh = BuildSession(platform)
        with pytest.warns(DestructiveUpdateWarning):
            result = fresh.update(
                "organizations", org["id"], {"settings": {"endusers": {"tags": ["new"]}}}, {"replaceObjectFields": True}
            )
        assert result.resource["settings"] == {"endusers": {"tags": ["new"]}}
        assert "settings.calendar.dayStart.hour" in result.lost_paths
        assert "settings.calendar.dayStart.minute" in result.lost_paths
        assert platform.get("organizations", org["id"])["settings"] == {"endusers": {"tags": ["new"]}}

    def test_create_rejected(self, session: BuildSession, platform: DryRunPlatform) -> None:
        with pytest.raises(InvalidField, match="cannot be created") as exc:
            session.create("organizations", {"timezone": "America/New_York"})
        assert exc.value.path == "resource"
        assert platform.count("organizations") == 0

    def test_get_seeded(self, session: BuildSession, org: dict[str, Any]) -> None:
        assert session.get("organizations", "org1")["settings"]["endusers"]["tags"] == ["vip"]
        assert session.has_read("organizations", "org1")


class TestArchive:
    def test_archive_and_unarchive(self, session: BuildSession, form: dict[str, Any]) -> None:
        archived = session.archive("forms", form["id"])
        assert archived["archivedAt"]
        assert session.unarchive("forms", form["id"])["archivedAt"] == ""

    def test_not_archivable(self, session: BuildSession, form: dict[str, Any]) -> None:
        fid = add_field(session, form["id"], "Name", ROOT_LINK)
        with pytest.raises(InvalidField, match="cannot be archived"):
            session.archive("form_fields", fid)


class TestCompletionChecks:
    def test_validate_form(self, session: BuildSession, form: dict[str, Any]) -> None:
        root = add_field(session, form["id"], "Name", ROOT_LINK)
        second = add_field(session, form["id"], "Email", after(root))
        report = session.validate_form(form["id"])
        assert report == {"form_id": form["id"], "fields": 2, "root": root, "order": [root, second]}

    def test_validate_empty_form(self, session: BuildSession, form: dict[str, Any]) -> None:
        with pytest.raises(MissingRoot):
            session.validate_form(form["id"])

    def test_scoring_must_name_form_fields(self, session: BuildSession) -> None:
        form = session.create("forms", {"title": "PHQ-9", "scoring": [{"title": "total", "fieldId": "ghost", "score": 1}]})
        add_field(session, form["id"], "Q1", ROOT_LINK)
        with pytest.raises(DanglingReference) as exc:
            session.validate_form(form["id"])
        assert exc.value.path == "scoring[0].fieldId"

    def test_validate_journey(self, session: BuildSession, journey: dict[str, Any]) -> None:
        first = add_step(session, journey["id"], ENTRY_EVENTS)
        add_step(session, journey["id"], [after_action(first)])
        report = session.validate_journey(journey["id"])
        assert report["steps"] == 2
        assert report["entry_steps"] == [first]
        assert report["warnings"] == []

    def test_validate_empty_journey(self, session: BuildSession, journey: dict[str, Any]) -> None:
        with pytest.raises(MissingEntryStep):
            session.validate_journey(journey["id"])
