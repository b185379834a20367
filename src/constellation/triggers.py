"""Placement rules for AutomationTrigger ``journeyId``.

The platform resolves a trigger's target differently per action class:

* global membership actions carry their journey inside ``action.info`` and must
  not set a top-level ``journeyId``;
* step activation (``Move To Step``) finds the waiting step by journey, so the
  top-level ``journeyId`` is mandatory.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from constellation.errors import (
    InvalidVariant,
    MissingJourneyIdForStepActivation,
    UnexpectedJourneyIdOnGlobalTrigger,
)
from constellation.variants import TRIGGER_ACTION, TRIGGER_EVENT, Variant, decode_variant, describe_shape

ActionClass = Literal["global-membership", "step-activation"]

GLOBAL_MEMBERSHIP_ACTIONS: frozenset[str] = frozenset(
    {
        "Add To Journey",
        "Remove From Journey",
        "Remove From All Journeys",
        "Add Tags",
        "Remove Tags",
        "Set Fields",
    }
)

STEP_ACTIVATION_ACTIONS: frozenset[str] = frozenset({"Move To Step"})


def classify_action(action_type: str) -> ActionClass:
    if action_type in STEP_ACTIVATION_ACTIONS:
        return "step-activation"
    if action_type in GLOBAL_MEMBERSHIP_ACTIONS:
        return "global-membership"
    msg = f"action.type '{action_type}' is not a recognized trigger action"
    raise InvalidVariant(msg, path="action.type", expected=describe_shape(TRIGGER_ACTION))


def _has_journey_id(trigger: Mapping[str, Any]) -> bool:
    value = trigger.get("journeyId")
    return value is not None and value != ""


def check_trigger_placement(trigger: Mapping[str, Any]) -> ActionClass:
    """Check the top-level ``journeyId`` against the action class and return the class."""
    action = trigger.get("action")
    action_type = action.get("type") if isinstance(action, Mapping) else None
    if not isinstance(action_type, str):
        msg = "action must be an object with a 'type'"
        raise InvalidVariant(msg, path="action", expected=describe_shape(TRIGGER_ACTION))

    action_class = classify_action(action_type)
    if action_class == "global-membership" and _has_journey_id(trigger):
        msg = (
            f"Trigger action '{action_type}' is a global membership action; remove the top-level journeyId "
            f"(the target journey, if any, belongs in action.info.journeyId)"
        )
        raise UnexpectedJourneyIdOnGlobalTrigger(msg, path="journeyId", expected="absent")
    if action_class == "step-activation" and not _has_journey_id(trigger):
        msg = (
            f"Trigger action '{action_type}' activates a waiting step and needs a top-level journeyId "
            f"naming the journey that contains the waitForTrigger step"
        )
        raise MissingJourneyIdForStepActivation(msg, path="journeyId", expected="string")
    return action_class


def validate_trigger(trigger: Mapping[str, Any]) -> tuple[Variant, Variant]:
    """Decode a trigger's event and action, then check journeyId placement."""
    event = decode_variant(trigger.get("event"), TRIGGER_EVENT, "event")
    action = decode_variant(trigger.get("action"), TRIGGER_ACTION, "action")
    check_trigger_placement(trigger)
    return event, action
