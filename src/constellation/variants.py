"""Tagged-union codec for ``{type, info}`` values.

Events, actions, form-field links and reminders all share one wire shape: a
``type`` tag plus an ``info`` object whose keys depend on the tag.  Each field
that carries such a value is described by a :class:`VariantFamily`, a closed
set of :class:`VariantShape` entries.  :func:`decode_variant` checks a raw
value against its family and returns a frozen :class:`Variant`; anything that
does not match raises :class:`~constellation.errors.InvalidVariant` naming the
field path and the expected shape.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from constellation.errors import InvalidVariant
from constellation.validation import json_kind, matches_kind

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InfoField:
    """Expected JSON kind of one ``info`` key, optionally a closed set of literals."""

    kind: str = "any"
    choices: tuple[Any, ...] = ()
    items: str | None = None

    def accepts(self, value: Any) -> bool:
        if self.choices:
            return value in self.choices
        if not matches_kind(value, self.kind):
            return False
        if self.kind == "array" and self.items is not None:
            return all(matches_kind(v, self.items) for v in value)
        return True

    def describe(self) -> str:
        if self.choices:
            return " | ".join(repr(c) for c in self.choices)
        if self.kind == "array" and self.items:
            return f"{self.items}[]"
        return self.kind


STR = InfoField("string")
NUM = InfoField("number")
INT = InfoField("integer")
BOOL = InfoField("boolean")
OBJ = InfoField("object")
ARR = InfoField("array")
STRS = InfoField("array", items="string")
OBJS = InfoField("array", items="object")
ANY = InfoField()


def one_of(*choices: Any) -> InfoField:
    return InfoField(choices=tuple(choices))


@dataclass(frozen=True)
class VariantShape:
    """Exact ``info`` keys required and permitted for one variant ``type``."""

    type: str
    required: dict[str, InfoField] = field(default_factory=dict)
    optional: dict[str, InfoField] = field(default_factory=dict)
    description: str = ""
    deprecated: bool = False

    def describe(self) -> str:
        parts = [f"{k}: {v.describe()}" for k, v in self.required.items()]
        parts += [f"{k}?: {v.describe()}" for k, v in self.optional.items()]
        if not parts:
            return f"{{ type: '{self.type}', info: {{}} }}"
        return f"{{ type: '{self.type}', info: {{ {', '.join(parts)} }} }}"


@dataclass(frozen=True)
class VariantFamily:
    """The closed set of variants accepted by one field.

    ``envelope_required``/``envelope_optional`` list keys that sit beside
    ``type`` and ``info`` (e.g. ``continueOnError`` on step actions).
    """

    name: str
    shapes: dict[str, VariantShape]
    envelope_required: dict[str, InfoField] = field(default_factory=dict)
    envelope_optional: dict[str, InfoField] = field(default_factory=dict)

    @property
    def types(self) -> list[str]:
        return list(self.shapes)

    def get(self, type_name: str) -> VariantShape | None:
        return self.shapes.get(type_name)


@dataclass(frozen=True)
class Variant:
    """A decoded tagged-union value."""

    type: str
    info: dict[str, Any]
    extras: dict[str, Any] = field(default_factory=dict)

    @property
    def step_ref(self) -> str | None:
        """Referenced ``automationStepId``, if this is a step-referencing event."""
        ref = self.info.get("automationStepId")
        return ref if isinstance(ref, str) else None

    @property
    def field_ref(self) -> str | None:
        """Referenced ``fieldId``, if this is a non-root form-field link."""
        ref = self.info.get("fieldId")
        return ref if isinstance(ref, str) else None


def _family(name: str, *shapes: VariantShape, **envelope: dict[str, InfoField]) -> VariantFamily:
    return VariantFamily(name=name, shapes={s.type: s for s in shapes}, **envelope)


# ---------------------------------------------------------------------------
# Families
# ---------------------------------------------------------------------------

LINK = _family(
    "previousFields",
    VariantShape("root", description="First field shown in the form (exactly one per form)"),
    VariantShape("after", {"fieldId": STR}, description="Shown immediately after another field"),
    VariantShape(
        "previousEquals",
        {"fieldId": STR, "equals": STR},
        description="Shown only when a previous field's response equals a value",
    ),
    VariantShape(
        "compoundLogic",
        {"fieldId": STR, "priority": NUM, "label": STR, "condition": OBJ},
        description="Shown when a $and/$or condition over responses, derived values or enduser properties holds",
    ),
)

_DELAY_UNITS = one_of("Seconds", "Minutes", "Hours", "Days")

STEP_EVENT = _family(
    "events",
    VariantShape("onJourneyStart", description="Entry point when an enduser is added to the journey"),
    VariantShape(
        "afterAction",
        {"automationStepId": STR, "delayInMS": NUM, "delay": NUM, "unit": _DELAY_UNITS},
        {
            "officeHoursOnly": BOOL,
            "useEnduserTimezone": BOOL,
            "skipIfDelayPassed": BOOL,
            "dayOfMonthCondition": OBJ,
        },
        description="Runs after another step, with an optional delay",
    ),
    VariantShape("formResponse", {"automationStepId": STR}, description="After the form sent by a step is submitted"),
    VariantShape("formResponses", {"automationStepId": STR}, description="After all forms sent by a step are submitted"),
    VariantShape(
        "waitForTrigger",
        {"automationStepId": STR, "triggerId": STR},
        description="Waits until a 'Move To Step' trigger activates it",
    ),
    VariantShape("onError", {"automationStepId": STR}, description="Error handler for another step"),
    VariantShape(
        "ticketCompleted",
        {"automationStepId": STR},
        {"closedForReason": STR},
        description="After the ticket created by a step is completed",
    ),
    VariantShape(
        "onCallOutcome",
        {"automationStepId": STR, "outcome": STR},
        description="After an outbound call placed by a step completes",
    ),
    VariantShape(
        "onAIDecision",
        {"automationStepId": STR, "outcomes": STRS},
        description="After an aiDecision step picks one of the outcomes",
    ),
    VariantShape("formUnsubmitted", {"automationStepId": STR}, {"delayInMS": NUM}, deprecated=True),
    VariantShape("formsUnsubmitted", {"automationStepId": STR}, {"delayInMS": NUM}, deprecated=True),
)

# Event types whose info.automationStepId must resolve to an existing step.
STEP_REFERENCING_EVENTS: frozenset[str] = frozenset(
    {
        "afterAction",
        "formResponse",
        "formResponses",
        "waitForTrigger",
        "onError",
        "ticketCompleted",
        "onCallOutcome",
        "onAIDecision",
    }
)

_HTTP_METHODS = one_of("get", "patch", "post", "put", "delete")

STEP_ACTION = _family(
    "action",
    VariantShape(
        "sendEmail",
        {"templateId": STR, "senderId": STR},
        {"fromEmailOverride": STR, "ccRelatedContactTypes": STRS, "hiddenFromTimeline": BOOL},
    ),
    VariantShape("sendSMS", {"templateId": STR, "senderId": STR}, {"hiddenFromTimeline": BOOL}),
    VariantShape("sendChat", {}, {"templateId": STR, "message": STR, "senderId": STR, "includesCareTeam": BOOL}),
    VariantShape("sendForm", {"formId": STR, "senderId": STR, "channel": one_of("Email", "SMS", "Chat")}),
    VariantShape("setEnduserStatus", {"status": STR}),
    VariantShape("setEnduserFields", {"fields": OBJS}),
    VariantShape("addEnduserTags", {"tags": STRS}, {"replaceExisting": BOOL}),
    VariantShape("removeEnduserTags", {"tags": STRS}),
    VariantShape("addToJourney", {"journeyId": STR}),
    VariantShape("removeFromJourney", {"journeyId": STR}),
    VariantShape("removeFromAllJourneys"),
    VariantShape(
        "createTicket",
        {"title": STR, "assignmentStrategy": OBJ, "defaultAssignee": STR},
        {"description": STR, "dueDateOffsetInMS": NUM, "priority": NUM, "tags": STRS},
    ),
    VariantShape("notifyTeam", {"templateId": STR, "forAssigned": BOOL}, {"roles": STRS, "tags": OBJ}),
    VariantShape(
        "sendWebhook",
        {"message": STR},
        {"url": STR, "secret": STR, "method": _HTTP_METHODS, "rawJSONBody": STR},
    ),
    VariantShape("shareContent", {"managedContentRecordIds": STRS}),
    VariantShape("createCarePlan", {"title": STR}, {"highlightedEnduserFields": STRS}),
    VariantShape("aiDecision", {"prompt": STR, "options": STRS}, {"model": STR}),
    VariantShape("outboundCall", {"type": STR}, {"template": STR}),
    envelope_optional={"continueOnError": BOOL},
)

_APPOINTMENT_FILTER = {"titles": STRS, "templateIds": STRS}

TRIGGER_EVENT = _family(
    "event",
    VariantShape("Form Started", {"formIds": STRS}),
    VariantShape("Form Submitted", {"formId": STR}, {"submitterType": STR}),
    VariantShape("Form Unsubmitted", {"formId": STR, "intervalInMS": NUM}),
    VariantShape("Field Equals", {"field": STR, "value": STR}),
    VariantShape("Fields Changed", {"fields": STRS}),
    VariantShape("Tag Added", {"tag": STR}),
    VariantShape("Appointment Created", {}, dict(_APPOINTMENT_FILTER)),
    VariantShape("Appointment Completed", {}, dict(_APPOINTMENT_FILTER)),
    VariantShape("Appointment Cancelled", {}, dict(_APPOINTMENT_FILTER)),
    VariantShape("Appointment No-Showed", {}, dict(_APPOINTMENT_FILTER)),
    VariantShape("Purchase Made", {}, {"productIds": STRS}),
)

TRIGGER_ACTION = _family(
    "action",
    VariantShape("Add To Journey", {"journeyId": STR}, {"doNotRestart": BOOL}),
    VariantShape("Remove From Journey", {"journeyId": STR}),
    VariantShape("Remove From All Journeys"),
    VariantShape("Add Tags", {"tags": STRS}),
    VariantShape("Remove Tags", {"tags": STRS}),
    VariantShape("Set Fields", {"fields": OBJS}),
    VariantShape("Move To Step", description="Activates the step waiting on this trigger in the trigger's journey"),
)

_NOTIFICATION_INFO = {"templateId": STR, "channel": one_of("Email", "SMS"), "useTemplateForSMS": BOOL}

REMINDER = _family(
    "reminders",
    VariantShape("enduser-notification", {}, dict(_NOTIFICATION_INFO)),
    VariantShape("user-notification", {}, dict(_NOTIFICATION_INFO)),
    VariantShape("add-to-journey", {"journeyId": STR}, {"firstAttendeeOnly": BOOL}),
    VariantShape("Remove From Journey", {"journeyId": STR}),
    VariantShape("webhook"),
    VariantShape("create-ticket", {"title": STR}),
    envelope_required={"msBeforeStartTime": NUM},
    envelope_optional={"dontSendIfPassed": BOOL, "didRemind": BOOL, "dontSendIfJoined": BOOL},
)

FAMILIES: dict[str, VariantFamily] = {
    "link": LINK,
    "step_event": STEP_EVENT,
    "step_action": STEP_ACTION,
    "trigger_event": TRIGGER_EVENT,
    "trigger_action": TRIGGER_ACTION,
    "reminder": REMINDER,
}

# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------


def describe_shape(family: VariantFamily, type_name: str | None = None) -> str:
    """Human-readable expected shape for one type, or the list of types."""
    if type_name is not None:
        shape = family.get(type_name)
        if shape is not None:
            return shape.describe()
    return f"type: {' | '.join(repr(t) for t in family.types)}"


def _check_keys(
    values: Mapping[str, Any],
    required: Mapping[str, InfoField],
    optional: Mapping[str, InfoField],
    path: str,
    expected: str,
) -> None:
    for key in required:
        if key not in values:
            msg = f"{path}: missing required key '{key}'"
            raise InvalidVariant(msg, path=f"{path}.{key}", expected=expected)
    for key, value in values.items():
        spec = required.get(key) or optional.get(key)
        if spec is None:
            allowed = sorted([*required, *optional])
            msg = f"{path}: unexpected key '{key}' (allowed: {', '.join(allowed) if allowed else 'none'})"
            raise InvalidVariant(msg, path=f"{path}.{key}", expected=expected)
        if not spec.accepts(value):
            msg = f"{path}.{key} must be {spec.describe()}, got {json_kind(value)}"
            raise InvalidVariant(msg, path=f"{path}.{key}", expected=expected)


def decode_variant(raw: Any, family: VariantFamily, path: str | None = None) -> Variant:
    """Check *raw* against *family* and return the decoded :class:`Variant`.

    Raises:
        InvalidVariant: unknown ``type``, missing/extra ``info`` keys, or a
            value of the wrong kind.
    """
    path = path or family.name
    if not isinstance(raw, Mapping):
        msg = f"{path} must be an object with 'type' and 'info', got {json_kind(raw)}"
        raise InvalidVariant(msg, path=path, expected=describe_shape(family))

    type_name = raw.get("type")
    if not isinstance(type_name, str) or type_name not in family.shapes:
        msg = f"{path}.type '{type_name}' is not a recognized {family.name} type"
        raise InvalidVariant(msg, path=f"{path}.type", expected=describe_shape(family))

    shape = family.shapes[type_name]
    expected = shape.describe()
    if "info" not in raw:
        msg = f"{path}: missing 'info' for type '{type_name}' (use {{}} when it takes no settings)"
        raise InvalidVariant(msg, path=f"{path}.info", expected=expected)
    info = raw["info"]
    if not isinstance(info, Mapping):
        msg = f"{path}.info must be an object, got {json_kind(info)}"
        raise InvalidVariant(msg, path=f"{path}.info", expected=expected)

    envelope = {k: v for k, v in raw.items() if k not in ("type", "info")}
    _check_keys(envelope, family.envelope_required, family.envelope_optional, path, expected)
    _check_keys(info, shape.required, shape.optional, f"{path}.info", expected)

    if shape.deprecated:
        logger.warning("Deprecated %s type '%s' at %s", family.name, type_name, path)
    return Variant(type=type_name, info=dict(info), extras=envelope)


def decode_variants(raw: Any, family: VariantFamily, path: str | None = None) -> tuple[Variant, ...]:
    """Decode a list of variants, indexing each path as ``path[i]``."""
    path = path or family.name
    if not isinstance(raw, list):
        msg = f"{path} must be an array, got {json_kind(raw)}"
        raise InvalidVariant(msg, path=path, expected=f"array of {describe_shape(family)}")
    return tuple(decode_variant(item, family, f"{path}[{i}]") for i, item in enumerate(raw))


def encode_variant(variant: Variant) -> dict[str, Any]:
    return {"type": variant.type, "info": dict(variant.info), **variant.extras}


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def lookup_family(key: str) -> VariantFamily:
    family = FAMILIES.get(key)
    if family is None:
        msg = f"Unknown variant family '{key}'. Known families: {', '.join(FAMILIES)}"
        raise InvalidVariant(msg, path="family", expected=" | ".join(FAMILIES))
    return family


def shape_dict(shape: VariantShape) -> dict[str, Any]:
    data: dict[str, Any] = {
        "type": shape.type,
        "shape": shape.describe(),
        "required": sorted(shape.required),
        "optional": sorted(shape.optional),
    }
    if shape.description:
        data["description"] = shape.description
    if shape.deprecated:
        data["deprecated"] = True
    return data


def family_dict(key: str, type_name: str | None = None) -> dict[str, Any]:
    """JSON view of the family registered as *key*, narrowed to *type_name* when given.

    Raises InvalidVariant for an unknown family or a type it does not contain.
    """
    family = lookup_family(key)
    if type_name is not None:
        shape = family.get(type_name)
        if shape is None:
            msg = f"'{type_name}' is not a {key} type. Known types: {', '.join(family.types)}"
            raise InvalidVariant(msg, path="type", expected=" | ".join(family.types))
        shapes = [shape]
    else:
        shapes = list(family.shapes.values())
    data: dict[str, Any] = {"family": key, "field": family.name, "types": [shape_dict(s) for s in shapes]}
    envelope = {k: v.describe() for k, v in family.envelope_required.items()}
    envelope.update({f"{k}?": v.describe() for k, v in family.envelope_optional.items()})
    if envelope:
        data["envelope"] = envelope
    return data
