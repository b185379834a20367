"""Short guides to the rules callers most often get wrong.

Served by the ``explain_concept`` MCP tool and ``constellation explain``.
"""

from __future__ import annotations

from constellation.errors import ConstellationError

CONCEPTS: dict[str, str] = {
    "replaceObjectFields": """\
# replaceObjectFields

Updates take `{id, updates, options?: {replaceObjectFields?: boolean}}`.

- **false / absent (merge)**: nested objects merge key by key and arrays
  present on both sides are appended. Keys you do not mention survive at every
  depth. Merging is idempotent only for scalar and object values; sending the
  same array twice appends it twice.
- **true (replace)**: every top-level key in `updates` replaces the whole
  stored value under that key. Anything inside it you do not repeat is lost.
  Top-level keys you do not mention are untouched.

Read the resource first (`<resource>_get_one`) before replacing. A replace on
a resource this session has not read succeeds but returns `warnings` and the
`lost_paths` it discarded. `preview_update` shows the result without applying
it.

Example: stored `{"options": {"choices": ["A", "B"], "other": true}}`.
`{"options": {"choices": ["C"]}}` merged gives choices `A, B, C` with `other`
kept; replaced gives choices `C` and drops `other`.
""",
    "previousFields": """\
# previousFields

Every form field lists how it is reached in `previousFields`:

- `{ type: 'root', info: {} }`: the first question. Exactly one field per form.
- `{ type: 'after', info: { fieldId } }`: shown after that field.
- `{ type: 'previousEquals', info: { fieldId, equals } }`: shown when that
  field's answer equals `equals`.
- `{ type: 'compoundLogic', info: { fieldId, priority, label, condition } }`:
  shown when `condition` holds. Conditions nest `$and` / `$or` arrays down to
  `{ condition: { <key>: <value or {$gt: ...}> } }` leaves, where `<key>` is a
  field id of this form, a derived value (age, score, ...) or an enduser field.

Field ids come from the platform, so create fields in order: the root first,
then each field after the fields it points at. Use the id returned by
`form_fields_create_one`; never invent one. Run `validate_form` when done.
""",
    "journeyEntry": """\
# journeyEntry

A journey's steps are activated by their `events`. Every journey needs at
least one step whose events include `{ type: 'onJourneyStart', info: {} }`;
without it nothing ever runs.

Other events point back at a step through `info.automationStepId`
(`afterAction`, `formResponse`, `onError`, `ticketCompleted`, ...)
and that step must already exist in the same journey. `waitForTrigger` also
names an existing automation trigger in `info.triggerId`.

`afterAction` and `waitForTrigger` links may not form a cycle. Run
`validate_journey` once all steps exist; steps nothing can reach are reported
as warnings.
""",
    "triggerPlacement": """\
# triggerPlacement

Where an automation trigger's `journeyId` goes depends on its action:

- **Global membership actions** (`Add To Journey`, `Remove From Journey`,
  `Remove From All Journeys`, `Add Tags`, `Remove Tags`, `Set Fields`) carry
  any journey inside `action.info`. The trigger itself must NOT set a
  top-level `journeyId`.
- **Step activation** (`Move To Step`) wakes a waiting step, so the trigger
  MUST set a top-level `journeyId` naming the journey of that step.

Create the trigger before any `waitForTrigger` step that names it.
""",
}


def explain(concept: str) -> str:
    """Return the guide for *concept*; raises ConstellationError for unknown names."""
    text = CONCEPTS.get(concept)
    if text is None:
        msg = f"Unknown concept '{concept}'. Known concepts: {', '.join(CONCEPTS)}"
        raise ConstellationError(msg, path="concept", expected=" | ".join(CONCEPTS))
    return text
