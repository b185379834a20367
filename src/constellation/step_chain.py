"""Referential and entry-point integrity for a Journey's AutomationSteps.

Steps are activated by events.  Most event types point back at another step
through ``info.automationStepId``; ``onJourneyStart`` is the only event with no
predecessor and no delay, so every journey needs at least one step carrying it.

:class:`StepChain` is an arena of the steps of one journey, populated in the
order the platform created them.  The checks here never execute delays or
evaluate ``enduserConditions``; those filters pass through unevaluated.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from constellation.errors import (
    CyclicStepChain,
    DanglingReference,
    DanglingStepReference,
    MissingEntryStep,
)
from constellation.variants import STEP_ACTION, STEP_EVENT, STEP_REFERENCING_EVENTS, Variant, decode_variant, decode_variants

logger = logging.getLogger(__name__)

ENTRY_EVENT = "onJourneyStart"

# Back-references followed by the cycle check.
CHAIN_EVENTS: frozenset[str] = frozenset({"afterAction", "waitForTrigger"})


@dataclass(frozen=True)
class StepNode:
    """One AutomationStep as seen by the chain validator."""

    id: str
    journey_id: str
    events: tuple[Variant, ...]
    action: Variant | None = None

    @property
    def is_entry(self) -> bool:
        return any(e.type == ENTRY_EVENT for e in self.events)

    def references(self, event_types: Collection[str] = STEP_REFERENCING_EVENTS) -> list[tuple[int, Variant]]:
        """(index, event) pairs for events that point at another step."""
        return [(i, e) for i, e in enumerate(self.events) if e.type in event_types]

    @classmethod
    def from_resource(cls, resource: Mapping[str, Any], step_id: str | None = None) -> StepNode:
        node_id = step_id if step_id is not None else str(resource.get("id", ""))
        raw_action = resource.get("action")
        return cls(
            id=node_id,
            journey_id=str(resource.get("journeyId", "")),
            events=decode_variants(resource.get("events", []), STEP_EVENT, "events"),
            action=decode_variant(raw_action, STEP_ACTION, "action") if raw_action is not None else None,
        )


def _check_references(
    node: StepNode,
    known: Collection[str],
    trigger_ids: Collection[str] | None,
) -> None:
    for i, event in node.references():
        path = f"events[{i}].info.automationStepId"
        target = event.step_ref
        if target is None or target not in known:
            msg = (
                f"Step '{node.id or '<new>'}' event {event.type} references automationStepId '{target}', "
                f"which is not an existing step of journey '{node.journey_id}'"
            )
            raise DanglingStepReference(msg, path=path)
        if event.type == "waitForTrigger" and trigger_ids is not None:
            trigger_id = event.info.get("triggerId")
            if trigger_id not in trigger_ids:
                msg = f"waitForTrigger triggerId '{trigger_id}' is not a known AutomationTrigger"
                raise DanglingReference(msg, path=f"events[{i}].info.triggerId")


def _find_cycle(nodes: Mapping[str, StepNode]) -> list[str] | None:
    """Return a cycle along afterAction/waitForTrigger back-references, if any."""
    state: dict[str, int] = {}  # 1 = on stack, 2 = done

    for start in nodes:
        if state.get(start):
            continue
        stack: list[str] = []
        current: str | None = start
        # Each step can back-reference several predecessors; iterate explicitly.
        frames: list[tuple[str, list[str]]] = []
        while current is not None or frames:
            if current is not None:
                state[current] = 1
                stack.append(current)
                preds = [e.step_ref for _, e in nodes[current].references(CHAIN_EVENTS) if e.step_ref in nodes]
                frames.append((current, [p for p in preds if p is not None]))
                current = None
                continue
            owner, pending = frames[-1]
            if not pending:
                frames.pop()
                stack.pop()
                state[owner] = 2
                continue
            nxt = pending.pop(0)
            if state.get(nxt) == 1:
                return [*stack[stack.index(nxt) :], nxt]
            if not state.get(nxt):
                current = nxt
    return None


class StepChain:
    """Arena of the AutomationSteps of one journey, keyed by id in creation order."""

    def __init__(self, journey_id: str) -> None:
        self.journey_id = journey_id
        self._nodes: dict[str, StepNode] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, step_id: object) -> bool:
        return step_id in self._nodes

    def get(self, step_id: str) -> StepNode | None:
        return self._nodes.get(step_id)

    @property
    def nodes(self) -> list[StepNode]:
        return list(self._nodes.values())

    def entry_steps(self) -> list[StepNode]:
        return [n for n in self._nodes.values() if n.is_entry]

    def check_new(self, node: StepNode, trigger_ids: Collection[str] | None = None) -> None:
        """Check a step about to be created: every reference must name an already-created step."""
        _check_references(node, self._nodes.keys(), trigger_ids)

    def check_replace(self, node: StepNode, trigger_ids: Collection[str] | None = None) -> None:
        """Check an updated step; references may name any known step but must not close a cycle."""
        _check_references(node, self._nodes.keys(), trigger_ids)
        candidate = dict(self._nodes)
        candidate[node.id] = node
        cycle = _find_cycle(candidate)
        if cycle is not None:
            raise CyclicStepChain(cycle, path="events")

    def add(self, node: StepNode) -> None:
        logger.debug("Journey %s: recorded step %s", self.journey_id, node.id)
        self._nodes[node.id] = node

    def reachable(self) -> set[str]:
        """Ids reachable from an entry step by following any step-referencing event forward."""
        successors: dict[str, list[str]] = {}
        for node in self._nodes.values():
            for _, event in node.references():
                if event.step_ref is not None:
                    successors.setdefault(event.step_ref, []).append(node.id)
        seen: set[str] = set()
        queue = [n.id for n in self.entry_steps()]
        while queue:
            current = queue.pop()
            if current in seen:
                continue
            seen.add(current)
            queue.extend(successors.get(current, []))
        return seen

    def unreachable(self) -> list[str]:
        reached = self.reachable()
        return [sid for sid in self._nodes if sid not in reached]

    def validate(self, trigger_ids: Collection[str] | None = None) -> list[str]:
        """Completion check for the whole journey.

        Returns advisory warnings (unreachable steps); raises on fatal errors.
        """
        _validate_nodes(self.journey_id, self._nodes, trigger_ids)
        return [f"step '{sid}' is not reachable from any onJourneyStart step" for sid in self.unreachable()]


def _validate_nodes(journey_id: str, nodes: Mapping[str, StepNode], trigger_ids: Collection[str] | None) -> None:
    for node in nodes.values():
        _check_references(node, nodes.keys(), trigger_ids)
    if not any(n.is_entry for n in nodes.values()):
        msg = (
            f"Journey '{journey_id}' has no step with an onJourneyStart event; "
            f"endusers added to it would never start. Delayed steps cannot be the entry point."
        )
        raise MissingEntryStep(msg, path="events", expected="[{ type: 'onJourneyStart', info: {} }]")
    cycle = _find_cycle(nodes)
    if cycle is not None:
        raise CyclicStepChain(cycle, path="events")


def validate_journey_steps(
    journey_id: str,
    steps: Iterable[StepNode | Mapping[str, Any]],
    trigger_ids: Collection[str] | None = None,
) -> StepChain:
    """Validate a complete step set for one journey and return its chain.

    Raises:
        DanglingStepReference: an event names a step that does not exist.
        DanglingReference: a waitForTrigger names an unknown trigger (when *trigger_ids* given).
        MissingEntryStep: no step carries an onJourneyStart event.
        CyclicStepChain: afterAction/waitForTrigger references loop back on themselves.
    """
    chain = StepChain(journey_id)
    for step in steps:
        chain.add(step if isinstance(step, StepNode) else StepNode.from_resource(step))
    _validate_nodes(journey_id, {n.id: n for n in chain.nodes}, trigger_ids)
    return chain
