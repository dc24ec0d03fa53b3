"""StructureEditor — the mutation contract every builder surface goes through.

One editor owns one Structure (single writer). Each operation builds a
candidate tree, validates it and only then commits; a rejected edit raises
MalformedStructureError and leaves the current tree untouched. After every
commit the summary (timeline + load) is recomputed eagerly and listeners are
notified.
"""

from __future__ import annotations

import logging
import math
from dataclasses import fields, replace
from typing import Any, Callable, Sequence

from workout_engine.exceptions import MalformedStructureError
from workout_engine.math.training_load import WorkoutSummary, summarize
from workout_engine.models.enums import (
    DEFAULT_REPEAT_COUNT,
    DEFAULT_STEP_SETTINGS,
    DurationUnit,
    HRType,
    IntensityClass,
)
from workout_engine.models.structure import (
    Node,
    Repetition,
    Step,
    Structure,
    find_structure_problems,
    new_node_id,
)

logger = logging.getLogger(__name__)

Listener = Callable[[Structure, WorkoutSummary], None]

_STEP_FIELDS = frozenset(f.name for f in fields(Step)) - {"id"}
_REPETITION_FIELDS = frozenset({"repeat_count"})

_ENUM_FIELDS = {
    "duration_unit": DurationUnit,
    "intensity_class": IntensityClass,
    "hr_type": HRType,
}

_NUMERIC_FIELDS = frozenset({
    "duration_value",
    "target_min",
    "target_max",
    "cadence_min",
    "cadence_max",
    "hr_min",
    "hr_max",
})

# Fields that may not be cleared
_REQUIRED_FIELDS = frozenset({
    "duration_value",
    "duration_unit",
    "target_min",
    "target_max",
    "intensity_class",
    "open_duration",
    "repeat_count",
})

_TRUE_STRINGS = frozenset({"true", "1", "yes"})
_FALSE_STRINGS = frozenset({"false", "0", "no"})


def create_default_step(intensity_class: IntensityClass | str = IntensityClass.ACTIVE) -> Step:
    """New step with the builder's defaults for its intensity class."""
    intensity_class = IntensityClass(intensity_class)
    duration_value, unit, target_min, target_max = DEFAULT_STEP_SETTINGS[intensity_class]
    return Step(
        duration_value=duration_value,
        duration_unit=unit,
        target_min=target_min,
        target_max=target_max,
        intensity_class=intensity_class,
    )


def default_template() -> Structure:
    """Warm-up, active, cool-down."""
    return Structure(nodes=(
        create_default_step(IntensityClass.WARM_UP),
        create_default_step(IntensityClass.ACTIVE),
        create_default_step(IntensityClass.COOL_DOWN),
    ))


def clone_with_fresh_ids(node: Node) -> Node:
    """Deep copy of a node where it and every descendant get a new id.

    Built bottom-up with an explicit stack, so nesting depth is unbounded.
    """
    if not isinstance(node, Repetition):
        return replace(node, id=new_node_id())

    # Each frame: (source repetition, copies of its children made so far)
    stack: list[tuple[Repetition, list[Node]]] = [(node, [])]
    while True:
        source, copied = stack[-1]
        if len(copied) < len(source.children):
            child = source.children[len(copied)]
            if isinstance(child, Repetition):
                stack.append((child, []))
            else:
                copied.append(replace(child, id=new_node_id()))
            continue
        stack.pop()
        copy = replace(source, id=new_node_id(), children=tuple(copied))
        if not stack:
            return copy
        stack[-1][1].append(copy)


class StructureEditor:
    """Applies structural edits to an owned workout Structure.

    Usage::

        editor = StructureEditor.from_template()
        rep_id = editor.add_repetition(4)
        editor.update_step_field(rep_id, "repeat_count", 6)
        editor.summary.tss
    """

    def __init__(
        self,
        structure: Structure | None = None,
        listeners: Sequence[Listener] = (),
    ) -> None:
        structure = structure if structure is not None else Structure()
        self._check(structure)
        self._structure = structure
        self._summary = summarize(structure)
        self._listeners: list[Listener] = list(listeners)

    @classmethod
    def from_template(cls, listeners: Sequence[Listener] = ()) -> "StructureEditor":
        """Editor seeded with the default warm-up/active/cool-down triple."""
        return cls(default_template(), listeners=listeners)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def structure(self) -> Structure:
        return self._structure

    @property
    def summary(self) -> WorkoutSummary:
        """Timeline and load of the current structure."""
        return self._summary

    def subscribe(self, listener: Listener) -> None:
        """Call ``listener(structure, summary)`` after every committed edit."""
        self._listeners.append(listener)

    def find(self, node_id: str) -> Node:
        """Return the node with ``node_id`` anywhere in the tree."""
        path = self._path_to(node_id)
        return self._node_at(self._structure.nodes, path)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def add_step(self, intensity_class: IntensityClass | str = IntensityClass.ACTIVE) -> str:
        """Append a default step of the given class at top level."""
        step = create_default_step(intensity_class)
        self._commit(self._structure.nodes + (step,), "add_step")
        return step.id

    def remove_step(self, node_id: str) -> None:
        """Remove a step or repetition block wherever it sits."""
        path = self._path_to(node_id)
        nodes = self._edit_siblings(
            self._structure.nodes,
            path[:-1],
            lambda siblings: siblings[: path[-1]] + siblings[path[-1] + 1:],
        )
        self._commit(nodes, "remove_step")

    def duplicate_step(self, node_id: str) -> str:
        """Insert a deep copy with fresh ids right after the original."""
        path = self._path_to(node_id)
        duplicate = clone_with_fresh_ids(self._node_at(self._structure.nodes, path))
        index = path[-1]
        nodes = self._edit_siblings(
            self._structure.nodes,
            path[:-1],
            lambda siblings: siblings[: index + 1] + (duplicate,) + siblings[index + 1:],
        )
        self._commit(nodes, "duplicate_step")
        return duplicate.id

    def reorder(self, node_id: str, new_index: int) -> None:
        """Move a node to ``new_index`` within its own parent sequence.

        The index is clamped to the sequence; the relative order of all other
        siblings is preserved.
        """
        path = self._path_to(node_id)
        old_index = path[-1]

        def move(siblings: tuple[Node, ...]) -> tuple[Node, ...]:
            remaining = list(siblings[:old_index] + siblings[old_index + 1:])
            target = max(0, min(new_index, len(remaining)))
            remaining.insert(target, siblings[old_index])
            return tuple(remaining)

        self._commit(self._edit_siblings(self._structure.nodes, path[:-1], move), "reorder")

    def add_repetition(
        self,
        repeat_count: int = DEFAULT_REPEAT_COUNT,
        children: Sequence[Node] | None = None,
    ) -> str:
        """Append a repetition block (default children: active then rest).

        Passed children are copied with fresh ids, so the same template
        nodes can seed several blocks.
        """
        if children is None:
            children = (
                create_default_step(IntensityClass.ACTIVE),
                create_default_step(IntensityClass.REST),
            )
        else:
            children = tuple(clone_with_fresh_ids(child) for child in children)
        rep = Repetition(repeat_count=repeat_count, children=tuple(children))
        self._commit(self._structure.nodes + (rep,), "add_repetition")
        return rep.id

    def update_step_field(self, node_id: str, field: str, value: Any) -> None:
        """Set one field on a step, or ``repeat_count`` on a repetition."""
        path = self._path_to(node_id)
        node = self._node_at(self._structure.nodes, path)
        allowed = _REPETITION_FIELDS if isinstance(node, Repetition) else _STEP_FIELDS
        if field not in allowed:
            raise MalformedStructureError(
                f"Field '{field}' cannot be edited on {type(node).__name__}"
            )
        value = self._coerce(field, value)
        updated = replace(node, **{field: value})
        index = path[-1]
        nodes = self._edit_siblings(
            self._structure.nodes,
            path[:-1],
            lambda siblings: siblings[:index] + (updated,) + siblings[index + 1:],
        )
        self._commit(nodes, "update_step_field")

    def add_nested_step(
        self,
        repetition_id: str,
        intensity_class: IntensityClass | str = IntensityClass.ACTIVE,
    ) -> str:
        """Append a default step to a repetition block's children."""
        step = create_default_step(intensity_class)
        path = self._repetition_path(repetition_id)
        nodes = self._edit_siblings(
            self._structure.nodes, path, lambda children: children + (step,),
        )
        self._commit(nodes, "add_nested_step")
        return step.id

    def remove_nested_step(self, repetition_id: str, nested_id: str) -> None:
        """Remove a direct child of a repetition block."""
        path = self._repetition_path(repetition_id)
        rep = self._node_at(self._structure.nodes, path)
        index = next((i for i, c in enumerate(rep.children) if c.id == nested_id), None)
        if index is None:
            raise KeyError(f"No node {nested_id!r} in repetition {repetition_id!r}")
        nodes = self._edit_siblings(
            self._structure.nodes,
            path,
            lambda children: children[:index] + children[index + 1:],
        )
        self._commit(nodes, "remove_nested_step")

    def replace(self, structure: Structure) -> None:
        """Swap in a whole structure (loaded or imported) after validation."""
        self._commit(tuple(structure.nodes), "replace")
        logger.info("Loaded structure with %d top-level nodes", len(structure.nodes))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _commit(self, nodes: tuple[Node, ...], operation: str) -> None:
        candidate = Structure(nodes=nodes)
        try:
            self._check(candidate)
        except MalformedStructureError as exc:
            logger.warning("Rejected %s: %s", operation, exc)
            raise
        self._structure = candidate
        self._summary = summarize(candidate)
        logger.debug(
            "%s: %d segments, %.0fs, TSS %d",
            operation,
            len(self._summary.segments),
            self._summary.total_duration,
            self._summary.tss,
        )
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._structure, self._summary)
            except Exception:
                logger.exception("Structure listener %r failed", listener)

    @staticmethod
    def _check(structure: Structure) -> None:
        problems = find_structure_problems(structure)
        if problems:
            raise MalformedStructureError(problems)

    @staticmethod
    def _coerce(field: str, value: Any) -> Any:
        if value is None:
            if field in _REQUIRED_FIELDS:
                raise MalformedStructureError(f"Field '{field}' cannot be empty")
            return "" if field == "name" else None
        if field in _NUMERIC_FIELDS:
            return _finite_float(field, value)
        if field == "repeat_count":
            return _whole_count(value)
        if field == "open_duration":
            return _flag(value)
        if field == "name":
            return str(value)
        enum_cls = _ENUM_FIELDS.get(field)
        if enum_cls is None or isinstance(value, enum_cls):
            return value
        try:
            return enum_cls(value)
        except ValueError as exc:
            raise MalformedStructureError(f"Invalid {field}: {value!r}") from exc

    def _path_to(self, node_id: str) -> tuple[int, ...]:
        """Child-index path from the root to ``node_id``."""
        pending: list[tuple[tuple[Node, ...], tuple[int, ...]]] = [(self._structure.nodes, ())]
        while pending:
            nodes, prefix = pending.pop()
            for i, node in enumerate(nodes):
                if node.id == node_id:
                    return prefix + (i,)
                if isinstance(node, Repetition):
                    pending.append((node.children, prefix + (i,)))
        raise KeyError(f"No node with id {node_id!r}")

    def _repetition_path(self, repetition_id: str) -> tuple[int, ...]:
        path = self._path_to(repetition_id)
        if not isinstance(self._node_at(self._structure.nodes, path), Repetition):
            raise MalformedStructureError(f"Node {repetition_id!r} is not a repetition")
        return path

    @staticmethod
    def _node_at(nodes: tuple[Node, ...], path: tuple[int, ...]) -> Node:
        node = nodes[path[0]]
        for index in path[1:]:
            node = node.children[index]
        return node

    @staticmethod
    def _edit_siblings(
        nodes: tuple[Node, ...],
        parent_path: tuple[int, ...],
        edit: Callable[[tuple[Node, ...]], tuple[Node, ...]],
    ) -> tuple[Node, ...]:
        """Rebuild the spine down to ``parent_path`` with its children edited.

        An empty ``parent_path`` edits the top-level sequence.
        """
        spine: list[tuple[tuple[Node, ...], int]] = []
        siblings = nodes
        for index in parent_path:
            spine.append((siblings, index))
            siblings = siblings[index].children
        rebuilt = edit(siblings)
        for siblings, index in reversed(spine):
            parent = replace(siblings[index], children=rebuilt)
            rebuilt = siblings[:index] + (parent,) + siblings[index + 1:]
        return rebuilt


# ---------------------------------------------------------------------------
# Value coercion
# ---------------------------------------------------------------------------


def _finite_float(field: str, value: Any) -> float:
    if isinstance(value, bool):
        raise MalformedStructureError(f"Invalid {field}: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedStructureError(f"Invalid {field}: {value!r}") from exc
    if not math.isfinite(number):
        raise MalformedStructureError(f"Invalid {field}: {value!r}")
    return number


def _whole_count(value: Any) -> int:
    """Repeat count from an int, an integral float or an integral string."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    number = _finite_float("repeat_count", value)
    if not number.is_integer():
        raise MalformedStructureError(f"Invalid repeat_count: {value!r}")
    return int(number)


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise MalformedStructureError(f"Invalid open_duration: {value!r}")
