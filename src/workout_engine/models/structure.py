"""Workout structure tree — steps, repetition blocks and the root structure.

Trees are immutable. Edits build new trees (see ``workout_engine.editor``).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Union

from workout_engine.exceptions import MalformedStructureError
from workout_engine.models.enums import (
    SECONDS_PER_MINUTE,
    DurationUnit,
    HRType,
    IntensityClass,
)


def new_node_id() -> str:
    """Return a fresh node identity."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Step:
    """A single interval.

    Power targets are percent of FTP. ``open_duration`` steps run until the
    athlete ends them; their ``duration_value`` is only a nominal length.
    """

    name: str = ""
    duration_value: float = 0.0
    duration_unit: DurationUnit = DurationUnit.SECOND
    target_min: float = 0.0
    target_max: float = 0.0
    intensity_class: IntensityClass = IntensityClass.ACTIVE
    open_duration: bool = False
    cadence_min: float | None = None   # rpm
    cadence_max: float | None = None   # rpm
    hr_min: float | None = None
    hr_max: float | None = None
    hr_type: HRType | None = None
    id: str = field(default_factory=new_node_id)

    @property
    def duration_seconds(self) -> float:
        if self.duration_unit == DurationUnit.MINUTE:
            return self.duration_value * SECONDS_PER_MINUTE
        return self.duration_value


@dataclass(frozen=True)
class Repetition:
    """A block of child nodes executed ``repeat_count`` times in order."""

    repeat_count: int = 1
    children: tuple[Node, ...] = field(default_factory=tuple)
    id: str = field(default_factory=new_node_id)


Node = Union[Step, Repetition]


@dataclass(frozen=True)
class Structure:
    """Root of a workout: an ordered sequence of steps and repetitions."""

    nodes: tuple[Node, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def step_problems(step: Step) -> list[str]:
    """List what is wrong with a single step (empty when valid)."""
    label = step.name or step.intensity_class.value
    problems: list[str] = []
    if not step.open_duration and not step.duration_value > 0:
        problems.append(f"Step '{label}': duration must be > 0")
    if step.target_min > step.target_max:
        problems.append(f"Step '{label}': target_min must be <= target_max")
    if (
        step.cadence_min is not None
        and step.cadence_max is not None
        and step.cadence_min > step.cadence_max
    ):
        problems.append(f"Step '{label}': cadence_min must be <= cadence_max")
    if step.hr_min is not None and step.hr_max is not None and step.hr_min > step.hr_max:
        problems.append(f"Step '{label}': hr_min must be <= hr_max")
    return problems


def find_structure_problems(structure: Structure) -> list[str]:
    """Walk the whole tree and collect every validation problem.

    Iterative so that arbitrarily deep nesting is handled.
    """
    problems: list[str] = []
    seen_ids: set[str] = set()
    pending: list[object] = list(reversed(structure.nodes))
    while pending:
        node = pending.pop()
        if isinstance(node, (Step, Repetition)):
            if node.id in seen_ids:
                problems.append(f"Duplicate node id {node.id}")
            seen_ids.add(node.id)
        if isinstance(node, Step):
            problems.extend(step_problems(node))
        elif isinstance(node, Repetition):
            if not isinstance(node.repeat_count, int) or node.repeat_count < 1:
                problems.append(
                    f"Repetition {node.id}: repeat_count must be an integer >= 1"
                )
            pending.extend(reversed(node.children))
        else:
            problems.append(f"Unrecognized node type: {type(node).__name__}")
    return problems


def validate_structure(structure: Structure) -> None:
    """Raise MalformedStructureError if the tree has any problem."""
    problems = find_structure_problems(structure)
    if problems:
        raise MalformedStructureError(problems)
