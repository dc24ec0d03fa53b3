"""Flatten a workout structure into an absolute-time timeline.

Repetitions are unrolled: every pass of a block materializes its own
segments so each rep can be hovered or selected on its own.

All functions are pure (no I/O). Malformed nodes found in already-persisted
data are skipped with a warning instead of raising, keeping viewers usable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from workout_engine.models.enums import OPEN_DURATION_NOMINAL_S
from workout_engine.models.structure import Repetition, Step, Structure
from workout_engine.models.timeline import Segment, Timeline

logger = logging.getLogger(__name__)


@dataclass
class _Frame:
    """Walk state for one sequence of sibling nodes."""

    nodes: tuple
    repeat_count: int = 1
    group_id: int | None = None
    position: int = 0
    iteration: int = 0   # 0-based pass currently being emitted


def flatten(structure: Structure | None) -> Timeline:
    """Convert a Structure into contiguous, non-overlapping segments.

    Depth-first, left-to-right, with a running cursor starting at 0. Each
    step yields ``[cursor, cursor + duration)``. A repetition emits its
    whole child sequence ``repeat_count`` times, nested blocks included.

    Args:
        structure: The workout tree. None or empty yields an empty timeline.

    Returns:
        Timeline whose ``total_duration`` equals the end of the last segment.
    """
    if structure is None or not structure.nodes:
        return Timeline()

    segments: list[Segment] = []
    current_time = 0.0
    next_group_id = 0

    stack = [_Frame(nodes=tuple(structure.nodes))]
    while stack:
        frame = stack[-1]

        if frame.position >= len(frame.nodes):
            frame.iteration += 1
            frame.position = 0
            if frame.iteration >= frame.repeat_count:
                stack.pop()
            continue

        node = frame.nodes[frame.position]
        frame.position += 1

        if isinstance(node, Step):
            duration = _step_duration(node)
            if duration is None:
                continue
            segments.append(_make_segment(node, current_time, duration, frame))
            current_time += duration
        elif isinstance(node, Repetition):
            if not isinstance(node.repeat_count, int) or node.repeat_count < 1:
                logger.warning(
                    "Skipping repetition %s with invalid repeat_count %r",
                    node.id,
                    node.repeat_count,
                )
                continue
            if not node.children:
                continue
            next_group_id += 1
            stack.append(
                _Frame(
                    nodes=tuple(node.children),
                    repeat_count=node.repeat_count,
                    group_id=next_group_id,
                )
            )
        else:
            logger.warning("Skipping unrecognized node type %s", type(node).__name__)

    return Timeline(segments=tuple(segments), total_duration=current_time)


def _step_duration(step: Step) -> float | None:
    """Seconds to place a step on the timeline, or None to skip it."""
    seconds = step.duration_seconds
    if step.open_duration:
        # Nominal length only; real duration is indefinite
        return seconds if seconds > 0 else float(OPEN_DURATION_NOMINAL_S)
    if seconds > 0:
        return seconds
    logger.warning(
        "Skipping step %s (%r) with non-positive duration %r",
        step.id,
        step.name,
        step.duration_value,
    )
    return None


def _make_segment(step: Step, start: float, duration: float, frame: _Frame) -> Segment:
    in_block = frame.group_id is not None
    return Segment(
        start_time=start,
        end_time=start + duration,
        duration=duration,
        target_min=step.target_min or 0.0,
        target_max=step.target_max or 0.0,
        intensity_class=step.intensity_class,
        name=step.name or "",
        open_duration=step.open_duration,
        group_id=frame.group_id,
        iteration=frame.iteration + 1 if in_block else None,
        cadence_min=step.cadence_min,
        cadence_max=step.cadence_max,
        hr_min=step.hr_min,
        hr_max=step.hr_max,
        hr_type=step.hr_type,
        step_id=step.id,
    )
