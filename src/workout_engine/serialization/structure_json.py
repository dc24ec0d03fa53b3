"""Builder payload serialization for Structure objects.

Converts a Structure to and from the nested JSON the builder hands to the
persistence layer, and that viewers and importers read back::

    {"structure": [
        {"type": "step", "length": {"value": 1, "unit": "repetition"},
         "steps": [<step data>]},
        {"type": "repetition", "length": {"value": 4, "unit": "repetition"},
         "steps": [<step data or repetition>, ...]}]}

Reading is lenient: third-party imports are not schema-checked, missing
fields fall back to defaults and unknown node types are skipped.

All functions are pure (no I/O, no network calls).
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any

from workout_engine.math.training_load import planned_metrics, summarize
from workout_engine.models.enums import DurationUnit, HRType, IntensityClass, NodeType
from workout_engine.models.structure import Node, Repetition, Step, Structure

logger = logging.getLogger(__name__)

_REPETITION_UNIT = "repetition"

# Optional target keys: wire name → Step attribute
_OPTIONAL_TARGET_FIELDS = {
    "cadenceMin": "cadence_min",
    "cadenceMax": "cadence_max",
    "hrMin": "hr_min",
    "hrMax": "hr_max",
}


def to_structure_json(structure: Structure) -> dict:
    """Convert a Structure to the persisted builder payload."""
    items = []
    for node in structure.nodes:
        if isinstance(node, Repetition):
            items.append(_convert_repetition(node))
        else:
            items.append({
                "type": NodeType.STEP.value,
                "length": {"value": 1, "unit": _REPETITION_UNIT},
                "steps": [_convert_step(node)],
            })
    return {"structure": items}


def to_structure_json_string(structure: Structure, indent: int = 2) -> str:
    """Convert a Structure to a JSON string of the builder payload."""
    return json.dumps(to_structure_json(structure), indent=indent)


def to_workout_attributes(structure: Structure) -> dict:
    """Payload for the persistence collaborator: structure plus planned load."""
    attributes = {"structure": to_structure_json(structure)}
    attributes.update(planned_metrics(summarize(structure)))
    return attributes


def from_structure_json(payload: Any) -> Structure:
    """Build a Structure from a builder payload, tolerating sparse input.

    Accepts ``{"structure": [...]}``, a workout ``attributes`` dict wrapping
    that, or the bare list. A step wrapper holding several steps expands to
    that many top-level steps. Fresh node ids are assigned.
    """
    items = _structure_items(payload)
    nodes: list[Node] = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning("Skipping structure item %d: not an object", i)
            continue
        node_type = item.get("type")
        if node_type == NodeType.REPETITION.value:
            nodes.append(_parse_repetition(item))
        elif node_type == NodeType.STEP.value or node_type is None:
            inner = item.get("steps")
            if isinstance(inner, list):
                nodes.extend(_parse_step(raw) for raw in inner if isinstance(raw, dict))
            else:
                nodes.append(_parse_step(item))
        else:
            logger.warning("Skipping structure item %d with unknown type %r", i, node_type)
    return Structure(nodes=tuple(nodes))


def resolve_structure(template: Any, override: Any = None) -> Structure:
    """Structure for a scheduled workout: its own edited copy wins if present."""
    if override:
        resolved = from_structure_json(override)
        if resolved.nodes:
            return resolved
    return from_structure_json(template)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _convert_step(step: Step) -> dict:
    """Build step data for a leaf step."""
    target: dict[str, Any] = {
        "minValue": step.target_min,
        "maxValue": step.target_max,
    }
    for wire_key, attr in _OPTIONAL_TARGET_FIELDS.items():
        value = getattr(step, attr)
        if value is not None:
            target[wire_key] = value
    if step.hr_type is not None:
        target["hrType"] = step.hr_type.value

    result: dict[str, Any] = {
        "type": NodeType.STEP.value,
        "length": {"value": step.duration_value, "unit": step.duration_unit.value},
        "targets": [target],
        "intensityClass": step.intensity_class.value,
        "openDuration": step.open_duration,
    }
    if step.name:
        result["name"] = step.name
    return result


def _convert_repetition(rep: Repetition) -> dict:
    """Build a repetition node with nested children (any depth)."""
    root = _repetition_shell(rep)
    pending = [(rep, root["steps"])]
    while pending:
        source, out = pending.pop()
        for child in source.children:
            if isinstance(child, Repetition):
                shell = _repetition_shell(child)
                out.append(shell)
                pending.append((child, shell["steps"]))
            else:
                out.append(_convert_step(child))
    return root


def _repetition_shell(rep: Repetition) -> dict:
    return {
        "type": NodeType.REPETITION.value,
        "length": {"value": rep.repeat_count, "unit": _REPETITION_UNIT},
        "steps": [],
    }


def _structure_items(payload: Any) -> list:
    if payload is None:
        return []
    while isinstance(payload, dict):
        payload = payload.get("structure")
    if isinstance(payload, list):
        return payload
    if payload is not None:
        logger.warning("Unrecognized structure payload of type %s", type(payload).__name__)
    return []


def _parse_repetition(raw: dict) -> Repetition:
    """Build a Repetition from its payload, nested blocks included (any depth)."""
    # Each frame: (raw block, parsed children, unread raw children in reverse)
    stack = [(raw, [], _child_items(raw))]
    while True:
        block, children, pending = stack[-1]
        if pending:
            child = pending.pop()
            child_type = child.get("type")
            if child_type == NodeType.REPETITION.value:
                stack.append((child, [], _child_items(child)))
            elif child_type in (NodeType.STEP.value, None):
                children.append(_parse_step(child))
            else:
                logger.warning("Skipping nested node with unknown type %r", child_type)
            continue
        stack.pop()
        length = block.get("length")
        if not isinstance(length, dict):
            length = {}
        rep = Repetition(
            repeat_count=_as_int(length.get("value"), default=1),
            children=tuple(children),
        )
        if not stack:
            return rep
        stack[-1][1].append(rep)


def _child_items(raw: dict) -> list[dict]:
    steps = raw.get("steps")
    if not isinstance(steps, list):
        return []
    return [child for child in reversed(steps) if isinstance(child, dict)]


def _parse_step(raw: dict) -> Step:
    length = raw.get("length")
    if not isinstance(length, dict):
        length = {}
    targets = raw.get("targets")
    if not isinstance(targets, list) or not targets:
        targets = [{}]
    target = targets[0] if isinstance(targets[0], dict) else {}

    unit_raw = length.get("unit")
    # Leaf lengths in "repetition" units are taken as seconds
    unit = DurationUnit.MINUTE if unit_raw == DurationUnit.MINUTE.value else DurationUnit.SECOND

    optional = {
        attr: _as_float(target.get(wire_key))
        for wire_key, attr in _OPTIONAL_TARGET_FIELDS.items()
    }
    return Step(
        name=str(raw.get("name") or ""),
        duration_value=_as_float(length.get("value")) or 0.0,
        duration_unit=unit,
        target_min=_as_float(target.get("minValue")) or 0.0,
        target_max=_as_float(target.get("maxValue")) or 0.0,
        intensity_class=_as_enum(IntensityClass, raw.get("intensityClass"), IntensityClass.ACTIVE),
        open_duration=_as_bool(raw.get("openDuration")),
        hr_type=_as_enum(HRType, target.get("hrType"), None),
        **optional,
    )


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        logger.warning("Ignoring non-finite value %r", value)
        return None
    return number


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _as_int(value: Any, default: int) -> int:
    number = _as_float(value)
    return default if number is None else int(number)


def _as_enum(enum_cls, value: Any, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default
