"""Serialization module — builder payload for persistence and import."""

from workout_engine.serialization.structure_json import (
    from_structure_json,
    resolve_structure,
    to_structure_json,
    to_structure_json_string,
    to_workout_attributes,
)

__all__ = [
    "from_structure_json",
    "resolve_structure",
    "to_structure_json",
    "to_structure_json_string",
    "to_workout_attributes",
]
