"""Data models for the workout structure engine."""

from workout_engine.models.enums import DurationUnit, HRType, IntensityClass, NodeType
from workout_engine.models.structure import (
    Node,
    Repetition,
    Step,
    Structure,
    find_structure_problems,
    validate_structure,
)
from workout_engine.models.timeline import Segment, Timeline
from workout_engine.models.zones import (
    AthleteZoneProfile,
    CalculatedHRZone,
    CalculatedPowerZone,
    HRZoneInfo,
    ZoneBand,
    ZoneConfig,
)

__all__ = [
    "AthleteZoneProfile",
    "CalculatedHRZone",
    "CalculatedPowerZone",
    "DurationUnit",
    "HRType",
    "HRZoneInfo",
    "IntensityClass",
    "Node",
    "NodeType",
    "Repetition",
    "Segment",
    "Step",
    "Structure",
    "Timeline",
    "ZoneBand",
    "ZoneConfig",
    "find_structure_problems",
    "validate_structure",
]
