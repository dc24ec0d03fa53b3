"""Pure workout computations: flattening, training load, zones."""

from workout_engine.math.flattener import flatten
from workout_engine.math.training_load import (
    LoadEstimate,
    WorkoutSummary,
    estimate,
    planned_metrics,
    summarize,
)
from workout_engine.math.zones import (
    build_zone_config,
    default_zone_config,
    hr_zone_for_power_percent,
    load_zone_config,
    segment_hr_zone,
)

__all__ = [
    "LoadEstimate",
    "WorkoutSummary",
    "build_zone_config",
    "default_zone_config",
    "estimate",
    "flatten",
    "hr_zone_for_power_percent",
    "load_zone_config",
    "planned_metrics",
    "segment_hr_zone",
    "summarize",
]
