"""Planned training load: TSS and Intensity Factor from a flattened timeline.

This is the builder's approximation, not a power-trace TSS: each segment
counts at the square of its mean target intensity.

    weighted_tss = sum(duration_h * (mean_target_pct / 100)^2 * 100)
    IF           = sqrt(weighted_tss / total_h / 100)
    TSS          = round(weighted_tss)

Reference:
    Coggan & Allen (2010), Training and Racing with a Power Meter — TSS
    defined as duration_h * IF^2 * 100.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable

import numpy as np

from workout_engine.math.flattener import flatten
from workout_engine.models.structure import Structure
from workout_engine.models.timeline import Segment, Timeline

_SECONDS_PER_HOUR = 3600.0


@dataclass(frozen=True)
class LoadEstimate:
    """Aggregate load of a timeline."""

    tss: int
    intensity_factor: float
    weighted_tss: float = 0.0
    total_duration: float = 0.0


@dataclass(frozen=True)
class WorkoutSummary:
    """Everything a builder surface renders after an edit."""

    timeline: Timeline = field(default_factory=Timeline)
    load: LoadEstimate = field(default_factory=lambda: LoadEstimate(tss=0, intensity_factor=0.0))

    @property
    def segments(self) -> tuple[Segment, ...]:
        return self.timeline.segments

    @property
    def total_duration(self) -> float:
        return self.timeline.total_duration

    @property
    def tss(self) -> int:
        return self.load.tss

    @property
    def intensity_factor(self) -> float:
        return self.load.intensity_factor


def estimate(segments: Timeline | Iterable[Segment]) -> LoadEstimate:
    """Estimate TSS and IF for a sequence of segments.

    Args:
        segments: A Timeline or any iterable of Segment.

    Returns:
        LoadEstimate. An empty input gives TSS 0 and IF 0.
    """
    items = list(segments)
    if not items:
        return LoadEstimate(tss=0, intensity_factor=0.0)

    durations = np.fromiter((s.duration for s in items), dtype=np.float64, count=len(items))
    mean_targets = np.fromiter(
        ((s.target_min + s.target_max) / 2 for s in items),
        dtype=np.float64,
        count=len(items),
    )
    intensities = mean_targets / 100.0

    weighted_tss = float(np.sum(durations / _SECONDS_PER_HOUR * intensities**2 * 100.0))
    total_duration = float(np.sum(durations))

    return LoadEstimate(
        tss=round_half_up(weighted_tss),
        intensity_factor=intensity_factor(weighted_tss, total_duration),
        weighted_tss=weighted_tss,
        total_duration=total_duration,
    )


def intensity_factor(weighted_tss: float, total_duration_s: float) -> float:
    """IF from accumulated weighted TSS over a total duration in seconds."""
    if total_duration_s <= 0:
        return 0.0
    return math.sqrt(weighted_tss / (total_duration_s / _SECONDS_PER_HOUR) / 100.0)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def summarize(structure: Structure | None) -> WorkoutSummary:
    """Flatten a structure and estimate its load in one pass."""
    timeline = flatten(structure)
    return WorkoutSummary(timeline=timeline, load=estimate(timeline))


def planned_metrics(summary: WorkoutSummary) -> dict:
    """Denormalized scalars stored alongside a persisted structure."""
    return {
        "tssPlanned": summary.tss,
        "ifPlanned": summary.intensity_factor,
        "totalTimePlanned": summary.total_duration / _SECONDS_PER_HOUR,
    }
