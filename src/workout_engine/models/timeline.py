"""Flattened workout timeline — absolute-time segments."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

import pandas as pd

from workout_engine.models.enums import HRType, IntensityClass

_DATAFRAME_COLUMNS = [
    "start_time",
    "end_time",
    "duration",
    "target_min",
    "target_max",
    "avg_target",
    "intensity_class",
    "name",
    "open_duration",
    "group_id",
    "iteration",
]


@dataclass(frozen=True)
class Segment:
    """One materialized interval, times in seconds from workout start.

    ``group_id`` links segments produced by the same repetition block
    (innermost block wins); ``iteration`` is the 1-based pass of that block.
    """

    start_time: float
    end_time: float
    duration: float
    target_min: float
    target_max: float
    intensity_class: IntensityClass
    name: str = ""
    open_duration: bool = False
    group_id: int | None = None
    iteration: int | None = None
    cadence_min: float | None = None
    cadence_max: float | None = None
    hr_min: float | None = None
    hr_max: float | None = None
    hr_type: HRType | None = None
    step_id: str | None = None

    @property
    def avg_target(self) -> float:
        """Midpoint of the power target (% FTP)."""
        return (self.target_min + self.target_max) / 2


@dataclass(frozen=True)
class Timeline:
    """Ordered, contiguous segments plus the total duration in seconds."""

    segments: tuple[Segment, ...] = field(default_factory=tuple)
    total_duration: float = 0.0

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self):
        return iter(self.segments)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per segment, for charting and tabular display."""
        rows = []
        for segment in self.segments:
            row = asdict(segment)
            row["intensity_class"] = segment.intensity_class.value
            row["avg_target"] = segment.avg_target
            rows.append(row)
        if not rows:
            return pd.DataFrame(columns=_DATAFRAME_COLUMNS)
        frame = pd.DataFrame(rows)
        extra = [c for c in frame.columns if c not in _DATAFRAME_COLUMNS]
        return frame[_DATAFRAME_COLUMNS + extra]
