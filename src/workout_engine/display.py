"""Display adapters shared by every surface (builder, viewer, CLI).

Pure functions turning a timeline plus an athlete profile into rows and
strings ready to render.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from workout_engine.math.zones import default_zone_config, load_zone_config, segment_hr_zone
from workout_engine.models.timeline import Segment, Timeline
from workout_engine.models.zones import AthleteZoneProfile, HRZoneInfo, ZoneConfig

INTENSITY_LABELS = {
    "warmUp": "Warm-up",
    "active": "Active",
    "rest": "Rest",
    "coolDown": "Cool-down",
}


@dataclass(frozen=True)
class IntervalRow:
    """One line of an interval list."""

    index: int
    name: str
    label: str
    start: str
    duration: str
    target: str
    open_duration: bool
    group_id: int | None
    iteration: int | None
    hr_zone: HRZoneInfo | None

    @property
    def hr_text(self) -> str:
        if self.hr_zone is None:
            return "--"
        return f"Z{self.hr_zone.zone_number} {self.hr_zone.zone_name} ({self.hr_zone.bpm_range} bpm)"


def format_duration(seconds: float) -> str:
    """Seconds to a short human string. e.g. 3160 -> '52m 40s', 3600 -> '1h'."""
    total = int(round(seconds))
    if total <= 0:
        return "0s"
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs:
        parts.append(f"{secs}s")
    return " ".join(parts)


def format_clock(seconds: float) -> str:
    """Seconds to 'M:SS' or 'H:MM:SS'."""
    total = int(round(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_target_range(target_min: float, target_max: float) -> str:
    """Power target as '% FTP'. e.g. 50, 60 -> '50-60%'."""
    low, high = _compact(target_min), _compact(target_max)
    if low == high:
        return f"{low}%"
    return f"{low}-{high}%"


def build_interval_rows(
    timeline: Timeline,
    profile: AthleteZoneProfile | None = None,
    zone_config: ZoneConfig | None = None,
) -> list[IntervalRow]:
    """Interval list rows, each with its HR zone when one can be computed."""
    rows: list[IntervalRow] = []
    for i, segment in enumerate(timeline.segments):
        rows.append(_row(i, segment, segment_hr_zone(profile, zone_config, segment)))
    return rows


def athlete_from_dict(
    raw: dict[str, Any], *, strict: bool = False
) -> tuple[AthleteZoneProfile, ZoneConfig]:
    """Parse an athlete record into a zone profile and zone configuration.

    Expected keys: ``ftpWatts``, ``maxHR``, ``restingHR`` (all optional) and
    ``zones`` (see ``load_zone_config``). Without ``zones`` the coach's
    defaults are used. Raises ValueError for an unusable record.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Athlete record must be an object, got {type(raw).__name__}")
    profile = AthleteZoneProfile(
        ftp_watts=_optional_float(raw.get("ftpWatts")),
        max_hr=_optional_float(raw.get("maxHR")),
        resting_hr=_optional_float(raw.get("restingHR")),
    )
    zones = raw.get("zones")
    zone_config = load_zone_config(zones, strict=strict) if zones else default_zone_config()
    return profile, zone_config


def _row(index: int, segment: Segment, hr_zone: HRZoneInfo | None) -> IntervalRow:
    klass = segment.intensity_class.value
    return IntervalRow(
        index=index,
        name=segment.name or INTENSITY_LABELS.get(klass, klass),
        label=INTENSITY_LABELS.get(klass, klass),
        start=format_clock(segment.start_time),
        duration=format_duration(segment.duration) + (" (open)" if segment.open_duration else ""),
        target=format_target_range(segment.target_min, segment.target_max),
        open_duration=segment.open_duration,
        group_id=segment.group_id,
        iteration=segment.iteration,
        hr_zone=hr_zone,
    )


def _compact(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.1f}"


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
