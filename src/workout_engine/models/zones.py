"""Zone configuration and athlete profile models."""

from __future__ import annotations

from dataclasses import dataclass, field

from workout_engine.models.enums import HRType


@dataclass(frozen=True)
class ZoneBand:
    """A named band with lower and upper bounds.

    Power bands are in % FTP. HR bands are in bpm or % threshold HR
    depending on the owning ZoneConfig. ``upper`` of None means open-ended.
    """

    zone: int
    name: str
    lower: float
    upper: float | None = None


@dataclass(frozen=True)
class ZoneConfig:
    """Index-parallel power and HR zone schemes.

    Power zone *k* corresponds to HR zone *k*. Build instances through
    ``workout_engine.math.zones.build_zone_config`` to have that checked.
    """

    power_zones: tuple[ZoneBand, ...] = field(default_factory=tuple)
    hr_zones: tuple[ZoneBand, ...] = field(default_factory=tuple)
    hr_unit: HRType = HRType.BPM

    @property
    def is_aligned(self) -> bool:
        return len(self.power_zones) == len(self.hr_zones)


@dataclass(frozen=True)
class AthleteZoneProfile:
    """Athlete physiology used for zone display. Owned by the athlete record."""

    ftp_watts: float | None = None
    max_hr: float | None = None
    resting_hr: float | None = None


@dataclass(frozen=True)
class HRZoneInfo:
    """Heart-rate zone matched to a power target, ready for display."""

    zone_number: int
    zone_name: str
    bpm_range: str
    min_bpm: int
    max_bpm: int | None = None


@dataclass(frozen=True)
class CalculatedPowerZone:
    zone: int
    name: str
    min_watts: int
    max_watts: int | None
    min_percent: float
    max_percent: float | None


@dataclass(frozen=True)
class CalculatedHRZone:
    zone: int
    name: str
    min_bpm: int
    max_bpm: int | None
    min_percent: float
    max_percent: float | None
