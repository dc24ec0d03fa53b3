"""Power and heart-rate zone calculations and power-to-HR zone mapping.

Zone model: coach's formula. Power zones as % FTP (Coggan 6-zone), HR zones
as % of threshold HR, where threshold HR = 93% of max HR.

Power zone *k* is defined to correspond to HR zone *k*. That parity is
checked when a ZoneConfig is built, and again when mapping.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Sequence

from workout_engine.exceptions import ZoneConfigMismatchError
from workout_engine.models.enums import (
    DEFAULT_HR_ZONE_MAX_PCT,
    DEFAULT_POWER_ZONE_MAX_PCT,
    HR_THRESHOLD_FRACTION_OF_MAX,
    HR_ZONE_NAMES,
    OPEN_ENDED_ZONE_PCT,
    POWER_ZONE_NAMES,
    HRType,
)
from workout_engine.models.timeline import Segment
from workout_engine.models.zones import (
    AthleteZoneProfile,
    CalculatedHRZone,
    CalculatedPowerZone,
    HRZoneInfo,
    ZoneBand,
    ZoneConfig,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Zone schemes
# ---------------------------------------------------------------------------


def bands_from_max_pct(
    zone_max_pct: Sequence[float], names: Sequence[str] = ()
) -> tuple[ZoneBand, ...]:
    """Turn a list of zone upper bounds into contiguous bands.

    Zone 1 starts at 0; each later zone starts where the previous ended. The
    last zone, or any zone whose max is >= 999, is open-ended.
    """
    bands: list[ZoneBand] = []
    lower = 0.0
    for i, max_pct in enumerate(zone_max_pct):
        is_last = i == len(zone_max_pct) - 1
        upper = None if is_last or max_pct >= OPEN_ENDED_ZONE_PCT else float(max_pct)
        name = names[i] if i < len(names) else f"Zone {i + 1}"
        bands.append(ZoneBand(zone=i + 1, name=name, lower=lower, upper=upper))
        if upper is None:
            break
        lower = upper
    return tuple(bands)


def build_zone_config(
    power_zones: Sequence[ZoneBand],
    hr_zones: Sequence[ZoneBand],
    *,
    hr_unit: HRType = HRType.BPM,
    strict: bool = True,
) -> ZoneConfig:
    """Build a ZoneConfig, enforcing power/HR zone-index parity.

    Args:
        power_zones: Bands in % FTP, ascending.
        hr_zones: Bands in bpm or % threshold HR, ascending.
        hr_unit: Unit of the HR bands.
        strict: Raise on a count mismatch. Otherwise warn and trim the
            longer scheme to the common length; the last power band kept
            becomes open-ended so high targets still map to the top zone.

    Raises:
        ZoneConfigMismatchError: strict mode and the counts differ.
    """
    power = tuple(power_zones)
    hr = tuple(hr_zones)
    if len(power) != len(hr):
        if strict:
            raise ZoneConfigMismatchError(len(power), len(hr))
        common = min(len(power), len(hr))
        logger.warning(
            "Zone schemes differ in length (power=%d, hr=%d); keeping first %d zones",
            len(power),
            len(hr),
            common,
        )
        power = power[:common]
        hr = hr[:common]
        if power:
            power = power[:-1] + (replace(power[-1], upper=None),)
    return ZoneConfig(power_zones=power, hr_zones=hr, hr_unit=hr_unit)


def default_zone_config() -> ZoneConfig:
    """Coach's default schemes (6 power vs 5 HR zones, trimmed to 5)."""
    return build_zone_config(
        bands_from_max_pct(DEFAULT_POWER_ZONE_MAX_PCT, POWER_ZONE_NAMES),
        bands_from_max_pct(DEFAULT_HR_ZONE_MAX_PCT, HR_ZONE_NAMES),
        hr_unit=HRType.PERCENT,
        strict=False,
    )


def load_zone_config(raw: dict, *, strict: bool = True) -> ZoneConfig:
    """Parse a zone configuration dict.

    Expected shape::

        {"power": [{"name": "Z1", "min": 0, "max": 55}, ...],
         "hr": [{"name": "Z1", "min": 0, "max": 120}, ...],
         "hrUnit": "bpm"}

    A band's ``min`` may be omitted or null for 0, its ``max`` for
    open-ended.

    Raises:
        ValueError: The dict, a band, a bound or the unit is unusable.
        ZoneConfigMismatchError: strict mode and the counts differ.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Zone configuration must be an object, got {type(raw).__name__}")
    hr_unit = HRType(raw.get("hrUnit") or HRType.BPM.value)
    return build_zone_config(
        _parse_bands(raw.get("power") or []),
        _parse_bands(raw.get("hr") or []),
        hr_unit=hr_unit,
        strict=strict,
    )


def _parse_bands(items: Sequence[dict]) -> tuple[ZoneBand, ...]:
    if not isinstance(items, (list, tuple)):
        raise ValueError(f"Zone list must be an array, got {type(items).__name__}")
    bands: list[ZoneBand] = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValueError(f"Zone {i + 1} must be an object")
        lower = _parse_bound(item.get("min"), i)
        upper = _parse_bound(item.get("max"), i)
        zone = _parse_bound(item.get("zone"), i)
        if lower is not None and not math.isfinite(lower):
            raise ValueError(f"Zone {i + 1}: lower bound must be finite")
        bands.append(
            ZoneBand(
                zone=int(zone) if zone is not None and math.isfinite(zone) else i + 1,
                name=str(item.get("name") or f"Zone {i + 1}"),
                lower=0.0 if lower is None else lower,
                upper=upper,
            )
        )
    return tuple(bands)


def _parse_bound(value, index: int) -> float | None:
    """A band number; None when absent, ValueError when not numeric."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Zone {index + 1}: invalid bound {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Zone {index + 1}: invalid bound {value!r}") from exc
    if math.isnan(number):
        raise ValueError(f"Zone {index + 1}: invalid bound {value!r}")
    return number


def calculate_power_zones(
    ftp_watts: float,
    zone_max_pct: Sequence[float] = DEFAULT_POWER_ZONE_MAX_PCT,
) -> list[CalculatedPowerZone]:
    """Absolute power zones in watts from FTP.

    Args:
        ftp_watts: Functional threshold power.
        zone_max_pct: Upper bound of each zone as % FTP.

    Returns:
        One CalculatedPowerZone per band; the last has ``max_watts=None``.
    """
    zones: list[CalculatedPowerZone] = []
    for band in bands_from_max_pct(zone_max_pct, POWER_ZONE_NAMES):
        zones.append(CalculatedPowerZone(
            zone=band.zone,
            name=band.name,
            min_watts=round(band.lower / 100 * ftp_watts),
            max_watts=None if band.upper is None else round(band.upper / 100 * ftp_watts),
            min_percent=band.lower,
            max_percent=band.upper,
        ))
    return zones


def calculate_hr_zones(
    max_hr: float,
    zone_max_pct: Sequence[float] = DEFAULT_HR_ZONE_MAX_PCT,
) -> list[CalculatedHRZone]:
    """Absolute HR zones in bpm from max HR.

    Percentages are of threshold HR ("FC Soglia") = 93% of max HR.
    """
    threshold_hr = max_hr * HR_THRESHOLD_FRACTION_OF_MAX
    zones: list[CalculatedHRZone] = []
    for band in bands_from_max_pct(zone_max_pct, HR_ZONE_NAMES):
        zones.append(CalculatedHRZone(
            zone=band.zone,
            name=band.name,
            min_bpm=round(band.lower / 100 * threshold_hr),
            max_bpm=None if band.upper is None else round(band.upper / 100 * threshold_hr),
            min_percent=band.lower,
            max_percent=band.upper,
        ))
    return zones


# ---------------------------------------------------------------------------
# Power → HR mapping
# ---------------------------------------------------------------------------


def hr_zone_for_power_percent(
    profile: AthleteZoneProfile | None,
    zone_config: ZoneConfig | None,
    power_percent: float,
) -> HRZoneInfo | None:
    """Find the HR zone matching a power target.

    The power target is converted to watts, matched against the power zones
    (``[min, max)``, last zone open-ended), and the HR zone at the same
    index is returned.

    Returns:
        HRZoneInfo, or None when FTP or max HR is missing, either zone list
        is empty, the lists differ in length, or no power zone matches.
        None means "zone display unavailable", never zero.
    """
    if profile is None or zone_config is None:
        return None
    if not _is_positive(profile.ftp_watts) or not _is_positive(profile.max_hr):
        return None
    power_zones = zone_config.power_zones
    hr_zones = zone_config.hr_zones
    if not power_zones or not hr_zones or len(power_zones) != len(hr_zones):
        return None
    if power_percent is None or not math.isfinite(power_percent):
        return None

    watts = power_percent / 100 * profile.ftp_watts
    index = _match_power_zone(power_zones, profile.ftp_watts, watts)
    if index is None or index >= len(hr_zones):
        return None

    hr_band = hr_zones[index]
    min_bpm, max_bpm = _hr_band_bpm(hr_band, zone_config.hr_unit, profile.max_hr)
    if max_bpm is None:
        bpm_range = f">{min_bpm}"
    else:
        bpm_range = f"{min_bpm}-{max_bpm}"

    return HRZoneInfo(
        zone_number=index + 1,
        zone_name=hr_band.name or power_zones[index].name or f"Zone {index + 1}",
        bpm_range=bpm_range,
        min_bpm=min_bpm,
        max_bpm=max_bpm,
    )


def segment_hr_zone(
    profile: AthleteZoneProfile | None,
    zone_config: ZoneConfig | None,
    segment: Segment,
) -> HRZoneInfo | None:
    """HR zone for a segment's mean power target."""
    return hr_zone_for_power_percent(profile, zone_config, segment.avg_target)


def _match_power_zone(
    power_zones: Sequence[ZoneBand], ftp_watts: float, watts: float
) -> int | None:
    last = len(power_zones) - 1
    for i, band in enumerate(power_zones):
        min_watts = band.lower / 100 * ftp_watts
        if watts < min_watts:
            continue
        if i == last or band.upper is None or math.isinf(band.upper):
            return i
        if watts < band.upper / 100 * ftp_watts:
            return i
    return None


def _hr_band_bpm(band: ZoneBand, unit: HRType, max_hr: float) -> tuple[int, int | None]:
    """Resolve an HR band to whole bpm; None upper means open-ended."""
    upper = band.upper
    if upper is not None and math.isinf(upper):
        upper = None
    if unit == HRType.PERCENT:
        threshold_hr = max_hr * HR_THRESHOLD_FRACTION_OF_MAX
        if upper is not None and upper >= OPEN_ENDED_ZONE_PCT:
            upper = None
        lower_bpm = round(band.lower / 100 * threshold_hr)
        upper_bpm = None if upper is None else round(upper / 100 * threshold_hr)
        return lower_bpm, upper_bpm
    return round(band.lower), None if upper is None else round(upper)


def _is_positive(value: float | None) -> bool:
    return value is not None and math.isfinite(value) and value > 0
