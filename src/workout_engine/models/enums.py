"""Enumerations and constants for the workout structure engine.

Zone defaults follow the coach's zone formula used by the training
application (power as % FTP, HR as % of threshold HR).
"""

from enum import Enum


class IntensityClass(str, Enum):
    """Role of a step within a workout (wire values are camelCase)."""

    WARM_UP = "warmUp"
    ACTIVE = "active"
    REST = "rest"
    COOL_DOWN = "coolDown"


class DurationUnit(str, Enum):
    """Unit of a step's ``duration_value``."""

    SECOND = "second"
    MINUTE = "minute"


class HRType(str, Enum):
    """How heart-rate values are expressed."""

    BPM = "bpm"
    PERCENT = "percent"   # percent of threshold HR


class NodeType(str, Enum):
    """Node kinds in the persisted builder payload."""

    STEP = "step"
    REPETITION = "repetition"


# ---------------------------------------------------------------------------
# Flattening
# ---------------------------------------------------------------------------
SECONDS_PER_MINUTE = 60

# Visual placeholder for open-duration steps that declare no usable length
OPEN_DURATION_NOMINAL_S = 300

# ---------------------------------------------------------------------------
# Builder defaults — new steps per intensity class
# (duration_value, duration_unit, target_min %FTP, target_max %FTP)
# ---------------------------------------------------------------------------
DEFAULT_STEP_SETTINGS = {
    IntensityClass.WARM_UP: (10, DurationUnit.MINUTE, 55.0, 75.0),
    IntensityClass.ACTIVE: (5, DurationUnit.MINUTE, 80.0, 95.0),
    IntensityClass.REST: (5, DurationUnit.MINUTE, 40.0, 50.0),
    IntensityClass.COOL_DOWN: (10, DurationUnit.MINUTE, 55.0, 75.0),
}

DEFAULT_REPEAT_COUNT = 3

# ---------------------------------------------------------------------------
# Zones
# ---------------------------------------------------------------------------
# Threshold HR ("FC Soglia") as a fraction of max HR
HR_THRESHOLD_FRACTION_OF_MAX = 0.93

# Zone upper bounds at or above this percentage are open-ended
OPEN_ENDED_ZONE_PCT = 999

# Coggan 6-zone power model, upper bound of each zone as % FTP
DEFAULT_POWER_ZONE_MAX_PCT = (55, 75, 90, 105, 120, 150)

# 5-zone HR model, upper bound of each zone as % threshold HR
DEFAULT_HR_ZONE_MAX_PCT = (68, 83, 94, 105, 999)

POWER_ZONE_NAMES = (
    "Recupero Attivo",
    "Resistenza",
    "Tempo (Medio)",
    "Soglia Lattacida",
    "VO2MAX",
    "Capacità Anaerobica",
)

HR_ZONE_NAMES = (
    "Recupero Attivo",
    "Resistenza",
    "Tempo (Medio)",
    "Soglia Lattacida",
    "VO2MAX",
)
