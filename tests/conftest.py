"""Shared test fixtures: workout structures, athletes and zone schemes."""

from __future__ import annotations

import pytest

from workout_engine.math.zones import load_zone_config
from workout_engine.models.enums import IntensityClass
from workout_engine.models.structure import Repetition, Step, Structure
from workout_engine.models.zones import AthleteZoneProfile, ZoneConfig


@pytest.fixture
def warmup_step() -> Step:
    """20 min warm-up at 40-50% FTP."""
    return Step(
        name="Warm-up",
        duration_value=1200,
        target_min=40,
        target_max=50,
        intensity_class=IntensityClass.WARM_UP,
    )


@pytest.fixture
def cooldown_step() -> Step:
    """20 min cool-down at 40-50% FTP."""
    return Step(
        name="Cool-down",
        duration_value=1200,
        target_min=40,
        target_max=50,
        intensity_class=IntensityClass.COOL_DOWN,
    )


@pytest.fixture
def sprint_block() -> Repetition:
    """4 x (10 s sprint at 200-300%, 3 min recovery at 50-60%)."""
    return Repetition(
        repeat_count=4,
        children=(
            Step(
                name="Sprint",
                duration_value=10,
                target_min=200,
                target_max=300,
                intensity_class=IntensityClass.ACTIVE,
            ),
            Step(
                name="Recovery",
                duration_value=180,
                target_min=50,
                target_max=60,
                intensity_class=IntensityClass.REST,
            ),
        ),
    )


@pytest.fixture
def sprint_workout(warmup_step: Step, sprint_block: Repetition, cooldown_step: Step) -> Structure:
    """Warm-up, sprint block, cool-down: 3160 s in total."""
    return Structure(nodes=(warmup_step, sprint_block, cooldown_step))


@pytest.fixture
def athlete() -> AthleteZoneProfile:
    """FTP 250 W, max HR 180."""
    return AthleteZoneProfile(ftp_watts=250, max_hr=180, resting_hr=50)


@pytest.fixture
def three_zone_config() -> ZoneConfig:
    """Three power zones paired with three bpm HR zones."""
    return load_zone_config({
        "power": [
            {"name": "Easy", "min": 0, "max": 55},
            {"name": "Endurance", "min": 55, "max": 75},
            {"name": "Hard", "min": 75, "max": None},
        ],
        "hr": [
            {"name": "Easy", "min": 0, "max": 120},
            {"name": "Endurance", "min": 121, "max": 150},
            {"name": "Hard", "min": 151, "max": 999},
        ],
        "hrUnit": "bpm",
    })
