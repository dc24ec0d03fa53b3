"""Utility helpers bridging the Streamlit UI and the workout engine.

Colour maps, chart data and workout/profile persistence. Everything that
computes lives in ``workout_engine``; this module only adapts it.
"""

from __future__ import annotations

import json
from pathlib import Path

import pandas as pd

from workout_engine.models.enums import IntensityClass
from workout_engine.models.structure import Structure
from workout_engine.models.timeline import Timeline
from workout_engine.serialization import from_structure_json, to_workout_attributes

# ---------------------------------------------------------------------------
# Color maps
# ---------------------------------------------------------------------------

INTENSITY_COLORS: dict[IntensityClass, str] = {
    IntensityClass.WARM_UP: "#2ECC71",    # green
    IntensityClass.ACTIVE: "#E74C3C",     # red
    IntensityClass.REST: "#4A90D9",       # blue
    IntensityClass.COOL_DOWN: "#8E44AD",  # purple
}

INTENSITY_CHOICES = [c.value for c in IntensityClass]


# ---------------------------------------------------------------------------
# Chart data
# ---------------------------------------------------------------------------


def timeline_chart_data(timeline: Timeline, resolution_s: int = 5) -> pd.DataFrame:
    """Stepped power profile sampled every ``resolution_s`` seconds.

    Columns: ``minute`` (index) and ``% FTP``; suitable for ``st.area_chart``.
    """
    frame = timeline.to_dataframe()
    if frame.empty:
        return pd.DataFrame({"% FTP": []}, index=pd.Index([], name="minute"))
    samples = []
    for row in frame.itertuples(index=False):
        t = row.start_time
        while t < row.end_time:
            samples.append((t / 60.0, row.avg_target))
            t += resolution_s
    samples.append((frame["end_time"].iloc[-1] / 60.0, 0.0))
    chart = pd.DataFrame(samples, columns=["minute", "% FTP"])
    return chart.set_index("minute")


# ---------------------------------------------------------------------------
# Workout / profile persistence
# ---------------------------------------------------------------------------

_WORKOUTS_DIR = Path(__file__).parent / "workouts"
_PROFILES_DIR = Path(__file__).parent / "profiles"


def _ensure_dir(d: Path) -> Path:
    d.mkdir(parents=True, exist_ok=True)
    return d


def _safe_name(name: str, fallback: str) -> str:
    safe = "".join(c if c.isalnum() or c in "-_ " else "" for c in name).strip()
    return safe or fallback


def save_workout(title: str, structure: Structure) -> Path:
    """Save a workout (structure plus planned load) as JSON. Returns the path."""
    path = _ensure_dir(_WORKOUTS_DIR) / f"{_safe_name(title, 'workout')}.json"
    document = {"title": title, "attributes": to_workout_attributes(structure)}
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2)
    return path


def load_workout(name: str) -> tuple[str, Structure]:
    """Load a saved workout. Returns (title, structure)."""
    path = _WORKOUTS_DIR / f"{name}.json"
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        return name, from_structure_json(data)
    attributes = data.get("attributes") or data
    structure = attributes.get("structure") if isinstance(attributes, dict) else attributes
    return str(data.get("title") or name), from_structure_json(structure)


def list_workouts() -> list[str]:
    """List saved workout names (without .json extension)."""
    return sorted(p.stem for p in _ensure_dir(_WORKOUTS_DIR).glob("*.json"))


def save_profile(name: str, profile: dict) -> Path:
    """Save an athlete profile dict (ftpWatts, maxHR, restingHR, zones)."""
    path = _ensure_dir(_PROFILES_DIR) / f"{_safe_name(name, 'profile')}.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(profile, f, indent=2)
    return path


def load_profile(name: str) -> dict:
    """Load an athlete profile dict from JSON."""
    with open(_PROFILES_DIR / f"{name}.json", encoding="utf-8") as f:
        return json.load(f)


def list_profiles() -> list[str]:
    """List available profile names (without .json extension)."""
    return sorted(p.stem for p in _ensure_dir(_PROFILES_DIR).glob("*.json"))
