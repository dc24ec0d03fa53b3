"""Environment-variable-based configuration for the workout viewer."""

from __future__ import annotations

import os
from pathlib import Path

LOG_LEVEL: str = os.environ.get("WORKOUT_ENGINE_LOG_LEVEL", "INFO").upper()
ATHLETE_PROFILE_PATH: Path = Path(
    os.environ.get("ATHLETE_PROFILE", "profiles/athlete.json")
).expanduser()
ZONE_CONFIG_STRICT: bool = os.environ.get("ZONE_CONFIG_STRICT", "0").lower() in ("1", "true", "yes")
