"""Read-only workout viewer — prints the interval list and planned load.

Usage:
    python -m viewer.summary workout.json
    python -m viewer.summary workout.json --profile athlete.json

The workout file is a persisted workout (``attributes.structure``) or a
scheduled instance; a ``structureOverride`` on the instance wins over the
template structure.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from workout_engine.display import athlete_from_dict, build_interval_rows, format_duration
from workout_engine.math.training_load import WorkoutSummary, summarize
from workout_engine.models.zones import AthleteZoneProfile, ZoneConfig
from workout_engine.serialization import resolve_structure

from viewer.config import ATHLETE_PROFILE_PATH, LOG_LEVEL, ZONE_CONFIG_STRICT

logger = logging.getLogger(__name__)


def _load_json(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def load_workout_summary(workout: Any) -> WorkoutSummary:
    """Resolve the structure of a workout document and summarize it.

    Accepts a persisted workout, a scheduled instance wrapping one, or a bare
    structure payload (object or list).
    """
    if not isinstance(workout, dict):
        return summarize(resolve_structure(workout))
    scheduled_override = workout.get("structureOverride")
    return summarize(resolve_structure(_template_structure(workout), scheduled_override))


def _template_structure(workout: dict) -> Any:
    template = workout.get("workout") or workout
    if not isinstance(template, dict):
        return template
    attributes = template.get("attributes") or template
    if not isinstance(attributes, dict):
        return attributes
    return attributes.get("structure")


def _title(workout: Any, fallback: str) -> str:
    if not isinstance(workout, dict):
        return fallback
    template = workout.get("workout")
    nested = template.get("title") if isinstance(template, dict) else None
    return str(workout.get("title") or nested or fallback)


def render_report(
    title: str,
    summary: WorkoutSummary,
    profile: AthleteZoneProfile | None = None,
    zone_config: ZoneConfig | None = None,
) -> str:
    """Plain-text interval list with totals."""
    lines = [
        title,
        f"Duration: {format_duration(summary.total_duration)} | "
        f"TSS: {summary.tss} | IF: {summary.intensity_factor:.2f}",
        "",
    ]
    for row in build_interval_rows(summary.timeline, profile, zone_config):
        rep = f" [rep {row.iteration}]" if row.iteration is not None else ""
        lines.append(
            f"{row.index + 1:>3}. {row.start:>8}  {row.name:<16} {row.duration:<14} "
            f"{row.target:<10} {row.hr_text}{rep}"
        )
    if not summary.segments:
        lines.append("(empty workout)")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Print a workout's interval structure")
    parser.add_argument("workout", type=Path, help="Workout JSON file")
    parser.add_argument(
        "--profile",
        type=Path,
        default=None,
        help=f"Athlete profile JSON (default: {ATHLETE_PROFILE_PATH} if present)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        workout = _load_json(args.workout)
    except (OSError, ValueError) as exc:
        logger.error("Failed to read workout %s: %s", args.workout, exc)
        return 1

    profile = zone_config = None
    profile_path = args.profile or (ATHLETE_PROFILE_PATH if ATHLETE_PROFILE_PATH.exists() else None)
    if profile_path is not None:
        try:
            profile, zone_config = athlete_from_dict(
                _load_json(profile_path), strict=ZONE_CONFIG_STRICT,
            )
        except (OSError, ValueError) as exc:
            logger.warning("HR zones unavailable, profile %s not usable: %s", profile_path, exc)

    summary = load_workout_summary(workout)
    title = _title(workout, args.workout.stem)
    logger.info("Rendering %s: %d segments", title, len(summary.segments))
    print(render_report(title, summary, profile, zone_config))
    return 0


if __name__ == "__main__":
    sys.exit(main())
