"""Custom exception hierarchy for the workout structure engine."""

from __future__ import annotations


class WorkoutEngineError(Exception):
    """Base exception for all workout_engine errors."""


class MalformedStructureError(WorkoutEngineError, ValueError):
    """A workout structure (or a proposed edit to one) is not valid.

    ``problems`` lists every issue found, one human-readable line each.
    """

    def __init__(self, problems: list[str] | str) -> None:
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "Malformed workout structure")


class ZoneConfigMismatchError(WorkoutEngineError, ValueError):
    """Power and HR zone lists differ in length, breaking zone-index parity."""

    def __init__(self, power_count: int, hr_count: int) -> None:
        super().__init__(
            f"Power zones ({power_count}) and HR zones ({hr_count}) must have the same count"
        )
        self.power_count = power_count
        self.hr_count = hr_count
