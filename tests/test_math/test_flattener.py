"""Tests for structure flattening: unrolling, contiguity and open durations."""

from __future__ import annotations

import logging

import pytest

from workout_engine.math.flattener import flatten
from workout_engine.models.enums import OPEN_DURATION_NOMINAL_S, DurationUnit, IntensityClass
from workout_engine.models.structure import Repetition, Step, Structure


def _assert_contiguous(timeline) -> None:
    cursor = 0.0
    for segment in timeline.segments:
        assert segment.start_time == pytest.approx(cursor)
        assert segment.end_time == pytest.approx(segment.start_time + segment.duration)
        cursor = segment.end_time
    assert timeline.total_duration == pytest.approx(cursor)


class TestSingleStep:
    def test_warmup_only(self, warmup_step: Step) -> None:
        timeline = flatten(Structure(nodes=(warmup_step,)))
        assert len(timeline.segments) == 1
        assert timeline.total_duration == 1200
        segment = timeline.segments[0]
        assert segment.start_time == 0
        assert segment.end_time == 1200
        assert segment.intensity_class == IntensityClass.WARM_UP
        assert segment.target_min == 40
        assert segment.target_max == 50
        assert segment.group_id is None
        assert segment.iteration is None
        assert segment.step_id == warmup_step.id

    def test_minutes_converted(self) -> None:
        step = Step(duration_value=5, duration_unit=DurationUnit.MINUTE, target_min=80, target_max=95)
        assert flatten(Structure(nodes=(step,))).total_duration == 300

    def test_none_and_empty(self) -> None:
        assert flatten(None).segments == ()
        assert flatten(Structure()).total_duration == 0


class TestRepetitionUnrolling:
    def test_sprint_block(self, sprint_block: Repetition) -> None:
        timeline = flatten(Structure(nodes=(sprint_block,)))
        assert len(timeline.segments) == 8
        assert timeline.total_duration == 4 * (10 + 180)
        _assert_contiguous(timeline)

    def test_children_repeat_in_order(self, sprint_block: Repetition) -> None:
        timeline = flatten(Structure(nodes=(sprint_block,)))
        names = [s.name for s in timeline.segments]
        assert names == ["Sprint", "Recovery"] * 4

    def test_segments_tagged_with_block_and_iteration(self, sprint_block: Repetition) -> None:
        timeline = flatten(Structure(nodes=(sprint_block,)))
        assert {s.group_id for s in timeline.segments} == {1}
        assert [s.iteration for s in timeline.segments] == [1, 1, 2, 2, 3, 3, 4, 4]

    def test_full_workout(self, sprint_workout: Structure) -> None:
        timeline = flatten(sprint_workout)
        assert len(timeline.segments) == 10
        assert timeline.total_duration == 1200 + 760 + 1200
        assert timeline.segments[1].start_time == 1200
        assert timeline.segments[-1].start_time == 1960
        _assert_contiguous(timeline)

    def test_nested_repetitions(self) -> None:
        inner = Repetition(repeat_count=3, children=(Step(name="b", duration_value=30),))
        outer = Repetition(repeat_count=2, children=(Step(name="a", duration_value=60), inner))
        timeline = flatten(Structure(nodes=(outer,)))
        assert [s.name for s in timeline.segments] == ["a", "b", "b", "b"] * 2
        assert timeline.total_duration == 2 * (60 + 3 * 30)
        _assert_contiguous(timeline)

    def test_nested_blocks_get_innermost_group(self) -> None:
        inner = Repetition(repeat_count=2, children=(Step(name="b", duration_value=30),))
        outer = Repetition(repeat_count=2, children=(Step(name="a", duration_value=60), inner))
        segments = flatten(Structure(nodes=(outer,))).segments
        a_segments = [s for s in segments if s.name == "a"]
        b_segments = [s for s in segments if s.name == "b"]
        assert [s.iteration for s in a_segments] == [1, 2]
        assert len({s.group_id for s in a_segments}) == 1
        assert all(s.group_id != a_segments[0].group_id for s in b_segments)
        assert [s.iteration for s in b_segments] == [1, 2, 1, 2]

    def test_duration_conservation(self) -> None:
        steps = (Step(duration_value=45), Step(duration_value=15))
        structure = Structure(nodes=(
            Step(duration_value=100),
            Repetition(repeat_count=5, children=steps),
        ))
        timeline = flatten(structure)
        assert timeline.total_duration == sum(s.duration for s in timeline.segments)
        assert timeline.total_duration == 100 + 5 * 60

    def test_empty_repetition_contributes_nothing(self) -> None:
        structure = Structure(nodes=(Repetition(repeat_count=4), Step(duration_value=60)))
        timeline = flatten(structure)
        assert len(timeline.segments) == 1
        assert timeline.segments[0].start_time == 0

    def test_deep_nesting(self) -> None:
        node = Step(duration_value=1)
        for _ in range(3000):
            node = Repetition(repeat_count=1, children=(node,))
        timeline = flatten(Structure(nodes=(node,)))
        assert len(timeline.segments) == 1
        assert timeline.total_duration == 1


class TestIdempotence:
    def test_same_input_same_output(self, sprint_workout: Structure) -> None:
        first = flatten(sprint_workout)
        second = flatten(sprint_workout)
        assert first == second

    def test_input_not_mutated(self, sprint_workout: Structure) -> None:
        before = sprint_workout
        flatten(sprint_workout)
        assert sprint_workout is before
        assert len(sprint_workout.nodes[1].children) == 2


class TestOpenDuration:
    def test_uses_declared_length(self) -> None:
        step = Step(duration_value=600, open_duration=True)
        segment = flatten(Structure(nodes=(step,))).segments[0]
        assert segment.duration == 600
        assert segment.open_duration is True

    def test_falls_back_to_nominal(self) -> None:
        step = Step(duration_value=0, open_duration=True)
        timeline = flatten(Structure(nodes=(step,)))
        assert timeline.total_duration == OPEN_DURATION_NOMINAL_S


class TestMalformedNodes:
    def test_zero_duration_step_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        structure = Structure(nodes=(
            Step(name="Bad", duration_value=0),
            Step(name="Good", duration_value=60),
        ))
        with caplog.at_level(logging.WARNING, logger="workout_engine.math.flattener"):
            timeline = flatten(structure)
        assert [s.name for s in timeline.segments] == ["Good"]
        assert timeline.segments[0].start_time == 0
        assert "non-positive duration" in caplog.text

    def test_invalid_repeat_count_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        rep = Repetition(repeat_count=0, children=(Step(duration_value=60),))
        with caplog.at_level(logging.WARNING, logger="workout_engine.math.flattener"):
            timeline = flatten(Structure(nodes=(rep, Step(duration_value=30))))
        assert timeline.total_duration == 30
        assert "invalid repeat_count" in caplog.text

    def test_unknown_node_skipped(self) -> None:
        structure = Structure(nodes=(Step(duration_value=30), {"type": "mystery"}))  # type: ignore[arg-type]
        assert flatten(structure).total_duration == 30


class TestDataFrame:
    def test_columns_and_rows(self, sprint_workout: Structure) -> None:
        frame = flatten(sprint_workout).to_dataframe()
        assert len(frame) == 10
        assert list(frame.columns[:3]) == ["start_time", "end_time", "duration"]
        assert frame["intensity_class"].iloc[0] == "warmUp"
        assert frame["avg_target"].iloc[1] == 250

    def test_empty_timeline(self) -> None:
        frame = flatten(None).to_dataframe()
        assert frame.empty
        assert "avg_target" in frame.columns
