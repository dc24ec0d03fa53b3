"""Tests for the persisted builder payload."""

from __future__ import annotations

import json
import logging

import pytest

from workout_engine.math.flattener import flatten
from workout_engine.models.enums import DurationUnit, HRType, IntensityClass
from workout_engine.models.structure import Repetition, Step, Structure
from workout_engine.serialization.structure_json import (
    _convert_step,
    from_structure_json,
    resolve_structure,
    to_structure_json,
    to_structure_json_string,
    to_workout_attributes,
)


def _step_payload(value: float = 60, unit: str = "second", **overrides) -> dict:
    payload = {
        "type": "step",
        "length": {"value": value, "unit": unit},
        "targets": [{"minValue": 50, "maxValue": 60}],
        "intensityClass": "active",
        "openDuration": False,
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


class TestToStructureJson:
    def test_top_level_step_wrapped(self, warmup_step: Step) -> None:
        items = to_structure_json(Structure(nodes=(warmup_step,)))["structure"]
        assert len(items) == 1
        wrapper = items[0]
        assert wrapper["type"] == "step"
        assert wrapper["length"] == {"value": 1, "unit": "repetition"}
        assert len(wrapper["steps"]) == 1
        assert wrapper["steps"][0]["intensityClass"] == "warmUp"

    def test_repetition_carries_count(self, sprint_block: Repetition) -> None:
        item = to_structure_json(Structure(nodes=(sprint_block,)))["structure"][0]
        assert item["type"] == "repetition"
        assert item["length"] == {"value": 4, "unit": "repetition"}
        assert [s["intensityClass"] for s in item["steps"]] == ["active", "rest"]

    def test_nested_repetition(self) -> None:
        inner = Repetition(repeat_count=2, children=(Step(duration_value=30),))
        outer = Repetition(repeat_count=3, children=(inner,))
        item = to_structure_json(Structure(nodes=(outer,)))["structure"][0]
        assert item["steps"][0]["type"] == "repetition"
        assert item["steps"][0]["length"]["value"] == 2

    def test_step_fields(self) -> None:
        step = Step(
            name="Tempo",
            duration_value=20,
            duration_unit=DurationUnit.MINUTE,
            target_min=85,
            target_max=90,
            cadence_min=85,
            cadence_max=95,
            hr_min=150,
            hr_max=160,
            hr_type=HRType.BPM,
        )
        data = _convert_step(step)
        assert data["name"] == "Tempo"
        assert data["length"] == {"value": 20, "unit": "minute"}
        assert data["targets"] == [{
            "minValue": 85,
            "maxValue": 90,
            "cadenceMin": 85,
            "cadenceMax": 95,
            "hrMin": 150,
            "hrMax": 160,
            "hrType": "bpm",
        }]

    def test_optional_fields_omitted(self) -> None:
        data = _convert_step(Step(duration_value=60))
        assert "name" not in data
        assert set(data["targets"][0]) == {"minValue", "maxValue"}

    def test_string_is_valid_json(self, sprint_workout: Structure) -> None:
        parsed = json.loads(to_structure_json_string(sprint_workout))
        assert len(parsed["structure"]) == 3

    def test_attributes_include_planned_load(self, sprint_workout: Structure) -> None:
        attributes = to_workout_attributes(sprint_workout)
        assert attributes["tssPlanned"] == 26
        assert attributes["ifPlanned"] == pytest.approx(0.5494, abs=1e-4)
        assert attributes["totalTimePlanned"] == pytest.approx(3160 / 3600)
        assert "structure" in attributes["structure"]


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


class TestFromStructureJson:
    def test_written_payload_reads_back_same_timeline(self, sprint_workout: Structure) -> None:
        restored = from_structure_json(to_structure_json(sprint_workout))
        original = flatten(sprint_workout)
        reread = flatten(restored)
        assert reread.total_duration == original.total_duration
        assert [s.intensity_class for s in reread.segments] == [
            s.intensity_class for s in original.segments
        ]

    def test_fresh_ids(self, warmup_step: Step) -> None:
        restored = from_structure_json(to_structure_json(Structure(nodes=(warmup_step,))))
        assert restored.nodes[0].id != warmup_step.id

    def test_accepts_attributes_wrapper(self, sprint_workout: Structure) -> None:
        attributes = to_workout_attributes(sprint_workout)
        assert len(from_structure_json(attributes)) == 3

    def test_accepts_bare_list(self) -> None:
        structure = from_structure_json([_step_payload(), _step_payload(unit="minute", value=2)])
        assert len(structure) == 2
        assert structure.nodes[1].duration_seconds == 120

    def test_multi_step_wrapper_expands(self) -> None:
        wrapper = {
            "type": "step",
            "length": {"value": 1, "unit": "repetition"},
            "steps": [_step_payload(name="a"), _step_payload(name="b")],
        }
        structure = from_structure_json({"structure": [wrapper]})
        assert [n.name for n in structure.nodes] == ["a", "b"]

    def test_sparse_step_defaults(self) -> None:
        structure = from_structure_json({"structure": [{"type": "step", "steps": [{}]}]})
        step = structure.nodes[0]
        assert step.duration_value == 0
        assert step.intensity_class == IntensityClass.ACTIVE
        assert step.target_min == 0

    def test_unknown_intensity_falls_back(self) -> None:
        structure = from_structure_json([_step_payload(intensityClass="sprint")])
        assert structure.nodes[0].intensity_class == IntensityClass.ACTIVE

    def test_unknown_type_skipped(self) -> None:
        structure = from_structure_json([{"type": "ramp"}, _step_payload()])
        assert len(structure) == 1

    def test_non_object_items_skipped(self) -> None:
        assert len(from_structure_json([42, "x", _step_payload()])) == 1

    @pytest.mark.parametrize("payload", [None, 7, "text", {"other": []}, {}])
    def test_unusable_payload_is_empty(self, payload) -> None:
        assert from_structure_json(payload).nodes == ()

    def test_malformed_length_tolerated(self) -> None:
        structure = from_structure_json([_step_payload(length="long", targets="fast")])
        assert structure.nodes[0].duration_value == 0

    def test_repetition_defaults_to_single_pass(self) -> None:
        structure = from_structure_json([{"type": "repetition", "steps": [_step_payload()]}])
        assert structure.nodes[0].repeat_count == 1

    def test_open_duration_preserved(self) -> None:
        structure = from_structure_json([_step_payload(openDuration=True)])
        assert structure.nodes[0].open_duration is True


    @pytest.mark.parametrize("value", ["false", "False", "0", ""])
    def test_open_duration_false_strings(self, value: str) -> None:
        structure = from_structure_json([_step_payload(openDuration=value)])
        assert structure.nodes[0].open_duration is False

    def test_open_duration_true_string(self) -> None:
        structure = from_structure_json([_step_payload(openDuration="true")])
        assert structure.nodes[0].open_duration is True

    @pytest.mark.parametrize("value", ["nan", float("nan"), float("inf"), "-Infinity", 1e400])
    def test_non_finite_repeat_count_falls_back(self, value, caplog: pytest.LogCaptureFixture) -> None:
        raw = {"type": "repetition", "length": {"value": value}, "steps": [_step_payload()]}
        with caplog.at_level(logging.WARNING):
            structure = from_structure_json([raw])
        assert structure.nodes[0].repeat_count == 1
        assert "non-finite" in caplog.text

    def test_non_finite_targets_fall_back(self) -> None:
        raw = _step_payload(targets=[{"minValue": "nan", "maxValue": float("inf"), "hrMax": "inf"}])
        step = from_structure_json([raw]).nodes[0]
        assert (step.target_min, step.target_max) == (0, 0)
        assert step.hr_max is None

    def test_non_finite_duration_falls_back(self) -> None:
        structure = from_structure_json([_step_payload(value=float("nan"))])
        assert structure.nodes[0].duration_value == 0


class TestDeepNesting:
    def test_deep_tree_written_and_read(self) -> None:
        node = Step(duration_value=7)
        for _ in range(3000):
            node = Repetition(repeat_count=1, children=(node,))
        payload = to_structure_json(Structure(nodes=(node,)))
        structure = from_structure_json(payload)
        assert flatten(structure).total_duration == 7
        depth = 0
        node = structure.nodes[0]
        while isinstance(node, Repetition):
            depth += 1
            node = node.children[0]
        assert depth == 3000
        assert node.duration_value == 7

    def test_sibling_order_kept(self) -> None:
        inner = Repetition(
            repeat_count=2,
            children=(Step(name="a", duration_value=1), Step(name="b", duration_value=1)),
        )
        outer = Repetition(
            children=(Step(name="first", duration_value=1), inner, Step(name="last", duration_value=1)),
        )
        read = from_structure_json(to_structure_json(Structure(nodes=(outer,)))).nodes[0]
        assert [getattr(c, "name", None) for c in read.children] == ["first", None, "last"]
        assert [c.name for c in read.children[1].children] == ["a", "b"]
        assert read.children[1].repeat_count == 2


class TestResolveStructure:
    def test_override_wins(self, sprint_workout: Structure, warmup_step: Step) -> None:
        template = to_structure_json(sprint_workout)
        override = to_structure_json(Structure(nodes=(warmup_step,)))
        assert len(resolve_structure(template, override)) == 1

    def test_template_when_no_override(self, sprint_workout: Structure) -> None:
        template = to_structure_json(sprint_workout)
        assert len(resolve_structure(template)) == 3

    def test_empty_override_ignored(self, sprint_workout: Structure) -> None:
        template = to_structure_json(sprint_workout)
        assert len(resolve_structure(template, {"structure": []})) == 3
