"""Workout builder and viewer — Streamlit dashboard.

Run with:
    streamlit run streamlit_app/app.py

Every widget edit goes through a StructureEditor held in session state; the
chart, totals and interval list are re-derived after each edit.
"""

from __future__ import annotations

import logging
import os

import streamlit as st

from workout_engine.display import athlete_from_dict, build_interval_rows, format_duration
from workout_engine.editor import StructureEditor
from workout_engine.exceptions import MalformedStructureError
from workout_engine.math.training_load import planned_metrics
from workout_engine.models.enums import DurationUnit, IntensityClass
from workout_engine.models.structure import Repetition, Step
from workout_engine.serialization import to_structure_json_string

from helpers import (
    INTENSITY_CHOICES,
    INTENSITY_COLORS,
    list_profiles,
    list_workouts,
    load_profile,
    load_workout,
    save_profile,
    save_workout,
    timeline_chart_data,
)

logging.basicConfig(
    level=os.environ.get("WORKOUT_ENGINE_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------

st.set_page_config(
    page_title="Workout Builder",
    page_icon="🚴",
    layout="wide",
)


def _editor() -> StructureEditor:
    if "editor" not in st.session_state:
        st.session_state["editor"] = StructureEditor.from_template()
    return st.session_state["editor"]


def _apply(operation, *args) -> None:
    """Run an editor operation, surfacing rejected edits as a message."""
    try:
        operation(*args)
        st.session_state.pop("edit_error", None)
    except (MalformedStructureError, KeyError) as exc:
        st.session_state["edit_error"] = str(exc)


def _field_changed(node_id: str, field: str, widget_key: str) -> None:
    _apply(_editor().update_step_field, node_id, field, st.session_state[widget_key])


# ---------------------------------------------------------------------------
# Rendering helpers (must be defined before use)
# ---------------------------------------------------------------------------


def _render_step(step: Step, parent_id: str | None = None, depth: int = 0) -> None:
    editor = _editor()
    color = INTENSITY_COLORS.get(step.intensity_class, "#CCCCCC")
    indent = "&nbsp;" * (depth * 6)
    st.markdown(
        f'{indent}<span style="background:{color};padding:2px 8px;border-radius:4px;'
        f'color:white;">{step.intensity_class.value}</span> {step.name}',
        unsafe_allow_html=True,
    )
    cols = st.columns([2, 2, 1, 1, 1, 1, 1])
    fields = [
        ("intensity_class", cols[0], "selectbox"),
        ("name", cols[1], "text"),
        ("duration_value", cols[2], "number"),
        ("duration_unit", cols[3], "unit"),
        ("target_min", cols[4], "number"),
        ("target_max", cols[5], "number"),
    ]
    for field, col, kind in fields:
        key = f"{step.id}_{field}"
        with col:
            if kind == "selectbox":
                st.selectbox(
                    "Type", INTENSITY_CHOICES,
                    index=INTENSITY_CHOICES.index(step.intensity_class.value),
                    key=key, on_change=_field_changed, args=(step.id, field, key),
                )
            elif kind == "unit":
                units = [u.value for u in DurationUnit]
                st.selectbox(
                    "Unit", units, index=units.index(step.duration_unit.value),
                    key=key, on_change=_field_changed, args=(step.id, field, key),
                )
            elif kind == "text":
                st.text_input(
                    "Name", value=step.name,
                    key=key, on_change=_field_changed, args=(step.id, field, key),
                )
            else:
                st.number_input(
                    field.replace("_", " ").capitalize(), value=float(getattr(step, field)),
                    min_value=0.0, step=1.0,
                    key=key, on_change=_field_changed, args=(step.id, field, key),
                )
    with cols[6]:
        if st.button("⧉", key=f"{step.id}_dup", help="Duplicate"):
            _apply(editor.duplicate_step, step.id)
            st.rerun()
        if st.button("✕", key=f"{step.id}_del", help="Remove"):
            if parent_id is None:
                _apply(editor.remove_step, step.id)
            else:
                _apply(editor.remove_nested_step, parent_id, step.id)
            st.rerun()


def _render_repetition(rep: Repetition, depth: int = 0) -> None:
    editor = _editor()
    with st.container(border=True):
        cols = st.columns([2, 1, 1, 1])
        key = f"{rep.id}_repeat_count"
        with cols[0]:
            st.number_input(
                "Repeat", min_value=1, step=1, value=rep.repeat_count,
                key=key, on_change=_field_changed, args=(rep.id, "repeat_count", key),
            )
        with cols[1]:
            if st.button("+ step", key=f"{rep.id}_add"):
                _apply(editor.add_nested_step, rep.id)
                st.rerun()
        with cols[2]:
            if st.button("⧉ block", key=f"{rep.id}_dup"):
                _apply(editor.duplicate_step, rep.id)
                st.rerun()
        with cols[3]:
            if st.button("✕ block", key=f"{rep.id}_del"):
                _apply(editor.remove_step, rep.id)
                st.rerun()
        for child in rep.children:
            if isinstance(child, Repetition):
                _render_repetition(child, depth + 1)
            else:
                _render_step(child, parent_id=rep.id, depth=depth + 1)


def _render_move_controls(editor: StructureEditor) -> None:
    nodes = editor.structure.nodes
    if len(nodes) < 2:
        return
    labels = [
        f"{i + 1}. {n.repeat_count}x block" if isinstance(n, Repetition)
        else f"{i + 1}. {n.name or n.intensity_class.value}"
        for i, n in enumerate(nodes)
    ]
    cols = st.columns([3, 1, 1])
    with cols[0]:
        chosen = st.selectbox("Move item", range(len(nodes)), format_func=lambda i: labels[i])
    with cols[1]:
        position = st.number_input("To position", 1, len(nodes), chosen + 1)
    with cols[2]:
        if st.button("Move"):
            _apply(editor.reorder, nodes[chosen].id, int(position) - 1)
            st.rerun()


# ---------------------------------------------------------------------------
# Sidebar — athlete zones and saved workouts
# ---------------------------------------------------------------------------

st.sidebar.title("Athlete")
profiles = list_profiles()
profile_data: dict = {}
if profiles:
    chosen_profile = st.sidebar.selectbox("Profile", ["(none)"] + profiles)
    if chosen_profile != "(none)":
        profile_data = load_profile(chosen_profile)

ftp = st.sidebar.number_input("FTP (W)", 0, 600, int(profile_data.get("ftpWatts") or 0))
max_hr = st.sidebar.number_input("Max HR", 0, 230, int(profile_data.get("maxHR") or 0))
profile_name = st.sidebar.text_input("Save profile as", value="athlete")
if st.sidebar.button("Save profile"):
    profile_data = {**profile_data, "ftpWatts": ftp or None, "maxHR": max_hr or None}
    path = save_profile(profile_name, profile_data)
    st.sidebar.success(f"Saved {path.name}")

try:
    athlete, zone_config = athlete_from_dict(
        {**profile_data, "ftpWatts": ftp or None, "maxHR": max_hr or None}
    )
except ValueError as exc:
    logger.warning("Zone configuration unusable: %s", exc)
    athlete, zone_config = None, None
    st.sidebar.warning(f"HR zones unavailable: {exc}")

st.sidebar.divider()
st.sidebar.title("Workouts")
saved = list_workouts()
if saved:
    to_load = st.sidebar.selectbox("Saved workouts", saved)
    if st.sidebar.button("Load"):
        title, structure = load_workout(to_load)
        _apply(_editor().replace, structure)
        st.session_state["title"] = title
        st.rerun()
if st.sidebar.button("New from template"):
    st.session_state["editor"] = StructureEditor.from_template()
    st.rerun()

# ---------------------------------------------------------------------------
# Main — builder
# ---------------------------------------------------------------------------

editor = _editor()
summary = editor.summary

st.title("Workout Builder")
title = st.text_input("Title", value=st.session_state.get("title", "New workout"))
st.session_state["title"] = title

m1, m2, m3, m4 = st.columns(4)
m1.metric("Duration", format_duration(summary.total_duration))
m2.metric("TSS", summary.tss)
m3.metric("IF", f"{summary.intensity_factor:.2f}")
m4.metric("Intervals", len(summary.segments))

st.area_chart(timeline_chart_data(summary.timeline))

if "edit_error" in st.session_state:
    st.error(st.session_state["edit_error"])

tab_build, tab_view, tab_json = st.tabs(["Structure", "Intervals", "Payload"])

with tab_build:
    for node in editor.structure.nodes:
        if isinstance(node, Repetition):
            _render_repetition(node)
        else:
            with st.container(border=True):
                _render_step(node)

    add_cols = st.columns(5)
    for col, klass in zip(add_cols, IntensityClass):
        with col:
            if st.button(f"+ {klass.value}", key=f"add_{klass.value}"):
                _apply(editor.add_step, klass)
                st.rerun()
    with add_cols[4]:
        if st.button("+ repetition"):
            _apply(editor.add_repetition)
            st.rerun()

    _render_move_controls(editor)

with tab_view:
    rows = build_interval_rows(summary.timeline, athlete, zone_config)
    if not rows:
        st.info("Empty workout.")
    st.dataframe(
        [
            {
                "#": r.index + 1,
                "Start": r.start,
                "Name": r.name,
                "Duration": r.duration,
                "Target": r.target,
                "HR zone": r.hr_text,
                "Rep": r.iteration or "",
            }
            for r in rows
        ],
        hide_index=True,
        use_container_width=True,
    )

with tab_json:
    st.json(planned_metrics(summary))
    payload = to_structure_json_string(editor.structure)
    st.code(payload, language="json")
    st.download_button("Download structure", payload, file_name=f"{title or 'workout'}.json")
    if st.button("Save workout"):
        path = save_workout(title, editor.structure)
        logger.info("Saved workout %s to %s", title, path)
        st.success(f"Saved {path.name}")
