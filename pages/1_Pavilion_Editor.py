# pages/1_Pavilion_Editor.py
from __future__ import annotations

import json
import logging

import streamlit as st
from streamlit_folium import st_folium

from expo_log.authoring import (
    PavilionFileWriter,
    load_input_pavilions,
    merge_drafts,
    prepare_output,
    to_drafts,
)
from expo_log.capture import CaptureState, CoordinateCapture
from expo_log.catalog import load_pavilions
from expo_log.config import load_config
from expo_log.errors import ExpoLogError
from expo_log.mapview import click_key, click_point, render_editor_map

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("expo_log.editor")

cfg = load_config()

st.set_page_config(page_title="EXPO LOG - Pavilion Editor", layout="wide")
st.markdown("## Pavilion coordinate editor")
st.caption("Pick a pavilion, click its center on the map, then click the edge of its hit area.")


# --------------------
# Helpers
# --------------------
def load_drafts():
    published = load_pavilions(cfg.data_path) if cfg.data_path.exists() else []
    if cfg.input_path.exists():
        raw = json.loads(cfg.input_path.read_text(encoding="utf-8"))
        items = load_input_pavilions(raw)
    else:
        items = load_input_pavilions([{"id": p.id, "name": p.name} for p in published])
    return merge_drafts(to_drafts(items), published)


if "capture" not in st.session_state:
    try:
        drafts = load_drafts()
    except (OSError, ValueError) as exc:
        logger.error("failed to load editor input: %s", exc)
        st.error(f"Failed to load pavilion input: {exc}")
        st.stop()
    st.session_state.capture = CoordinateCapture(drafts, cfg.map_size)
if "editor_last_click" not in st.session_state:
    st.session_state.editor_last_click = None
if "editor_message" not in st.session_state:
    st.session_state.editor_message = ""
if st.session_state.pop("editor_clear_selection", False):
    st.session_state.sel_pavilion = None

capture: CoordinateCapture = st.session_state.capture
writer = PavilionFileWriter(cfg.data_path)


def on_select() -> None:
    pid = st.session_state.sel_pavilion
    if pid is None:
        return
    res = capture.select(pid)
    st.session_state.editor_message = "Pending center discarded." if res.cancelled_pending else ""


def handle_click(payload) -> None:
    key = click_key(payload)
    if key is None or key == st.session_state.editor_last_click:
        return
    st.session_state.editor_last_click = key

    point = click_point(payload, cfg.map_size)
    if point is None:
        return
    try:
        result = capture.click(point)
    except ExpoLogError as exc:
        st.session_state.editor_message = str(exc)
        st.rerun()

    if result.completed:
        draft = next(p for p in capture.pavilions if p.id == result.id)
        try:
            saved = writer.save(prepare_output(draft))
        except ExpoLogError as exc:
            st.session_state.editor_message = f"Not saved: {exc}"
        else:
            st.session_state.editor_message = (
                f"Saved {result.id} (radius {result.hitbox_radius:.4f})"
                if saved.success
                else f"Save failed: {saved.error}"
            )
        st.session_state.editor_clear_selection = True
    else:
        st.session_state.editor_message = f"Center set for {result.id}; click the edge next."
    st.rerun()


# --------------------
# Layout
# --------------------
map_col, panel_col = st.columns([3.5, 1.5], gap="large")

with panel_col:
    drafts = capture.pavilions
    labels = {p.id: f"{p.name} ({p.id})" + ("" if p.coordinate is not None else " - not set") for p in drafts}
    st.selectbox(
        "Pavilion",
        options=[p.id for p in drafts],
        index=None,
        format_func=lambda pid: labels[pid],
        key="sel_pavilion",
        on_change=on_select,
    )

    state_text = {
        CaptureState.IDLE: "Select a pavilion.",
        CaptureState.SELECTED: "Click the pavilion center.",
        CaptureState.CENTER_PENDING: "Click the edge of the hit area.",
    }[capture.state]
    st.info(state_text)
    if st.session_state.editor_message:
        st.write(st.session_state.editor_message)

    done = sum(1 for p in drafts if p.coordinate is not None)
    st.caption(f"{done} / {len(drafts)} pavilions placed")

with map_col:
    m = render_editor_map(
        capture.pavilions,
        cfg.map_size,
        cfg.default_radius,
        selected_id=capture.selected_id,
        pending_center=capture.center,
        image_path=cfg.map_image_path,
    )
    payload = st_folium(
        m,
        width=cfg.map_width,
        height=cfg.map_height,
        key="map_editor",
        returned_objects=["last_clicked"],
    )
    handle_click(payload)
