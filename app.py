# app.py
from __future__ import annotations

import logging
from urllib.parse import urlencode

import streamlit as st
from streamlit_folium import st_folium

from expo_log.catalog import load_pavilions, search_pavilions
from expo_log.config import load_config
from expo_log.mapview import click_key, click_point, render_visitor_map
from expo_log.state import Mode, VisitedSession, parse_mode
from expo_log.store import JsonFileStore

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("expo_log.app")

cfg = load_config()

# --------------------
# Page config + CSS
# --------------------
st.set_page_config(page_title="EXPO LOG", layout="wide")

st.markdown(
    """
    <style>
      html, body, [class*="css"]  { font-size: 17px; }

      .expo-title {
        text-align: center;
        font-size: 40px;
        font-weight: 800;
        margin: 10px 0 18px 0;
        letter-spacing: -0.5px;
      }
      .expo-section {
        font-size: 26px;
        font-weight: 800;
        margin: 0 0 10px 0;
      }
      .expo-progress {
        font-size: 20px;
        font-weight: 700;
        opacity: 0.9;
      }

      .block-container { max-width: 1400px; padding-top: 1.2rem; }
    </style>
    """,
    unsafe_allow_html=True,
)

st.markdown('<div class="expo-title">EXPO LOG</div>', unsafe_allow_html=True)


# --------------------
# Helpers
# --------------------
@st.cache_data
def load_data(path: str):
    return load_pavilions(path)


try:
    pavilions = load_data(str(cfg.data_path))
except Exception as exc:  # shown to the user, app stops
    logger.error("failed to load pavilion data from %s: %s", cfg.data_path, exc)
    st.error("Failed to load pavilion data. Reload the page to retry.")
    st.stop()


# --------------------
# Session state defaults
# --------------------
if "session" not in st.session_state:
    st.session_state.session = VisitedSession.start(
        pavilions,
        JsonFileStore(cfg.store_path),
        mode=parse_mode(st.query_params.get(cfg.mode_param)),
        token=st.query_params.get(cfg.visited_param, ""),
        storage_key=cfg.storage_key,
        default_radius=cfg.default_radius,
    )
if "last_click" not in st.session_state:
    st.session_state.last_click = None

session: VisitedSession = st.session_state.session


def sync_url() -> None:
    st.query_params.from_dict(session.query_params(cfg.mode_param, cfg.visited_param))


def on_toggle(pavilion_id: str) -> None:
    if session.toggle(pavilion_id):
        sync_url()


def share_url() -> str:
    return "?" + urlencode(session.share_params(cfg.mode_param, cfg.visited_param))


# =========================================================
# MAP
# =========================================================
def render_map() -> None:
    st.markdown('<div class="expo-section">Map</div>', unsafe_allow_html=True)

    m = render_visitor_map(
        session.pavilions,
        session.visited,
        cfg.map_size,
        cfg.default_radius,
        image_path=cfg.map_image_path,
    )
    payload = st_folium(
        m,
        width=cfg.map_width,
        height=cfg.map_height,
        key="map_visitor",
        returned_objects=["last_clicked"],
    )

    key = click_key(payload)
    if key is None or key == st.session_state.last_click:
        return
    st.session_state.last_click = key

    point = click_point(payload, cfg.map_size)
    if point is None or not session.is_edit_mode:
        return
    if session.toggle_at(point, cfg.map_size) is not None:
        sync_url()
        st.rerun()


# =========================================================
# LIST
# =========================================================
def render_list() -> None:
    st.markdown('<div class="expo-section">Pavilions</div>', unsafe_allow_html=True)
    st.markdown(
        f'<div class="expo-progress">{session.visited_count()} / {len(session.pavilions)} visited</div>',
        unsafe_allow_html=True,
    )

    st.text_input("Search pavilions", placeholder="name or id", key="query")

    matches = search_pavilions(session.pavilions, st.session_state.query)
    if not matches:
        st.info("No pavilions match your search.")
        return

    for p in matches:
        # widget state follows the session, which map clicks also mutate
        st.session_state[f"chk_{p.id}"] = session.is_visited(p.id)
        st.checkbox(
            p.name,
            disabled=not session.is_edit_mode,
            key=f"chk_{p.id}",
            on_change=on_toggle,
            args=(p.id,),
        )


# =========================================================
# SHARE
# =========================================================
def render_share() -> None:
    st.divider()
    st.markdown('<div class="expo-section">Share</div>', unsafe_allow_html=True)
    st.code(share_url(), language=None)

    if session.mode is Mode.READONLY:
        st.caption("You are viewing a shared log.")
        if st.button("Edit this log", key="btn_switch_edit"):
            session.switch_to_edit()
            sync_url()
            st.rerun()
    else:
        st.caption(f"Progress is saved on this server ({cfg.store_path}) and shared by everyone using it.")
    if session.is_edit_mode and st.button("Clear all", key="btn_reset"):
        session.reset()
        sync_url()
        st.rerun()


# --------------------
# Layout
# --------------------
map_col, side_col = st.columns([3.5, 1.5], gap="large")
with map_col:
    render_map()
    render_share()
with side_col:
    render_list()
