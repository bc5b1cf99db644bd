# expo_log/mapview.py
"""
Folium helpers for the venue map.

The map image is laid out in Leaflet's Simple CRS with one map unit per
pixel. Leaflet's y axis points up, so pixel (x, y) sits at
[lat = height - y, lng = x].
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import folium

from .catalog import DraftPavilion, Pavilion
from .geo import MapSize, Point, effective_radius_px, hit_circles, scale

VISITED_COLOR = "green"
UNVISITED_COLOR = "gray"
CENTER_COLOR = "red"


def pixel_to_latlng(point: Point, map_size: MapSize) -> List[float]:
    return [map_size.height - point.y, point.x]


def latlng_to_pixel(lat: float, lng: float, map_size: MapSize) -> Point:
    return Point(float(lng), map_size.height - float(lat))


def click_point(payload: Optional[Mapping[str, Any]], map_size: MapSize) -> Optional[Point]:
    """Pixel point of st_folium's `last_clicked`, or None when there is none."""
    if not payload:
        return None
    clicked = payload.get("last_clicked")
    if not clicked or clicked.get("lat") is None or clicked.get("lng") is None:
        return None
    return latlng_to_pixel(clicked["lat"], clicked["lng"], map_size)


def base_map(map_size: MapSize, image_path: Optional[Path] = None) -> folium.Map:
    bounds = [[0, 0], [map_size.height, map_size.width]]
    m = folium.Map(
        location=[map_size.height / 2, map_size.width / 2],
        crs="Simple",
        tiles=None,
        zoom_start=0,
        min_zoom=-2,
        max_bounds=True,
        # pan limits are the image itself, not the lat/lng defaults
        min_lat=0,
        max_lat=map_size.height,
        min_lon=0,
        max_lon=map_size.width,
    )
    if image_path is not None and Path(image_path).exists():
        folium.raster_layers.ImageOverlay(image=str(image_path), bounds=bounds, opacity=1.0).add_to(m)
    else:
        folium.Rectangle(bounds=bounds, color="#555", fill=True, fill_opacity=0.05).add_to(m)
    m.fit_bounds(bounds)
    return m


def render_visitor_map(
    pavilions: Sequence[Pavilion],
    visited: Mapping[str, bool],
    map_size: MapSize,
    default_radius: float,
    image_path: Optional[Path] = None,
) -> folium.Map:
    m = base_map(map_size, image_path)
    for p, center, r_px in hit_circles(list(pavilions), map_size, default_radius):
        color = VISITED_COLOR if visited.get(p.id) else UNVISITED_COLOR
        folium.Circle(
            location=pixel_to_latlng(center, map_size),
            radius=r_px,
            color=color,
            fill=True,
            fill_opacity=0.45,
            tooltip=p.name,
        ).add_to(m)
    return m


def render_editor_map(
    pavilions: Sequence[DraftPavilion],
    map_size: MapSize,
    default_radius: float,
    selected_id: Optional[str] = None,
    pending_center: Optional[Point] = None,
    image_path: Optional[Path] = None,
) -> folium.Map:
    """Draft pavilions with a coordinate are drawn; the selected one in blue."""
    m = base_map(map_size, image_path)
    for p in pavilions:
        if p.coordinate is None:
            continue
        center = scale(p.coordinate, map_size)
        r_px = effective_radius_px(p.hitbox_radius, default_radius, map_size.width)
        folium.Circle(
            location=pixel_to_latlng(center, map_size),
            radius=r_px,
            color="blue" if p.id == selected_id else UNVISITED_COLOR,
            fill=True,
            fill_opacity=0.3,
            tooltip=p.name,
        ).add_to(m)
    if pending_center is not None:
        folium.CircleMarker(
            location=pixel_to_latlng(pending_center, map_size),
            radius=4,
            color=CENTER_COLOR,
            fill=True,
        ).add_to(m)
    return m


def click_key(payload: Optional[Mapping[str, Any]]) -> Optional[Dict[str, float]]:
    """Identity of the last click; st_folium repeats it on every rerun."""
    if not payload or not payload.get("last_clicked"):
        return None
    c = payload["last_clicked"]
    return {"lat": c.get("lat"), "lng": c.get("lng")}
