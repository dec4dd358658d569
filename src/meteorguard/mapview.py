"""Interactive map adapter — the only component that turns pointer input into state.

The gesture-capable map widget is hidden behind the narrow MapWidget
interface so the adapter can be driven by a real folium map inside Streamlit
or by an in-memory double in tests. The adapter writes into the
ViewStateStore and never receives simulation data.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol

import folium

from meteorguard.models import GeoPoint, ViewState
from meteorguard.viewstate import ViewStateStore

log = logging.getLogger(__name__)

ClickHandler = Callable[[float, float], None]  # (lng, lat)
MoveHandler = Callable[[ViewState], None]

DEFAULT_TILES = "CartoDB dark_matter"

# Leaflet uses 256 px tiles, the view state uses the 512 px convention.
_LEAFLET_ZOOM_OFFSET = 1


class MapWidget(Protocol):
    """What the adapter needs from a gesture-capable map."""

    def initialize(self, view_state: ViewState) -> None: ...

    def on_click(self, handler: ClickHandler | None) -> None: ...

    def on_move(self, handler: MoveHandler | None) -> None: ...

    def recenter(self, longitude: float, latitude: float, duration_s: float) -> None:
        """Programmatic camera move. Must not fire the move handler."""
        ...

    def dispose(self) -> None: ...


class InteractiveMapAdapter:
    """Binds a MapWidget to a ViewStateStore for the lifetime of a with-block.

    Click → new entry point (eased recenter). Move → live camera pose.
    """

    def __init__(self, widget: MapWidget, store: ViewStateStore) -> None:
        self.widget = widget
        self.store = store
        self._opened = False
        self._unsubscribe: Callable[[], None] | None = None

    def open(self) -> "InteractiveMapAdapter":
        if self._opened:
            return self
        self._opened = True
        try:
            self.widget.initialize(self.store.view_state)
            self.widget.on_click(self._handle_click)
            self.widget.on_move(self._handle_move)
            self._unsubscribe = self.store.subscribe_entry(self._recenter)
        except BaseException:
            log.exception("map adapter failed to open; releasing widget")
            self.close()
            raise
        return self

    def close(self) -> None:
        if not self._opened:
            return
        self._opened = False
        try:
            if self._unsubscribe is not None:
                self._unsubscribe()
                self._unsubscribe = None
            self.widget.on_click(None)
            self.widget.on_move(None)
        finally:
            self.widget.dispose()

    def __enter__(self) -> "InteractiveMapAdapter":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _handle_click(self, lng: float, lat: float) -> None:
        self.store.set_entry_point(GeoPoint.from_click(lng, lat))

    def _handle_move(self, pose: ViewState) -> None:
        self.store.set(
            longitude=pose.longitude,
            latitude=pose.latitude,
            zoom=pose.zoom,
            bearing=pose.bearing,
            pitch=pose.pitch,
        )

    def _recenter(self, point: GeoPoint) -> None:
        self.widget.recenter(point.longitude, point.latitude, self.store.ease_duration_s)


def _wrap_lon(lng: float) -> float:
    return ((lng + 180.0) % 360.0) - 180.0 if not -180.0 <= lng <= 180.0 else lng


class FoliumMapWidget:
    """MapWidget over a folium.Map rendered by streamlit-folium.

    st_folium returns the map's interaction state on every rerun; dispatch()
    turns changes in that state into click and move callbacks. Leaflet has
    no rotation or tilt, so bearing and pitch are carried through unchanged.
    """

    def __init__(self, tiles: str = DEFAULT_TILES) -> None:
        self.tiles = tiles
        self.map: folium.Map | None = None
        self._click: ClickHandler | None = None
        self._move: MoveHandler | None = None
        self._view: ViewState | None = None
        self._center: tuple[float, float] = (0.0, 0.0)  # (lat, lng), as leaflet wants it
        self._marker: tuple[float, float] = (0.0, 0.0)
        self._last_click: tuple[float, float] | None = None
        self._last_pose: tuple[float, float, float] | None = None

    def initialize(self, view_state: ViewState) -> None:
        self._view = view_state
        self._center = (view_state.latitude, view_state.longitude)
        self._marker = self._center
        self.map = folium.Map(
            location=list(self._center),
            zoom_start=round(view_state.zoom) + _LEAFLET_ZOOM_OFFSET,
            tiles=self.tiles,
            control_scale=True,
        )

    def on_click(self, handler: ClickHandler | None) -> None:
        self._click = handler

    def on_move(self, handler: MoveHandler | None) -> None:
        self._move = handler

    def recenter(self, longitude: float, latitude: float, duration_s: float) -> None:
        # Leaflet pans when the center passed to st_folium changes
        self._center = (latitude, longitude)
        self._marker = (latitude, longitude)

    def dispose(self) -> None:
        self.map = None
        self._click = None
        self._move = None

    def entry_marker(self) -> folium.FeatureGroup:
        group = folium.FeatureGroup(name="entry")
        folium.CircleMarker(
            location=list(self._marker),
            radius=6,
            color="#f8fafc",
            weight=2,
            fill=True,
            fill_color="#ef4444",
            fill_opacity=0.9,
        ).add_to(group)
        return group

    def render_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for streamlit_folium.st_folium."""
        zoom = self._view.zoom if self._view is not None else 0.0
        return {
            "center": list(self._center),
            "zoom": round(zoom) + _LEAFLET_ZOOM_OFFSET,
            "feature_group_to_add": self.entry_marker(),
            "returned_objects": ["last_clicked", "center", "zoom"],
        }

    def dispatch(self, event: Mapping[str, Any] | None) -> None:
        """Feed one st_folium return value through the registered handlers."""
        if not event:
            return

        clicked = event.get("last_clicked")
        if clicked:
            key = (float(clicked["lat"]), float(clicked["lng"]))
            if key != self._last_click:
                self._last_click = key
                if self._click is not None:
                    self._click(key[1], key[0])

        center = event.get("center")
        zoom = event.get("zoom")
        if center and zoom is not None:
            pose = (float(center["lat"]), _wrap_lon(float(center["lng"])), float(zoom))
            if pose != self._last_pose:
                self._last_pose = pose
                base = self._view or ViewState(longitude=pose[1], latitude=pose[0])
                self._view = ViewState(
                    longitude=pose[1],
                    latitude=pose[0],
                    zoom=pose[2] - _LEAFLET_ZOOM_OFFSET,
                    bearing=base.bearing,
                    pitch=base.pitch,
                )
                if self._move is not None:
                    self._move(self._view)
