"""Overlay renderer — derives damage-ring layers from the latest result and view state.

Stateless with respect to user input: the frame it produces is marked
non-interactive and every renderer downstream disables gestures, so the
interactive map stays the single pointer authority.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from meteorguard.geometry import DEFAULT_POLAR_LIMIT_DEG, DEFAULT_STEPS, ring
from meteorguard.models import OVERPRESSURE_THRESHOLDS, Ring, SimulationResult, ViewState
from meteorguard.viewstate import ViewStateStore

log = logging.getLogger(__name__)

RGBA = tuple[int, int, int, int]


@dataclass(frozen=True)
class LayerStyle:
    fill: RGBA
    line: RGBA


# Fixed severity ordering: the near (5 psi) ring is warmer and more opaque.
THRESHOLD_STYLES: dict[str, LayerStyle] = {
    "1psi": LayerStyle(fill=(251, 146, 60, 70), line=(251, 146, 60, 200)),
    "5psi": LayerStyle(fill=(239, 68, 68, 130), line=(239, 68, 68, 230)),
}


@dataclass(frozen=True)
class OverlayLayer:
    """One filled polygon for one overpressure threshold."""

    id: str  # "op-1psi"
    threshold: str  # "1psi"
    radius_m: float
    ring: Ring
    style: LayerStyle


@dataclass(frozen=True)
class OverlayFrame:
    """Everything a renderer needs to draw the overlay once."""

    view_state: ViewState
    layers: tuple[OverlayLayer, ...]
    interactive: bool = False

    def to_geojson(self) -> dict[str, Any]:
        """GeoJSON FeatureCollection with one Polygon feature per layer."""
        return {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "geometry": {
                        "type": "Polygon",
                        "coordinates": [[list(v) for v in layer.ring]],
                    },
                    "properties": {
                        "id": layer.id,
                        "threshold": layer.threshold,
                        "radius_m": layer.radius_m,
                    },
                }
                for layer in self.layers
            ],
        }


FrameListener = Callable[[OverlayFrame], None]


def build_layers(
    result: SimulationResult | None,
    steps: int = DEFAULT_STEPS,
    polar_limit_deg: float = DEFAULT_POLAR_LIMIT_DEG,
) -> tuple[OverlayLayer, ...]:
    """One layer per fixed threshold, far to near. No result means no layers."""
    if result is None:
        return ()
    center = result.center.as_lonlat()
    layers: list[OverlayLayer] = []
    for threshold in OVERPRESSURE_THRESHOLDS:
        radius = result.overpressure_radii_m[threshold]
        layers.append(
            OverlayLayer(
                id=f"op-{threshold}",
                threshold=threshold,
                radius_m=radius,
                ring=ring(center, radius, steps=steps, polar_limit_deg=polar_limit_deg),
                style=THRESHOLD_STYLES[threshold],
            )
        )
    return tuple(layers)


class OverlayRenderer:
    """Re-derives the overlay frame when, and only when, one of its inputs changes.

    Inputs are the store's ViewState and the latest SimulationResult pushed
    through show(). A view-only change reuses the computed layers.
    """

    def __init__(
        self,
        store: ViewStateStore,
        steps: int = DEFAULT_STEPS,
        polar_limit_deg: float = DEFAULT_POLAR_LIMIT_DEG,
    ) -> None:
        self.store = store
        self.steps = steps
        self.polar_limit_deg = polar_limit_deg
        self.frame_count = 0
        self.layer_builds = 0
        self._result: SimulationResult | None = None
        self._layers_for: SimulationResult | None = None
        self._layers: tuple[OverlayLayer, ...] = ()
        self._frame: OverlayFrame | None = None
        self._listeners: list[FrameListener] = []
        self._unsubscribe = store.subscribe(lambda _view: self._refresh())

    @property
    def result(self) -> SimulationResult | None:
        return self._result

    def subscribe(self, listener: FrameListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def show(self, result: SimulationResult | None) -> None:
        """Replace the result being drawn."""
        self._result = result
        self._refresh()

    def frame(self) -> OverlayFrame:
        """Return the current frame, rebuilding it only if an input changed."""
        view = self.store.view_state
        result = self._result
        if self._frame is not None and self._frame.view_state == view and self._same_result(result):
            return self._frame

        if not self._same_result(result):
            self._layers = build_layers(result, self.steps, self.polar_limit_deg)
            self._layers_for = result
            self.layer_builds += 1
            log.debug("rebuilt %d overlay layers", len(self._layers))
        self._frame = OverlayFrame(view_state=view, layers=self._layers)
        self.frame_count += 1
        return self._frame

    def detach(self) -> None:
        self._unsubscribe()
        self._listeners.clear()

    def _same_result(self, result: SimulationResult | None) -> bool:
        if result is self._layers_for:
            return True
        return result is not None and self._layers_for is not None and result == self._layers_for

    def _refresh(self) -> None:
        previous = self._frame
        frame = self.frame()
        if frame is previous:
            return
        for listener in list(self._listeners):
            listener(frame)
