"""Matplotlib static PNG renderer for overpressure rings."""

import json
import math
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from meteorguard.models import SimulationResult
from meteorguard.overlay import RGBA, OverlayFrame

_ROOT = Path(__file__).parent.parent.parent.parent
_BG = "#0b1120"


def _mpl_color(color: RGBA) -> tuple[float, float, float, float]:
    return tuple(c / 255 for c in color)  # type: ignore[return-value]


def render_static_overlay(
    frame: OverlayFrame, title: str = "", chart_size: int = 8
) -> Figure:
    """Render the overlay rings of a frame as a static matplotlib image.

    The y axis is stretched by 1/cos(lat) so rings look round at the
    frame's latitude.

    Args:
        frame: Overlay frame to draw. Empty frames draw only the center mark.
        title: Optional title drawn at the top.
        chart_size: Output image size in inches.

    Returns:
        matplotlib Figure object.
    """
    fig, ax = plt.subplots(figsize=(chart_size, chart_size))
    fig.patch.set_facecolor(_BG)
    ax.set_facecolor(_BG)

    view = frame.view_state
    for layer in frame.layers:
        coords = np.array(layer.ring)
        ax.fill(
            coords[:, 0],
            coords[:, 1],
            facecolor=_mpl_color(layer.style.fill),
            edgecolor=_mpl_color(layer.style.line),
            linewidth=1.5,
            label=layer.threshold,
        )

    center_lon, center_lat = view.longitude, view.latitude
    if frame.layers:
        outer = np.array(frame.layers[0].ring)
        center_lon = float(outer[:-1, 0].mean())
        center_lat = float(outer[:-1, 1].mean())
    ax.plot([center_lon], [center_lat], marker="+", color="white", markersize=12)

    cos_lat = math.cos(math.radians(center_lat))
    ax.set_aspect(1 / cos_lat if cos_lat > 1e-6 else "auto")
    ax.tick_params(colors="#94a3b8")
    ax.set_xlabel("longitude (°)", color="#94a3b8")
    ax.set_ylabel("latitude (°)", color="#94a3b8")
    if frame.layers:
        ax.legend(loc="upper right")
    if title:
        ax.set_title(title, color="white")

    return fig


def save_static_overlay(
    frame: OverlayFrame,
    result: SimulationResult | None = None,
    output_path: Path | None = None,
) -> Path:
    """Save the overlay rings as a PNG file.

    Args:
        frame: Overlay frame to draw.
        result: Simulation result used for the title and the default filename.
        output_path: Destination path. Auto-generated under results/ if None.

    Returns:
        Path to the saved file.
    """
    title = ""
    if result is not None:
        title = f"{result.regime}, {result.energy_kt:.1f} kt TNT"
    if output_path is None:
        view = frame.view_state
        filename = f"impact__{view.latitude:.4f}_{view.longitude:.4f}.png"
        output_path = _ROOT / "results" / filename

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig = render_static_overlay(frame, title=title)
    fig.savefig(output_path, facecolor=fig.get_facecolor())
    plt.close(fig)
    return output_path


def save_geojson(frame: OverlayFrame, output_path: Path) -> Path:
    """Write the frame's rings as a GeoJSON FeatureCollection."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(frame.to_geojson(), indent=2), encoding="utf-8")
    return output_path
