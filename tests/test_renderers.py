import json

import pytest

from conftest import make_result
from meteorguard.models import ViewState
from meteorguard.overlay import OverlayFrame, build_layers
from meteorguard.renderers.plotly_map import render_overlay_figure
from meteorguard.renderers.static import save_geojson, save_static_overlay


@pytest.fixture
def frame():
    return OverlayFrame(
        view_state=ViewState(longitude=77.5946, latitude=12.9716, zoom=9.5, bearing=15),
        layers=build_layers(make_result(), steps=16),
    )


def test_plotly_figure_mirrors_view_state(frame):
    fig = render_overlay_figure(frame, height=480)

    assert len(fig.data) == 2
    assert all(trace.fill == "toself" for trace in fig.data)
    assert [trace.name for trace in fig.data] == ["op-1psi", "op-5psi"]
    assert fig.layout.map.center.lon == 77.5946
    assert fig.layout.map.center.lat == 12.9716
    assert fig.layout.map.zoom == 9.5
    assert fig.layout.map.bearing == 15
    assert fig.layout.height == 480


def test_plotly_figure_is_not_interactive(frame):
    fig = render_overlay_figure(frame)

    assert fig._config["staticPlot"] is True
    assert fig._config["scrollZoom"] is False
    assert fig.layout.dragmode is False


def test_plotly_figure_for_empty_frame():
    empty = OverlayFrame(view_state=ViewState(longitude=0.0, latitude=0.0), layers=())
    assert len(render_overlay_figure(empty).data) == 0


def test_save_static_overlay(frame, tmp_path):
    out = save_static_overlay(frame, make_result(), tmp_path / "png" / "rings.png")

    assert out.exists()
    assert out.read_bytes()[:4] == b"\x89PNG"


def test_save_geojson(frame, tmp_path):
    out = save_geojson(frame, tmp_path / "rings.geojson")

    collection = json.loads(out.read_text(encoding="utf-8"))
    assert collection["type"] == "FeatureCollection"
    assert len(collection["features"]) == 2
