"""Plotly map overlay renderer.

Draws the overlay frame as filled polygons on a transparent plotly map that
mirrors the view state. The figure is static (no drag, no scroll zoom): it is
stacked over the interactive folium map, which keeps every pointer event.
"""

import plotly.graph_objects as go

from meteorguard.overlay import RGBA, OverlayFrame

# Empty maplibre style: no basemap, only the overlay traces.
_EMPTY_STYLE = {"version": 8, "sources": {}, "layers": []}


def _rgba(color: RGBA) -> str:
    r, g, b, a = color
    return f"rgba({r},{g},{b},{a / 255:.3f})"


def render_overlay_figure(frame: OverlayFrame, height: int = 560) -> go.Figure:
    """Render an OverlayFrame as a non-interactive plotly map figure.

    Args:
        frame: Overlay layers plus the view state to mirror.
        height: Figure height in pixels; must match the folium map below it.

    Returns:
        Plotly Figure object with gestures disabled.
    """
    traces = []
    for layer in frame.layers:
        lons = [v[0] for v in layer.ring]
        lats = [v[1] for v in layer.ring]
        traces.append(
            go.Scattermap(
                lon=lons,
                lat=lats,
                mode="lines",
                fill="toself",
                fillcolor=_rgba(layer.style.fill),
                line=dict(color=_rgba(layer.style.line), width=2),
                hoverinfo="skip",
                name=layer.id,
            )
        )

    view = frame.view_state
    fig = go.Figure(data=traces)
    fig.update_layout(
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        showlegend=False,
        margin=dict(l=0, r=0, t=0, b=0),
        height=height,
        dragmode=False,
        map=dict(
            style=_EMPTY_STYLE,
            center=dict(lon=view.longitude, lat=view.latitude),
            zoom=view.zoom,
            bearing=view.bearing,
            pitch=view.pitch,
        ),
    )

    # staticPlot drops every gesture handler; st.plotly_chart needs the same config
    fig._config = {  # type: ignore[attr-defined]
        "staticPlot": frame.interactive is False,
        "scrollZoom": False,
        "displayModeBar": False,
    }

    return fig
