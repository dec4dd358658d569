"""MeteorGuard — Streamlit console for airburst blast radii and hazardous asteroids."""

import asyncio
import dataclasses
import html

import streamlit as st
from dotenv import load_dotenv
from streamlit_folium import st_folium
from streamlit_js_eval import streamlit_js_eval

load_dotenv()

from meteorguard.api import ImpactApiClient  # noqa: E402
from meteorguard.config import Settings, configure_logging  # noqa: E402
from meteorguard.console import ImpactConsole, format_target, highlights  # noqa: E402
from meteorguard.i18n import t  # noqa: E402
from meteorguard.mapview import FoliumMapWidget  # noqa: E402
from meteorguard.models import Composition  # noqa: E402
from meteorguard.renderers.plotly_map import render_overlay_figure  # noqa: E402

_MAP_HEIGHT = 560
_PHA_LIMIT = 6

# --- Language detection (browser-first via streamlit-js-eval) ---
# On the first run the JS call returns None; the rerun triggered by
# streamlit_js_eval fills it in.
if "lang" not in st.session_state:
    _browser_lang: str | None = streamlit_js_eval(
        js_expressions="navigator.language", key="_lang_detect", height=0
    )
    if _browser_lang is not None:
        st.session_state.lang = "ko" if _browser_lang.lower().startswith("ko") else "en"

_lang: str = st.session_state.get("lang", "en")

st.set_page_config(
    page_title=t("page_title", _lang),
    page_icon="☄",
    layout="wide",
    initial_sidebar_state="collapsed",
)

# --- Session state initialization ---
if "settings" not in st.session_state:
    st.session_state.settings = Settings.from_env()
    configure_logging(st.session_state.settings.log_level)
if "console" not in st.session_state:
    _settings: Settings = st.session_state.settings
    st.session_state.widget = FoliumMapWidget(tiles=_settings.map_tiles)
    st.session_state.console = ImpactConsole(
        st.session_state.widget,
        ImpactApiClient(_settings.api_url, timeout=_settings.request_timeout_s),
        settings=_settings,
    ).open()
if "pending" not in st.session_state:
    st.session_state.pending = None
if "form_problems" not in st.session_state:
    st.session_state.form_problems = []

console: ImpactConsole = st.session_state.console
widget: FoliumMapWidget = st.session_state.widget
simulation = console.orchestrator.simulation
candidates = console.orchestrator.candidates
sim_busy = simulation.loading or st.session_state.pending == "simulate"
pha_busy = candidates.loading or st.session_state.pending == "candidates"

# --- Theme CSS: the overlay chart sits on top of the folium map ---
st.markdown(
    """
    <style>
    iframe[src*="streamlit_js_eval"] { display: none !important; }
    html, body, [data-testid="stAppViewContainer"], [data-testid="stMain"] {
        background-color: #0b1120 !important;
        color: #e2e8f0;
    }
    [data-testid="stHeader"], [data-testid="stToolbar"] { display: none !important; }
    .eyebrow { color: #f97316; text-transform: uppercase; letter-spacing: 0.12em;
               font-size: 0.75rem; margin-bottom: 0; }
    .subtitle { color: #94a3b8; font-size: 0.9rem; }
    .error { color: #fca5a5; border: 1px solid #ef4444; border-radius: 6px;
             padding: 0.5rem 0.75rem; background: rgba(239, 68, 68, 0.1); }
    .hint, .empty { color: #64748b; font-size: 0.85rem; }
    .badge { float: right; font-size: 0.75rem; color: #fbbf24; }
    .pha-row { display: flex; justify-content: space-between; padding: 0.4rem 0;
               border-bottom: 1px solid rgba(148, 163, 184, 0.15); }
    .pha-row p { margin: 0; color: #94a3b8; font-size: 0.8rem; }
    .pha-meta { text-align: right; font-size: 0.8rem; color: #cbd5e1; }
    .st-key-map_frame { position: relative; }
    .st-key-map_frame [data-testid="stElementContainer"]:has([data-testid="stPlotlyChart"]) {
        position: absolute !important;
        top: 0; left: 0; right: 0;
        z-index: 5;
        pointer-events: none !important;
    }
    .map-overlay { display: flex; gap: 2rem; color: #cbd5e1; font-size: 0.85rem; }
    .map-label { color: #64748b; margin: 0; }
    </style>
    """,
    unsafe_allow_html=True,
)

panel, main = st.columns([1, 2])

# --- Left panel ---
with panel:
    st.markdown(
        f"<p class='eyebrow'>{t('eyebrow', _lang)}</p>"
        f"<h1>{t('page_title', _lang)}</h1>"
        f"<p class='subtitle'>{t('subtitle', _lang)}</p>",
        unsafe_allow_html=True,
    )

    with st.container(border=True):
        st.subheader(t("card_inputs", _lang))
        form = console.form
        c1, c2 = st.columns(2)
        with c1:
            diameter = st.number_input(
                t("label_diameter", _lang), min_value=2.0, value=float(form.diameter_m)
            )
            angle = st.number_input(
                t("label_angle", _lang), min_value=5.0, max_value=89.0, value=float(form.angle_deg)
            )
            compositions = [c.value for c in Composition]
            composition = st.selectbox(
                t("label_composition", _lang),
                compositions,
                index=compositions.index(form.composition),
                format_func=lambda v: t(f"composition_{v}", _lang),
            )
        with c2:
            velocity = st.number_input(
                t("label_velocity", _lang), min_value=1.0, value=float(form.velocity_kms)
            )
            density = st.number_input(
                t("label_density", _lang), min_value=100.0, value=float(form.density_kg_m3)
            )
            st.text_input(
                t("label_target", _lang),
                value=format_target(console.store.entry_point),
                disabled=True,
            )
        console.form = dataclasses.replace(
            form,
            diameter_m=diameter,
            density_kg_m3=density,
            velocity_kms=velocity,
            angle_deg=angle,
            composition=composition,
        )

        if st.button(
            t("btn_running", _lang) if sim_busy else t("btn_run", _lang),
            key="run_btn",
            disabled=sim_busy,
            use_container_width=True,
        ):
            st.session_state.form_problems = console.form.problems()
            if not st.session_state.form_problems:
                st.session_state.pending = "simulate"
            st.rerun()

        for problem in st.session_state.form_problems:
            st.markdown(f"<p class='error'>{html.escape(problem)}</p>", unsafe_allow_html=True)
        if simulation.error_message is not None:
            st.markdown(
                f"<p class='error'>{html.escape(simulation.error_message)}</p>",
                unsafe_allow_html=True,
            )
        st.markdown(f"<p class='hint'>{t('hint_click', _lang)}</p>", unsafe_allow_html=True)

    with st.container(border=True):
        result = console.orchestrator.simulation_result
        badge = t("badge_updated", _lang) if result else t("badge_waiting", _lang)
        st.markdown(
            f"<span class='badge'>{badge}</span>", unsafe_allow_html=True
        )
        st.subheader(t("card_highlights", _lang))
        if result is not None:
            summary = highlights(result)
            s1, s2 = st.columns(2)
            s1.metric(t("stat_regime", _lang), summary.regime)
            s2.metric(t("stat_energy", _lang), summary.energy)
            s1.metric(t("stat_1psi", _lang), summary.radius_1psi)
            s2.metric(t("stat_5psi", _lang), summary.radius_5psi)
        else:
            st.markdown(f"<p class='empty'>{t('empty_highlights', _lang)}</p>", unsafe_allow_html=True)

    with st.container(border=True):
        h1, h2 = st.columns([3, 2])
        h1.subheader(t("card_pha", _lang))
        with h2:
            if st.button(
                t("btn_fetching", _lang) if pha_busy else t("btn_refresh", _lang),
                key="pha_btn",
                disabled=pha_busy,
                use_container_width=True,
            ):
                st.session_state.pending = "candidates"
                st.rerun()
        if candidates.error_message is not None:
            st.markdown(
                f"<p class='error'>{html.escape(candidates.error_message)}</p>",
                unsafe_allow_html=True,
            )
        rows = console.orchestrator.hazard_candidates
        if rows:
            st.markdown(
                "".join(
                    f"<div class='pha-row'><div><strong>{html.escape(row.designation)}</strong>"
                    f"<p>{html.escape(row.display_name)}</p></div>"
                    f"<div class='pha-meta'><span>Ø {row.display_diameter} km</span><br>"
                    f"<span>PHA {html.escape(row.pha)}</span></div></div>"
                    for row in rows
                ),
                unsafe_allow_html=True,
            )
        else:
            st.markdown(f"<p class='empty'>{t('empty_pha', _lang)}</p>", unsafe_allow_html=True)

# --- Map frame: interactive folium map with the static overlay stacked on top ---
with main:
    with st.container(key="map_frame"):
        entry_before = console.store.entry_point
        event = st_folium(
            widget.map,
            key="impact_map",
            height=_MAP_HEIGHT,
            use_container_width=True,
            **widget.render_kwargs(),
        )
        widget.dispatch(event)
        # Streamlit redraws once per rerun, so the recenter lands immediately
        console.store.settle()
        if console.store.entry_point != entry_before:
            st.rerun()

        fig = render_overlay_figure(console.renderer.frame(), height=_MAP_HEIGHT)
        st.plotly_chart(
            fig,
            use_container_width=True,
            config=fig._config,  # type: ignore[attr-defined]
            key="overlay",
        )

    view = console.store.view_state
    entry = console.store.entry_point
    st.markdown(
        f"<div class='map-overlay'>"
        f"<div><p class='map-label'>{t('map_entry', _lang)}</p>"
        f"<strong>{entry.latitude:.3f}°, {entry.longitude:.3f}°</strong></div>"
        f"<div><p class='map-label'>{t('map_zoom', _lang)}</p>"
        f"<strong>{view.zoom:.2f}x</strong></div></div>",
        unsafe_allow_html=True,
    )

# --- Pending request: rendered disabled above, run now, then redraw ---
if st.session_state.pending == "simulate":
    st.session_state.pending = None
    with st.spinner(t("btn_running", _lang)):
        asyncio.run(console.simulate())
    st.rerun()
elif st.session_state.pending == "candidates":
    st.session_state.pending = None
    with st.spinner(t("btn_fetching", _lang)):
        asyncio.run(console.refresh_candidates(pha_only=True, limit=_PHA_LIMIT))
    st.rerun()
