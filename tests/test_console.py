import asyncio

from conftest import FakeBackend, FakeMapWidget, InstantBackend, make_result
from meteorguard.config import Settings
from meteorguard.console import ImpactConsole, format_target, highlights
from meteorguard.geometry import flat_distance_m
from meteorguard.models import GeoPoint


def test_click_then_simulate_draws_rings_at_new_entry(clock):
    widget = FakeMapWidget()
    backend = InstantBackend()
    with ImpactConsole(widget, backend, clock=clock) as console:
        widget.click(2.3522, 48.8566)
        asyncio.run(console.simulate())

        frame = console.renderer.frame()
        assert (backend.calls[0].lon, backend.calls[0].lat) == (2.3522, 48.8566)
        assert [layer.threshold for layer in frame.layers] == ["1psi", "5psi"]
        outer, inner = frame.layers
        center = (2.3522, 48.8566)
        assert min(flat_distance_m(center, v) for v in outer.ring) > max(
            flat_distance_m(center, v) for v in inner.ring
        )
    assert widget.disposed == 1


def test_failed_simulation_keeps_overlay(clock):
    widget = FakeMapWidget()
    backend = InstantBackend()
    with ImpactConsole(widget, backend, clock=clock) as console:
        asyncio.run(console.simulate())
        layers = console.renderer.frame().layers

        backend.failure = "Model offline"
        asyncio.run(console.simulate())

        assert console.orchestrator.simulation.error_message == "Model offline"
        assert console.renderer.frame().layers == layers


def test_race_through_console_keeps_latest_request(clock):
    widget = FakeMapWidget()
    backend = FakeBackend()

    async def scenario(console):
        first = console.orchestrator.run_simulation(console.form, console.store.entry_point)
        widget.click(2.3522, 48.8566)
        second = console.orchestrator.run_simulation(console.form, console.store.entry_point)
        await backend.wait_for(simulations=2)
        (params_a, future_a), (params_b, future_b) = backend.simulations
        backend.succeed(future_b, make_result(lon=params_b.lon, lat=params_b.lat))
        await second
        backend.succeed(future_a, make_result(lon=params_a.lon, lat=params_a.lat))
        await first

    with ImpactConsole(widget, backend, clock=clock) as console:
        asyncio.run(scenario(console))
        assert console.renderer.result.center == GeoPoint(2.3522, 48.8566)
        assert console.orchestrator.simulation.stale_discarded == 1


def test_settings_flow_into_components(clock):
    settings = Settings(ease_duration_s=1.5, polar_limit_deg=70.0)
    console = ImpactConsole(FakeMapWidget(), InstantBackend(), settings=settings, clock=clock)

    assert console.store.ease_duration_s == 1.5
    assert console.renderer.polar_limit_deg == 70.0
    assert console.store.entry_point == GeoPoint(77.5946, 12.9716)
    assert console.store.view_state.zoom == 8.0


def test_highlights_formatting():
    summary = highlights(make_result(one_psi=2000.0, five_psi=800.0, energy_kt=48.26))

    assert summary.energy == "48.3 kt TNT"
    assert summary.radius_1psi == "2 km"
    assert summary.radius_5psi == "1 km"
    assert summary.regime == "airburst"


def test_format_target():
    assert format_target(GeoPoint(77.5946, 12.9716)) == "12.9716, 77.5946"
    assert format_target(GeoPoint(77.5946, 12.9716), digits=3) == "12.972, 77.595"
