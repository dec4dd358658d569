"""One operator session: store, map adapter, overlay renderer and orchestrator wired together."""

import time
from collections.abc import Callable
from dataclasses import dataclass

from meteorguard.config import Settings
from meteorguard.mapview import InteractiveMapAdapter, MapWidget
from meteorguard.models import (
    DEFAULT_ENTRY,
    GeoPoint,
    ImpactForm,
    SimulationResult,
    ViewState,
)
from meteorguard.orchestrator import ImpactBackend, RequestOrchestrator, RequestPipeline
from meteorguard.overlay import OverlayRenderer
from meteorguard.viewstate import ViewStateStore


@dataclass(frozen=True)
class Highlights:
    """Display strings for the simulation summary card."""

    regime: str
    energy: str  # "12.3 kt TNT"
    radius_1psi: str  # "2 km"
    radius_5psi: str


def highlights(result: SimulationResult) -> Highlights:
    radii = result.overpressure_radii_m
    return Highlights(
        regime=result.regime,
        energy=f"{result.energy_kt:.1f} kt TNT",
        radius_1psi=f"{round(radii['1psi'] / 1000)} km",
        radius_5psi=f"{round(radii['5psi'] / 1000)} km",
    )


def format_target(point: GeoPoint, digits: int = 4) -> str:
    """'lat, lon' as shown next to the form."""
    return f"{point.latitude:.{digits}f}, {point.longitude:.{digits}f}"


class ImpactConsole:
    """Owns the objects of one session and the subscriptions between them.

    The simulation pipeline feeds the overlay renderer; the map adapter feeds
    the store; nothing feeds the map adapter except the store's entry point.
    """

    def __init__(
        self,
        widget: MapWidget,
        backend: ImpactBackend,
        settings: Settings | None = None,
        entry: GeoPoint | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        settings = settings or Settings()
        entry = entry or GeoPoint(*DEFAULT_ENTRY)
        self.settings = settings
        self.form = ImpactForm()
        self.store = ViewStateStore(
            ViewState.centered_on(entry),
            entry_point=entry,
            clock=clock,
            ease_duration_s=settings.ease_duration_s,
        )
        self.orchestrator = RequestOrchestrator(backend)
        self.renderer = OverlayRenderer(self.store, polar_limit_deg=settings.polar_limit_deg)
        self._unsubscribe = self.orchestrator.simulation.subscribe(self._feed_overlay)
        self.map = InteractiveMapAdapter(widget, self.store)

    def open(self) -> "ImpactConsole":
        self.map.open()
        return self

    def close(self) -> None:
        try:
            self.map.close()
        finally:
            self._unsubscribe()
            self.renderer.detach()

    def __enter__(self) -> "ImpactConsole":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    async def simulate(self) -> None:
        """Run the current form at the current entry point and wait for it to settle."""
        await self.orchestrator.run_simulation(self.form, self.store.entry_point)

    async def refresh_candidates(self, pha_only: bool = True, limit: int = 6) -> None:
        await self.orchestrator.refresh_candidates(pha_only, limit)

    def _feed_overlay(self, pipeline: RequestPipeline[SimulationResult | None]) -> None:
        self.renderer.show(pipeline.value)
