import asyncio

import matplotlib
import pytest

matplotlib.use("Agg")

from meteorguard.errors import RemoteCallFailure  # noqa: E402
from meteorguard.models import (  # noqa: E402
    GeoPoint,
    HazardCandidate,
    SimulationParams,
    SimulationResult,
    ViewState,
)


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeMapWidget:
    """In-memory MapWidget: tests fire gestures by hand."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.fail_on = fail_on
        self.initialized_with: ViewState | None = None
        self.click_handler = None
        self.move_handler = None
        self.recenters: list[tuple[float, float, float]] = []
        self.disposed = 0

    def _maybe_fail(self, step: str) -> None:
        if self.fail_on == step:
            raise RuntimeError(f"widget failed during {step}")

    def initialize(self, view_state: ViewState) -> None:
        self._maybe_fail("initialize")
        self.initialized_with = view_state

    def on_click(self, handler) -> None:
        if handler is not None:
            self._maybe_fail("on_click")
        self.click_handler = handler

    def on_move(self, handler) -> None:
        if handler is not None:
            self._maybe_fail("on_move")
        self.move_handler = handler

    def recenter(self, longitude: float, latitude: float, duration_s: float) -> None:
        self.recenters.append((longitude, latitude, duration_s))

    def dispose(self) -> None:
        self.disposed += 1

    def click(self, lng: float, lat: float) -> None:
        self.click_handler(lng, lat)

    def move(self, **pose: float) -> None:
        self.move_handler(ViewState(**pose))


def make_result(
    lon: float = 77.5946,
    lat: float = 12.9716,
    one_psi: float = 2000.0,
    five_psi: float = 800.0,
    regime: str = "airburst",
    energy_kt: float = 12.5,
) -> SimulationResult:
    return SimulationResult(
        regime=regime,
        energy_kt=energy_kt,
        center=GeoPoint(lon, lat),
        overpressure_radii_m={"1psi": one_psi, "5psi": five_psi},
    )


class FakeBackend:
    """Backend double whose calls stay pending until the test resolves them."""

    def __init__(self) -> None:
        self.simulations: list[tuple[SimulationParams, asyncio.Future]] = []
        self.searches: list[tuple[tuple[bool, int], asyncio.Future]] = []

    async def simulate(self, params: SimulationParams) -> SimulationResult:
        future = asyncio.get_running_loop().create_future()
        self.simulations.append((params, future))
        return await future

    async def search_hazard_candidates(
        self, pha_only: bool, limit: int
    ) -> tuple[HazardCandidate, ...]:
        future = asyncio.get_running_loop().create_future()
        self.searches.append(((pha_only, limit), future))
        return await future

    async def wait_for(self, simulations: int = 0, searches: int = 0) -> None:
        for _ in range(100):
            if len(self.simulations) >= simulations and len(self.searches) >= searches:
                return
            await asyncio.sleep(0)
        raise AssertionError("backend calls never arrived")

    @staticmethod
    def succeed(future: asyncio.Future, value) -> None:
        future.set_result(value)

    @staticmethod
    def fail(future: asyncio.Future, message: str) -> None:
        future.set_exception(RemoteCallFailure(message))


class InstantBackend:
    """Backend double that answers immediately."""

    def __init__(self, result: SimulationResult | None = None, failure: str | None = None) -> None:
        self.result = result
        self.failure = failure
        self.calls: list[SimulationParams] = []

    async def simulate(self, params: SimulationParams) -> SimulationResult:
        self.calls.append(params)
        if self.failure is not None:
            raise RemoteCallFailure(self.failure)
        return self.result or make_result(lon=params.lon, lat=params.lat)

    async def search_hazard_candidates(self, pha_only: bool, limit: int):
        return ()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def widget() -> FakeMapWidget:
    return FakeMapWidget()
