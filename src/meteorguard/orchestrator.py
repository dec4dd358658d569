"""Request orchestration — two independent, token-gated asyncio pipelines.

Each pipeline is a three-state machine::

    Idle → Loading → Idle   (value replaced)
                   → Error  (value kept)

Any exception from the call ends in Error; only a RemoteCallFailure
contributes its message, everything else shows the pipeline's fallback.

Every start() issues a new token. When a call settles, its outcome is
applied only if its token is still the latest one for that pipeline;
otherwise it is dropped and counted in ``stale_discarded``. This keeps the
stored value tied to the most recently issued request regardless of the
order in which responses arrive.
"""

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, Protocol, TypeVar

from meteorguard.errors import RemoteCallFailure
from meteorguard.models import (
    IDLE,
    LOADING,
    Error,
    GeoPoint,
    HazardCandidate,
    ImpactForm,
    RequestStatus,
    SimulationParams,
    SimulationResult,
)

log = logging.getLogger(__name__)

T = TypeVar("T")

SIMULATION_FALLBACK = "Simulation failed."
SEARCH_FALLBACK = "Search failed."


class ImpactBackend(Protocol):
    async def simulate(self, params: SimulationParams) -> SimulationResult: ...

    async def search_hazard_candidates(
        self, pha_only: bool, limit: int
    ) -> tuple[HazardCandidate, ...]: ...


class RequestPipeline(Generic[T]):
    """One user-triggered remote operation with its own status and value."""

    def __init__(self, name: str, fallback_message: str, initial: T) -> None:
        self.name = name
        self.fallback_message = fallback_message
        self.status: RequestStatus = IDLE
        self.value: T = initial
        self.stale_discarded = 0
        self._tokens = itertools.count(1)
        self._latest = 0
        self._listeners: list[Callable[["RequestPipeline[T]"], None]] = []

    @property
    def loading(self) -> bool:
        return self.status == LOADING

    @property
    def error_message(self) -> str | None:
        return self.status.message if isinstance(self.status, Error) else None

    def subscribe(self, listener: Callable[["RequestPipeline[T]"], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self, call: Callable[[], Awaitable[T]]) -> "asyncio.Task[None]":
        """Enter Loading now and run ``call`` as a task on the running loop.

        Must be called from inside a running event loop.
        """
        loop = asyncio.get_running_loop()
        token = next(self._tokens)
        self._latest = token
        log.info("%s: request #%d started", self.name, token)
        self._transition(LOADING)
        return loop.create_task(self._settle(token, call))

    async def _settle(self, token: int, call: Callable[[], Awaitable[T]]) -> None:
        try:
            value = await call()
        except RemoteCallFailure as exc:
            if self._is_stale(token):
                return
            log.warning("%s: request #%d failed: %s", self.name, token, exc.message)
            self._transition(Error(exc.message or self.fallback_message))
            return
        except asyncio.CancelledError:
            if not self._is_stale(token):
                log.warning("%s: request #%d cancelled", self.name, token)
                self._transition(Error(self.fallback_message))
            raise
        except Exception:
            if self._is_stale(token):
                return
            log.exception("%s: request #%d failed unexpectedly", self.name, token)
            self._transition(Error(self.fallback_message))
            return
        if self._is_stale(token):
            return
        log.info("%s: request #%d succeeded", self.name, token)
        self.value = value
        self._transition(IDLE)

    def _is_stale(self, token: int) -> bool:
        if token == self._latest:
            return False
        self.stale_discarded += 1
        log.debug(
            "%s: discarded response #%d (latest is #%d)", self.name, token, self._latest
        )
        return True

    def _transition(self, status: RequestStatus) -> None:
        self.status = status
        for listener in list(self._listeners):
            listener(self)


class RequestOrchestrator:
    """Drives the simulation and candidate-search pipelines against a backend."""

    def __init__(self, backend: ImpactBackend) -> None:
        self.backend = backend
        self.simulation: RequestPipeline[SimulationResult | None] = RequestPipeline(
            "simulation", SIMULATION_FALLBACK, None
        )
        self.candidates: RequestPipeline[tuple[HazardCandidate, ...]] = RequestPipeline(
            "candidates", SEARCH_FALLBACK, ()
        )

    @property
    def simulation_result(self) -> SimulationResult | None:
        return self.simulation.value

    @property
    def hazard_candidates(self) -> tuple[HazardCandidate, ...]:
        return self.candidates.value

    def run_simulation(self, form: ImpactForm, entry: GeoPoint) -> "asyncio.Task[None]":
        """Simulate ``form`` at ``entry``.

        Raises:
            InvalidArgument: the form does not describe a valid simulation.
                Raised before the pipeline changes state.
        """
        params = SimulationParams.from_form(form, entry)
        return self.simulation.start(lambda: self.backend.simulate(params))

    def refresh_candidates(self, pha_only: bool = True, limit: int = 6) -> "asyncio.Task[None]":
        return self.candidates.start(
            lambda: self.backend.search_hazard_candidates(pha_only, limit)
        )
