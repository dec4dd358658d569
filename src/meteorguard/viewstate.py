"""Single owner of the map camera pose and the chosen entry point.

Write authority:
  - viewport fields (longitude, latitude, zoom, bearing, pitch): the
    interactive map adapter's move handler, through set()
  - entry point: the interactive map adapter's click handler, through
    set_entry_point()
  - longitude/latitude during a recenter: the store's own eased transition

Everyone else only reads and subscribes.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from meteorguard.models import GeoPoint, ViewState

log = logging.getLogger(__name__)

EASE_DURATION_S = 0.6

ViewListener = Callable[[ViewState], None]
EntryListener = Callable[[GeoPoint], None]


def ease_in_out_cubic(t: float) -> float:
    t = min(max(t, 0.0), 1.0)
    if t < 0.5:
        return 4 * t * t * t
    return 1 - (-2 * t + 2) ** 3 / 2


def _wrap_lon(lon: float) -> float:
    if -180.0 <= lon <= 180.0:
        return lon
    return ((lon + 180.0) % 360.0) - 180.0


@dataclass(frozen=True)
class Transition:
    """Eased move of the geographic fields from start to target."""

    start: GeoPoint
    target: GeoPoint
    started_at: float
    duration_s: float

    def position(self, now: float) -> tuple[float, float, bool]:
        """Return (longitude, latitude, finished) at time ``now``."""
        if self.duration_s <= 0:
            return self.target.longitude, self.target.latitude, True
        progress = (now - self.started_at) / self.duration_s
        if progress >= 1.0:
            return self.target.longitude, self.target.latitude, True
        k = ease_in_out_cubic(progress)
        # Shortest way around the antimeridian
        d_lon = ((self.target.longitude - self.start.longitude + 180.0) % 360.0) - 180.0
        lon = _wrap_lon(self.start.longitude + d_lon * k)
        lat = self.start.latitude + (self.target.latitude - self.start.latitude) * k
        return lon, lat, False


class ViewStateStore:
    """Holds exactly one ViewState and one entry point, with observer semantics."""

    def __init__(
        self,
        initial: ViewState,
        entry_point: GeoPoint | None = None,
        clock: Callable[[], float] = time.monotonic,
        ease_duration_s: float = EASE_DURATION_S,
    ) -> None:
        self._view = initial
        self._entry = entry_point or GeoPoint(initial.longitude, initial.latitude)
        self._clock = clock
        self.ease_duration_s = ease_duration_s
        self._transition: Transition | None = None
        self._listeners: list[ViewListener] = []
        self._entry_listeners: list[EntryListener] = []

    @property
    def view_state(self) -> ViewState:
        return self._view

    @property
    def entry_point(self) -> GeoPoint:
        return self._entry

    @property
    def in_transition(self) -> bool:
        return self._transition is not None

    def subscribe(self, listener: ViewListener) -> Callable[[], None]:
        """Register a view state listener. Returns the matching unsubscribe callable."""
        self._listeners.append(listener)
        return lambda: self._remove(self._listeners, listener)

    def subscribe_entry(self, listener: EntryListener) -> Callable[[], None]:
        self._entry_listeners.append(listener)
        return lambda: self._remove(self._entry_listeners, listener)

    @staticmethod
    def _remove(listeners: list, listener: Callable) -> None:
        if listener in listeners:
            listeners.remove(listener)

    def set(self, **partial: float) -> None:
        """Merge the given fields into the current view state.

        A geographic write (longitude or latitude) is a user gesture and
        cancels a running recenter transition.
        """
        if self._transition is not None and ({"longitude", "latitude"} & partial.keys()):
            log.debug("gesture interrupted recenter toward %s", self._transition.target)
            self._transition = None
        self._apply(self._view.merged(**partial))

    def set_entry_point(self, point: GeoPoint) -> None:
        """Choose a new entry point and start easing the camera toward it."""
        self._entry = point
        start = GeoPoint(self._view.longitude, self._view.latitude)
        self._transition = Transition(
            start=start,
            target=point,
            started_at=self._clock(),
            duration_s=self.ease_duration_s,
        )
        log.debug("entry point set to %.4f, %.4f", point.latitude, point.longitude)
        for listener in list(self._entry_listeners):
            listener(point)
        self.tick()

    def tick(self) -> bool:
        """Advance a running transition. Returns True while it is still running."""
        transition = self._transition
        if transition is None:
            return False
        lon, lat, finished = transition.position(self._clock())
        if finished:
            self._transition = None
        self._apply(self._view.merged(longitude=lon, latitude=lat))
        return not finished

    def settle(self) -> None:
        """Land a running transition on its target immediately."""
        transition = self._transition
        if transition is None:
            return
        self._transition = None
        self._apply(
            self._view.merged(
                longitude=transition.target.longitude,
                latitude=transition.target.latitude,
            )
        )

    def _apply(self, view: ViewState) -> None:
        if view == self._view:
            return
        self._view = view
        for listener in list(self._listeners):
            listener(view)
