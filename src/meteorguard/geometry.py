"""Geodesic circle generator — scalar radius to a closed polygon ring.

The neighbourhood of the center is treated as locally flat (equirectangular
approximation on a sphere of radius R). There is no great-circle correction,
so accuracy degrades for radii beyond a few tens of kilometres; overpressure
radii stay well below that. Near the poles cos(lat) approaches zero and the
longitude offsets blow up: past ``polar_limit_deg`` a PolarDistortionWarning
is issued and the uncorrected ring is still returned.
"""

import logging
import math
import operator
import warnings

import numpy as np

from meteorguard.errors import InvalidArgument, PolarDistortionWarning
from meteorguard.models import LonLat, Ring

log = logging.getLogger(__name__)

EARTH_RADIUS_M = 6378137.0  # WGS84 equatorial radius
DEFAULT_STEPS = 128
DEFAULT_POLAR_LIMIT_DEG = 85.0


def ring(
    center: LonLat,
    radius_m: float,
    steps: int = DEFAULT_STEPS,
    polar_limit_deg: float = DEFAULT_POLAR_LIMIT_DEG,
) -> Ring:
    """Return a closed ring of ``steps + 1`` (lon, lat) vertices around center.

    Args:
        center: (longitude, latitude) in decimal degrees.
        radius_m: Ring radius in metres. 0 yields a degenerate ring of
            coincident points.
        steps: Number of distinct vertices (at least 3).
        polar_limit_deg: |latitude| beyond which a PolarDistortionWarning is issued.

    Returns:
        Tuple of (lon, lat) vertices; the first vertex is repeated as the last.

    Raises:
        InvalidArgument: steps < 3, or a negative / non-finite radius.
    """
    try:
        steps = operator.index(steps)
    except TypeError:
        raise InvalidArgument(f"steps must be an integer, got {steps!r}") from None
    if steps < 3:
        raise InvalidArgument(f"a ring needs at least 3 steps, got {steps!r}")
    if not math.isfinite(radius_m) or radius_m < 0:
        raise InvalidArgument(f"radius must be a finite number >= 0, got {radius_m!r}")

    lon, lat = center
    if abs(lat) > polar_limit_deg:
        log.warning("ring at latitude %.3f exceeds polar limit %.1f", lat, polar_limit_deg)
        warnings.warn(
            f"latitude {lat:.3f} is beyond {polar_limit_deg}°; longitude offsets are distorted",
            PolarDistortionWarning,
            stacklevel=2,
        )

    theta = np.arange(steps) / steps * 2 * np.pi
    dx = radius_m * np.cos(theta)
    dy = radius_m * np.sin(theta)
    d_lon = np.degrees(dx / (EARTH_RADIUS_M * math.cos(math.radians(lat))))
    d_lat = np.degrees(dy / EARTH_RADIUS_M)

    coords: list[LonLat] = [
        (float(lon + a), float(lat + b)) for a, b in zip(d_lon, d_lat)
    ]
    coords.append(coords[0])
    return tuple(coords)


def flat_offset_m(center: LonLat, point: LonLat) -> tuple[float, float]:
    """Inverse of the projection used by ring(): (east, north) offset in metres."""
    lon0, lat0 = center
    lon1, lat1 = point
    dx = math.radians(lon1 - lon0) * EARTH_RADIUS_M * math.cos(math.radians(lat0))
    dy = math.radians(lat1 - lat0) * EARTH_RADIUS_M
    return dx, dy


def flat_distance_m(center: LonLat, point: LonLat) -> float:
    """Distance between center and point under the same flat-earth metric as ring()."""
    return math.hypot(*flat_offset_m(center, point))
