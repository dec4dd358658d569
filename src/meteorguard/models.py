"""Validated value types for map state and the backend wire format."""

import dataclasses
import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from meteorguard.errors import InvalidArgument, MalformedPayload

LonLat = tuple[float, float]
Ring = tuple[LonLat, ...]

# Threshold labels the backend uses as keys of overpressure_radii_m.
# Order is far-to-near, which is also the overlay draw order.
OVERPRESSURE_THRESHOLDS: tuple[str, ...] = ("1psi", "5psi")

DEFAULT_ENTRY: LonLat = (77.5946, 12.9716)
DEFAULT_ZOOM = 8.0


def _finite(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


@dataclass(frozen=True)
class GeoPoint:
    """A valid geographic position in decimal degrees."""

    longitude: float  # [-180, 180]
    latitude: float  # [-90, 90]

    def __post_init__(self) -> None:
        if not (_finite(self.longitude) and _finite(self.latitude)):
            raise InvalidArgument(
                f"coordinates must be finite numbers: {self.longitude!r}, {self.latitude!r}"
            )
        if not -90.0 <= self.latitude <= 90.0:
            raise InvalidArgument(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise InvalidArgument(f"longitude out of range: {self.longitude}")

    @classmethod
    def from_click(cls, lng: float, lat: float) -> "GeoPoint":
        """Build a point from a map click, wrapping longitudes of a world-wrapped map."""
        if _finite(lng) and not -180.0 <= lng <= 180.0:
            lng = ((lng + 180.0) % 360.0) - 180.0
        return cls(longitude=lng, latitude=lat)

    def as_lonlat(self) -> LonLat:
        return (self.longitude, self.latitude)


@dataclass(frozen=True)
class ViewState:
    """Camera pose of a map. Zoom follows the 512 px tile convention (maplibre)."""

    longitude: float
    latitude: float
    zoom: float = DEFAULT_ZOOM
    bearing: float = 0.0
    pitch: float = 0.0

    @classmethod
    def centered_on(cls, point: GeoPoint, zoom: float = DEFAULT_ZOOM) -> "ViewState":
        return cls(longitude=point.longitude, latitude=point.latitude, zoom=zoom)

    def merged(self, **changes: float) -> "ViewState":
        """Return a copy with the given fields replaced."""
        unknown = set(changes) - {f.name for f in dataclasses.fields(self)}
        if unknown:
            raise InvalidArgument(f"unknown view state fields: {sorted(unknown)}")
        for name, value in changes.items():
            if not _finite(value):
                raise InvalidArgument(f"view state field {name} must be finite: {value!r}")
        return dataclasses.replace(self, **changes)


class Composition(str, Enum):
    STONY = "stony"
    IRON = "iron"
    COMETARY = "cometary"

    @classmethod
    def parse(cls, value: "str | Composition") -> "Composition":
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(c.value for c in cls)
            raise InvalidArgument(
                f"unknown composition {value!r} (expected one of: {choices})"
            ) from None


@dataclass(frozen=True)
class ImpactForm:
    """Raw simulation form values. Not yet validated."""

    diameter_m: float = 140.0
    density_kg_m3: float = 3000.0
    velocity_kms: float = 19.0
    angle_deg: float = 30.0
    composition: str = Composition.STONY.value

    def problems(self) -> list[str]:
        """Human-readable reasons why these values cannot be simulated."""
        found: list[str] = []
        for label, value in (
            ("Diameter", self.diameter_m),
            ("Density", self.density_kg_m3),
            ("Velocity", self.velocity_kms),
        ):
            if not _finite(value) or value <= 0:
                found.append(f"{label} must be a positive number.")
        if not _finite(self.angle_deg) or not 0 < self.angle_deg < 90:
            found.append("Entry angle must be between 0 and 90 degrees.")
        if self.composition not in {c.value for c in Composition}:
            found.append(f"Unknown composition: {self.composition}.")
        return found


@dataclass(frozen=True)
class SimulationParams:
    """Request body for one simulation. Built fresh for every request."""

    diameter_m: float
    density_kg_m3: float
    velocity_kms: float
    angle_deg: float
    composition: Composition
    lat: float
    lon: float

    def __post_init__(self) -> None:
        for name in ("diameter_m", "density_kg_m3", "velocity_kms"):
            value = getattr(self, name)
            if not _finite(value) or value <= 0:
                raise InvalidArgument(f"{name} must be > 0, got {value!r}")
        if not _finite(self.angle_deg) or not 0 < self.angle_deg < 90:
            raise InvalidArgument(f"angle_deg must be in (0, 90), got {self.angle_deg!r}")
        if not isinstance(self.composition, Composition):
            raise InvalidArgument(f"composition must be a Composition, got {self.composition!r}")
        # Reuses the coordinate checks
        GeoPoint(longitude=self.lon, latitude=self.lat)

    @classmethod
    def from_form(cls, form: ImpactForm, entry: GeoPoint) -> "SimulationParams":
        return cls(
            diameter_m=form.diameter_m,
            density_kg_m3=form.density_kg_m3,
            velocity_kms=form.velocity_kms,
            angle_deg=form.angle_deg,
            composition=Composition.parse(form.composition),
            lat=entry.latitude,
            lon=entry.longitude,
        )

    def to_json(self) -> dict[str, Any]:
        body = dataclasses.asdict(self)
        body["composition"] = self.composition.value
        return body


def _require(payload: Mapping[str, Any], key: str) -> Any:
    if key not in payload:
        raise MalformedPayload(f"missing field {key!r}")
    return payload[key]


def _require_either(payload: Mapping[str, Any], key: str, short: str) -> tuple[str, Any]:
    """Value under the full field name, else under the backend's short name."""
    if key in payload:
        return key, payload[key]
    if short in payload:
        return short, payload[short]
    raise MalformedPayload(f"missing field {key!r} (or {short!r})")


def _number(value: Any, field: str) -> float:
    if not _finite(value):
        raise MalformedPayload(f"field {field!r} must be a finite number, got {value!r}")
    return float(value)


def _optional_number(value: Any, field: str) -> float | None:
    if value is None:
        return None
    # SBDB serializes physical parameters as strings
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            raise MalformedPayload(f"field {field!r} is not numeric: {value!r}") from None
    return _number(value, field)


@dataclass(frozen=True)
class SimulationResult:
    """Backend answer for one simulation. Replaced wholesale, never merged."""

    regime: str  # Atmospheric regime label ("airburst", "surface impact", ...)
    energy_kt: float  # Energy yield in kilotons of TNT
    center: GeoPoint  # Burst center
    overpressure_radii_m: Mapping[str, float]  # Threshold label → radius in metres

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "overpressure_radii_m", MappingProxyType(dict(self.overpressure_radii_m))
        )

    @classmethod
    def from_json(cls, payload: Any) -> "SimulationResult":
        """Decode the backend body. The energy may arrive as ``energy_kt`` or ``e_kt``."""
        if not isinstance(payload, Mapping):
            raise MalformedPayload(f"simulation result must be an object, got {type(payload).__name__}")
        regime = _require(payload, "regime")
        if not isinstance(regime, str):
            raise MalformedPayload(f"field 'regime' must be a string, got {regime!r}")
        energy_field, energy_raw = _require_either(payload, "energy_kt", "e_kt")
        energy = _number(energy_raw, energy_field)

        center_raw = _require(payload, "center")
        if not isinstance(center_raw, Mapping):
            raise MalformedPayload("field 'center' must be an object")
        try:
            center = GeoPoint(
                longitude=_number(_require(center_raw, "lon"), "center.lon"),
                latitude=_number(_require(center_raw, "lat"), "center.lat"),
            )
        except InvalidArgument as exc:
            raise MalformedPayload(f"invalid center: {exc}") from exc

        radii_raw = _require(payload, "overpressure_radii_m")
        if not isinstance(radii_raw, Mapping):
            raise MalformedPayload("field 'overpressure_radii_m' must be an object")
        radii: dict[str, float] = {}
        for label, value in radii_raw.items():
            radius = _number(value, f"overpressure_radii_m.{label}")
            if radius < 0:
                raise MalformedPayload(f"negative radius for {label!r}: {radius}")
            radii[str(label)] = radius
        missing = [t for t in OVERPRESSURE_THRESHOLDS if t not in radii]
        if missing:
            raise MalformedPayload(f"missing overpressure thresholds: {missing}")

        return cls(regime=regime, energy_kt=energy, center=center, overpressure_radii_m=radii)


@dataclass(frozen=True)
class HazardCandidate:
    """A single catalog row from the hazardous-object search."""

    designation: str  # Primary designation ("99942")
    catalog_id: str  # SPK-ID, unique per object
    pha: str  # Catalog PHA flag ("Y" / "N")
    name: str | None = None  # Short name ("Apophis"), often missing
    diameter_km: float | None = None
    albedo: float | None = None

    @property
    def is_hazardous(self) -> bool:
        return self.pha.strip().upper() in {"Y", "TRUE", "1"}

    @property
    def display_name(self) -> str:
        return self.name or "Uncatalogued short name"

    @property
    def display_diameter(self) -> str:
        return f"{self.diameter_km:.2f}" if self.diameter_km else "—"

    @classmethod
    def from_json(cls, payload: Any) -> "HazardCandidate":
        if not isinstance(payload, Mapping):
            raise MalformedPayload(f"candidate must be an object, got {type(payload).__name__}")
        _, designation = _require_either(payload, "designation", "des")
        id_field, catalog_id = _require_either(payload, "catalog_id", "spkid")
        pha = _require(payload, "pha")
        if catalog_id is None or isinstance(catalog_id, bool):
            raise MalformedPayload(f"field {id_field!r} must be an id, got {catalog_id!r}")
        diameter_field = "diameter_km" if "diameter_km" in payload else "diameter"
        name = payload.get("name") or None
        return cls(
            designation=str(designation),
            catalog_id=str(catalog_id),
            pha="" if pha is None else str(pha),
            name=None if name is None else str(name),
            diameter_km=_optional_number(payload.get(diameter_field), diameter_field),
            albedo=_optional_number(payload.get("albedo"), "albedo"),
        )


@dataclass(frozen=True)
class Idle:
    """No request running. Also the state after a successful request."""


@dataclass(frozen=True)
class Loading:
    """A request has been issued and not yet settled."""


@dataclass(frozen=True)
class Error:
    """The most recent request failed."""

    message: str


RequestStatus = Idle | Loading | Error

IDLE = Idle()
LOADING = Loading()
