import math

import pytest

from meteorguard.errors import InvalidArgument, MalformedPayload
from meteorguard.models import (
    Composition,
    GeoPoint,
    HazardCandidate,
    ImpactForm,
    SimulationParams,
    SimulationResult,
    ViewState,
)


@pytest.mark.parametrize(
    "lon, lat",
    [(0.0, 91.0), (0.0, -90.5), (180.5, 0.0), (math.nan, 0.0), (0.0, math.inf)],
)
def test_invalid_points_rejected(lon, lat):
    with pytest.raises(InvalidArgument):
        GeoPoint(lon, lat)


def test_click_longitude_wraps():
    assert GeoPoint.from_click(-200.0, 10.0).longitude == pytest.approx(160.0)
    assert GeoPoint.from_click(180.0, 10.0).longitude == 180.0


def test_view_state_merge():
    view = ViewState(longitude=1.0, latitude=2.0)
    merged = view.merged(zoom=5)

    assert merged == ViewState(longitude=1.0, latitude=2.0, zoom=5)
    assert view.zoom == 8.0
    with pytest.raises(InvalidArgument):
        view.merged(pitch=math.nan)


def test_composition_parse():
    assert Composition.parse("iron") is Composition.IRON
    assert Composition.parse(Composition.COMETARY) is Composition.COMETARY
    with pytest.raises(InvalidArgument, match="stony, iron, cometary"):
        Composition.parse("chondrite")


def test_default_form_is_valid():
    assert ImpactForm().problems() == []


def test_form_problems_listed():
    form = ImpactForm(diameter_m=0, velocity_kms=-1, angle_deg=90, composition="glass")
    problems = form.problems()

    assert len(problems) == 4
    assert "Diameter must be a positive number." in problems
    assert "Entry angle must be between 0 and 90 degrees." in problems


@pytest.mark.parametrize(
    "changes",
    [
        {"diameter_m": 0},
        {"density_kg_m3": -3},
        {"velocity_kms": math.nan},
        {"angle_deg": 0},
        {"angle_deg": 90},
        {"lat": 95.0},
        {"composition": "stony"},
    ],
)
def test_params_validation(changes):
    values = dict(
        diameter_m=140.0,
        density_kg_m3=3000.0,
        velocity_kms=19.0,
        angle_deg=30.0,
        composition=Composition.STONY,
        lat=12.97,
        lon=77.59,
    )
    values.update(changes)
    with pytest.raises(InvalidArgument):
        SimulationParams(**values)


def test_params_from_form_uses_entry_point():
    params = SimulationParams.from_form(
        ImpactForm(composition="cometary"), GeoPoint(77.5946, 12.9716)
    )
    assert params.composition is Composition.COMETARY
    assert (params.lat, params.lon) == (12.9716, 77.5946)
    assert params.to_json()["composition"] == "cometary"


def test_result_accepts_either_energy_key():
    body = {
        "regime": "airburst",
        "energy_kt": 3.5,
        "center": {"lat": 1.0, "lon": 2.0},
        "overpressure_radii_m": {"1psi": 10, "5psi": 4, "10psi": 2},
    }
    result = SimulationResult.from_json(body)

    assert result.energy_kt == 3.5
    assert result.center == GeoPoint(2.0, 1.0)
    assert result.overpressure_radii_m["10psi"] == 2.0


def test_result_radii_are_read_only():
    result = SimulationResult(
        regime="airburst",
        energy_kt=1.0,
        center=GeoPoint(0.0, 0.0),
        overpressure_radii_m={"1psi": 10.0, "5psi": 4.0},
    )
    with pytest.raises(TypeError):
        result.overpressure_radii_m["1psi"] = 99.0


@pytest.mark.parametrize(
    "body",
    [
        [],
        {"regime": "x", "center": {"lat": 0, "lon": 0}, "overpressure_radii_m": {"1psi": 1, "5psi": 1}},
        {"regime": "x", "e_kt": "big", "center": {"lat": 0, "lon": 0}, "overpressure_radii_m": {"1psi": 1, "5psi": 1}},
        {"regime": "x", "e_kt": 1, "center": {"lat": 100, "lon": 0}, "overpressure_radii_m": {"1psi": 1, "5psi": 1}},
        {"regime": "x", "e_kt": 1, "center": {"lat": 0, "lon": 0}, "overpressure_radii_m": {"1psi": -1, "5psi": 1}},
        {"regime": 4, "e_kt": 1, "center": {"lat": 0, "lon": 0}, "overpressure_radii_m": {"1psi": 1, "5psi": 1}},
    ],
)
def test_malformed_results(body):
    with pytest.raises(MalformedPayload):
        SimulationResult.from_json(body)


def test_candidate_display_fallbacks():
    row = HazardCandidate.from_json(
        {"des": "2023 DW", "spkid": "54343523", "pha": "Y", "name": "", "diameter": None}
    )
    assert row.display_name == "Uncatalogued short name"
    assert row.display_diameter == "—"
    assert row.is_hazardous

    named = HazardCandidate.from_json(
        {"des": "99942", "spkid": 2099942, "pha": "N", "name": "Apophis", "diameter": "0.34"}
    )
    assert named.display_name == "Apophis"
    assert named.display_diameter == "0.34"
    assert not named.is_hazardous


def test_candidate_requires_id():
    with pytest.raises(MalformedPayload):
        HazardCandidate.from_json({"des": "433", "pha": "N"})
    with pytest.raises(MalformedPayload):
        HazardCandidate.from_json({"des": "433", "spkid": "1", "pha": "N", "diameter": "large"})


def test_candidate_accepts_full_field_names():
    row = HazardCandidate.from_json(
        {
            "designation": "99942",
            "catalog_id": "2099942",
            "diameter_km": 0.34,
            "albedo": 0.23,
            "pha": "Y",
            "name": "Apophis",
        }
    )
    assert row.designation == "99942"
    assert row.catalog_id == "2099942"
    assert row.diameter_km == pytest.approx(0.34)
    assert row.is_hazardous
