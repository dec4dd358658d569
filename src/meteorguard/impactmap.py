"""CLI entry point: run one simulation and export the damage rings.

    uv run python -m meteorguard.impactmap --lat 12.9716 --lon 77.5946 --geojson results/rings.geojson
"""

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

from meteorguard.api import ImpactApiClient
from meteorguard.config import Settings, configure_logging
from meteorguard.console import highlights
from meteorguard.errors import InvalidArgument
from meteorguard.models import Composition, GeoPoint, ImpactForm, ViewState
from meteorguard.orchestrator import RequestOrchestrator
from meteorguard.overlay import OverlayRenderer
from meteorguard.renderers.static import save_geojson, save_static_overlay
from meteorguard.viewstate import ViewStateStore


def build_parser() -> argparse.ArgumentParser:
    defaults = ImpactForm()
    parser = argparse.ArgumentParser(
        description="Simulate an airburst and export its overpressure rings."
    )
    parser.add_argument("--lat", type=float, required=True, help="Entry latitude (deg).")
    parser.add_argument("--lon", type=float, required=True, help="Entry longitude (deg).")
    parser.add_argument("--diameter", type=float, default=defaults.diameter_m, help="Diameter (m).")
    parser.add_argument("--density", type=float, default=defaults.density_kg_m3, help="Density (kg/m³).")
    parser.add_argument("--velocity", type=float, default=defaults.velocity_kms, help="Velocity (km/s).")
    parser.add_argument("--angle", type=float, default=defaults.angle_deg, help="Entry angle (deg).")
    parser.add_argument(
        "--composition",
        choices=[c.value for c in Composition],
        default=defaults.composition,
    )
    parser.add_argument("--out", type=Path, default=None, help="PNG path (default: results/).")
    parser.add_argument("--geojson", type=Path, default=None, help="Also write the rings as GeoJSON.")
    return parser


async def _simulate(orchestrator: RequestOrchestrator, form: ImpactForm, entry: GeoPoint) -> None:
    await orchestrator.run_simulation(form, entry)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    form = ImpactForm(
        diameter_m=args.diameter,
        density_kg_m3=args.density,
        velocity_kms=args.velocity,
        angle_deg=args.angle,
        composition=args.composition,
    )
    problems = form.problems()
    if problems:
        for problem in problems:
            print(problem, file=sys.stderr)
        return 2

    try:
        entry = GeoPoint(longitude=args.lon, latitude=args.lat)
    except InvalidArgument as exc:
        print(f"Invalid entry point: {exc}", file=sys.stderr)
        return 2
    store = ViewStateStore(ViewState.centered_on(entry), entry_point=entry)
    renderer = OverlayRenderer(store, polar_limit_deg=settings.polar_limit_deg)
    orchestrator = RequestOrchestrator(
        ImpactApiClient(settings.api_url, timeout=settings.request_timeout_s)
    )

    asyncio.run(_simulate(orchestrator, form, entry))
    if orchestrator.simulation.error_message is not None:
        print(f"Simulation failed: {orchestrator.simulation.error_message}", file=sys.stderr)
        return 1

    result = orchestrator.simulation_result
    renderer.show(result)
    frame = renderer.frame()
    summary = highlights(result)
    print(f"Regime:       {summary.regime}")
    print(f"Energy yield: {summary.energy}")
    print(f"1 psi radius: {summary.radius_1psi}")
    print(f"5 psi radius: {summary.radius_5psi}")

    path = save_static_overlay(frame, result, args.out)
    print(f"Saved: {path}")
    if args.geojson is not None:
        print(f"Saved: {save_geojson(frame, args.geojson)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
