from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from location_sim.config import settings
from location_sim.core.geodesy import distance_m
from location_sim.core.models import Coordinate, RouteSimulation, SpeedMode
from location_sim.core.presets import PRESET_LOCATIONS, find_preset, preset_index
from location_sim.store.repository import SimulationRepository, build_repository

log = logging.getLogger(__name__)

_SPEED_NAMES = {m.name.lower(): m for m in SpeedMode}


def _coordinate(text: str) -> Coordinate:
    """argparse type for ``LAT,LON``."""
    try:
        lat_s, lon_s = text.split(",")
        return Coordinate(lat=float(lat_s), lon=float(lon_s))
    except (ValueError, ValidationError) as e:
        raise argparse.ArgumentTypeError(f"expected LAT,LON in range, got '{text}' ({e})")


def _speed(text: str) -> SpeedMode:
    try:
        return _SPEED_NAMES[text.strip().lower()]
    except KeyError:
        raise argparse.ArgumentTypeError(
            f"unknown speed '{text}' (supported: {', '.join(_SPEED_NAMES)})"
        ) from None


def _route_table(route: RouteSimulation) -> Table:
    table = Table(title="Route")
    table.add_column("#")
    table.add_column("Lat")
    table.add_column("Lon")
    table.add_column("Leg m")

    n = len(route.waypoints)
    for i, wp in enumerate(route.waypoints):
        leg = ""
        if n >= 2:
            nxt = route.waypoints[(i + 1) % n]
            leg = f"{distance_m(wp, nxt):.1f}"
        marker = "▶ " if route.is_runnable and i == route.segment_index() else ""
        table.add_row(f"{marker}{i}", f"{wp.lat:.6f}", f"{wp.lon:.6f}", leg)
    return table


def _print_status(console: Console, repo: SimulationRepository) -> None:
    route = repo.load_route_simulation()
    fixed = repo.load_fixed_point()

    if route.is_active and route.is_runnable:
        mode = "[green]route simulation[/green]"
    elif route.is_active:
        mode = "[yellow]route active but needs 2+ waypoints[/yellow]"
    elif fixed is not None:
        mode = "[cyan]fixed point[/cyan]"
    else:
        mode = "off"
    console.print(f"Mode: {mode}")

    if fixed is not None:
        idx = preset_index(fixed)
        label = f" ({PRESET_LOCATIONS[idx].title})" if idx is not None else ""
        console.print(f"Fixed point: {fixed}{label}")
    else:
        console.print("Fixed point: none")

    console.print(
        f"Speed: {route.speed_mode.value} ({route.effective_speed_mps:.2f} m/s)"
        + (f", custom {route.custom_speed_mps:g} m/s" if route.speed_mode is SpeedMode.CUSTOM else "")
    )
    if route.waypoints:
        console.print(_route_table(route))
    else:
        console.print("Route: no waypoints")


def _print_presets(console: Console) -> None:
    table = Table(title="Preset locations")
    table.add_column("#")
    table.add_column("Title")
    table.add_column("Lat")
    table.add_column("Lon")
    for i, p in enumerate(PRESET_LOCATIONS):
        table.add_row(str(i), p.title, f"{p.latitude:.6f}", f"{p.longitude:.6f}")
    console.print(table)


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="location-sim", description="Manage simulated device location.")
    ap.add_argument("--debug", action="store_true")
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show persisted fixed point and route")
    sub.add_parser("presets", help="List preset cities")

    fixed = sub.add_parser("fixed", help="Set or clear the fixed-point override")
    group = fixed.add_mutually_exclusive_group(required=True)
    group.add_argument("--at", type=_coordinate, metavar="LAT,LON")
    group.add_argument("--preset", help="Preset title (or part of it)")
    group.add_argument("--clear", action="store_true")

    route = sub.add_parser("route", help="Replace the route waypoints")
    route.add_argument("--waypoint", type=_coordinate, action="append", default=[], metavar="LAT,LON")
    route.add_argument("--speed", type=_speed)
    route.add_argument("--custom-speed", type=float, metavar="MPS")

    speed = sub.add_parser("speed", help="Change the route speed")
    speed.add_argument("mode", type=_speed)
    speed.add_argument("--custom-speed", type=float, metavar="MPS")

    add = sub.add_parser("add-waypoint", help="Append a waypoint")
    add.add_argument("coordinate", type=_coordinate, metavar="LAT,LON")

    remove = sub.add_parser("remove-waypoint", help="Remove a waypoint by index")
    remove.add_argument("index", type=int)

    sub.add_parser("start", help="Mark the route simulation active")
    sub.add_parser("stop", help="Mark the route simulation inactive")
    sub.add_parser("reset", help="Clear the fixed point and stop the route")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else settings.log_level.upper(),
        format="%(asctime)s [cli] %(levelname)s %(message)s",
    )

    console = Console()
    repo = build_repository(settings)
    route = repo.load_route_simulation()

    if args.command == "status":
        _print_status(console, repo)
        return 0

    if args.command == "presets":
        _print_presets(console)
        return 0

    if args.command == "fixed":
        if args.clear:
            repo.save_fixed_point(None)
            console.print("Fixed point cleared")
            return 0
        coord = args.at
        if args.preset is not None:
            preset = find_preset(args.preset)
            if preset is None:
                console.print(f"[red]No preset matches '{args.preset}'[/red]")
                return 1
            coord = preset.coordinate
            console.print(f"Using preset {preset.title}")
        repo.save_fixed_point(coord)
        console.print(f"Fixed point set to {coord}")
        if route.is_active:
            console.print("[yellow]Route simulation is active; fixed point applies once it stops[/yellow]")
        return 0

    if args.command == "route":
        update = {"waypoints": list(args.waypoint), "current_segment_index": 0}
        route = route.model_copy(update=update)
        if args.speed is not None:
            route = route.with_speed(args.speed, args.custom_speed)
        elif args.custom_speed is not None:
            route = route.with_speed(route.speed_mode, args.custom_speed)
    elif args.command == "speed":
        route = route.with_speed(args.mode, args.custom_speed)
    elif args.command == "add-waypoint":
        route = route.with_waypoint(args.coordinate)
    elif args.command == "remove-waypoint":
        try:
            route = route.without_waypoint(args.index)
        except IndexError as e:
            console.print(f"[red]{e}[/red]")
            return 1
    elif args.command == "start":
        if not route.is_runnable:
            console.print(
                f"[yellow]Route has {len(route.waypoints)} waypoint(s); "
                "simulation stays idle until there are at least 2[/yellow]"
            )
        route = route.started()
    elif args.command == "stop":
        route = route.stopped()
    elif args.command == "reset":
        repo.save_fixed_point(None)
        route = route.stopped()

    repo.save_route_simulation(route)
    log.debug("Saved route simulation: %s", route.model_dump())
    _print_status(console, repo)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
