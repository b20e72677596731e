"""Main entry point for the interactive route creator."""

import asyncio
import logging
import sys

from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from routecraft.config import settings
from routecraft.errors import PersistenceError, ProviderError, ValidationError
from routecraft.models import RouteCategory, SaveRouteForm, SpeedSetting, SpeedUnit
from routecraft.pipeline import ElevationSampler, RouteCreator
from routecraft.tools import (
    DirectionsClient,
    IpGeolocationSource,
    JsonFileRouteSink,
    MapboxGeocoder,
    MapboxTerrainSource,
    SupabaseRouteSink,
)


console = Console()

HELP = (
    "[bold]add[/bold] <lon>,<lat>        add a point at the end of the route\n"
    "[bold]search[/bold] <place>         find a place and add it\n"
    "[bold]move[/bold] <n> <lon>,<lat>   move point n\n"
    "[bold]remove[/bold] <n>             delete point n\n"
    "[bold]mode[/bold] cycling|walking   change travel mode\n"
    "[bold]speed[/bold] <n>              set average speed\n"
    "[bold]unit[/bold]                   switch between mph and km/h\n"
    "[bold]locate[/bold]                 look up your position\n"
    "[bold]show[/bold]                   show route stats\n"
    "[bold]clear[/bold]                  remove all points\n"
    "[bold]save[/bold]                   save the route\n"
    "[dim]Type 'quit' or 'exit' to end the session.[/dim]"
)


def setup_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def parse_lon_lat(text: str) -> tuple[float, float]:
    lon, lat = (float(part) for part in text.split(","))
    return (lon, lat)


def build_creator() -> tuple[RouteCreator, MapboxTerrainSource]:
    """Wire the route creator to Mapbox, storage and geolocation."""
    directions = DirectionsClient(
        settings.mapbox_token, settings.mapbox_base_url, settings.request_timeout_s
    )
    terrain = MapboxTerrainSource(
        settings.mapbox_token, settings.mapbox_base_url, settings.request_timeout_s
    )

    if settings.supabase_url and settings.supabase_key:
        sink = SupabaseRouteSink(settings.supabase_url, settings.supabase_key)
    else:
        sink = JsonFileRouteSink(settings.output_dir)

    creator = RouteCreator(
        directions,
        elevation=ElevationSampler(terrain),
        sink=sink,
        geocoder=MapboxGeocoder(
            settings.mapbox_token, settings.mapbox_base_url, settings.request_timeout_s
        ),
        geolocation=IpGeolocationSource(settings.geolocation_url),
        speed=SpeedSetting(speed=settings.default_speed, unit=SpeedUnit(settings.default_speed_unit)),
        chunk_length_km=settings.elevation_chunk_km,
        geolocation_timeout=settings.geolocation_timeout_s,
    )
    return creator, terrain


def point_id(creator: RouteCreator, number: str) -> str:
    return creator.state.waypoints[int(number) - 1].id


async def save_route(creator: RouteCreator) -> None:
    form = SaveRouteForm(
        name=Prompt.ask("Route name"),
        description=Prompt.ask("Description", default="") or None,
        category=RouteCategory(Prompt.ask(
            "Route type",
            choices=[c.value for c in RouteCategory],
            default=RouteCategory.LEISURE.value,
        )),
        is_private=Confirm.ask("Make this route private?", default=False),
    )
    try:
        route = await creator.save(form)
    except ValidationError as e:
        console.print(f"[red]Cannot save: {e.reason}[/red]")
        return
    except PersistenceError as e:
        console.print(f"[red]Save failed: {e}[/red]")
        return
    console.print(f"[green]✓ Saved '{route.name}'[/green]")


async def handle_command(creator: RouteCreator, line: str) -> None:
    command, _, args = line.strip().partition(" ")
    command = command.lower()

    if command == "add":
        await creator.add_point(parse_lon_lat(args))
    elif command == "search":
        results = await creator.search(args)
        if not results:
            console.print(f"[yellow]No results for '{args}'[/yellow]")
            return
        for i, result in enumerate(results, start=1):
            console.print(f"  {i}. {result.text}")
        choice = Prompt.ask("Pick a result", default="1")
        await creator.add_search_result(results[int(choice) - 1])
    elif command == "move":
        number, coords = args.split(maxsplit=1)
        await creator.move_point(point_id(creator, number), parse_lon_lat(coords))
    elif command == "remove":
        await creator.remove_point(point_id(creator, args))
    elif command == "mode":
        await creator.set_mode(args.strip().lower())
    elif command == "speed":
        creator.set_speed(float(args))
    elif command == "unit":
        creator.toggle_unit()
    elif command == "clear":
        await creator.clear()
    elif command == "locate":
        position = await creator.locate_user()
        if position is None:
            console.print("[dim]Location unavailable[/dim]")
        else:
            console.print(f"You are near {position[0]:.4f},{position[1]:.4f}")
        return
    elif command == "save":
        await creator.wait_for_profile()
        await save_route(creator)
        return
    elif command == "help":
        console.print(Panel(HELP, title="Commands", border_style="blue"))
        return
    elif command != "show":
        console.print(f"[red]Unknown command: {command}[/red] (type 'help')")
        return

    await creator.wait_for_profile()
    console.print(Panel(creator.state.format_summary(), title="Route", border_style="blue"))


async def edit_loop():
    """Run an interactive route editing session."""

    # Check configuration
    missing = settings.validate_required()
    if missing:
        console.print(Panel(
            f"[red]Missing required configuration:[/red]\n" +
            "\n".join(f"  • {m}" for m in missing) +
            "\n\n[dim]Copy .env.example to .env and fill in your API keys.[/dim]",
            title="Configuration Error",
            border_style="red",
        ))
        sys.exit(1)

    console.print("\n[bold blue]🚴 Route Creator[/bold blue]\n")

    creator, terrain = build_creator()
    try:
        await terrain.load()
    except ProviderError as e:
        console.print(f"[yellow]Elevation unavailable: {e}[/yellow]")
        creator.elevation = None

    console.print(Panel(HELP, title="Welcome", border_style="blue"))

    while True:
        try:
            console.print()
            line = Prompt.ask(f"[bold green]{creator.state.mode.value}[/bold green]")

            if line.lower() in ["quit", "exit", "q"]:
                console.print("\n[dim]Goodbye! Happy trails! 🚴[/dim]\n")
                break

            if not line.strip():
                continue

            await handle_command(creator, line)

        except KeyboardInterrupt:
            console.print("\n\n[dim]Session interrupted. Goodbye![/dim]\n")
            break
        except (ValueError, IndexError, KeyError) as e:
            console.print(f"\n[red]Invalid input: {e}[/red]")
            console.print("[dim]Type 'help' for the list of commands.[/dim]")


def main():
    """Main entry point."""
    load_dotenv()
    setup_logging()
    asyncio.run(edit_loop())


if __name__ == "__main__":
    main()
