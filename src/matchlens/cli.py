"""
MatchLens CLI - Command Line Interface

Provides commands for:
- Aggregating match statistics from a local demo
- Rendering a player's kill/death heatmaps
- Running the full download/parse/deliver pipeline
- Serving the parse API
- Listing calibrated maps
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from matchlens import __version__
from matchlens.config import configure_logging, get_config, load_config, set_config
from matchlens.delivery import LocalObjectStore
from matchlens.errors import MatchLensError
from matchlens.map_data import MAP_METADATA, available_maps, get_calibration
from matchlens.models import MatchAggregateResult
from matchlens.parser import decode_demo
from matchlens.pipeline import (
    MatchRunner,
    RunRequest,
    aggregate_match,
    collect_points,
    render_player_heatmaps,
)
from matchlens.visualization.heatmaps import load_map_image

app = typer.Typer(
    name="matchlens",
    help="Match statistics and kill/death heatmaps from recorded CS2 demos",
    add_completion=False,
)
console = Console()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]MatchLens[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose output"
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (.yaml, .toml or .json)",
        dir_okay=False,
    ),
) -> None:
    """MatchLens - CS2 match statistics and heatmaps"""
    try:
        config = load_config(config_file)
    except MatchLensError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    set_config(config)
    configure_logging(config.logging)

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def _display_stats(result: MatchAggregateResult, highlight: Optional[str]) -> None:
    table = Table(title=f"Match {result.match_id}")
    table.add_column("Player", style="cyan")
    table.add_column("K", justify="right")
    table.add_column("A", justify="right")
    table.add_column("D", justify="right")
    table.add_column("HS%", justify="right")
    table.add_column("Entry", justify="right")
    table.add_column("Plants", justify="right")
    table.add_column("Defuses", justify="right")
    table.add_column("Flashed", justify="right")

    for p in sorted(result.players, key=lambda p: p.kill_count, reverse=True):
        name = f"[bold]{p.nickname}[/bold]" if p.nickname == highlight else p.nickname
        table.add_row(
            name,
            str(p.kill_count),
            str(p.assists),
            str(p.death_count),
            f"{p.headshot_pct:.0f}",
            str(p.entry_kills),
            str(p.bomb_plants),
            str(p.defusals),
            str(p.players_flashed),
        )

    console.print(table)


@app.command()
def stats(
    demo_path: Path = typer.Argument(
        ...,
        help="Path to the .dem file to analyze",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
    match_id: Optional[str] = typer.Option(
        None,
        "--match-id",
        "-m",
        help="Match identifier (defaults to the demo file name)"
    ),
    player: Optional[str] = typer.Option(
        None,
        "--player",
        "-p",
        help="Highlight a player in the table"
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the stats payload as JSON to this file"
    ),
) -> None:
    """
    Aggregate per-player statistics from a local demo.

    Warm-up is excluded: counting starts after the first round following
    match start.
    """
    config = get_config()
    match_id = match_id or demo_path.stem

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Parsing demo file...", total=None)
        try:
            demo = decode_demo(demo_path)
            calibration = get_calibration(demo.map_name)
            result = aggregate_match(match_id, demo.events, calibration, config.aggregation)
        except MatchLensError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)
        progress.update(task, description="Demo parsed successfully!")

    console.print(f"[cyan]Map:[/cyan] {demo.map_name}")
    _display_stats(result, player)

    if output:
        output.write_text(result.to_json(indent=2))
        console.print(f"\n[green]Stats written to:[/green] {output}")


@app.command()
def heatmap(
    demo_path: Path = typer.Argument(
        ...,
        help="Path to the .dem file",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
    player: str = typer.Option(..., "--player", "-p", help="Nickname of the tracked player"),
    match_id: Optional[str] = typer.Option(
        None, "--match-id", "-m", help="Match identifier (defaults to the demo file name)"
    ),
    maps_dir: Optional[Path] = typer.Option(
        None, "--maps-dir", help="Directory of map overview images"
    ),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", "-o", help="Where to write the JPEG files"
    ),
) -> None:
    """Render kills and deaths heatmaps of one player."""
    config = get_config()
    match_id = match_id or demo_path.stem
    maps_dir = maps_dir or Path(config.heatmap.maps_dir)
    store = LocalObjectStore(output_dir or config.heatmap.output_dir)

    try:
        demo = decode_demo(demo_path)
        calibration = get_calibration(demo.map_name)
        collector = collect_points(player, demo.events, calibration)
        base_image = load_map_image(maps_dir, calibration.map_name)
        images = render_player_heatmaps(match_id, player, collector, base_image, config.heatmap)
        for name, data in images.items():
            location = store.put(name, data)
            console.print(f"[green]Wrote[/green] {location}")
    except MatchLensError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def run(
    demo_url: str = typer.Argument(..., help="URL of the (gzipped) demo"),
    player: str = typer.Option(..., "--player", "-p", help="Nickname of the tracked player"),
    match_id: str = typer.Option(..., "--match-id", "-m", help="Match identifier"),
) -> None:
    """
    Run the full pipeline: download, parse, upload heatmaps, post stats.
    """
    try:
        with MatchRunner(get_config()) as runner:
            outcome = runner.run(
                RunRequest(demo_url=demo_url, nickname=player, match_id=match_id)
            )
    except MatchLensError as e:
        console.print(f"[red]Run failed:[/red] {e}")
        raise typer.Exit(1)

    heatmaps = "\n".join(f"  {loc}" for loc in outcome.heatmaps.values()) or "  (none)"
    panel = Panel(
        f"[cyan]Map:[/cyan] {outcome.map_name}\n"
        f"[cyan]Players:[/cyan] {len(outcome.result.players)}\n"
        f"[cyan]Took:[/cyan] {outcome.elapsed_ms} ms\n"
        f"[cyan]Heatmaps:[/cyan]\n{heatmaps}",
        title=f"[bold blue]Match {outcome.match_id}[/bold blue]",
        expand=False,
    )
    console.print(panel)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Host to bind to"),
    port: Optional[int] = typer.Option(None, "--port", help="Port to bind to"),
) -> None:
    """Start the parse service (POST /parse)."""
    import uvicorn

    service = get_config().service
    host = host or service.host
    port = port or service.port

    console.print(f"[bold blue]MatchLens[/bold blue] serving on http://{host}:{port}")
    uvicorn.run("matchlens.api:app", host=host, port=port, workers=1)


@app.command()
def maps() -> None:
    """List maps with a coordinate calibration."""
    table = Table(title="Calibrated Maps")
    table.add_column("Map", style="cyan")
    table.add_column("pos_x", justify="right")
    table.add_column("pos_y", justify="right")
    table.add_column("scale", justify="right")

    for name in available_maps():
        meta = MAP_METADATA[name]
        table.add_row(name, str(meta["pos_x"]), str(meta["pos_y"]), str(meta["scale"]))

    console.print(table)


if __name__ == "__main__":
    app()
