"""CLI interface."""
from __future__ import annotations

import asyncio
import json
import logging
import math
from typing import Optional

import typer
from pydantic import ValidationError

from smil_timeline.animation.smil_compiler import smil_compiler
from smil_timeline.export.snapshotter import measure_animated_bounds, snapshot_svg_at_time
from smil_timeline.schemas import TimelineProject
from smil_timeline.timeline.chain_delays import resolve_chains
from smil_timeline.timeline.playback_clock import PlaybackClock
from smil_timeline.timeline.schedulers import AsyncioFrameScheduler
from smil_timeline.timeline.state import TimelineState
from smil_timeline.utils.config import settings
from smil_timeline.utils.file_utils import read_json_file, read_text_file, write_text_file

app = typer.Typer(add_completion=False)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging.")):
    logging.basicConfig(level="DEBUG" if verbose else settings.log_level)


def _load_project(path: str) -> TimelineProject:
    try:
        return TimelineProject.model_validate(read_json_file(path))
    except FileNotFoundError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except (ValueError, ValidationError) as exc:
        raise typer.BadParameter(f"Invalid project file {path}: {exc}") from exc


def _load_markup(path: str) -> str:
    try:
        return read_text_file(path)
    except FileNotFoundError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def delays(project_file: str = typer.Argument(..., help="Project JSON (animations, chains, elements).")):
    """Print the chain delay map (ms) and the blocked chain entries."""
    project = _load_project(project_file)
    resolution = resolve_chains(project.chains, project.animations)
    max_duration = PlaybackClock(project).max_duration(resolution)
    result = {
        "delays": resolution.delays,
        "blocked": sorted(resolution.blocked),
        "maxDuration": max_duration if math.isfinite(max_duration) else None,
    }
    typer.echo(json.dumps(result, indent=2))


@app.command("compile")
def compile_project(
    project_file: str = typer.Argument(..., help="Project JSON."),
    svg: Optional[str] = typer.Option(None, "--svg", help="Embed the directives into this SVG document."),
    output: Optional[str] = typer.Option(None, "--output", "-o"),
):
    """Compile animation records into SMIL directives."""
    project = _load_project(project_file)
    resolution = resolve_chains(project.chains, project.animations)
    if svg:
        markup, warnings = smil_compiler.compile_document(_load_markup(svg), project.animations, resolution)
    else:
        result = smil_compiler.compile_all(project.animations, resolution)
        markup, warnings = "\n".join(result.elements), result.warnings
    for warning in warnings:
        typer.echo(f"warning: {warning}", err=True)
    if output:
        write_text_file(output, markup)
        typer.echo(json.dumps({"output": output, "warnings": warnings}, indent=2))
    else:
        typer.echo(markup)


@app.command()
def bounds(svg_file: str = typer.Argument(..., help="Animated SVG document.")):
    """Print the bounding box swept by the document's animations."""
    result = measure_animated_bounds(_load_markup(svg_file))
    if result is None:
        typer.echo(json.dumps({"bounds": None}))
        raise typer.Exit(code=1)
    typer.echo(json.dumps({"bounds": result.to_dict()}, indent=2))


@app.command()
def freeze(
    svg_file: str = typer.Argument(..., help="Animated SVG document."),
    time: float = typer.Option(..., "--time", "-t", help="Time to freeze at, in seconds."),
    output: Optional[str] = typer.Option(None, "--output", "-o"),
):
    """Write the static markup of the document frozen at --time."""
    if time < 0:
        raise typer.BadParameter("--time must be >= 0")
    frozen = snapshot_svg_at_time(_load_markup(svg_file), time)
    if output:
        write_text_file(output, frozen)
        typer.echo(json.dumps({"output": output, "time": time}))
    else:
        typer.echo(frozen)


async def _run_playback(project: TimelineProject, rate: float, until: Optional[float]) -> TimelineState:
    loop = asyncio.get_running_loop()
    clock = PlaybackClock(project, scheduler=AsyncioFrameScheduler(loop))
    clock.subscribe(lambda current: typer.echo(f"{current:.3f}"))
    clock.set_playback_rate(rate)
    clock.play()
    try:
        while clock.state.is_playing:
            if until is not None and clock.state.current_time_seconds >= until:
                clock.pause()
                break
            await asyncio.sleep(settings.frame_interval_s)
    finally:
        clock.detach_surface()
    return clock.state


@app.command()
def play(
    project_file: str = typer.Argument(..., help="Project JSON."),
    rate: float = typer.Option(1.0, "--rate", "-r", help="Playback rate."),
    until: Optional[float] = typer.Option(None, "--until", help="Pause at this time (s)."),
):
    """Run the playback clock headlessly and print its time broadcasts."""
    project = _load_project(project_file)
    if until is None and math.isinf(PlaybackClock(project).max_duration()):
        raise typer.BadParameter("Timeline never ends; pass --until")
    state = asyncio.run(_run_playback(project, rate, until))
    typer.echo(json.dumps(state.to_dict()))


if __name__ == "__main__":
    app()
