"""Typer-based CLI entry point."""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .engine import generators
from .engine.options import TOOL_DEFAULTS, merge_options, options_as_dict
from .engine.task import Task, TaskResult
from .errors import MediaThumbError, OptionsError
from .settings import SettingsManager

app = typer.Typer(help="Generate preview thumbnails with external media tools")
console = Console(stderr=True)

_OPTION = typer.Option(None, "--option", "-o", help="Tool option as key=value, repeatable")


def _handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except MediaThumbError as exc:
            console.print(f"[red]Error: {exc}")
            raise typer.Exit(1) from exc

    return wrapper


def _configure_logging(level: str) -> None:
    logger = logging.getLogger("mediathumb")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(console=console, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)


def parse_option_pairs(pairs: Optional[list[str]]) -> dict[str, Any]:
    """Turn ``key=value`` strings into an options mapping.

    Every ``text_lines`` value adds one line of the font sample.  For any
    other key the last value given wins.
    """

    options: dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise OptionsError(f"Expected key=value, got {pair!r}")
        if key == "text_lines":
            options.setdefault(key, []).append(value)
        else:
            options[key] = value
    return options


def _tool_options(ctx: typer.Context, tool: str, pairs: Optional[list[str]]) -> dict[str, Any]:
    settings: SettingsManager = ctx.obj
    return {**settings.tool_options(tool), **parse_option_pairs(pairs)}


def _wait(task: Task) -> TaskResult:
    result = task.result()
    if result.error is not None:
        console.print(f"[red]{result.error}")
    elif result.ok:
        console.print(f"[green]{result.command} finished")
    else:
        console.print(f"[red]{result.command} exited with code {result.exit_code}")
    if not result.ok:
        raise typer.Exit(result.exit_code)
    return result


def _version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
@_handle_errors
def main(
    ctx: typer.Context,
    settings: Optional[Path] = typer.Option(None, "--settings", help="Path to settings.json"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every launched command"),
    version: bool = typer.Option(False, "--version", callback=_version, is_eager=True),
) -> None:
    """Load settings and configure logging for the chosen command."""

    manager = SettingsManager(settings).load()
    _configure_logging("DEBUG" if verbose else manager.log_level)
    ctx.obj = manager


@app.command()
@_handle_errors
def magick(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., exists=True, dir_okay=False),
    output_path: Path = typer.Argument(...),
    option: Optional[list[str]] = _OPTION,
) -> None:
    """Descale an image (first frame of animations by default)."""

    _wait(generators.magick(input_path, output_path, _tool_options(ctx, "magick", option)))


@app.command()
@_handle_errors
def fontmagick(
    ctx: typer.Context,
    font_path: Path = typer.Argument(..., exists=True, dir_okay=False),
    output_path: Path = typer.Argument(...),
    option: Optional[list[str]] = _OPTION,
) -> None:
    """Render a font specimen."""

    _wait(generators.fontmagick(font_path, output_path, _tool_options(ctx, "fontmagick", option)))


@app.command()
@_handle_errors
def ffmpeg(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., exists=True, dir_okay=False),
    output_path: Path = typer.Argument(...),
    option: Optional[list[str]] = _OPTION,
) -> None:
    """Copy the embedded cover or poster stream out of a video."""

    _wait(generators.ffmpeg(input_path, output_path, _tool_options(ctx, "ffmpeg", option)))


@app.command()
@_handle_errors
def ffmpegthumbnailer(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., exists=True, dir_okay=False),
    output_path: Path = typer.Argument(...),
    option: Optional[list[str]] = _OPTION,
) -> None:
    """Grab a thumbnail frame from a video."""

    options = _tool_options(ctx, "ffmpegthumbnailer", option)
    _wait(generators.ffmpegthumbnailer(input_path, output_path, options))


@app.command()
@_handle_errors
def pdftoppm(
    ctx: typer.Context,
    pdf_path: Path = typer.Argument(..., exists=True, dir_okay=False),
    output_path: Path = typer.Argument(..., help="Target image; pdftoppm adds .jpg itself"),
    option: Optional[list[str]] = _OPTION,
) -> None:
    """Rasterise the first page of a PDF."""

    _wait(generators.pdftoppm(pdf_path, output_path, _tool_options(ctx, "pdftoppm", option)))


@app.command()
@_handle_errors
def epubthumbnailer(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., exists=True, dir_okay=False),
    output_path: Path = typer.Argument(...),
    option: Optional[list[str]] = _OPTION,
) -> None:
    """Render the cover of an EPUB."""

    options = _tool_options(ctx, "epubthumbnailer", option)
    _wait(generators.epubthumbnailer(input_path, output_path, options))


@app.command()
@_handle_errors
def ebookmeta(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., exists=True, dir_okay=False),
    output_path: Path = typer.Argument(...),
) -> None:
    """Extract the embedded cover of an e-book."""

    _wait(generators.ebookmeta(input_path, output_path, _tool_options(ctx, "ebookmeta", None)))


@app.command()
@_handle_errors
def zipinfo(archive: Path = typer.Argument(..., exists=True, dir_okay=False)) -> None:
    """List the members of a ZIP archive."""

    result = _wait(generators.zipinfo(archive))
    for name in result.stdout_lines():
        typer.echo(name)


@app.command()
@_handle_errors
def unzip(
    output_directory: Path = typer.Argument(..., file_okay=False),
    archive: Path = typer.Argument(..., exists=True, dir_okay=False),
    member: str = typer.Argument(..., help="Name of the single member to extract"),
) -> None:
    """Extract one member of a ZIP archive."""

    _wait(generators.unzip(output_directory, archive, member))


@app.command()
@_handle_errors
def defaults(ctx: typer.Context, tool: str = typer.Argument(..., help="Generator name")) -> None:
    """Print the options a generator would use, settings file applied."""

    if tool not in TOOL_DEFAULTS:
        raise OptionsError(f"Unknown tool {tool!r}; choose from {', '.join(TOOL_DEFAULTS)}")
    settings: SettingsManager = ctx.obj
    merged = merge_options(TOOL_DEFAULTS[tool], settings.tool_options(tool))
    Console().print_json(data=options_as_dict(merged))


if __name__ == "__main__":  # pragma: no cover
    app()
