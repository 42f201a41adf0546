"""Command-line interface for the conversion menu."""
from __future__ import annotations

import json
from pathlib import Path
import sys
from typing import Optional

import typer

from .config import AppConfig, ConfigError, load_app_config
from .deps import check_deps, determine_exit_code
from .errors import ConvertMenuError, ExitCode, InvalidParameterError
from .logging_utils import get_logger, setup_logging
from .menu import ConversionMenu
from .notify import Notifier
from .planner import ConversionPlanner, Invocation
from .presets import presets_to_list
from .scan import DirectoryListing
from .subprocess_utils import ProcessRunner

app = typer.Typer(help="Convert media files with ffmpeg presets")
logger = get_logger(__name__)


def _load(config: Optional[str], verbose: bool = False, log_file: Optional[str] = None) -> AppConfig:
    setup_logging(verbose=verbose, log_file=Path(log_file) if log_file else None)
    try:
        return load_app_config(Path(config)) if config else load_app_config()
    except ConfigError as exc:
        typer.echo(f"Failed to load config: {exc}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_INVALID)


def _fail(exc: ConvertMenuError) -> typer.Exit:
    typer.echo(f"ERROR: {exc.user_message()}", err=True)
    return typer.Exit(code=exc.exit_code)


def _prepare(
    planner: ConversionPlanner,
    input_path: str,
    quality: Optional[int],
    width: Optional[int],
    height: Optional[int],
) -> Path:
    if width is not None and height is not None:
        raise InvalidParameterError("Use either --width or --height, not both")
    target = planner.select_target(input_path)
    if quality is not None:
        planner.set_quality(quality)
    if width is not None:
        planner.set_scale_by_width(width)
    elif height is not None:
        planner.set_scale_by_height(height)
    return target


def _invocation_dict(invocation: Invocation) -> dict:
    return {
        "executable": invocation.executable,
        "args": list(invocation.args),
        "output_path": str(invocation.output_path),
    }


@app.command("check-deps")
def check_deps_command(
    config: Optional[str] = typer.Option(None, help="Path to config file"),
    json_output: bool = typer.Option(False, "--json", help="Output report as JSON"),
    verbose: bool = typer.Option(False, "--verbose", help="Show verbose details"),
) -> None:
    """Check that the conversion tool and preset encoders are available."""

    app_config = _load(config, verbose=verbose)
    report = check_deps(app_config.executable, app_config.presets)
    exit_code = determine_exit_code(report)

    if json_output:
        typer.echo(json.dumps(report.to_dict(), ensure_ascii=False, indent=2 if verbose else None))
        raise typer.Exit(code=exit_code)

    typer.echo(f"check-deps: {'OK' if report.ok else 'FAIL'}")
    if report.tool is not None:
        version = f" (version: {report.tool.version})" if report.tool.version else ""
        typer.echo(f"{report.tool.name}: {report.tool.path}{version}")
    else:
        typer.echo(f"{app_config.executable}: not found")

    if report.encoders:
        typer.echo("encoders:")
        for name, present in report.encoders.items():
            typer.echo(f"  - {name}: {'yes' if present else 'no'}")

    for warning in report.warnings:
        typer.echo(f"WARNING: {warning['message']}", err=True)
    for err in report.errors:
        hint = f" (hint: {err['hint']})" if err.get("hint") else ""
        typer.echo(f"ERROR: {err['message']}{hint}", err=True)

    raise typer.Exit(code=exit_code)


@app.command("presets")
def presets_command(
    config: Optional[str] = typer.Option(None, help="Path to config file"),
    json_output: bool = typer.Option(False, "--json", help="Output presets as JSON"),
) -> None:
    """List the configured output formats."""

    app_config = _load(config)
    if json_output:
        typer.echo(json.dumps(presets_to_list(app_config.presets.values()), ensure_ascii=False, indent=2))
        return
    for preset in app_config.presets.values():
        typer.echo(preset.label())
        typer.echo("    " + " ".join(preset.args))


@app.command()
def plan(
    input_path: str = typer.Argument(..., help="Media file to convert"),
    to: str = typer.Option(..., "--to", help="Output format key"),
    quality: Optional[int] = typer.Option(None, "--quality", help="Quality 1-100"),
    width: Optional[int] = typer.Option(None, "--width", help="Target width; height follows aspect ratio"),
    height: Optional[int] = typer.Option(None, "--height", help="Target height; width follows aspect ratio"),
    config: Optional[str] = typer.Option(None, help="Path to config file"),
    json_output: bool = typer.Option(False, "--json", help="Print the invocation as JSON"),
) -> None:
    """Print the conversion command without running it."""

    app_config = _load(config)
    planner = ConversionPlanner(app_config, ProcessRunner(), _NullListing(), Notifier())
    try:
        target = _prepare(planner, input_path, quality, width, height)
        invocation = planner.build_invocation(target, to)
    except ConvertMenuError as exc:
        raise _fail(exc)

    if json_output:
        typer.echo(json.dumps(_invocation_dict(invocation), ensure_ascii=False, indent=2))
    else:
        typer.echo(" ".join(invocation.command()))


@app.command()
def convert(
    input_path: str = typer.Argument(..., help="Media file to convert"),
    to: str = typer.Option(..., "--to", help="Output format key"),
    quality: Optional[int] = typer.Option(None, "--quality", help="Quality 1-100"),
    width: Optional[int] = typer.Option(None, "--width", help="Target width; height follows aspect ratio"),
    height: Optional[int] = typer.Option(None, "--height", help="Target height; width follows aspect ratio"),
    config: Optional[str] = typer.Option(None, help="Path to config file"),
    verbose: bool = typer.Option(False, "--verbose", help="Verbose logging"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Write a debug log to this path"),
) -> None:
    """Convert one file and wait for the conversion to finish."""

    app_config = _load(config, verbose=verbose, log_file=log_file)
    if not Path(input_path).exists():
        typer.echo(f"ERROR: Input file not found: {input_path}", err=True)
        raise typer.Exit(code=ExitCode.INPUT_NOT_FOUND)

    runner = ProcessRunner()
    planner = ConversionPlanner(app_config, runner, _NullListing(), Notifier())
    try:
        _prepare(planner, input_path, quality, width, height)
        handle = planner.start_conversion(to)
    except ConvertMenuError as exc:
        raise _fail(exc)

    try:
        completion = handle.completion.result()
    except KeyboardInterrupt:
        planner.kill_active_process()
        raise typer.Exit(code=ExitCode.CONVERT_FAILED)
    finally:
        runner.shutdown(wait=True)

    if not completion.success:
        detail = completion.error or f"exit code {completion.returncode}"
        typer.echo(f"ERROR: conversion failed ({detail})", err=True)
        raise typer.Exit(code=ExitCode.CONVERT_FAILED)


@app.command()
def menu(
    directory: str = typer.Argument(".", help="Directory to list"),
    config: Optional[str] = typer.Option(None, help="Path to config file"),
    verbose: bool = typer.Option(False, "--verbose", help="Verbose logging"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Write a debug log to this path"),
) -> None:
    """Open the interactive conversion menu for a directory."""

    app_config = _load(config, verbose=verbose, log_file=log_file)
    root = Path(directory)
    if not root.is_dir():
        typer.echo(f"ERROR: Not a directory: {root}", err=True)
        raise typer.Exit(code=ExitCode.INPUT_NOT_FOUND)

    listing = DirectoryListing(
        root,
        app_config.extensions,
        on_redisplay=lambda lst: typer.echo(f"Listing refreshed: {len(lst.paths())} media files"),
    )
    runner = ProcessRunner()
    planner = ConversionPlanner(app_config, runner, listing, Notifier())
    conversion_menu = ConversionMenu(planner, listing)
    try:
        conversion_menu.run()
    except ConvertMenuError as exc:
        raise _fail(exc)
    finally:
        # Running conversions are left to finish on their own; their waiter
        # threads are daemons and do not hold up interpreter exit.
        runner.shutdown(wait=False)


class _NullListing:
    """File listing used by one-shot commands, which have nothing to redisplay."""

    def request_redisplay(self) -> None:
        logger.debug("Redisplay requested outside the menu; ignored")


def main(argv: Optional[list[str]] = None) -> int:
    """Entrypoint for console script."""

    argv = argv if argv is not None else sys.argv[1:]
    app(prog_name="convert-menu", args=list(argv))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
