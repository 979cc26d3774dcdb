"""twl CLI Main Entry Point

twl - compiles declarative privacy and security tweak collections into
scripts for macOS, Linux and Windows.

Usage:
    twl build                          # Print the script for this OS
    twl build "Clear bash history"     # Only the named scripts
    twl build --level standard         # Only recommended scripts
    twl build --revert -o undo.sh      # Undo script, written to a file
    twl run --category Telemetry       # Compile and execute
    twl list --os windows              # Show the scripts of a collection
    twl validate collections/*.yaml    # Check collections
    twl --version                      # Show version
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from twl.ast import Recommend
from twl.platform import TargetOS

from ._version import __version__
from .commands import build_command, list_command, run_command, validate_command
from .commands.build import OutputFormat
from .commands.list import ListFormat
from .commands.utils import setup_logging

typer_app = typer.Typer(
    help="Compile tweak collections into privacy and security scripts.",
    no_args_is_help=True,
)

NAMES = typer.Argument(None, help="Names of the scripts to include (default: all).")
OS_OPTION = typer.Option(None, "--os", help="Target operating system (default: this one).")
FILE_OPTION = typer.Option(None, "-f", "--file", help="Path to a collection file.")
LEVEL_OPTION = typer.Option(None, "-l", "--level", help="Only scripts recommended at this level.")
CATEGORY_OPTION = typer.Option(
    None, "-c", "--category", help="Only scripts in this category (repeatable)."
)
REVERT_OPTION = typer.Option(False, "--revert", help="Emit code that undoes the tweaks.")


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"twl {__version__}")
        raise typer.Exit()


@typer_app.callback()
def main(
    version: bool = typer.Option(
        False,
        "-V",
        "--version",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Show progress logs."),
) -> None:
    setup_logging(verbose)


@typer_app.command("build")
def build(
    names: Optional[List[str]] = NAMES,
    target: Optional[TargetOS] = OS_OPTION,
    file: Optional[Path] = FILE_OPTION,
    level: Optional[Recommend] = LEVEL_OPTION,
    category: Optional[List[str]] = CATEGORY_OPTION,
    revert: bool = REVERT_OPTION,
    plain: bool = typer.Option(False, "--plain", help="Omit per-script banners."),
    fmt: OutputFormat = typer.Option(OutputFormat.TEXT, "--format", help="Output format."),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Write to file instead of stdout."
    ),
) -> None:
    """Compile scripts and print or write the result."""
    build_command(names, target, file, level, category, revert, plain, fmt, output)


@typer_app.command("run")
def run(
    names: Optional[List[str]] = NAMES,
    target: Optional[TargetOS] = OS_OPTION,
    file: Optional[Path] = FILE_OPTION,
    level: Optional[Recommend] = LEVEL_OPTION,
    category: Optional[List[str]] = CATEGORY_OPTION,
    revert: bool = REVERT_OPTION,
    yes: bool = typer.Option(False, "-y", "--yes", help="Do not ask for confirmation."),
) -> None:
    """Compile scripts and execute them on this machine."""
    run_command(names, target, file, level, category, revert, yes)


@typer_app.command("list")
def list_(
    target: Optional[TargetOS] = OS_OPTION,
    file: Optional[Path] = FILE_OPTION,
    fmt: ListFormat = typer.Option(ListFormat.TABLE, "--format", help="Output format."),
) -> None:
    """List the scripts of a collection."""
    list_command(target, file, fmt)


@typer_app.command("validate")
def validate(
    paths: List[Path] = typer.Argument(..., help="Collection files to check."),
) -> None:
    """Check that collections load and every script resolves."""
    validate_command(paths)


def app() -> None:
    """Entry point for the CLI."""
    typer_app()


if __name__ == "__main__":
    app()
