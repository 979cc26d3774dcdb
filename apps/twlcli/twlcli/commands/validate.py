"""Validate command - check that collections load and fully resolve"""

from __future__ import annotations

from pathlib import Path

import typer

from twl.ast import Parser
from twl.compiler import Compiler, Selection
from twl.errors import TwlError

from ..lib.errors import report_error
from .utils import console


def validate_command(paths: list[Path]) -> None:
    """Load each collection and compile every script in both directions.

    Every file is checked even after a failure; the exit status is the
    one of the first failing file.
    """
    exit_code = 0
    parser = Parser()

    for path in paths:
        try:
            collection = parser.parse_file(path)
            compiler = Compiler(collection)
            forward = compiler.compile(Selection.of())
            reverts = compiler.compile(Selection.of(revert=True))
        except TwlError as exc:
            console.print(f"[red]FAIL[/red] {path}")
            code = report_error(exc)
            exit_code = exit_code or code
            continue

        console.print(
            f"[green]OK[/green] {path} "
            f"[dim]({collection.os}, {len(collection.scripts)} scripts, "
            f"{len(forward)} emitted, {len(reverts)} revertible)[/dim]"
        )

    if exit_code:
        raise typer.Exit(code=exit_code)
