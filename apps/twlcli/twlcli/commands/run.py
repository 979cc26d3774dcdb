"""Run command - compile the selection and execute it locally"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from twl.ast import Recommend
from twl.compiler import Compiler
from twl.errors import TwlError
from twl.platform import TargetOS

from ..lib.config import load_config
from ..lib.errors import TwlCliError, exit_with_error, handle_error
from ..lib.runner import ScriptRunner
from ..lib.script import build_script, file_extension, make_selection, open_collection
from .utils import console

log = logging.getLogger(__name__)


def run_command(
    names: Optional[list[str]] = None,
    target: Optional[TargetOS] = None,
    file: Optional[Path] = None,
    level: Optional[Recommend] = None,
    categories: Optional[list[str]] = None,
    revert: bool = False,
    yes: bool = False,
) -> None:
    """Compile the selected scripts and run them on this machine."""
    try:
        config = load_config()
        collection = open_collection(config, target, file)
        fragments = Compiler(collection).compile(
            make_selection(config, names, categories, level, revert)
        )
        script = build_script(collection, fragments, config)
    except (TwlError, TwlCliError) as exc:
        handle_error(exc)

    try:
        current = TargetOS.current()
    except ValueError as exc:
        exit_with_error(str(exc))
    if collection.os is not current:
        exit_with_error(f"Cannot run a {collection.os} script on {current}")

    if not fragments:
        console.print("[yellow]Nothing to run[/yellow]")
        return

    action = "revert" if revert else "apply"
    if not yes and not typer.confirm(f"{action.capitalize()} {len(fragments)} script(s)?"):
        console.print("[dim]Aborted[/dim]")
        raise typer.Exit(1)

    runner = ScriptRunner(current, config.interpreter)
    log.info("Running %d script(s) to %s changes", len(fragments), action)
    code = runner.run(script, file_extension(collection))
    if code != 0:
        console.print(f"[red]Script exited with status {code}[/red]")
    raise typer.Exit(code=code)
