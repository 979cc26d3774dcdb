"""List command - list the scripts of a collection"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

import msgspec
import typer
from rich.markup import escape
from rich.table import Table

from twl.compiler import Compiler
from twl.errors import CompileError, ResolutionError, TwlError
from twl.platform import TargetOS

from ..lib.config import load_config
from ..lib.errors import TwlCliError, handle_error
from ..lib.script import open_collection
from .utils import console


class ListFormat(str, Enum):
    TABLE = "table"
    JSON = "json"


class ScriptSummary(msgspec.Struct):
    name: str
    category: list[str]
    recommend: Optional[str]
    revertible: bool


def list_command(
    target: Optional[TargetOS] = None,
    file: Optional[Path] = None,
    fmt: ListFormat = ListFormat.TABLE,
) -> None:
    """List all scripts with their category, level and revertibility."""
    try:
        collection = open_collection(load_config(), target, file)
        compiler = Compiler(collection)
        summaries = []
        for path, script in collection.walk():
            try:
                resolved = compiler.resolve_script(script)
            except ResolutionError as exc:
                raise CompileError(script.name, "forward", exc) from exc
            summaries.append(
                ScriptSummary(
                    name=script.name,
                    category=list(path),
                    recommend=script.recommend.value if script.recommend else None,
                    revertible=resolved.revert_code is not None,
                )
            )
    except (TwlError, TwlCliError) as exc:
        handle_error(exc)

    if fmt is ListFormat.JSON:
        typer.echo(msgspec.json.format(msgspec.json.encode(summaries), indent=2).decode())
        return

    table = Table(title=f"{collection.os} ({len(summaries)} scripts)")
    table.add_column("Script", style="cyan")
    table.add_column("Category")
    table.add_column("Level")
    table.add_column("Revert")

    level_colors = {"standard": "green", "strict": "yellow"}

    for summary in summaries:
        level = summary.recommend or "-"
        color = level_colors.get(level, "dim")
        table.add_row(
            escape(summary.name),
            escape(" / ".join(summary.category)),
            f"[{color}]{level}[/{color}]",
            "yes" if summary.revertible else "[dim]no[/dim]",
        )

    console.print(table)
