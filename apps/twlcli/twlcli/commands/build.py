"""Build command - compile a collection to a script"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import typer

from twl.ast import Recommend
from twl.compiler import Compiler
from twl.errors import TwlError
from twl.platform import TargetOS

from ..lib.config import load_config
from ..lib.errors import TwlCliError, handle_error
from ..lib.script import build_script, encode_fragments, make_selection, open_collection

log = logging.getLogger(__name__)


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


def build_command(
    names: Optional[list[str]] = None,
    target: Optional[TargetOS] = None,
    file: Optional[Path] = None,
    level: Optional[Recommend] = None,
    categories: Optional[list[str]] = None,
    revert: bool = False,
    plain: bool = False,
    fmt: OutputFormat = OutputFormat.TEXT,
    output: Optional[Path] = None,
) -> None:
    """Compile the selected scripts and print or write the result."""
    try:
        config = load_config()
        collection = open_collection(config, target, file)
        selection = make_selection(config, names, categories, level, revert)
        fragments = Compiler(collection).compile(selection)
        if fmt is OutputFormat.JSON:
            text = encode_fragments(fragments)
        else:
            text = build_script(collection, fragments, config, plain=plain)
    except (TwlError, TwlCliError) as exc:
        handle_error(exc)

    if output is None:
        typer.echo(text, nl=False)
        return

    log.debug("Writing script to %s", output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8", newline="")
    typer.echo(f"Wrote {len(fragments)} script(s) to {output}")
