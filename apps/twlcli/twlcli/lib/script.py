"""Script assembly for twlcli.

Glues the engine together for the commands:
1. Locating and loading the collection for a target OS
2. Building a Selection from command-line options
3. Rendering start/end code with the global variables
4. Assembling the final script text, or its JSON form
"""

from __future__ import annotations

import logging
from datetime import datetime
from email.utils import format_datetime
from pathlib import Path
from typing import Sequence

import msgspec
from jinja2 import TemplateError

from twl.ast import Collection, Parser, Recommend
from twl.compiler import Fragment, Renderer, Selection, render_globals
from twl.compiler.renderer import DEFAULT_BANNER
from twl.platform import TargetOS

from .config import TwlConfig
from .errors import EXIT_LOAD, TwlCliError

log = logging.getLogger(__name__)


class FragmentInfo(msgspec.Struct):
    """JSON form of one compiled script."""

    name: str
    direction: str
    code: str


def resolve_target(config: TwlConfig, target: TargetOS | None) -> TargetOS:
    """Target OS from the option, the config, or the running system."""
    if target is not None:
        return target
    if config.os is not None:
        return config.os
    try:
        return TargetOS.current()
    except ValueError as exc:
        raise TwlCliError(f"{exc}; pass --os") from exc


def open_collection(
    config: TwlConfig, target: TargetOS | None = None, file: Path | None = None
) -> Collection:
    """Load the collection named by --file, or the one shipped for the target OS."""
    path = file if file is not None else config.collection_path(resolve_target(config, target))
    log.info("Loading collection %s", path)
    collection = Parser().parse_file(path)
    if target is not None and collection.os is not target:
        log.warning("%s is written for %s, not %s", path, collection.os, target)
    return collection


def make_selection(
    config: TwlConfig,
    names: Sequence[str] | None = None,
    categories: Sequence[str] | None = None,
    level: Recommend | None = None,
    revert: bool = False,
) -> Selection:
    return Selection.of(
        names=names or None,
        categories=categories or None,
        level=level if level is not None else config.level,
        revert=revert,
    )


def global_variables(config: TwlConfig) -> dict[str, str]:
    """Values of the `$homepage`, `$version` and `$date` globals."""
    return {
        "homepage": config.homepage,
        "version": config.version,
        "date": format_datetime(datetime.now().astimezone()),
    }


def build_script(
    collection: Collection,
    fragments: Sequence[Fragment],
    config: TwlConfig,
    plain: bool = False,
) -> str:
    """Assemble fragments into the complete script for the collection's OS."""
    scripting = collection.scripting
    if scripting is not None:
        variables = global_variables(config)
        header = render_globals(scripting.start_code, variables)
        footer = render_globals(scripting.end_code, variables)
    else:
        header = collection.os.shebang
        footer = ""

    comment = None if plain or not config.banner else collection.os.comment_prefix
    try:
        renderer = Renderer(
            comment=comment,
            line_ending=collection.os.line_ending,
            banner_template=config.banner_template or DEFAULT_BANNER,
        )
        return renderer.render(fragments, header=header, footer=footer)
    except TemplateError as exc:
        raise TwlCliError(f"Invalid banner template: {exc}", EXIT_LOAD) from exc


def encode_fragments(fragments: Sequence[Fragment]) -> str:
    """Fragments as pretty-printed JSON."""
    infos = [
        FragmentInfo(name=f.name, direction=f.direction.value, code=f.text) for f in fragments
    ]
    return msgspec.json.format(msgspec.json.encode(infos), indent=2).decode() + "\n"


def file_extension(collection: Collection) -> str:
    if collection.scripting is not None and collection.scripting.file_extension:
        return collection.scripting.file_extension
    return collection.os.file_extension
