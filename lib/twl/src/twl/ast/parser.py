from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

import yaml
from yaml import YAMLError

from twl.ast.spec import Collection
from twl.errors import LoadError

log = logging.getLogger(__name__)


def read_file(filepath: str) -> str:
    try:
        with open(filepath, "r", encoding="utf-8") as file:
            return file.read()
    except OSError as exc:
        raise LoadError(filepath, exc.strerror or str(exc)) from exc


def parse_yaml(source: str, origin: str = "<string>") -> Any:
    """Decode YAML text into a generic tree of dicts, lists and scalars."""
    if not isinstance(source, str):
        raise TypeError("`source` must be a string containing YAML")

    try:
        return yaml.safe_load(source)
    except YAMLError as exc:
        raise LoadError(origin, f"invalid YAML: {exc}") from exc


class Parser:
    """Loads collection documents.

    Loading happens in two phases: the YAML text is decoded into a generic
    tree, then `Collection.from_dict` validates and converts that tree.
    Read and decode failures raise LoadError; structural problems raise
    DocumentError.
    """

    _file_loader: Callable[[str], str]

    def __init__(self, file_loader: Callable[[str], str] | None = None):
        self._file_loader = file_loader or read_file

    def parse(self, source: str, origin: str = "<string>") -> Collection:
        data = parse_yaml(source, origin)
        collection = Collection.from_dict(data)
        log.debug(
            "Loaded %s collection from %s: %d scripts, %d functions",
            collection.os,
            origin,
            len(collection.scripts),
            len(collection.functions),
        )
        return collection

    def parse_file(self, path: str | Path) -> Collection:
        filepath = str(path)
        return self.parse(self._file_loader(filepath), origin=filepath)
