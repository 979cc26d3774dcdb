"""TWL - compiles declarative privacy and security tweak collections to scripts."""

from twl.ast import Collection, Parser, Recommend
from twl.compiler import Compiler, Direction, Fragment, Renderer, Selection, assemble
from twl.errors import (
    CompileError,
    CyclicFunctionCall,
    DocumentError,
    LoadError,
    MissingArgument,
    ResolutionError,
    SelectionError,
    TwlError,
    UnknownFunction,
)
from twl.platform import TargetOS

__all__ = [
    "Collection",
    "Parser",
    "Recommend",
    "Compiler",
    "Direction",
    "Fragment",
    "Renderer",
    "Selection",
    "assemble",
    "CompileError",
    "CyclicFunctionCall",
    "DocumentError",
    "LoadError",
    "MissingArgument",
    "ResolutionError",
    "SelectionError",
    "TwlError",
    "UnknownFunction",
    "TargetOS",
]
