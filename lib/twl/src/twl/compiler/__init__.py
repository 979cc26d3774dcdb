"""TWL Compiler - transforms tweak collections to executable scripts."""

from twl.compiler.compiler import Compiler
from twl.compiler.renderer import Renderer, assemble, render_globals
from twl.compiler.resolver import Resolver
from twl.compiler.spec import Direction, Fragment, ResolvedCode, Selection

__all__ = [
    "Compiler",
    "Renderer",
    "Resolver",
    "Direction",
    "Fragment",
    "ResolvedCode",
    "Selection",
    "assemble",
    "render_globals",
]
