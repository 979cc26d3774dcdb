"""TWL document model: collections, categories, scripts and functions."""

from twl.ast.parser import Parser
from twl.ast.spec import (
    Category,
    Collection,
    Function,
    FunctionCall,
    Parameter,
    Recommend,
    Script,
    ScriptingDefinition,
)
from twl.ast.template import Template, TemplateSyntaxError

__all__ = [
    "Parser",
    "Category",
    "Collection",
    "Function",
    "FunctionCall",
    "Parameter",
    "Recommend",
    "Script",
    "ScriptingDefinition",
    "Template",
    "TemplateSyntaxError",
]
