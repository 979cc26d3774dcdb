"""TWL Exceptions

Every failure the engine can report. Errors carry the identifier that
caused them (function, script, parameter or document field) so callers can
render them without parsing messages.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple


class TwlError(Exception):
    """Base exception for all TWL errors."""

    @property
    def kind(self) -> str:
        return type(self).__name__

    @property
    def identifier(self) -> str:
        return ""


class LoadError(TwlError):
    """Raised when a collection document cannot be read or decoded."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Cannot load {source}: {reason}")

    @property
    def identifier(self) -> str:
        return self.source


class DocumentError(TwlError):
    """Raised when a decoded document is not a valid collection."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path or '<root>'}: {reason}")

    @property
    def identifier(self) -> str:
        return self.path


class ResolutionError(TwlError):
    """Base exception for function call resolution failures."""

    pass


class UnknownFunction(ResolutionError):
    """Raised when a call targets a function the collection does not define."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Function not found: {name}")

    @property
    def identifier(self) -> str:
        return self.name


class MissingArgument(ResolutionError):
    """Raised when a required parameter receives no value."""

    def __init__(self, function: str, parameter: str):
        self.function = function
        self.parameter = parameter
        super().__init__(f"Function {function} requires parameter {parameter}")

    @property
    def identifier(self) -> str:
        return f"{self.function}.{self.parameter}"


class UnexpectedArgument(ResolutionError):
    """Raised when a call passes a parameter the function does not declare."""

    def __init__(self, function: str, parameter: str):
        self.function = function
        self.parameter = parameter
        super().__init__(f"Function {function} does not expect parameter {parameter}")

    @property
    def identifier(self) -> str:
        return f"{self.function}.{self.parameter}"


class UndeclaredParameter(ResolutionError):
    """Raised when a function body references a parameter it does not declare."""

    def __init__(self, function: str, parameter: str):
        self.function = function
        self.parameter = parameter
        super().__init__(f"Function {function} references undeclared parameter ${parameter}")

    @property
    def identifier(self) -> str:
        return f"{self.function}.{self.parameter}"


class UnknownPipe(ResolutionError):
    """Raised when an expression pipes a value through an unregistered pipe."""

    def __init__(self, pipe: str, function: Optional[str] = None):
        self.pipe = pipe
        self.function = function
        where = f" in function {function}" if function else ""
        super().__init__(f"Unknown pipe: {pipe}{where}")

    @property
    def identifier(self) -> str:
        return self.pipe


class CyclicFunctionCall(ResolutionError):
    """Raised when a function ends up calling itself, directly or not."""

    def __init__(self, cycle: Sequence[str]):
        self.cycle: Tuple[str, ...] = tuple(cycle)
        super().__init__(f"Cyclic function call: {self.identifier}")

    @property
    def identifier(self) -> str:
        return " -> ".join(self.cycle)


class CompileError(TwlError):
    """Raised when a selected script cannot be resolved.

    Wraps the underlying ResolutionError together with the script and the
    direction that were being compiled.
    """

    def __init__(self, script: str, direction: str, cause: ResolutionError):
        self.script = script
        self.direction = direction
        self.cause = cause
        super().__init__(f"Script {script!r} ({direction}): {cause}")

    @property
    def kind(self) -> str:
        return self.cause.kind

    @property
    def identifier(self) -> str:
        return self.cause.identifier


class SelectionError(TwlError):
    """Base exception for selections that do not fit the collection."""

    pass


class UnknownScript(SelectionError):
    """Raised when a selection names scripts the collection does not define."""

    def __init__(self, names: Sequence[str]):
        self.names: Tuple[str, ...] = tuple(sorted(names))
        super().__init__(f"Script not found: {', '.join(self.names)}")

    @property
    def identifier(self) -> str:
        return ", ".join(self.names)


class UnknownCategory(SelectionError):
    """Raised when a selection names categories the collection does not define."""

    def __init__(self, names: Sequence[str]):
        self.names: Tuple[str, ...] = tuple(sorted(names))
        super().__init__(f"Category not found: {', '.join(self.names)}")

    @property
    def identifier(self) -> str:
        return ", ".join(self.names)
