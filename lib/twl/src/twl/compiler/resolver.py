"""Resolver - expands function calls into flat code.

A call is resolved bottom-up: the callee's arguments are bound (caller
value, then declared default), its templates are rendered in a single pass,
and nested calls are expanded with the active call stack in `scope`. A
callee already on the stack is a cycle and fails before it is entered.
"""

import logging
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from twl.ast.spec import Collection, Function, FunctionCall
from twl.ast.template import Template, UnknownPipeError
from twl.compiler.pipes import PIPES
from twl.compiler.spec import ResolvedCode
from twl.errors import (
    CyclicFunctionCall,
    MissingArgument,
    UndeclaredParameter,
    UnexpectedArgument,
    UnknownFunction,
    UnknownPipe,
)

log = logging.getLogger(__name__)

CallStack = Tuple[str, ...]
Values = Dict[str, Optional[str]]
CacheKey = Tuple[str, Tuple[Tuple[str, Optional[str]], ...]]


def trim(text: str) -> str:
    """Drop leading and trailing line breaks (YAML block scalars add them)."""
    return text.strip("\r\n")


def merge(results: Iterable[ResolvedCode]) -> ResolvedCode:
    """Concatenate consecutive call results into one.

    Codes are joined line by line. The revert code joins whichever results
    have one, and is None when none of them do.
    """
    codes = []
    reverts = []
    for result in results:
        if result.code:
            codes.append(result.code)
        if result.revert_code:
            reverts.append(result.revert_code)
    return ResolvedCode(
        code="\n".join(codes),
        revert_code="\n".join(reverts) if reverts else None,
    )


class _Frame:
    """One function being expanded: its environment and finished callees."""

    __slots__ = ("function", "values", "key", "stack", "pending", "results")

    def __init__(self, function: Function, values: Values, key: CacheKey, stack: CallStack):
        self.function = function
        self.values = values
        self.key = key
        self.stack = stack
        self.pending: Iterator[FunctionCall] = iter(function.calls)
        self.results: List[ResolvedCode] = []


class Resolver:
    """Resolves function calls against a collection.

    Resolution is pure: the same collection and call always produce the
    same text. Successful expansions are memoized per function and bound
    arguments; a memoized function cannot take part in a cycle since its
    whole call tree has already resolved.

    Nested calls are expanded with an explicit stack of frames rather than
    Python recursion, so call depth is bounded only by memory.
    """

    def __init__(
        self,
        collection: Collection,
        pipes: Optional[Mapping[str, Callable[[str], str]]] = None,
    ):
        """Initialize resolver.

        Args:
            collection: Collection whose functions calls refer to.
            pipes: Pipe registry for template expressions. Defaults to PIPES.
        """
        self.collection = collection
        self.pipes = dict(PIPES if pipes is None else pipes)
        self._cache: Dict[CacheKey, ResolvedCode] = {}

    def resolve(self, call: FunctionCall, scope: CallStack = ()) -> ResolvedCode:
        """Resolve a call into code and optional revert code.

        Args:
            call: The call to resolve. Argument values are final text.
            scope: Names of the functions currently being resolved, outermost
                first.

        Returns:
            ResolvedCode with the expanded code and revert code.

        Raises:
            UnknownFunction: The target function does not exist.
            CyclicFunctionCall: The target function is already in `scope`.
            MissingArgument: A required parameter has no value.
            UnexpectedArgument: The call passes an undeclared parameter.
            UndeclaredParameter: A template references an undeclared parameter.
            UnknownPipe: A template uses a pipe missing from the registry.
        """
        frame, cached = self._enter(call, scope)
        if frame is None:
            return cached

        frames = [frame]
        resolved = cached
        while frames:
            frame = frames[-1]
            inner = next(frame.pending, None)
            if inner is None:
                frames.pop()
                resolved = self._finish(frame)
                if frames:
                    frames[-1].results.append(resolved)
                continue

            arguments = {
                name: self._render(frame.function, Template.parse(value), frame.values)
                for name, value in inner.arguments.items()
            }
            child, cached = self._enter(FunctionCall(inner.function, arguments), frame.stack)
            if child is None:
                frame.results.append(cached)
            else:
                frames.append(child)
        return resolved

    def _enter(
        self, call: FunctionCall, scope: CallStack
    ) -> Tuple[Optional[_Frame], Optional[ResolvedCode]]:
        """Look up and bind a call. Returns a new frame, or a memoized result."""
        function = self.collection.get_function(call.function)
        if function is None:
            raise UnknownFunction(call.function)

        if function.name in scope:
            start = scope.index(function.name)
            raise CyclicFunctionCall(scope[start:] + (function.name,))

        values = self._bind(function, call.arguments)
        key = (function.name, tuple(sorted(values.items())))
        cached = self._cache.get(key)
        if cached is not None:
            return None, cached

        stack = scope + (function.name,)
        log.debug("Resolving %s (depth %d)", function.name, len(stack))
        return _Frame(function, values, key, stack), None

    def _finish(self, frame: _Frame) -> ResolvedCode:
        function = frame.function
        if function.calls:
            resolved = merge(frame.results)
        else:
            code = ""
            if function.code is not None:
                code = trim(self._render(function, function.code, frame.values))
            revert_code = None
            if function.revert_code is not None:
                revert_code = (
                    trim(self._render(function, function.revert_code, frame.values)) or None
                )
            resolved = ResolvedCode(code=code, revert_code=revert_code)

        self._cache[frame.key] = resolved
        return resolved

    def _bind(self, function: Function, arguments: Mapping[str, str]) -> Values:
        """Build the argument environment for a call to `function`."""
        declared = set(function.parameter_names)
        for name in arguments:
            if name not in declared:
                raise UnexpectedArgument(function.name, name)

        values: Values = {}
        for param in function.parameters:
            if param.name in arguments:
                value: Optional[str] = arguments[param.name]
                if not value and param.required:
                    raise MissingArgument(function.name, param.name)
            elif param.default is not None:
                value = param.default
            elif param.optional:
                value = None
            else:
                raise MissingArgument(function.name, param.name)
            values[param.name] = value
        return values

    def _render(self, function: Function, template: Template, values: Values) -> str:
        for name in sorted(template.parameters):
            if name not in values:
                raise UndeclaredParameter(function.name, name)
        try:
            return template.render(values, self.pipes)
        except UnknownPipeError as exc:
            raise UnknownPipe(exc.pipe, function.name) from exc
