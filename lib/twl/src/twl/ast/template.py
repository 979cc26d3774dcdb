"""Template expressions used in function bodies and call arguments.

Supported expressions:

    {{ $name }}                      parameter substitution
    {{ $name | pipe | other }}       substitution through pipes
    {{ with $name }} ... {{ end }}   block rendered only for a non-empty value
    {{ . }}, {{ . | pipe }}          value bound by the enclosing `with`

Anything else between double braces is kept as literal text. A `with` or
`end` tag that sits alone on its line consumes the whole line, so optional
blocks do not leave blank lines behind.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, FrozenSet, Iterator, List, Mapping, Optional, Tuple, Union

EXPRESSION = re.compile(r"\{\{(.*?)\}\}", re.S)
LINE_END = re.compile(r"[ \t]*(?:\r?\n|\Z)")

_NAME = r"[A-Za-z0-9_]+"
_PIPES = r"((?:\s*\|\s*[A-Za-z][A-Za-z0-9]*)*)"

PARAMETER = re.compile(rf"^\$({_NAME}){_PIPES}$")
DOT = re.compile(rf"^\.{_PIPES}$")
WITH = re.compile(rf"^with\s+\$({_NAME})$")

Pipe = Callable[[str], str]


class TemplateSyntaxError(ValueError):
    """Raised when a template contains a malformed expression."""

    pass


class UnboundParameter(LookupError):
    """Raised when rendering references a name missing from the values."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(name)


class UnknownPipeError(LookupError):
    """Raised when rendering uses a pipe missing from the registry."""

    def __init__(self, pipe: str):
        self.pipe = pipe
        super().__init__(pipe)


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Substitution:
    """`{{ $name | pipes }}`, or `{{ . | pipes }}` when name is None."""

    name: Optional[str]
    pipes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class WithBlock:
    name: str
    body: Tuple["Node", ...]


Node = Union[Text, Substitution, WithBlock]


@dataclass(frozen=True)
class Template:
    """A parsed template. Parsing is cached, rendering is pure."""

    source: str
    nodes: Tuple[Node, ...]

    @classmethod
    def parse(cls, source: str) -> "Template":
        """Parse template source.

        Raises:
            TemplateSyntaxError: If an expression is malformed or `with`/`end`
                tags are unbalanced.
        """
        return _parse_cached(source)

    @property
    def parameters(self) -> FrozenSet[str]:
        """Names of all parameters the template references."""
        return frozenset(_walk_names(self.nodes))

    @property
    def pipes(self) -> FrozenSet[str]:
        """Names of all pipes the template uses."""
        return frozenset(_walk_pipes(self.nodes))

    def render(
        self,
        values: Mapping[str, Optional[str]],
        pipes: Optional[Mapping[str, Pipe]] = None,
    ) -> str:
        """Render the template in a single pass.

        Substituted values are inserted verbatim and never scanned for
        further expressions. A value of None means the parameter was not
        given: it renders as an empty string and skips `with` blocks.

        Raises:
            UnboundParameter: If a referenced name is missing from `values`.
            UnknownPipeError: If a pipe is missing from `pipes`.
        """
        parts: List[str] = []
        _render(self.nodes, values, pipes or {}, None, parts)
        return "".join(parts)


@lru_cache(maxsize=1024)
def _parse_cached(source: str) -> Template:
    return Template(source=source, nodes=_build(source))


def _is_expression(expr: str) -> bool:
    if not expr:
        return False
    if expr[0] in "$.":
        return True
    return expr.split()[0] in ("with", "end")


def _is_block_tag(expr: str) -> bool:
    return expr.split()[0] in ("with", "end")


def _tokenize(source: str) -> Iterator[Tuple[str, str]]:
    pos = 0
    at_line_start = True

    for match in EXPRESSION.finditer(source):
        text = source[pos : match.start()]
        expr = match.group(1).strip()
        end = match.end()

        if not _is_expression(expr):
            yield "text", text + match.group(0)
            pos = end
            at_line_start = False
            continue

        consumed_newline = False
        if _is_block_tag(expr):
            line_start = text.rfind("\n") + 1
            starts_line = not text[line_start:].strip(" \t") and (
                line_start > 0 or at_line_start
            )
            line_end = LINE_END.match(source, end)
            if starts_line and line_end:
                text = text[:line_start]
                end = line_end.end()
                consumed_newline = True

        if text:
            yield "text", text
        yield "expr", expr
        pos = end
        at_line_start = consumed_newline

    tail = source[pos:]
    if tail:
        yield "text", tail


def _split_pipes(group: str) -> Tuple[str, ...]:
    return tuple(p.strip() for p in group.split("|") if p.strip())


def _build(source: str) -> Tuple[Node, ...]:
    root: List[Node] = []
    current = root
    # Open `with` blocks: (parameter name, node list of the enclosing scope)
    stack: List[Tuple[str, List[Node]]] = []

    for kind, value in _tokenize(source):
        if kind == "text":
            current.append(Text(value))
            continue

        expr = value
        head = expr.split()[0]
        if expr.startswith("$"):
            match = PARAMETER.match(expr)
            if not match:
                raise TemplateSyntaxError(f"Invalid expression: {{{{ {expr} }}}}")
            current.append(Substitution(match.group(1), _split_pipes(match.group(2))))
        elif expr.startswith("."):
            match = DOT.match(expr)
            if not match:
                raise TemplateSyntaxError(f"Invalid expression: {{{{ {expr} }}}}")
            if not stack:
                raise TemplateSyntaxError("'{{ . }}' used outside of a with block")
            current.append(Substitution(None, _split_pipes(match.group(1))))
        elif head == "with":
            match = WITH.match(expr)
            if not match:
                raise TemplateSyntaxError(f"Invalid expression: {{{{ {expr} }}}}")
            stack.append((match.group(1), current))
            current = []
        else:
            if expr != "end":
                raise TemplateSyntaxError(f"Invalid expression: {{{{ {expr} }}}}")
            if not stack:
                raise TemplateSyntaxError("'{{ end }}' without a matching with block")
            name, parent = stack.pop()
            parent.append(WithBlock(name, tuple(current)))
            current = parent

    if stack:
        raise TemplateSyntaxError(f"Unclosed with block for ${stack[-1][0]}")
    return tuple(root)


def _walk_names(nodes: Tuple[Node, ...]) -> Iterator[str]:
    for node in nodes:
        if isinstance(node, Substitution):
            if node.name is not None:
                yield node.name
        elif isinstance(node, WithBlock):
            yield node.name
            yield from _walk_names(node.body)


def _walk_pipes(nodes: Tuple[Node, ...]) -> Iterator[str]:
    for node in nodes:
        if isinstance(node, Substitution):
            yield from node.pipes
        elif isinstance(node, WithBlock):
            yield from _walk_pipes(node.body)


def _lookup(values: Mapping[str, Optional[str]], name: str) -> Optional[str]:
    if name not in values:
        raise UnboundParameter(name)
    return values[name]


def _render(
    nodes: Tuple[Node, ...],
    values: Mapping[str, Optional[str]],
    pipes: Mapping[str, Pipe],
    dot: Optional[str],
    parts: List[str],
) -> None:
    for node in nodes:
        if isinstance(node, Text):
            parts.append(node.value)
        elif isinstance(node, Substitution):
            value = dot if node.name is None else _lookup(values, node.name)
            value = value or ""
            for pipe_name in node.pipes:
                pipe = pipes.get(pipe_name)
                if pipe is None:
                    raise UnknownPipeError(pipe_name)
                value = pipe(value)
            parts.append(value)
        else:
            value = _lookup(values, node.name)
            if value:
                _render(node.body, values, pipes, value, parts)
