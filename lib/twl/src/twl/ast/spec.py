"""Document model - the typed, immutable form of a tweak collection.

A collection document is decoded into a generic tree first (see
`twl.ast.parser`) and then converted here in a single validating pass.
Every structural problem is reported as a DocumentError naming the
offending field, e.g. ``actions[0].children[3].call.function``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from twl.ast.template import Template, TemplateSyntaxError
from twl.errors import DocumentError
from twl.platform import TargetOS

PARAMETER_NAME = re.compile(r"^[A-Za-z0-9_]+$")


def _join(path: str, key: Union[str, int]) -> str:
    if isinstance(key, int):
        return f"{path}[{key}]"
    return f"{path}.{key}" if path else key


def _mapping(value: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(value, dict):
        raise DocumentError(path, f"expected a mapping, got {type(value).__name__}")
    return value


def _list(value: Any, path: str) -> List[Any]:
    if not isinstance(value, list):
        raise DocumentError(path, f"expected a list, got {type(value).__name__}")
    return value


def _string(value: Any, path: str, allow_empty: bool = False) -> str:
    if not isinstance(value, str):
        raise DocumentError(path, f"expected a string, got {type(value).__name__}")
    if not allow_empty and not value.strip():
        raise DocumentError(path, "must not be empty")
    return value


def _required(d: Mapping[str, Any], key: str, path: str) -> Any:
    value = d.get(key)
    if value is None:
        raise DocumentError(_join(path, key), "missing required field")
    return value


def _optional_string(d: Mapping[str, Any], key: str, path: str) -> Optional[str]:
    value = d.get(key)
    if value is None:
        return None
    return _string(value, _join(path, key), allow_empty=True)


def _scalar(value: Any, path: str) -> str:
    """Convert a scalar argument value to the text it stands for."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise DocumentError(path, f"expected a scalar value, got {type(value).__name__}")


def _docs(value: Any, path: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(_string(v, _join(path, i)) for i, v in enumerate(_list(value, path)))


def _template(value: Optional[str], path: str) -> Optional[Template]:
    if value is None:
        return None
    try:
        return Template.parse(value)
    except TemplateSyntaxError as exc:
        raise DocumentError(path, str(exc)) from exc


class Recommend(str, Enum):
    """Recommendation level of a script. Unleveled scripts have none."""

    STANDARD = "standard"
    STRICT = "strict"

    @property
    def rank(self) -> int:
        return 1 if self is Recommend.STANDARD else 2

    def includes(self, level: Optional["Recommend"]) -> bool:
        """Whether selecting at this level includes a script at `level`."""
        return level is None or level.rank <= self.rank

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Parameter:
    """A declared function parameter."""

    name: str
    optional: bool = False
    default: Optional[str] = None

    @property
    def required(self) -> bool:
        return not self.optional and self.default is None

    @classmethod
    def from_dict(cls, d: Any, path: str) -> "Parameter":
        d = _mapping(d, path)
        name = _string(_required(d, "name", path), _join(path, "name"))
        if not PARAMETER_NAME.match(name):
            raise DocumentError(
                _join(path, "name"), f"invalid parameter name {name!r} (alphanumeric only)"
            )

        optional = d.get("optional", False)
        if not isinstance(optional, bool):
            raise DocumentError(_join(path, "optional"), "expected true or false")

        default = None
        if "default" in d:
            default = _scalar(d["default"], _join(path, "default"))

        return cls(name=name, optional=optional or default is not None, default=default)


@dataclass(frozen=True)
class FunctionCall:
    """A call site: target function plus argument values by parameter name."""

    function: str
    arguments: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Any, path: str) -> "FunctionCall":
        d = _mapping(d, path)
        function = _string(_required(d, "function", path), _join(path, "function"))

        raw = d.get("parameters") or {}
        params_path = _join(path, "parameters")
        raw = _mapping(raw, params_path)

        arguments: Dict[str, str] = {}
        for key, value in raw.items():
            arguments[str(key)] = _scalar(value, _join(params_path, str(key)))

        return cls(function=function, arguments=MappingProxyType(arguments))

    @classmethod
    def from_data(cls, value: Any, path: str) -> Tuple["FunctionCall", ...]:
        """Parse a `call` field: a single call mapping or a list of them."""
        if isinstance(value, dict):
            return (cls.from_dict(value, path),)
        items = _list(value, path)
        if not items:
            raise DocumentError(path, "must contain at least one call")
        return tuple(cls.from_dict(item, _join(path, i)) for i, item in enumerate(items))


@dataclass(frozen=True)
class Function:
    """A reusable, parameterized template of commands.

    A function either has its own `code` (and optionally `revert_code`), or
    `calls` into other functions. Call argument values are templates
    evaluated in this function's scope.
    """

    name: str
    parameters: Tuple[Parameter, ...] = ()
    code: Optional[Template] = None
    revert_code: Optional[Template] = None
    calls: Tuple[FunctionCall, ...] = ()

    @property
    def parameter_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.parameters)

    @classmethod
    def from_dict(cls, d: Any, path: str) -> "Function":
        d = _mapping(d, path)
        name = _string(_required(d, "name", path), _join(path, "name"))

        parameters: List[Parameter] = []
        seen = set()
        params_path = _join(path, "parameters")
        for i, raw in enumerate(_list(d.get("parameters") or [], params_path)):
            param = Parameter.from_dict(raw, _join(params_path, i))
            if param.name in seen:
                raise DocumentError(
                    _join(_join(params_path, i), "name"),
                    f"duplicate parameter {param.name!r} in function {name!r}",
                )
            seen.add(param.name)
            parameters.append(param)

        code = _optional_string(d, "code", path)
        revert_code = _optional_string(d, "revertCode", path)
        call = d.get("call")

        if call is not None and code is not None:
            raise DocumentError(path, f"function {name!r} defines both 'code' and 'call'")
        if call is None and code is None:
            raise DocumentError(path, f"function {name!r} must define 'code' or 'call'")
        if call is not None and revert_code is not None:
            raise DocumentError(
                _join(path, "revertCode"),
                f"function {name!r} defines 'revertCode' together with 'call'",
            )

        calls: Tuple[FunctionCall, ...] = ()
        if call is not None:
            call_path = _join(path, "call")
            calls = FunctionCall.from_data(call, call_path)
            for i, fc in enumerate(calls):
                site = call_path if isinstance(call, dict) else _join(call_path, i)
                for key, value in fc.arguments.items():
                    _template(value, _join(_join(site, "parameters"), key))

        return cls(
            name=name,
            parameters=tuple(parameters),
            code=_template(code, _join(path, "code")),
            revert_code=_template(revert_code, _join(path, "revertCode")),
            calls=calls,
        )


@dataclass(frozen=True)
class Script:
    """A selectable tweak: inline code or calls, with an optional revert."""

    name: str
    code: Optional[str] = None
    revert_code: Optional[str] = None
    calls: Tuple[FunctionCall, ...] = ()
    recommend: Optional[Recommend] = None
    docs: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, d: Any, path: str) -> "Script":
        d = _mapping(d, path)
        name = _string(_required(d, "name", path), _join(path, "name"))

        code = _optional_string(d, "code", path)
        revert_code = _optional_string(d, "revertCode", path)
        call = d.get("call")

        if call is not None and code is not None:
            raise DocumentError(path, f"script {name!r} defines both 'code' and 'call'")
        if call is None and code is None:
            raise DocumentError(path, f"script {name!r} must define 'code' or 'call'")
        if call is not None and revert_code is not None:
            raise DocumentError(
                _join(path, "revertCode"),
                f"script {name!r} defines 'revertCode' together with 'call'",
            )

        recommend = None
        if d.get("recommend") is not None:
            raw = d["recommend"]
            try:
                recommend = Recommend(raw)
            except ValueError:
                raise DocumentError(
                    _join(path, "recommend"),
                    f"unknown recommendation level {raw!r} (expected 'standard' or 'strict')",
                ) from None

        calls: Tuple[FunctionCall, ...] = ()
        if call is not None:
            calls = FunctionCall.from_data(call, _join(path, "call"))

        return cls(
            name=name,
            code=code,
            revert_code=revert_code,
            calls=calls,
            recommend=recommend,
            docs=_docs(d.get("docs"), _join(path, "docs")),
        )


@dataclass(frozen=True)
class Category:
    """A named group of scripts and sub-categories, in declaration order."""

    name: str
    children: Tuple[Union["Category", Script], ...]
    docs: Tuple[str, ...] = ()

    @property
    def scripts(self) -> Tuple[Script, ...]:
        return tuple(c for c in self.children if isinstance(c, Script))

    @property
    def categories(self) -> Tuple["Category", ...]:
        return tuple(c for c in self.children if isinstance(c, Category))

    @classmethod
    def from_dict(cls, d: Any, path: str) -> "Category":
        d = _mapping(d, path)
        name = _string(_required(d, "category", path), _join(path, "category"))

        children_path = _join(path, "children")
        raw_children = _list(_required(d, "children", path), children_path)
        if not raw_children:
            raise DocumentError(children_path, f"category {name!r} has no children")

        children: List[Union[Category, Script]] = []
        for i, raw in enumerate(raw_children):
            child_path = _join(children_path, i)
            raw = _mapping(raw, child_path)
            if "category" in raw and "name" in raw:
                raise DocumentError(child_path, "defines both 'category' and 'name'")
            if "category" in raw:
                children.append(Category.from_dict(raw, child_path))
            elif "name" in raw:
                children.append(Script.from_dict(raw, child_path))
            else:
                raise DocumentError(child_path, "child must define 'category' or 'name'")

        _check_unique_categories(
            [c for c in children if isinstance(c, Category)],
            [i for i, c in enumerate(children) if isinstance(c, Category)],
            children_path,
        )

        return cls(
            name=name,
            children=tuple(children),
            docs=_docs(d.get("docs"), _join(path, "docs")),
        )


def _check_unique_categories(categories: List[Category], indices: List[int], path: str) -> None:
    seen = set()
    for category, index in zip(categories, indices):
        if category.name in seen:
            raise DocumentError(
                _join(_join(path, index), "category"),
                f"duplicate category name {category.name!r}",
            )
        seen.add(category.name)


@dataclass(frozen=True)
class ScriptingDefinition:
    """Scripting language details shared by every script of a collection."""

    language: str
    start_code: str = ""
    end_code: str = ""
    file_extension: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Any, path: str) -> "ScriptingDefinition":
        d = _mapping(d, path)
        return cls(
            language=_string(_required(d, "language", path), _join(path, "language")),
            start_code=_string(
                _required(d, "startCode", path), _join(path, "startCode"), allow_empty=True
            ),
            end_code=_string(
                _required(d, "endCode", path), _join(path, "endCode"), allow_empty=True
            ),
            file_extension=_optional_string(d, "fileExtension", path),
        )


@dataclass(frozen=True)
class Collection:
    """All categories, scripts and functions written for one OS."""

    os: TargetOS
    actions: Tuple[Category, ...]
    functions: Tuple[Function, ...] = ()
    scripting: Optional[ScriptingDefinition] = None

    _functions: Mapping[str, Function] = field(init=False, repr=False, compare=False)
    _scripts: Mapping[str, Script] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        functions: Dict[str, Function] = {}
        for i, function in enumerate(self.functions):
            if function.name in functions:
                raise DocumentError(
                    f"functions[{i}].name", f"duplicate function name {function.name!r}"
                )
            functions[function.name] = function

        scripts: Dict[str, Script] = {}
        for doc_path, script in _walk_paths(self.actions):
            if script.name in scripts:
                raise DocumentError(
                    _join(doc_path, "name"), f"duplicate script name {script.name!r}"
                )
            scripts[script.name] = script

        object.__setattr__(self, "_functions", MappingProxyType(functions))
        object.__setattr__(self, "_scripts", MappingProxyType(scripts))

    def get_function(self, name: str) -> Optional[Function]:
        return self._functions.get(name)

    def get_script(self, name: str) -> Optional[Script]:
        return self._scripts.get(name)

    @property
    def scripts(self) -> Tuple[Script, ...]:
        return tuple(self._scripts.values())

    def iter_categories(self) -> Iterator[Category]:
        """Yield every category depth-first, in declaration order."""

        def visit(category: Category) -> Iterator[Category]:
            yield category
            for child in category.categories:
                yield from visit(child)

        for category in self.actions:
            yield from visit(category)

    def walk(self) -> Iterator[Tuple[Tuple[str, ...], Script]]:
        """Yield ``(category path, script)`` depth-first, in declaration order."""

        def visit(category: Category, trail: Tuple[str, ...]) -> Iterator[Tuple[Tuple[str, ...], Script]]:
            trail = trail + (category.name,)
            for child in category.children:
                if isinstance(child, Script):
                    yield trail, child
                else:
                    yield from visit(child, trail)

        for category in self.actions:
            yield from visit(category, ())

    @classmethod
    def from_dict(cls, data: Any) -> "Collection":
        """Validate a decoded document and build the Collection.

        Raises:
            DocumentError: On the first structural violation found.
        """
        d = _mapping(data, "")
        raw_os = _string(_required(d, "os", ""), "os")
        try:
            os_ = TargetOS(raw_os)
        except ValueError:
            raise DocumentError("os", f"unsupported operating system {raw_os!r}") from None

        scripting = None
        if d.get("scripting") is not None:
            scripting = ScriptingDefinition.from_dict(d["scripting"], "scripting")

        raw_actions = _list(_required(d, "actions", ""), "actions")
        if not raw_actions:
            raise DocumentError("actions", "collection must define at least one category")
        actions = [Category.from_dict(raw, _join("actions", i)) for i, raw in enumerate(raw_actions)]
        _check_unique_categories(actions, list(range(len(actions))), "actions")

        raw_functions = _list(d.get("functions") or [], "functions")
        functions = [
            Function.from_dict(raw, _join("functions", i)) for i, raw in enumerate(raw_functions)
        ]

        return cls(
            os=os_,
            actions=tuple(actions),
            functions=tuple(functions),
            scripting=scripting,
        )


def _walk_paths(actions: Tuple[Category, ...]) -> Iterator[Tuple[str, Script]]:
    def visit(category: Category, path: str) -> Iterator[Tuple[str, Script]]:
        for i, child in enumerate(category.children):
            child_path = _join(_join(path, "children"), i)
            if isinstance(child, Script):
                yield child_path, child
            else:
                yield from visit(child, child_path)

    for i, category in enumerate(actions):
        yield from visit(category, _join("actions", i))
