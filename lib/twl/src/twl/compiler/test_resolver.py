"""Tests for function call resolution."""

import sys

import pytest

from twl.ast.spec import Collection, FunctionCall
from twl.compiler import Compiler
from twl.compiler.resolver import Resolver, merge
from twl.compiler.spec import ResolvedCode
from twl.errors import (
    CompileError,
    CyclicFunctionCall,
    MissingArgument,
    UndeclaredParameter,
    UnexpectedArgument,
    UnknownFunction,
    UnknownPipe,
)


def _resolver(functions, pipes=None):
    collection = Collection.from_dict(
        {
            "os": "windows",
            "actions": [{"category": "Main", "children": [{"name": "noop", "code": "rem"}]}],
            "functions": functions,
        }
    )
    return Resolver(collection, pipes=pipes)


def _call(function, **arguments):
    return FunctionCall(function, arguments)


def test_defaults_fill_missing_arguments():
    resolver = _resolver(
        [
            {
                "name": "F",
                "parameters": [{"name": "x"}, {"name": "y", "default": "default"}],
                "code": "echo {{ $x }}-{{ $y }}",
            }
        ]
    )
    assert resolver.resolve(_call("F", x="a")) == ResolvedCode("echo a-default")
    assert resolver.resolve(_call("F", x="a", y="b")) == ResolvedCode("echo a-b")


def test_revert_code_is_rendered():
    resolver = _resolver(
        [
            {
                "name": "SetKey",
                "parameters": [{"name": "key"}],
                "code": "reg add {{ $key }}\n",
                "revertCode": "reg delete {{ $key }}\n",
            }
        ]
    )
    resolved = resolver.resolve(_call("SetKey", key="HKCU\\Foo"))
    assert resolved.code == "reg add HKCU\\Foo"
    assert resolved.revert_code == "reg delete HKCU\\Foo"


def test_optional_parameter_without_value_skips_with_block():
    resolver = _resolver(
        [
            {
                "name": "F",
                "parameters": [{"name": "x"}, {"name": "note", "optional": True}],
                "code": "echo {{ $x }}\n{{ with $note }}\necho {{ . }}\n{{ end }}\ndone",
            }
        ]
    )
    assert resolver.resolve(_call("F", x="a")).code == "echo a\ndone"
    assert resolver.resolve(_call("F", x="a", note="hi")).code == "echo a\necho hi\ndone"


def test_unknown_function():
    with pytest.raises(UnknownFunction) as exc:
        _resolver([]).resolve(_call("Nope"))
    assert exc.value.identifier == "Nope"


def test_missing_argument():
    resolver = _resolver([{"name": "F", "parameters": [{"name": "x"}], "code": "{{ $x }}"}])
    with pytest.raises(MissingArgument) as exc:
        resolver.resolve(_call("F"))
    assert (exc.value.function, exc.value.parameter) == ("F", "x")
    with pytest.raises(MissingArgument):
        resolver.resolve(_call("F", x=""))


def test_unexpected_argument():
    resolver = _resolver([{"name": "F", "code": "echo"}])
    with pytest.raises(UnexpectedArgument) as exc:
        resolver.resolve(_call("F", extra="1"))
    assert exc.value.identifier == "F.extra"


def test_undeclared_parameter_in_body():
    resolver = _resolver([{"name": "F", "code": "echo {{ $ghost }}"}])
    with pytest.raises(UndeclaredParameter) as exc:
        resolver.resolve(_call("F"))
    assert exc.value.identifier == "F.ghost"


def test_pipes():
    resolver = _resolver(
        [
            {
                "name": "RunPowerShell",
                "parameters": [{"name": "code"}],
                "code": 'PowerShell -Command "{{ $code | inlinePowerShell | escapeDoubleQuotes }}"',
            }
        ]
    )
    resolved = resolver.resolve(_call("RunPowerShell", code='Write-Host "a"\nWrite-Host "b"'))
    assert resolved.code == 'PowerShell -Command "Write-Host "^""a"^""; Write-Host "^""b"^"""'


def test_unknown_pipe():
    resolver = _resolver(
        [{"name": "F", "parameters": [{"name": "x"}], "code": "{{ $x | shout }}"}]
    )
    with pytest.raises(UnknownPipe) as exc:
        resolver.resolve(_call("F", x="a"))
    assert exc.value.pipe == "shout"
    assert exc.value.function == "F"


def test_custom_pipe_registry():
    resolver = _resolver(
        [{"name": "F", "parameters": [{"name": "x"}], "code": "{{ $x | shout }}"}],
        pipes={"shout": str.upper},
    )
    assert resolver.resolve(_call("F", x="a")).code == "A"


def test_nested_call_arguments_render_in_caller_scope():
    resolver = _resolver(
        [
            {
                "name": "DisableService",
                "parameters": [{"name": "service"}],
                "call": [
                    {
                        "function": "RunCommand",
                        "parameters": {"command": "sc stop {{ $service }}"},
                    },
                    {
                        "function": "RunCommand",
                        "parameters": {"command": "sc config {{ $service }} start= disabled"},
                    },
                ],
            },
            {
                "name": "RunCommand",
                "parameters": [{"name": "command"}],
                "code": "{{ $command }}",
                "revertCode": "echo undo {{ $command }}",
            },
        ]
    )
    resolved = resolver.resolve(_call("DisableService", service="DiagTrack"))
    assert resolved.code == "sc stop DiagTrack\nsc config DiagTrack start= disabled"
    assert resolved.revert_code == (
        "echo undo sc stop DiagTrack\necho undo sc config DiagTrack start= disabled"
    )


def test_caller_revert_is_none_when_no_callee_reverts():
    resolver = _resolver(
        [
            {"name": "Outer", "call": [{"function": "Inner"}, {"function": "Inner2"}]},
            {"name": "Inner", "code": "a"},
            {"name": "Inner2", "code": "b"},
        ]
    )
    assert resolver.resolve(_call("Outer")) == ResolvedCode("a\nb", None)


def test_direct_cycle():
    resolver = _resolver([{"name": "A", "call": {"function": "A"}}])
    with pytest.raises(CyclicFunctionCall) as exc:
        resolver.resolve(_call("A"))
    assert exc.value.cycle == ("A", "A")


def test_indirect_cycle():
    resolver = _resolver(
        [
            {"name": "Start", "call": {"function": "A"}},
            {"name": "A", "call": {"function": "B"}},
            {"name": "B", "call": {"function": "A"}},
        ]
    )
    with pytest.raises(CyclicFunctionCall) as exc:
        resolver.resolve(_call("Start"))
    assert exc.value.cycle == ("A", "B", "A")
    assert exc.value.identifier == "A -> B -> A"


def test_long_cycle_is_detected():
    count = 100
    functions = [
        {"name": f"F{i}", "call": {"function": f"F{(i + 1) % count}"}} for i in range(count)
    ]
    with pytest.raises(CyclicFunctionCall) as exc:
        _resolver(functions).resolve(_call("F0"))
    assert len(exc.value.cycle) == count + 1
    assert exc.value.cycle[0] == exc.value.cycle[-1] == "F0"


def test_cycle_deeper_than_recursion_limit_is_detected():
    count = sys.getrecursionlimit() + 1000
    functions = [
        {"name": f"F{i}", "call": {"function": f"F{(i + 1) % count}"}} for i in range(count)
    ]
    with pytest.raises(CyclicFunctionCall) as exc:
        _resolver(functions).resolve(_call("F0"))
    assert len(exc.value.cycle) == count + 1
    assert exc.value.cycle[-1] == "F0"


def test_chain_deeper_than_recursion_limit_resolves():
    count = sys.getrecursionlimit() + 1000
    functions = [
        {
            "name": f"F{i}",
            "parameters": [{"name": "x"}],
            "call": {"function": f"F{i + 1}", "parameters": {"x": "{{ $x }}"}},
        }
        for i in range(count)
    ]
    functions.append(
        {
            "name": f"F{count}",
            "parameters": [{"name": "x"}],
            "code": "echo {{ $x }}",
            "revertCode": "undo {{ $x }}",
        }
    )
    result = _resolver(functions).resolve(_call("F0", x="leaf"))
    assert result == ResolvedCode(code="echo leaf", revert_code="undo leaf")


def test_compiling_deep_cycle_reports_cycle():
    count = 1000
    collection = Collection.from_dict(
        {
            "os": "linux",
            "actions": [
                {"category": "Main", "children": [{"name": "S", "call": {"function": "F0"}}]}
            ],
            "functions": [
                {"name": f"F{i}", "call": {"function": f"F{(i + 1) % count}"}}
                for i in range(count)
            ],
        }
    )
    with pytest.raises(CompileError) as exc:
        Compiler(collection).compile()
    assert exc.value.kind == "CyclicFunctionCall"
    assert isinstance(exc.value.cause, CyclicFunctionCall)


def test_shared_callee_is_not_a_cycle():
    resolver = _resolver(
        [
            {"name": "Top", "call": [{"function": "Leaf"}, {"function": "Mid"}]},
            {"name": "Mid", "call": {"function": "Leaf"}},
            {"name": "Leaf", "code": "leaf"},
        ]
    )
    assert resolver.resolve(_call("Top")).code == "leaf\nleaf"


def test_resolution_is_deterministic():
    functions = [
        {"name": "F", "parameters": [{"name": "x"}], "code": "echo {{ $x }}"},
    ]
    first = _resolver(functions).resolve(_call("F", x="1"))
    second = _resolver(functions).resolve(_call("F", x="1"))
    assert first == second


def test_merge_skips_empty_results():
    merged = merge([ResolvedCode("a", None), ResolvedCode("", None), ResolvedCode("b", "undo b")])
    assert merged == ResolvedCode("a\nb", "undo b")
