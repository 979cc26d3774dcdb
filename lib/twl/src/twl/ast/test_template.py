import pytest

from twl.ast.template import (
    Template,
    TemplateSyntaxError,
    UnboundParameter,
    UnknownPipeError,
)


def test_parameter_substitution():
    t = Template.parse("echo {{ $x }}-{{$y}}")
    assert t.parameters == frozenset({"x", "y"})
    assert t.render({"x": "a", "y": "b"}) == "echo a-b"


def test_substituted_text_is_not_expanded_again():
    t = Template.parse("echo {{ $x }}")
    assert t.render({"x": "{{ $y }}", "y": "nope"}) == "echo {{ $y }}"


def test_absent_value_renders_empty():
    assert Template.parse("a{{ $x }}b").render({"x": None}) == "ab"


def test_pipes_are_applied_in_order():
    t = Template.parse("{{ $x | upper | wrap }}")
    pipes = {"upper": str.upper, "wrap": lambda s: f"[{s}]"}
    assert t.pipes == frozenset({"upper", "wrap"})
    assert t.render({"x": "on"}, pipes) == "[ON]"


def test_unknown_pipe_raises():
    with pytest.raises(UnknownPipeError) as exc:
        Template.parse("{{ $x | nope }}").render({"x": "v"})
    assert exc.value.pipe == "nope"


def test_unbound_parameter_raises():
    with pytest.raises(UnboundParameter) as exc:
        Template.parse("{{ $x }}").render({})
    assert exc.value.name == "x"


def test_with_block_on_own_lines_consumes_lines():
    source = "start\n{{ with $x }}\necho {{ . }}\n{{ end }}\nstop"
    t = Template.parse(source)
    assert t.render({"x": "v"}) == "start\necho v\nstop"
    assert t.render({"x": None}) == "start\nstop"
    assert t.render({"x": ""}) == "start\nstop"


def test_block_tags_with_trailing_whitespace_consume_lines():
    source = "start\n{{ with $x }}  \necho {{ . }}\n  {{ end }} \t\r\nstop"
    t = Template.parse(source)
    assert t.render({"x": "v"}) == "start\necho v\nstop"
    assert t.render({"x": None}) == "start\nstop"


def test_inline_with_block():
    t = Template.parse("a{{ with $x }}[{{ . }}]{{ end }}b")
    assert t.render({"x": "1"}) == "a[1]b"
    assert t.render({"x": None}) == "ab"


def test_nested_with_blocks():
    t = Template.parse("{{ with $a }}{{ . }}:{{ with $b }}{{ . | upper }}{{ end }}{{ end }}")
    assert t.parameters == frozenset({"a", "b"})
    assert t.render({"a": "1", "b": "two"}, {"upper": str.upper}) == "1:TWO"
    assert t.render({"a": "1", "b": None}, {"upper": str.upper}) == "1:"
    assert t.render({"a": None, "b": "two"}, {"upper": str.upper}) == ""


def test_other_braces_are_literal():
    t = Template.parse("echo {{ foo }} {{}}")
    assert t.parameters == frozenset()
    assert t.render({}) == "echo {{ foo }} {{}}"


@pytest.mark.parametrize(
    "source",
    [
        "{{ with $x }}never closed",
        "{{ end }}",
        "{{ . }}",
        "{{ $ }}",
        "{{ $x | }}",
        "{{ with x }}{{ end }}",
        "{{ with $x }}{{ end extra }}",
    ],
)
def test_malformed_templates_raise(source):
    with pytest.raises(TemplateSyntaxError):
        Template.parse(source)


def test_parse_is_cached():
    assert Template.parse("echo {{ $x }}") is Template.parse("echo {{ $x }}")
