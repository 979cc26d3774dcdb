"""Tests for the renderer module."""

from twl.compiler.renderer import Renderer, assemble, render_globals, rule
from twl.compiler.spec import Direction, Fragment


def test_plain_join():
    fragments = [Fragment("a", "echo a"), Fragment("b", "echo b")]
    text = assemble(fragments, header="#!/usr/bin/env bash")
    assert text == "#!/usr/bin/env bash\n\necho a\n\necho b\n"


def test_header_and_footer_are_trimmed():
    text = assemble([Fragment("a", "echo a")], header="@echo off\n", footer="\npause\n")
    assert text == "@echo off\n\necho a\n\npause\n"


def test_empty_output():
    assert assemble([]) == "\n"


def test_crlf_line_endings():
    fragments = [Fragment("a", "echo a\r\necho b")]
    text = assemble(fragments, header="@echo off", line_ending="\r\n")
    assert text == "@echo off\r\n\r\necho a\r\necho b\r\n"


def test_fragment_text_is_kept_verbatim():
    code = "line1\n\n\n  indented {{ $literal }}"
    assert assemble([Fragment("a", code)]) == code + "\n"


def test_rule():
    assert rule("") == "-" * 60
    assert rule("Clear bash history") == "-" * 21 + "Clear bash history" + "-" * 21
    assert len(rule("Disable telemetry service")) == 60


def test_banner():
    text = Renderer(comment="#").render([Fragment("Clear bash history", "rm -f ~/.bash_history")])
    assert text.splitlines() == [
        "# " + rule(""),
        "# " + rule("Clear bash history"),
        "# " + rule(""),
        "echo --- Clear bash history",
        "rm -f ~/.bash_history",
        "# " + rule(""),
    ]


def test_banner_in_revert_direction():
    fragment = Fragment("Disable hibernation", "powercfg -h off", "powercfg -h on", Direction.REVERT)
    text = Renderer(comment="::", line_ending="\r\n").render([fragment])
    lines = text.split("\r\n")
    assert lines[1] == ":: " + rule("Disable hibernation (revert)")
    assert lines[3] == "echo --- Disable hibernation (revert)"
    assert lines[4] == "powercfg -h on"


def test_custom_banner_template():
    renderer = Renderer(comment="#", banner_template="{{ comment }} {{ name }}\n{{ body }}")
    assert renderer.render([Fragment("a", "echo a")]) == "# a\necho a\n"


def test_render_globals():
    text = render_globals(
        "# {{ $homepage }} v{{ $version }}", {"homepage": "https://example.com", "version": "1.0"}
    )
    assert text == "# https://example.com v1.0"


def test_render_globals_leaves_other_expressions_literal():
    text = render_globals(
        "echo {{ $nope }}\n{{ with $x }}{{ end }}\n{{$homepage}} {{ $homepage }}",
        {"homepage": "https://example.com"},
    )
    assert text == "echo {{ $nope }}\n{{ with $x }}{{ end }}\n{{$homepage}} https://example.com"
