"""Pipes available in template expressions (`{{ $value | pipeName }}`)."""

import re
from typing import Callable, Dict

NEWLINE = re.compile(r"\r\n|\r|\n")
INLINE_COMMENT = re.compile(r"<#\s*(.*)#>|#\s*(.*)")
HERE_STRING = re.compile(r"@(['\"])\s*(?:\r\n|\r|\n)((.|\n|\r)+?)(\r\n|\r|\n)['\"]@")
BACKTICK_CONTINUATION = re.compile(r" +`\s*(?:\r\n|\r|\n)\s*")


def escape_double_quotes(text: str) -> str:
    """Escape double quotes for batch files: `"` becomes `"^""`."""
    return text.replace('"', '"^""')


def _inline_comment(match: "re.Match[str]") -> str:
    block = match.group(1)
    if block is None:
        return ""
    return f"<# {block.strip()} #>"


def _inline_here_string(match: "re.Match[str]") -> str:
    if match.group(1) == "'":
        quotes, escaped, separator = "'", "''", "'+\"`r`n\"+'"
    else:
        quotes, escaped, separator = '"', '`"', "`r`n"
    lines = NEWLINE.split(match.group(2).replace(quotes, escaped))
    return f"{quotes}{separator.join(lines)}{quotes}"


def inline_powershell(text: str) -> str:
    """Collapse a multi-line PowerShell script into a single line.

    Line comments are dropped, block comments are kept inline, here-strings
    become regular strings, backtick continuations are merged, and the
    remaining non-empty lines are joined with `; `.
    """
    text = INLINE_COMMENT.sub(_inline_comment, text)
    text = HERE_STRING.sub(_inline_here_string, text)
    text = BACKTICK_CONTINUATION.sub(" ", text)
    lines = (line.strip() for line in NEWLINE.split(text))
    return "; ".join(line for line in lines if line)


PIPES: Dict[str, Callable[[str], str]] = {
    "escapeDoubleQuotes": escape_double_quotes,
    "inlinePowerShell": inline_powershell,
}
