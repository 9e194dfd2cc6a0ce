"""Post-render syntax checks for generated files.

A rendered file is only accepted into the manifest once it passes a check
for its target language.  These are lexical checks, not full parsers: JSON
is parsed with :mod:`json`, TypeScript/JavaScript and Prisma sources are
scanned for balanced brackets outside strings and comments, and every file
is checked for stray Jinja statement delimiters.  In ``.tsx``/``.jsx`` files
JSX elements are tracked as well, so quotes and slashes in element text are
plain text.
"""

from __future__ import annotations

import json
from pathlib import PurePosixPath

from saasforge.errors import OutputSyntaxError

SCRIPT_SUFFIXES = frozenset({".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs"})
JSX_SUFFIXES = frozenset({".tsx", ".jsx"})
LEFTOVER_DELIMITERS = ("{%", "%}")

_PAIRS = {")": "(", "]": "[", "}": "{"}
_QUOTES = ("'", '"', "`")
_JSX_MODES = ("text", "tag", "close")

# Characters after which ``<`` starts an element instead of a comparison.
_JSX_PRECEDERS = frozenset("(,=:?&|{[;>")


def validate_output(path: str, content: str, template: str | None = None) -> None:
    """Raise ``OutputSyntaxError`` if *content* is not valid for *path*'s type."""
    template = template or path
    _check_leftovers(path, content, template)

    suffix = PurePosixPath(path).suffix
    if suffix == ".json":
        try:
            json.loads(content)
        except json.JSONDecodeError as exc:
            raise OutputSyntaxError(path, template, f"invalid JSON: {exc.msg}", line=exc.lineno) from exc
    elif suffix in SCRIPT_SUFFIXES:
        _check_brackets(
            path, content, template, quotes="'\"`", block_comments=True, jsx=suffix in JSX_SUFFIXES
        )
    elif suffix == ".prisma":
        _check_brackets(path, content, template, quotes='"', block_comments=False)


def _check_leftovers(path: str, content: str, template: str) -> None:
    for delimiter in LEFTOVER_DELIMITERS:
        index = content.find(delimiter)
        if index != -1:
            line = content.count("\n", 0, index) + 1
            raise OutputSyntaxError(
                path, template, f"unrendered template delimiter '{delimiter}'", line=line
            )


def _opens_element(content: str, index: int) -> bool:
    """Whether the ``<`` at *index* starts a JSX element rather than an operator."""
    following = content[index + 1:index + 2]
    if not (following.isalpha() or following == ">"):
        return False
    j = index - 1
    while j >= 0 and content[j].isspace():
        j -= 1
    if j < 0 or content[j] in _JSX_PRECEDERS:
        return True
    if not content.endswith("return", 0, j + 1):
        return False
    return j < 6 or not (content[j - 6].isalnum() or content[j - 6] in "_$")


def _check_brackets(
    path: str, content: str, template: str, *, quotes: str, block_comments: bool, jsx: bool = False
) -> None:
    """Check that ``()[]{}`` balance outside string literals and comments.

    Template literals are tracked with their ``${...}`` substitutions, so
    brackets inside an interpolation count while the literal text does not.
    With *jsx*, element text is skipped up to the next ``{`` or tag and every
    opened element must be closed.
    """

    def fail(detail: str, at: int) -> OutputSyntaxError:
        return OutputSyntaxError(path, template, detail, line=at)

    # (opener, line, mode to resume once the bracket closes)
    stack: list[tuple[str, int, str]] = []
    # Open JSX elements, one counter per expression level.
    elements = [0]
    mode = ""
    resume = ""
    mode_line = 1
    line = 1
    i = 0
    n = len(content)

    while i < n:
        ch = content[i]
        nxt = content[i + 1] if i + 1 < n else ""
        if ch == "\n":
            line += 1

        if mode in _QUOTES:
            if ch == "\\":
                if nxt == "\n":
                    line += 1
                i += 2
                continue
            if ch == "\n" and mode != "`":
                raise fail(f"unterminated string literal opened with {mode}", mode_line)
            if ch == mode:
                mode = resume
            elif mode == "`" and ch == "$" and nxt == "{":
                stack.append(("${", line, "`"))
                mode = ""
                i += 2
                continue
        elif mode == "//":
            if ch == "\n":
                mode = ""
        elif mode == "/*":
            if ch == "*" and nxt == "/":
                mode = ""
                i += 2
                continue
        elif mode == "text":
            if ch == "{":
                stack.append(("{", line, "text"))
                elements.append(0)
                mode = ""
            elif ch == "<":
                mode, mode_line = ("close" if nxt == "/" else "tag"), line
            elif ch == "}":
                raise fail("unexpected '}' in JSX text", line)
        elif mode == "tag":
            if ch in "'\"":
                mode, mode_line, resume = ch, line, "tag"
            elif ch == "{":
                stack.append(("{", line, "tag"))
                elements.append(0)
                mode = ""
            elif ch == "/" and nxt == ">":
                mode = "text" if elements[-1] else ""
                i += 2
                continue
            elif ch == ">":
                elements[-1] += 1
                mode = "text"
        elif mode == "close":
            if ch == ">":
                if not elements[-1]:
                    raise fail("closing tag without an open element", line)
                elements[-1] -= 1
                mode = "text" if elements[-1] else ""
        else:
            if ch in quotes:
                mode, mode_line, resume = ch, line, ""
            elif ch == "/" and nxt == "/":
                mode = "//"
                i += 2
                continue
            elif block_comments and ch == "/" and nxt == "*":
                mode, mode_line = "/*", line
                i += 2
                continue
            elif jsx and ch == "<" and _opens_element(content, i):
                mode, mode_line = "tag", line
            elif ch in "([{":
                stack.append((ch, line, ""))
            elif ch in _PAIRS:
                if not stack:
                    raise fail(f"unexpected '{ch}'", line)
                opener, opened_at, after = stack.pop()
                if opener[-1] != _PAIRS[ch]:
                    raise fail(f"'{ch}' does not close '{opener}' opened on line {opened_at}", line)
                if after in ("text", "tag"):
                    elements.pop()
                mode = after
        i += 1

    if mode in _QUOTES or mode == "/*":
        raise fail(f"unterminated {'comment' if mode == '/*' else 'string literal'}", mode_line)
    if mode in _JSX_MODES or elements[-1]:
        raise fail("JSX element is never closed", mode_line)
    if stack:
        opener, opened_at, _ = stack[-1]
        raise fail(f"'{opener}' is never closed", opened_at)
