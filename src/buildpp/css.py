"""
CSS preprocessing: @import inlining and vendor-prefix stripping.

This is line surgery driven by regular expressions, not a CSS parser.
Braces inside comments or strings are not understood.

Modes:
    firefox     drop rules/declarations using -ms-, -o- or -webkit-
    mozcentral  as firefox, plus the legacy -moz- properties below
    (other)     inline imports only
"""

import logging
import os
import re
from typing import Callable, List

from buildpp.errors import InvalidModeError

log = logging.getLogger(__name__)

DEPRECATED_IN_MOZCENTRAL = (
    "-moz-box-sizing",
    "-moz-grab",
    "-moz-grabbing",
)

_IMPORT_RE = re.compile(r"^\s*@import\s+url\(([^)]+)\);\s*$", re.MULTILINE)
_PREFIXED_RE = re.compile(r"(^|\W)-(ms|o|webkit)-\w")
_DEPRECATED_RE = re.compile(r"(^|\W)(" + "|".join(DEPRECATED_IN_MOZCENTRAL) + r")")

_OPENS_BLOCK_RE = re.compile(r"\{\s*$")
_TRAILING_BRACE_RE = re.compile(r"([{}])\s*$")
_ENDS_STATEMENT_RE = re.compile(r"[};]\s*$")
_CLOSES_BLOCK_RE = re.compile(r"\}\s*$")
_CONTENT_BEFORE_CLOSE_RE = re.compile(r"\S\s*}\s*$")


def has_prefixed_firefox(line: str) -> bool:
    return bool(_PREFIXED_RE.search(line))


def has_prefixed_mozcentral(line: str) -> bool:
    return bool(_PREFIXED_RE.search(line) or _DEPRECATED_RE.search(line))


def expand_imports(content: str, base_path: str) -> str:
    """
    Inline every whole-line `@import url(...);`, recursively.

    URLs are file paths relative to the directory of `base_path`.
    Cyclic imports recurse until the interpreter gives up.
    """

    def inline(m):
        path = os.path.join(os.path.dirname(base_path), m.group(1))
        log.debug("Inlining %s into %s", path, base_path)
        with open(path, "r", encoding="utf-8", newline="") as f:
            imported = f.read()
        return expand_imports(imported, path)

    return _IMPORT_RE.sub(inline, content)


def _block_end(lines: List[str], start: int) -> int:
    """Index just past the line closing the block opened at `start`."""
    depth = 1
    j = start + 1
    while j < len(lines) and depth > 0:
        m = _TRAILING_BRACE_RE.search(lines[j])
        if m:
            if m.group(1) == "{":
                depth += 1
            elif "{" not in lines[j]:
                depth -= 1
        j += 1
    return j


def remove_prefixed(content: str, is_prefixed: Callable[[str], bool]) -> str:
    """
    Drop every line or rule block flagged by `is_prefixed`.

    - A flagged line ending in `{` takes its whole block with it.
    - A flagged line ending in `}` or `;` goes alone.
    - Otherwise it is the start of a multi-line value: lines are dropped
      until one ends in `}` or contains `:`. If that line has content
      before its `}`, only the `}` onwards is kept.

    After each removal a run of blank lines at the cut is collapsed to one.
    """
    lines = re.split(r"\r?\n", content)
    i = 0
    while i < len(lines):
        line = lines[i]
        if not is_prefixed(line):
            i += 1
            continue

        if _OPENS_BLOCK_RE.search(line):
            del lines[i:_block_end(lines, i)]
        elif _ENDS_STATEMENT_RE.search(line):
            del lines[i]
        else:
            del lines[i]
            while (i < len(lines) and not _CLOSES_BLOCK_RE.search(lines[i])
                   and ":" not in lines[i]):
                del lines[i]
            if i < len(lines) and _CONTENT_BEFORE_CLOSE_RE.search(lines[i]):
                lines[i] = lines[i][lines[i].index("}"):]

        while 0 < i < len(lines) and lines[i] == "" and lines[i - 1] == "":
            del lines[i]

    return "\n".join(lines)


def preprocess_css(mode: str, source: str, destination: str) -> None:
    """
    Inline imports of `source`, strip prefixed CSS for `mode`, write `destination`.

    Raises:
        InvalidModeError: If mode is empty
        OSError: If a file cannot be read or written
    """
    if not mode:
        raise InvalidModeError("Invalid CSS preprocessor mode")

    with open(source, "r", encoding="utf-8", newline="") as f:
        content = f.read()
    content = expand_imports(content, source)

    if mode == "mozcentral":
        content = remove_prefixed(content, has_prefixed_mozcentral)
    elif mode == "firefox":
        content = remove_prefixed(content, has_prefixed_firefox)

    with open(destination, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    log.debug("Preprocessed CSS %s -> %s (mode %s)", source, destination, mode)


__all__ = [
    "DEPRECATED_IN_MOZCENTRAL",
    "expand_imports",
    "has_prefixed_firefox",
    "has_prefixed_mozcentral",
    "preprocess_css",
    "remove_prefixed",
]
