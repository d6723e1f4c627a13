"""
Directive scanner.

A directive is a comment line whose body starts with #<name>:

    //#if GENERIC
    <!--#include $ROOT/web/viewer-snippet.html-->
"""

import re
from typing import Optional

from buildpp.model import Directive

DIRECTIVE_NAMES = ("if", "elif", "else", "endif", "expand", "include", "error")

_DIRECTIVE_RE = re.compile(
    r"^\s*(?://|<!--)\s*#(" + "|".join(DIRECTIVE_NAMES) + r")\b(?:\s+(.*?)(?:-->)?$)?"
)
_COMMENT_LAYER_RE = re.compile(r"^(?://|<!--)")
_HTML_COMMENT_END_RE = re.compile(r"-->$")


def scan_line(line: str) -> Optional[Directive]:
    """Return the directive on this line, or None for an ordinary line."""
    m = _DIRECTIVE_RE.match(line)
    if not m:
        return None
    argument = m.group(2) or ""
    # #expand writes its argument out, so trailing whitespace is content.
    if m.group(1) != "expand":
        argument = argument.strip()
    return Directive(name=m.group(1), argument=argument)


def strip_comment_layer(line: str) -> str:
    """
    Remove one level of comment markers from a line of an active branch.

    A leading // or <!-- becomes two spaces so that indentation is kept;
    a trailing --> is dropped.
    """
    line = _COMMENT_LAYER_RE.sub("  ", line, count=1)
    return _HTML_COMMENT_END_RE.sub("", line, count=1)


__all__ = ["DIRECTIVE_NAMES", "scan_line", "strip_comment_layer"]
