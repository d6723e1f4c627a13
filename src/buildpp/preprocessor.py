"""
Line preprocessor for build sources.

Based on the Firefox build preprocessor, restricted to a handful of
commands, and also accepting commands inside HTML comments:

    #if <condition>     #elif <condition>     #else     #endif
    #expand <line>      #include <path>       #error <message>

Every #if must be closed with an #endif. Nesting is allowed.

Inside an active #if or #else branch one level of comment markers is
stripped, so sources stay runnable without preprocessing:

    //#if SOME_RARE_CONDITION
    // // Decrement by one
    // --i;
    //#else
    // // Increment by one.
    ++i;
    //#endif
"""

import logging
import os
import re
from typing import Any, Callable, List, Mapping, Optional, Union

from buildpp.errors import (
    ElifAfterElseError,
    EmptyExpressionError,
    EvaluationError,
    IncludeNotFoundError,
    UnbalancedDirectiveError,
    UnmatchedElifError,
    UnmatchedElseError,
    UnmatchedEndifError,
    UserDirectiveError,
)
from buildpp.evaluator import evaluate
from buildpp.expression_parser import parse_expression
from buildpp.model import BranchState, Directive, Location
from buildpp.scanner import scan_line, strip_comment_layer

log = logging.getLogger(__name__)

# Two directories above this module: the project checkout.
ROOT_DIR = os.path.normpath(os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", ".."))
ROOT_MARKER = "$ROOT/"

_VARIABLE_RE = re.compile(r"__\w+__")

LineSink = Callable[[str], None]
Output = Union[str, "os.PathLike[str]", LineSink]


def read_lines(path) -> List[str]:
    """Read a text file as lines; a final newline does not add an empty line."""
    with open(path, "r", encoding="utf-8", newline="") as f:
        text = f.read()
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def evaluate_condition(code: Optional[str], defines: Mapping[str, Any], location: Location) -> Any:
    """
    Evaluate an #if/#elif condition.

    Raises:
        EmptyExpressionError: If the condition is missing or blank
        EvaluationError: If the condition cannot be parsed or evaluated
    """
    if not code or not code.strip():
        raise EmptyExpressionError("No expression given", location)
    try:
        return evaluate(parse_expression(code), defines)
    except Exception as e:
        raise EvaluationError(
            f'Could not evaluate "{code}"', location, detail=f"{type(e).__name__}: {e}"
        ) from e


def _to_text(value: Any) -> str:
    # Spelled the way the generated (JavaScript) sources expect.
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return "null"
    return str(value)


def expand_variables(line: str, defines: Mapping[str, Any]) -> str:
    """Replace each __NAME__ with the text of defines[NAME], or '' when undefined."""

    def substitute(m):
        name = m.group(0)[2:-2]
        if name in defines:
            return _to_text(defines[name])
        return ""

    return _VARIABLE_RE.sub(substitute, line)


def resolve_include(reference: str, including_file, root: Optional[str] = None) -> str:
    """
    Resolve an #include reference.

    $ROOT/-prefixed references are taken relative to `root` (ROOT_DIR by
    default); anything else is relative to the directory of the real path
    of the including file.
    """
    if reference.startswith(ROOT_MARKER):
        return os.path.join(root or ROOT_DIR, reference[len(ROOT_MARKER):])
    directory = os.path.dirname(os.path.realpath(including_file))
    return os.path.join(directory, reference)


class LinePreprocessor:
    """
    One preprocessing run over one input file.

    Holds the branch state and its stack for this file only; an #include
    starts a fresh LinePreprocessor that writes into the same sink.
    """

    def __init__(self, input_path, write_line: LineSink, defines: Mapping[str, Any],
                 root: Optional[str] = None):
        self.input_path = input_path
        self.write_line = write_line
        self.defines = defines
        self.root = root
        self.state = BranchState.NONE
        self.stack: List[BranchState] = []
        self.line_number = 0
        self._real_path: Optional[str] = None

    @property
    def location(self) -> Location:
        if self._real_path is None:
            self._real_path = os.path.realpath(self.input_path)
        return Location(self._real_path, self.line_number)

    def run(self) -> None:
        for line in read_lines(self.input_path):
            self.line_number += 1
            directive = scan_line(line)
            if directive is not None:
                self.handle_directive(directive)
            else:
                self.handle_line(line)

        if self.state != BranchState.NONE or self.stack:
            raise UnbalancedDirectiveError(
                f"Missing #endif in preprocessor for {os.path.realpath(self.input_path)}"
            )

    def handle_line(self, line: str) -> None:
        if self.state == BranchState.NONE:
            self.write_line(line)
        elif self.state.emitting and not any(s.suppressed for s in self.stack):
            self.write_line(strip_comment_layer(line))

    def handle_directive(self, directive: Directive) -> None:
        handler = getattr(self, f"_on_{directive.name}")
        handler(directive.argument)

    def _condition(self, code: str) -> BranchState:
        if evaluate_condition(code, self.defines, self.location):
            return BranchState.IF_TRUE
        return BranchState.IF_FALSE

    def _on_if(self, argument: str) -> None:
        self.stack.append(self.state)
        self.state = self._condition(argument)

    def _on_elif(self, argument: str) -> None:
        if self.state in (BranchState.IF_TRUE, BranchState.ELSE_FALSE):
            self.state = BranchState.ELSE_FALSE
        elif self.state == BranchState.IF_FALSE:
            self.state = self._condition(argument)
        elif self.state == BranchState.ELSE_TRUE:
            raise ElifAfterElseError("Found #elif after #else", self.location)
        else:
            raise UnmatchedElifError("Found #elif without matching #if", self.location)

    def _on_else(self, argument: str) -> None:
        if self.state in (BranchState.IF_TRUE, BranchState.ELSE_FALSE):
            self.state = BranchState.ELSE_FALSE
        elif self.state == BranchState.IF_FALSE:
            self.state = BranchState.ELSE_TRUE
        else:
            raise UnmatchedElseError("Found #else without matching #if", self.location)

    def _on_endif(self, argument: str) -> None:
        if self.state == BranchState.NONE:
            raise UnmatchedEndifError("Found #endif without #if", self.location)
        self.state = self.stack.pop()

    def _on_expand(self, argument: str) -> None:
        if not self.state.suppressed:
            self.write_line(expand_variables(argument, self.defines))

    def _on_include(self, argument: str) -> None:
        if self.state.suppressed:
            return
        path = resolve_include(argument, self.input_path, self.root)
        log.debug("Including %s at %s", path, self.location)
        try:
            preprocess(path, self.write_line, self.defines, root=self.root)
        except FileNotFoundError as e:
            raise IncludeNotFoundError(f'Failed to include "{argument}"', self.location) from e

    def _on_error(self, argument: str) -> None:
        if not self.state.suppressed:
            raise UserDirectiveError(f"Found #error {argument}", self.location)


def preprocess(input_path, output: Output, defines: Mapping[str, Any],
               root: Optional[str] = None) -> None:
    """
    Preprocess `input_path`.

    Args:
        input_path: Text file to read
        output: Path of the file to overwrite, or a callable receiving
                each produced line (without its newline)
        defines: Names visible to conditions and #expand; never modified
        root: Directory that $ROOT/ includes resolve against
              (defaults to ROOT_DIR)

    Raises:
        PreprocessorError: Any of its subclasses, see buildpp.errors
        OSError: Other I/O failures, unchanged
    """
    if callable(output):
        LinePreprocessor(input_path, output, defines, root).run()
        return

    out: List[str] = []
    LinePreprocessor(input_path, out.append, defines, root).run()
    with open(output, "w", encoding="utf-8", newline="") as f:
        f.write("".join(line + "\n" for line in out))
    log.debug("Wrote %d lines from %s to %s", len(out), input_path, output)


__all__ = [
    "LinePreprocessor",
    "ROOT_DIR",
    "ROOT_MARKER",
    "evaluate_condition",
    "expand_variables",
    "preprocess",
    "read_lines",
    "resolve_include",
]
