"""
Core Preprocessor Model Objects

Defines the plain data structures shared by the preprocessor,
the CSS stripper and the builder:
    - BranchState (where the line loop is inside an #if chain)
    - Location (diagnostic position)
    - Directive (a recognized control line)
    - BuildSetup (what a build run should do)

ARCHITECTURAL RULE:
    These objects hold data only.
    Transitions and I/O live in preprocessor, css and builder.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class BranchState(Enum):
    """
    Whether the current conditional region is emitting lines.

    Values:
        NONE:
            Not inside any #if. Lines are copied unchanged.

        IF_FALSE:
            Inside #if/#elif whose condition was false.
            Lines are dropped until #elif, #else or #endif.

        ELSE_TRUE:
            Inside #else after a false #if.
            Lines are emitted until #endif.

        IF_TRUE:
            Inside #if/#elif whose condition was true.
            Lines are emitted until #elif, #else or #endif.

        ELSE_FALSE:
            A previous branch of this chain already fired.
            Every remaining branch is dropped.
    """

    NONE = 0
    IF_FALSE = 1
    ELSE_TRUE = 2
    IF_TRUE = 3
    ELSE_FALSE = 4

    @property
    def emitting(self) -> bool:
        return self in (BranchState.NONE, BranchState.IF_TRUE, BranchState.ELSE_TRUE)

    @property
    def suppressed(self) -> bool:
        return self in (BranchState.IF_FALSE, BranchState.ELSE_FALSE)


@dataclass(frozen=True)
class Location:
    """
    A position in an input file, used only for error messages.

    Properties:
        path: Resolved real path of the file
        line: 1-based line number
    """

    path: str
    line: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}"


@dataclass(frozen=True)
class Directive:
    """
    A control line found by the scanner.

    Example:
        //#if GENERIC || CHROME

    Becomes:
        Directive(name="if", argument="GENERIC || CHROME")

    Properties:
        name: One of if, elif, else, endif, expand, include, error
        argument: Text after the name, trailing --> removed,
                  whitespace stripped; empty when absent
    """

    name: str
    argument: str = ""


@dataclass
class BuildSetup:
    """
    Describes one build run.

    Properties:
        defines:
            Names available to #if conditions and #expand

        mkdirs:
            Directories created before anything is copied

        copy:
            [source, destination] pairs copied verbatim
            (directories are copied recursively)

        preprocess:
            [sources, destination] pairs run through the line preprocessor.
            sources may be a file, a directory or a glob pattern.

        preprocess_css:
            [mode, source, destination] triples run through the CSS stripper

        build_dir:
            Optional output root, informational only
    """

    defines: Dict[str, Any] = field(default_factory=dict)
    mkdirs: List[str] = field(default_factory=list)
    copy: List[List[str]] = field(default_factory=list)
    preprocess: List[List[str]] = field(default_factory=list)
    preprocess_css: List[List[str]] = field(default_factory=list)
    build_dir: Optional[str] = None
