"""
Errors raised by the preprocessor, the CSS stripper and the builder.

Every error is fatal to the run that raised it. Where a source position
is known it is kept on `location` and already rendered into the message.
"""

from typing import Optional

from buildpp.model import Location


class PreprocessorError(Exception):
    """Base class for all build preprocessing failures."""

    def __init__(self, message: str, location: Optional[Location] = None,
                 detail: Optional[str] = None):
        if location is not None:
            message = f"{message} at {location}"
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)
        self.location = location
        self.detail = detail


class EmptyExpressionError(PreprocessorError):
    """#if or #elif without a condition."""


class EvaluationError(PreprocessorError):
    """A condition failed to parse or to evaluate."""


class UnmatchedElifError(PreprocessorError):
    """#elif outside of any #if."""


class UnmatchedElseError(PreprocessorError):
    """#else outside of any #if, or a second #else in one chain."""


class UnmatchedEndifError(PreprocessorError):
    """#endif outside of any #if."""


class ElifAfterElseError(PreprocessorError):
    """#elif following #else in the same chain."""


class IncludeNotFoundError(PreprocessorError):
    """The target of an #include does not exist."""


class UnbalancedDirectiveError(PreprocessorError):
    """Input ended while an #if was still open."""


class UserDirectiveError(PreprocessorError):
    """Raised by an active #error directive."""


class InvalidModeError(PreprocessorError):
    """The CSS stripper was called without a mode."""


class ConfigError(PreprocessorError):
    """A build setup document is malformed."""
