"""
Exceptions raised while parsing abbreviations.

All of them are ValueError subclasses so callers validating user input can
catch a single type.
"""

from __future__ import annotations


class AbbreviationError(ValueError):
    """Base class for malformed abbreviations."""

    def __init__(self, message: str, position: int | None = None):
        super().__init__(message)
        self.position = position


class UnmatchedDelimiterError(AbbreviationError):
    """A `(`, `[` or `{` without its closing pair."""


class InvalidAttributeSetError(UnmatchedDelimiterError):
    """An attribute set `[` without a closing `]`."""


class InvalidAttributeValueError(AbbreviationError):
    """An `=` in an attribute set not followed by a quoted string or word."""


class InvalidNameError(AbbreviationError):
    """Element name contains characters outside the allowed set."""


class RunawayInputError(AbbreviationError):
    """Scanner exceeded its iteration cap."""
