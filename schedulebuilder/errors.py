"""
Exception types raised by the import pipeline and the state owner.

Row-level problems are never raised; only failures that abort an
operation as a whole live here.
"""

from __future__ import annotations


class ScheduleBuilderError(Exception):
    """Base class for all errors reported to the user."""


class ParseError(ScheduleBuilderError):
    """The pasted HTML does not contain the catalog table."""


class FetchError(ScheduleBuilderError):
    """The catalog HTML could not be read or downloaded."""


class EmptySelectionError(ScheduleBuilderError):
    """An import was finalised without selecting any subject."""
