"""Errors raised by the top edits engine."""

from __future__ import annotations


class TopEditsError(Exception):
    """Base class for errors raised by the top edits engine."""


class StoreUnavailable(TopEditsError):
    """The replica database could not be reached or the query failed."""


class InvalidArgument(TopEditsError, ValueError):
    """An argument was rejected before any query was issued."""
