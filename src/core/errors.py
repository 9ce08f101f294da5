"""Coursebase exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Callers distinguish error kinds to decide between retry and abort.
"""

from __future__ import annotations


class CoursebaseError(Exception):
    """Base exception for all Coursebase failures."""


class ConfigError(CoursebaseError):
    """Raised for invalid runtime configuration."""


class InvalidIdError(CoursebaseError):
    """Raised for a missing, blank, or underscore-containing dataset id."""


class InvalidContentError(CoursebaseError):
    """Raised when archive content cannot be decoded or ingested."""


class InvalidDatasetError(InvalidContentError):
    """Raised when a decoded archive violates the dataset kind layout."""


class DuplicateDatasetError(CoursebaseError):
    """Raised when a dataset id is already registered."""


class NotFoundError(CoursebaseError):
    """Raised when an operation references an unregistered dataset id."""


class InvalidQueryError(CoursebaseError):
    """Raised when a query document fails structural or type validation."""


class ResultTooLargeError(CoursebaseError):
    """Raised when a query matches more rows than the configured cap."""


class StoreError(CoursebaseError):
    """Raised for snapshot persistence failures; safe to retry."""
