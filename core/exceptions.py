#!/usr/bin/env python3
"""
Exceptions raised by the matching core.

Empty result lists are values, not errors: nothing here is raised when a
preference simply filters every candidate out.
"""


class MatchingError(Exception):
    """Base exception for matching-layer errors."""
    pass


class ValidationError(MatchingError):
    """Raised when a request, preference or outcome carries invalid values."""
    pass


class InvalidAssessmentError(ValidationError):
    """Raised when an assessment has an ADL level or LTCI grade out of range."""
    pass


class NotFoundError(MatchingError):
    """Raised when an assessment or history record does not exist."""
    pass


class AlreadyFinalizedError(MatchingError):
    """Raised when an outcome is recorded twice for the same history entry."""
    pass


class PersistenceError(MatchingError):
    """Raised when a history write fails after retries."""
    pass
