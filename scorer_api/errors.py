# scorer_api/errors.py
from __future__ import annotations


class ScoringError(Exception):
    """Base class for recoverable, caller-visible scoring errors. State is never mutated."""
    pass


class NotFoundError(ScoringError):
    """Raised when a match, team or player id is unknown."""
    pass


class InvalidTransitionError(ScoringError):
    """Raised when an operation is not allowed in the match's current phase."""
    pass


class InvalidBallError(ScoringError):
    """Raised when a delivery is missing required actors or carries inconsistent values."""
    pass
