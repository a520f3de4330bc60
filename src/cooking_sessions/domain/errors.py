"""Errors raised by the cooking session engine."""


class CookingSessionError(Exception):
    """Base class for cooking session failures surfaced to callers."""


class NotFoundError(CookingSessionError):
    """Raised when a session or a recipe's steps cannot be found."""


class InvalidStateError(CookingSessionError):
    """Raised when a transition is attempted from a status that forbids it."""


class NoStepsError(CookingSessionError):
    """Raised when a session is started for a recipe without cooking steps."""
