"""Engine error taxonomy."""

from __future__ import annotations


class EngineError(Exception):
    """Base class for errors raised by the scheduling engine."""


class ValidationError(EngineError, ValueError):
    """Malformed caller input, rejected without correction."""


class UnauthorizedError(ValidationError):
    """Caller tried to act on a record owned by another user."""


class NotFoundError(EngineError, LookupError):
    """Referenced record does not exist."""


class StorageError(EngineError):
    """Optional base for collaborator failures; the engine never wraps or retries them."""
