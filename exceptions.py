"""
Exception hierarchy for the Adyen notifications service.

All service-level errors inherit from NotificationError so the API layer
can translate them in one place.
"""

from typing import Any, Dict, Optional


class NotificationError(Exception):
    """Base for all service exceptions."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(NotificationError, ValueError):
    """Raised when a notification cannot be stored as given."""


class PersistenceError(NotificationError):
    """Raised when the data store rejects or fails a write."""


class DuplicateNotificationError(PersistenceError):
    """Raised when an identical notification has already been stored."""
