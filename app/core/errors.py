# app/core/errors.py
"""
Application errors.

Each AppError subclass carries the HTTP status it maps to; the handler in
app.main renders it as {"ok": false, "error": <message>, **extra}.
"""

from typing import Any, Dict, Optional


class AppError(Exception):
    status_code: int = 500

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.extra = extra or {}
        super().__init__(message)


class ValidationError(AppError):
    """Missing required field or malformed request body."""

    status_code = 400


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, message: str = "Not found", extra: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, extra)


class ConfigurationError(AppError):
    """A required collaborator (e.g. the database) is not wired up."""

    status_code = 500


class EmailDeliveryError(Exception):
    """The email provider could not be reached or rejected the message."""
