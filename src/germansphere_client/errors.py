"""
Error types for the GermanSphere client core.

Transport and HTTP failures are normalized to ``ApiError`` carrying
``message``, ``status`` and an optional ``code``. Validation problems have
their own types. Comparison capacity is not an error: it is reported through
``AddResult`` (see ``comparison``).
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class GermanSphereError(Exception):
    """Base exception for all client-core errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ApiError(GermanSphereError):
    """Raised for any non-2xx response or transport failure."""

    def __init__(
        self,
        message: str,
        status: int,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, details=details)
        self.status = status
        self.code = code

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, status={self.status}, code={self.code!r})"


class ApiAuthError(ApiError):
    """Raised when the backend rejects authentication (401/403)."""


class ApiNotFoundError(ApiError):
    """Raised when the requested resource does not exist."""


class ApiConnectionError(ApiError):
    """Raised when the backend cannot be reached or times out."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message, status=0, code=code)


class InvalidTimeError(ValueError):
    """Raised when a time-of-day string is not ``H``, ``HH``, ``H:MM`` or ``HH:MM``."""

    def __init__(self, raw: object) -> None:
        self.raw = raw
        super().__init__(f"Invalid time of day: {raw!r}")


class BookingValidationError(GermanSphereError):
    """Raised when a booking request is incomplete or malformed."""
