"""Custom exception hierarchy for the user administration core."""

from __future__ import annotations

from typing import Optional


class UserAdminError(Exception):
    """Base class for all custom errors raised by useradmin."""


# --- 3-layer hierarchy ---

class DomainError(UserAdminError):
    """Base class for domain-level errors."""


class InfrastructureError(UserAdminError):
    """Base class for infrastructure-level errors."""


class ApplicationError(UserAdminError):
    """Base class for application-level errors."""


# --- Domain errors ---

class TransferNotInitializedError(DomainError):
    """Raised when the store transfer lists are used before ``initialize``."""


# --- Infrastructure errors ---

class TransportError(InfrastructureError):
    """Raised when a backend request fails on the network or with an HTTP error."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SessionExpiredError(TransportError):
    """Raised on HTTP 401 or a missing credential; the session is no longer valid."""


# --- Application errors ---

class ValidationError(ApplicationError):
    """Raised when user input fails local validation; no request is sent."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


# --- Settings ---

class SettingsError(UserAdminError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""
