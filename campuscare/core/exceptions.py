"""
Portal error taxonomy.

Every error raised by the services derives from ``PortalError`` and is caught
at the view boundary by the handlers registered in ``campuscare.main``.
"""

from typing import Optional


class PortalError(Exception):
    """Base class for errors surfaced to the portal user."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthError(PortalError):
    """Missing, invalid or expired credential, or a wrong-role actor."""

    default_message = "Authentication required"


class ValidationError(PortalError):
    """Malformed input; the mutating operation is not attempted."""

    default_message = "Invalid input"


class InvalidTransitionError(PortalError):
    """Illegal appointment status change; state is left unchanged."""

    default_message = "This status change is not allowed"

    def __init__(self, current_status=None, new_status=None, role=None, message: Optional[str] = None):
        self.current_status = current_status
        self.new_status = new_status
        self.role = role
        if message is None and current_status is not None and new_status is not None:
            message = (
                f"Cannot change appointment from '{_value(current_status)}' "
                f"to '{_value(new_status)}' as {_value(role)}"
            )
        super().__init__(message)


class RemoteError(PortalError):
    """Network or server failure reported by the CampusCare API service."""

    default_message = "Request failed. Please try again."

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


def _value(item):
    return getattr(item, "value", item)
