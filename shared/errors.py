"""
Error types shared by the firewall components.

Every error carries a machine readable ``code`` and the HTTP status it maps
to when it reaches a client.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """JSON body returned for a blocked request."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class FirewallException(Exception):
    """Base exception for firewall components."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(code=self.code, message=self.message, details=self.details)


class AuthenticationError(FirewallException):
    """The request needs an authenticated principal."""

    status_code = 401

    def __init__(self, message: str = "Authentication required", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class AuthorizationError(FirewallException):
    """The principal is not allowed to access the resource."""

    status_code = 403

    def __init__(self, message: str = "Access denied", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHORIZATION_ERROR", message, details)


class ValidationError(FirewallException):
    """Invalid rule, strategy or firewall definition."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


def error_for_status(status_code: int) -> FirewallException:
    """Pick the error describing a blocked response without a body."""
    if status_code == AuthenticationError.status_code:
        return AuthenticationError()
    return AuthorizationError()
