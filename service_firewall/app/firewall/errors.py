"""
Firewall error types.

Configuration errors are raised while building rules, firewalls and maps.
The two authorization signals may be raised by custom strategies; the
firewall converts them into outcomes and never lets them escape ``check``.
"""

from typing import Any, Dict, Optional, Sequence

from shared.errors import AuthenticationError, AuthorizationError, ValidationError


class InvalidHttpMethodError(ValidationError):
    """Raised when a rule is declared with an unsupported HTTP method."""

    def __init__(self, method: str, valid_methods: Sequence[str]):
        super().__init__(
            f'"{method}" is not a valid http method, should be one of {", ".join(valid_methods)}',
            {"method": method, "valid_methods": list(valid_methods)}
        )


class InvalidStrategyError(ValidationError):
    """Raised for a malformed strategy specification."""


class UnknownStrategyError(InvalidStrategyError):
    """Raised when a rule references a strategy the firewall cannot build."""

    def __init__(self, firewall_name: str, strategy_name: str):
        super().__init__(
            f'Invalid strategy given, firewall "{firewall_name}" does not know how to build "{strategy_name}" strategy',
            {"firewall": firewall_name, "strategy": strategy_name}
        )


class InvalidFirewallError(ValidationError):
    """Raised when something other than a Firewall is added to a map."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__("Invalid firewall given", details)


class FirewallNotFoundError(ValidationError):
    """Raised when looking up an unknown firewall name."""

    def __init__(self, firewall_name: str):
        super().__init__(
            f'Unable to find a firewall by name "{firewall_name}"',
            {"firewall": firewall_name}
        )


class FirewallConfigurationError(ValidationError):
    """Raised when a firewall configuration record cannot be loaded."""


class NotAuthenticatedError(AuthenticationError):
    """Signals that the request has no authenticated principal."""

    def __init__(self, message: str = "", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class AccessDeniedError(AuthorizationError):
    """Signals an authenticated principal that is not allowed."""

    def __init__(self, message: str = "", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
