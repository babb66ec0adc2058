"""
Firewall package.

Path-scoped authorization rules evaluated in insertion order, grouped into
firewalls and aggregated by a FirewallMap.

Modules of interest:
- models: Rule, request/response views, strategy outcome and continuation.
- strategy: Strategy factories, including the built-in role strategy.
- firewall: First-match rule evaluation for a single firewall.
- map: Aggregation across firewalls and configuration loading.
- loader: Configuration records and YAML/JSON file loading.
"""

from typing import Optional

from .errors import (
    AccessDeniedError, FirewallConfigurationError, FirewallNotFoundError,
    InvalidFirewallError, InvalidHttpMethodError, InvalidStrategyError,
    NotAuthenticatedError, UnknownStrategyError
)
from .firewall import Firewall
from .loader import FirewallConfig, RuleConfig, load_firewall_config
from .map import FirewallMap
from .models import (
    ANY_METHOD, HTTP_METHODS, Continuation, FirewallRequest, FirewallResponse,
    Principal, Rule, StrategyOutcome, StrategySpec
)
from .strategy import default_strategies, role_strategy

_default_map: Optional[FirewallMap] = None


def init_default_map(firewall_map: Optional[FirewallMap] = None) -> FirewallMap:
    """Install the process-wide default map and return it.

    Nothing is created at import time; the default map only exists once this
    has been called, and calling it again replaces it.
    """
    global _default_map
    _default_map = firewall_map if firewall_map is not None else FirewallMap()
    return _default_map


def get_default_map() -> FirewallMap:
    """Return the default map installed by init_default_map()."""
    if _default_map is None:
        raise RuntimeError("Default firewall map is not initialized, call init_default_map() first")
    return _default_map


__all__ = [
    "ANY_METHOD",
    "AccessDeniedError",
    "Continuation",
    "Firewall",
    "FirewallConfig",
    "FirewallConfigurationError",
    "FirewallMap",
    "FirewallNotFoundError",
    "FirewallRequest",
    "FirewallResponse",
    "HTTP_METHODS",
    "InvalidFirewallError",
    "InvalidHttpMethodError",
    "InvalidStrategyError",
    "NotAuthenticatedError",
    "Principal",
    "Rule",
    "RuleConfig",
    "StrategyOutcome",
    "StrategySpec",
    "UnknownStrategyError",
    "default_strategies",
    "get_default_map",
    "init_default_map",
    "load_firewall_config",
    "role_strategy",
]
