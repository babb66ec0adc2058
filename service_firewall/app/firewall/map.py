"""
FirewallMap: an ordered container of firewalls.
"""

import re
from contextlib import nullcontext
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from shared.errors import FirewallException
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from .errors import FirewallConfigurationError, FirewallNotFoundError, InvalidFirewallError
from .firewall import Firewall
from .loader import FirewallConfig
from .models import Continuation, FirewallResponse, StrategyFactory
from .strategy import default_strategies


class FirewallMap:
    """Container for multiple firewalls.

    Firewalls are consulted in insertion order; the first one to reach a
    decision wins. The continuation is invoked exactly once when access is
    granted or when no firewall has an opinion.
    """

    def __init__(self, metrics: Optional[MetricsCollector] = None):
        self.firewalls: List[Firewall] = []
        self.metrics = metrics
        self.logger = get_logger("firewall.map")
        self.debug_enabled = False

        # from_config() shares these with the firewalls it builds
        self.strategies: Dict[str, StrategyFactory] = default_strategies()

    def add_strategy(self, strategy_name: str, strategy_factory: StrategyFactory) -> "FirewallMap":
        self.strategies[strategy_name] = strategy_factory
        return self

    def has_strategy(self, strategy_name: str) -> bool:
        return strategy_name in self.strategies

    def _build_firewall(self, name: str, config: FirewallConfig, **firewall_options) -> Firewall:
        firewall = Firewall(name, config.path, **firewall_options)

        for strategy_name, strategy_factory in self.strategies.items():
            if not firewall.has_strategy(strategy_name):
                firewall.add_strategy(strategy_name, strategy_factory)

        for rule in config.rules:
            firewall.add(rule.path, rule.strategy, rule.method)

        if config.debug:
            firewall.debug(True)
        return firewall

    def from_config(self, config: Mapping[str, Any], **firewall_options) -> "FirewallMap":
        """Create firewalls from a ``{name: {path, rules, debug}}`` mapping.

        Nothing is added unless every entry builds successfully.
        """
        built: List[Firewall] = []
        for name, raw_config in config.items():
            try:
                firewall_config = FirewallConfig.model_validate(raw_config)
                built.append(self._build_firewall(name, firewall_config, **firewall_options))
            except (PydanticValidationError, FirewallException, ValueError, re.error) as e:
                if self.metrics:
                    self.metrics.record_config_error(type(e).__name__)
                self.logger.error("Invalid firewall configuration", firewall=name, error=str(e))
                raise FirewallConfigurationError(
                    f'Unable to configure firewall "{name}": {e}',
                    {"firewall": name}
                ) from e

        self.firewalls.extend(built)
        if self.debug_enabled:
            for firewall in built:
                firewall.debug(True)
        self.logger.info("Firewalls configured", firewalls=[fw.name for fw in built])
        return self

    def clear(self) -> "FirewallMap":
        """Clear all previously declared firewalls."""
        self.firewalls = []
        return self

    def add(self, firewall: Firewall) -> "FirewallMap":
        if not isinstance(firewall, Firewall):
            raise InvalidFirewallError({"type": type(firewall).__name__})
        self.firewalls.append(firewall)
        return self

    def get(self, firewall_name: str) -> Firewall:
        """Return the first firewall registered under ``firewall_name``."""
        for firewall in self.firewalls:
            if firewall.name == firewall_name:
                return firewall
        raise FirewallNotFoundError(firewall_name)

    def get_all(self) -> List[Firewall]:
        return self.firewalls

    def remove(self, firewall_name: str) -> "FirewallMap":
        """Remove every firewall registered under ``firewall_name``."""
        self.firewalls = [fw for fw in self.firewalls if fw.name != firewall_name]
        return self

    def debug(self, flag: bool = True) -> "FirewallMap":
        """Toggle the debug trail on the map and every firewall it holds."""
        self.debug_enabled = bool(flag)
        for firewall in self.firewalls:
            firewall.debug(flag)
        return self

    def _record(self, firewall_name: str, decision: Optional[bool]) -> None:
        if not self.metrics:
            return
        if decision is None:
            label = "no_decision"
        else:
            label = "granted" if decision else "denied"
        self.metrics.record_decision(firewall_name, label)

    def check(
        self,
        request,
        response: Optional[FirewallResponse] = None,
        call_next: Optional[Callable[[], Any]] = None,
    ) -> Optional[bool]:
        """Run the request through every firewall whose scope matches."""
        if response is None:
            response = FirewallResponse()
        continuation = Continuation(call_next)
        timer = self.metrics.time_operation("firewall_check_duration_seconds") if self.metrics else nullcontext()

        decision: Optional[bool] = None
        decided_by: Optional[str] = None
        with timer:
            for firewall in tuple(self.firewalls):
                if not firewall.match(request):
                    continue
                result = firewall.check(request, response, continuation, handle_next=True)
                if result is not None:
                    decision = result
                    decided_by = firewall.name
                    break

        if decision is not False:
            if self.debug_enabled:
                self.logger.debug(
                    "Calling next" if decision else "Nothing to do, continue",
                    url=request.url,
                    firewall=decided_by
                )
            continuation()

        self._record(decided_by or "-", decision)
        return decision

    def dump(self) -> str:
        return "\n\n".join(firewall.dump() for firewall in tuple(self.firewalls))
