"""
Firewall: a named, path-scoped ordered list of authorization rules.
"""

import re
from typing import Any, Callable, Dict, List, Optional, Union

from shared.logging import get_logger

from .errors import AccessDeniedError, InvalidStrategyError, NotAuthenticatedError, UnknownStrategyError
from .models import (
    ANY_METHOD, FirewallResponse, Handler, Rule,
    StrategyFactory, StrategyOutcome, StrategyPredicate
)
from .strategy import default_strategies, describe_strategy, parse_strategy_spec
from .utils import ensure_pattern, ensure_valid_http_method, format_table


def _noop() -> None:
    return None


class Firewall:
    """Container for url based authorization rules.

    Rules are evaluated in insertion order and the first rule matching both
    path and method decides. ``check`` returns True when access is granted,
    False when it is denied (or authentication is required) and None when
    no rule matched.
    """

    def __init__(
        self,
        name: str,
        path: Union[str, re.Pattern],
        authentication_handler: Optional[Handler] = None,
        success_handler: Optional[Handler] = None,
        failure_handler: Optional[Handler] = None,
        debug: bool = False,
        log_sink: Optional[Callable[..., Any]] = None,
        login_path: str = "/login",
    ):
        self.name = name
        self.path = ensure_pattern(path)
        self.rules: List[Rule] = []
        self.login_path = login_path

        self.authentication_handler = authentication_handler or self._default_authentication_handler
        self.success_handler = success_handler or self._default_success_handler
        self.failure_handler = failure_handler or self._default_failure_handler

        self.logger = get_logger("firewall.firewall")
        self.log_sink = log_sink
        self.debug_enabled = debug

        self.strategies: Dict[str, StrategyFactory] = default_strategies()

    def __repr__(self) -> str:
        return f"Firewall(name={self.name!r}, path={self.path.pattern!r}, rules={len(self.rules)})"

    # Default handlers

    def _default_authentication_handler(self, request, response: FirewallResponse, call_next) -> None:
        response.status(401)
        response.redirect(self.login_path)

    def _default_success_handler(self, request, response: FirewallResponse, call_next) -> None:
        call_next()

    def _default_failure_handler(self, request, response: FirewallResponse, call_next) -> None:
        response.send(403, "forbidden")

    # Strategies

    def add_strategy(self, strategy_name: str, strategy_factory: StrategyFactory) -> "Firewall":
        """Register a strategy factory, replacing any previous one."""
        self.strategies[strategy_name] = strategy_factory
        return self

    def has_strategy(self, strategy_name: str) -> bool:
        return strategy_name in self.strategies

    # Debug trail

    def debug(self, flag: bool = True) -> "Firewall":
        """Enable/disable the debug trail."""
        self.debug_enabled = bool(flag)
        return self

    def _log(self, message: str, **fields) -> None:
        if not self.debug_enabled:
            return
        sink = self.log_sink if self.log_sink is not None else self.logger.debug
        sink(f'[firewall] "{self.name}" {message}', **fields)

    # Rules

    def _normalize_rule(self, path, strategy=None, method: Optional[str] = None) -> Rule:
        """Build a Rule from a path, a strategy specification and a method."""
        predicate: Optional[StrategyPredicate] = None
        strategy_name: Optional[str] = None
        strategy_args: tuple = ()

        if callable(strategy):
            strategy_name = getattr(strategy, "__name__", "custom")
            predicate = strategy(self)
        else:
            spec = parse_strategy_spec(strategy)
            if spec is not None:
                factory = self.strategies.get(spec.kind)
                if factory is None:
                    raise UnknownStrategyError(self.name, spec.kind)
                strategy_name = spec.kind
                strategy_args = spec.args
                try:
                    predicate = factory(self, *spec.args)
                except TypeError as e:
                    raise InvalidStrategyError(
                        f'Invalid arguments for "{spec.kind}" strategy: {e}',
                        {"firewall": self.name, "strategy": spec.kind}
                    ) from e

        if method is not None:
            method = ensure_valid_http_method(method)
        else:
            method = ANY_METHOD

        return Rule(
            path=ensure_pattern(path),
            method=method,
            strategy=predicate,
            strategy_name=strategy_name,
            strategy_args=strategy_args,
        )

    def prepend(self, path, strategy=None, method: Optional[str] = None) -> "Firewall":
        """Insert a rule in front of all others."""
        self.rules.insert(0, self._normalize_rule(path, strategy, method))
        return self

    def append(self, path, strategy=None, method: Optional[str] = None) -> "Firewall":
        """Append a rule after all others."""
        self.rules.append(self._normalize_rule(path, strategy, method))
        return self

    add = append

    def clear_rules(self) -> "Firewall":
        self.rules = []
        return self

    # Evaluation

    def match(self, request) -> bool:
        """Check whether the request url falls within this firewall's scope."""
        if self.path.search(request.url) is not None:
            self._log(f"match request url: {request.url}")
            return True
        return False

    def _evaluate_strategy(self, rule: Rule, request) -> StrategyOutcome:
        if rule.strategy is None:
            return StrategyOutcome.GRANTED

        try:
            result = rule.strategy(request)
        except NotAuthenticatedError:
            return StrategyOutcome.NOT_AUTHENTICATED
        except AccessDeniedError:
            return StrategyOutcome.ACCESS_DENIED

        if isinstance(result, StrategyOutcome):
            return result
        if result is False:
            return StrategyOutcome.ACCESS_DENIED
        return StrategyOutcome.GRANTED

    def _invoke(self, label: str, handler: Optional[Handler], request, response, call_next) -> None:
        if handler is None:
            self._log(f"no {label} handler")
            return
        self._log(f"calling {label} handler")
        handler(request, response, call_next)

    def check(
        self,
        request,
        response: Optional[FirewallResponse] = None,
        call_next: Optional[Callable[[], Any]] = None,
        handle_next: bool = False,
    ) -> Optional[bool]:
        """Evaluate the rules against ``request``.

        When no rule matches, ``call_next`` is invoked unless ``handle_next``
        is set, in which case the caller is responsible for it.
        """
        if response is None:
            response = FirewallResponse()
        if call_next is None:
            call_next = _noop

        for rule in tuple(self.rules):
            if not rule.matches(request):
                continue

            method = rule.method if rule.method != ANY_METHOD else str(request.method).upper()
            self._log(f"rule match: {rule.path.pattern} [{method} {request.url}]")

            outcome = self._evaluate_strategy(rule, request)

            if outcome is StrategyOutcome.NOT_AUTHENTICATED:
                self._log("denied access (user is not authenticated)")
                self._invoke("authentication", self.authentication_handler, request, response, call_next)
                return False

            if outcome is StrategyOutcome.ACCESS_DENIED:
                self._log("denied access (user has no allowed role)")
                self._invoke("failure", self.failure_handler, request, response, call_next)
                return False

            self._log("granted access")
            self._invoke("success", self.success_handler, request, response, call_next)
            return True

        if not handle_next:
            call_next()
        return None

    # Diagnostics

    def dump(self) -> str:
        """Render the rules as an aligned PATH | STRATEGY | METHOD table."""
        rules = tuple(self.rules)
        if not rules:
            return f'No rule defined for firewall "{self.name}"'

        rows = [
            [
                rule.path.pattern,
                describe_strategy(rule.strategy_name, rule.strategy_args),
                "ANY" if rule.method == ANY_METHOD else rule.method,
            ]
            for rule in rules
        ]
        return format_table(["PATH", "STRATEGY", "METHOD"], rows)
