"""
Firewall data models.
"""

import re
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from dataclasses import dataclass, field
from enum import Enum


ANY_METHOD = "*"
HTTP_METHODS: Tuple[str, ...] = ("GET", "POST", "PUT", "DELETE")


class StrategyOutcome(str, Enum):
    """Result of a strategy evaluation."""
    GRANTED = "granted"
    NOT_AUTHENTICATED = "not_authenticated"
    ACCESS_DENIED = "access_denied"


# A bound strategy: predicate(request) -> StrategyOutcome | bool | None
StrategyPredicate = Callable[[Any], Union["StrategyOutcome", bool, None]]
# A strategy factory: factory(firewall, *args) -> StrategyPredicate
StrategyFactory = Callable[..., StrategyPredicate]
# An outcome handler: handler(request, response, call_next)
Handler = Callable[[Any, "FirewallResponse", Callable[[], None]], None]


@dataclass
class Principal:
    """Authenticated user carried by a request."""
    user_id: Optional[str] = None
    roles: List[str] = field(default_factory=list)


@dataclass
class FirewallRequest:
    """Framework-neutral view of an incoming request."""
    url: str
    method: str = "GET"
    principal: Optional[Principal] = None

    @property
    def user(self) -> Optional[Principal]:
        return self.principal

    def is_authenticated(self) -> bool:
        return self.principal is not None


@dataclass
class FirewallResponse:
    """Records what the outcome handlers decided to send back.

    Handlers write to this object only; turning it into a transport
    response is left to the HTTP adapter.
    """
    status_code: Optional[int] = None
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None

    def status(self, status_code: int) -> "FirewallResponse":
        self.status_code = status_code
        return self

    def redirect(self, location: str, status_code: Optional[int] = None) -> "FirewallResponse":
        self.headers["Location"] = location
        if status_code is not None:
            self.status_code = status_code
        elif self.status_code is None:
            self.status_code = 302
        return self

    def send(self, status_code: int, body: str = "") -> "FirewallResponse":
        self.status_code = status_code
        self.body = body
        return self

    @property
    def is_set(self) -> bool:
        return self.status_code is not None


@dataclass(frozen=True)
class StrategySpec:
    """Tagged strategy configuration: registry name plus factory arguments."""
    kind: str
    args: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class Rule:
    """Authorization rule."""
    path: re.Pattern
    method: str = ANY_METHOD
    strategy: Optional[StrategyPredicate] = None
    strategy_name: Optional[str] = None
    strategy_args: Tuple[Any, ...] = ()

    def matches(self, request: Any) -> bool:
        """Check path and method against the request."""
        if self.path.search(request.url) is None:
            return False
        return self.method == ANY_METHOD or self.method == str(request.method).upper()


class Continuation:
    """Single-use wrapper around the "proceed" callback."""

    def __init__(self, call_next: Optional[Callable[[], Any]] = None):
        self._call_next = call_next
        self.called = False

    def __call__(self) -> None:
        if self.called:
            return
        self.called = True
        if self._call_next is not None:
            self._call_next()
