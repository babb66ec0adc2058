"""
Authorization strategies.

A strategy factory is called as ``factory(firewall, *args)`` when a rule is
added and returns a predicate. The predicate receives the request and
returns a StrategyOutcome; returning ``False`` counts as access denied and
any other value as granted. Custom strategies may also raise
NotAuthenticatedError or AccessDeniedError.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import InvalidStrategyError
from .models import StrategyFactory, StrategyOutcome, StrategyPredicate, StrategySpec


def _flatten_roles(values: Iterable[Any]) -> List[str]:
    roles: List[str] = []
    for value in values:
        if value is None:
            continue
        if isinstance(value, str):
            candidates = [value]
        else:
            candidates = list(value)
        for role in candidates:
            if role not in roles:
                roles.append(role)
    return roles


def _ensure_role_args(roles: Tuple[Any, ...]) -> None:
    for value in roles:
        if value is None or isinstance(value, str):
            continue
        if isinstance(value, (list, tuple, set, frozenset)) and all(isinstance(role, str) for role in value):
            continue
        raise InvalidStrategyError(
            f"RoleStrategy roles must be strings or lists of strings, got {value!r}",
            {"roles": [repr(role) for role in roles]}
        )


def role_strategy(firewall, *roles) -> StrategyPredicate:
    """Grant requests whose principal carries at least one allowed role."""
    _ensure_role_args(roles)
    allowed_roles = _flatten_roles(roles)
    if not allowed_roles:
        raise InvalidStrategyError("RoleStrategy requires at least one role defined")

    def check_roles(request) -> StrategyOutcome:
        if not request.is_authenticated():
            return StrategyOutcome.NOT_AUTHENTICATED

        user_roles = _flatten_roles([getattr(request.user, "roles", None) or []])
        if not user_roles:
            return StrategyOutcome.ACCESS_DENIED

        firewall._log('user roles: "' + '", "'.join(user_roles) + '"')
        firewall._log('allowed roles: "' + '", "'.join(allowed_roles) + '"')

        matching_roles = [role for role in user_roles if role in allowed_roles]
        if not matching_roles:
            return StrategyOutcome.ACCESS_DENIED

        firewall._log('matching roles: "' + '", "'.join(matching_roles) + '"')
        return StrategyOutcome.GRANTED

    return check_roles


def default_strategies() -> Dict[str, StrategyFactory]:
    """Strategy registry every new Firewall and FirewallMap starts with."""
    return {"role": role_strategy}


def parse_strategy_spec(spec: Any) -> Optional[StrategySpec]:
    """Turn the accepted strategy forms into a StrategySpec.

    Accepts None (open rule), a StrategySpec, a ``{"kind", "args"}`` mapping
    or a ``[name, arg0, ...]`` sequence. Callables are handled by the caller.
    """
    if spec is None or isinstance(spec, StrategySpec):
        return spec

    if isinstance(spec, Mapping):
        kind = spec.get("kind")
        args = spec.get("args") or ()
        if not isinstance(kind, str) or not kind:
            raise InvalidStrategyError('Invalid strategy given, mapping form requires a "kind" name')
        if not isinstance(args, (list, tuple)):
            args = (args,)
        return StrategySpec(kind=kind, args=tuple(args))

    if isinstance(spec, (list, tuple)) and spec and isinstance(spec[0], str):
        return StrategySpec(kind=spec[0], args=tuple(spec[1:]))

    raise InvalidStrategyError(
        "Invalid strategy given, strategy must be passed with the form "
        "['strategyName', 'strategyArg0', ['strategyArg1']] or {'kind': 'strategyName', 'args': [...]}"
    )


def describe_strategy(name: Optional[str], args: Tuple[Any, ...]) -> str:
    """Human readable strategy cell for rule dumps."""
    if name is None:
        return "anonymous"
    rendered = []
    for arg in args:
        if isinstance(arg, (list, tuple, set, frozenset)):
            rendered.append(", ".join(str(item) for item in arg))
        else:
            rendered.append(str(arg))
    if not rendered:
        return name
    return f"{name}: {', '.join(rendered)}"
