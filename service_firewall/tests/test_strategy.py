"""
Unit tests for authorization strategies.
"""

import pytest

from service_firewall.app.firewall import (
    Firewall, FirewallRequest, InvalidStrategyError, Principal, StrategyOutcome,
    StrategySpec, default_strategies, role_strategy
)
from service_firewall.app.firewall.strategy import describe_strategy, parse_strategy_spec
from shared.test_helpers import SampleDataFactory, make_request


class TestRoleStrategy:
    """Test cases for the built-in role strategy."""

    @pytest.fixture
    def firewall(self):
        """Create a firewall to bind strategies to."""
        return Firewall("fw", "^/")

    def test_requires_roles(self, firewall):
        """Test that at least one role is needed."""
        with pytest.raises(InvalidStrategyError) as exc_info:
            role_strategy(firewall)

        assert str(exc_info.value) == "RoleStrategy requires at least one role defined"

        with pytest.raises(InvalidStrategyError):
            role_strategy(firewall, [])

    def test_rejects_non_string_roles(self, firewall):
        """Test that roles must be strings or lists of strings."""
        for roles in ((5,), (["admin", 5],), ({"admin": True},)):
            with pytest.raises(InvalidStrategyError) as exc_info:
                role_strategy(firewall, *roles)

            assert "RoleStrategy roles must be strings or lists of strings" in str(exc_info.value)

        assert role_strategy(firewall, "user", ("admin", "ops")) is not None

    def test_unauthenticated(self, firewall):
        """Test the not-authenticated outcome."""
        check = role_strategy(firewall, "user")

        assert check(make_request("/")) is StrategyOutcome.NOT_AUTHENTICATED

    def test_authenticated_without_roles(self, firewall):
        """Test that a principal without roles is denied."""
        check = role_strategy(firewall, "user")

        assert check(make_request("/", True, [])) is StrategyOutcome.ACCESS_DENIED
        assert check(make_request("/", True, None)) is StrategyOutcome.ACCESS_DENIED

    def test_disjoint_roles(self, firewall):
        """Test that disjoint role sets are denied."""
        check = role_strategy(firewall, ["admin", "superuser"])

        assert check(make_request("/", True, ["user", "analyst"])) is StrategyOutcome.ACCESS_DENIED

    def test_intersecting_roles(self, firewall):
        """Test that one shared role is enough."""
        check = role_strategy(firewall, ["admin", "analyst"])

        for user in SampleDataFactory.create_sample_users():
            assert check(make_request("/", True, user.roles, user_id=user.user_id)) is StrategyOutcome.GRANTED

    def test_roles_are_flattened(self, firewall):
        """Test single values and iterables mixed in the arguments."""
        check = role_strategy(firewall, "user", ("admin",), {"analyst"})

        assert check(make_request("/", True, ["analyst"])) is StrategyOutcome.GRANTED
        assert check(make_request("/", True, ["admin"])) is StrategyOutcome.GRANTED
        assert check(make_request("/", True, ["guest"])) is StrategyOutcome.ACCESS_DENIED

    def test_principal_with_single_role_string(self, firewall):
        """Test a principal whose roles is a plain string."""
        check = role_strategy(firewall, "admin")
        request = FirewallRequest(url="/", principal=Principal(user_id="u", roles="admin"))

        assert check(request) is StrategyOutcome.GRANTED

    def test_firewall_request_model(self, firewall):
        """Test the framework-neutral request with the strategy."""
        check = role_strategy(firewall, "user")

        assert check(FirewallRequest(url="/")) is StrategyOutcome.NOT_AUTHENTICATED
        assert check(FirewallRequest(url="/", principal=Principal(user_id="u"))) is StrategyOutcome.ACCESS_DENIED
        assert check(FirewallRequest(url="/", principal=Principal(user_id="u", roles=["user"]))) is StrategyOutcome.GRANTED

    def test_default_registry(self):
        """Test that the registry starts with the role strategy only."""
        strategies = default_strategies()

        assert strategies == {"role": role_strategy}
        assert strategies is not default_strategies()


class TestStrategySpecParsing:
    """Test cases for strategy specification parsing."""

    def test_none(self):
        assert parse_strategy_spec(None) is None

    def test_sequence(self):
        assert parse_strategy_spec(["role", ["user", "admin"]]) == StrategySpec("role", (["user", "admin"],))
        assert parse_strategy_spec(("role", "user", "admin")) == StrategySpec("role", ("user", "admin"))

    def test_mapping(self):
        assert parse_strategy_spec({"kind": "role", "args": ["user"]}) == StrategySpec("role", ("user",))
        assert parse_strategy_spec({"kind": "role", "args": "user"}) == StrategySpec("role", ("user",))
        assert parse_strategy_spec({"kind": "open"}) == StrategySpec("open", ())

    def test_spec_is_passed_through(self):
        spec = StrategySpec("role", ("user",))

        assert parse_strategy_spec(spec) is spec

    def test_invalid(self):
        for invalid in ("user", [], [1, 2], {"args": ["user"]}, 42):
            with pytest.raises(InvalidStrategyError):
                parse_strategy_spec(invalid)


class TestDescribeStrategy:
    """Test cases for the dump strategy cell."""

    def test_describe(self):
        assert describe_strategy(None, ()) == "anonymous"
        assert describe_strategy("role", (["user", "admin"],)) == "role: user, admin"
        assert describe_strategy("role", ("user", "admin")) == "role: user, admin"
        assert describe_strategy("internal_only", ()) == "internal_only"
