"""
Unit tests for the Authority engine.
"""

from types import SimpleNamespace

import pytest

from authority import Authority, RuleBehavior
from shared.config import get_config
from shared.errors import AliasNotFoundError, UnresolvableResourceError
from shared.test_helpers import Post, User


@pytest.fixture
def current_user():
    """Current principal."""
    return SimpleNamespace(id=1, name="TestUser")


@pytest.fixture
def authority(current_user):
    """Create Authority instance."""
    return Authority(current_user)


class TestAuthorityState:
    """Test cases for engine state and rule declaration."""

    def test_stores_current_user(self, authority, current_user):
        """The current user is readable and replaceable."""
        assert authority.get_current_user() is current_user
        assert authority.user() is current_user

        other = SimpleNamespace(id=2)
        authority.set_current_user(other)
        assert authority.get_current_user() is other

    def test_allow_stores_privilege(self, authority):
        """allow() appends a privilege."""
        rule = authority.allow("read", "User")

        assert len(authority.get_rules()) == 1
        assert rule in authority.get_rules()
        assert rule.behavior is RuleBehavior.PRIVILEGE

    def test_deny_stores_restriction(self, authority):
        """deny() appends a restriction."""
        rule = authority.deny("read", "User")

        assert len(authority.get_rules()) == 1
        assert rule in authority.get_rules()
        assert rule.is_restriction() is True

    def test_add_rule_accepts_bool_behavior(self, authority):
        """add_rule() takes True/False like allow/deny."""
        assert authority.add_rule(True, "read", "User").is_privilege() is True
        assert authority.add_rule(False, "read", "User").is_restriction() is True

    def test_condition_becomes_first_predicate(self, authority):
        """The optional condition is the rule's only initial predicate."""
        condition = lambda ctx, value: True
        rule = authority.allow("read", "User", condition)

        assert rule.conditions == [condition]

    def test_rule_resource_from_class_or_value(self, authority):
        """Classes and values are stored by type name."""
        assert authority.allow("read", User).resource == "User"
        assert authority.allow("read", Post(id=1, author_id=1)).resource == "Post"

    def test_stores_alias(self, authority):
        """Aliases are registered and retrievable."""
        alias = authority.add_alias("manage", ["create", "read", "update", "delete"])

        assert alias in authority.get_aliases().values()
        assert authority.get_alias("manage") is alias

    def test_unknown_alias(self, authority):
        """Unknown aliases return None, or raise through require_alias."""
        assert authority.get_alias("manage") is None
        with pytest.raises(AliasNotFoundError):
            authority.require_alias("manage")

    def test_aliases_for_action(self, authority):
        """Expansion is one level across all aliases."""
        authority.add_alias("manage", ["create", "read", "update", "delete"])
        authority.add_alias("comment", ["read", "comment"])

        assert authority.get_aliases_for_action("read") == {"read", "manage", "comment"}

    def test_rules_for_action(self, authority):
        """Relevant rules include those declared against covering aliases."""
        authority.add_alias("manage", ["create", "read", "update", "delete"])
        authority.add_alias("comment", ["read", "comment"])

        authority.allow("manage", "User")
        authority.allow("comment", "User")
        authority.deny("read", "User")

        assert len(authority.get_rules_for("read", "User")) == 3

    def test_rules_for_is_stable(self, authority):
        """Repeated lookups return the same rules in the same order."""
        authority.allow("read", "User")
        authority.deny("read", "all")

        first = authority.get_rules_for("read", "User")
        second = authority.get_rules_for("read", "User")

        assert first == second
        assert [r.resource for r in first] == ["User", "all"]


class TestAuthorityDecisions:
    """Test cases for can()/cannot()."""

    def test_default_deny(self, authority):
        """Nothing declared means nothing allowed."""
        assert authority.can("read", "User") is False
        assert authority.cannot("read", "User") is True

    def test_evaluates_aliased_rules(self, authority):
        """Aliases broaden matching; the newest relevant rule wins."""
        authority.add_alias("manage", ["create", "read", "update", "delete"])
        authority.add_alias("comment", ["read", "create"])

        authority.allow("manage", "User")
        authority.allow("comment", "User")
        authority.deny("read", "User")

        assert authority.can("manage", "User") is True
        assert authority.can("create", "User") is True
        assert authority.can("read", "User") is False
        assert authority.can("explodeEverything", "User") is False
        assert authority.cannot("explodeEverything", "User") is True

    def test_last_relevant_rule_wins(self, authority):
        """Addition order decides between conflicting rules."""
        authority.allow("read", "User")
        authority.deny("read", "User")
        assert authority.can("read", "User") is False

        reversed_authority = Authority(SimpleNamespace(id=1))
        reversed_authority.deny("read", "User")
        reversed_authority.allow("read", "User")
        assert reversed_authority.can("read", "User") is True

    def test_evaluates_rules_on_records(self, authority, current_user):
        """Record-level conditions only see records passed with the type name."""
        other_user = SimpleNamespace(id=2)

        authority.allow("comment", "User", lambda ctx, a_user: ctx.get_current_user().id == a_user.id)
        authority.deny("read", "User", lambda ctx, a_user: ctx.get_current_user().id != a_user.id)

        # SimpleNamespace values resolve to "SimpleNamespace", not "User"
        assert authority.can("comment", current_user) is False
        assert authority.can("comment", "User", current_user) is True
        assert authority.can("comment", other_user) is False
        assert authority.can("comment", "User", other_user) is False

    def test_values_resolve_to_their_class(self, authority):
        """A record passed as the resource is checked against its class name."""
        post = Post(id=10, author_id=1)
        authority.allow("update", "Post", lambda ctx, p: p.author_id == ctx.current_user.id)

        assert authority.can("update", post) is True
        assert authority.can("update", Post(id=11, author_id=2)) is False

    def test_failed_condition_falls_through(self, authority, current_user):
        """A newer rule whose condition fails is skipped."""
        authority.allow("comment", "User")
        authority.deny("comment", "User", lambda ctx, a_user: a_user is not None and a_user.id != ctx.user().id)

        assert authority.can("comment", "User", current_user) is True
        assert authority.can("comment", "User", SimpleNamespace(id=2)) is False

    def test_last_rule_overrides_previous_rules(self, authority, current_user):
        """An unconditional rule added later overrides a conditional one."""
        authority.allow("comment", "User", lambda ctx, a_user: ctx.get_current_user().id != a_user.id)
        authority.allow("comment", "User")

        assert authority.can("comment", "User", current_user) is True

    def test_role_based_rule_overrides_record_based_rule(self, authority):
        """Conditions receive None when no record is supplied."""
        authority.allow("comment", "User", lambda ctx, a_user: a_user is not None and ctx.current_user.id != a_user.id)
        authority.allow("comment", "User")

        assert authority.can("comment", "User") is True

    def test_all_resources_rule(self, authority):
        """'all' rules match any resource type."""
        authority.allow("read", "all")
        authority.deny("read", "Secret")

        assert authority.can("read", "User") is True
        assert authority.can("read", Post(id=1, author_id=1)) is True
        assert authority.can("read", "Secret") is False

    def test_custom_all_resources_sentinel(self, current_user):
        """The sentinel comes from config.all_resources."""
        authority = Authority(current_user, config=get_config(all_resources="*"))
        authority.allow("read", "*")
        authority.allow("update", "all")

        assert authority.can("read", "User") is True
        assert authority.can("read", Post(id=1, author_id=1)) is True
        assert authority.can("update", "User") is False
        assert authority.can("update", "all") is True

    def test_predicate_errors_propagate(self, authority):
        """Faults inside conditions reach the caller."""
        authority.allow("read", "User", lambda ctx, value: value.owner_id == 1)

        with pytest.raises(AttributeError):
            authority.can("read", "User", object())

    def test_unresolvable_resource_denies(self, current_user):
        """A resolver failure is a deny, not an error."""
        def resolver(value):
            raise UnresolvableResourceError("unknown record")

        authority = Authority(current_user, type_resolver=resolver)
        authority.allow("read", "all")

        assert authority.can("read", {"id": 1}) is False
        assert authority.can("read", "User") is True

        result = authority.evaluate("read", {"id": 1})
        assert result.resource is None
        assert result.reason == "Resource type could not be resolved"

    def test_custom_resolver(self, current_user):
        """Hosts decide how records map to type names."""
        authority = Authority(current_user, type_resolver=lambda record: record["type"])
        authority.allow("read", "Invoice", lambda ctx, record: record["owner"] == ctx.current_user.id)

        assert authority.can("read", {"type": "Invoice", "owner": 1}) is True
        assert authority.can("read", {"type": "Invoice", "owner": 2}) is False
        assert authority.can("read", {"owner": 1}) is False

    def test_current_user_change_is_seen(self, authority):
        """Conditions read the current user at decision time."""
        post = Post(id=10, author_id=2)
        authority.allow("update", "Post", lambda ctx, p: p.author_id == ctx.current_user.id)

        assert authority.can("update", post) is False
        authority.set_current_user(SimpleNamespace(id=2))
        assert authority.can("update", post) is True


class TestAuthorityEvaluate:
    """Test cases for evaluate() results."""

    def test_matched_rule_reported(self, authority):
        """The deciding rule and scan depth are reported."""
        allow = authority.allow("read", "User")
        deny = authority.deny("read", "User", lambda ctx, value: value is not None)

        result = authority.evaluate("read", "User")

        assert result.allowed is True
        assert result.matched_rule is allow
        assert result.evaluated_rules == 2
        assert result.resource == "User"

        result = authority.evaluate("read", "User", SimpleNamespace(id=3))
        assert result.allowed is False
        assert result.matched_rule is deny
        assert result.evaluated_rules == 1

    def test_default_deny_reasons(self, authority):
        """Default deny explains whether rules existed."""
        assert authority.evaluate("read", "User").reason == "No rules found for action and resource"

        authority.allow("read", "User", lambda ctx, value: False)
        result = authority.evaluate("read", "User")

        assert result.allowed is False
        assert result.matched_rule is None
        assert result.reason == "No applicable rules matched"
        assert result.evaluated_rules == 1

    def test_cache_hit_flag(self, authority):
        """The second identical query is served from the cache."""
        authority.allow("read", "User")

        assert authority.evaluate("read", "User").cache_hit is False
        assert authority.evaluate("read", "User").cache_hit is True
        assert authority.evaluate("read", "User").evaluation_time_ms >= 0.0


class TestAuthorityCachePolicy:
    """Test cases for relevance cache invalidation."""

    def test_rule_added_after_lookup_is_seen(self, authority):
        """By default, adding a rule clears the cache."""
        assert authority.can("read", "User") is False

        authority.allow("read", "User")

        assert authority.can("read", "User") is True

    def test_alias_added_after_lookup_is_seen(self, authority):
        """By default, adding an alias clears the cache."""
        authority.allow("manage", "User")
        assert authority.can("read", "User") is False

        authority.add_alias("manage", ["read"])

        assert authority.can("read", "User") is True

    def test_stale_cache_without_invalidation(self, current_user):
        """With invalidation off, cached keys miss later rules until cleared."""
        authority = Authority(current_user, config=get_config(invalidate_cache_on_add=False))
        assert authority.can("read", "User") is False

        authority.allow("read", "User")
        assert authority.can("read", "User") is False
        assert authority.can("read", "Post") is False

        assert authority.clear_cache() == 2
        assert authority.can("read", "User") is True

    def test_conditions_added_after_lookup_are_seen(self, authority):
        """The cache holds rule references, so when() is visible immediately."""
        rule = authority.allow("read", "User")
        assert authority.can("read", "User") is True

        rule.when(lambda ctx, value: False)

        assert authority.can("read", "User") is False


class TestAuthorityStats:
    """Test cases for engine statistics and metrics."""

    def test_engine_stats(self, authority):
        """Stats summarize rules, aliases and cache use."""
        authority.add_alias("manage", ["read"])
        authority.allow("manage", "User")
        authority.deny("read", "Post")
        authority.can("read", "User")

        stats = authority.get_engine_stats()

        assert stats["total_rules"] == 2
        assert stats["privileges"] == 1
        assert stats["restrictions"] == 1
        assert stats["aliases"] == 1
        assert stats["resources"] == ["Post", "User"]
        assert stats["cache"]["entries"] == 1

    def test_decision_metrics(self, authority):
        """Decisions and cache lookups are counted."""
        authority.allow("read", "User")
        authority.can("read", "User")
        authority.can("read", "User")
        authority.can("read", "Post")

        metrics = authority.metrics
        assert metrics.sample("authority_decisions_total", outcome="allowed") == 2.0
        assert metrics.sample("authority_decisions_total", outcome="denied") == 1.0
        assert metrics.sample("authority_relevance_cache_total", result="hit") == 1.0
        assert metrics.sample("authority_relevance_cache_total", result="miss") == 2.0
        assert metrics.sample("authority_rules_added_total", behavior="privilege") == 1.0

    def test_metrics_disabled(self, current_user):
        """Metrics can be switched off."""
        authority = Authority(current_user, config=get_config(enable_metrics=False))
        authority.allow("read", "User")

        assert authority.metrics is None
        assert authority.can("read", "User") is True

    def test_engines_do_not_share_metrics(self, current_user):
        """Each engine counts only its own decisions."""
        first = Authority(current_user)
        second = Authority(current_user)
        first.can("read", "User")

        assert second.metrics.sample("authority_decisions_total", outcome="denied") == 0.0
