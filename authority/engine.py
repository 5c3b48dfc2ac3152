"""
Rule evaluation engine.
"""

import time
from typing import Any, Dict, Iterable, List, Optional, Set, Union

from shared.config import AuthorityConfig, get_config
from shared.errors import UnresolvableResourceError
from shared.logging import get_logger, set_log_level
from shared.metrics import MetricsCollector
from .cache import RelevanceCache
from .events import EventSink, as_event_sink
from .rules import (
    AliasRegistry, EvaluationContext, EvaluationResult, Predicate, ResourceRef,
    Rule, RuleAlias, RuleBehavior, RuleRepository, TypeResolver, default_type_resolver
)


INITIALIZED_EVENT = "authority.initialized"


class Authority:
    """Decides whether the current user may perform an action on a resource.

    Rules are declared with ``allow`` and ``deny``. On a check, the rules
    relevant to the action (after alias expansion) and resource type are
    scanned newest first; the first one whose conditions all pass decides.
    When nothing applies the answer is no.

    Usage:
        authority = Authority(current_user)
        authority.add_alias("manage", ["create", "read", "update", "delete"])
        authority.allow("read", "Post")
        authority.allow("manage", "Post", lambda ctx, post: post.author_id == ctx.current_user.id)

        authority.can("read", "Post")              # True
        authority.can("delete", "Post", post)      # True for the author's own post
    """

    def __init__(
        self,
        current_user: Any,
        dispatcher: Any = None,
        *,
        config: Optional[AuthorityConfig] = None,
        type_resolver: Optional[TypeResolver] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.config = config or get_config()
        set_log_level("authority", self.config.log_level)
        self.logger = get_logger("authority.engine")
        self.rules = RuleRepository()
        self.aliases = AliasRegistry()
        self.cache = RelevanceCache()
        self.type_resolver: TypeResolver = type_resolver or default_type_resolver
        if metrics is None and self.config.enable_metrics:
            metrics = MetricsCollector()
        self.metrics = metrics

        self._dispatcher: Optional[EventSink] = None
        self._current_user: Any = None
        self.set_dispatcher(dispatcher)
        self.set_current_user(current_user)

        self.logger.info(
            "Authority initialized",
            invalidate_cache_on_add=self.config.invalidate_cache_on_add,
            dispatcher=type(self._dispatcher).__name__ if self._dispatcher is not None else None
        )
        self.dispatch(INITIALIZED_EVENT, {"user": self.get_current_user()})

    def dispatch(self, event_name: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        """Fire an event through the current dispatcher; None without one."""
        if self._dispatcher is None:
            return None
        return self._dispatcher.fire(event_name, payload if payload is not None else {})

    # Decisions

    def can(self, action: str, resource: Any, resource_value: Any = None) -> bool:
        """Determine if the current user may perform ``action`` on ``resource``."""
        return self.evaluate(action, resource, resource_value).allowed

    def cannot(self, action: str, resource: Any, resource_value: Any = None) -> bool:
        return not self.can(action, resource, resource_value)

    def evaluate(self, action: str, resource: Any, resource_value: Any = None) -> EvaluationResult:
        """Decide a request and report which rule, if any, decided it."""
        start_time = time.time()

        try:
            resource_type, resource_value = ResourceRef.coerce(resource).normalize(
                self.type_resolver, resource_value
            )
        except UnresolvableResourceError as e:
            self.logger.warning("Resource type unresolvable", action=action, error=e.message, details=e.details)
            return self._finish(EvaluationResult(
                allowed=False,
                action=action,
                resource=None,
                reason="Resource type could not be resolved"
            ), start_time)

        rules, cache_hit = self.cache.lookup(
            action, resource_type, lambda: self._load_relevant_rules(action, resource_type)
        )
        if self.metrics:
            self.metrics.record_cache_lookup(cache_hit)

        context = EvaluationContext(authority=self, action=action, resource=resource_type)

        # Newest rule first
        for evaluated, rule in enumerate(reversed(rules), start=1):
            if rule.applies(context, resource_value):
                return self._finish(EvaluationResult(
                    allowed=rule.is_privilege(),
                    action=action,
                    resource=resource_type,
                    reason=f"{rule.behavior.value.capitalize()} '{rule.action}' on '{rule.resource}' applied",
                    matched_rule=rule,
                    evaluated_rules=evaluated,
                    cache_hit=cache_hit
                ), start_time)

        return self._finish(EvaluationResult(
            allowed=False,
            action=action,
            resource=resource_type,
            reason="No applicable rules matched" if rules else "No rules found for action and resource",
            evaluated_rules=len(rules),
            cache_hit=cache_hit
        ), start_time)

    def _finish(self, result: EvaluationResult, start_time: float) -> EvaluationResult:
        duration = time.time() - start_time
        result.evaluation_time_ms = duration * 1000
        if self.metrics:
            self.metrics.record_decision(result.allowed, duration)

        self.logger.debug(
            "Authorization decision",
            action=result.action,
            resource=result.resource,
            allowed=result.allowed,
            reason=result.reason,
            evaluated_rules=result.evaluated_rules,
            cache_hit=result.cache_hit
        )
        return result

    def _load_relevant_rules(self, action: str, resource: str) -> List[Rule]:
        return self.rules.get_relevant_rules(self.get_aliases_for_action(action), resource)

    # Rule declaration

    def allow(self, action: str, resource: Any, condition: Optional[Predicate] = None) -> Rule:
        """Define a privilege for an action and resource."""
        return self.add_rule(RuleBehavior.PRIVILEGE, action, resource, condition)

    def deny(self, action: str, resource: Any, condition: Optional[Predicate] = None) -> Rule:
        """Define a restriction for an action and resource."""
        return self.add_rule(RuleBehavior.RESTRICTION, action, resource, condition)

    def add_rule(
        self,
        behavior: Union[RuleBehavior, bool],
        action: str,
        resource: Any,
        condition: Optional[Predicate] = None
    ) -> Rule:
        """Define a rule; ``behavior`` True means privilege, False restriction."""
        resource_type, _ = ResourceRef.coerce(resource).normalize(self.type_resolver)
        rule = Rule(
            behavior=behavior,
            action=action,
            resource=resource_type,
            all_resources=self.config.all_resources
        )
        rule.add_condition(condition)
        self.rules.add(rule)

        if self.config.invalidate_cache_on_add:
            self.cache.clear()
        if self.metrics:
            self.metrics.record_rule_added(rule.behavior.value)

        self.logger.debug(
            "Rule added",
            behavior=rule.behavior.value,
            action=rule.action,
            resource=rule.resource,
            conditions=len(rule.conditions),
            position=len(self.rules) - 1
        )
        return rule

    def add_alias(self, name: str, actions: Union[str, Iterable[str]]) -> RuleAlias:
        """Define ``name`` as an alias for a group of actions."""
        alias = self.aliases.add_alias(name, actions)

        # Expansion changed for every action the alias lists
        if self.config.invalidate_cache_on_add:
            self.cache.clear()

        self.logger.debug("Alias added", name=name, actions=list(alias.actions))
        return alias

    def clear_cache(self) -> int:
        """Forget every cached relevant-rule list."""
        return self.cache.clear()

    # State

    def set_current_user(self, current_user: Any) -> None:
        self._current_user = current_user

    def set_dispatcher(self, dispatcher: Any) -> None:
        """Set the event sink; accepts an object with ``fire`` or a callable."""
        self._dispatcher = as_event_sink(dispatcher)

    def set_event_sink(self, sink: Any) -> None:
        self.set_dispatcher(sink)

    def get_dispatcher(self) -> Optional[EventSink]:
        return self._dispatcher

    def get_current_user(self) -> Any:
        return self._current_user

    def user(self) -> Any:
        """Alias of get_current_user()."""
        return self.get_current_user()

    # Queries

    def get_rules(self) -> RuleRepository:
        return self.rules

    def get_rules_for(self, action: str, resource: Any) -> List[Rule]:
        """Rules relevant to an action and resource, oldest first."""
        resource_type, _ = ResourceRef.coerce(resource).normalize(self.type_resolver)
        rules, cache_hit = self.cache.lookup(
            action, resource_type, lambda: self._load_relevant_rules(action, resource_type)
        )
        if self.metrics:
            self.metrics.record_cache_lookup(cache_hit)
        return list(rules)

    def get_aliases_for_action(self, action: str) -> Set[str]:
        """The action plus every alias that lists it."""
        return self.aliases.expand_for_action(action)

    def get_aliases(self) -> Dict[str, RuleAlias]:
        return self.aliases.all()

    def get_alias(self, name: str) -> Optional[RuleAlias]:
        """Alias registered under ``name``, or None."""
        return self.aliases.get(name)

    def require_alias(self, name: str) -> RuleAlias:
        """Alias registered under ``name``; raises AliasNotFoundError otherwise."""
        return self.aliases.require(name)

    def get_engine_stats(self) -> Dict[str, Any]:
        """Get engine statistics."""
        rules = self.rules.all()
        return {
            "total_rules": len(rules),
            "privileges": len([r for r in rules if r.is_privilege()]),
            "restrictions": len([r for r in rules if r.is_restriction()]),
            "aliases": len(self.aliases),
            "resources": sorted(set(r.resource for r in rules)),
            "cache": self.cache.get_cache_stats()
        }
