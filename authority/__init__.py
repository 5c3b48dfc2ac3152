"""
Authority: in-process, rule-based authorization.

Answers "can the current user perform this action on this resource" from
rules declared by the host application. It provides:

- authority.engine: the ``Authority`` engine (allow/deny/can/cannot).
- authority.rules: Rule model, aliases, resource references, repository.
- authority.cache: Relevant-rule cache keyed on action and resource type.
- authority.events: Lifecycle event sinks.

Guidelines:
- Declare broad rules first and exceptions after; the newest applicable
  rule wins.
- Anything not explicitly allowed is denied.
"""

from .engine import Authority, INITIALIZED_EVENT
from .events import CallableEventSink, EventSink, LoggingEventSink
from .rules import (
    ALL_RESOURCES, EvaluationContext, EvaluationResult, ResourceRef, Rule,
    RuleAlias, RuleBehavior, default_type_resolver
)

__all__ = [
    "Authority",
    "INITIALIZED_EVENT",
    "CallableEventSink",
    "EventSink",
    "LoggingEventSink",
    "ALL_RESOURCES",
    "EvaluationContext",
    "EvaluationResult",
    "ResourceRef",
    "Rule",
    "RuleAlias",
    "RuleBehavior",
    "default_type_resolver",
]
