"""
Rules package.

Defines the rule model and the structures the Authority engine consults
when deciding a request:

- models: Rule, RuleAlias, RuleBehavior, EvaluationContext, EvaluationResult.
- resources: ResourceRef and the pluggable type-name resolver.
- repository: Append-only, insertion-ordered rule log.
- aliases: Alias registry with single-level action expansion.

Precedence is purely positional: the most recently added relevant rule
whose conditions pass decides the outcome.
"""

from .models import (
    ALL_RESOURCES, Predicate, RuleBehavior, Rule, RuleAlias,
    EvaluationContext, EvaluationResult
)
from .resources import ResourceKind, ResourceRef, TypeResolver, default_type_resolver
from .repository import RuleRepository
from .aliases import AliasRegistry

__all__ = [
    "ALL_RESOURCES",
    "Predicate",
    "RuleBehavior",
    "Rule",
    "RuleAlias",
    "EvaluationContext",
    "EvaluationResult",
    "ResourceKind",
    "ResourceRef",
    "TypeResolver",
    "default_type_resolver",
    "RuleRepository",
    "AliasRegistry",
]
