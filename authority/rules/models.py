"""
Rule data models for the Authority engine.
"""

from typing import Any, Callable, Collection, Iterable, List, Optional, Tuple, Union, TYPE_CHECKING
from dataclasses import dataclass, field
from enum import Enum

from shared.errors import InvalidRuleError

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..engine import Authority


ALL_RESOURCES = "all"

# (context, resource_value) -> bool
Predicate = Callable[["EvaluationContext", Any], bool]


class RuleBehavior(str, Enum):
    """Outcome of a rule once it applies."""
    PRIVILEGE = "privilege"
    RESTRICTION = "restriction"

    @classmethod
    def coerce(cls, behavior: Union["RuleBehavior", bool]) -> "RuleBehavior":
        """Accept a behavior or a bool (True for privilege)."""
        if isinstance(behavior, cls):
            return behavior
        if isinstance(behavior, bool):
            return cls.PRIVILEGE if behavior else cls.RESTRICTION
        return cls(behavior)


@dataclass(frozen=True)
class EvaluationContext:
    """Context handed to every predicate.

    Gives predicates read access to the engine, most commonly to compare
    a record against the current principal.
    """
    authority: "Authority"
    action: str
    resource: str

    @property
    def current_user(self) -> Any:
        return self.authority.get_current_user()

    def get_current_user(self) -> Any:
        return self.authority.get_current_user()

    def user(self) -> Any:
        return self.authority.get_current_user()


@dataclass(eq=False)
class Rule:
    """Authorization rule.

    Rules compare by identity: two rules with the same fields are still
    distinct entries in a repository.
    """
    behavior: RuleBehavior
    action: str
    resource: str
    conditions: List[Predicate] = field(default_factory=list)
    all_resources: str = field(default=ALL_RESOURCES, repr=False)

    def __post_init__(self):
        self.behavior = RuleBehavior.coerce(self.behavior)
        if not isinstance(self.action, str) or not self.action:
            raise InvalidRuleError("Rule action must be a non-empty string", details={"action": repr(self.action)})
        if not isinstance(self.resource, str) or not self.resource:
            raise InvalidRuleError("Rule resource must be a non-empty string", details={"resource": repr(self.resource)})
        initial = list(self.conditions)
        self.conditions = []
        for condition in initial:
            self.add_condition(condition)

    def applies(self, context: Optional[EvaluationContext], resource_value: Any = None) -> bool:
        """True when every condition passes; a rule without conditions always applies."""
        for condition in self.conditions:
            if not condition(context, resource_value):
                return False

        return True

    def is_allowed(self, context: Optional[EvaluationContext], resource_value: Any = None) -> bool:
        """True if this rule is a privilege and it applies."""
        return self.is_privilege() and self.applies(context, resource_value)

    def is_disallowed(self, context: Optional[EvaluationContext], resource_value: Any = None) -> bool:
        """True if this rule is a restriction and it applies."""
        return self.is_restriction() and self.applies(context, resource_value)

    def is_relevant(self, action: Union[str, Collection[str]], resource: str) -> bool:
        return self.matches_action(action) and self.matches_resource(resource)

    def matches_action(self, action: Union[str, Collection[str]]) -> bool:
        """Exact match for a single action, membership for an expanded set."""
        if isinstance(action, str):
            return self.action == action
        return self.action in action

    def matches_resource(self, resource: str) -> bool:
        return self.resource == resource or self.resource == self.all_resources

    def when(self, condition: Optional[Predicate]) -> "Rule":
        """Chainable form of add_condition."""
        self.add_condition(condition)
        return self

    def add_condition(self, condition: Optional[Predicate]) -> None:
        if condition is None:
            return
        if not callable(condition):
            raise InvalidRuleError(
                "Rule condition must be callable",
                details={"action": self.action, "resource": self.resource}
            )
        self.conditions.append(condition)

    def is_privilege(self) -> bool:
        return self.behavior is RuleBehavior.PRIVILEGE

    def is_restriction(self) -> bool:
        return self.behavior is RuleBehavior.RESTRICTION


@dataclass(frozen=True)
class RuleAlias:
    """Named group of actions."""
    name: str
    actions: Tuple[str, ...]

    @classmethod
    def create(cls, name: str, actions: Union[str, Iterable[str]]) -> "RuleAlias":
        if isinstance(actions, str):
            actions = [actions]
        # Keep declaration order, drop repeats
        return cls(name=name, actions=tuple(dict.fromkeys(actions)))

    def includes(self, action: str) -> bool:
        return action in self.actions


@dataclass
class EvaluationResult:
    """Result of rule evaluation."""
    allowed: bool
    action: str
    resource: Optional[str]
    reason: Optional[str] = None
    matched_rule: Optional[Rule] = None
    evaluated_rules: int = 0
    cache_hit: bool = False
    evaluation_time_ms: float = 0.0
