"""
Append-only rule storage.
"""

from typing import Collection, Iterator, List, Union

from .models import Rule


class RuleRepository:
    """Insertion-ordered rule log.

    Index order is precedence order: a rule added later is consulted
    before every rule added earlier.
    """

    def __init__(self):
        self._rules: List[Rule] = []

    def add(self, rule: Rule) -> Rule:
        self._rules.append(rule)
        return rule

    def all(self) -> List[Rule]:
        """All rules, oldest first."""
        return list(self._rules)

    def get_relevant_rules(self, action: Union[str, Collection[str]], resource: str) -> List[Rule]:
        """Rules matching the action (or any of an action set) and resource, oldest first."""
        return [rule for rule in self._rules if rule.is_relevant(action, resource)]

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(list(self._rules))

    def __contains__(self, rule: object) -> bool:
        return any(existing is rule for existing in self._rules)
