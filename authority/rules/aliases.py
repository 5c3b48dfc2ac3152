"""
Action aliases.
"""

from typing import Dict, Iterable, Optional, Set, Union

from shared.errors import AliasNotFoundError
from .models import RuleAlias


class AliasRegistry:
    """Maps alias names to the actions they stand for.

    Expansion is a single level: an alias covers an action only when it
    lists that exact action. Aliases named inside other aliases are not
    followed.
    """

    def __init__(self):
        self._aliases: Dict[str, RuleAlias] = {}

    def add_alias(self, name: str, actions: Union[str, Iterable[str]]) -> RuleAlias:
        """Register ``name``; an existing alias with the same name is replaced."""
        alias = RuleAlias.create(name, actions)
        self._aliases[name] = alias
        return alias

    def expand_for_action(self, action: str) -> Set[str]:
        """The action itself plus every alias that directly includes it."""
        actions = {action}
        for name, alias in self._aliases.items():
            if alias.includes(action):
                actions.add(name)

        return actions

    def get(self, name: str) -> Optional[RuleAlias]:
        return self._aliases.get(name)

    def require(self, name: str) -> RuleAlias:
        alias = self._aliases.get(name)
        if alias is None:
            raise AliasNotFoundError(name, details={"registered": sorted(self._aliases)})
        return alias

    def all(self) -> Dict[str, RuleAlias]:
        return dict(self._aliases)

    def __len__(self) -> int:
        return len(self._aliases)

    def __contains__(self, name: object) -> bool:
        return name in self._aliases
