"""
In-memory relevance cache for the Authority engine.
"""

import threading
from typing import Callable, Dict, List, Optional, Tuple

from shared.logging import get_logger
from ..rules.models import Rule


CacheKey = Tuple[str, str]


class RelevanceCache:
    """Relevant-rule lists keyed on ``(action, resource_type)``.

    Entries hold references to the stored rules, so conditions appended to
    a rule after caching are still seen. Rules added to the repository
    after a key was filled are not, until the cache is cleared.
    """

    def __init__(self):
        self.logger = get_logger("authority.cache.relevance")
        self._entries: Dict[CacheKey, List[Rule]] = {}
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    def lookup(self, action: str, resource: str, loader: Callable[[], List[Rule]]) -> Tuple[List[Rule], bool]:
        """Return ``(rules, cache_hit)``, filling the entry from ``loader`` on a miss."""
        key = (action, resource)
        with self._lock:
            rules = self._entries.get(key)
            if rules is not None:
                self.hits += 1
                return rules, True

            rules = loader()
            self._entries[key] = rules
            self.misses += 1

        self.logger.debug("Relevance cache filled", action=action, resource=resource, rules=len(rules))
        return rules, False

    def get_or_fill(self, action: str, resource: str, loader: Callable[[], List[Rule]]) -> List[Rule]:
        rules, _ = self.lookup(action, resource, loader)
        return rules

    def get(self, action: str, resource: str) -> Optional[List[Rule]]:
        with self._lock:
            return self._entries.get((action, resource))

    def clear(self) -> int:
        """Drop every entry, returning how many were dropped."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()

        if count:
            self.logger.debug("Relevance cache cleared", entries=count)
        return count

    def get_cache_stats(self) -> Dict[str, float]:
        with self._lock:
            total = self.hits + self.misses
            return {
                "entries": len(self._entries),
                "hits": self.hits,
                "misses": self.misses,
                "hit_rate": self.hits / total if total else 0.0
            }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
