"""
Caching for relevant-rule lookups.
"""

from .relevance_cache import RelevanceCache

__all__ = ["RelevanceCache"]
