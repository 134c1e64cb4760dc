# Match cache package
from match_engine.infrastructure.cache.backend import CacheBackend, InMemoryCacheBackend
from match_engine.infrastructure.cache.match_cache import MatchCache, MatchDataSource

__all__ = [
    "CacheBackend",
    "InMemoryCacheBackend",
    "MatchCache",
    "MatchDataSource",
]
