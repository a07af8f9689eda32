"""Process-wide allocator and aggregator built from env and config files."""
from __future__ import annotations

from functools import lru_cache

from campushub import config
from campushub.aggregator import Aggregator
from campushub.allocator import Allocator
from campushub.cache import EventCache
from campushub.log import get_logger
from campushub.sources import get_strategies
from campushub.store import JsonCollection

log = get_logger(__name__)


@lru_cache(maxsize=1)
def get_allocator() -> Allocator:
    config.ensure_dirs()
    return Allocator(
        users=JsonCollection(config.USERS_FILE),
        projects=JsonCollection(config.PROJECTS_FILE),
        assignments=JsonCollection(config.ASSIGNMENTS_FILE),
    )


@lru_cache(maxsize=1)
def get_aggregator() -> Aggregator:
    sources = config.load_sources()
    ttl = config.get_float("CACHE_TTL_SECONDS", config.DEFAULT_CACHE_TTL)
    aggregator = Aggregator(
        sources,
        get_strategies(config.get_env),
        cache=EventCache(ttl=ttl),
        max_workers=config.get_int("AGGREGATOR_WORKERS", 8),
    )
    log.info(
        "Competitions aggregator ready: %s",
        ", ".join(s["id"] for s in aggregator.list_sources()) or "no sources",
    )
    return aggregator
