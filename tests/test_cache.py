import pytest

from campushub.cache import EventCache
from campushub.models import NormalizedEvent


def _event(title):
    return NormalizedEvent(id=title, title=title, url=None, description="", start_date=None, end_date=None, source="test")


def test_cache_expires_at_ttl():
    now = [100.0]
    cache = EventCache(ttl=10, clock=lambda: now[0])
    assert cache.get() is None

    cache.put([_event("a")])
    now[0] = 109.9
    assert [e.title for e in cache.get()] == ["a"]
    assert cache.age() == pytest.approx(9.9)
    now[0] = 110.0
    assert cache.get() is None


def test_cache_returns_copies_and_clears():
    cache = EventCache(ttl=60, clock=lambda: 0.0)
    cache.put([_event("a")])
    got = cache.get()
    got.append(_event("b"))
    assert len(cache.get()) == 1

    cache.clear()
    assert cache.get() is None
    assert cache.age() is None
