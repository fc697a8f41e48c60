import redis

import config
import services.cache as cache_mod
from conftest import BrokenRedis, FakeRedis
from services.cache import ResultCache, get_result_cache, with_cache


def _counter():
    calls = []

    def compute():
        calls.append(1)
        return {"n": len(calls)}

    return calls, compute


def test_with_cache_memoizes():
    cache = ResultCache(FakeRedis(), prefix="t")
    calls, compute = _counter()
    assert with_cache(cache, "k", 60, compute) == {"n": 1}
    assert with_cache(cache, "k", 60, compute) == {"n": 1}
    assert len(calls) == 1
    assert cache.client.ttls["t:k"] == 60


def test_with_cache_respects_cache_if():
    cache = ResultCache(FakeRedis(), prefix="t")
    calls, compute = _counter()
    with_cache(cache, "k", 60, compute, cache_if=lambda v: False)
    with_cache(cache, "k", 60, compute, cache_if=lambda v: False)
    assert len(calls) == 2
    assert cache.client.store == {}


def test_disabled_cache_always_computes():
    cache = ResultCache(None)
    calls, compute = _counter()
    with_cache(cache, "k", 60, compute)
    with_cache(cache, "k", 60, compute)
    assert len(calls) == 2
    assert cache.enabled is False
    assert cache.clear() == 0


def test_unreachable_redis_is_a_miss():
    cache = ResultCache(BrokenRedis(), prefix="t")
    calls, compute = _counter()
    assert with_cache(cache, "k", 60, compute) == {"n": 1}
    assert with_cache(cache, "k", 60, compute) == {"n": 2}


def test_undecodable_entry_is_a_miss():
    client = FakeRedis()
    client.set("t:k", "{oops")
    cache = ResultCache(client, prefix="t")
    assert cache.get("k") is None


def test_clear_survives_redis_outage():
    cache = ResultCache(BrokenRedis(), prefix="t")
    assert cache.clear() == 0


def test_redis_is_retried_after_startup_outage(monkeypatch):
    pings = []

    class SlowStartRedis(FakeRedis):
        def ping(self):
            pings.append(1)
            if len(pings) == 1:
                raise redis.ConnectionError("still starting")
            return True

    monkeypatch.setattr(config, "REDIS_URL", "redis://cache:6379/0")
    monkeypatch.setattr(config, "REDIS_RETRY_SECONDS", 0)
    monkeypatch.setattr(redis.Redis, "from_url", lambda url, **kw: SlowStartRedis())
    monkeypatch.setattr(cache_mod, "_default_cache", None)
    cache_mod.reset_redis_state()
    try:
        assert get_result_cache().enabled is False
        assert get_result_cache().enabled is True
        assert len(pings) == 2
    finally:
        cache_mod.reset_redis_state()


def test_failed_connection_waits_before_retrying(monkeypatch):
    calls = []

    def refuse(url, **kw):
        calls.append(url)
        raise redis.ConnectionError("refused")

    monkeypatch.setattr(config, "REDIS_URL", "redis://cache:6379/0")
    monkeypatch.setattr(config, "REDIS_RETRY_SECONDS", 60)
    monkeypatch.setattr(redis.Redis, "from_url", refuse)
    cache_mod.reset_redis_state()
    try:
        assert cache_mod.get_redis_client() is None
        assert cache_mod.get_redis_client() is None
        assert len(calls) == 1
    finally:
        cache_mod.reset_redis_state()
