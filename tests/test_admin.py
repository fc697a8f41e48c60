from fastapi.testclient import TestClient

from conftest import ADMIN, USER, BrokenRedis
from main import app
from services.cache import ResultCache, get_result_cache

client = TestClient(app)


def test_cache_clear_unauthorized():
    r = client.post("/admin/cache/clear", headers=USER)
    assert r.status_code == 401
    assert r.json()["success"] is False


def test_cache_clear_without_configured_token(monkeypatch):
    monkeypatch.delenv("ADMIN_TOKEN")
    r = client.post("/admin/cache/clear", headers=ADMIN)
    assert r.status_code == 500
    assert r.json()["message"] == "ADMIN_TOKEN not configured on server."


def test_cache_clear_ok(fake_cache):
    fake_cache.set("user:1:stats", {"x": 1}, 60)
    fake_cache.client.set("someone-else:key", "keep")
    r = client.post("/admin/cache/clear", headers=ADMIN)
    assert r.status_code == 200
    assert r.json()["data"] == {"cleared": 1, "enabled": True}
    assert fake_cache.client.store == {"someone-else:key": "keep"}


def test_api_key_is_enforced_when_configured(monkeypatch):
    monkeypatch.setenv("GRADING_API_KEY", "k")
    r = client.post("/questions/calculate-time", json={"questions": 1}, headers=USER)
    assert r.status_code == 401

    r = client.post(
        "/questions/calculate-time", json={"questions": 1}, headers={**USER, "x-api-key": "k"}
    )
    assert r.status_code == 200


def test_bad_user_header_is_401():
    r = client.get("/tests/history", headers={"x-user-id": "abc"})
    assert r.status_code == 401
    r = client.get("/tests/history", headers={"x-user-id": "0"})
    assert r.status_code == 401


def test_cache_clear_with_redis_down():
    app.dependency_overrides[get_result_cache] = lambda: ResultCache(BrokenRedis(), prefix="t")
    try:
        r = client.post("/admin/cache/clear", headers=ADMIN)
    finally:
        app.dependency_overrides.pop(get_result_cache, None)
    assert r.status_code == 200
    assert r.json()["data"] == {"cleared": 0, "enabled": True}
