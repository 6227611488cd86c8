import pytest
import redis

from sybertailor import rate_limiter


class FakeRedis:
    def __init__(self):
        self.counts = {}
        self.expiry = {}

    def pipeline(self):
        return FakePipeline(self)

    def expire(self, key, seconds):
        self.expiry[key] = seconds


class FakePipeline:
    def __init__(self, store):
        self.store = store
        self.ops = []

    def incr(self, key):
        self.ops.append(("incr", key))

    def ttl(self, key):
        self.ops.append(("ttl", key))

    def execute(self):
        results = []
        for op, key in self.ops:
            if op == "incr":
                self.store.counts[key] = self.store.counts.get(key, 0) + 1
                results.append(self.store.counts[key])
            else:
                results.append(self.store.expiry.get(key, -1))
        return results


@pytest.fixture
def limited(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(rate_limiter, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(rate_limiter, "get_redis_client", lambda: fake)
    return fake


def test_hit_starts_the_window_once():
    fake = FakeRedis()

    assert rate_limiter.hit("login:1.2.3.4", 2, 900, fake) == (True, 1, 900)
    assert rate_limiter.hit("login:1.2.3.4", 2, 900, fake) == (True, 2, 900)
    assert rate_limiter.hit("login:1.2.3.4", 2, 900, fake)[0] is False


def test_login_is_throttled_per_ip(client, user, limited):
    for _ in range(10):
        client.post("/api/auth/login", json={"email": user.email, "password": "wrong-password"})

    response = client.post("/api/auth/login", json={"email": user.email, "password": "wrong-password"})

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "900"


def test_redis_outage_fails_closed(client, user, monkeypatch):
    def unavailable():
        raise redis.ConnectionError("refused")

    monkeypatch.setattr(rate_limiter, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(rate_limiter, "get_redis_client", unavailable)

    response = client.post("/api/auth/login", json={"email": user.email, "password": "whatever"})

    assert response.status_code == 503
