import httpx
import pytest

from sybertailor.routes import currency

RATES = {"base": "NGN", "date": "2026-10-01", "rates": {"USD": 0.00065, "GBP": 0.0005}}


@pytest.fixture
def rate_cache(monkeypatch):
    store = {}
    monkeypatch.setattr(currency, "get_exchange_rates_cached", lambda base: store.get(base))
    monkeypatch.setattr(currency, "set_exchange_rates_cache", lambda base, table, ttl=3600: store.update({base: table}))
    return store


@pytest.fixture
def upstream(monkeypatch):
    calls = []

    async def fetch(base):
        calls.append(base)
        return RATES

    monkeypatch.setattr(currency, "fetch_exchange_rates", fetch)
    return calls


def test_rate_lookup_is_cached(client, rate_cache, upstream):
    first = client.get("/api/currency/exchange-rate?base=ngn&target=usd")
    second = client.get("/api/currency/exchange-rate?base=NGN&target=GBP")

    assert first.status_code == 200
    assert first.json() == {"rate": 0.00065, "base": "NGN", "target": "USD", "date": "2026-10-01"}
    assert second.json()["rate"] == 0.0005
    assert upstream == ["NGN"]


def test_unknown_target(client, rate_cache, upstream):
    response = client.get("/api/currency/exchange-rate?base=NGN&target=XYZ")

    assert response.status_code == 400


def test_upstream_failure_is_a_bad_gateway(client, rate_cache, monkeypatch):
    async def broken(base):
        raise httpx.ConnectError("down")

    monkeypatch.setattr(currency, "fetch_exchange_rates", broken)

    response = client.get("/api/currency/exchange-rate")

    assert response.status_code == 502
    assert rate_cache == {}


def test_codes_must_be_three_letters(client):
    response = client.get("/api/currency/exchange-rate?base=NAIRA")

    assert response.status_code == 400
    assert response.json()["errors"] == {"base": "String should have at most 3 characters"}
