from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from restaurant_fx.core.config import Settings
from restaurant_fx.main import create_app
from restaurant_fx.routers.currency import get_cache_service
from restaurant_fx.services.rates.base import RateTable


@pytest.fixture
def client():
    settings = Settings(exchange_rate_provider="static", base_currency="USD")
    return TestClient(create_app(settings_override=settings))


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_list_currencies(client):
    body = client.get("/currency/currencies").json()
    african = {c["code"]: c for c in body["africa"]}
    assert african["UGX"]["decimal_digits"] == 0
    assert "USD" in {c["code"] for c in body["international"]}


def test_get_rate(client):
    r = client.get("/currency/rate", params={"from": "usd", "to": "kes"})
    assert r.status_code == 200
    body = r.json()
    assert body["exchange_rate"] == 130.0
    assert body["from_currency"] == "USD"
    assert body["base_currency"] == "USD"


def test_get_rate_requires_both_codes(client):
    r = client.get("/currency/rate", params={"from": "USD"})
    assert r.status_code == 422
    assert r.json()["error"] == "validation_error"


def test_convert_amount(client):
    r = client.get("/currency/convert", params={"from": "USD", "to": "KES", "amount": 100})
    assert r.status_code == 200
    body = r.json()
    assert body["converted_amount"] == 13000.0
    assert body["formatted"] == "KSh13,000.00"


def test_convert_huge_amount(client):
    r = client.get("/currency/convert", params={"from": "USD", "to": "KES", "amount": 1e27})
    assert r.status_code == 200
    assert r.json()["converted_amount"] == pytest.approx(1.3e29)


def test_convert_overflowing_amount_is_bad_request(client):
    r = client.get("/currency/convert", params={"from": "USD", "to": "KES", "amount": 1e307})
    assert r.status_code == 400
    assert r.json()["error"] == "bad_request"


def test_convert_collections(client):
    payload = {
        "from_currency": "usd",
        "to_currency": "kes",
        "menu_items": [{"id": 1, "price": 2}, {"id": 2, "price": "n/a"}],
        "inventory_items": [{"id": 10, "unit_cost": 1, "selling_price": 3}],
    }

    r = client.post("/currency/convert", json=payload)

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is False
    assert body["message"] == "Currency conversion completed. 2 items converted, 1 failed."
    assert body["menu_items"]["failed_ids"] == [2]
    assert body["menu_items"]["items"][0]["price"] == 260.0
    assert body["inventory_items"]["items"][0]["selling_price"] == 390.0
    assert body["exchange_rate"] == 130.0


def test_convert_only_menu(client):
    payload = {
        "from_currency": "USD",
        "to_currency": "UGX",
        "conversion_type": "menu",
        "menu_items": [{"id": 1, "price": 2}],
        "inventory_items": [{"id": 10, "cost": 1}],
    }
    body = client.post("/currency/convert", json=payload).json()
    assert body["success"] is True
    assert body["menu_items"]["items"][0]["price"] == 7400
    assert body["inventory_items"] is None


def test_convert_same_currency_rejected(client):
    r = client.post("/currency/convert", json={"from_currency": "KES", "to_currency": "kes"})
    assert r.status_code == 400
    assert r.json() == {"error": "bad_request", "detail": "Source and target currencies are the same"}


def test_refresh_rates(client):
    r = client.post("/currency/rates/refresh")
    assert r.status_code == 200
    body = r.json()
    assert body["source"] == "static"
    assert body["base_currency"] == "USD"
    assert body["entries"] > 40


def test_unknown_route(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"


@pytest.fixture
def shifting_cache():
    """Cache whose table changes on every read; a second read within a request shows up as 140."""
    cache = Mock()
    cache.get_rates.side_effect = [
        RateTable(rates={"USD-KES": 130.0}, base_currency="USD"),
        RateTable(rates={"USD-KES": 140.0}, base_currency="USD"),
    ]
    cache.base_currency = "USD"
    cache.last_refreshed_at = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    return cache


@pytest.fixture
def shifting_client(shifting_cache):
    app = create_app(settings_override=Settings(exchange_rate_provider="static"))
    app.dependency_overrides[get_cache_service] = lambda: shifting_cache
    return TestClient(app)


def test_convert_amount_reports_the_rate_it_used(shifting_client, shifting_cache):
    body = shifting_client.get("/currency/convert", params={"from": "USD", "to": "KES", "amount": 2}).json()

    assert body["exchange_rate"] == 130.0
    assert body["converted_amount"] == 260.0
    assert shifting_cache.get_rates.call_count == 1


def test_convert_collections_share_one_rate_table(shifting_client, shifting_cache):
    payload = {
        "from_currency": "USD",
        "to_currency": "KES",
        "menu_items": [{"id": 1, "price": 2}],
        "inventory_items": [{"id": 10, "cost": 1}],
    }

    body = shifting_client.post("/currency/convert", json=payload).json()

    assert shifting_cache.get_rates.call_count == 1
    assert body["menu_items"]["items"][0]["price"] == 260.0
    assert body["inventory_items"]["items"][0]["cost"] == 130.0
    assert body["exchange_rate"] == 130.0
