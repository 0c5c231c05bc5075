"""
End-to-end tests for the HTTP API. The service runs against the mock
BigCommerce app through a dependency override.
"""

import pytest
from fastapi.testclient import TestClient

from conftest import make_mock_client
from mock_services import mock_bigcommerce
from pricelist_service.main import app, get_bigcommerce_client


async def _mock_bigcommerce_client():
    async with make_mock_client() as client:
        yield client


@pytest.fixture
def client():
    app.dependency_overrides[get_bigcommerce_client] = _mock_bigcommerce_client
    yield TestClient(app)
    app.dependency_overrides.clear()


def by_id(items):
    return {item["id"]: item for item in items}


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_products_for_guest_use_catalog_prices(client):
    r = client.get("/api/products")
    assert r.status_code == 200
    assert r.headers["cache-control"] == "private, max-age=300"

    body = r.json()
    products = by_id(body["products"])
    assert set(products) == {111, 112, 113, 114}
    assert body["priceListId"] is None

    glove = products[111]
    assert glove["calculated_price"] == 50.0
    assert glove["calculated_sale_price"] == 45.0
    variants = by_id(glove["variants"])
    assert variants[1001]["calculated_price"] == 50.0
    assert variants[1003]["calculated_price"] == 50.0

    goggles = products[112]
    assert goggles["calculated_sale_price"] is None
    assert goggles["variants"][0]["calculated_price"] == 20.0


def test_products_for_wholesale_group_use_price_list(client):
    r = client.get("/api/products", params={"customerGroupId": "2"})
    assert r.status_code == 200

    body = r.json()
    assert body["priceListId"] == 10
    products = by_id(body["products"])

    glove = products[111]
    assert glove["calculated_price"] == 40.0
    assert glove["calculated_sale_price"] is None
    variants = by_id(glove["variants"])
    assert variants[1001]["calculated_price"] == 35.0
    assert variants[1001]["calculated_sale_price"] == 30.0
    assert variants[1003]["calculated_price"] == 40.0

    # Eintrag mit variant_id und product_id gilt nur für die Variante
    goggles = products[112]
    assert goggles["calculated_price"] == 20.0
    assert goggles["variants"][0]["calculated_price"] == 18.0
    assert goggles["variants"][0]["calculated_sale_price"] is None


def test_products_with_sale_discount_type(client):
    r = client.get("/api/products", params={"customerGroupId": "2", "discountType": "sale"})
    assert r.status_code == 200

    products = by_id(r.json()["products"])
    assert products[111]["calculated_price"] == 45.0
    assert products[111]["calculated_sale_price"] == 45.0
    # Sale-Preis gleich Preis ist kein Rabatt
    assert products[113]["calculated_price"] == 10.0


def test_products_when_price_list_lookup_fails(client):
    r = client.get("/api/products", params={"customerGroupId": "99"})
    assert r.status_code == 200

    products = by_id(r.json()["products"])
    assert products[111]["calculated_price"] == 50.0


def test_products_filters_and_limit_cap(client):
    r = client.get("/api/products", params={"search": "brille", "limit": 1000})
    assert r.status_code == 200

    body = r.json()
    assert [p["id"] for p in body["products"]] == [112]
    assert body["pagination"]["per_page"] == 250
    assert body["pagination"]["total"] == 1

    r = client.get("/api/products", params={"category": "42"})
    assert [p["id"] for p in r.json()["products"]] == [113]


def test_products_rejects_unknown_discount_type(client):
    r = client.get("/api/products", params={"discountType": "clearance"})
    assert r.status_code == 422


def test_pricing_with_quantity_break(client):
    r = client.get("/api/pricing", params={"productId": 111, "customerGroupId": "2", "quantity": 10})
    assert r.status_code == 200
    assert r.headers["cache-control"] == "private, max-age=120"

    quote = r.json()
    assert quote["basePrice"] == 50.0
    assert quote["salePrice"] == 45.0
    assert quote["calculatedPrice"] == 40.0
    assert quote["finalPrice"] == 36.0
    assert quote["priceListApplied"] is True
    assert len(quote["quantityBreaks"]) == 2
    assert quote["maxQuantity"] is None


def test_pricing_for_variant(client):
    r = client.get("/api/pricing", params={"productId": 111, "variantId": 1001, "customerGroupId": "2"})
    assert r.status_code == 200

    quote = r.json()
    assert quote["calculatedPrice"] == 35.0
    assert quote["calculatedSalePrice"] == 30.0
    assert quote["finalPrice"] == 35.0


def test_pricing_without_bulk_rules(client):
    r = client.get("/api/pricing", params={"productId": 112, "quantity": 5})
    assert r.status_code == 200

    quote = r.json()
    assert quote["finalPrice"] == 20.0
    assert quote["quantityBreaks"] == []
    assert quote["minQuantity"] == 2
    assert quote["maxQuantity"] == 100
    assert quote["priceListApplied"] is False


def test_pricing_unknown_product(client):
    r = client.get("/api/pricing", params={"productId": 404})
    assert r.status_code == 404


def test_pricing_unknown_variant(client):
    r = client.get("/api/pricing", params={"productId": 111, "variantId": 9999})
    assert r.status_code == 404


def test_pricing_requires_product_id(client):
    r = client.get("/api/pricing")
    assert r.status_code == 422


def test_customer_context_for_guest(client):
    r = client.get("/api/customer-context")
    assert r.status_code == 200
    assert r.headers["cache-control"] == "private, no-cache"

    context = r.json()
    assert context["isLoggedIn"] is False
    assert context["customerGroupId"] == 4
    assert context["customerGroup"] == "retail"
    assert context["isWholesale"] is False


def test_customer_context_for_wholesale_customer(client):
    r = client.get("/api/customer-context", params={"customerId": "7"})
    assert r.status_code == 200

    context = r.json()
    assert context["isLoggedIn"] is True
    assert context["customerId"] == 7
    assert context["customerGroupId"] == 2
    assert context["customerGroup"] == "wholesale"
    assert context["isWholesale"] is True
    assert context["name"] == "Erika Muster"


def test_customer_context_without_group(client):
    r = client.get("/api/customer-context", params={"customerId": "8"})

    context = r.json()
    assert context["isLoggedIn"] is True
    assert context["customerGroup"] == "guest"
    assert context["customerGroupId"] is None
    assert context["name"] == "Max"


def test_customer_context_for_unknown_customer(client):
    r = client.get("/api/customer-context", params={"customerId": "12345"})

    context = r.json()
    assert context["isLoggedIn"] is False
    assert context["customerGroup"] == "guest"


@pytest.mark.parametrize("discount_type", ["wholesale", "retail", "custom"])
def test_pricing_variant_without_own_record_is_not_price_listed(client, discount_type):
    r = client.get("/api/pricing", params={
        "productId": 111, "variantId": 1003, "customerGroupId": "2", "discountType": discount_type,
    })
    assert r.status_code == 200

    quote = r.json()
    assert quote["calculatedPrice"] == 50.0
    assert quote["priceListApplied"] is False


def test_pricing_variant_falls_back_to_product_record_in_default(client):
    r = client.get("/api/pricing", params={"productId": 111, "variantId": 1003, "customerGroupId": "2"})

    quote = r.json()
    assert quote["calculatedPrice"] == 40.0
    assert quote["priceListApplied"] is True


def test_pricing_with_sale_never_reports_price_list(client):
    r = client.get("/api/pricing", params={"productId": 111, "customerGroupId": "2", "discountType": "sale"})

    quote = r.json()
    assert quote["calculatedPrice"] == 45.0
    assert quote["priceListApplied"] is False


def test_pricing_ignores_failing_bulk_pricing_rules(client):
    r = client.get("/api/pricing", params={"productId": 114, "quantity": 20})
    assert r.status_code == 200

    quote = r.json()
    assert quote["quantityBreaks"] == []
    assert quote["calculatedPrice"] == 80.0
    assert quote["finalPrice"] == 80.0


def test_customer_context_when_customer_lookup_fails(client):
    r = client.get("/api/customer-context", params={"customerId": mock_bigcommerce.FAILING_CUSTOMER})
    assert r.status_code == 200

    context = r.json()
    assert context["isLoggedIn"] is False
    assert context["customerGroup"] == "guest"
    assert context["customerId"] is None


def test_customer_context_when_group_lookup_fails(client):
    r = client.get("/api/customer-context", params={"customerId": "9"})
    assert r.status_code == 200

    context = r.json()
    assert context["isLoggedIn"] is True
    assert context["customerGroupId"] == mock_bigcommerce.FAILING_GROUP_DETAILS
    # Gruppenname unbekannt, Kunde bleibt eingeloggt
    assert context["customerGroup"] == "retail"
    assert context["name"] == "Jan Roth"


def test_customer_context_when_store_info_fails(client, monkeypatch):
    monkeypatch.setattr(mock_bigcommerce, "STORE_AVAILABLE", False)

    r = client.get("/api/customer-context")
    assert r.status_code == 200

    context = r.json()
    assert context["isLoggedIn"] is False
    assert context["customerGroup"] == "guest"
    assert context["customerGroupId"] is None
