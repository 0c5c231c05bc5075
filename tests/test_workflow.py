"""
Tests for the workflow layer with scripted BigCommerce responses.
"""

import pytest

from conftest import RecordingClient
from pricelist_service.models import DiscountType, PriceListLookup, PriceListRecord
from pricelist_service.pricing import applied_price_list_record
from pricelist_service.workflow import ProductQuery, list_priced_products


class CatalogClient(RecordingClient):
    """RecordingClient that also serves one fixed catalog page."""

    def __init__(self, products_payload, **kwargs):
        super().__init__(**kwargs)
        self.products_payload = products_payload
        self.product_params = []

    async def get_products(self, params):
        self.product_params.append(params)
        return self.products_payload


@pytest.mark.anyio
async def test_null_pagination_meta_falls_back_to_request_values():
    client = CatalogClient({"data": [{"id": 1, "price": 10.0}], "meta": {"pagination": None}})

    result = await list_priced_products(client, ProductQuery(page=3, limit=10))

    assert result.pagination.per_page == 10
    assert result.pagination.current_page == 3
    assert result.pagination.total == 1
    assert result.pagination.total_pages == 1
    assert result.products[0].calculated_price == 10.0


@pytest.mark.anyio
async def test_bare_product_list_without_meta():
    client = CatalogClient([{"id": 1, "price": 10.0}, {"id": 2, "price": 12.0}])

    result = await list_priced_products(client, ProductQuery())

    assert result.pagination.count == 2
    assert [p.calculated_price for p in result.products] == [10.0, 12.0]


def test_query_maps_sort_and_caps_limit():
    params = ProductQuery(limit=1000, sort="price-desc", category="23").to_bigcommerce_params()

    assert params["limit"] == 250
    assert params["sort"] == "price"
    assert params["direction"] == "desc"
    assert params["categories:in"] == "23"


@pytest.mark.parametrize("discount_type, variant_id, expected", [
    (DiscountType.DEFAULT, None, 40.0),
    (DiscountType.DEFAULT, 1001, 35.0),
    (DiscountType.DEFAULT, 1003, 40.0),
    (DiscountType.WHOLESALE, None, 40.0),
    (DiscountType.WHOLESALE, 1001, 35.0),
    (DiscountType.WHOLESALE, 1003, None),
    (DiscountType.SALE, 1001, None),
    (DiscountType.SALE, None, None),
])
def test_applied_price_list_record(discount_type, variant_id, expected):
    lookup = PriceListLookup([
        PriceListRecord(product_id=111, price=40.0),
        PriceListRecord(variant_id=1001, product_id=111, price=35.0),
    ])

    record = applied_price_list_record(lookup, 111, variant_id, discount_type)

    assert (record.price if record else None) == expected


def test_setup_logging_quiets_http_client_loggers(tmp_path):
    import logging
    from pricelist_service.logging_config import setup_logging

    setup_logging(level="debug", log_file=str(tmp_path / "service.log"))

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING
