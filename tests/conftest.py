"""
Pytest configuration and shared fixtures.

BigCommerce is replaced either by the mock BigCommerce app (mounted through
httpx.ASGITransport) or by RecordingClient, a scripted stand-in that records
every call.
"""

import httpx
import pytest

from mock_services import mock_bigcommerce
from pricelist_service.clients import BigCommerceClient


@pytest.fixture
def anyio_backend():
    # Nur asyncio, kein Trio
    return "asyncio"


def make_mock_client() -> BigCommerceClient:
    """BigCommerceClient whose requests are served by the mock BigCommerce app."""
    return BigCommerceClient(
        store_hash="mockhash",
        access_token="test-token",
        base_url="http://bigcommerce.test",
        transport=httpx.ASGITransport(app=mock_bigcommerce.app),
    )


@pytest.fixture
def mock_client_factory():
    return make_mock_client


class RecordingClient:
    """
    Scripted price list source.

    Args:
        assignments: Payload returned for the assignment lookup, or an exception to raise.
        pages: Mapping page number → payload (or exception) for record requests.
    """

    def __init__(self, assignments=None, pages=None):
        self.assignments = assignments if assignments is not None else []
        self.pages = pages or {}
        self.assignment_calls = []
        self.record_calls = []

    async def get_price_list_assignments(self, customer_group_id):
        self.assignment_calls.append(customer_group_id)
        if isinstance(self.assignments, Exception):
            raise self.assignments
        return self.assignments

    async def get_price_list_records(self, price_list_id, page=1, limit=250):
        self.record_calls.append((price_list_id, page, limit))
        payload = self.pages.get(page, [])
        if isinstance(payload, Exception):
            raise payload
        return payload


def records_page(records, current_page, total_pages):
    """Builds a v3 records envelope with pagination metadata."""
    return {
        "data": records,
        "meta": {"pagination": {"current_page": current_page, "total_pages": total_pages}},
    }
