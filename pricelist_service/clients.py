"""
This module provides the communication client for the BigCommerce REST API used by the pricing service:
- Price lists and price list assignments (v3)
- Catalog products, variants and bulk pricing rules (v3)
- Customers (v3), customer groups and store settings (v2)
The client encapsulates authentication headers, timeouts and HTTP error handling.
"""

import logging
import os

import httpx

# Store-Zugangsdaten (aus Env Vars)
BIGCOMMERCE_API_URL = os.environ.get("BIGCOMMERCE_API_URL", "https://api.bigcommerce.com")
BIGCOMMERCE_STORE_HASH = os.environ.get("BIGCOMMERCE_STORE_HASH", "")
BIGCOMMERCE_ACCESS_TOKEN = os.environ.get("BIGCOMMERCE_ACCESS_TOKEN", "")

PRICE_LIST_PAGE_SIZE = 250

log = logging.getLogger(__name__)


class BigCommerceClient:
    """
    Async client for the BigCommerce REST API.

    Every call raises for 4xx/5xx responses and returns the decoded JSON body
    unchanged. Depending on the endpoint this is either a bare list or an
    envelope `{"data": ..., "meta": ...}`; callers normalize the shape.
    """

    def __init__(self, store_hash: str = None, access_token: str = None,
                 base_url: str = None, transport: httpx.AsyncBaseTransport = None):
        """
        Initializes the HTTP client with store credentials and timeout configuration.

        Args:
            store_hash (str): BigCommerce store hash. Defaults to BIGCOMMERCE_STORE_HASH.
            access_token (str): API account access token. Defaults to BIGCOMMERCE_ACCESS_TOKEN.
            base_url (str): API host. Defaults to BIGCOMMERCE_API_URL.
            transport (httpx.AsyncBaseTransport): Optional transport, e.g. an ASGI app in tests.
        """
        store_hash = store_hash if store_hash is not None else BIGCOMMERCE_STORE_HASH
        access_token = access_token if access_token is not None else BIGCOMMERCE_ACCESS_TOKEN
        base_url = (base_url or BIGCOMMERCE_API_URL).rstrip("/")

        timeout_config = httpx.Timeout(5.0, read=8.0)
        self.client = httpx.AsyncClient(
            base_url=f"{base_url}/stores/{store_hash}",
            timeout=timeout_config,
            headers={
                "X-Auth-Token": access_token,
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self):
        """Closes the HTTP client session."""
        await self.client.aclose()

    async def _get(self, path: str, params: dict = None):
        """
        Performs a GET request and returns the JSON body.
        Raises:
            httpx.TimeoutException: If BigCommerce does not respond within the timeout.
            httpx.HTTPStatusError: If BigCommerce returns an error status (4xx or 5xx).
        """
        try:
            response = await self.client.get(path, params=params)
            response.raise_for_status()  # Löst HTTPStatusError bei 4xx/5xx aus
            return response.json()
        except httpx.TimeoutException:
            log.error(f"BigCommerce Timeout bei GET {path}.")
            raise
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                log.warning(f"BigCommerce: Ressource nicht gefunden (GET {path}).")
            else:
                log.error(f"HTTP-Fehler bei BigCommerce (GET {path}): {e}")
            raise

    async def get_price_list_assignments(self, customer_group_id: str):
        """
        Lists the price list assignments of a customer group.
        Returns:
            list | dict: Assignments, either bare or wrapped in a `data` envelope.
        """
        return await self._get(
            "/v3/pricelists/assignments",
            params={"customer_group_id:in": str(customer_group_id)},
        )

    async def get_price_list_records(self, price_list_id: int, page: int = 1,
                                     limit: int = PRICE_LIST_PAGE_SIZE):
        """
        Fetches one page of records of a price list.
        Returns:
            list | dict: Records, usually `{"data": [...], "meta": {"pagination": {...}}}`.
        """
        return await self._get(
            f"/v3/pricelists/{price_list_id}/records",
            params={"page": page, "limit": limit},
        )

    async def get_products(self, params: dict):
        """Fetches a page of catalog products. `params` are passed to BigCommerce unchanged."""
        return await self._get("/v3/catalog/products", params=params)

    async def get_product(self, product_id: int, include: str = None):
        """Fetches a single catalog product, optionally with sub-resources (e.g. 'variants')."""
        params = {"include": include} if include else None
        return await self._get(f"/v3/catalog/products/{product_id}", params=params)

    async def get_bulk_pricing_rules(self, product_id: int):
        """Fetches the quantity-based bulk pricing rules of a product."""
        return await self._get(f"/v3/catalog/products/{product_id}/bulk-pricing-rules")

    async def get_customer(self, customer_id: str):
        """Looks up a customer by id. Returns a list (possibly empty) or a `data` envelope."""
        return await self._get("/v3/customers", params={"id:in": str(customer_id)})

    async def get_customer_group(self, customer_group_id: int):
        """Fetches a customer group (v2 API, no envelope)."""
        return await self._get(f"/v2/customer_groups/{customer_group_id}")

    async def get_store_info(self):
        """Fetches the store settings (v2 API), including default_customer_group_id."""
        return await self._get("/v2/store")
