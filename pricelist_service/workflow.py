"""
workflow.py — Request Orchestration for the Storefront Widget

This module combines the BigCommerce client, the price list fetcher and the
pricing resolver into the operations behind the HTTP routes.

Workflows:
1. list_priced_products: catalog page → price list lookup → calculated prices
2. quote_product_price: single product/variant → price list → quantity breaks
3. resolve_customer_context: customer / guest → customer group
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from pydantic import ValidationError

from .models import CustomerContext, DiscountType, Pagination, PricingQuote, Product, ProductListResponse
from .pricelist import fetch_price_list_lookup, normalize_response
from .pricing import (applied_price_list_record, apply_pricing, apply_pricing_to_products, build_quantity_breaks,
                      select_quantity_break_price)

MAX_PRODUCTS_PER_PAGE = 250
WHOLESALE_GROUP_MARKERS = ("wholesale", "b2b")

# Storefront-Sortierung → BigCommerce sort/direction
SORT_OPTIONS = {
    "name": {"sort": "name"},
    "price-asc": {"sort": "price", "direction": "asc"},
    "price-desc": {"sort": "price", "direction": "desc"},
    "newest": {"sort": "date_created", "direction": "desc"},
    "oldest": {"sort": "date_created", "direction": "asc"},
    "sku": {"sort": "sku"},
}

log = logging.getLogger(__name__)


class ProductNotFoundError(LookupError):
    """Raised when BigCommerce does not know the requested product or variant."""


@dataclass
class ProductQuery:
    """Filter, paging and pricing options of a product listing request."""
    category: Optional[str] = None
    search: Optional[str] = None
    page: int = 1
    limit: int = 25
    sort: str = "name"
    customer_group_id: Optional[str] = None
    discount_type: DiscountType = DiscountType.DEFAULT

    def to_bigcommerce_params(self) -> dict:
        params = {
            "limit": min(max(self.limit, 1), MAX_PRODUCTS_PER_PAGE),
            "page": max(self.page, 1),
            "include": "variants,images,custom_fields",
            "is_visible": "true",
        }
        if self.category:
            params["categories:in"] = self.category
        if self.search:
            params["keyword"] = self.search
        params.update(SORT_OPTIONS.get(self.sort, SORT_OPTIONS["name"]))
        return params


def _unwrap(payload):
    """Returns the object inside a `data` envelope, or the payload itself."""
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        return payload["data"]
    return payload


async def list_priced_products(client, query: ProductQuery) -> ProductListResponse:
    """
    Fetches a product page from BigCommerce and applies customer group pricing.

    The price list is loaded once per request and shared by all products.

    Args:
        client (BigCommerceClient): Client for the store.
        query (ProductQuery): Filters, paging and pricing options.

    Returns:
        ProductListResponse: Products with calculated prices and pagination info.

    Raises:
        httpx.HTTPError: If the catalog request fails. Price list failures do not raise.
    """
    params = query.to_bigcommerce_params()
    log_prefix = f"[Group: {query.customer_group_id or 'guest'}]"
    log.info(f"{log_prefix} Lade Produkte: {params}")

    response = await client.get_products(params)
    products = [Product.model_validate(item) for item in normalize_response(response)]

    price_list = await fetch_price_list_lookup(query.customer_group_id, client)
    if not price_list.ok:
        log.warning(f"{log_prefix} Katalogpreise werden verwendet ({price_list.error}).")

    products = apply_pricing_to_products(products, price_list.lookup, query.discount_type)

    meta = ((response.get("meta") or {}).get("pagination") or {}) if isinstance(response, dict) else {}
    pagination = Pagination(
        total=meta.get("total", len(products)),
        count=meta.get("count", len(products)),
        per_page=meta.get("per_page", params["limit"]),
        current_page=meta.get("current_page", params["page"]),
        total_pages=meta.get("total_pages", 1),
    )

    log.info(f"{log_prefix} {len(products)} Produkte bepreist (Seite {pagination.current_page}/{pagination.total_pages}).")

    return ProductListResponse(
        products=products,
        pagination=pagination,
        customerGroupId=query.customer_group_id,
        discountType=query.discount_type,
        priceListId=price_list.price_list_id,
    )


async def quote_product_price(client, product_id: int, variant_id: Optional[int] = None,
                              customer_group_id: Optional[str] = None,
                              discount_type: DiscountType = DiscountType.DEFAULT,
                              quantity: int = 1) -> PricingQuote:
    """
    Resolves the price of one product (or one of its variants) for a customer group.

    The calculated price comes from the pricing resolver. Bulk pricing rules are
    then applied on top of it for the requested quantity.

    Raises:
        ProductNotFoundError: If the product or the variant does not exist.
        httpx.HTTPError: For other catalog request failures.
    """
    log_prefix = f"[Product: {product_id}]"

    try:
        response = await client.get_product(product_id, include="variants")
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            raise ProductNotFoundError(f"Product {product_id} not found") from e
        raise

    try:
        product = Product.model_validate(_unwrap(response))
    except ValidationError as e:
        raise ProductNotFoundError(f"Product {product_id} not found") from e

    price_list = await fetch_price_list_lookup(customer_group_id, client)
    product = apply_pricing(product, price_list.lookup, discount_type)

    target = product
    if variant_id is not None:
        target = next((v for v in product.variants if v.id == variant_id), None)
        if target is None:
            raise ProductNotFoundError(f"Variant {variant_id} of product {product_id} not found")

    base_price = target.price if target.price else product.price
    sale_price = target.sale_price if target.sale_price else product.sale_price

    price_list_applied = applied_price_list_record(
        price_list.lookup, product_id, variant_id, discount_type
    ) is not None

    quantity_breaks = []
    try:
        rules = normalize_response(await client.get_bulk_pricing_rules(product_id))
        quantity_breaks = build_quantity_breaks(rules, target.calculated_price or 0)
    except httpx.HTTPError as e:
        log.debug(f"{log_prefix} Staffelpreise nicht verfügbar: {e}")

    final_price = select_quantity_break_price(quantity_breaks, quantity, target.calculated_price)

    quote = PricingQuote(
        productId=product.id,
        variantId=variant_id,
        customerGroupId=customer_group_id,
        discountType=discount_type,
        quantity=quantity,
        basePrice=base_price,
        salePrice=sale_price,
        calculatedPrice=target.calculated_price,
        calculatedSalePrice=target.calculated_sale_price,
        finalPrice=final_price,
        priceListApplied=price_list_applied,
        quantityBreaks=quantity_breaks,
        minQuantity=getattr(product, "order_quantity_minimum", None) or 1,
        maxQuantity=getattr(product, "order_quantity_maximum", None) or None,
    )
    log.info(f"{log_prefix} Preis ermittelt: final={final_price}, Menge={quantity}.")
    return quote


def _is_wholesale_group(group_name: str) -> bool:
    return any(marker in group_name for marker in WHOLESALE_GROUP_MARKERS)


async def _apply_group_details(client, context: CustomerContext, customer_group_id: int) -> None:
    try:
        group = await client.get_customer_group(customer_group_id)
    except httpx.HTTPError as e:
        log.warning(f"[Group: {customer_group_id}] Kundengruppe konnte nicht geladen werden: {e}")
        return

    if isinstance(group, dict) and group.get("name"):
        group_name = str(group["name"]).lower()
        context.customerGroup = group_name
        context.isWholesale = _is_wholesale_group(group_name)


async def resolve_customer_context(client, customer_id: Optional[str] = None) -> CustomerContext:
    """
    Determines customer group and login state for the widget.

    Guests get the store's default customer group. For logged-in customers the
    customer record and its group are read. Upstream failures leave the guest
    context in place.
    """
    context = CustomerContext()

    if not customer_id:
        try:
            store = await client.get_store_info()
        except httpx.HTTPError as e:
            log.warning(f"Store-Info für Gastgruppe nicht verfügbar: {e}")
            return context

        default_group_id = store.get("default_customer_group_id") if isinstance(store, dict) else None
        if default_group_id:
            context.customerGroupId = default_group_id
            await _apply_group_details(client, context, default_group_id)
        return context

    log_prefix = f"[Customer: {customer_id}]"
    try:
        customers = normalize_response(await client.get_customer(customer_id))
    except httpx.HTTPError as e:
        log.warning(f"{log_prefix} Kundendaten konnten nicht geladen werden: {e}")
        return context

    if not customers:
        log.info(f"{log_prefix} Kunde nicht gefunden, verwende Gastkontext.")
        return context

    customer = customers[0]
    group_id = customer.get("customer_group_id") or None
    name = f"{customer.get('first_name') or ''} {customer.get('last_name') or ''}".strip()
    context = CustomerContext(
        customerId=customer.get("id"),
        customerGroup="retail" if group_id else "guest",
        customerGroupId=group_id,
        customerTags=customer.get("tags") or [],
        isLoggedIn=True,
        isWholesale=bool(group_id),
        email=customer.get("email"),
        name=name or None,
    )
    if group_id:
        await _apply_group_details(client, context, group_id)

    log.info(f"{log_prefix} Kundenkontext: Gruppe={context.customerGroup}, Großhandel={context.isWholesale}.")
    return context
