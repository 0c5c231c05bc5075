"""
mock_bigcommerce.py — Mock Implementation of the BigCommerce REST API

This module provides a simulated BigCommerce store for local development and tests.
It exposes a FastAPI application that serves the v2/v3 endpoints used by the
pricing service from in-memory data, in the response shapes BigCommerce uses.

Simulation Scenarios:
    • Customer group 2 ("Wholesale") → price list 10 with product and variant records
    • Customer group 3 ("B2B Partners") → price list 20 with 10 pages of records
    • Customer group 4 ("Retail") → no price list assigned
    • Customer group 99 → assignment lookup fails with HTTP 500
    • Product 404 → not found
    • Product 114 → bulk pricing rules fail with HTTP 500
    • Customer 500 → customer lookup fails with HTTP 500
    • Customer 9 (group 98) → customer group lookup fails with HTTP 500
    • STORE_AVAILABLE = False → store settings fail with HTTP 500

Endpoints:
    GET /stores/{store_hash}/v3/pricelists/assignments
    GET /stores/{store_hash}/v3/pricelists/{price_list_id}/records
    GET /stores/{store_hash}/v3/catalog/products
    GET /stores/{store_hash}/v3/catalog/products/{product_id}
    GET /stores/{store_hash}/v3/catalog/products/{product_id}/bulk-pricing-rules
    GET /stores/{store_hash}/v3/customers
    GET /stores/{store_hash}/v2/customer_groups/{customer_group_id}
    GET /stores/{store_hash}/v2/store

Port:
    Default: 8002 (HTTP)
"""

import copy
import logging
import math
from typing import Optional

from fastapi import FastAPI, HTTPException, Query

app = FastAPI(title="Mock BigCommerce API")
logging.basicConfig(level=logging.INFO)

FAILING_CUSTOMER_GROUP = "99"
FAILING_GROUP_DETAILS = 98
FAILING_CUSTOMER = "500"
FAILING_BULK_PRICING_PRODUCT = 114
STORE_AVAILABLE = True
LARGE_PRICE_LIST_ID = 20
LARGE_PRICE_LIST_PAGES = 10

STORE = {"id": "mock-store", "name": "Mock Store", "default_customer_group_id": 4, "currency": "USD"}

CUSTOMER_GROUPS = {
    2: {"id": 2, "name": "Wholesale"},
    3: {"id": 3, "name": "B2B Partners"},
    4: {"id": 4, "name": "Retail"},
}

CUSTOMERS = {
    7: {"id": 7, "email": "buyer@example.com", "first_name": "Erika", "last_name": "Muster", "customer_group_id": 2},
    8: {"id": 8, "email": "shopper@example.com", "first_name": "Max", "last_name": "", "customer_group_id": 0},
    9: {"id": 9, "email": "partner@example.com", "first_name": "Jan", "last_name": "Roth", "customer_group_id": FAILING_GROUP_DETAILS},
}

ASSIGNMENTS = [
    {"id": 1, "price_list_id": 10, "customer_group_id": 2, "channel_id": 1},
    {"id": 2, "price_list_id": LARGE_PRICE_LIST_ID, "customer_group_id": 3, "channel_id": 1},
    {"id": 3, "price_list_id": 10, "customer_group_id": 3, "channel_id": 1},
]

PRICE_LIST_RECORDS = {
    10: [
        {"price_list_id": 10, "product_id": 111, "price": 40.0, "sale_price": None, "currency": "usd"},
        {"price_list_id": 10, "variant_id": 1001, "product_id": 111, "price": 35.0, "sale_price": 30.0, "currency": "usd"},
        {"price_list_id": 10, "variant_id": 1002, "product_id": 112, "price": 18.0, "sale_price": 0, "currency": "usd"},
        {"price_list_id": 10, "price": 1.0, "currency": "usd"},
    ],
    LARGE_PRICE_LIST_ID: [
        {"price_list_id": LARGE_PRICE_LIST_ID, "variant_id": 50000 + i, "price": 5.0, "currency": "usd"}
        for i in range(LARGE_PRICE_LIST_PAGES * 250)
    ],
}

PRODUCTS = {
    111: {
        "id": 111, "name": "Arbeitshandschuh", "sku": "GLV-1", "price": 50.0, "sale_price": 45.0,
        "categories": [23], "is_visible": True, "order_quantity_minimum": 1, "order_quantity_maximum": 0,
        "variants": [
            {"id": 1001, "product_id": 111, "sku": "GLV-1-M", "price": 50.0, "sale_price": None},
            {"id": 1003, "product_id": 111, "sku": "GLV-1-L", "price": 0, "sale_price": None},
        ],
    },
    112: {
        "id": 112, "name": "Schutzbrille", "sku": "GGL-1", "price": 20.0, "sale_price": 0,
        "categories": [23], "is_visible": True, "order_quantity_minimum": 2, "order_quantity_maximum": 100,
        "variants": [
            {"id": 1002, "product_id": 112, "sku": "GGL-1-STD", "price": None, "sale_price": None},
        ],
    },
    113: {
        "id": 113, "name": "Gehörschutz", "sku": "EAR-1", "price": 10.0, "sale_price": 10.0,
        "categories": [42], "is_visible": True, "variants": [],
    },
    114: {
        "id": 114, "name": "Sicherheitsschuh", "sku": "SHO-1", "price": 80.0, "sale_price": 0,
        "categories": [77], "is_visible": True, "variants": [],
    },
}

BULK_PRICING_RULES = {
    111: [
        {"id": 1, "quantity_min": 10, "quantity_max": 49, "type": "percent", "amount": 10},
        {"id": 2, "quantity_min": 50, "quantity_max": 0, "type": "price", "amount": 30},
    ],
}


def _page(items: list, page: int, limit: int) -> dict:
    """Wraps a slice of items in the BigCommerce v3 envelope with pagination metadata."""
    total = len(items)
    total_pages = max(math.ceil(total / limit), 1)
    start = (page - 1) * limit
    data = items[start:start + limit]
    return {
        "data": data,
        "meta": {
            "pagination": {
                "total": total,
                "count": len(data),
                "per_page": limit,
                "current_page": page,
                "total_pages": total_pages,
            }
        },
    }


@app.get("/stores/{store_hash}/v3/pricelists/assignments")
def get_assignments(store_hash: str, customer_group_id: Optional[str] = Query(None, alias="customer_group_id:in")):
    """
    Lists price list assignments, filtered by customer group.

    Raises:
        HTTPException(500): For the failing customer group scenario.
    """
    logging.info(f"[BC] Preislisten-Zuweisungen für Gruppe {customer_group_id}")
    if customer_group_id == FAILING_CUSTOMER_GROUP:
        logging.error(f"[BC] Simuliere Serverfehler für Gruppe {customer_group_id}.")
        raise HTTPException(status_code=500, detail={"title": "Internal Server Error"})

    assignments = ASSIGNMENTS
    if customer_group_id:
        group_ids = {int(g) for g in customer_group_id.split(",") if g.strip().isdigit()}
        assignments = [a for a in ASSIGNMENTS if a["customer_group_id"] in group_ids]
    return _page(assignments, 1, 250)


@app.get("/stores/{store_hash}/v3/pricelists/{price_list_id}/records")
def get_price_list_records(store_hash: str, price_list_id: int, page: int = 1, limit: int = 50):
    if price_list_id not in PRICE_LIST_RECORDS:
        raise HTTPException(status_code=404, detail={"title": "Price list not found"})
    logging.info(f"[BC] Preisliste {price_list_id}, Seite {page} (limit {limit})")
    return _page(PRICE_LIST_RECORDS[price_list_id], page, limit)


def _product_view(product: dict, include: Optional[str]) -> dict:
    view = copy.deepcopy(product)
    if "variants" not in (include or "").split(","):
        view.pop("variants", None)
    return view


@app.get("/stores/{store_hash}/v3/catalog/products")
def get_products(
        store_hash: str,
        page: int = 1,
        limit: int = 50,
        include: Optional[str] = None,
        keyword: Optional[str] = None,
        categories: Optional[str] = Query(None, alias="categories:in"),
        sort: str = "id",
        direction: str = "asc",
):
    products = list(PRODUCTS.values())
    if keyword:
        products = [p for p in products if keyword.lower() in p["name"].lower()]
    if categories:
        category_ids = {int(c) for c in categories.split(",") if c.strip().isdigit()}
        products = [p for p in products if category_ids.intersection(p.get("categories", []))]
    if sort in ("name", "price", "sku", "id"):
        products.sort(key=lambda p: p.get(sort) or 0, reverse=direction == "desc")

    return _page([_product_view(p, include) for p in products], page, limit)


@app.get("/stores/{store_hash}/v3/catalog/products/{product_id}")
def get_product(store_hash: str, product_id: int, include: Optional[str] = None):
    if product_id not in PRODUCTS:
        raise HTTPException(status_code=404, detail={"title": "The requested product was not found."})
    return {"data": _product_view(PRODUCTS[product_id], include), "meta": {}}


@app.get("/stores/{store_hash}/v3/catalog/products/{product_id}/bulk-pricing-rules")
def get_bulk_pricing_rules(store_hash: str, product_id: int):
    if product_id not in PRODUCTS:
        raise HTTPException(status_code=404, detail={"title": "The requested product was not found."})
    if product_id == FAILING_BULK_PRICING_PRODUCT:
        logging.error(f"[BC] Simuliere Serverfehler für Staffelpreise von {product_id}.")
        raise HTTPException(status_code=500, detail={"title": "Internal Server Error"})
    return _page(BULK_PRICING_RULES.get(product_id, []), 1, 250)


@app.get("/stores/{store_hash}/v3/customers")
def get_customers(store_hash: str, customer_ids: Optional[str] = Query(None, alias="id:in")):
    if customer_ids == FAILING_CUSTOMER:
        raise HTTPException(status_code=500, detail={"title": "Internal Server Error"})
    ids = {int(c) for c in (customer_ids or "").split(",") if c.strip().isdigit()}
    return _page([c for cid, c in CUSTOMERS.items() if cid in ids], 1, 50)


@app.get("/stores/{store_hash}/v2/customer_groups/{customer_group_id}")
def get_customer_group(store_hash: str, customer_group_id: int):
    if customer_group_id == FAILING_GROUP_DETAILS:
        raise HTTPException(status_code=500, detail=[{"status": 500, "message": "Internal Server Error"}])
    if customer_group_id not in CUSTOMER_GROUPS:
        raise HTTPException(status_code=404, detail=[{"status": 404, "message": "The requested resource was not found."}])
    return CUSTOMER_GROUPS[customer_group_id]


@app.get("/stores/{store_hash}/v2/store")
def get_store(store_hash: str):
    if not STORE_AVAILABLE:
        raise HTTPException(status_code=500, detail=[{"status": 500, "message": "Internal Server Error"}])
    return STORE


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8002)
