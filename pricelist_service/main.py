"""
main.py — FastAPI Entry Point for the Pricing Service

This module provides the REST API used by the storefront product table widget.
It proxies the BigCommerce catalog and applies customer-group pricing server-side,
so price list data never has to be exposed to the browser.

Responsibilities:
    • List products with calculated prices for a customer group
    • Quote a single product/variant including quantity breaks
    • Resolve the customer context (group, login state) for the widget
    • Provide system health information
"""

import os
from typing import Optional

import httpx
from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .clients import BigCommerceClient
from .logging_config import get_logger, setup_logging
from .models import CustomerContext, DiscountType, PricingQuote, ProductListResponse
from .workflow import (ProductNotFoundError, ProductQuery, list_priced_products, quote_product_price,
                       resolve_customer_context)

CORS_ALLOW_ORIGINS = [o.strip() for o in os.environ.get("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]

# Initialization
# Configure logging and initialize FastAPI app
setup_logging()
log = get_logger(__name__)
app = FastAPI(title="Product Table Pricing Service", version=__version__)

# Widget läuft auf der Storefront-Domain, nicht auf unserer
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def on_startup():
    """
    FastAPI startup event handler.

    Creates the shared BigCommerce client. It keeps a connection pool to the
    BigCommerce API for the lifetime of the process.
    """
    log.info("Pricing-Service startet...")
    app.state.bigcommerce = BigCommerceClient()


@app.on_event("shutdown")
async def on_shutdown():
    """Closes the BigCommerce client."""
    client = getattr(app.state, "bigcommerce", None)
    if client is not None:
        await client.aclose()
    log.info("Pricing-Service beendet.")


def get_bigcommerce_client(request: Request) -> BigCommerceClient:
    """Dependency returning the shared BigCommerce client."""
    client = getattr(request.app.state, "bigcommerce", None)
    if client is None:
        log.error("BigCommerce-Client nicht initialisiert.")
        raise HTTPException(status_code=500, detail="BigCommerce connection not available")
    return client


def _upstream_error(context: str, e: Exception) -> HTTPException:
    log.error(f"{context}: BigCommerce-Anfrage fehlgeschlagen: {e}")
    return HTTPException(status_code=502, detail="BigCommerce request failed")


# API Endpoint: Widget → Produktliste
@app.get("/api/products", response_model=ProductListResponse)
async def get_products(
        response: Response,
        category: Optional[str] = None,
        search: Optional[str] = None,
        page: int = Query(1, ge=1),
        limit: int = Query(25, ge=1),
        sort: str = "name",
        customer_group_id: Optional[str] = Query(None, alias="customerGroupId"),
        discount_type: DiscountType = Query(DiscountType.DEFAULT, alias="discountType"),
        client: BigCommerceClient = Depends(get_bigcommerce_client),
):
    """
    Returns a page of products with calculated prices for the customer group.

    Args:
        category (str): BigCommerce category id filter.
        search (str): Keyword search.
        page (int): Page number, starting at 1.
        limit (int): Products per page, capped at 250.
        sort (str): One of name, price-asc, price-desc, newest, oldest, sku.
        customerGroupId (str): Customer group whose price list applies. Guests omit it.
        discountType (DiscountType): Pricing precedence policy.

    Raises:
        HTTPException(502): If the BigCommerce catalog request fails.
        HTTPException(500): For unexpected internal errors.
    """
    query = ProductQuery(
        category=category,
        search=search,
        page=page,
        limit=limit,
        sort=sort,
        customer_group_id=customer_group_id,
        discount_type=discount_type,
    )
    try:
        result = await list_priced_products(client, query)
    except httpx.HTTPError as e:
        raise _upstream_error("Produktliste", e)
    except Exception as e:
        log.critical(f"Unbekannter Fehler bei der Produktliste: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    response.headers["Cache-Control"] = "private, max-age=300"
    return result


# API Endpoint: Widget → Einzelpreis
@app.get("/api/pricing", response_model=PricingQuote)
async def get_pricing(
        response: Response,
        product_id: int = Query(..., alias="productId"),
        variant_id: Optional[int] = Query(None, alias="variantId"),
        customer_group_id: Optional[str] = Query(None, alias="customerGroupId"),
        discount_type: DiscountType = Query(DiscountType.DEFAULT, alias="discountType"),
        quantity: int = Query(1, ge=1),
        client: BigCommerceClient = Depends(get_bigcommerce_client),
):
    """
    Returns the resolved price of a product or variant, including quantity breaks.

    Raises:
        HTTPException(404): If the product or variant does not exist.
        HTTPException(502): If BigCommerce fails.
    """
    try:
        quote = await quote_product_price(
            client,
            product_id=product_id,
            variant_id=variant_id,
            customer_group_id=customer_group_id,
            discount_type=discount_type,
            quantity=quantity,
        )
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except httpx.HTTPError as e:
        raise _upstream_error(f"[Product: {product_id}]", e)
    except Exception as e:
        log.critical(f"[Product: {product_id}] Unbekannter Fehler bei der Preisermittlung: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    response.headers["Cache-Control"] = "private, max-age=120"
    return quote


# API Endpoint: Widget → Kundenkontext
@app.get("/api/customer-context", response_model=CustomerContext)
async def get_customer_context(
        response: Response,
        customer_id: Optional[str] = Query(None, alias="customerId"),
        client: BigCommerceClient = Depends(get_bigcommerce_client),
):
    """
    Returns customer group and login state. Guests receive the store's default group.
    """
    context = await resolve_customer_context(client, customer_id)
    response.headers["Cache-Control"] = "private, no-cache"
    return context


# Health Check Endpoint
@app.get("/health")
def health_check():
    """Liveness check for the container runtime."""
    return {"status": "ok"}
