"""
pricelist.py — Price List Fetching for Customer Groups

Resolves the price list assigned to a customer group and loads its records
into a PriceListLookup. There is no caching: every call reads BigCommerce again.

Steps:
1. Read the price list assignments of the customer group
2. Take the first assigned price list
3. Page through its records (250 per page, at most 5 pages)
4. Key every record by variant id, or by product id for product-level records

Upstream failures never reach the caller. They are logged and reported in the
returned PriceListFetchResult, and pricing falls back to catalog prices.
"""

import logging

from pydantic import ValidationError

from .clients import PRICE_LIST_PAGE_SIZE
from .models import Assignment, PriceListFetchResult, PriceListLookup, PriceListRecord

MAX_PAGES = 5

log = logging.getLogger(__name__)


def normalize_response(payload) -> list:
    """
    Returns the list of items of a BigCommerce response.

    BigCommerce answers either with a bare list or with an envelope
    `{"data": [...], "meta": {...}}`. Anything else yields an empty list.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, list):
            return data
    return []


def has_more_pages(payload) -> bool:
    """True if the pagination metadata of the response reports further pages."""
    if not isinstance(payload, dict):
        return False
    pagination = (payload.get("meta") or {}).get("pagination")
    if not pagination:
        return False
    current_page = pagination.get("current_page")
    total_pages = pagination.get("total_pages")
    if current_page is None or total_pages is None:
        return False
    return current_page < total_pages


def _add_records(lookup: PriceListLookup, items: list, log_prefix: str) -> None:
    for item in items:
        try:
            record = PriceListRecord.model_validate(item)
        except ValidationError as e:
            log.warning(f"{log_prefix} Ungültiger Preislisten-Eintrag übersprungen: {e.error_count()} Fehler.")
            continue
        lookup.add(record)


async def fetch_price_list_lookup(customer_group_id, client) -> PriceListFetchResult:
    """
    Builds the price list lookup for a customer group.

    Args:
        customer_group_id (str): BigCommerce customer group id.
        client (BigCommerceClient): Client providing get_price_list_assignments()
            and get_price_list_records().

    Returns:
        PriceListFetchResult: The lookup (empty if the group has no price list or
        BigCommerce failed), the price list id used, the number of record pages
        fetched, and an error message if a call failed.

    Notes:
        - Only the first assignment is used if a group has several price lists.
        - Record pages are fetched one after another, never more than MAX_PAGES.
        - Records without variant_id and product_id are dropped.
    """
    result = PriceListFetchResult(lookup=PriceListLookup())
    if customer_group_id is None or str(customer_group_id).strip() == "":
        return result

    log_prefix = f"[Group: {customer_group_id}]"

    try:
        assignments_response = await client.get_price_list_assignments(customer_group_id)
        assignments = normalize_response(assignments_response)

        if not assignments:
            log.info(f"{log_prefix} Keine Preisliste zugewiesen.")
            return result

        assignment = Assignment.model_validate(assignments[0])
        result.price_list_id = assignment.price_list_id
        if len(assignments) > 1:
            log.info(f"{log_prefix} {len(assignments)} Preislisten zugewiesen, verwende {assignment.price_list_id}.")

        page = 1
        has_more = True
        while has_more and page <= MAX_PAGES:
            records_response = await client.get_price_list_records(
                assignment.price_list_id, page=page, limit=PRICE_LIST_PAGE_SIZE
            )
            result.pages_fetched += 1
            _add_records(result.lookup, normalize_response(records_response), log_prefix)

            has_more = has_more_pages(records_response)
            page += 1

        if has_more:
            log.warning(
                f"{log_prefix} Preisliste {assignment.price_list_id} hat mehr als {MAX_PAGES} Seiten. "
                f"Nur die ersten {MAX_PAGES * PRICE_LIST_PAGE_SIZE} Einträge werden verwendet."
            )

        log.info(
            f"{log_prefix} Preisliste {assignment.price_list_id} geladen: "
            f"{len(result.lookup)} Einträge aus {result.pages_fetched} Seite(n)."
        )

    except Exception as e:
        # Preise fallen auf Katalogpreise zurück, der Aufrufer wird nie blockiert
        log.error(f"{log_prefix} Preisliste konnte nicht geladen werden: {e}")
        result.error = str(e) or e.__class__.__name__

    return result
