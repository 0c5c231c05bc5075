"""
pricing.py — Price Resolution for Products and Variants

Applies price list records to catalog products. The resolver is a pure
function: it performs no I/O and always produces a price, falling back to the
catalog price when no price list record applies.

Precedence by discount type:
    - sale:                       catalog sale price (if it is a real discount) → base price
    - wholesale / retail / custom: own price list record → base price
    - default:                    variant record → product record → base price

Also contains the quantity break helpers for BigCommerce bulk pricing rules.
"""

from typing import Iterable, List, Optional, Tuple

from .models import DiscountType, PriceListLookup, PriceListRecord, Product, QuantityBreak, Variant

PRICE_LIST_DISCOUNT_TYPES = (DiscountType.WHOLESALE, DiscountType.RETAIL, DiscountType.CUSTOM)

Prices = Tuple[Optional[float], Optional[float]]


def _is_positive(value) -> bool:
    return value is not None and value > 0


def _sale_discount(price, sale_price) -> Optional[float]:
    """Returns sale_price if it is strictly below price, otherwise None."""
    if _is_positive(sale_price) and price is not None and sale_price < price:
        return sale_price
    return None


def _record_prices(record: PriceListRecord) -> Prices:
    return record.price, record.sale_price or None


def _product_prices(product: Product, record: Optional[PriceListRecord], discount_type: DiscountType) -> Prices:
    if discount_type == DiscountType.SALE:
        sale_price = _sale_discount(product.price, product.sale_price)
        if sale_price is not None:
            return sale_price, sale_price
    elif record is not None:
        return _record_prices(record)

    return product.price, product.sale_price or None


def _variant_base_prices(variant: Variant, product: Product) -> Prices:
    price = variant.price if _is_positive(variant.price) else product.price
    sale_price = variant.sale_price if _is_positive(variant.sale_price) else product.sale_price or None
    return price, sale_price


def _variant_prices(variant: Variant, product: Product, variant_record: Optional[PriceListRecord],
                    product_record: Optional[PriceListRecord], discount_type: DiscountType) -> Prices:
    if discount_type == DiscountType.SALE:
        sale_price = _sale_discount(variant.price, variant.sale_price)
        if sale_price is not None:
            return sale_price, sale_price
    elif discount_type in PRICE_LIST_DISCOUNT_TYPES:
        if variant_record is not None:
            return _record_prices(variant_record)
    elif discount_type == DiscountType.DEFAULT:
        if variant_record is not None:
            return _record_prices(variant_record)
        if product_record is not None:
            return _record_prices(product_record)

    return _variant_base_prices(variant, product)


def apply_pricing(product: Product, lookup: PriceListLookup,
                  discount_type: DiscountType = DiscountType.DEFAULT) -> Product:
    """
    Sets calculated_price and calculated_sale_price on a product and its variants.

    Args:
        product (Product): Catalog product. Updated in place.
        lookup (PriceListLookup): Price list records of the customer group (may be empty).
        discount_type (DiscountType): Precedence policy, 'default' if omitted.

    Returns:
        Product: The same product. Its `variants` list is replaced by new Variant objects.

    Notes:
        - A variant price of 0 or None falls back to the product price.
        - A sale price equal to the price is not a discount.
    """
    discount_type = DiscountType(discount_type)
    product_record = lookup.for_product(product.id)

    product.calculated_price, product.calculated_sale_price = _product_prices(
        product, product_record, discount_type
    )

    variants = []
    for variant in product.variants:
        price, sale_price = _variant_prices(
            variant, product, lookup.for_variant(variant.id), product_record, discount_type
        )
        variants.append(variant.model_copy(update={
            "calculated_price": price,
            "calculated_sale_price": sale_price,
        }))
    product.variants = variants

    return product


def apply_pricing_to_products(products: Iterable[Product], lookup: PriceListLookup,
                              discount_type: DiscountType = DiscountType.DEFAULT) -> List[Product]:
    """Applies pricing to every product with one shared lookup."""
    return [apply_pricing(product, lookup, discount_type) for product in products]


def applied_price_list_record(lookup: PriceListLookup, product_id, variant_id=None,
                              discount_type: DiscountType = DiscountType.DEFAULT) -> Optional[PriceListRecord]:
    """
    Returns the price list record apply_pricing uses for a product (or one of its
    variants), or None when the price comes from the catalog.
    """
    discount_type = DiscountType(discount_type)
    if discount_type == DiscountType.SALE:
        return None

    product_record = lookup.for_product(product_id)
    if variant_id is None:
        return product_record

    variant_record = lookup.for_variant(variant_id)
    if discount_type == DiscountType.DEFAULT:
        return variant_record or product_record
    return variant_record


def build_quantity_breaks(rules: list, base_price: float) -> List[QuantityBreak]:
    """
    Converts BigCommerce bulk pricing rules into quantity breaks.

    Rule types:
        - price:   amount is the unit price
        - percent: amount is a percentage off base_price
        - fixed:   amount is subtracted from base_price
    Unknown types keep base_price.
    """
    breaks = []
    for rule in rules:
        amount = rule.get("amount") or 0
        rule_type = rule.get("type")

        if rule_type == "price":
            price = amount
        elif rule_type == "percent":
            price = base_price * (1 - amount / 100)
        elif rule_type == "fixed":
            price = base_price - amount
        else:
            price = base_price

        breaks.append(QuantityBreak(
            min=rule.get("quantity_min") or 1,
            max=rule.get("quantity_max") or None,
            price=round(max(price, 0), 4),
        ))
    return breaks


def select_quantity_break_price(breaks: List[QuantityBreak], quantity: int, default: Optional[float]) -> Optional[float]:
    """Returns the price of the first break whose range contains quantity, else default."""
    if quantity <= 1:
        return default
    for quantity_break in breaks:
        if quantity >= quantity_break.min and (quantity_break.max is None or quantity <= quantity_break.max):
            return quantity_break.price
    return default
