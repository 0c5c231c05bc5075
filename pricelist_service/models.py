"""
models.py — Data Models for Price List Resolution

This module defines the data structures exchanged with BigCommerce and with the
storefront widget. Pydantic models validate every upstream payload at the
boundary, so the pricing logic only ever sees typed objects.

Models:
    - DiscountType: Pricing precedence policy selected by the caller.
    - PriceListRecord: A single price list override for a product or variant.
    - VariantKey / ProductKey: Typed lookup keys for price list records.
    - PriceListLookup: Per-request mapping of keys to price list records.
    - PriceListFetchResult: Lookup plus diagnostics returned by the fetcher.
    - Product / Variant: Catalog entities that receive calculated prices.
    - QuantityBreak, PricingQuote, CustomerContext, ProductListResponse: API responses.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class DiscountType(str, Enum):
    """
    Pricing precedence policy.

    - DEFAULT: variant price list → product price list → base price
    - SALE: catalog sale price wins, price lists are ignored
    - WHOLESALE / RETAIL / CUSTOM: own price list record only, then base price
    """
    DEFAULT = "default"
    SALE = "sale"
    WHOLESALE = "wholesale"
    RETAIL = "retail"
    CUSTOM = "custom"


@dataclass(frozen=True)
class VariantKey:
    """Lookup key of a variant-level price list record."""
    id: int

    def __post_init__(self):
        object.__setattr__(self, "id", int(self.id))

    def __str__(self):
        return str(self.id)


@dataclass(frozen=True)
class ProductKey:
    """Lookup key of a product-level price list record."""
    id: int

    def __post_init__(self):
        object.__setattr__(self, "id", int(self.id))

    def __str__(self):
        return f"product_{self.id}"


PriceListKey = Union[VariantKey, ProductKey]


class PriceListRecord(BaseModel):
    """
    A price override from a BigCommerce price list.

    Attributes:
        variant_id (Optional[int]): Variant the price applies to. Takes precedence over product_id.
        product_id (Optional[int]): Product the price applies to.
        price (float): Price list price.
        sale_price (Optional[float]): Price list sale price, if any.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    variant_id: Optional[int] = Field(None, validation_alias=AliasChoices("variant_id", "variantId"))
    product_id: Optional[int] = Field(None, validation_alias=AliasChoices("product_id", "productId"))
    price: float
    sale_price: Optional[float] = Field(None, validation_alias=AliasChoices("sale_price", "salePrice"))

    @property
    def key(self) -> Optional[PriceListKey]:
        # variant_id/product_id von 0 zählen wie "nicht gesetzt"
        if self.variant_id:
            return VariantKey(self.variant_id)
        if self.product_id:
            return ProductKey(self.product_id)
        return None


class PriceListLookup:
    """
    Mapping of VariantKey / ProductKey to PriceListRecord.

    Built fresh for every request by the price list fetcher and only read by
    the pricing resolver. Duplicate keys: the last record added wins.
    """

    def __init__(self, records: Optional[List[PriceListRecord]] = None):
        self._records: Dict[PriceListKey, PriceListRecord] = {}
        for record in records or []:
            self.add(record)

    def add(self, record: PriceListRecord) -> bool:
        """Stores the record under its key. Returns False if the record carries no id."""
        key = record.key
        if key is None:
            return False
        self._records[key] = record
        return True

    def for_variant(self, variant_id) -> Optional[PriceListRecord]:
        if variant_id is None:
            return None
        return self._records.get(VariantKey(variant_id))

    def for_product(self, product_id) -> Optional[PriceListRecord]:
        if product_id is None:
            return None
        return self._records.get(ProductKey(product_id))

    def __contains__(self, key) -> bool:
        return key in self._records

    def __iter__(self) -> Iterator[PriceListKey]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self):
        return f"PriceListLookup({len(self._records)} records)"


@dataclass
class PriceListFetchResult:
    """
    Outcome of a price list fetch.

    The fetcher never raises. If an upstream call failed, `error` carries the
    message and `lookup` holds whatever was collected before the failure.
    """
    lookup: PriceListLookup
    price_list_id: Optional[int] = None
    pages_fetched: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Assignment(BaseModel):
    """Binding between a customer group and a price list."""
    model_config = ConfigDict(extra="ignore")

    price_list_id: int
    customer_group_id: Optional[int] = None
    channel_id: Optional[int] = None


class Variant(BaseModel):
    """
    A product variant as returned by the BigCommerce catalog.

    Unknown upstream fields are kept so the widget receives the full variant.
    `price` and `sale_price` may be missing; the parent product's values apply then.
    """
    model_config = ConfigDict(extra="allow")

    id: int
    product_id: Optional[int] = None
    sku: Optional[str] = None
    price: Optional[float] = None
    sale_price: Optional[float] = None
    calculated_price: Optional[float] = None
    calculated_sale_price: Optional[float] = None


class Product(BaseModel):
    """
    A catalog product with its variants.

    calculated_price / calculated_sale_price are filled in by the pricing resolver.
    """
    model_config = ConfigDict(extra="allow")

    id: int
    name: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[float] = None
    sale_price: Optional[float] = None
    variants: List[Variant] = Field(default_factory=list)
    calculated_price: Optional[float] = None
    calculated_sale_price: Optional[float] = None


class QuantityBreak(BaseModel):
    """Unit price for an order quantity range (BigCommerce bulk pricing rule)."""
    min: int
    max: Optional[int] = None
    price: float


class PricingQuote(BaseModel):
    """Resolved pricing for a single product or variant."""
    productId: int
    variantId: Optional[int] = None
    customerGroupId: Optional[str] = None
    discountType: DiscountType = DiscountType.DEFAULT
    quantity: int = 1
    basePrice: Optional[float] = None
    salePrice: Optional[float] = None
    calculatedPrice: Optional[float] = None
    calculatedSalePrice: Optional[float] = None
    finalPrice: Optional[float] = None
    priceListApplied: bool = False
    quantityBreaks: List[QuantityBreak] = Field(default_factory=list)
    minQuantity: int = 1
    maxQuantity: Optional[int] = None
    currency: str = "USD"


class CustomerContext(BaseModel):
    """Customer information that drives pricing and visibility in the widget."""
    customerId: Optional[int] = None
    customerGroup: str = "guest"
    customerGroupId: Optional[int] = None
    customerTags: List[str] = Field(default_factory=list)
    isLoggedIn: bool = False
    isWholesale: bool = False
    email: Optional[str] = None
    name: Optional[str] = None


class Pagination(BaseModel):
    total: int = 0
    count: int = 0
    per_page: int
    current_page: int
    total_pages: int = 1


class ProductListResponse(BaseModel):
    """Product page returned to the storefront widget, with calculated prices applied."""
    products: List[Product]
    pagination: Pagination
    customerGroupId: Optional[str] = None
    discountType: DiscountType = DiscountType.DEFAULT
    priceListId: Optional[int] = None
