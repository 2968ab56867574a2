"""
Shopify API response parsers.

These turn raw Admin GraphQL nodes and public listing entries into the
compact ProductRecord shape. Optional fields that are missing or malformed
are omitted rather than failing the whole record, and a record that still
cannot be built is skipped rather than failing the whole page.
"""

from typing import Any, Callable, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from .models import ProductRecord, ShopifyConfig


def _optional_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        return str(value).strip() or None
    return None


def _clamp_stock(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return max(0, int(value))
    except (TypeError, ValueError, OverflowError):
        return None


def _format_money(money: Any) -> Optional[str]:
    if not isinstance(money, dict):
        return None
    amount = _optional_text(money.get("amount"))
    if amount is None:
        return None
    currency = _optional_text(money.get("currencyCode"))
    return f"{amount} {currency}" if currency else amount


def _first_dict(items: Any) -> Dict[str, Any]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


def parse_admin_product(node: Dict[str, Any], config: ShopifyConfig) -> Optional[ProductRecord]:
    """Parse a product node from the Admin GraphQL API."""
    handle = _optional_text(node.get("handle"))
    title = node.get("title")
    if not handle or not title:
        return None

    price_range = node.get("priceRange") or {}
    featured_image = node.get("featuredImage") or {}

    return ProductRecord(
        name=title,
        link=config.product_link(handle),
        stock=_clamp_stock(node.get("totalInventory")),
        price=_format_money(price_range.get("minVariantPrice") if isinstance(price_range, dict) else None),
        image=_optional_text(featured_image.get("url")) if isinstance(featured_image, dict) else None,
        type=_optional_text(node.get("productType")),
    )


def parse_listing_product(product: Dict[str, Any], config: ShopifyConfig) -> Optional[ProductRecord]:
    """Parse a product from the public products.json listing."""
    handle = _optional_text(product.get("handle"))
    title = product.get("title")
    if not handle or not title:
        return None

    variants = [v for v in product.get("variants") or [] if isinstance(v, dict)]

    stock = None
    quantities = [_clamp_stock(v.get("inventory_quantity")) for v in variants]
    quantities = [q for q in quantities if q is not None]
    if quantities:
        stock = sum(quantities)

    return ProductRecord(
        name=title,
        link=config.product_link(handle),
        stock=stock,
        price=_optional_text(_first_dict(variants).get("price")),
        image=_optional_text(_first_dict(product.get("images")).get("src")),
        type=_optional_text(product.get("product_type")),
    )


def _parse_each(items: List[Any], parse: Callable[[Dict[str, Any], ShopifyConfig], Optional[ProductRecord]],
                config: ShopifyConfig) -> List[ProductRecord]:
    records = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning(f"Skipping catalog entry that is not an object: {item!r}")
            continue
        try:
            record = parse(item, config)
        except PydanticValidationError as e:
            logger.warning(f"Skipping malformed product {item.get('handle')!r}: {e.error_count()} invalid fields")
            continue
        if record:
            records.append(record)
    return records


def parse_admin_products_response(response: Dict[str, Any], config: ShopifyConfig) -> List[ProductRecord]:
    """Parse the products connection of an Admin GraphQL response."""
    edges = ((response.get("data") or {}).get("products") or {}).get("edges") or []
    nodes = [(edge or {}).get("node") if isinstance(edge, dict) else edge for edge in edges]
    return _parse_each(nodes, parse_admin_product, config)


def parse_listing_response(response: Dict[str, Any], config: ShopifyConfig) -> List[ProductRecord]:
    """Parse every product of a public listing page."""
    return _parse_each(response.get("products") or [], parse_listing_product, config)


def matches_keyword(record: ProductRecord, keyword: str) -> bool:
    """Case-insensitive substring match against title and product type."""
    needle = keyword.strip().lower()
    if not needle:
        return True
    haystacks = [record.name, record.type or ""]
    return any(needle in h.lower() for h in haystacks)
