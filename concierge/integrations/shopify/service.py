"""
Catalog lookups on top of the Shopify client.

The service never raises on upstream trouble: a failed lookup is logged and
reported as an empty product list so the conversation can still continue.
"""

from typing import List, Optional

from loguru import logger

from concierge.core.config import Settings
from concierge.utils.exceptions import ConfigurationError
from .client import ShopifyClient, MAX_LISTING_PAGE_SIZE
from .models import ProductRecord, ShopifyConfig, ShopifyError
from .graphql_queries import build_search_filter
from .parsers import parse_admin_products_response, parse_listing_response, matches_keyword

CATALOG_SOURCES = ("admin", "storefront")


class CatalogService:
    """Keyword product search with best-effort fallback."""

    def __init__(self,
                 config: ShopifyConfig,
                 source: str = "admin",
                 allow_fallback: bool = True,
                 max_results: int = 5,
                 page_size: int = MAX_LISTING_PAGE_SIZE,
                 best_seller_sort_key: Optional[str] = "INVENTORY_TOTAL",
                 client: Optional[ShopifyClient] = None):
        if source not in CATALOG_SOURCES:
            raise ConfigurationError(f"CATALOG_SOURCE must be one of {CATALOG_SOURCES}, got '{source}'")
        if source == "admin" and not config.access_token:
            raise ConfigurationError("SHOPIFY_ACCESS_TOKEN is required for the admin catalog source",
                                     missing=["SHOPIFY_ACCESS_TOKEN"])
        if max_results < 1:
            raise ConfigurationError("CATALOG_MAX_RESULTS must be at least 1")

        self.config = config
        self.source = source
        self.allow_fallback = allow_fallback
        self.max_results = max_results
        self.page_size = min(page_size, MAX_LISTING_PAGE_SIZE)
        self.best_seller_sort_key = best_seller_sort_key
        self.client = client or ShopifyClient(config)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CatalogService":
        if not settings.SHOPIFY_STORE_URL:
            raise ConfigurationError("SHOPIFY_STORE_URL is required", missing=["SHOPIFY_STORE_URL"])
        config = ShopifyConfig(
            store_domain=settings.SHOPIFY_STORE_URL,
            access_token=settings.SHOPIFY_ACCESS_TOKEN or None,
            api_version=settings.SHOPIFY_API_VERSION,
            timeout=settings.SHOPIFY_TIMEOUT,
        )
        return cls(
            config,
            source=settings.CATALOG_SOURCE,
            allow_fallback=settings.CATALOG_ALLOW_FALLBACK,
            max_results=settings.CATALOG_MAX_RESULTS,
            page_size=settings.CATALOG_PAGE_SIZE,
            best_seller_sort_key=settings.CATALOG_BEST_SELLER_SORT_KEY or None,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the underlying client."""
        await self.client.close()

    async def search(self, keyword: Optional[str] = None) -> List[ProductRecord]:
        """
        Search the catalog.

        Args:
            keyword: Free-text filter; empty or None means best-sellers.

        Returns:
            At most max_results records, possibly an unfiltered alternative
            list when the keyword matched nothing.
        """
        keyword = (keyword or "").strip() or None
        try:
            logger.info(f"Searching catalog ({self.source}) for keyword: {keyword!r}")
            records = await self._fetch(keyword)

            if not records and keyword and self.allow_fallback:
                logger.info(f"No products match {keyword!r}, falling back to unfiltered results")
                records = await self._fetch(None)

            records = records[:self.max_results]
            logger.info(f"Catalog search returned {len(records)} products")
            return records

        except (ShopifyError, ValueError, OverflowError, AttributeError, TypeError) as e:
            logger.error(f"Catalog search failed for keyword {keyword!r}: {e}")
            return []

    async def _fetch(self, keyword: Optional[str]) -> List[ProductRecord]:
        if self.source == "admin":
            return await self._fetch_admin(keyword)
        return await self._fetch_storefront(keyword)

    async def _fetch_admin(self, keyword: Optional[str]) -> List[ProductRecord]:
        if keyword:
            sort_key, reverse = "RELEVANCE", False
        else:
            sort_key, reverse = self.best_seller_sort_key, True
        response = await self.client.get_catalog_products(
            first=self.max_results,
            query=build_search_filter(keyword),
            sort_key=sort_key,
            reverse=reverse
        )
        return parse_admin_products_response(response, self.config)

    async def _fetch_storefront(self, keyword: Optional[str]) -> List[ProductRecord]:
        response = await self.client.list_public_products(limit=self.page_size, page=1)
        records = parse_listing_response(response, self.config)
        if keyword:
            records = [r for r in records if matches_keyword(r, keyword)]
        return records
