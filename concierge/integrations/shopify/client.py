"""
Shopify API client for the Admin GraphQL API and the public product listing.
"""

from typing import Dict, Any, Optional

import httpx
from loguru import logger

from .models import ShopifyConfig, ShopifyError
from .graphql_queries import GraphQLQueryBuilder
from .exceptions import (
    shopify_error_from_response,
    shopify_graphql_error_from_response,
    ShopifyAuthenticationError,
    ShopifyParseError,
    ShopifyTimeoutError,
    ShopifyConnectionError
)

MAX_LISTING_PAGE_SIZE = 250


class ShopifyClient:
    """Client for interacting with Shopify's catalog endpoints."""

    def __init__(self, config: ShopifyConfig, http_client: Optional[httpx.AsyncClient] = None):
        """Initialize the Shopify client."""
        if not config.store_domain:
            raise ShopifyError("Store domain is required")

        self.config = config
        self.client = http_client or httpx.AsyncClient(
            headers={"User-Agent": "ShopConcierge/1.0"},
            timeout=config.timeout
        )

        logger.info(f"Initialized Shopify client for domain: {self.config.store_domain}")

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    def _decode(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise ShopifyParseError(f"Invalid JSON from Shopify: {e}", response.status_code)
        if not isinstance(data, dict):
            raise ShopifyParseError("Unexpected Shopify response shape", response.status_code)
        return data

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.status_code == 200:
            return
        error_text = response.text
        logger.error(f"Shopify request failed: {response.status_code} - {error_text[:500]}")
        try:
            error_data = response.json()
        except ValueError:
            error_data = {"error": error_text}
        if not isinstance(error_data, dict):
            error_data = {"error": error_text}
        raise shopify_error_from_response(response.status_code, error_data)

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            logger.debug(f"Making {method} request to {url}")
            return await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"Timeout during Shopify request: {e}")
            raise ShopifyTimeoutError(f"Request timeout: {str(e)}", timeout=self.config.timeout)
        except httpx.ConnectError as e:
            logger.error(f"Connection error during Shopify request: {e}")
            raise ShopifyConnectionError(f"Connection failed: {str(e)}")
        except httpx.RequestError as e:
            logger.error(f"Network error during Shopify request: {e}")
            raise ShopifyError(f"Network error: {str(e)}")

    async def _make_graphql_request(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Make a GraphQL request to the Admin API."""
        if not self.config.access_token:
            raise ShopifyAuthenticationError("Access token is required for the Admin API")

        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        response = await self._send(
            "POST",
            self.config.graphql_url,
            json=payload,
            headers={
                "Content-Type": "application/json",
                "X-Shopify-Access-Token": self.config.access_token,
            }
        )
        self._raise_for_status(response)

        data = self._decode(response)
        if data.get("errors"):
            logger.error(f"GraphQL errors: {data['errors']}")
            raise shopify_graphql_error_from_response(data["errors"])
        return data

    async def get_catalog_products(self,
                                   first: int = 5,
                                   query: Optional[str] = None,
                                   sort_key: Optional[str] = None,
                                   reverse: bool = False) -> Dict[str, Any]:
        """Fetch products from the Admin GraphQL API."""
        graphql_query, variables = GraphQLQueryBuilder.get_catalog_products_query(
            first=first,
            query=query,
            sort_key=sort_key,
            reverse=reverse
        )
        return await self._make_graphql_request(graphql_query, variables)

    async def list_public_products(self, limit: int = MAX_LISTING_PAGE_SIZE, page: int = 1) -> Dict[str, Any]:
        """Fetch one page of the storefront's public product listing."""
        limit = max(1, min(limit, MAX_LISTING_PAGE_SIZE))
        response = await self._send(
            "GET",
            self.config.listing_url,
            params={"limit": limit, "page": page}
        )
        self._raise_for_status(response)
        return self._decode(response)
