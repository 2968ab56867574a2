"""
Pytest configuration and shared fixtures for Shop Concierge testing.
"""

import json
from typing import Any, Dict, List, Optional

import pytest

from concierge.core.config import Settings
from concierge.integrations.shopify.models import ShopifyConfig

STORE_DOMAIN = "test-shop.myshopify.com"


@pytest.fixture
def settings() -> Settings:
    """Fully configured settings that ignore the process environment file."""
    return Settings(
        _env_file=None,
        OPENROUTER_API_KEY="test-key",
        OPENROUTER_BASE_URL="https://llm.test/api/v1",
        DEFAULT_LLM_MODEL="test/model",
        SHOPIFY_STORE_URL=f"https://{STORE_DOMAIN}/",
        SHOPIFY_ACCESS_TOKEN="shpat_test",
        CATALOG_SOURCE="admin",
        CATALOG_ALLOW_FALLBACK=True,
        CATALOG_MAX_RESULTS=5,
        SYSTEM_INSTRUCTION="Sei un assistente di vendita.",
        ALLOWED_ORIGINS="*",
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def shopify_config() -> ShopifyConfig:
    return ShopifyConfig(store_domain=f"https://{STORE_DOMAIN}/", access_token="shpat_test")


@pytest.fixture
def storefront_config() -> ShopifyConfig:
    return ShopifyConfig(store_domain=STORE_DOMAIN)


@pytest.fixture
def admin_product_nodes() -> List[Dict[str, Any]]:
    """Product nodes as returned by the Admin GraphQL API."""
    return [
        {
            "title": "Accendino Clipper Classic",
            "handle": "accendino-clipper-classic",
            "productType": "Accendini",
            "totalInventory": 3,
            "priceRange": {"minVariantPrice": {"amount": "2.5", "currencyCode": "EUR"}},
            "featuredImage": {"url": "https://cdn.shopify.com/clipper-classic.jpg"},
        },
        {
            "title": "Accendino Clipper Micro",
            "handle": "accendino-clipper-micro",
            "productType": "Accendini",
            "totalInventory": -2,
            "priceRange": {"minVariantPrice": {"amount": "1.9", "currencyCode": "EUR"}},
            "featuredImage": None,
        },
        {
            "title": "Cartine Lunghe Slim",
            "handle": "cartine-lunghe-slim",
            "productType": "",
            "totalInventory": None,
            "priceRange": None,
            "featuredImage": None,
        },
    ]


@pytest.fixture
def admin_products_response(admin_product_nodes) -> Dict[str, Any]:
    return {"data": {"products": {"edges": [{"node": node} for node in admin_product_nodes]}}}


@pytest.fixture
def listing_response() -> Dict[str, Any]:
    """Body of the public /products.json listing."""
    return {
        "products": [
            {
                "title": "Accendino Clipper Classic",
                "handle": "accendino-clipper-classic",
                "product_type": "Accendini",
                "variants": [{"price": "2.50", "available": True}],
                "images": [{"src": "https://cdn.shopify.com/clipper-classic.jpg"}],
            },
            {
                "title": "Grinder Alluminio",
                "handle": "grinder-alluminio",
                "product_type": "Grinder",
                "variants": [{"price": "12.00", "inventory_quantity": 4}, {"price": "14.00", "inventory_quantity": 1}],
                "images": [],
            },
            {
                "title": "Cartine Lunghe Slim",
                "handle": "cartine-lunghe-slim",
                "product_type": "Cartine",
                "variants": [],
                "images": [],
            },
            {
                "title": "Prodotto senza handle",
                "handle": "",
                "product_type": "Varie",
                "variants": [],
                "images": [],
            },
        ]
    }


@pytest.fixture
def completion_body():
    """Factory for OpenAI-style chat completion bodies."""
    def _build(text: Optional[str] = None, tool_calls: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        message: Dict[str, Any] = {"role": "assistant", "content": text}
        if tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.get("id", f"call_{i}"),
                    "type": "function",
                    "function": {
                        "name": call["name"],
                        "arguments": json.dumps(call.get("arguments", {})),
                    },
                }
                for i, call in enumerate(tool_calls)
            ]
        return {
            "id": "gen-test",
            "model": "test/model",
            "choices": [{"index": 0, "message": message, "finish_reason": "tool_calls" if tool_calls else "stop"}],
        }
    return _build
