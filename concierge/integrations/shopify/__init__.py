"""
Shopify integration package.
"""

from .client import ShopifyClient
from .models import ProductRecord, ShopifyConfig, ShopifyError
from .service import CatalogService
from .graphql_queries import GraphQLQueryBuilder

__all__ = [
    "ShopifyClient",
    "ProductRecord",
    "ShopifyConfig",
    "ShopifyError",
    "CatalogService",
    "GraphQLQueryBuilder",
]
