"""
Shopify data models.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class ShopifyError(Exception):
    """Custom exception for Shopify API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, response: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class ShopifyConfig(BaseModel):
    """Shopify configuration settings."""
    store_domain: str
    access_token: Optional[str] = None
    api_version: str = "2024-01"
    timeout: float = 15.0

    @field_validator('store_domain')
    @classmethod
    def clean_domain(cls, v: str) -> str:
        """Strip scheme and trailing slashes from the configured store URL."""
        v = v.strip()
        for scheme in ("https://", "http://"):
            if v.startswith(scheme):
                v = v[len(scheme):]
        return v.rstrip("/")

    @property
    def graphql_url(self) -> str:
        return f"https://{self.store_domain}/admin/api/{self.api_version}/graphql.json"

    @property
    def listing_url(self) -> str:
        return f"https://{self.store_domain}/products.json"

    def product_link(self, handle: str) -> str:
        """Public product page URL for a handle."""
        return f"https://{self.store_domain}/products/{handle}"


class ProductRecord(BaseModel):
    """Compact product shape handed to the model."""
    name: str
    link: str
    stock: Optional[int] = Field(None, ge=0)
    price: Optional[str] = None
    image: Optional[str] = None
    type: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """Serialize without unknown fields."""
        return self.model_dump(exclude_none=True)
