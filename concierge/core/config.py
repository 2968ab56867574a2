"""
Application configuration settings.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings


DEFAULT_SYSTEM_INSTRUCTION = (
    "Sei un personal shopper esperto per un negozio online. Sei gentile, conciso e persuasivo. "
    "Quando consigli un prodotto includi sempre il nome e il link. "
    "Se lo stock è basso (sotto 5), crea urgenza. "
    "Non dire mai che un prodotto non esiste: proponi sempre un'alternativa dal catalogo."
)


class Settings(BaseSettings):
    """Application settings."""

    # Project settings
    PROJECT_NAME: str = "Shop Concierge"
    VERSION: str = "0.1.0"
    API_PREFIX: str = "/api"

    # CORS settings
    ALLOWED_ORIGINS: str = "*"

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse ALLOWED_ORIGINS from comma-separated string to list."""
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    # OpenRouter settings
    OPENROUTER_API_KEY: str = ""
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    DEFAULT_LLM_MODEL: str = "google/gemini-2.5-flash"
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: Optional[int] = None
    LLM_TIMEOUT: float = 30.0

    # Persona and formatting rules handed to the model as-is
    SYSTEM_INSTRUCTION: str = DEFAULT_SYSTEM_INSTRUCTION

    # Shopify settings
    SHOPIFY_STORE_URL: str = ""
    SHOPIFY_ACCESS_TOKEN: str = ""
    SHOPIFY_API_VERSION: str = "2024-01"
    SHOPIFY_TIMEOUT: float = 15.0

    # Catalog lookup policy
    CATALOG_SOURCE: str = "admin"  # admin | storefront
    CATALOG_ALLOW_FALLBACK: bool = True
    CATALOG_MAX_RESULTS: int = 5
    CATALOG_PAGE_SIZE: int = 250
    CATALOG_BEST_SELLER_SORT_KEY: str = "INVENTORY_TOTAL"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "{time:YYYY-MM-DD HH:mm:ss} - {name} - {level} - {message}"

    # Development settings
    DEBUG: bool = False

    def missing_settings(self) -> List[str]:
        """Names of required settings that are empty."""
        required = ["OPENROUTER_API_KEY", "SHOPIFY_STORE_URL"]
        if self.CATALOG_SOURCE == "admin":
            required.append("SHOPIFY_ACCESS_TOKEN")
        return [name for name in required if not getattr(self, name)]

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
