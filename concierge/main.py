"""
Shop Concierge - FastAPI application entry point.
"""

import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from concierge.api.v1.endpoints import chat
from concierge.core.config import Settings, get_settings
from concierge.core.logging import setup_logging
from concierge.integrations.shopify.service import CatalogService
from concierge.middleware.cors import CrossOriginMiddleware
from concierge.services.llm import LLMService
from concierge.services.orchestrator import ConversationOrchestrator
from concierge.services.tool_system.tools import build_tool_registry
from concierge.utils.error_handlers import (
    concierge_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler,
)
from concierge.utils.exceptions import ConciergeException, ConfigurationError


def check_settings(settings: Settings) -> None:
    """Fail fast with every missing required variable named."""
    missing = settings.missing_settings()
    if missing:
        raise ConfigurationError(
            f"Missing required configuration: {', '.join(missing)}",
            missing=missing
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around one explicit Settings instance."""
    settings = settings or get_settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the request-independent services once per process."""
        logger.info("Starting Shop Concierge application...")
        check_settings(settings)

        catalog = CatalogService.from_settings(settings)
        llm = LLMService.from_settings(settings)
        registry = build_tool_registry(catalog)
        app.state.orchestrator = ConversationOrchestrator.from_settings(settings, llm, registry)
        logger.info(f"Catalog source: {catalog.source}; tools: {registry.names()}")

        try:
            yield
        finally:
            logger.info("Shutting down Shop Concierge application...")
            await llm.close()
            await catalog.close()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Shopping assistant chat API with catalog lookups",
        lifespan=lifespan,
        debug=settings.DEBUG,
    )
    app.state.settings = settings

    app.add_exception_handler(ConciergeException, concierge_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.add_middleware(CrossOriginMiddleware, allowed_origins=settings.allowed_origins_list)

    # Registered last so it is outermost: preflight responses get an ID too,
    # and server-error responses read it back from request.state.
    @app.middleware("http")
    async def add_request_id_header(request: Request, call_next):
        """Add request ID header for tracing."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        with logger.contextualize(request_id=request_id):
            response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(chat.router, prefix=settings.API_PREFIX, tags=["Chat"])

    @app.get("/api")
    async def api_root():
        """API root endpoint."""
        return {
            "message": "Shop Concierge API",
            "version": settings.VERSION,
            "status": "operational",
            "chat_api": f"{settings.API_PREFIX}/chat",
        }

    @app.get("/health")
    async def health_check():
        """Basic health check endpoint."""
        return {"status": "healthy", "service": "shop-concierge"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("concierge.main:app", host="0.0.0.0", port=8000, reload=True)
