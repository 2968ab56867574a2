"""
Cross-origin middleware so a storefront page can call the API from browser script.
"""

from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

ALLOWED_METHODS = "GET, OPTIONS, PATCH, DELETE, POST, PUT"
ALLOWED_HEADERS = (
    "X-CSRF-Token, X-Requested-With, Accept, Accept-Version, Content-Length, "
    "Content-MD5, Content-Type, Date, X-Api-Version"
)


def cors_headers(allowed_origins: List[str], request_origin: str = None) -> Dict[str, str]:
    """Permissive CORS headers for a response."""
    if "*" in allowed_origins:
        origin = "*"
    elif request_origin and request_origin in allowed_origins:
        origin = request_origin
    else:
        origin = allowed_origins[0] if allowed_origins else "*"

    headers = {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Max-Age": "86400",
    }
    if origin != "*":
        headers["Vary"] = "Origin"
    return headers


class CrossOriginMiddleware(BaseHTTPMiddleware):
    """Adds CORS headers to every response and answers preflight requests."""

    def __init__(self, app, allowed_origins: List[str]):
        super().__init__(app)
        self.allowed_origins = allowed_origins

    async def dispatch(self, request: Request, call_next):
        headers = cors_headers(self.allowed_origins, request.headers.get("origin"))

        if request.method == "OPTIONS":
            return Response(status_code=200, headers=headers)

        response = await call_next(request)
        for name, value in headers.items():
            response.headers[name] = value
        return response
