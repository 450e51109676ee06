"""Security headers middleware for the admin API."""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Auth responses carry session cookies and credential status: nothing is
# cacheable and nothing may be framed or rendered as active content.
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains"


def is_https(request: Request) -> bool:
    """Whether the client connected over HTTPS, directly or via a TLS proxy."""
    return request.url.scheme == "https" or request.headers.get("x-forwarded-proto", "") == "https"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds SECURITY_HEADERS to every response, plus HSTS over HTTPS."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers.update(SECURITY_HEADERS)
        if is_https(request):
            response.headers["Strict-Transport-Security"] = HSTS_VALUE

        return response
