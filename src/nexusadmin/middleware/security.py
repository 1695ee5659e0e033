"""Security headers middleware.

Learn: Adds standard security headers to every response. This is an
admin API returning JSON with bearer tokens in it, so responses are
also marked non-cacheable.

apply_security_headers() is shared with the masked-500 handler: that
response is built by Starlette's outermost error middleware, after this
one has already been unwound.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cache-Control": "no-store",
}


def apply_security_headers(request: Request, response: Response) -> Response:
    response.headers.update(SECURITY_HEADERS)
    # Only add HSTS on HTTPS connections
    if request.url.scheme == "https":
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        return apply_security_headers(request, response)
