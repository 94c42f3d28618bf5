"""Default CORS Hook — permissive headers on every response, preflight answered inline.

Invariants:
    - Every response carries the four Access-Control-* headers below
    - OPTIONS requests get 204 without reaching routing or handlers
"""

from fastapi import Request, status
from fastapi.responses import Response

from transport_kit.config import HttpMiddleware

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,PATCH,HEAD,OPTIONS",
    "Access-Control-Allow-Headers": (
        "Origin,Content-Type,Accept,Authorization,X-Requested-With"
    ),
}


def cors_middleware() -> HttpMiddleware:
    async def add_cors_headers(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(
                status_code=status.HTTP_204_NO_CONTENT, headers=CORS_HEADERS,
            )
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    return add_cors_headers
