"""HTTP middleware stack for the habit ledger API."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from habitledger.config import Settings
from habitledger.middleware.error_handler import setup_error_handlers
from habitledger.middleware.logging import setup_logging
from habitledger.middleware.rate_limit import RateLimitMiddleware
from habitledger.middleware.request_id import REQUEST_ID_HEADER, RequestIdMiddleware

_EXPOSED_HEADERS = [REQUEST_ID_HEADER, "X-RateLimit-Remaining", "X-RateLimit-Limit"]


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Install logging, error handlers and the middleware chain.

    Outermost to innermost: CORS, request id, rate limit. Starlette wraps in
    reverse-add order, so CORS is added last and still decorates 429s.
    """
    setup_logging(settings)
    setup_error_handlers(app)

    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=_EXPOSED_HEADERS,
    )
