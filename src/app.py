"""Rentals FastAPI application.

Web server for the rental order lifecycle. Every service call runs
synchronously inside the rentals domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from domain.toml.
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from rentals.domain import rentals
from rentals.utils.logging import bind_request_context, clear_request_context, configure_logging

configure_logging()
rentals.init()

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_ROUTE_DOMAIN_MAP = {
    "/orders": rentals,
    "/webhooks": rentals,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Rentals API",
    description="Rental orders, agreements, payments and delivery gating",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the rentals domain context and bind request logging context."""
    domain = _resolve_domain(request.url.path)
    if domain is None:
        # Health check, docs, etc.
        return await call_next(request)

    request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
    bind_request_context(request_id=request_id, path=request.url.path, method=request.method)
    try:
        with domain.domain_context():
            response = await call_next(request)
    finally:
        clear_request_context()
    response.headers["X-Request-Id"] = request_id
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from rentals.api import order_router, register_error_handlers, webhook_router  # noqa: E402

app.include_router(order_router)
app.include_router(webhook_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "rentals": {"name": rentals.name},
            },
        }
    )
