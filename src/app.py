"""Marketplace FastAPI application.

Web server that processes checkout, cart, coupon and seller commands
synchronously via HTTP. Each request runs inside the marketplace domain
context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → in-memory providers
#   - "production" → PostgreSQL
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace.domain import marketplace
from marketplace.utils.logging import bind_request_context, clear_request_context, configure_logging

configure_logging(log_file_prefix="marketplace")

marketplace.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Marketplace API",
    description="Multi-seller marketplace: cart, coupons, checkout and seller order management",
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
    """Push the marketplace domain context and bind request details to the logs."""
    clear_request_context()
    bind_request_context(
        method=request.method,
        path=request.url.path,
        user_id=request.headers.get("x-user-id"),
    )
    with marketplace.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from marketplace.api import (  # noqa: E402
    cart_router,
    checkout_router,
    coupon_router,
    order_router,
    register_error_handlers,
    seller_router,
)

app.include_router(checkout_router)
app.include_router(cart_router)
app.include_router(coupon_router)
app.include_router(order_router)
app.include_router(seller_router)

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
                "marketplace": {"name": marketplace.name},
            },
        }
    )
