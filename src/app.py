"""Campus Dispatch FastAPI application.

Serves the delivery domain over HTTP. Commands are processed synchronously
inside the delivery domain context pushed for each request.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → event_processing = "sync"  (projectors fire in UoW)
#   - "production" → event_processing = "async" (projectors fire via Engine)
from uuid import uuid4

from delivery.domain import delivery
from delivery.utils.logging import add_context, clear_context, configure_logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

configure_logging()
delivery.init()

_DOMAIN_PREFIXES = ("/orders", "/agents", "/shops")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Campus Dispatch API",
    description="Campus order fulfillment and delivery agent dispatch",
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
    """Push the delivery domain context and tag log lines with a request id."""
    if not request.url.path.startswith(_DOMAIN_PREFIXES):
        return await call_next(request)

    add_context(request_id=request.headers.get("X-Request-Id") or uuid4().hex, path=request.url.path)
    try:
        with delivery.domain_context():
            return await call_next(request)
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from delivery.api import (  # noqa: E402
    agent_router,
    order_router,
    register_delivery_exception_handlers,
    shop_router,
)

app.include_router(order_router)
app.include_router(agent_router)
app.include_router(shop_router)
register_delivery_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": delivery.name})
