"""Stock ledger FastAPI application.

Processes ledger commands synchronously over HTTP. Every request runs inside
the stockledger domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level, once per uvicorn worker process.
# PROTEAN_ENV selects the config overlay ("test", "production").
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stockledger.domain import ledger
from stockledger.purchasing.grn import bind_goods_return_numbers
from stockledger.purchasing.returns import resume_goods_return_numbers
from stockledger.utils.db import default_engine

ledger.init()

# Workers share one GRN counter through the store; GRNs are never reused across restarts
with ledger.domain_context():
    bind_goods_return_numbers(default_engine(ledger))
    resume_goods_return_numbers()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Stock Ledger API",
    description="Inventory fulfillment ledger: receiving, supplier returns, issuance and reservations",
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
    """Push the stockledger domain context for each request."""
    with ledger.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from stockledger.api import register_error_handlers, routers  # noqa: E402

for router in routers:
    app.include_router(router)

register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": {"name": ledger.name}})
