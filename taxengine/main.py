"""FastAPI application entry point.

Starts the ERP Tax Rule Engine API on port 5480.

Usage:
    uvicorn taxengine.main:app --host 0.0.0.0 --port 5480 --reload
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from taxengine.config import settings
from taxengine.database import close_db, get_session, init_db
from taxengine.exceptions import CalculationFailed
from taxengine.models.db_models import PerformanceLog
from taxengine.routers import deals, invoices, performance, tax
from taxengine.routers.performance import process_memory_mb, record_response_time

# ── Logging ──────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan (startup + shutdown) ────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting ERP Tax Rule Engine on port %s …", settings.APP_PORT)
    await init_db()
    yield
    await close_db()
    logger.info("Application shutdown complete.")


# ── Application factory ──────────────────────────────────────────────────

app = FastAPI(
    title="ERP Tax Rule Engine",
    description=(
        "Deterministic TDS (sections 194C / 194J), deal margin and invoice GST "
        "calculations for the training-services ERP.  Every answer is a pure "
        "function of the request; nothing is delegated to an external model."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request-level timing & performance logging middleware ─────────────────

@app.middleware("http")
async def timing_middleware(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.2f}"

    # Record for the /performance endpoint
    record_response_time(elapsed_ms)

    try:
        async with get_session() as session:
            if session is not None:
                session.add(
                    PerformanceLog(
                        endpoint=str(request.url.path),
                        method=request.method,
                        response_time_ms=round(elapsed_ms, 2),
                        memory_mb=round(process_memory_mb(), 2),
                        threads=threading.active_count(),
                    )
                )
    except SQLAlchemyError as exc:
        logger.warning("Could not store performance log for %s: %s", request.url.path, exc)

    return response


# ── Exception handlers ───────────────────────────────────────────────────

@app.exception_handler(CalculationFailed)
async def calculation_failed_handler(request: Request, exc: CalculationFailed):
    logger.error("Rule table could not answer on %s: %s", request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Calculation failed: {exc}"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error. Please check the logs."},
    )


# ── Register routers ─────────────────────────────────────────────────────
app.include_router(tax.router)
app.include_router(deals.router)
app.include_router(invoices.router)
app.include_router(performance.router)


# ── Health check ──────────────────────────────────────────────────────────

@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "healthy", "port": settings.APP_PORT}


# ── Dev entry point ──────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "taxengine.main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=True,
    )
