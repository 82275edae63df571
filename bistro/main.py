"""
Bistro API — FastAPI application entrypoint
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from bistro.core.config import get_settings
from bistro.core.errors import register_exception_handlers
from bistro.core.redis_client import close_redis
from bistro.db.database import engine, create_tables
from bistro.middleware.rate_limiter import SlidingWindowRateLimiter
from bistro.api import auth, health, menu, orders, payments, reconciliation, users

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables (migrations are out of band in production)
    await create_tables()
    yield
    # Shutdown
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="Bistro API",
    description="Food ordering backend: catalog, orders, JWT-gated admin routes and payment settlement.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Rate Limiting ─────────────────────────────────────────────────────────────
if settings.RATE_LIMIT_ENABLED:
    app.add_middleware(SlidingWindowRateLimiter)

# ── Prometheus Metrics ────────────────────────────────────────────────────────
if settings.METRICS_ENABLED:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")

# ── Errors ────────────────────────────────────────────────────────────────────
register_exception_handlers(app)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(auth.router)
app.include_router(menu.router)
app.include_router(orders.router)
app.include_router(users.router)
app.include_router(payments.router)
app.include_router(reconciliation.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}
