import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.config import get_settings, get_supabase_client
from src.middleware import setup_middleware
from src.validation.router import router as validation_router
from src.http_client import close_http_client
from src.auth.router import router as auth_router
from src.validation.limits import endpoint_limiters

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    required = ["orchestrator_url", "orchestrator_secret"]
    missing = [k for k in required if not getattr(settings, k)]
    if missing:
        logger.warning(f"Missing env vars: {missing}. Deep validation unavailable.")

    if get_supabase_client() is None:
        logger.warning("Running without a database: paid tiers resolve to free, submissions are not recorded.")

    yield

    evicted = sum(lim.evict_expired() for lim in endpoint_limiters.values())
    logger.info(f"Shutting down; dropped {evicted} expired rate window(s).")
    await close_http_client()


app = FastAPI(
    title="VaaS API",
    version="1.0.0",
    docs_url="/docs" if settings.debug else None,
    lifespan=lifespan,
)

setup_middleware(app, settings.frontend_url)

app.include_router(validation_router, prefix="/api")
app.include_router(auth_router, prefix="/api/auth")


@app.get("/")
async def root():
    return {"status": "alive", "service": "vaas-api"}


@app.get("/health")
async def health():
    return {"status": "healthy", "service": "vaas-api"}


@app.get("/health/detailed")
async def health_detailed():
    checks = {"api": "healthy"}
    if settings.supabase_url and settings.supabase_service_key:
        checks["database"] = "configured"
    else:
        checks["database"] = "missing"
    if settings.orchestrator_url and settings.orchestrator_secret:
        checks["orchestrator"] = "configured"
    else:
        checks["orchestrator"] = "missing"
    overall = "healthy" if all(v != "missing" for v in checks.values()) else "degraded"
    return {"status": overall, "checks": checks}
