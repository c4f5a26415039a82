import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings, Settings
from app.db.session import get_db
from app.api.v1.endpoints import matches

logger = logging.getLogger(__name__)

settings = get_settings()


def _engine_name(current: Settings) -> str:
    return "hierarchical" if current.hierarchical_matching_enabled else "legacy"


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info(
        "%s %s starting (env=%s, default engine=%s, debug log=%s)",
        settings.app_name,
        settings.app_version,
        settings.app_env,
        _engine_name(settings),
        settings.matching_debug_log,
    )
    yield


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Ranks revenue schedules against vendor deposit lines for commission reconciliation",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(matches.router, prefix="/api/v1")


@app.get("/")
async def root():
    """Service identity and default matching engine."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "engine": _engine_name(settings),
        "status": "running",
    }


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Liveness plus a read against the matching database."""
    try:
        db.execute(text("SELECT 1"))
        database = "healthy"
    except SQLAlchemyError as e:
        logger.warning("Health check could not reach the database: %s", e)
        database = f"unhealthy: {e}"

    return {
        "status": "healthy" if database == "healthy" else "degraded",
        "components": {"api": "healthy", "database": database},
        "version": settings.app_version,
    }


@app.get("/config")
async def get_config(current: Settings = Depends(get_settings)):
    """Matching configuration in effect (non-sensitive values only)."""
    return {
        "app_name": current.app_name,
        "app_version": current.app_version,
        "app_env": current.app_env,
        "matching": {
            "hierarchical_matching_enabled": current.hierarchical_matching_enabled,
            "debug_log": current.matching_debug_log,
            "thresholds": {
                "auto_match": current.auto_match_threshold,
                "suggest": current.suggest_threshold,
                "medium": current.medium_threshold,
            },
            "suggested_matches_min_confidence": current.suggested_matches_min_confidence,
            "default_variance_tolerance": current.default_variance_tolerance,
            "default_result_limit": current.default_result_limit,
            "default_date_window_months": current.default_date_window_months,
        },
    }
