# app/main.py
from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from app.api import (
    routes_auth,
    routes_casts,
    routes_dashboard,
    routes_reference,
    routes_sampling,
    routes_users,
)
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.core.logging_config import setup_logging
from app.db.base import Base
from app.db.seed_data import seed_all
from app.db.session import engine
from fastapi.middleware.cors import CORSMiddleware

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown events."""
    setup_logging(settings.LOG_LEVEL)
    logger.info("Starting application...")

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.critical(f"Database unreachable at startup: {e}")
        raise

    if settings.SEED_REFERENCE_DATA:
        Base.metadata.create_all(bind=engine)
        seed_all()

    yield

    engine.dispose()
    logger.info("Application shutdown complete.")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description="PhOD CTD cast logging and sample tracking API",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(routes_auth.router)
app.include_router(routes_dashboard.router)
app.include_router(routes_users.router)
app.include_router(routes_reference.router)
app.include_router(routes_casts.router)
app.include_router(routes_sampling.router)

@app.get("/", tags=["Health"])
def health_check():
    """Basic health endpoint for uptime monitoring."""
    return {
        "status": "ok",
        "project": settings.PROJECT_NAME,
        "version": settings.PROJECT_VERSION,
    }
