"""FastAPI application entrypoint. No business logic; only wiring, middleware and startup seeding."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import register_exception_handlers
from app.api.routes import router as api_router
from app.core.config import settings
from app.core.database import SessionLocal
from app.core.logging import configure_logging
from app.services.bootstrap import run_bootstrap

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_logging(settings.LOG_LEVEL)
    if settings.BOOTSTRAP_ON_STARTUP:
        db = SessionLocal()
        try:
            run_bootstrap(db, settings)
        finally:
            db.close()
    logger.info("Userdesk API started (env=%s)", settings.APP_ENV)
    yield


app = FastAPI(
    title="Userdesk API",
    version="0.1.0",
    docs_url="/swagger-ui",
    redoc_url="/redoc",
    openapi_url="/v3/api-docs",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Userdesk API"}
