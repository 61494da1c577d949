"""Scenario Progress Service - FastAPI app entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.container import get_evaluation_poller
from app.core.config import get_settings
from app.db.base import Base
from app.db.session import engine
from app.routers import auth, scenarios, teachers

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # fail fast when the evaluator key is missing
    get_evaluation_poller()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Scenario Progress Service started")
    yield
    await engine.dispose()


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Teacher progression through evaluated training scenarios",
    lifespan=lifespan,
)

app.include_router(auth.router)
app.include_router(scenarios.router)
app.include_router(teachers.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
