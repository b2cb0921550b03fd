"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from sqlalchemy import text

from toolwright.config import get_settings
from toolwright.db.session import SessionLocal
from toolwright.routers import maintenance
from toolwright.services.background_jobs import build_job_scheduler

logger = logging.getLogger(__name__)


def _warm_backend_state() -> None:
    """Prime the DB connection at process start."""

    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Backend warm-up failed; continuing without startup pre-warm.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    _warm_backend_state()
    app.state.job_scheduler = build_job_scheduler(SessionLocal)
    logger.info("jobs.scheduler_ready kinds=%s", ",".join(app.state.job_scheduler.kinds))
    yield


app = FastAPI(title=get_settings().app_name, version="0.1.0", lifespan=lifespan)

app.include_router(maintenance.router, tags=["maintenance"])


@app.get("/health")
def health() -> dict[str, str]:
    """Simple health check endpoint."""

    return {"status": "ok"}
