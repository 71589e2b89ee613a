from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from coachcal.api.scheduling import router as scheduling_router
from coachcal.config.settings import settings
from coachcal.core.logger import setup_logger
from coachcal.db.session import init_db

setup_logger(level=settings.log_level)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Ensure the schema exists before serving requests."""
    init_db()
    logger.info("coachcal API started")
    yield
    logger.info("coachcal API stopped")


app = FastAPI(title="coachcal", lifespan=lifespan)
app.include_router(scheduling_router)


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}
