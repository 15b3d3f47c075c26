"""
FastAPI app entrypoint.

Slot allocation for live events: timeslots, claims, waitlist offers, lineup.
Run from backend: uvicorn slotline.main:app --reload
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from slotline.api.routes import claims, lineup, timeslots
from slotline.config import settings
from slotline.core.constants import OFFER_EXPIRY_JOB_ID
from slotline.core.errors import SlotlineError, slotline_error_to_http
from slotline.scheduler.offer_expiry_job import run_offer_expiry_job
from slotline.services import notify

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Scheduler: expire unaccepted waitlist offers and promote the next in line
_scheduler = BackgroundScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    _scheduler.add_job(
        run_offer_expiry_job,
        "interval",
        seconds=settings.offer_sweep_interval_seconds,
        id=OFFER_EXPIRY_JOB_ID,
        max_instances=1,
        coalesce=True,
    )
    _scheduler.start()
    app.state.scheduler = _scheduler
    logger.info("Offer expiry job scheduled every %ss", settings.offer_sweep_interval_seconds)
    yield
    _scheduler.shutdown(wait=False)
    notify.shutdown(wait=True)


app = FastAPI(title="Slotline", version="0.1.0", lifespan=lifespan)

# CORS: dev origins + optional CORS_ORIGINS env (comma-separated) for the host application frontend
_cors_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_cors_origins.extend(settings.cors_origin_list)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SlotlineError)
async def handle_slotline_error(request: Request, exc: SlotlineError) -> JSONResponse:
    http_exc = slotline_error_to_http(exc)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


app.include_router(timeslots.router, prefix="/events", tags=["timeslots"])
app.include_router(lineup.router, prefix="/events", tags=["lineup"])
app.include_router(claims.router, tags=["claims"])


@app.get("/", include_in_schema=False)
def root():
    """Root: point to API docs and health."""
    return {"message": "Slotline API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
