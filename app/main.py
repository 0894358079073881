"""FastAPI application entry point."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from app.config import get_settings
from app.database import async_session, init_db
from app.middleware import RateLimitMiddleware
from app.routers import inquiries, leases, properties, recently_viewed, saved
from app.services import RecencyTracker, SavedPropertyService, StorageClient
from app.services.errors import MarketplaceError
from app.services.leases import check_expired

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

LEASE_EXPIRY_INTERVAL_SECONDS = 24 * 60 * 60


async def expire_leases_periodically(interval: float = LEASE_EXPIRY_INTERVAL_SECONDS) -> None:
    """Expire ended leases once per interval for the app's lifetime."""
    while True:
        try:
            async with async_session() as db:
                await check_expired(db)
        except Exception as e:
            logger.error(f"Lease expiry check failed: {e}", exc_info=True)
        await asyncio.sleep(interval)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    await init_db()
    expiry_task = asyncio.create_task(expire_leases_periodically())
    yield
    expiry_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await expiry_task


app = FastAPI(
    title="LinkRentals",
    description="Rental listings, saved and recently viewed properties, inquiries and lease tracking",
    version="0.1.0",
    lifespan=lifespan,
)

templates = Jinja2Templates(directory="app/templates")

# Composition root: one storage client and its URL cache per app
storage = StorageClient()
app.state.storage = storage
app.state.recency_tracker = RecencyTracker(storage, cap=settings.recently_viewed_cap)
app.state.saved_properties = SavedPropertyService(storage)

app.add_middleware(RateLimitMiddleware)

app.include_router(properties.router)
app.include_router(recently_viewed.router)
app.include_router(saved.router)
app.include_router(leases.router)
app.include_router(inquiries.router)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.get("/", response_class=HTMLResponse)
async def index(request: Request):
    """Homepage with search form and recently viewed section."""
    return templates.TemplateResponse(request, "index.html", {})
