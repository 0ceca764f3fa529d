"""
FastAPI app entrypoint.

Public venue directory plus the member-only deal updater endpoints.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from config import get_settings
from deals.errors import DealError
from deals.services import create_services
from shared.models import ErrorKind

from .db import set_services, set_supabase_client
from .routes import deals, venues

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_STATUS_BY_KIND = {
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.EXTRACTION_FAILED: 502,
    ErrorKind.STORE_UNAVAILABLE: 503,
    ErrorKind.SAVE_FAILED: 500,
    ErrorKind.REFINEMENT_FAILED: 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with create_services() as services:
        set_services(services)
        set_supabase_client(services.store.supabase)
        logger.info("Deal services ready (region: %s)", services.settings.region_city)
        try:
            yield
        finally:
            set_services(None)
            set_supabase_client(None)


app = FastAPI(title="Happy Hour Deal Updater", lifespan=lifespan)
app.include_router(venues.router, prefix="/api", tags=["venues"])
app.include_router(deals.router, prefix="/api", tags=["deals"])


@app.exception_handler(DealError)
async def deal_error_handler(request: Request, exc: DealError):
    status = _STATUS_BY_KIND.get(exc.kind, 500)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"error": str(exc), "kind": exc.kind.value})


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}
