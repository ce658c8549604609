from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.deps import (
    get_app_settings,
    get_client_registry,
    get_curve_quote_use_case,
    get_error_reporter,
)
from app.api.routers import chains, quotes
from app.infrastructure.curve.router import CURVE_CHAIN_ID
from app.shared.config import has_rpc_url


logging.basicConfig(
    level=get_app_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


async def init_curve() -> None:
    settings = get_app_settings()
    if not settings.curve_enabled:
        logger.info("app: curve_disabled")
        return
    if not has_rpc_url(settings, CURVE_CHAIN_ID):
        logger.info("app: curve_skipped reason=no_ethereum_rpc_url")
        return

    rpc_url = get_client_registry().clients.rpc_url(CURVE_CHAIN_ID)
    logger.info("app: curve_init_started")
    try:
        await get_curve_quote_use_case().initialize(rpc_url)
    except Exception as exc:
        logger.warning("app: curve_init_failed continuing_without_curve error=%s", exc, exc_info=True)
        return
    logger.info("app: curve_init_done")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    await init_curve()
    yield


app = FastAPI(title="Swap Quote API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(quotes.router)
app.include_router(chains.router)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404 and exc.detail == "Not Found":
        logger.info("app: not_found method=%s path=%s", request.method, request.url.path)
        return JSONResponse(status_code=404, content={"error": "Not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    get_error_reporter().capture(exc, {"path": request.url.path})
    return JSONResponse(status_code=500, content={"error": str(exc) or "Unknown error"})
