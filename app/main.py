# app/main.py
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Dict, Optional
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import Settings, get_settings
from app.core.logging_config import setup_logging
from app.db.otp_store import OTPStore
from app.routers import health_router
from app.routers.otp_router import build_channel_router
from app.services.auth.channels import Channel, ChannelConfig, build_channels
from app.services.auth.sweeper import OTPSweeper

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[OTPStore] = None,
    channels: Optional[Dict[Channel, ChannelConfig]] = None,
) -> FastAPI:
    """
    Build the application.

    The OTP store belongs to the app instance: it is created here, shared by
    the channel strategies and swept by a background task that lives as long
    as the app's lifespan.
    """
    settings = settings or get_settings()
    # An empty store is falsy, so compare against None
    if store is None:
        store = OTPStore(ttl=timedelta(minutes=settings.OTP_EXPIRY_MINUTES))
    if channels is None:
        channels = build_channels(settings, store)
    sweeper = OTPSweeper(store, interval_seconds=settings.OTP_SWEEP_INTERVAL_SECONDS)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper.start()
        try:
            yield
        finally:
            await sweeper.stop()
            store.clear()

    app = FastAPI(title="OTP Login API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.otp_store = store
    app.state.otp_sweeper = sweeper
    app.state.channels = channels

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        allow_credentials=True,
    )

    app.include_router(health_router.router)
    for config in channels.values():
        app.include_router(build_channel_router(config))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Malformed request to {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"success": False, "message": "Invalid request body"})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = "Endpoint not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": message})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content={"success": False, "message": "Something went wrong!"})

    return app


setup_logging(get_settings().LOG_LEVEL)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=get_settings().PORT)
