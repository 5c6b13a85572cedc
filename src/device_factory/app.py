"""FastAPI application factory for the device factory service."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from device_factory.common.config import get_settings
from device_factory.common.exceptions import DeviceFactoryError
from device_factory.common.logging import setup_logging
from device_factory.common.schemas import ApiResponse, ErrorEntry, HealthResponse

logger = logging.getLogger(__name__)


def error_response(exc: DeviceFactoryError) -> JSONResponse:
    body = ApiResponse(
        code=exc.code,
        reason=exc.reason,
        message=exc.message,
        errors=[ErrorEntry(code=exc.code, reason=exc.reason, message=exc.message)],
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from device_factory.deps import get_db, get_swm_client
        db = get_db()
        await db.init()
        await db.create_all()
        yield
        # Shutdown
        swm = get_swm_client()
        if swm is not None:
            await swm.close()
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DeviceFactoryError)
    async def handle_device_factory_error(request: Request, exc: DeviceFactoryError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s %s", request.method, request.url.path, exc.code, exc.message)
        return error_response(exc)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from device_factory.factory.router import router as factory_router
    from device_factory.details.router import router as details_router

    prefix = settings.api_prefix
    app.include_router(factory_router, prefix=prefix)
    app.include_router(details_router, prefix=prefix)

    return app
