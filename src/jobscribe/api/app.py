from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from jobscribe.api.routes import router as api_router
from jobscribe.config import Settings, get_settings
from jobscribe.core.runtime import Runtime, build_runtime
from jobscribe.errors import (
    ExtractionError,
    GenerationInputError,
    NotFoundError,
    ProviderError,
    UnknownCollectionError,
    VersionConflictError,
)
from jobscribe.llm.providers import GenerationProvider
from jobscribe.logging_config import configure_logging

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[Exception], int] = {
    ExtractionError: 422,
    NotFoundError: 404,
    UnknownCollectionError: 400,
    VersionConflictError: 409,
    GenerationInputError: 400,
}


def create_app(
    settings: Settings | None = None,
    *,
    runtime: Runtime | None = None,
    generation_provider: GenerationProvider | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging()

    app = FastAPI(title=settings.app_name)
    app.state.runtime = runtime or build_runtime(settings)
    app.state.generation_provider = generation_provider
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await app.state.runtime.coordinator.wait_idle()
        await app.state.runtime.store.close()

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    for error_type, status_code in _STATUS_BY_ERROR.items():
        app.add_exception_handler(error_type, _error_handler(status_code))
    app.add_exception_handler(ProviderError, _provider_error_handler)
    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.add_exception_handler(ValueError, _error_handler(400))

    app.include_router(api_router)
    return app


def _error_handler(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        logger.info("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


async def _validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info("%s %s rejected invalid data: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors(include_url=False, include_context=False)},
    )


async def _provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    if exc.is_authorization_failure:
        return JSONResponse(
            status_code=401,
            content={"detail": "Invalid API key. Please check your API key and try again."},
        )
    return JSONResponse(
        status_code=502,
        content={"detail": exc.message, "provider_status": exc.http_status},
    )
