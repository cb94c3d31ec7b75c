"""
DxReasoning — FastAPI Application

Тонка сервісна межа навколо DiagnosticService.

Запуск:
    uvicorn dx_reasoning.api.app:app --host 0.0.0.0 --port 8000

Конфігурація береться з environment (DX_SNAPSHOT_PATH, DX_LOG_LEVEL ...).
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from dx_reasoning.config import DxConfig
from dx_reasoning.engine import DiagnosticService
from dx_reasoning.utils import (
    AdmissionRejectedError,
    DiagnosticError,
    get_logger,
    setup_logging,
)

from .routes import diagnosis_router, health_router

logger = get_logger(__name__)


# Код причини → HTTP статус
STATUS_BY_REASON = {
    "INPUT_QUALITY_INSUFFICIENT": 422,
    "OUTSIDE_VALIDATED_SCOPE": 422,
    "KNOWLEDGE_UNAVAILABLE": 503,
    "OVERLOADED": 503,
    "DEADLINE_EXCEEDED": 504,
    "INTERNAL_CONSISTENCY_DEFECT": 500,
}


def refusal_response(exc: DiagnosticError) -> JSONResponse:
    """Відмова як JSON з відповідним статусом"""
    headers = {}
    if isinstance(exc, AdmissionRejectedError):
        headers["Retry-After"] = str(max(1, int(round(exc.retry_after_seconds))))

    return JSONResponse(
        status_code=STATUS_BY_REASON.get(exc.code, 500),
        content=exc.to_refusal().model_dump(mode="json"),
        headers=headers,
    )


def create_app(
    service: Optional[DiagnosticService] = None,
    config: Optional[DxConfig] = None
) -> FastAPI:
    """
    Створити FastAPI додаток.

    Args:
        service: Готовий сервіс (тести); якщо None, створюється при старті
        config: Конфігурація (за замовчуванням DxConfig.from_env())
    """
    config = config or (service.config if service else DxConfig.from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(
            level=config.logging.level,
            log_file=config.logging.log_file,
            use_colors=config.logging.use_colors,
        )

        if app.state.service is None:
            try:
                app.state.service = DiagnosticService.from_config(config)
            except DiagnosticError as exc:
                logger.error(f"API starting without a knowledge snapshot: {exc.message}")

        current = app.state.service
        logger.info(
            f"DxReasoning API ready (snapshot: "
            f"{current.snapshot_version if current else None})"
        )

        yield

        if app.state.service is not None:
            app.state.service.shutdown()
        logger.info("DxReasoning API stopped")

    app = FastAPI(
        title=config.api.api_title,
        description=config.api.api_description,
        version=config.version,
        lifespan=lifespan,
    )
    app.state.service = service

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        if request.url.path.startswith(config.api.api_prefix):
            logger.info(
                f"{request.method} {request.url.path} → {response.status_code} "
                f"({process_time * 1000:.1f}ms)"
            )
        return response

    @app.exception_handler(DiagnosticError)
    async def diagnostic_error_handler(request: Request, exc: DiagnosticError):
        return refusal_response(exc)

    app.include_router(health_router)
    app.include_router(diagnosis_router, prefix=config.api.api_prefix)

    return app


app = create_app()
