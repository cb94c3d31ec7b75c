"""
DxReasoning — API Routes

Endpoints:
- POST /api/diagnose — NormalizedCase → DifferentialDiagnosis або Refusal
- GET /health — стан сервісу та версія знімка
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from dx_reasoning.engine import DiagnosticService
from dx_reasoning.schemas import DifferentialDiagnosis, NormalizedCase, Refusal
from dx_reasoning.utils import KnowledgeUnavailableError


def get_service(request: Request) -> DiagnosticService:
    """Сервіс, створений при старті додатку"""
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise KnowledgeUnavailableError("Diagnostic service is not initialised")
    return service


health_router = APIRouter(tags=["Health"])
diagnosis_router = APIRouter(tags=["Diagnosis"])


@health_router.get("/health")
def health(request: Request) -> Dict[str, Any]:
    """Стан сервісу"""
    service = getattr(request.app.state, "service", None)
    ready = service is not None and service.is_ready

    return {
        "status": "ok" if ready else "degraded",
        "snapshot_version": service.snapshot_version if service else None,
        "model_version": service.config.model_version if service else None,
        "in_flight": service.admission.in_flight if service else 0,
    }


@diagnosis_router.post(
    "/diagnose",
    response_model=DifferentialDiagnosis,
    responses={
        422: {"model": Refusal},
        503: {"model": Refusal},
        504: {"model": Refusal},
        500: {"model": Refusal},
    },
)
def diagnose(
    case: NormalizedCase,
    service: DiagnosticService = Depends(get_service)
) -> DifferentialDiagnosis:
    """
    Диференційний діагноз для нормалізованого випадку.

    Відмови повертаються як Refusal з кодом причини.
    """
    return service.diagnose(case)
