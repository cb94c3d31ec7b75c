"""DxReasoning — Логування та помилки"""
from .logging import get_logger, setup_logging
from .exceptions import (
    DiagnosticError,
    InputQualityError,
    KnowledgeUnavailableError,
    InsufficientEvidenceError,
    DiagnosisTimeoutError,
    ChainConstructionError,
    AdmissionRejectedError,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "DiagnosticError",
    "InputQualityError",
    "KnowledgeUnavailableError",
    "InsufficientEvidenceError",
    "DiagnosisTimeoutError",
    "ChainConstructionError",
    "AdmissionRejectedError",
]
