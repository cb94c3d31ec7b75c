"""
DxReasoning — Ієрархія помилок

Кожна відмова ядра має машинний код причини (code) та
пояснення для клінічного відображення (clinical_message).

Таксономія:
- InputQualityError: порушено контракт якості вхідних даних
- KnowledgeUnavailableError: немає знімка бази знань (фатально)
- InsufficientEvidenceError: після скорингу не лишилось кандидатів
- DiagnosisTimeoutError: перевищено дедлайн
- ChainConstructionError: внутрішня неузгодженість (дефект)
- AdmissionRejectedError: тривале перевантаження, retry-after
"""

from typing import Any, Dict, Optional


class DiagnosticError(Exception):
    """Базова помилка діагностичного ядра"""

    default_code = "DIAGNOSTIC_ERROR"
    default_clinical_message = (
        "No diagnosis could be produced. Recommend specialist consultation."
    )

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        clinical_message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.clinical_message = clinical_message or self.default_clinical_message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Словник для API відповідей та логів"""
        return {
            "reason_code": self.code,
            "message": self.message,
            "clinical_message": self.clinical_message,
            "details": self.details,
        }

    def to_refusal(self):
        """Конвертувати в Refusal schema"""
        from dx_reasoning.schemas import Refusal
        return Refusal(**self.to_dict())


class InputQualityError(DiagnosticError):
    """Випадок не пройшов (або не проходив) валідацію якості"""

    default_code = "INPUT_QUALITY_INSUFFICIENT"
    default_clinical_message = (
        "Data quality insufficient for a reliable differential. "
        "Complete the clinical record or recommend specialist consultation."
    )

    def __init__(
        self,
        message: str,
        quality_score: Optional[float] = None,
        threshold: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            details={
                "quality_score": quality_score,
                "threshold": threshold,
                **(details or {})
            }
        )
        self.quality_score = quality_score
        self.threshold = threshold


class KnowledgeUnavailableError(DiagnosticError):
    """Знімок бази знань недоступний — діагностика без знань неможлива"""

    default_code = "KNOWLEDGE_UNAVAILABLE"
    default_clinical_message = (
        "The diagnostic knowledge base is currently unavailable. "
        "No diagnosis was generated."
    )


class InsufficientEvidenceError(DiagnosticError):
    """Жоден кандидат не має достатнього підґрунтя"""

    default_code = "OUTSIDE_VALIDATED_SCOPE"
    default_clinical_message = (
        "Findings are outside the validated scope of the system; "
        "confidence too low to suggest diagnoses. "
        "Recommend specialist consultation."
    )


class DiagnosisTimeoutError(DiagnosticError, TimeoutError):
    """Перевищено дедлайн обробки випадку"""

    default_code = "DEADLINE_EXCEEDED"
    default_clinical_message = (
        "Processing did not complete within the allowed time. "
        "No partial result is shown; please retry."
    )

    def __init__(
        self,
        message: str,
        deadline_seconds: Optional[float] = None,
        stage: Optional[str] = None
    ):
        super().__init__(
            message=message,
            details={"deadline_seconds": deadline_seconds, "stage": stage}
        )
        self.deadline_seconds = deadline_seconds
        self.stage = stage


class ChainConstructionError(DiagnosticError):
    """Порушено інваріант повноти доказів (дефект, не клінічна відмова)"""

    default_code = "INTERNAL_CONSISTENCY_DEFECT"
    default_clinical_message = (
        "An internal error prevented the explanation from being built. "
        "No diagnosis is shown."
    )


class AdmissionRejectedError(DiagnosticError):
    """Сервіс перевантажений — запит відхилено з retry-after"""

    default_code = "OVERLOADED"
    default_clinical_message = (
        "The diagnostic service is temporarily overloaded. Please retry shortly."
    )

    def __init__(self, message: str, retry_after_seconds: float):
        super().__init__(
            message=message,
            details={"retry_after_seconds": retry_after_seconds}
        )
        self.retry_after_seconds = retry_after_seconds
