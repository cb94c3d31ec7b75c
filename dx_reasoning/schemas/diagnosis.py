"""
DxReasoning — Схеми результатів діагностики

Pydantic моделі для:
- DiseaseCandidate: кандидат з сирим score
- ConfidenceInterval, UncertaintyBreakdown: впевненість та її джерела
- Evidence: зв'язок (знахідка, діагноз) з класифікацією
- ReasoningStep, Citation, ReasoningChain: пояснення
- RankedDiagnosis, DifferentialDiagnosis: фінальний результат
- Refusal: структурована відмова
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .case import Finding


class UrgencyLevel(str, Enum):
    """Рівень терміновості (critical > high > moderate > low)"""
    CRITICAL = "critical"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"

    @property
    def priority(self) -> int:
        """Числовий пріоритет: більше = терміновіше"""
        return _URGENCY_PRIORITY[self]


_URGENCY_PRIORITY = {
    UrgencyLevel.CRITICAL: 3,
    UrgencyLevel.HIGH: 2,
    UrgencyLevel.MODERATE: 1,
    UrgencyLevel.LOW: 0,
}


class EvidenceClass(str, Enum):
    """Класифікація знахідки відносно кандидата (закритий варіант)"""
    SUPPORTING = "supporting"
    CONTRADICTING = "contradicting"
    NEUTRAL = "neutral"


class UncertaintySource(str, Enum):
    """Джерело невизначеності"""
    DATA_QUALITY = "data_quality"
    MODEL_DISAGREEMENT = "model_disagreement"
    PREVALENCE_PRIOR = "prevalence_prior"


class DiseaseCandidate(BaseModel):
    """
    Діагноз-кандидат з сирим score відповідності.

    Приклад:
        candidate = DiseaseCandidate(
            disease_id="pulmonary_embolism",
            name="Pulmonary Embolism",
            raw_score=0.41,
            prevalence=6e-4,
            urgency=UrgencyLevel.CRITICAL
        )
    """
    model_config = ConfigDict(frozen=True)

    disease_id: str
    name: str
    raw_score: float = Field(..., ge=0.0, description="Нормалізований сирий score")
    prevalence: float = Field(..., ge=0.0, le=1.0)
    urgency: UrgencyLevel = Field(default=UrgencyLevel.LOW)


class ConfidenceInterval(BaseModel):
    """Точкова оцінка та 95% інтервал, все в [0, 100]"""
    model_config = ConfigDict(frozen=True)

    point: float = Field(..., ge=0.0, le=100.0)
    lower: float = Field(..., ge=0.0, le=100.0)
    upper: float = Field(..., ge=0.0, le=100.0)
    level: float = Field(default=0.95)

    @model_validator(mode="after")
    def check_order(self) -> "ConfidenceInterval":
        if not (self.lower <= self.point <= self.upper):
            raise ValueError(
                f"Invalid interval: lower={self.lower}, point={self.point}, upper={self.upper}"
            )
        return self

    @property
    def half_width(self) -> float:
        return (self.upper - self.lower) / 2


class UncertaintyBreakdown(BaseModel):
    """
    Внесок джерел невизначеності (процентні пункти).

    data_quality та model_disagreement входять у напівширину інтервалу;
    prevalence_prior показує зсув точкової оцінки від prior.
    """
    model_config = ConfigDict(frozen=True)

    data_quality: float = Field(default=0.0, ge=0.0)
    model_disagreement: float = Field(default=0.0, ge=0.0)
    prevalence_prior: float = Field(default=0.0, ge=0.0)

    @property
    def dominant_source(self) -> UncertaintySource:
        contributions = [
            (self.data_quality, UncertaintySource.DATA_QUALITY),
            (self.model_disagreement, UncertaintySource.MODEL_DISAGREEMENT),
            (self.prevalence_prior, UncertaintySource.PREVALENCE_PRIOR),
        ]
        # при рівності перемагає перше джерело у списку
        return max(contributions, key=lambda x: x[0])[1]


class Evidence(BaseModel):
    """Пара (знахідка, діагноз) з класифікацією та вагою"""
    model_config = ConfigDict(frozen=True)

    finding: Finding
    disease_id: str
    classification: EvidenceClass
    weight: float = Field(default=0.0, description="> 0 підтримує, < 0 суперечить")

    @property
    def finding_code(self) -> str:
        return self.finding.code


class ReasoningStep(BaseModel):
    """Крок міркування"""
    model_config = ConfigDict(frozen=True)

    description: str
    evidence: Tuple[Evidence, ...] = Field(default=())
    contribution: float = Field(default=0.0, description="Внесок у впевненість (п.п.)")


class Citation(BaseModel):
    """Посилання на літературу"""
    model_config = ConfigDict(frozen=True)

    identifier: str = Field(..., description="PMID або інший ідентифікатор")
    title: str = ""
    source: Optional[str] = None
    year: Optional[int] = None
    url: Optional[str] = None


class ReasoningChain(BaseModel):
    """Ланцюжок міркувань для одного діагнозу"""
    model_config = ConfigDict(frozen=True)

    disease_id: str
    steps: Tuple[ReasoningStep, ...] = Field(..., min_length=1)
    confidence_explanation: str = Field(..., min_length=1)
    citations: Tuple[Citation, ...] = Field(default=())
    degraded_explainability: bool = False


class RankedDiagnosis(BaseModel):
    """Кандидат після ранжування"""
    model_config = ConfigDict(frozen=True)

    candidate: DiseaseCandidate
    confidence: ConfidenceInterval
    uncertainty: UncertaintyBreakdown = Field(default_factory=UncertaintyBreakdown)
    urgency: UrgencyLevel
    evidence: Tuple[Evidence, ...] = Field(default=())
    rank: int = Field(..., ge=1)
    rare_inclusion: bool = Field(
        default=False,
        description="Включено правилом рідкісних захворювань"
    )
    reasoning: Optional[ReasoningChain] = None

    @property
    def disease_id(self) -> str:
        return self.candidate.disease_id

    @property
    def point(self) -> float:
        return self.confidence.point

    def evidence_of(self, classification: EvidenceClass) -> List[Evidence]:
        return [e for e in self.evidence if e.classification == classification]


class DistinguishingFeature(BaseModel):
    """Знахідка, що по-різному класифікована для близьких кандидатів"""
    model_config = ConfigDict(frozen=True)

    finding_code: str
    disease_ids: Tuple[str, str]
    classifications: Tuple[EvidenceClass, EvidenceClass]


class ProcessingMetadata(BaseModel):
    """Метадані обробки"""
    model_config = ConfigDict(frozen=True)

    snapshot_version: str
    model_version: str
    calibration_method: str
    elapsed_ms: float = Field(default=0.0, ge=0.0)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    estimated_wait_seconds: Optional[float] = None


class DifferentialDiagnosis(BaseModel):
    """
    Повний результат для одного випадку.

    Незмінний після повернення; замінюється лише повторним запуском
    з новою версією знімка.
    """
    model_config = ConfigDict(frozen=True)

    case_id: str
    diagnoses: Tuple[RankedDiagnosis, ...] = Field(..., min_length=1)
    urgent_flags: Tuple[str, ...] = Field(default=())
    below_minimum: bool = False
    distinguishing_features: Tuple[DistinguishingFeature, ...] = Field(default=())
    degraded_explainability: bool = False
    metadata: ProcessingMetadata

    @model_validator(mode="after")
    def check_ranks(self) -> "DifferentialDiagnosis":
        ranks = [d.rank for d in self.diagnoses]
        if ranks != list(range(1, len(ranks) + 1)):
            raise ValueError(f"Ranks must be dense and 1-based, got {ranks}")
        return self

    @property
    def top_diagnosis(self) -> RankedDiagnosis:
        return self.diagnoses[0]

    @property
    def disease_ids(self) -> List[str]:
        return [d.disease_id for d in self.diagnoses]

    def get(self, disease_id: str) -> Optional[RankedDiagnosis]:
        for d in self.diagnoses:
            if d.disease_id == disease_id:
                return d
        return None

    def to_summary(self) -> Dict[str, Any]:
        """Короткий підсумок для логів та UI"""
        return {
            "case_id": self.case_id,
            "top_diagnosis": self.top_diagnosis.candidate.name,
            "confidence": self.top_diagnosis.point,
            "entries": len(self.diagnoses),
            "urgent_flags": list(self.urgent_flags),
            "below_minimum": self.below_minimum,
            "snapshot_version": self.metadata.snapshot_version,
        }


class Refusal(BaseModel):
    """Структурована відмова з кодом причини"""
    reason_code: str
    message: str
    clinical_message: str
    details: Dict[str, Any] = Field(default_factory=dict)
