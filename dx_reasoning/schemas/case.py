"""
DxReasoning — Схеми клінічного випадку

Pydantic моделі для:
- Finding: одна кодована знахідка (симптом, лабораторія, візуалізація)
- LabResult, ImagingFinding: сирі результати досліджень
- Demographics: вік та стать
- NormalizedCase: нормалізований випадок, незмінний після створення
"""

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class FindingKind(str, Enum):
    """Тип знахідки"""
    SYMPTOM = "symptom"
    LAB = "lab"
    IMAGING = "imaging"


class Progression(str, Enum):
    """Тренд перебігу знахідки"""
    WORSENING = "worsening"
    IMPROVING = "improving"
    STABLE = "stable"
    UNKNOWN = "unknown"


class OnsetPhase(str, Enum):
    """Фаза появи знахідки відносно інших знахідок випадку"""
    EARLY = "early"
    LATE = "late"


class LabInterpretation(str, Enum):
    """Інтерпретація лабораторного результату"""
    HIGH = "high"
    LOW = "low"
    NORMAL = "normal"
    ABNORMAL = "abnormal"


class Sex(str, Enum):
    """Стать пацієнта"""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"


def _normalize_code(value: str) -> str:
    value = value.strip().lower()
    if not value:
        raise ValueError("Finding code must not be empty")
    return value


class Finding(BaseModel):
    """
    Одна спостережувана знахідка.

    Приклад:
        finding = Finding(
            code="joint_hypermobility",
            onset_days=3650,
            severity=6,
            progression=Progression.STABLE
        )
    """
    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="Кодований ідентифікатор знахідки")
    kind: FindingKind = Field(default=FindingKind.SYMPTOM)
    onset_days: Optional[float] = Field(
        default=None,
        ge=0.0,
        description="Скільки днів тому з'явилась (більше = раніше)"
    )
    severity: int = Field(default=5, ge=1, le=10, description="Інтенсивність 1-10")
    progression: Progression = Field(default=Progression.UNKNOWN)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return _normalize_code(v)


class LabResult(BaseModel):
    """Лабораторний результат"""
    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="Код аналізу, напр. 'd_dimer'")
    value: Optional[float] = None
    unit: Optional[str] = None
    interpretation: LabInterpretation = Field(default=LabInterpretation.ABNORMAL)
    onset_days: Optional[float] = Field(default=None, ge=0.0)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return _normalize_code(v)

    @property
    def finding_code(self) -> str:
        """Код знахідки в базі знань: '<code>:<interpretation>'"""
        return f"{self.code}:{self.interpretation.value}"

    def as_finding(self) -> Finding:
        return Finding(
            code=self.finding_code,
            kind=FindingKind.LAB,
            onset_days=self.onset_days,
        )


class ImagingFinding(BaseModel):
    """Знахідка візуалізації"""
    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="Код знахідки, напр. 'wedge_shaped_opacity'")
    modality: Optional[str] = Field(default=None, description="CT, MRI, X-ray ...")
    description: Optional[str] = None
    onset_days: Optional[float] = Field(default=None, ge=0.0)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return _normalize_code(v)

    def as_finding(self) -> Finding:
        return Finding(
            code=self.code,
            kind=FindingKind.IMAGING,
            onset_days=self.onset_days,
        )


class Demographics(BaseModel):
    """Демографічні дані"""
    model_config = ConfigDict(frozen=True)

    age: Optional[int] = Field(default=None, ge=0, le=150)
    sex: Sex = Field(default=Sex.UNKNOWN)


class NormalizedCase(BaseModel):
    """
    Нормалізований клінічний випадок.

    Належить одному діагностичному запиту і не змінюється після створення.
    Upstream-валідація ставить quality_validated=True; ядро цьому довіряє.

    Приклад:
        case = NormalizedCase(
            case_id="CASE-001",
            findings=[
                Finding(code="pleuritic_chest_pain", severity=7),
                Finding(code="dyspnea", severity=6),
            ],
            lab_results=[LabResult(code="d_dimer", interpretation="high")],
            data_quality=82.0,
            quality_validated=True,
        )
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "case_id": "CASE-001",
                "findings": [
                    {"code": "pleuritic_chest_pain", "severity": 7, "progression": "worsening"},
                    {"code": "dyspnea", "severity": 6, "onset_days": 1},
                ],
                "lab_results": [{"code": "d_dimer", "interpretation": "high"}],
                "demographics": {"age": 54, "sex": "female"},
                "data_quality": 82.0,
                "quality_validated": True,
            }
        },
    )

    case_id: str = Field(..., description="ID випадку")
    findings: Tuple[Finding, ...] = Field(default=())
    lab_results: Tuple[LabResult, ...] = Field(default=())
    imaging: Tuple[ImagingFinding, ...] = Field(default=())
    demographics: Demographics = Field(default_factory=Demographics)
    data_quality: float = Field(..., ge=0.0, le=100.0, description="Оцінка якості [0, 100]")
    quality_validated: bool = Field(
        default=False,
        description="Прапорець проходження upstream-валідації"
    )

    @model_validator(mode="after")
    def check_unique_codes(self) -> "NormalizedCase":
        codes = [f.code for f in self.all_findings()]
        duplicates = sorted({c for c in codes if codes.count(c) > 1})
        if duplicates:
            raise ValueError(f"Duplicate finding codes in case: {duplicates}")
        return self

    def all_findings(self) -> Tuple[Finding, ...]:
        """Всі знахідки випадку: симптоми, лабораторія, візуалізація"""
        return (
            tuple(self.findings)
            + tuple(lab.as_finding() for lab in self.lab_results)
            + tuple(img.as_finding() for img in self.imaging)
        )

    @property
    def finding_codes(self) -> Tuple[str, ...]:
        return tuple(f.code for f in self.all_findings())

    @property
    def n_findings(self) -> int:
        return len(self.all_findings())
