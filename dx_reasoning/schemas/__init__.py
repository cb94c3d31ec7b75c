"""
DxReasoning — Модуль схем даних (schemas)

Pydantic моделі для валідації та серіалізації даних.

Компоненти:
- case.py: Finding, LabResult, ImagingFinding, Demographics, NormalizedCase
- diagnosis.py: DiseaseCandidate, ConfidenceInterval, Evidence,
  ReasoningChain, RankedDiagnosis, DifferentialDiagnosis, Refusal

Приклад використання:
    from dx_reasoning.schemas import NormalizedCase, Finding, Progression

    case = NormalizedCase(
        case_id="CASE-001",
        findings=[
            Finding(code="fever", severity=7, progression=Progression.WORSENING),
            Finding(code="headache", severity=5),
        ],
        data_quality=75.0,
        quality_validated=True,
    )

    json_data = case.model_dump_json()
    case_loaded = NormalizedCase.model_validate_json(json_data)
"""

# Case schemas
from .case import (
    FindingKind,
    Progression,
    OnsetPhase,
    LabInterpretation,
    Sex,
    Finding,
    LabResult,
    ImagingFinding,
    Demographics,
    NormalizedCase,
)

# Diagnosis schemas
from .diagnosis import (
    UrgencyLevel,
    EvidenceClass,
    UncertaintySource,
    DiseaseCandidate,
    ConfidenceInterval,
    UncertaintyBreakdown,
    Evidence,
    ReasoningStep,
    Citation,
    ReasoningChain,
    RankedDiagnosis,
    DistinguishingFeature,
    ProcessingMetadata,
    DifferentialDiagnosis,
    Refusal,
)


__all__ = [
    # Case
    "FindingKind",
    "Progression",
    "OnsetPhase",
    "LabInterpretation",
    "Sex",
    "Finding",
    "LabResult",
    "ImagingFinding",
    "Demographics",
    "NormalizedCase",

    # Diagnosis
    "UrgencyLevel",
    "EvidenceClass",
    "UncertaintySource",
    "DiseaseCandidate",
    "ConfidenceInterval",
    "UncertaintyBreakdown",
    "Evidence",
    "ReasoningStep",
    "Citation",
    "ReasoningChain",
    "RankedDiagnosis",
    "DistinguishingFeature",
    "ProcessingMetadata",
    "DifferentialDiagnosis",
    "Refusal",
]
