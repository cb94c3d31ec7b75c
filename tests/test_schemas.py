"""
Тести для модуля schemas

Запуск: pytest tests/test_schemas.py -v
"""

import pytest
from pydantic import ValidationError


def test_finding():
    """Тест моделі Finding"""
    from dx_reasoning.schemas import Finding, FindingKind, Progression

    finding = Finding(code="  Joint_Hypermobility ", severity=6)

    assert finding.code == "joint_hypermobility"  # нормалізовано
    assert finding.kind == FindingKind.SYMPTOM
    assert finding.progression == Progression.UNKNOWN
    assert finding.onset_days is None

    with pytest.raises(ValidationError):
        Finding(code="fever", severity=11)

    with pytest.raises(ValidationError):
        Finding(code="   ")

    print(f"✓ Finding: {finding.code}, severity={finding.severity}")


def test_lab_and_imaging_findings():
    """Тест: лабораторія та візуалізація як знахідки"""
    from dx_reasoning.schemas import FindingKind, ImagingFinding, LabResult

    lab = LabResult(code="D_Dimer", value=1.8, interpretation="high")
    assert lab.finding_code == "d_dimer:high"
    assert lab.as_finding().kind == FindingKind.LAB

    imaging = ImagingFinding(code="wedge_shaped_opacity", modality="CT")
    assert imaging.as_finding().code == "wedge_shaped_opacity"
    assert imaging.as_finding().kind == FindingKind.IMAGING

    print(f"✓ Lab finding code: {lab.finding_code}")


def test_normalized_case(chest_pain_case):
    """Тест моделі NormalizedCase"""
    assert chest_pain_case.n_findings == 4
    assert chest_pain_case.finding_codes[-1] == "d_dimer:high"

    with pytest.raises(ValidationError):
        chest_pain_case.case_id = "other"  # frozen

    print(f"✓ Case: {chest_pain_case.case_id}, findings={chest_pain_case.finding_codes}")


def test_duplicate_codes_rejected():
    """Тест: коди знахідок унікальні в межах випадку"""
    from dx_reasoning.schemas import Finding, NormalizedCase

    with pytest.raises(ValidationError):
        NormalizedCase(
            case_id="DUP",
            findings=[Finding(code="fever"), Finding(code="FEVER")],
            data_quality=80,
        )

    print("✓ Duplicate finding codes rejected")


def test_confidence_interval():
    """Тест інваріанту lower <= point <= upper"""
    from dx_reasoning.schemas import ConfidenceInterval

    ci = ConfidenceInterval(point=40.0, lower=30.0, upper=52.0)
    assert ci.half_width == pytest.approx(11.0)
    assert ci.level == 0.95

    with pytest.raises(ValidationError):
        ConfidenceInterval(point=40.0, lower=45.0, upper=50.0)

    with pytest.raises(ValidationError):
        ConfidenceInterval(point=40.0, lower=30.0, upper=101.0)

    print(f"✓ Interval: {ci.point} [{ci.lower}, {ci.upper}]")


def test_uncertainty_dominant_source():
    """Тест домінантного джерела невизначеності"""
    from dx_reasoning.schemas import UncertaintyBreakdown, UncertaintySource

    breakdown = UncertaintyBreakdown(data_quality=3.0, model_disagreement=8.0, prevalence_prior=1.0)
    assert breakdown.dominant_source == UncertaintySource.MODEL_DISAGREEMENT

    print(f"✓ Dominant source: {breakdown.dominant_source.value}")


def test_urgency_priority():
    """Тест порядку терміновості"""
    from dx_reasoning.schemas import UrgencyLevel

    assert UrgencyLevel.CRITICAL.priority > UrgencyLevel.HIGH.priority
    assert UrgencyLevel.HIGH.priority > UrgencyLevel.MODERATE.priority
    assert UrgencyLevel.MODERATE.priority > UrgencyLevel.LOW.priority

    print("✓ critical > high > moderate > low")


def test_differential_requires_dense_ranks(make_scored):
    """Тест: ранги щільні та починаються з 1"""
    from dx_reasoning.schemas import DifferentialDiagnosis, ProcessingMetadata, RankedDiagnosis

    scored = make_scored("influenza", 40.0)
    metadata = ProcessingMetadata(
        snapshot_version="v1", model_version="m1", calibration_method="identity"
    )

    def entry(rank):
        return RankedDiagnosis(
            candidate=scored.candidate,
            confidence=scored.confidence,
            urgency=scored.candidate.urgency,
            rank=rank,
        )

    ok = DifferentialDiagnosis(case_id="C1", diagnoses=[entry(1), entry(2)], metadata=metadata)
    assert ok.top_diagnosis.rank == 1
    assert ok.to_summary()["entries"] == 2

    with pytest.raises(ValidationError):
        DifferentialDiagnosis(case_id="C1", diagnoses=[entry(1), entry(3)], metadata=metadata)

    with pytest.raises(ValidationError):
        DifferentialDiagnosis(case_id="C1", diagnoses=[], metadata=metadata)

    print("✓ Dense ranks enforced")


def test_refusal_from_error():
    """Тест конвертації помилки у Refusal"""
    from dx_reasoning.utils import InputQualityError

    error = InputQualityError("quality too low", quality_score=25.0, threshold=40.0)
    refusal = error.to_refusal()

    assert refusal.reason_code == "INPUT_QUALITY_INSUFFICIENT"
    assert refusal.details["quality_score"] == 25.0
    assert "specialist" in refusal.clinical_message

    print(f"✓ Refusal: {refusal.reason_code}")
