"""
Тести для модуля evidence

Запуск: pytest tests/test_evidence.py -v
"""

import pytest


def _candidate(snapshot, disease_id):
    from dx_reasoning.schemas import DiseaseCandidate

    entry = snapshot.disease(disease_id)
    return DiseaseCandidate(
        disease_id=disease_id,
        name=entry.name,
        raw_score=0.3,
        prevalence=entry.prevalence,
        urgency=entry.urgency,
    )


def test_classification_is_total(snapshot, chest_pain_case):
    """Тест: кожна знахідка класифікована рівно один раз"""
    from dx_reasoning.evidence import EvidenceClassifier
    from dx_reasoning.schemas import EvidenceClass

    classifier = EvidenceClassifier()

    for disease_id in ("pulmonary_embolism", "costochondritis", "gerd"):
        evidence = classifier.classify(_candidate(snapshot, disease_id), chest_pain_case, snapshot)
        buckets = classifier.partition(evidence)

        assert sorted(e.finding_code for e in evidence) == sorted(chest_pain_case.finding_codes)
        assert sum(len(b) for b in buckets.values()) == chest_pain_case.n_findings
        assert set(buckets) == set(EvidenceClass)

    print("✓ Classification covers all findings")


def test_supporting_weight_includes_temporal_factor(snapshot, chest_pain_case):
    """Тест: погіршення задишки посилює підтримку PE"""
    from dx_reasoning.evidence import EvidenceClassifier
    from dx_reasoning.schemas import EvidenceClass

    evidence = EvidenceClassifier().classify(
        _candidate(snapshot, "pulmonary_embolism"), chest_pain_case, snapshot
    )
    by_code = {e.finding_code: e for e in evidence}

    assert all(e.classification == EvidenceClass.SUPPORTING for e in evidence)
    assert by_code["dyspnea"].weight == pytest.approx(0.8 * 0.4 * 1.25)
    assert by_code["pleuritic_chest_pain"].weight == pytest.approx(0.6 * 0.5)

    print(f"✓ Dyspnea weight: {by_code['dyspnea'].weight:.3f}")


def test_exclusionary_finding_contradicts(snapshot):
    """Тест: гарячка суперечить костохондриту (вага = −specificity)"""
    from dx_reasoning.evidence import EvidenceClassifier
    from dx_reasoning.schemas import EvidenceClass, Finding, NormalizedCase

    case = NormalizedCase(
        case_id="COSTO-FEVER",
        findings=[Finding(code="pleuritic_chest_pain"), Finding(code="fever")],
        data_quality=80,
        quality_validated=True,
    )

    evidence = EvidenceClassifier().classify(_candidate(snapshot, "costochondritis"), case, snapshot)

    assert evidence[0].finding_code == "fever"
    assert evidence[0].classification == EvidenceClass.CONTRADICTING
    assert evidence[0].weight == pytest.approx(-1.0)
    assert evidence[1].classification == EvidenceClass.SUPPORTING

    print("✓ Fever contradicts costochondritis")


def test_low_frequency_contradicts(snapshot, eds_case):
    """Тест: рідкісна для діагнозу знахідка суперечить йому"""
    from dx_reasoning.evidence import EvidenceClassifier
    from dx_reasoning.schemas import EvidenceClass

    evidence = EvidenceClassifier().classify(_candidate(snapshot, "fibromyalgia"), eds_case, snapshot)

    # Впорядковано за |weight|: 0.4, 0.38, 0
    assert [e.finding_code for e in evidence] == [
        "joint_hypermobility", "chronic_pain", "skin_hyperextensibility"
    ]
    assert [e.classification for e in evidence] == [
        EvidenceClass.CONTRADICTING, EvidenceClass.SUPPORTING, EvidenceClass.NEUTRAL
    ]
    assert evidence[0].weight == pytest.approx(-0.4)
    assert evidence[2].weight == 0.0

    print(f"✓ Fibromyalgia evidence: {[round(e.weight, 2) for e in evidence]}")


def test_distinguishing_features(snapshot, chest_pain_case, make_scored):
    """Тест: знахідки, що розрізняють PE та костохондрит"""
    from dx_reasoning.evidence import EvidenceClassifier
    from dx_reasoning.ranker import Ranker
    from dx_reasoning.schemas import EvidenceClass, UrgencyLevel

    ranking = Ranker().rank([
        make_scored("costochondritis", 42.0),
        make_scored("pulmonary_embolism", 38.0, urgency=UrgencyLevel.CRITICAL),
    ])

    classifier = EvidenceClassifier()
    evidence_by_disease = {
        entry.disease_id: classifier.classify(entry.candidate, chest_pain_case, snapshot)
        for entry in ranking.entries
    }

    features = classifier.distinguishing_features(ranking.entries, evidence_by_disease, tie_band=10.0)
    codes = [f.finding_code for f in features]

    assert codes == ["d_dimer:high", "dyspnea", "tachycardia"]
    assert features[0].disease_ids == ("pulmonary_embolism", "costochondritis")
    assert features[0].classifications == (EvidenceClass.SUPPORTING, EvidenceClass.NEUTRAL)

    # Поза tie band відмінностей не шукаємо
    assert classifier.distinguishing_features(ranking.entries, evidence_by_disease, tie_band=1.0) == ()

    print(f"✓ Distinguishing features: {codes}")
