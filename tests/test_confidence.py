"""
Тести для модуля confidence

Запуск: pytest tests/test_confidence.py -v
"""

import numpy as np
import pytest

from dx_reasoning.confidence import ScoringStrategy


class FixedStrategy(ScoringStrategy):
    """Стратегія з наперед заданими правдоподібностями"""

    def __init__(self, name, values):
        self.name = name
        self.values = values

    def score(self, candidate, profile, snapshot):
        return self.values.get(candidate.disease_id)


def _candidate(disease_id, raw_score=0.5, prevalence=0.01):
    from dx_reasoning.schemas import DiseaseCandidate

    return DiseaseCandidate(
        disease_id=disease_id, name=disease_id, raw_score=raw_score, prevalence=prevalence
    )


def _scored(pipeline_config, case, snapshot, **kwargs):
    from dx_reasoning.candidate_generator import CandidateGenerator
    from dx_reasoning.confidence import ConfidenceCalculator

    candidates = CandidateGenerator(pipeline_config.generator).generate(case, snapshot)
    calculator = ConfidenceCalculator(pipeline_config.confidence, **kwargs)
    return calculator.score_all(candidates, case, snapshot)


def test_points_are_renormalized(config, snapshot, chest_pain_case):
    """Тест: точкові оцінки порівнянні (сума = 100)"""
    scored = _scored(config, chest_pain_case, snapshot)

    total = sum(s.point for s in scored)
    assert total == pytest.approx(100.0, abs=1e-6)

    for s in scored:
        ci = s.confidence
        assert 0.0 <= ci.lower <= ci.point <= ci.upper <= 100.0

    top = max(scored, key=lambda s: s.point)
    print(f"✓ Sum of points = {total:.3f}, top = {top.disease_id} ({top.point:.1f}%)")


def test_interval_widens_as_quality_falls(config, snapshot, chest_pain_case):
    """Тест: нижча якість даних → ширший інтервал, та сама точкова оцінка"""
    high = {s.disease_id: s for s in _scored(config, chest_pain_case, snapshot)}
    low_case = chest_pain_case.model_copy(update={"data_quality": 45.0})
    low = {s.disease_id: s for s in _scored(config, low_case, snapshot)}

    for disease_id, s in high.items():
        assert low[disease_id].point == pytest.approx(s.point)
        assert low[disease_id].uncertainty.data_quality > s.uncertainty.data_quality
        assert low[disease_id].confidence.upper >= s.confidence.upper
        assert low[disease_id].confidence.lower <= s.confidence.lower

    print("✓ Lower quality widens intervals")


def test_uncertainty_terms_monotonic():
    """Тест монотонності внесків невизначеності"""
    from dx_reasoning.confidence import ConfidenceCalculator

    calculator = ConfidenceCalculator()

    a = calculator.uncertainty_terms(data_quality=90, disagreement=0.0)
    b = calculator.uncertainty_terms(data_quality=50, disagreement=0.0)
    c = calculator.uncertainty_terms(data_quality=50, disagreement=0.1)

    assert b.data_quality > a.data_quality
    assert c.model_disagreement > b.model_disagreement
    assert a.model_disagreement == 0.0

    print(f"✓ Terms: q90={a.data_quality:.1f}, q50={b.data_quality:.1f}, d=0.1 → {c.model_disagreement:.1f}")


def test_disagreement_widens_interval(snapshot, chest_pain_case):
    """Тест: розбіжність стратегій розширює інтервал"""
    from dx_reasoning.confidence import ConfidenceCalculator

    cohort = [_candidate("a"), _candidate("b")]

    agree = ConfidenceCalculator(strategies=[
        FixedStrategy("first", {"a": 0.8, "b": 0.2}),
        FixedStrategy("second", {"a": 0.8, "b": 0.2}),
    ]).score_all(cohort, chest_pain_case, snapshot)

    disagree = ConfidenceCalculator(strategies=[
        FixedStrategy("first", {"a": 0.8, "b": 0.2}),
        FixedStrategy("second", {"a": 0.2, "b": 0.8}),
    ]).score_all(cohort, chest_pain_case, snapshot)

    assert agree[0].uncertainty.model_disagreement == pytest.approx(0.0, abs=1e-9)
    assert disagree[0].uncertainty.model_disagreement > 0.0

    print(f"✓ Disagreement: {disagree[0].uncertainty.model_disagreement:.1f} pp")


def test_degenerate_candidates_dropped(snapshot, chest_pain_case):
    """Тест: вироджені кандидати відкидаються, а не отримують 0"""
    from dx_reasoning.confidence import ConfidenceCalculator
    from dx_reasoning.utils import InsufficientEvidenceError

    calculator = ConfidenceCalculator(strategies=[
        FixedStrategy("fixed", {"a": 0.6, "b": None, "c": 0.0, "d": 0.4}),
    ])
    cohort = [_candidate("a"), _candidate("b"), _candidate("c"), _candidate("d", raw_score=0.0)]

    scored = calculator.score_all(cohort, chest_pain_case, snapshot)
    assert [s.disease_id for s in scored] == ["a"]
    assert scored[0].point == pytest.approx(100.0)

    with pytest.raises(InsufficientEvidenceError):
        calculator.score(_candidate("b"), chest_pain_case, snapshot, cohort=cohort)

    assert calculator.score_all([], chest_pain_case, snapshot) == []

    print("✓ Degenerate candidates dropped")


def test_single_score_uses_cohort(snapshot, chest_pain_case):
    """Тест score() для одного кандидата з ренормалізацією по когорті"""
    from dx_reasoning.confidence import ConfidenceCalculator

    calculator = ConfidenceCalculator(strategies=[FixedStrategy("fixed", {"a": 0.75, "b": 0.25})])
    cohort = [_candidate("a"), _candidate("b")]

    ci = calculator.score(cohort[0], chest_pain_case, snapshot, cohort=cohort)
    assert ci.point == pytest.approx(75.0)

    alone = calculator.score(cohort[0], chest_pain_case, snapshot)
    assert alone.point == pytest.approx(100.0)

    print(f"✓ score(): {ci.point:.1f}%")


def test_prior_tempers_prevalence(snapshot, chest_pain_case):
    """Тест: поширеність впливає на posterior через пом'якшений prior"""
    from dx_reasoning.confidence import ConfidenceCalculator

    calculator = ConfidenceCalculator(strategies=[FixedStrategy("fixed", {"common": 0.5, "rare": 0.5})])
    cohort = [_candidate("common", prevalence=0.01), _candidate("rare", prevalence=0.0001)]

    scored = {s.disease_id: s for s in calculator.score_all(cohort, chest_pain_case, snapshot)}

    # prior ratio = (0.01 / 0.0001) ** 0.25 = sqrt(10)
    ratio = scored["common"].point / scored["rare"].point
    assert ratio == pytest.approx(10 ** 0.5, rel=1e-6)
    assert scored["rare"].uncertainty.prevalence_prior > 0

    print(f"✓ Prior ratio: {ratio:.3f}")


def test_default_strategies(snapshot, chest_pain_case):
    """Тест стандартних стратегій"""
    from dx_reasoning.confidence import (
        FrequencyStrategy,
        RawMatchStrategy,
        RuleBasedStrategy,
        default_strategies,
    )

    pe = _candidate("pulmonary_embolism", raw_score=0.3, prevalence=6e-4)
    costo = _candidate("costochondritis", raw_score=0.2)

    assert RawMatchStrategy().score(pe, chest_pain_case, snapshot) == 0.3

    freq = FrequencyStrategy(floor=0.02)
    assert freq.score(pe, chest_pain_case, snapshot) > freq.score(costo, chest_pain_case, snapshot)

    rules = RuleBasedStrategy(core_frequency=0.5, exclusion_penalty=0.3)
    # PE: core = pleuritic_chest_pain, dyspnea, tachycardia, d_dimer:high, всі присутні
    assert rules.score(pe, chest_pain_case, snapshot) == pytest.approx(5 / 6)

    names = [s.name for s in default_strategies()]
    assert names == ["raw_match", "frequency", "rule_based"]

    print(f"✓ Strategies: {names}")


def test_rule_based_exclusion_penalty(snapshot):
    """Тест штрафу за виключну знахідку"""
    from dx_reasoning.confidence import RuleBasedStrategy
    from dx_reasoning.schemas import Finding, NormalizedCase

    case = NormalizedCase(
        case_id="COSTO",
        findings=[Finding(code="chest_wall_tenderness"), Finding(code="fever")],
        data_quality=80,
        quality_validated=True,
    )
    costo = _candidate("costochondritis")

    # core = pleuritic_chest_pain, chest_wall_tenderness; matched 1, exclusionary 1
    expected = (1 + 1) / (2 + 2) * 0.3
    assert RuleBasedStrategy().score(costo, case, snapshot) == pytest.approx(expected)

    print(f"✓ Rule-based with exclusion: {expected:.3f}")


# =============================================================================
# CALIBRATION
# =============================================================================

def test_temperature_calibrator():
    """Тест temperature scaling"""
    from dx_reasoning.confidence import TemperatureCalibrator

    p = np.array([0.8, 0.2])

    assert TemperatureCalibrator(1.0).calibrate(p) == pytest.approx(p)

    smooth = TemperatureCalibrator(2.0).calibrate(p)
    assert smooth[0] < 0.8
    assert smooth.sum() == pytest.approx(1.0)

    with pytest.raises(ValueError):
        TemperatureCalibrator(0.0)

    print(f"✓ T=2: {smooth}")


def test_temperature_fit_sharpens_underconfident():
    """Тест: недовпевнені передбачення → T < 1"""
    from dx_reasoning.confidence import TemperatureCalibrator

    cohorts = [np.array([0.6, 0.4])] * 20
    true_indices = [0] * 20

    calibrator = TemperatureCalibrator().fit(cohorts, true_indices)
    assert calibrator.temperature < 1.0

    print(f"✓ Fitted T = {calibrator.temperature:.3f}")


def test_platt_fit_recovers_identity():
    """Тест: вже калібровані передбачення → a ≈ 1, b ≈ 0"""
    from dx_reasoning.confidence import PlattCalibrator

    probabilities = [0.2] * 10 + [0.8] * 10
    outcomes = [1, 1] + [0] * 8 + [1] * 8 + [0, 0]

    calibrator = PlattCalibrator(a=0.5, b=0.5).fit(probabilities, outcomes)
    assert calibrator.a == pytest.approx(1.0, abs=1e-3)
    assert calibrator.b == pytest.approx(0.0, abs=1e-3)

    print(f"✓ Platt: {calibrator.describe()}")


def test_build_calibrator():
    """Тест вибору калібратора з конфігурації"""
    from dx_reasoning.config import CalibrationMethod, ConfidenceConfig
    from dx_reasoning.confidence import (
        IdentityCalibrator,
        PlattCalibrator,
        TemperatureCalibrator,
        build_calibrator,
    )

    assert isinstance(
        build_calibrator(ConfidenceConfig(calibration_method=CalibrationMethod.IDENTITY)),
        IdentityCalibrator,
    )
    assert isinstance(build_calibrator(ConfidenceConfig()), TemperatureCalibrator)
    assert isinstance(
        build_calibrator(ConfidenceConfig(calibration_method=CalibrationMethod.PLATT)),
        PlattCalibrator,
    )

    print("✓ Calibrator factory")


# =============================================================================
# NEURAL STRATEGY
# =============================================================================

def _neural_strategy(snapshot):
    import torch

    from dx_reasoning.confidence import DiagnosisNN, NeuralScoringStrategy
    from dx_reasoning.knowledge import FindingVocabulary

    torch.manual_seed(0)
    vocab = FindingVocabulary.from_snapshot(snapshot)
    disease_ids = snapshot.disease_ids()
    model = DiagnosisNN(n_findings=vocab.size, n_diseases=len(disease_ids), hidden_dims=[16, 8])
    return NeuralScoringStrategy(model, vocab, disease_ids)


def test_neural_strategy_scores(snapshot, chest_pain_case):
    """Тест нейронної стратегії (інференс)"""
    from dx_reasoning.schemas import Finding, NormalizedCase

    strategy = _neural_strategy(snapshot)
    cohort = [_candidate("pulmonary_embolism"), _candidate("not_in_model")]

    scores = strategy.score_batch(cohort, chest_pain_case, snapshot)
    assert 0.0 < scores["pulmonary_embolism"] < 1.0
    assert scores["not_in_model"] is None

    unknown = NormalizedCase(
        case_id="U", findings=[Finding(code="purple_toenails")], data_quality=80
    )
    assert strategy.score(cohort[0], unknown, snapshot) is None

    print(f"✓ Neural PE score: {scores['pulmonary_embolism']:.3f}")


def test_neural_checkpoint_roundtrip(snapshot, chest_pain_case, tmp_path):
    """Тест збереження / завантаження checkpoint"""
    from dx_reasoning.confidence import NeuralScoringStrategy
    from dx_reasoning.utils import KnowledgeUnavailableError

    strategy = _neural_strategy(snapshot)
    path = tmp_path / "models" / "dx_nn.pt"
    strategy.save_checkpoint(path)

    loaded = NeuralScoringStrategy.from_checkpoint(path)
    candidate = _candidate("pneumonia")

    assert loaded.score(candidate, chest_pain_case, snapshot) == pytest.approx(
        strategy.score(candidate, chest_pain_case, snapshot), abs=1e-6
    )

    with pytest.raises(KnowledgeUnavailableError):
        NeuralScoringStrategy.from_checkpoint(tmp_path / "missing.pt")

    print("✓ Checkpoint roundtrip")


def test_calculator_with_neural_strategy(config, snapshot, chest_pain_case):
    """Тест ансамблю зі стандартними та нейронною стратегіями"""
    from dx_reasoning.confidence import default_strategies

    strategies = default_strategies(config.confidence) + [_neural_strategy(snapshot)]
    scored = _scored(config, chest_pain_case, snapshot, strategies=strategies)

    assert sum(s.point for s in scored) == pytest.approx(100.0, abs=1e-6)
    assert all("neural" in s.strategy_scores for s in scored)

    print(f"✓ Ensemble with neural strategy: {len(scored)} candidates")
