"""
DxReasoning — Confidence Calculator

Калібрована точкова оцінка та 95% інтервал для кожного кандидата.

Алгоритм:
1. Prior = prevalence ** prior_exponent (пом'якшена поширеність)
2. Likelihood = ансамбль стратегій (зважене середнє)
3. Posterior = prior × likelihood, ренормалізація по когорті
4. Калібрування (identity / temperature / platt) → point = 100 × p
5. Напівширина = base + quality_span × (1 − q/100)
                + disagreement_scale × 100 × std(стратегії)

Вироджені кандидати (немає додатної правдоподібності) відкидаються
до скорингу і не отримують 0.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from dx_reasoning.config import ConfidenceConfig
from dx_reasoning.knowledge import KnowledgeSnapshot
from dx_reasoning.schemas import (
    ConfidenceInterval,
    DiseaseCandidate,
    NormalizedCase,
    UncertaintyBreakdown,
)
from dx_reasoning.utils import InsufficientEvidenceError, get_logger

from .calibration import Calibrator, build_calibrator
from .ensemble import WeightedMeanEnsemble
from .strategies import ScoringStrategy, default_strategies

logger = get_logger(__name__)


@dataclass(frozen=True)
class ScoredCandidate:
    """Кандидат з каліброваною впевненістю"""
    candidate: DiseaseCandidate
    confidence: ConfidenceInterval
    uncertainty: UncertaintyBreakdown
    strategy_scores: Dict[str, float] = field(default_factory=dict)

    @property
    def disease_id(self) -> str:
        return self.candidate.disease_id

    @property
    def point(self) -> float:
        return self.confidence.point


class ConfidenceCalculator:
    """
    Розрахунок впевненості для когорти кандидатів.

    Приклад використання:
        calculator = ConfidenceCalculator(config.confidence)
        scored = calculator.score_all(candidates, case, snapshot)

        for s in scored:
            ci = s.confidence
            print(f"{s.disease_id}: {ci.point:.1f}% [{ci.lower:.1f}, {ci.upper:.1f}]")
    """

    def __init__(
        self,
        config: Optional[ConfidenceConfig] = None,
        strategies: Optional[Sequence[ScoringStrategy]] = None,
        calibrator: Optional[Calibrator] = None
    ):
        """
        Args:
            config: Конфігурація впевненості
            strategies: Стратегії скорингу (за замовчуванням raw_match,
                        frequency, rule_based)
            calibrator: Калібратор (за замовчуванням з config)
        """
        self.config = config or ConfidenceConfig()
        self.ensemble = WeightedMeanEnsemble(
            strategies or default_strategies(self.config),
            self.config.strategy_weights,
        )
        self.calibrator = calibrator or build_calibrator(self.config)

    @property
    def calibration_method(self) -> str:
        return self.calibrator.describe()

    def prior(self, prevalence: float) -> float:
        """Пом'якшений prior поширеності"""
        return float(max(prevalence, 1e-12) ** self.config.prior_exponent)

    def uncertainty_terms(self, data_quality: float, disagreement: float) -> UncertaintyBreakdown:
        """
        Внески джерел невизначеності в напівширину інтервалу.

        prevalence_prior тут 0: його заповнює score_all().
        """
        return UncertaintyBreakdown(
            data_quality=self.config.quality_span * (1.0 - data_quality / 100.0),
            model_disagreement=self.config.disagreement_scale * 100.0 * disagreement,
        )

    def score_all(
        self,
        candidates: Sequence[DiseaseCandidate],
        profile: NormalizedCase,
        snapshot: KnowledgeSnapshot
    ) -> List[ScoredCandidate]:
        """
        Оцінити всю когорту.

        Returns:
            Список ScoredCandidate (без вироджених), у порядку входу
        """
        cohort = [c for c in candidates if c.raw_score > 0]
        for c in candidates:
            if c.raw_score <= 0:
                logger.debug(f"Dropped degenerate candidate {c.disease_id}: raw_score={c.raw_score}")

        if not cohort:
            return []

        result = self.ensemble.evaluate(cohort, profile, snapshot)
        mask = result.valid_mask()

        for c, keep in zip(cohort, mask):
            if not keep:
                logger.debug(f"Dropped degenerate candidate {c.disease_id}: no positive likelihood")

        if not mask.any():
            return []

        prior = np.array([self.prior(c.prevalence) for c in cohort])
        likelihood = np.where(mask, np.nan_to_num(result.likelihood, nan=0.0), 0.0)

        joint = prior * likelihood
        posterior = joint / joint.sum()
        likelihood_only = likelihood / likelihood.sum()

        calibrated = np.zeros_like(posterior)
        calibrated[mask] = self.calibrator.calibrate(posterior[mask])

        strategy_posteriors = self.ensemble.strategy_posteriors(result, prior, mask)
        disagreement = self.ensemble.disagreement(strategy_posteriors, len(cohort))

        scored = []
        for i, candidate in enumerate(cohort):
            if not mask[i]:
                continue

            point = float(np.clip(100.0 * calibrated[i], 0.0, 100.0))
            breakdown = self.uncertainty_terms(profile.data_quality, float(disagreement[i]))
            breakdown = breakdown.model_copy(update={
                "prevalence_prior": abs(float(posterior[i] - likelihood_only[i])) * 100.0
            })

            hw = (
                self.config.base_half_width
                + breakdown.data_quality
                + breakdown.model_disagreement
            )

            interval = ConfidenceInterval(
                point=point,
                lower=max(0.0, point - hw),
                upper=min(100.0, point + hw),
            )

            scored.append(ScoredCandidate(
                candidate=candidate,
                confidence=interval,
                uncertainty=breakdown,
                strategy_scores=result.scores_for(candidate.disease_id),
            ))

        return scored

    def score(
        self,
        candidate: DiseaseCandidate,
        profile: NormalizedCase,
        snapshot: KnowledgeSnapshot,
        cohort: Optional[Sequence[DiseaseCandidate]] = None
    ) -> ConfidenceInterval:
        """
        Інтервал для одного кандидата, ренормалізований по когорті.

        Args:
            candidate: Кандидат
            profile: Випадок
            snapshot: Закріплений знімок
            cohort: Всі згенеровані кандидати (кандидат додається, якщо відсутній)

        Raises:
            InsufficientEvidenceError: кандидат вироджений
        """
        cohort = list(cohort or [])
        if candidate.disease_id not in {c.disease_id for c in cohort}:
            cohort.append(candidate)

        for scored in self.score_all(cohort, profile, snapshot):
            if scored.disease_id == candidate.disease_id:
                return scored.confidence

        raise InsufficientEvidenceError(
            f"Candidate {candidate.disease_id} has a degenerate likelihood",
            details={"disease_id": candidate.disease_id}
        )

    def __repr__(self) -> str:
        return (
            f"ConfidenceCalculator(strategies={self.ensemble.strategy_names}, "
            f"calibration={self.calibration_method})"
        )
