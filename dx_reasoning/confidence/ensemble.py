"""
DxReasoning — Ансамбль стратегій скорингу

Комбінування: зважене арифметичне середнє нормалізованих
правдоподібностей по стратегіях, що повернули значення.

Для кожної стратегії:
    L_s(d) = score_s(d) / Σ_d' score_s(d')

Комбінована правдоподібність:
    L(d) = Σ_s w_s · L_s(d) / Σ_s w_s    (по s, що оцінили d)

Розбіжність моделей: зважене стандартне відхилення
апостеріорних prior · L_s, ренормалізованих по когорті.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from dx_reasoning.knowledge import KnowledgeSnapshot
from dx_reasoning.schemas import DiseaseCandidate, NormalizedCase

from .strategies import ScoringStrategy


@dataclass
class EnsembleResult:
    """Результат ансамблю для когорти (масиви вирівняні з disease_ids)"""
    disease_ids: List[str]
    likelihood: np.ndarray                      # NaN де жодна стратегія не оцінила
    strategy_likelihoods: Dict[str, np.ndarray] = field(default_factory=dict)

    def valid_mask(self) -> np.ndarray:
        """Кандидати з додатною комбінованою правдоподібністю"""
        return np.nan_to_num(self.likelihood, nan=0.0) > 0

    def scores_for(self, disease_id: str) -> Dict[str, float]:
        """Нормалізовані правдоподібності стратегій для одного кандидата"""
        i = self.disease_ids.index(disease_id)
        return {
            name: float(values[i])
            for name, values in self.strategy_likelihoods.items()
            if not np.isnan(values[i])
        }


class WeightedMeanEnsemble:
    """
    Зважене середнє стратегій.

    Приклад використання:
        ensemble = WeightedMeanEnsemble(default_strategies(), {"frequency": 2.0})
        result = ensemble.evaluate(candidates, case, snapshot)
        posteriors = ensemble.strategy_posteriors(result, prior)
    """

    def __init__(
        self,
        strategies: Sequence[ScoringStrategy],
        weights: Optional[Mapping[str, float]] = None
    ):
        if not strategies:
            raise ValueError("Ensemble needs at least one scoring strategy")

        self.strategies = list(strategies)
        weights = weights or {}
        self.weights: Dict[str, float] = {
            s.name: float(weights.get(s.name, 1.0)) for s in self.strategies
        }

    @property
    def strategy_names(self) -> List[str]:
        return [s.name for s in self.strategies]

    def evaluate(
        self,
        candidates: Sequence[DiseaseCandidate],
        profile: NormalizedCase,
        snapshot: KnowledgeSnapshot
    ) -> EnsembleResult:
        """Обчислити нормалізовані та комбіновану правдоподібності"""
        disease_ids = [c.disease_id for c in candidates]
        n = len(disease_ids)

        strategy_likelihoods: Dict[str, np.ndarray] = {}
        for strategy in self.strategies:
            if self.weights[strategy.name] <= 0:
                continue

            raw = strategy.score_batch(candidates, profile, snapshot)
            values = np.array(
                [np.nan if raw.get(d) is None else max(float(raw[d]), 0.0) for d in disease_ids],
                dtype=np.float64,
            )

            total = np.nansum(values)
            if total <= 0:
                continue
            strategy_likelihoods[strategy.name] = values / total

        weighted_sum = np.zeros(n)
        weight_total = np.zeros(n)
        for name, values in strategy_likelihoods.items():
            present = ~np.isnan(values)
            weighted_sum[present] += self.weights[name] * values[present]
            weight_total[present] += self.weights[name]

        with np.errstate(invalid="ignore", divide="ignore"):
            likelihood = np.where(weight_total > 0, weighted_sum / weight_total, np.nan)

        return EnsembleResult(
            disease_ids=disease_ids,
            likelihood=likelihood,
            strategy_likelihoods=strategy_likelihoods,
        )

    def strategy_posteriors(
        self,
        result: EnsembleResult,
        prior: np.ndarray,
        mask: Optional[np.ndarray] = None
    ) -> Dict[str, np.ndarray]:
        """
        Апостеріорні ймовірності кожної стратегії окремо.

        Args:
            result: Результат evaluate()
            prior: Prior для кожного кандидата
            mask: Кандидати, що лишаються в когорті

        Returns:
            {name: posterior} з NaN там, де стратегія не оцінила кандидата
        """
        if mask is None:
            mask = np.ones(len(result.disease_ids), dtype=bool)

        posteriors = {}
        for name, values in result.strategy_likelihoods.items():
            joint = np.where(mask, prior * values, np.nan)
            total = np.nansum(joint)
            if total <= 0:
                continue
            posteriors[name] = joint / total
        return posteriors

    def disagreement(self, posteriors: Mapping[str, np.ndarray], size: int) -> np.ndarray:
        """Зважене стандартне відхилення апостеріорних по стратегіях"""
        if not posteriors:
            return np.zeros(size)

        names = list(posteriors)
        stacked = np.vstack([posteriors[name] for name in names])
        weights = np.array([self.weights[name] for name in names])[:, None]

        present = ~np.isnan(stacked)
        w = np.where(present, weights, 0.0)
        values = np.nan_to_num(stacked, nan=0.0)

        w_total = w.sum(axis=0)
        safe_total = np.where(w_total > 0, w_total, 1.0)
        mean = (w * values).sum(axis=0) / safe_total
        variance = (w * (values - mean) ** 2).sum(axis=0) / safe_total
        return np.where(w_total > 0, np.sqrt(variance), 0.0)

    def __repr__(self) -> str:
        return f"WeightedMeanEnsemble(weights={self.weights})"
