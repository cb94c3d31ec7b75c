"""
DxReasoning — Стратегії скорингу

Спільний інтерфейс ScoringStrategy: сира правдоподібність
кандидата для випадку (або None, якщо стратегія не може оцінити).

Реалізації:
- RawMatchStrategy: нормалізований сирий score відповідності
- FrequencyStrategy: геометричне середнє P(f|d) з нижньою межею
- RuleBasedStrategy: покриття ключових ознак зі штрафом за виключні
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

import numpy as np

from dx_reasoning.config import ConfidenceConfig
from dx_reasoning.knowledge import KnowledgeSnapshot
from dx_reasoning.schemas import DiseaseCandidate, NormalizedCase


class ScoringStrategy(ABC):
    """
    Одна модель скорингу за спільним інтерфейсом правдоподібності.

    Значення правдоподібності не мусять бути ймовірностями: ансамбль
    нормалізує їх по когорті кандидатів перед комбінуванням.
    """

    name: str = "strategy"

    @abstractmethod
    def score(
        self,
        candidate: DiseaseCandidate,
        profile: NormalizedCase,
        snapshot: KnowledgeSnapshot
    ) -> Optional[float]:
        """Сира правдоподібність >= 0 або None"""

    def score_batch(
        self,
        candidates: Sequence[DiseaseCandidate],
        profile: NormalizedCase,
        snapshot: KnowledgeSnapshot
    ) -> Dict[str, Optional[float]]:
        """Оцінити всю когорту (перевизначається, якщо є дешевший шлях)"""
        return {
            c.disease_id: self.score(c, profile, snapshot)
            for c in candidates
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class RawMatchStrategy(ScoringStrategy):
    """Правдоподібність = сирий score генератора"""

    name = "raw_match"

    def score(self, candidate, profile, snapshot):
        return candidate.raw_score if candidate.raw_score > 0 else None


class FrequencyStrategy(ScoringStrategy):
    """
    Наївний Байєс по знахідках: геометричне середнє P(f|d).

    Знахідки без асоціації отримують floor, виключні ще менше
    (floor / 2), щоб одна відсутня ознака не обнуляла добуток.
    """

    name = "frequency"

    def __init__(self, floor: float = 0.02):
        self.floor = floor

    def score(self, candidate, profile, snapshot):
        findings = profile.all_findings()
        if not findings:
            return None

        log_terms = []
        for finding in findings:
            association = snapshot.association(finding.code, candidate.disease_id)
            if association is None:
                p = self.floor
            elif association.exclusionary:
                p = self.floor / 2
            else:
                p = max(association.frequency, self.floor)
            log_terms.append(np.log(p))

        return float(np.exp(np.mean(log_terms)))


class RuleBasedStrategy(ScoringStrategy):
    """
    Покриття ключових ознак діагнозу.

    likelihood = (matched_core + 1) / (n_core + 2) × penalty ^ n_exclusionary
    """

    name = "rule_based"

    def __init__(self, core_frequency: float = 0.5, exclusion_penalty: float = 0.3):
        self.core_frequency = core_frequency
        self.exclusion_penalty = exclusion_penalty

    def score(self, candidate, profile, snapshot):
        entry = snapshot.disease(candidate.disease_id)
        core_codes = {a.finding_code for a in entry.core_associations(self.core_frequency)}
        case_codes = set(profile.finding_codes)

        matched = len(core_codes & case_codes)
        n_exclusionary = sum(
            1 for code in case_codes
            if code in entry.associations and entry.associations[code].exclusionary
        )

        # Немає ні ключових ознак, ні виключних знахідок: правило не застосовне
        if not core_codes and not n_exclusionary:
            return None

        likelihood = (matched + 1) / (len(core_codes) + 2)
        return likelihood * (self.exclusion_penalty ** n_exclusionary)


def default_strategies(config: Optional[ConfidenceConfig] = None) -> List[ScoringStrategy]:
    """Стандартний набір стратегій (без нейронної)"""
    config = config or ConfidenceConfig()
    return [
        RawMatchStrategy(),
        FrequencyStrategy(floor=config.frequency_floor),
        RuleBasedStrategy(
            core_frequency=config.core_frequency,
            exclusion_penalty=config.exclusion_penalty,
        ),
    ]
