"""
DxReasoning — Candidate Generator

Відбір діагнозів-кандидатів за профілем знахідок.
Чиста функція від випадку та закріпленого знімка бази знань.

Pipeline:
1. Випадок → всі знахідки (симптоми, лабораторія, візуалізація)
2. Знахідка → асоціації зі знімка (frequency × specificity)
3. Корекція ваг за часовими патернами та severity
4. Сума ваг по діагнозу / кількість знахідок → raw_score
5. Діагнози без жодної позитивної асоціації відкидаються
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from dx_reasoning.config import GeneratorConfig
from dx_reasoning.knowledge import KnowledgeSnapshot
from dx_reasoning.schemas import DiseaseCandidate, NormalizedCase
from dx_reasoning.utils import InputQualityError, get_logger

from .temporal import assign_onset_phases, severity_factor, temporal_factor

logger = get_logger(__name__)


@dataclass
class GenerationResult:
    """
    Результат генерації кандидатів.

    Містить кандидатів та вектор сирих score для аналізу.
    """
    candidates: Tuple[DiseaseCandidate, ...]
    raw_scores: Dict[str, float]
    n_findings: int
    snapshot_version: str

    @property
    def candidate_count(self) -> int:
        return len(self.candidates)

    def contains(self, disease_id: str) -> bool:
        return disease_id in self.raw_scores

    def get_top_candidates(self, n: int = 10) -> List[DiseaseCandidate]:
        """Топ-N за raw_score (лише для діагностики, не ранжування)"""
        return sorted(self.candidates, key=lambda c: (-c.raw_score, c.disease_id))[:n]


class CandidateGenerator:
    """
    Генератор діагнозів-кандидатів.

    Приклад використання:
        generator = CandidateGenerator()
        snapshot = registry.pin()

        candidates = generator.generate(case, snapshot)
        for c in candidates:
            print(c.disease_id, c.raw_score)
    """

    def __init__(self, config: Optional[GeneratorConfig] = None):
        """
        Args:
            config: Конфігурація генератора
        """
        self.config = config or GeneratorConfig()

    def generate(
        self,
        profile: NormalizedCase,
        snapshot: KnowledgeSnapshot
    ) -> Tuple[DiseaseCandidate, ...]:
        """
        Відібрати кандидатів (невпорядкована множина, повертається
        відсортованою за disease_id для детермінованості).

        Args:
            profile: Нормалізований випадок (після upstream-валідації)
            snapshot: Закріплений знімок бази знань

        Returns:
            Кортеж DiseaseCandidate

        Raises:
            InputQualityError: випадок не має прапорця валідації
            KnowledgeUnavailableError: знімок недоступний
        """
        return self.generate_detailed(profile, snapshot).candidates

    def generate_detailed(
        self,
        profile: NormalizedCase,
        snapshot: KnowledgeSnapshot
    ) -> GenerationResult:
        """Те саме, що generate(), але з вектором сирих score"""
        if not profile.quality_validated:
            raise InputQualityError(
                f"Case {profile.case_id} has not passed upstream quality validation",
                quality_score=profile.data_quality,
            )

        raw_scores = self.raw_scores(profile, snapshot)

        candidates = []
        for disease_id in sorted(raw_scores):
            entry = snapshot.disease(disease_id)
            candidates.append(DiseaseCandidate(
                disease_id=disease_id,
                name=entry.name,
                raw_score=raw_scores[disease_id],
                prevalence=entry.prevalence,
                urgency=entry.urgency,
            ))

        logger.debug(
            f"Case {profile.case_id}: {len(candidates)} candidates "
            f"from {profile.n_findings} findings"
        )

        return GenerationResult(
            candidates=tuple(candidates),
            raw_scores=raw_scores,
            n_findings=profile.n_findings,
            snapshot_version=snapshot.snapshot_version(),
        )

    def raw_scores(
        self,
        profile: NormalizedCase,
        snapshot: KnowledgeSnapshot
    ) -> Dict[str, float]:
        """
        Обчислити вектор сирих score {disease_id: score > 0}.

        Сума зважених асоціацій, нормалізована кількістю знахідок,
        щоб випадки з великою кількістю знахідок не отримували перевагу.
        """
        findings = profile.all_findings()
        if not findings:
            return {}

        phases = assign_onset_phases(findings)
        totals: Dict[str, float] = {}

        for finding in findings:
            sev = severity_factor(finding, self.config.severity_influence)

            for association in snapshot.lookup(finding.code):
                # Виключні асоціації ніколи не додають score
                if association.exclusionary:
                    continue

                weight = association.weight * sev * temporal_factor(
                    association,
                    finding,
                    phases[finding.code],
                    self.config.temporal_bonus,
                    self.config.temporal_penalty,
                )
                totals[association.disease_id] = totals.get(association.disease_id, 0.0) + weight

        n = len(findings)
        return {
            disease_id: total / n
            for disease_id, total in totals.items()
            if total > 0
        }

    def __repr__(self) -> str:
        return (
            f"CandidateGenerator(temporal_bonus={self.config.temporal_bonus}, "
            f"temporal_penalty={self.config.temporal_penalty})"
        )
