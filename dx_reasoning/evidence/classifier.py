"""
DxReasoning — Evidence Classifier

Кожна знахідка випадку отримує рівно одну класифікацію
відносно кандидата:

- SUPPORTING: документована асоціація, вага = weight × temporal_factor
- CONTRADICTING: виключний маркер (вага = −specificity) або низька
  частота для діагнозу (вага = −(threshold − frequency) / threshold)
- NEUTRAL: асоціації немає, вага 0

Об'єднання трьох груп дорівнює повному набору знахідок.
"""

from itertools import combinations
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from dx_reasoning.candidate_generator import assign_onset_phases, temporal_factor
from dx_reasoning.config import EvidenceConfig, GeneratorConfig
from dx_reasoning.knowledge import KnowledgeSnapshot
from dx_reasoning.schemas import (
    DiseaseCandidate,
    DistinguishingFeature,
    Evidence,
    EvidenceClass,
    NormalizedCase,
    RankedDiagnosis,
)
from dx_reasoning.utils import ChainConstructionError


class EvidenceClassifier:
    """
    Класифікатор доказів.

    Приклад використання:
        classifier = EvidenceClassifier()
        evidence = classifier.classify(candidate, case, snapshot)

        for e in evidence:
            print(e.finding_code, e.classification.value, round(e.weight, 2))
    """

    def __init__(
        self,
        config: Optional[EvidenceConfig] = None,
        generator_config: Optional[GeneratorConfig] = None
    ):
        """
        Args:
            config: Поріг низької частоти
            generator_config: Параметри часових патернів (ті ж, що в генераторі)
        """
        self.config = config or EvidenceConfig()
        self.generator_config = generator_config or GeneratorConfig()

    def classify(
        self,
        candidate: DiseaseCandidate,
        profile: NormalizedCase,
        snapshot: KnowledgeSnapshot
    ) -> Tuple[Evidence, ...]:
        """
        Класифікувати всі знахідки випадку.

        Returns:
            Кортеж Evidence, впорядкований за |weight| (спадання),
            при рівності за порядком знахідок у випадку
        """
        findings = profile.all_findings()
        phases = assign_onset_phases(findings)
        threshold = self.config.low_frequency_threshold

        items = []
        for position, finding in enumerate(findings):
            association = snapshot.association(finding.code, candidate.disease_id)

            if association is None:
                classification, weight = EvidenceClass.NEUTRAL, 0.0
            elif association.exclusionary:
                classification, weight = EvidenceClass.CONTRADICTING, -association.specificity
            elif association.frequency < threshold:
                classification = EvidenceClass.CONTRADICTING
                weight = -(threshold - association.frequency) / threshold
            else:
                classification = EvidenceClass.SUPPORTING
                weight = association.weight * temporal_factor(
                    association,
                    finding,
                    phases[finding.code],
                    self.generator_config.temporal_bonus,
                    self.generator_config.temporal_penalty,
                )

            items.append((position, Evidence(
                finding=finding,
                disease_id=candidate.disease_id,
                classification=classification,
                weight=weight,
            )))

        items.sort(key=lambda item: (-abs(item[1].weight), item[0]))
        evidence = tuple(e for _, e in items)

        if len(evidence) != len(findings):
            raise ChainConstructionError(
                f"Evidence for {candidate.disease_id} does not cover all findings",
                details={"findings": len(findings), "evidence": len(evidence)}
            )
        return evidence

    @staticmethod
    def partition(evidence: Sequence[Evidence]) -> Dict[EvidenceClass, List[Evidence]]:
        """Розкласти докази по класах (порядок зберігається)"""
        buckets: Dict[EvidenceClass, List[Evidence]] = {c: [] for c in EvidenceClass}
        for e in evidence:
            buckets[e.classification].append(e)
        return buckets

    @staticmethod
    def distinguishing_features(
        tied: Sequence[RankedDiagnosis],
        evidence_by_disease: Mapping[str, Sequence[Evidence]],
        tie_band: float
    ) -> Tuple[DistinguishingFeature, ...]:
        """
        Знахідки, що по-різному класифіковані для кандидатів у межах tie band.

        Args:
            tied: Ранжовані діагнози (перевіряються всі пари)
            evidence_by_disease: {disease_id: докази}
            tie_band: Ширина band (процентні пункти)

        Returns:
            Кортеж DistinguishingFeature у порядку рангів та знахідок
        """
        features = []
        for first, second in combinations(tied, 2):
            if abs(first.point - second.point) > tie_band:
                continue

            first_classes = {
                e.finding_code: e.classification
                for e in evidence_by_disease.get(first.disease_id, ())
            }
            second_classes = {
                e.finding_code: e.classification
                for e in evidence_by_disease.get(second.disease_id, ())
            }

            for code in sorted(first_classes):
                other = second_classes.get(code)
                if other is not None and other != first_classes[code]:
                    features.append(DistinguishingFeature(
                        finding_code=code,
                        disease_ids=(first.disease_id, second.disease_id),
                        classifications=(first_classes[code], other),
                    ))

        return tuple(features)
