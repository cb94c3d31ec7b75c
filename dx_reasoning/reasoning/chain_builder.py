"""
DxReasoning — Reasoning Chain Builder

Ланцюжок міркувань для одного ранжованого діагнозу:
- кроки з доказів (підтримуючі, суперечливі, нейтральні)
- пояснення впевненості через домінантне джерело невизначеності
- посилання на літературу (м'який збій → degraded_explainability)
"""

import time
from typing import List, Optional, Sequence, Tuple

from dx_reasoning.config import ReasoningConfig, RetrievalConfig
from dx_reasoning.evidence import EvidenceClassifier
from dx_reasoning.schemas import (
    Citation,
    Evidence,
    EvidenceClass,
    NormalizedCase,
    RankedDiagnosis,
    ReasoningChain,
    ReasoningStep,
    UncertaintySource,
)
from dx_reasoning.utils import ChainConstructionError, get_logger

from .literature import LiteratureRetriever

logger = get_logger(__name__)


_SOURCE_PHRASES = {
    UncertaintySource.DATA_QUALITY: "incomplete or low-quality case data",
    UncertaintySource.MODEL_DISAGREEMENT: "disagreement between scoring models",
    UncertaintySource.PREVALENCE_PRIOR: "the disease prevalence prior",
}


class ReasoningChainBuilder:
    """
    Побудова ланцюжка міркувань.

    Приклад використання:
        builder = ReasoningChainBuilder(retriever=StaticRetriever(table))
        chain = builder.build(ranked, evidence, case)

        for step in chain.steps:
            print(f"{step.contribution:+.1f}  {step.description}")
        print(chain.confidence_explanation)
    """

    def __init__(
        self,
        config: Optional[ReasoningConfig] = None,
        retriever: Optional[LiteratureRetriever] = None,
        retrieval_config: Optional[RetrievalConfig] = None
    ):
        """
        Args:
            config: Параметри кроків
            retriever: Пошук літератури (None = без посилань, без деградації)
            retrieval_config: Таймаут та ліміт посилань
        """
        self.config = config or ReasoningConfig()
        self.retriever = retriever
        self.retrieval_config = retrieval_config or RetrievalConfig()

    def build(
        self,
        ranked: RankedDiagnosis,
        evidence: Sequence[Evidence],
        profile: NormalizedCase
    ) -> ReasoningChain:
        """
        Побудувати ланцюжок.

        Args:
            ranked: Ранжований діагноз (з інтервалом та невизначеністю)
            evidence: Класифіковані докази для цього діагнозу
            profile: Випадок

        Returns:
            ReasoningChain

        Raises:
            ChainConstructionError: немає жодного доказу (дефект)
        """
        if not evidence:
            logger.error(
                f"Defect: no evidence for {ranked.disease_id} in case {profile.case_id}"
            )
            raise ChainConstructionError(
                f"Cannot build reasoning chain for {ranked.disease_id}: evidence is empty",
                details={"disease_id": ranked.disease_id, "case_id": profile.case_id}
            )

        steps = self.build_steps(ranked, evidence)
        explanation = self.explain_confidence(ranked, profile)

        supporting = [e for e in evidence if e.classification == EvidenceClass.SUPPORTING]
        top_findings = [e.finding_code for e in supporting[:self.config.top_findings_for_citations]]
        citations, degraded = self.fetch_citations(ranked.disease_id, top_findings)

        return ReasoningChain(
            disease_id=ranked.disease_id,
            steps=tuple(steps),
            confidence_explanation=explanation,
            citations=tuple(citations),
            degraded_explainability=degraded,
        )

    def build_steps(
        self,
        ranked: RankedDiagnosis,
        evidence: Sequence[Evidence]
    ) -> List[ReasoningStep]:
        """Кроки: топ підтримуючі, решта підтримуючих, суперечливі, нейтральні"""
        buckets = EvidenceClassifier.partition(evidence)
        total = sum(abs(e.weight) for e in evidence)
        point = ranked.point
        name = ranked.candidate.name

        def contribution(items: Sequence[Evidence]) -> float:
            if total <= 0:
                return 0.0
            return point * sum(e.weight for e in items) / total

        steps = []
        supporting = buckets[EvidenceClass.SUPPORTING]
        limit = self.config.max_supporting_steps

        for e in supporting[:limit]:
            steps.append(ReasoningStep(
                description=f"'{e.finding_code}' is documented for {name} (weight {e.weight:.2f})",
                evidence=(e,),
                contribution=contribution([e]),
            ))

        remainder = supporting[limit:]
        if remainder:
            steps.append(ReasoningStep(
                description=f"{len(remainder)} further finding(s) weakly support {name}",
                evidence=tuple(remainder),
                contribution=contribution(remainder),
            ))

        contradicting = buckets[EvidenceClass.CONTRADICTING]
        if contradicting:
            codes = ", ".join(f"'{e.finding_code}'" for e in contradicting)
            steps.append(ReasoningStep(
                description=f"Atypical or exclusionary for {name}: {codes}",
                evidence=tuple(contradicting),
                contribution=contribution(contradicting),
            ))

        neutral = buckets[EvidenceClass.NEUTRAL]
        if neutral:
            steps.append(ReasoningStep(
                description=f"{len(neutral)} finding(s) have no documented association with {name}",
                evidence=tuple(neutral),
                contribution=0.0,
            ))

        return steps

    @staticmethod
    def explain_confidence(ranked: RankedDiagnosis, profile: NormalizedCase) -> str:
        """
        Пояснення інтервалу через домінантне джерело невизначеності.

        data_quality та model_disagreement розширюють інтервал;
        prevalence_prior зсуває точкову оцінку і ширину не змінює.
        """
        ci = ranked.confidence
        uncertainty = ranked.uncertainty
        source = uncertainty.dominant_source
        amount = getattr(uncertainty, source.value)

        text = (
            f"Confidence {ci.point:.1f}% (95% interval {ci.lower:.1f}-{ci.upper:.1f}%). "
            f"Main source of uncertainty: {_SOURCE_PHRASES[source]}"
        )
        if source == UncertaintySource.PREVALENCE_PRIOR:
            width = uncertainty.data_quality + uncertainty.model_disagreement
            text += (
                f" (moved the point estimate by {amount:.1f} pp; "
                f"data quality and model disagreement add {width:.1f} pp to the interval half-width)"
            )
        else:
            text += f" ({amount:.1f} pp of interval half-width)"
        if source == UncertaintySource.DATA_QUALITY:
            text += f"; case data quality score {profile.data_quality:.0f}/100"
        return text + "."

    def fetch_citations(
        self,
        disease_id: str,
        top_findings: Sequence[str]
    ) -> Tuple[List[Citation], bool]:
        """
        Посилання з таймаутом.

        Пошук виконується в потоці виклику. Мережеві виклики обмежує
        сам retriever (httpx timeout у PubMedRetriever); результат,
        що прийшов пізніше за timeout_seconds, відкидається.

        Returns:
            (citations, degraded): degraded=True якщо пошук впав або не встиг
        """
        if self.retriever is None:
            return [], False

        timeout = self.retrieval_config.timeout_seconds
        started = time.monotonic()
        try:
            citations = self.retriever.citations_for(disease_id, list(top_findings))
        except Exception as exc:
            logger.warning(f"Literature retrieval for {disease_id} failed: {exc}")
            return [], True

        elapsed = time.monotonic() - started
        if elapsed > timeout:
            logger.warning(
                f"Literature retrieval for {disease_id} took {elapsed:.2f}s "
                f"(timeout {timeout}s), citations dropped"
            )
            return [], True

        return list(citations)[:self.retrieval_config.max_citations], False

    def shutdown(self) -> None:
        """Звільнити ресурси пошуку (наприклад, HTTP клієнт)"""
        if self.retriever is not None:
            self.retriever.close()
