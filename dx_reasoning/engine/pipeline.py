"""
DxReasoning — Діагностичний pipeline

DiagnosticPipeline об'єднує всі компоненти ядра:
1. Перевірка якості випадку (T_q)
2. Закріплення знімка бази знань (один раз на запит)
3. CandidateGenerator → ConfidenceCalculator → Ranker (послідовно)
4. EvidenceClassifier + ReasoningChainBuilder паралельно по кандидатах
5. Збірка DifferentialDiagnosis у порядку рангів

Дедлайн перевіряється між етапами; при перевищенні часткового
результату немає, лише DiagnosisTimeoutError.
"""

import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import List, Optional, Sequence, Tuple

from dx_reasoning.candidate_generator import CandidateGenerator
from dx_reasoning.confidence import (
    Calibrator,
    ConfidenceCalculator,
    NeuralScoringStrategy,
    ScoringStrategy,
    default_strategies,
)
from dx_reasoning.config import DxConfig
from dx_reasoning.evidence import EvidenceClassifier
from dx_reasoning.knowledge import KnowledgeSnapshot, SnapshotRegistry, load_snapshot
from dx_reasoning.ranker import Ranker
from dx_reasoning.reasoning import LiteratureRetriever, ReasoningChainBuilder, build_retriever
from dx_reasoning.schemas import (
    DifferentialDiagnosis,
    Evidence,
    NormalizedCase,
    ProcessingMetadata,
    RankedDiagnosis,
    ReasoningChain,
    UrgencyLevel,
)
from dx_reasoning.utils import (
    DiagnosisTimeoutError,
    DiagnosticError,
    InputQualityError,
    InsufficientEvidenceError,
    get_logger,
)

logger = get_logger(__name__)


URGENT_LEVELS = (UrgencyLevel.CRITICAL, UrgencyLevel.HIGH)


class Deadline:
    """Залишок часового бюджету запиту"""

    def __init__(self, seconds: float):
        self.seconds = seconds
        self._started = time.monotonic()

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._started

    def remaining(self) -> float:
        return max(0.0, self.seconds - self.elapsed)

    def check(self, stage: str) -> None:
        if self.elapsed >= self.seconds:
            raise DiagnosisTimeoutError(
                f"Deadline of {self.seconds}s exceeded after stage '{stage}'",
                deadline_seconds=self.seconds,
                stage=stage,
            )


class DiagnosticPipeline:
    """
    Головний діагностичний pipeline.

    Приклад використання:
        registry = SnapshotRegistry(load_snapshot("data/knowledge_snapshot.json"))
        pipeline = DiagnosticPipeline(registry)

        result = pipeline.run(case)
        print(result.top_diagnosis.candidate.name, result.top_diagnosis.point)
    """

    def __init__(
        self,
        registry: SnapshotRegistry,
        config: Optional[DxConfig] = None,
        retriever: Optional[LiteratureRetriever] = None,
        strategies: Optional[Sequence[ScoringStrategy]] = None,
        calibrator: Optional[Calibrator] = None
    ):
        """
        Args:
            registry: Реєстр знімків бази знань
            config: Конфігурація ядра
            retriever: Пошук літератури (опціонально)
            strategies: Стратегії скорингу (за замовчуванням стандартні)
            calibrator: Калібратор (за замовчуванням з config)
        """
        self.registry = registry
        self.config = config or DxConfig()

        self.generator = CandidateGenerator(self.config.generator)
        self.calculator = ConfidenceCalculator(
            self.config.confidence,
            strategies=strategies,
            calibrator=calibrator,
        )
        self.ranker = Ranker(self.config.ranker)
        self.classifier = EvidenceClassifier(self.config.evidence, self.config.generator)
        self.chain_builder = ReasoningChainBuilder(
            self.config.reasoning,
            retriever=retriever,
            retrieval_config=self.config.retrieval,
        )

    @classmethod
    def from_config(
        cls,
        config: Optional[DxConfig] = None,
        neural_checkpoint: Optional[str] = None
    ) -> "DiagnosticPipeline":
        """
        Створити pipeline зі знімком з config.snapshot_path.

        Args:
            config: Конфігурація (snapshot_path обов'язковий)
            neural_checkpoint: Шлях до .pt моделі для нейронної стратегії
        """
        config = config or DxConfig()
        registry = SnapshotRegistry()
        if config.snapshot_path:
            registry.publish(load_snapshot(config.snapshot_path))

        strategies = default_strategies(config.confidence)
        if neural_checkpoint:
            strategies.append(NeuralScoringStrategy.from_checkpoint(neural_checkpoint))

        return cls(
            registry,
            config,
            retriever=build_retriever(config.retrieval),
            strategies=strategies,
        )

    # =========================================================================
    # RUN
    # =========================================================================

    def run(
        self,
        case: NormalizedCase,
        deadline_seconds: Optional[float] = None,
        estimated_wait_seconds: Optional[float] = None
    ) -> DifferentialDiagnosis:
        """
        Обробити один випадок.

        Args:
            case: Нормалізований випадок
            deadline_seconds: Бюджет часу (за замовчуванням з config)
            estimated_wait_seconds: Очікування в черзі допуску (для metadata)

        Returns:
            DifferentialDiagnosis

        Raises:
            InputQualityError, KnowledgeUnavailableError, InsufficientEvidenceError,
            DiagnosisTimeoutError, ChainConstructionError
        """
        deadline = Deadline(
            deadline_seconds if deadline_seconds is not None
            else self.config.pipeline.deadline_seconds
        )
        logger.info(f"Case {case.case_id}: started ({case.n_findings} findings)")

        try:
            result = self._run(case, deadline, estimated_wait_seconds)
        except DiagnosticError as exc:
            logger.info(f"Case {case.case_id}: refused with {exc.code} ({exc.message})")
            raise

        logger.info(
            f"Case {case.case_id}: finished with {len(result.diagnoses)} entries, "
            f"snapshot {result.metadata.snapshot_version}, "
            f"{result.metadata.elapsed_ms:.0f} ms"
        )
        return result

    def _run(
        self,
        case: NormalizedCase,
        deadline: Deadline,
        estimated_wait_seconds: Optional[float]
    ) -> DifferentialDiagnosis:
        self.check_quality(case)

        snapshot = self.registry.pin()

        candidates = self.generator.generate(case, snapshot)
        deadline.check("generate")

        scored = self.calculator.score_all(candidates, case, snapshot)
        if not scored:
            raise InsufficientEvidenceError(
                f"No candidate with a non-degenerate likelihood for case {case.case_id}",
                details={"generated": len(candidates)}
            )
        deadline.check("score")

        ranking = self.ranker.rank(scored)
        deadline.check("rank")

        explained = self._explain_all(ranking.entries, case, snapshot, deadline)

        entries = [
            entry.model_copy(update={"evidence": evidence, "reasoning": chain})
            for entry, (evidence, chain) in zip(ranking.entries, explained)
        ]
        evidence_by_disease = {
            entry.disease_id: evidence
            for entry, (evidence, _) in zip(ranking.entries, explained)
        }

        features = EvidenceClassifier.distinguishing_features(
            entries, evidence_by_disease, self.config.ranker.tie_band
        )
        deadline.check("assemble")

        return DifferentialDiagnosis(
            case_id=case.case_id,
            diagnoses=tuple(entries),
            urgent_flags=tuple(e.disease_id for e in entries if e.urgency in URGENT_LEVELS),
            below_minimum=ranking.below_minimum,
            distinguishing_features=features,
            degraded_explainability=any(chain.degraded_explainability for _, chain in explained),
            metadata=ProcessingMetadata(
                snapshot_version=snapshot.snapshot_version(),
                model_version=self.config.model_version,
                calibration_method=self.calculator.calibration_method,
                elapsed_ms=deadline.elapsed * 1000,
                estimated_wait_seconds=estimated_wait_seconds,
            ),
        )

    def check_quality(self, case: NormalizedCase) -> None:
        """Відмова, якщо якість нижче T_q"""
        threshold = self.config.quality.min_quality_score
        if case.data_quality < threshold:
            raise InputQualityError(
                f"Case {case.case_id} data quality {case.data_quality} is below {threshold}",
                quality_score=case.data_quality,
                threshold=threshold,
            )

    # =========================================================================
    # EXPLANATION
    # =========================================================================

    def explain(
        self,
        entry: RankedDiagnosis,
        case: NormalizedCase,
        snapshot: KnowledgeSnapshot
    ) -> Tuple[Tuple[Evidence, ...], ReasoningChain]:
        """Докази та ланцюжок для одного кандидата (незалежна задача)"""
        evidence = self.classifier.classify(entry.candidate, case, snapshot)
        chain = self.chain_builder.build(entry, evidence, case)
        return evidence, chain

    def _explain_all(
        self,
        entries: Sequence[RankedDiagnosis],
        case: NormalizedCase,
        snapshot: KnowledgeSnapshot,
        deadline: Deadline
    ) -> List[Tuple[Tuple[Evidence, ...], ReasoningChain]]:
        """
        Пояснення всіх кандидатів одного випадку.

        Пул потоків належить випадку: очікування літератури одного
        випадку не займає слотів інших випадків у сервісі.
        """
        workers = max(1, min(len(entries), self.config.pipeline.explanation_workers))
        executor = ThreadPoolExecutor(
            max_workers=workers,
            thread_name_prefix=f"dx-explain-{case.case_id}",
        )
        futures: List[Future] = [
            executor.submit(self.explain, entry, case, snapshot)
            for entry in entries
        ]

        results = []
        try:
            for future in futures:
                results.append(future.result(timeout=deadline.remaining()))
        except FutureTimeoutError:
            raise DiagnosisTimeoutError(
                f"Deadline of {deadline.seconds}s exceeded while explaining case {case.case_id}",
                deadline_seconds=deadline.seconds,
                stage="explain",
            ) from None
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return results

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def snapshot_version(self) -> Optional[str]:
        return self.registry.current_version

    def shutdown(self) -> None:
        """Закрити пошук літератури (HTTP клієнт)"""
        self.chain_builder.shutdown()

    def __repr__(self) -> str:
        return (
            f"DiagnosticPipeline(snapshot={self.snapshot_version}, "
            f"calculator={self.calculator!r})"
        )
