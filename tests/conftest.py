"""
Pytest Configuration and Fixtures

Спільні фікстури: тестовий знімок бази знань (tests/data),
типові випадки та фабрика оцінених кандидатів для ранжування.
"""

from pathlib import Path

import pytest

from dx_reasoning.config import DxConfig
from dx_reasoning.knowledge import SnapshotRegistry, load_snapshot
from dx_reasoning.schemas import (
    ConfidenceInterval,
    DiseaseCandidate,
    Finding,
    LabResult,
    NormalizedCase,
    Progression,
    UncertaintyBreakdown,
    UrgencyLevel,
)


DATA_DIR = Path(__file__).parent / "data"
SNAPSHOT_PATH = DATA_DIR / "knowledge_snapshot.json"


@pytest.fixture
def snapshot_path() -> Path:
    """Шлях до JSON знімка"""
    return SNAPSHOT_PATH


@pytest.fixture
def snapshot():
    """Тестовий знімок (14 діагнозів)"""
    return load_snapshot(SNAPSHOT_PATH)


@pytest.fixture
def registry(snapshot) -> SnapshotRegistry:
    return SnapshotRegistry(snapshot)


@pytest.fixture
def config() -> DxConfig:
    """Конфігурація без зовнішнього пошуку літератури"""
    config = DxConfig()
    config.retrieval.enabled = False
    config.pipeline.explanation_workers = 2
    config.admission.worker_threads = 4
    return config


@pytest.fixture
def pipeline(registry, config):
    from dx_reasoning.engine import DiagnosticPipeline

    pipeline = DiagnosticPipeline(registry, config)
    yield pipeline
    pipeline.shutdown()


@pytest.fixture
def chest_pain_case() -> NormalizedCase:
    """Плевритичний біль у грудях, задишка, високий D-dimer"""
    return NormalizedCase(
        case_id="CASE-PE",
        findings=(
            Finding(code="pleuritic_chest_pain", severity=7, onset_days=2),
            Finding(code="dyspnea", severity=6, onset_days=1, progression=Progression.WORSENING),
            Finding(code="tachycardia", severity=5, onset_days=1),
        ),
        lab_results=(LabResult(code="d_dimer", value=1.8, unit="mg/L", interpretation="high"),),
        data_quality=85.0,
        quality_validated=True,
    )


@pytest.fixture
def eds_case() -> NormalizedCase:
    """Класична картина синдрому Елерса-Данлоса"""
    return NormalizedCase(
        case_id="CASE-EDS",
        findings=(
            Finding(code="joint_hypermobility", severity=6, onset_days=7300),
            Finding(code="skin_hyperextensibility", severity=4, onset_days=7300),
            Finding(code="chronic_pain", severity=7, onset_days=1500),
        ),
        data_quality=78.0,
        quality_validated=True,
    )


@pytest.fixture
def make_scored():
    """Фабрика ScoredCandidate з заданою точковою оцінкою"""
    from dx_reasoning.confidence import ScoredCandidate

    def _make(
        disease_id: str,
        point: float,
        prevalence: float = 0.01,
        urgency: UrgencyLevel = UrgencyLevel.LOW,
        half_width: float = 5.0
    ) -> ScoredCandidate:
        return ScoredCandidate(
            candidate=DiseaseCandidate(
                disease_id=disease_id,
                name=disease_id.replace("_", " ").title(),
                raw_score=0.5,
                prevalence=prevalence,
                urgency=urgency,
            ),
            confidence=ConfidenceInterval(
                point=point,
                lower=max(0.0, point - half_width),
                upper=min(100.0, point + half_width),
            ),
            uncertainty=UncertaintyBreakdown(data_quality=half_width),
        )

    return _make
