"""
DxReasoning — Налаштування ядра

Всі параметри зібрані в dataclass-и для:
- Типізації та валідації
- Легкого доступу через config.ranker.tie_band
- Серіалізації в YAML
"""

import os
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Dict, Optional


# =============================================================================
# ENUMS
# =============================================================================

class CalibrationMethod(str, Enum):
    """Метод калібрування апостеріорних ймовірностей"""
    IDENTITY = "identity"
    TEMPERATURE = "temperature"
    PLATT = "platt"


# =============================================================================
# INPUT QUALITY
# =============================================================================

@dataclass
class QualityConfig:
    """Поріг якості вхідного випадку (T_q)"""
    min_quality_score: float = 40.0


# =============================================================================
# CANDIDATE GENERATOR
# =============================================================================

@dataclass
class GeneratorConfig:
    """Параметри генерації кандидатів"""

    # Часові патерни (onset / progression)
    temporal_bonus: float = 0.25      # збіг з часовою сигнатурою
    temporal_penalty: float = 0.25    # розбіжність з часовою сигнатурою

    # Вплив severity (1-10) на вагу знахідки
    severity_influence: float = 0.3


# =============================================================================
# CONFIDENCE CALCULATOR
# =============================================================================

@dataclass
class ConfidenceConfig:
    """Параметри розрахунку впевненості"""

    # Prior: prevalence ** prior_exponent
    prior_exponent: float = 0.25

    # Ваги стратегій в ансамблі (назва → вага)
    strategy_weights: Dict[str, float] = field(default_factory=lambda: {
        "raw_match": 1.0,
        "frequency": 1.0,
        "rule_based": 1.0,
        "neural": 1.0,
    })

    # Стратегія frequency: мінімальна P(f|d)
    frequency_floor: float = 0.02

    # Стратегія rule_based
    core_frequency: float = 0.5        # "ключова" ознака діагнозу
    exclusion_penalty: float = 0.3     # множник за кожну виключну знахідку

    # Калібрування
    calibration_method: CalibrationMethod = CalibrationMethod.TEMPERATURE
    temperature: float = 1.0
    platt_a: float = 1.0
    platt_b: float = 0.0

    # Напівширина інтервалу (процентні пункти)
    base_half_width: float = 2.0
    quality_span: float = 25.0
    disagreement_scale: float = 1.96


# =============================================================================
# RANKER
# =============================================================================

@dataclass
class RankerConfig:
    """Правила ранжування"""
    rare_prevalence_threshold: float = 1e-4   # < 1 на 10 000
    rare_inclusion_floor: float = 15.0        # point estimate, %
    tie_band: float = 10.0                    # процентні пункти
    minimum_size: int = 10


# =============================================================================
# EVIDENCE / REASONING
# =============================================================================

@dataclass
class EvidenceConfig:
    """Класифікація доказів"""
    low_frequency_threshold: float = 0.05


@dataclass
class ReasoningConfig:
    """Побудова ланцюжка міркувань"""
    max_supporting_steps: int = 5
    top_findings_for_citations: int = 3


@dataclass
class RetrievalConfig:
    """Зовнішній пошук літератури"""
    enabled: bool = False
    base_url: str = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
    timeout_seconds: float = 4.0
    max_citations: int = 5
    api_key: Optional[str] = None
    tool: str = "DxReasoning"
    email: Optional[str] = None


# =============================================================================
# PIPELINE / SERVICE
# =============================================================================

@dataclass
class PipelineConfig:
    """Дедлайн та паралелізм пояснень"""
    deadline_seconds: float = 30.0
    explanation_workers: int = 16     # потоків на один випадок


@dataclass
class AdmissionConfig:
    """Контроль допуску (backpressure)"""
    capacity: int = 1000              # одночасних випадків в обробці
    worker_threads: int = 64
    max_waiting: int = 2000           # розмір черги очікування
    expected_case_seconds: float = 0.5
    retry_after_seconds: float = 5.0


@dataclass
class LoggingConfig:
    """Параметри логування"""
    level: str = "INFO"
    log_file: Optional[str] = None
    use_colors: bool = True


@dataclass
class APIConfig:
    """Сервісна межа (FastAPI)"""
    api_title: str = "DxReasoning API"
    api_description: str = "Diagnostic Reasoning Core — ranked, explainable differential diagnosis"
    api_prefix: str = "/api"


# =============================================================================
# MAIN CONFIGURATION
# =============================================================================

@dataclass
class DxConfig:
    """
    Головна конфігурація DxReasoning

    Приклад використання:
        config = DxConfig()
        print(config.ranker.tie_band)            # 10.0
        print(config.quality.min_quality_score)  # 40.0
    """

    version: str = "1.0.0"
    model_version: str = "dx-ensemble-1"

    # Шлях до знімка бази знань (JSON)
    snapshot_path: Optional[str] = None

    quality: QualityConfig = field(default_factory=QualityConfig)
    generator: GeneratorConfig = field(default_factory=GeneratorConfig)
    confidence: ConfidenceConfig = field(default_factory=ConfidenceConfig)
    ranker: RankerConfig = field(default_factory=RankerConfig)
    evidence: EvidenceConfig = field(default_factory=EvidenceConfig)
    reasoning: ReasoningConfig = field(default_factory=ReasoningConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    admission: AdmissionConfig = field(default_factory=AdmissionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    api: APIConfig = field(default_factory=APIConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DxConfig":
        """
        Створити конфігурацію зі словника (наприклад, з YAML).

        Невідомі ключі відхиляються, щоб одруківка не тихо
        повертала значення за замовчуванням.
        """
        return _build_dataclass(cls, data or {})

    @classmethod
    def from_env(cls, base: Optional["DxConfig"] = None) -> "DxConfig":
        """Перевизначити частину параметрів з environment variables"""
        config = base or cls()

        snapshot_path = os.getenv("DX_SNAPSHOT_PATH")
        if snapshot_path:
            config.snapshot_path = snapshot_path

        log_level = os.getenv("DX_LOG_LEVEL")
        if log_level:
            config.logging.level = log_level

        deadline = os.getenv("DX_DEADLINE_SECONDS")
        if deadline:
            config.pipeline.deadline_seconds = float(deadline)

        retrieval = os.getenv("DX_RETRIEVAL_ENABLED")
        if retrieval:
            config.retrieval.enabled = retrieval.lower() == "true"

        return config


def _build_dataclass(cls, data: Dict[str, Any]):
    """Рекурсивно зібрати dataclass з вкладеного словника"""
    known = {f.name: f for f in fields(cls)}
    unknown = set(data) - set(known)
    if unknown:
        raise ValueError(f"Unknown config keys for {cls.__name__}: {sorted(unknown)}")

    kwargs = {}
    defaults = cls()
    for name, value in data.items():
        current = getattr(defaults, name)
        if is_dataclass(current) and isinstance(value, dict):
            kwargs[name] = _build_dataclass(type(current), value)
        elif isinstance(current, Enum):
            kwargs[name] = type(current)(value)
        else:
            kwargs[name] = value
    return cls(**kwargs)


def get_default_config() -> DxConfig:
    """Отримати конфігурацію за замовчуванням"""
    return DxConfig()
