"""DxReasoning — Модуль конфігурації"""
from .settings import (
    DxConfig,
    get_default_config,
    CalibrationMethod,
    QualityConfig,
    GeneratorConfig,
    ConfidenceConfig,
    RankerConfig,
    EvidenceConfig,
    ReasoningConfig,
    RetrievalConfig,
    PipelineConfig,
    AdmissionConfig,
    LoggingConfig,
    APIConfig,
)
from .loader import save_config, load_config, save_yaml, load_yaml

__all__ = [
    "DxConfig",
    "get_default_config",
    "CalibrationMethod",
    "QualityConfig",
    "GeneratorConfig",
    "ConfidenceConfig",
    "RankerConfig",
    "EvidenceConfig",
    "ReasoningConfig",
    "RetrievalConfig",
    "PipelineConfig",
    "AdmissionConfig",
    "LoggingConfig",
    "APIConfig",
    "save_config",
    "load_config",
    "save_yaml",
    "load_yaml",
]
