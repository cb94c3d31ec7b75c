"""
DxReasoning — Модуль впевненості (Confidence Calculator)

Калібрована точкова оцінка та інтервал для кожного кандидата.

Компоненти:
- ScoringStrategy: спільний інтерфейс стратегій скорингу
- RawMatchStrategy, FrequencyStrategy, RuleBasedStrategy: стандартні стратегії
- DiagnosisNN, NeuralScoringStrategy: нейронна стратегія (torch)
- WeightedMeanEnsemble: комбінування стратегій та розбіжність
- IdentityCalibrator, TemperatureCalibrator, PlattCalibrator: калібрування
- ConfidenceCalculator, ScoredCandidate: головний клас

Приклад використання:
    from dx_reasoning.confidence import ConfidenceCalculator

    calculator = ConfidenceCalculator()
    scored = calculator.score_all(candidates, case, snapshot)
"""

from .strategies import (
    ScoringStrategy,
    RawMatchStrategy,
    FrequencyStrategy,
    RuleBasedStrategy,
    default_strategies,
)
from .neural import DiagnosisNN, NeuralScoringStrategy
from .ensemble import EnsembleResult, WeightedMeanEnsemble
from .calibration import (
    Calibrator,
    IdentityCalibrator,
    TemperatureCalibrator,
    PlattCalibrator,
    build_calibrator,
)
from .calculator import ConfidenceCalculator, ScoredCandidate


__all__ = [
    # Strategies
    "ScoringStrategy",
    "RawMatchStrategy",
    "FrequencyStrategy",
    "RuleBasedStrategy",
    "default_strategies",
    "DiagnosisNN",
    "NeuralScoringStrategy",
    # Ensemble
    "EnsembleResult",
    "WeightedMeanEnsemble",
    # Calibration
    "Calibrator",
    "IdentityCalibrator",
    "TemperatureCalibrator",
    "PlattCalibrator",
    "build_calibrator",
    # Calculator
    "ConfidenceCalculator",
    "ScoredCandidate",
]
