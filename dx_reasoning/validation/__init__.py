"""
DxReasoning — Модуль валідації

Компоненти:
- evaluate_calibration: бінування передбачень vs частоти подій
- evaluate_differentials: калібрування + Recall@k для результатів pipeline
- CalibrationReport, CalibrationBin: звіт

Приклад використання:
    from dx_reasoning.validation import evaluate_calibration

    report = evaluate_calibration(predicted, observed, n_bins=10, tolerance=0.1)
    print(report)
    print(report.is_calibrated)
"""

from .calibration_quality import (
    CalibrationBin,
    CalibrationReport,
    evaluate_calibration,
    calibration_pairs,
    recall_at_k,
    evaluate_differentials,
)


__all__ = [
    "CalibrationBin",
    "CalibrationReport",
    "evaluate_calibration",
    "calibration_pairs",
    "recall_at_k",
    "evaluate_differentials",
]
