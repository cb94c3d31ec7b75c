"""
DxReasoning — Якість калібрування

Перевірка на відкладеній вибірці: передбачені ймовірності
в кожному біні мають збігатися зі спостережуваною частотою
в межах допуску.

Метрики:
- Reliability bins — середнє передбачення vs частота подій
- ECE (Expected Calibration Error) — зважений середній розрив
- Max gap — найбільший розрив серед бінів
- Recall@k — частка випадків, де правильний діагноз у топ-k
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np

from dx_reasoning.schemas import DifferentialDiagnosis


@dataclass
class CalibrationBin:
    """Один бін діаграми надійності"""
    lower: float
    upper: float
    count: int
    mean_predicted: float
    observed_frequency: float

    @property
    def gap(self) -> float:
        return abs(self.mean_predicted - self.observed_frequency)


@dataclass
class CalibrationReport:
    """Звіт про калібрування"""
    bins: List[CalibrationBin]
    ece: float
    max_gap: float
    tolerance: float
    total: int
    min_bin_size: int = 1
    top_k_recall: Dict[int, float] = field(default_factory=dict)

    @property
    def is_calibrated(self) -> bool:
        """Всі достатньо заповнені біни в межах допуску"""
        return self.max_gap <= self.tolerance

    def to_dict(self) -> dict:
        return {
            "ece": self.ece,
            "max_gap": self.max_gap,
            "tolerance": self.tolerance,
            "total": self.total,
            "is_calibrated": self.is_calibrated,
            "bins": [
                {
                    "range": [b.lower, b.upper],
                    "count": b.count,
                    "mean_predicted": b.mean_predicted,
                    "observed_frequency": b.observed_frequency,
                }
                for b in self.bins
            ],
            "top_k_recall": self.top_k_recall,
        }

    def __repr__(self) -> str:
        return (
            f"CalibrationReport(\n"
            f"  ECE:        {self.ece:.4f}\n"
            f"  Max gap:    {self.max_gap:.4f}\n"
            f"  Tolerance:  {self.tolerance:.4f}\n"
            f"  Calibrated: {self.is_calibrated}\n"
            f"  Samples:    {self.total}\n"
            f")"
        )


def evaluate_calibration(
    predicted: Sequence[float],
    observed: Sequence[int],
    n_bins: int = 10,
    tolerance: float = 0.1,
    min_bin_size: int = 1
) -> CalibrationReport:
    """
    Оцінити калібрування бінуванням.

    Args:
        predicted: Передбачені ймовірності в [0, 1]
        observed: 1 якщо подія сталась (діагноз правильний), інакше 0
        n_bins: Кількість рівних бінів на [0, 1]
        tolerance: Допустимий розрив у кожному біні
        min_bin_size: Біни з меншою кількістю не враховуються у max_gap

    Returns:
        CalibrationReport
    """
    p = np.asarray(predicted, dtype=np.float64)
    y = np.asarray(observed, dtype=np.float64)

    if p.shape != y.shape or p.size == 0:
        raise ValueError("predicted and observed must be non-empty and aligned")
    if np.any((p < 0) | (p > 1)):
        raise ValueError("predicted values must lie in [0, 1]")

    edges = np.linspace(0.0, 1.0, n_bins + 1)
    # Останній бін включає 1.0
    indices = np.clip(np.digitize(p, edges[1:-1], right=False), 0, n_bins - 1)

    bins = []
    ece = 0.0
    max_gap = 0.0
    for b in range(n_bins):
        in_bin = indices == b
        count = int(in_bin.sum())
        if count == 0:
            continue

        calibration_bin = CalibrationBin(
            lower=float(edges[b]),
            upper=float(edges[b + 1]),
            count=count,
            mean_predicted=float(p[in_bin].mean()),
            observed_frequency=float(y[in_bin].mean()),
        )
        bins.append(calibration_bin)

        ece += count / p.size * calibration_bin.gap
        if count >= min_bin_size:
            max_gap = max(max_gap, calibration_bin.gap)

    return CalibrationReport(
        bins=bins,
        ece=float(ece),
        max_gap=float(max_gap),
        tolerance=tolerance,
        total=int(p.size),
        min_bin_size=min_bin_size,
    )


def calibration_pairs(
    results: Sequence[DifferentialDiagnosis],
    true_disease_ids: Sequence[str]
) -> Tuple[List[float], List[int]]:
    """
    Перетворити результати в пари (передбачення, подія).

    Кожен запис кожного диференційного списку дає одну пару:
    point / 100 та 1, якщо це правильний діагноз випадку.
    """
    if len(results) != len(true_disease_ids):
        raise ValueError("results and true_disease_ids must be aligned")

    predicted, observed = [], []
    for result, truth in zip(results, true_disease_ids):
        for entry in result.diagnoses:
            predicted.append(entry.point / 100.0)
            observed.append(int(entry.disease_id == truth))
    return predicted, observed


def recall_at_k(
    results: Sequence[DifferentialDiagnosis],
    true_disease_ids: Sequence[str],
    k: int
) -> float:
    """Частка випадків, де правильний діагноз має ранг <= k"""
    if not results:
        return 0.0
    hits = sum(
        1 for result, truth in zip(results, true_disease_ids)
        if truth in result.disease_ids[:k]
    )
    return hits / len(results)


def evaluate_differentials(
    results: Sequence[DifferentialDiagnosis],
    true_disease_ids: Sequence[str],
    n_bins: int = 10,
    tolerance: float = 0.1,
    k_values: Sequence[int] = (1, 5, 10)
) -> CalibrationReport:
    """Калібрування + Recall@k для набору розв'язаних випадків"""
    predicted, observed = calibration_pairs(results, true_disease_ids)
    report = evaluate_calibration(predicted, observed, n_bins=n_bins, tolerance=tolerance)
    report.top_k_recall = {k: recall_at_k(results, true_disease_ids, k) for k in k_values}
    return report
