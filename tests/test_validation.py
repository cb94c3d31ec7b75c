"""
Тести для модуля validation

Запуск: pytest tests/test_validation.py -v
"""

import pytest


def test_perfect_calibration():
    """Тест: частоти збігаються з передбаченнями"""
    from dx_reasoning.validation import evaluate_calibration

    predicted = [0.25] * 4 + [0.75] * 4
    observed = [1, 0, 0, 0] + [1, 1, 1, 0]

    report = evaluate_calibration(predicted, observed, n_bins=4, tolerance=0.05)

    assert len(report.bins) == 2
    assert report.ece == pytest.approx(0.0)
    assert report.is_calibrated
    assert report.to_dict()["total"] == 8

    print(report)


def test_miscalibrated():
    """Тест: завищена впевненість виявляється"""
    from dx_reasoning.validation import evaluate_calibration

    report = evaluate_calibration([0.9] * 10, [1] * 5 + [0] * 5, tolerance=0.1)

    assert report.max_gap == pytest.approx(0.4)
    assert report.ece == pytest.approx(0.4)
    assert not report.is_calibrated

    print(f"✓ Max gap: {report.max_gap:.2f}")


def test_small_bins_ignored_for_max_gap():
    """Тест: малі біни не впливають на max_gap"""
    from dx_reasoning.validation import evaluate_calibration

    predicted = [0.05] + [0.55] * 10
    observed = [1] + [1] * 5 + [0] * 5

    report = evaluate_calibration(predicted, observed, tolerance=0.1, min_bin_size=5)

    assert report.max_gap == pytest.approx(0.05)
    assert report.is_calibrated
    assert report.ece > report.max_gap

    print(f"✓ ECE {report.ece:.3f}, max gap {report.max_gap:.3f}")


def test_invalid_input():
    """Тест некоректних входів"""
    from dx_reasoning.validation import evaluate_calibration

    with pytest.raises(ValueError):
        evaluate_calibration([0.5, 0.5], [1])

    with pytest.raises(ValueError):
        evaluate_calibration([1.5], [1])

    with pytest.raises(ValueError):
        evaluate_calibration([], [])

    print("✓ Invalid input rejected")


def test_evaluate_differentials(pipeline, chest_pain_case, eds_case):
    """Тест оцінки на результатах pipeline"""
    from dx_reasoning.validation import calibration_pairs, evaluate_differentials, recall_at_k

    results = [pipeline.run(chest_pain_case), pipeline.run(eds_case)]
    truths = ["pulmonary_embolism", "ehlers_danlos_syndrome"]

    predicted, observed = calibration_pairs(results, truths)
    assert len(predicted) == sum(len(r.diagnoses) for r in results)
    assert sum(observed) == 2

    assert recall_at_k(results, truths, k=10) == 1.0
    assert recall_at_k([], [], k=1) == 0.0

    report = evaluate_differentials(results, truths, k_values=(1, 10))
    assert report.total == len(predicted)
    assert report.top_k_recall[10] == 1.0
    assert 0.0 <= report.top_k_recall[1] <= 1.0

    with pytest.raises(ValueError):
        calibration_pairs(results, truths[:1])

    print(f"✓ Recall@k: {report.top_k_recall}")
