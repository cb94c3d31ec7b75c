#!/usr/bin/env python3
"""
DxReasoning — Оцінка калібрування на відкладеній вибірці

Вхідний файл (JSON): список розв'язаних випадків
    [{"case": {...NormalizedCase...}, "true_disease_id": "pulmonary_embolism"}, ...]

Метрики:
- Reliability bins, ECE, max gap (допуск --tolerance)
- Recall@1, Recall@5, Recall@10
- Частка відмов за кодом причини

Запуск:
    python scripts/evaluate_calibration.py --snapshot data/knowledge_snapshot.json \
        --cases data/holdout_cases.json
    python scripts/evaluate_calibration.py --config config/dx.yaml --cases data/holdout_cases.json \
        --fit-temperature --output models/calibration_report.json
"""

import sys
import json
import argparse
from collections import Counter
from pathlib import Path

import numpy as np

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dx_reasoning.config import CalibrationMethod, DxConfig, load_config, save_config
from dx_reasoning.confidence import TemperatureCalibrator
from dx_reasoning.engine import DiagnosticPipeline
from dx_reasoning.schemas import NormalizedCase
from dx_reasoning.utils import DiagnosticError, setup_logging
from dx_reasoning.validation import evaluate_differentials


def load_cases(path: Path):
    with open(path, "r", encoding="utf-8") as f:
        items = json.load(f)
    return [
        (NormalizedCase.model_validate(item["case"]), item["true_disease_id"])
        for item in items
    ]


def fit_temperature(results, truths) -> TemperatureCalibrator:
    """Підібрати T на тих самих випадках (cohort = диференційний список)"""
    cohorts, true_indices = [], []
    for result, truth in zip(results, truths):
        if truth not in result.disease_ids:
            continue
        points = np.array([d.point for d in result.diagnoses]) / 100.0
        cohorts.append(points / points.sum())
        true_indices.append(result.disease_ids.index(truth))

    return TemperatureCalibrator().fit(cohorts, true_indices)


def main():
    parser = argparse.ArgumentParser(description='DxReasoning calibration check')
    parser.add_argument('--config', help='YAML конфігурація')
    parser.add_argument('--snapshot', help='Knowledge snapshot JSON')
    parser.add_argument('--cases', required=True, help='Відкладені випадки (JSON)')
    parser.add_argument('--bins', type=int, default=10)
    parser.add_argument('--tolerance', type=float, default=0.1)
    parser.add_argument('--fit-temperature', action='store_true',
                        help='Підібрати T та зберегти в конфігурацію')
    parser.add_argument('--output', help='Зберегти звіт (JSON)')

    args = parser.parse_args()

    config = load_config(args.config) if args.config else DxConfig()
    if args.snapshot:
        config.snapshot_path = args.snapshot
    config.retrieval.enabled = False

    setup_logging(level="WARNING")

    print("=" * 60)
    print("📊 DxReasoning — Calibration Check")
    print("=" * 60)

    cases = load_cases(Path(args.cases))
    print(f"\n📁 Cases: {len(cases)}")

    pipeline = DiagnosticPipeline.from_config(config)
    print(f"   Snapshot: {pipeline.snapshot_version}")
    print(f"   Calibration: {pipeline.calculator.calibration_method}")

    # ========== ЗАПУСК ==========

    results, truths = [], []
    refusals = Counter()
    try:
        for case, truth in cases:
            try:
                results.append(pipeline.run(case))
                truths.append(truth)
            except DiagnosticError as exc:
                refusals[exc.code] += 1
    finally:
        pipeline.shutdown()

    if not results:
        print("❌ Жодного результату: всі випадки відхилено")
        for code, count in refusals.items():
            print(f"   {code}: {count}")
        sys.exit(1)

    # ========== МЕТРИКИ ==========

    report = evaluate_differentials(
        results, truths, n_bins=args.bins, tolerance=args.tolerance, k_values=(1, 5, 10)
    )

    print("\n" + "=" * 60)
    print("📊 РЕЗУЛЬТАТИ")
    print("=" * 60)
    print(report)

    print("\n   Reliability bins:")
    for b in report.bins:
        mark = "✓" if b.gap <= args.tolerance else "✗"
        print(
            f"   {mark} [{b.lower:.1f}, {b.upper:.1f}) n={b.count:4d}  "
            f"predicted={b.mean_predicted:.3f}  observed={b.observed_frequency:.3f}"
        )

    print("\n   Recall@k:")
    for k, value in report.top_k_recall.items():
        print(f"   Recall@{k}: {value:.2%}")

    if refusals:
        print("\n   Refusals:")
        for code, count in refusals.most_common():
            print(f"   {code}: {count}")

    # ========== TEMPERATURE ==========

    if args.fit_temperature:
        calibrator = fit_temperature(results, truths)
        print(f"\n🌡  Fitted {calibrator.describe()}")

        if args.config:
            config.confidence.calibration_method = CalibrationMethod.TEMPERATURE
            config.confidence.temperature = calibrator.temperature
            save_config(config, args.config)
            print(f"   Saved to {args.config}")

    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        payload = report.to_dict()
        payload["refusals"] = dict(refusals)
        with open(output, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        print(f"\n💾 Report saved: {output}")

    print("\n" + "=" * 60)
    print("✅ Calibrated" if report.is_calibrated else "⚠️  Outside tolerance")
    print("=" * 60)


if __name__ == "__main__":
    main()
