"""
DxReasoning — Модуль генерації кандидатів (Candidate Generator)

Відбирає діагнози-кандидати за знахідками випадку через
асоціації знімка бази знань.

Компоненти:
- CandidateGenerator: головний клас
- GenerationResult: кандидати + вектор сирих score
- assign_onset_phases, temporal_factor: часові патерни

Приклад використання:
    from dx_reasoning.candidate_generator import CandidateGenerator

    generator = CandidateGenerator()
    candidates = generator.generate(case, registry.pin())

    print(f"Candidates ({len(candidates)}):")
    for c in candidates:
        print(f"  - {c.name}: {c.raw_score:.3f}")
"""

from .generator import CandidateGenerator, GenerationResult
from .temporal import assign_onset_phases, temporal_factor, severity_factor


__all__ = [
    "CandidateGenerator",
    "GenerationResult",
    "assign_onset_phases",
    "temporal_factor",
    "severity_factor",
]
