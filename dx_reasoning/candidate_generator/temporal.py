"""
DxReasoning — Часові патерни знахідок

- Фаза появи (рання / пізня) відносно медіани onset випадку
- Множник ваги асоціації за збіг / розбіжність з часовою сигнатурою
"""

from typing import Dict, Optional, Sequence

import numpy as np

from dx_reasoning.knowledge import Association
from dx_reasoning.schemas import Finding, OnsetPhase, Progression


def assign_onset_phases(findings: Sequence[Finding]) -> Dict[str, Optional[OnsetPhase]]:
    """
    Визначити фазу появи кожної знахідки.

    EARLY: onset_days >= медіани (з'явилась раніше)
    LATE: onset_days < медіани
    None: onset невідомий або менше двох різних значень onset

    Returns:
        {finding_code: OnsetPhase | None}
    """
    onsets = [f.onset_days for f in findings if f.onset_days is not None]
    phases: Dict[str, Optional[OnsetPhase]] = {f.code: None for f in findings}

    if len(set(onsets)) < 2:
        return phases

    median = float(np.median(onsets))
    for finding in findings:
        if finding.onset_days is None:
            continue
        phases[finding.code] = (
            OnsetPhase.EARLY if finding.onset_days >= median else OnsetPhase.LATE
        )
    return phases


def temporal_factor(
    association: Association,
    finding: Finding,
    phase: Optional[OnsetPhase],
    bonus: float,
    penalty: float
) -> float:
    """
    Множник ваги асоціації за часовим патерном.

    Кожен вимір сигнатури (фаза, тренд), для якого відома
    відповідна властивість знахідки, дає (1 + bonus) при збігу
    або (1 - penalty) при розбіжності.
    """
    signature = association.temporal
    if signature is None or signature.is_empty:
        return 1.0

    factor = 1.0

    if signature.phase is not None and phase is not None:
        factor *= (1.0 + bonus) if signature.phase == phase else (1.0 - penalty)

    if signature.trend is not None and finding.progression != Progression.UNKNOWN:
        factor *= (1.0 + bonus) if signature.trend == finding.progression else (1.0 - penalty)

    return factor


def severity_factor(finding: Finding, influence: float) -> float:
    """Множник за severity 1-10: 1 - s + s * severity / 10"""
    return 1.0 - influence + influence * finding.severity / 10.0
