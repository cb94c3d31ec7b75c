"""
DxReasoning — Завантаження знімка бази знань

Структура JSON:
{
  "version": "2024.06",
  "diseases": {
    "pulmonary_embolism": {
      "name": "Pulmonary Embolism",
      "prevalence": 0.0006,
      "urgency": "critical",
      "associations": {
        "dyspnea": {"frequency": 0.8, "specificity": 0.4},
        "d_dimer:high": {"frequency": 0.95, "specificity": 0.3},
        "pleuritic_chest_pain": {
          "frequency": 0.6,
          "temporal": {"phase": "late", "trend": "worsening"}
        },
        "d_dimer:normal": {"frequency": 0.05, "exclusionary": true}
      }
    },
    ...
  }
}
"""

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict

from dx_reasoning.schemas import OnsetPhase, Progression, UrgencyLevel
from dx_reasoning.utils import KnowledgeUnavailableError, get_logger

from .snapshot import Association, DiseaseEntry, StaticKnowledgeSnapshot, TemporalSignature

logger = get_logger(__name__)


def _parse_temporal(data: Dict[str, Any]) -> TemporalSignature:
    phase = data.get("phase")
    trend = data.get("trend")
    return TemporalSignature(
        phase=OnsetPhase(phase) if phase else None,
        trend=Progression(trend) if trend else None,
    )


def _parse_disease(disease_id: str, data: Dict[str, Any]) -> DiseaseEntry:
    associations = {}
    for raw_code, assoc in data.get("associations", {}).items():
        code = raw_code.strip().lower()
        frequency = float(assoc.get("frequency", 0.0))
        specificity = float(assoc.get("specificity", 1.0))
        if not (0.0 <= frequency <= 1.0 and 0.0 <= specificity <= 1.0):
            raise ValueError(
                f"Association {disease_id}/{code}: frequency and specificity must be in [0, 1]"
            )

        temporal = assoc.get("temporal")
        associations[code] = Association(
            disease_id=disease_id,
            finding_code=code,
            frequency=frequency,
            specificity=specificity,
            exclusionary=bool(assoc.get("exclusionary", False)),
            temporal=_parse_temporal(temporal) if temporal else None,
        )

    prevalence = float(data["prevalence"])
    if not 0.0 <= prevalence <= 1.0:
        raise ValueError(f"Disease {disease_id}: prevalence must be in [0, 1]")

    return DiseaseEntry(
        disease_id=disease_id,
        name=data.get("name", disease_id),
        prevalence=prevalence,
        urgency=UrgencyLevel(data.get("urgency", UrgencyLevel.LOW.value)),
        associations=MappingProxyType(associations),
    )


def snapshot_from_dict(data: Dict[str, Any]) -> StaticKnowledgeSnapshot:
    """
    Побудувати знімок зі словника.

    Raises:
        KnowledgeUnavailableError: якщо структура некоректна
    """
    try:
        version = str(data["version"])
        diseases = {
            disease_id: _parse_disease(disease_id, disease_data)
            for disease_id, disease_data in data["diseases"].items()
        }
    except (KeyError, TypeError, ValueError) as e:
        raise KnowledgeUnavailableError(
            f"Malformed knowledge snapshot: {e}",
            details={"error": str(e)}
        ) from e

    return StaticKnowledgeSnapshot(version, diseases)


def load_snapshot(path: str) -> StaticKnowledgeSnapshot:
    """
    Завантажити знімок з JSON файлу.

    Args:
        path: Шлях до JSON

    Returns:
        StaticKnowledgeSnapshot

    Raises:
        KnowledgeUnavailableError: файл відсутній або пошкоджений
    """
    path = Path(path)
    if not path.exists():
        raise KnowledgeUnavailableError(
            f"Knowledge snapshot not found: {path}",
            details={"path": str(path)}
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise KnowledgeUnavailableError(
            f"Cannot read knowledge snapshot {path}: {e}",
            details={"path": str(path)}
        ) from e

    snapshot = snapshot_from_dict(data)
    logger.info(f"Loaded {snapshot!r} from {path}")
    return snapshot
