"""
DxReasoning — Модуль бази знань (Knowledge Snapshot)

Read-only адаптер до версіонованого знімка бази знань.

Компоненти:
- KnowledgeSnapshot: абстрактний інтерфейс (lookup, prevalence, snapshot_version)
- StaticKnowledgeSnapshot: незмінна in-memory реалізація з індексом
- load_snapshot / snapshot_from_dict: завантаження з JSON
- SnapshotRegistry: атомарна публікація та закріплення знімка
- FindingVocabulary: code ↔ index для векторизації

Приклад використання:
    from dx_reasoning.knowledge import SnapshotRegistry, load_snapshot

    registry = SnapshotRegistry()
    registry.publish(load_snapshot("data/knowledge_snapshot.json"))

    snapshot = registry.pin()
    for assoc in snapshot.lookup("dyspnea"):
        print(assoc.disease_id, assoc.frequency)
"""

from .snapshot import (
    TemporalSignature,
    Association,
    AssociationSet,
    DiseaseEntry,
    KnowledgeSnapshot,
    StaticKnowledgeSnapshot,
)
from .loader import load_snapshot, snapshot_from_dict
from .registry import SnapshotRegistry
from .vocabulary import FindingVocabulary


__all__ = [
    "TemporalSignature",
    "Association",
    "AssociationSet",
    "DiseaseEntry",
    "KnowledgeSnapshot",
    "StaticKnowledgeSnapshot",
    "load_snapshot",
    "snapshot_from_dict",
    "SnapshotRegistry",
    "FindingVocabulary",
]
