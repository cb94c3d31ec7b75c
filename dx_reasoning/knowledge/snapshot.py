"""
DxReasoning — Знімок бази знань

Незмінний, версіонований граф асоціацій діагноз ↔ знахідка
та поширеність діагнозів. Ядро лише читає знімок.

Інтерфейс:
- lookup(finding_code) -> AssociationSet
- prevalence(disease_id) -> float
- snapshot_version() -> str
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from dx_reasoning.schemas import OnsetPhase, Progression, UrgencyLevel
from dx_reasoning.utils import KnowledgeUnavailableError


@dataclass(frozen=True)
class TemporalSignature:
    """Очікуваний часовий патерн знахідки для діагнозу"""
    phase: Optional[OnsetPhase] = None     # рання / пізня поява
    trend: Optional[Progression] = None    # очікуваний перебіг

    @property
    def is_empty(self) -> bool:
        return self.phase is None and self.trend is None


@dataclass(frozen=True)
class Association:
    """Асоціація знахідки з діагнозом"""
    disease_id: str
    finding_code: str
    frequency: float                # P(знахідка | діагноз)
    specificity: float = 1.0
    exclusionary: bool = False      # знахідка нетипова / виключає діагноз
    temporal: Optional[TemporalSignature] = None

    @property
    def weight(self) -> float:
        """Вага асоціації: frequency × specificity"""
        return self.frequency * self.specificity


AssociationSet = Tuple[Association, ...]


@dataclass(frozen=True)
class DiseaseEntry:
    """Запис про діагноз у знімку"""
    disease_id: str
    name: str
    prevalence: float
    urgency: UrgencyLevel = UrgencyLevel.LOW
    associations: Mapping[str, Association] = field(default_factory=dict)

    @property
    def association_count(self) -> int:
        return len(self.associations)

    def core_associations(self, min_frequency: float) -> List[Association]:
        """Ключові (часті) не-виключні асоціації"""
        return [
            a for a in self.associations.values()
            if not a.exclusionary and a.frequency >= min_frequency
        ]


class KnowledgeSnapshot(ABC):
    """
    Абстрактний read-only знімок бази знань.

    Реалізації мають бути незмінними: запит, що закріпив знімок,
    ніколи не бачить змін посеред обробки. Недоступність бекенда
    сигналізується через KnowledgeUnavailableError.
    """

    @abstractmethod
    def snapshot_version(self) -> str:
        ...

    @abstractmethod
    def lookup(self, finding_code: str) -> AssociationSet:
        """Всі асоціації знахідки (порожньо якщо невідома)"""

    @abstractmethod
    def disease(self, disease_id: str) -> DiseaseEntry:
        ...

    @abstractmethod
    def disease_ids(self) -> List[str]:
        ...

    @abstractmethod
    def finding_codes(self) -> List[str]:
        ...

    def prevalence(self, disease_id: str) -> float:
        return self.disease(disease_id).prevalence

    def association(self, finding_code: str, disease_id: str) -> Optional[Association]:
        """Асоціація конкретної пари (знахідка, діагноз)"""
        return self.disease(disease_id).associations.get(finding_code)


class StaticKnowledgeSnapshot(KnowledgeSnapshot):
    """
    In-memory знімок з попередньо побудованим індексом
    знахідка → асоціації.

    Приклад використання:
        snapshot = StaticKnowledgeSnapshot("2024.06", diseases)

        for assoc in snapshot.lookup("joint_hypermobility"):
            print(assoc.disease_id, assoc.weight)

        print(snapshot.prevalence("ehlers_danlos_syndrome"))
    """

    def __init__(self, version: str, diseases: Mapping[str, DiseaseEntry]):
        """
        Args:
            version: Версія знімка
            diseases: Словник {disease_id: DiseaseEntry}
        """
        self._version = version
        self._diseases = MappingProxyType(dict(diseases))

        # Індекс finding → associations (стабільний порядок за disease_id)
        index: Dict[str, List[Association]] = {}
        for disease_id in sorted(self._diseases):
            for code, association in self._diseases[disease_id].associations.items():
                index.setdefault(code, []).append(association)

        self._index = MappingProxyType({
            code: tuple(associations) for code, associations in index.items()
        })

    def snapshot_version(self) -> str:
        return self._version

    def lookup(self, finding_code: str) -> AssociationSet:
        return self._index.get(finding_code, ())

    def disease(self, disease_id: str) -> DiseaseEntry:
        try:
            return self._diseases[disease_id]
        except KeyError:
            raise KnowledgeUnavailableError(
                f"Disease '{disease_id}' is not present in snapshot {self._version}",
                details={"disease_id": disease_id, "snapshot_version": self._version}
            ) from None

    def disease_ids(self) -> List[str]:
        return sorted(self._diseases)

    def finding_codes(self) -> List[str]:
        return sorted(self._index)

    @property
    def disease_count(self) -> int:
        return len(self._diseases)

    @property
    def finding_count(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return (
            f"StaticKnowledgeSnapshot(version={self._version!r}, "
            f"diseases={self.disease_count}, findings={self.finding_count})"
        )
