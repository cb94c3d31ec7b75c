"""
DxReasoning — Реєстр знімків

Оновлення бази знань публікуються як новий незмінний знімок
з атомарною заміною посилання. Запит закріплює (pin) знімок,
поточний на момент старту, і працює з ним до кінця.
"""

import threading
from typing import Optional

from dx_reasoning.utils import KnowledgeUnavailableError, get_logger

from .loader import load_snapshot
from .snapshot import KnowledgeSnapshot

logger = get_logger(__name__)


class SnapshotRegistry:
    """
    Поточний знімок бази знань.

    Читачі не блокуються: pin() лише читає посилання.
    Писачі серіалізуються через lock та замінюють посилання цілком.

    Приклад:
        registry = SnapshotRegistry()
        registry.publish(load_snapshot("data/knowledge.json"))

        snapshot = registry.pin()   # на весь час запиту
        print(snapshot.snapshot_version())
    """

    def __init__(self, snapshot: Optional[KnowledgeSnapshot] = None):
        self._current = snapshot
        self._write_lock = threading.Lock()

    def publish(self, snapshot: KnowledgeSnapshot) -> Optional[str]:
        """
        Опублікувати новий знімок.

        Returns:
            Версія попереднього знімка (або None)
        """
        with self._write_lock:
            previous = self._current
            self._current = snapshot

        previous_version = previous.snapshot_version() if previous else None
        logger.info(
            f"Published knowledge snapshot {snapshot.snapshot_version()} "
            f"(previous: {previous_version})"
        )
        return previous_version

    def reload_from(self, path: str) -> str:
        """Завантажити знімок з файлу та опублікувати його"""
        snapshot = load_snapshot(path)
        self.publish(snapshot)
        return snapshot.snapshot_version()

    def pin(self) -> KnowledgeSnapshot:
        """
        Закріпити поточний знімок для запиту.

        Raises:
            KnowledgeUnavailableError: знімок ще не опубліковано
        """
        snapshot = self._current
        if snapshot is None:
            raise KnowledgeUnavailableError("No knowledge snapshot has been published")
        return snapshot

    @property
    def current_version(self) -> Optional[str]:
        snapshot = self._current
        return snapshot.snapshot_version() if snapshot else None

    @property
    def is_ready(self) -> bool:
        return self._current is not None

    def __repr__(self) -> str:
        return f"SnapshotRegistry(version={self.current_version!r})"
