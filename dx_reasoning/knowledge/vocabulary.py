"""
DxReasoning — Словник знахідок

Відображення кодів знахідок у числові індекси та навпаки.
Основа для векторизації випадку (нейронна стратегія скорингу).
"""

from typing import Dict, Iterable, List, Optional

import numpy as np

from .snapshot import KnowledgeSnapshot


class FindingVocabulary:
    """
    Словник знахідок: code ↔ index

    Приклад використання:
        vocab = FindingVocabulary.from_snapshot(snapshot)

        idx = vocab.code_to_index("fever")
        vector = vocab.encode(["fever", "headache"])   # multi-hot
        print(vocab.size)
    """

    def __init__(self, codes: Iterable[str]):
        # Сортуємо для детермінованості
        self._code_to_idx: Dict[str, int] = {
            code: idx for idx, code in enumerate(sorted(set(codes)))
        }
        self._idx_to_code: Dict[int, str] = {
            idx: code for code, idx in self._code_to_idx.items()
        }

    @classmethod
    def from_snapshot(cls, snapshot: KnowledgeSnapshot) -> "FindingVocabulary":
        """Створити словник з усіх кодів знахідок знімка"""
        return cls(snapshot.finding_codes())

    @property
    def size(self) -> int:
        return len(self._code_to_idx)

    @property
    def codes(self) -> List[str]:
        return [self._idx_to_code[i] for i in range(self.size)]

    def code_to_index(self, code: str) -> Optional[int]:
        return self._code_to_idx.get(code)

    def index_to_code(self, index: int) -> Optional[str]:
        return self._idx_to_code.get(index)

    def encode(self, codes: Iterable[str]) -> np.ndarray:
        """
        Закодувати знахідки у multi-hot вектор.

        Невідомі коди ігноруються.

        Returns:
            np.ndarray shape (size,), dtype float32
        """
        vector = np.zeros(self.size, dtype=np.float32)
        for code in codes:
            idx = self._code_to_idx.get(code)
            if idx is not None:
                vector[idx] = 1.0
        return vector

    def __contains__(self, code: str) -> bool:
        return code in self._code_to_idx

    def __len__(self) -> int:
        return self.size

    def __repr__(self) -> str:
        return f"FindingVocabulary(size={self.size})"
