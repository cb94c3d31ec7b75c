"""
DxReasoning — Ranker

Впорядкування оцінених кандидатів у фінальний диференційний список.

Правила (по черзі):
1. Спадання point estimate (рівність → disease_id)
2. Urgency tie-break: в межах tie band вища терміновість іде першою
3. Відсікання до minimum_size + правило рідкісних захворювань
4. Щільні ранги 1..N
"""

import heapq
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from dx_reasoning.config import RankerConfig
from dx_reasoning.confidence import ScoredCandidate
from dx_reasoning.schemas import RankedDiagnosis
from dx_reasoning.utils import InsufficientEvidenceError, get_logger

logger = get_logger(__name__)


@dataclass
class Ranking:
    """Результат ранжування"""
    entries: List[RankedDiagnosis]
    below_minimum: bool = False
    rare_inclusions: List[str] = field(default_factory=list)
    reordered_pairs: int = 0

    @property
    def disease_ids(self) -> List[str]:
        return [e.disease_id for e in self.entries]

    def get_rank(self, disease_id: str) -> int:
        """Ранг діагнозу (1-based), -1 якщо відсутній"""
        for entry in self.entries:
            if entry.disease_id == disease_id:
                return entry.rank
        return -1

    def __len__(self) -> int:
        return len(self.entries)


class Ranker:
    """
    Ранжування з урахуванням терміновості та рідкісних захворювань.

    Приклад використання:
        ranker = Ranker(config.ranker)
        ranking = ranker.rank(scored)

        for entry in ranking.entries:
            print(entry.rank, entry.disease_id, entry.point, entry.urgency.value)
    """

    def __init__(self, config: Optional[RankerConfig] = None):
        self.config = config or RankerConfig()

    def in_band(self, a: ScoredCandidate, b: ScoredCandidate) -> bool:
        """Чи в межах tie band два кандидати"""
        return abs(a.point - b.point) <= self.config.tie_band

    def is_rare(self, scored: ScoredCandidate) -> bool:
        return scored.candidate.prevalence < self.config.rare_prevalence_threshold

    def order(self, scored: Sequence[ScoredCandidate]) -> List[ScoredCandidate]:
        """Правила 1-2 без відсікання"""
        return self._order(scored)[0]

    def _order(self, scored: Sequence[ScoredCandidate]) -> Tuple[List[ScoredCandidate], int]:
        """
        Правила 1-2: сортування та urgency tie-break.

        Кожна пара в межах band з різною терміновістю дає ребро
        "вища терміновість → нижча". Терміновість строго спадає вздовж
        кожного ребра, тому циклів немає і топологічне сортування
        завжди існує. Серед готових вузлів першим іде вищий point,
        далі менший disease_id.

        Returns:
            (впорядкований список, кількість пар, переставлених відносно
            сортування за point)
        """
        base = sorted(scored, key=lambda s: (-s.point, s.disease_id))
        n = len(base)

        successors: List[List[int]] = [[] for _ in range(n)]
        indegree = [0] * n
        for i in range(n):
            for j in range(i + 1, n):
                if not self.in_band(base[i], base[j]):
                    continue
                pi = base[i].candidate.urgency.priority
                pj = base[j].candidate.urgency.priority
                if pi == pj:
                    continue
                first, second = (i, j) if pi > pj else (j, i)
                successors[first].append(second)
                indegree[second] += 1

        # Індекс у base вже кодує (-point, disease_id)
        ready = [i for i in range(n) if indegree[i] == 0]
        heapq.heapify(ready)
        order: List[int] = []
        while ready:
            i = heapq.heappop(ready)
            order.append(i)
            for j in successors[i]:
                indegree[j] -= 1
                if indegree[j] == 0:
                    heapq.heappush(ready, j)

        position = {i: pos for pos, i in enumerate(order)}
        reordered = sum(
            1
            for i in range(n)
            for j in range(i + 1, n)
            if position[i] > position[j]
        )

        if reordered:
            logger.info(f"Urgency tie-break applied: {reordered} pair(s) reordered")

        return [base[i] for i in order], reordered

    def rank(self, scored: Sequence[ScoredCandidate]) -> Ranking:
        """
        Побудувати фінальний впорядкований список.

        Args:
            scored: Оцінені кандидати (вироджені вже відкинуті)

        Returns:
            Ranking

        Raises:
            InsufficientEvidenceError: немає жодного кандидата
        """
        if not scored:
            raise InsufficientEvidenceError(
                "No candidate survived scoring",
                details={"candidates": 0}
            )

        ordered, reordered = self._order(scored)

        minimum = self.config.minimum_size
        head = ordered[:minimum]
        tail = ordered[minimum:]

        # Правило рідкісних: додаємо, навіть якщо кандидат поза відсіченням
        rare = [
            s for s in tail
            if self.is_rare(s) and s.point > self.config.rare_inclusion_floor
        ]
        for s in rare:
            logger.info(
                f"Rare disease inclusion: {s.disease_id} "
                f"(prevalence={s.candidate.prevalence:.2e}, point={s.point:.1f}%)"
            )

        rare_ids = {s.disease_id for s in rare}
        entries = [
            RankedDiagnosis(
                candidate=s.candidate,
                confidence=s.confidence,
                uncertainty=s.uncertainty,
                urgency=s.candidate.urgency,
                rank=rank,
                rare_inclusion=s.disease_id in rare_ids,
            )
            for rank, s in enumerate(head + rare, start=1)
        ]

        return Ranking(
            entries=entries,
            below_minimum=len(scored) < minimum,
            rare_inclusions=[s.disease_id for s in rare],
            reordered_pairs=reordered,
        )

    def __repr__(self) -> str:
        return (
            f"Ranker(tie_band={self.config.tie_band}, "
            f"minimum_size={self.config.minimum_size})"
        )
