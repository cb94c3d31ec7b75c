"""
DxReasoning — Модуль ранжування (Ranker)

Компоненти:
- Ranker: впорядкування, urgency tie-break, правило рідкісних
- Ranking: результат ранжування

Приклад використання:
    from dx_reasoning.ranker import Ranker

    ranking = Ranker().rank(scored)
    print(ranking.disease_ids, ranking.below_minimum)
"""

from .ranker import Ranker, Ranking


__all__ = [
    "Ranker",
    "Ranking",
]
