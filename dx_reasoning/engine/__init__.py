"""
DxReasoning — Модуль оркестрації (Engine)

Компоненти:
- DiagnosticPipeline: генерація → скоринг → ранжування → пояснення
- Deadline: бюджет часу запиту
- AdmissionController: backpressure та оцінка очікування
- DiagnosticService: допуск + пул воркерів + жорсткий дедлайн

Приклад використання:
    from dx_reasoning.engine import DiagnosticService

    service = DiagnosticService.from_config(config)
    result = service.diagnose(case)
    print(result.to_summary())
"""

from .pipeline import Deadline, DiagnosticPipeline
from .admission import AdmissionController, AdmissionTicket
from .service import DiagnosticService


__all__ = [
    "Deadline",
    "DiagnosticPipeline",
    "AdmissionController",
    "AdmissionTicket",
    "DiagnosticService",
]
