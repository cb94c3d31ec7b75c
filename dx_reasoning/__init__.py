"""
DxReasoning — Ядро діагностичного міркування

Нормалізований клінічний випадок → ранжований, пояснений
диференційний діагноз з каліброваною впевненістю.

Модулі:
- config: Конфігурація ядра
- schemas: Pydantic моделі випадку та результату
- knowledge: Знімок бази знань, реєстр, словник знахідок
- candidate_generator: Відбір кандидатів за знахідками
- confidence: Стратегії скорингу, ансамбль, калібрування
- ranker: Ранжування з urgency tie-break та правилом рідкісних
- evidence: Класифікація доказів
- reasoning: Ланцюжки міркувань та пошук літератури
- engine: Pipeline, контроль допуску, сервіс
- validation: Якість калібрування
- api: Backend API
"""

__version__ = "1.0.0"

from .config import DxConfig, get_default_config
