"""
DxReasoning — Модуль доказів (Evidence Classifier)

Компоненти:
- EvidenceClassifier: supporting / contradicting / neutral для кожної знахідки
  та distinguishing features для близьких кандидатів
"""

from .classifier import EvidenceClassifier


__all__ = [
    "EvidenceClassifier",
]
