"""
DxReasoning — Модуль пояснень (Reasoning Chain Builder)

Компоненти:
- ReasoningChainBuilder: кроки, пояснення впевненості, посилання
- LiteratureRetriever: інтерфейс пошуку літератури
- PubMedRetriever: NCBI E-utilities (httpx)
- StaticRetriever: фіксована таблиця посилань
"""

from .chain_builder import ReasoningChainBuilder
from .literature import (
    LiteratureRetriever,
    PubMedRetriever,
    StaticRetriever,
    build_retriever,
)


__all__ = [
    "ReasoningChainBuilder",
    "LiteratureRetriever",
    "PubMedRetriever",
    "StaticRetriever",
    "build_retriever",
]
