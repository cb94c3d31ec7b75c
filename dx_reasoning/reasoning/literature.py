"""
DxReasoning — Пошук літератури

LiteratureRetriever: зовнішній колаборатор, що повертає посилання
для діагнозу та його ключових знахідок.

- PubMedRetriever: NCBI E-utilities (esearch + esummary) через httpx
- StaticRetriever: фіксована таблиця посилань (офлайн / тести)

Помилки пошуку є "м'якими": їх поглинає ReasoningChainBuilder.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx

from dx_reasoning.config import RetrievalConfig
from dx_reasoning.schemas import Citation
from dx_reasoning.utils import get_logger

logger = get_logger(__name__)


class LiteratureRetriever(ABC):
    """Інтерфейс пошуку літератури"""

    @abstractmethod
    def citations_for(self, disease_id: str, top_findings: Sequence[str]) -> List[Citation]:
        """Посилання для діагнозу (може кидати будь-який виняток)"""

    def close(self) -> None:
        """Звільнити ресурси (за замовчуванням нічого)"""


class StaticRetriever(LiteratureRetriever):
    """
    Посилання з фіксованої таблиці {disease_id: [Citation, ...]}.

    Приклад:
        retriever = StaticRetriever({
            "pulmonary_embolism": [Citation(identifier="PMID:31504429", title="...")]
        })
    """

    def __init__(self, table: Optional[Mapping[str, Sequence[Citation]]] = None):
        self.table = {k: list(v) for k, v in (table or {}).items()}

    def citations_for(self, disease_id, top_findings):
        return list(self.table.get(disease_id, []))


class PubMedRetriever(LiteratureRetriever):
    """
    Пошук у PubMed через NCBI E-utilities.

    Приклад використання:
        retriever = PubMedRetriever(RetrievalConfig(enabled=True, email="dx@example.org"))
        citations = retriever.citations_for("pulmonary_embolism", ["dyspnea", "d_dimer:high"])
    """

    def __init__(
        self,
        config: Optional[RetrievalConfig] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Args:
            config: Параметри пошуку (base_url, timeout, api_key ...)
            transport: Альтернативний транспорт httpx (наприклад, MockTransport)
        """
        self.config = config or RetrievalConfig()
        self._client = httpx.Client(
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
            transport=transport,
        )

    def _params(self, extra: Dict[str, Any]) -> Dict[str, Any]:
        params = dict(extra)
        if self.config.api_key:
            params["api_key"] = self.config.api_key
        if self.config.tool:
            params["tool"] = self.config.tool
        if self.config.email:
            params["email"] = self.config.email
        return params

    @staticmethod
    def build_term(disease_id: str, top_findings: Sequence[str]) -> str:
        """Пошуковий запит: діагноз AND (знахідка OR ...)"""
        disease = disease_id.replace("_", " ")
        findings = [f.split(":")[0].replace("_", " ") for f in top_findings]
        if not findings:
            return f'"{disease}"[Title/Abstract]'
        joined = " OR ".join(f'"{f}"' for f in findings)
        return f'"{disease}"[Title/Abstract] AND ({joined})'

    def esearch(self, term: str, retmax: int) -> List[str]:
        response = self._client.get("/esearch.fcgi", params=self._params({
            "db": "pubmed",
            "term": term,
            "retmode": "json",
            "retmax": str(retmax),
            "sort": "relevance",
        }))
        response.raise_for_status()
        return response.json().get("esearchresult", {}).get("idlist", [])

    def esummary(self, ids: Sequence[str]) -> Dict[str, Any]:
        if not ids:
            return {}
        response = self._client.get("/esummary.fcgi", params=self._params({
            "db": "pubmed",
            "id": ",".join(ids),
            "retmode": "json",
        }))
        response.raise_for_status()
        return response.json().get("result", {})

    def citations_for(self, disease_id, top_findings):
        ids = self.esearch(self.build_term(disease_id, top_findings), self.config.max_citations)
        summary = self.esummary(ids)

        citations = []
        for pmid in summary.get("uids", ids):
            record = summary.get(pmid, {})
            citations.append(Citation(
                identifier=f"PMID:{pmid}",
                title=record.get("title", ""),
                source=record.get("fulljournalname") or record.get("source"),
                year=_parse_year(record.get("pubdate")),
                url=f"https://pubmed.ncbi.nlm.nih.gov/{pmid}/",
            ))

        logger.debug(f"PubMed returned {len(citations)} citation(s) for {disease_id}")
        return citations

    def close(self) -> None:
        self._client.close()


def _parse_year(pubdate: Optional[str]) -> Optional[int]:
    """'2019 Mar 12' → 2019"""
    if not pubdate:
        return None
    head = pubdate.strip()[:4]
    return int(head) if head.isdigit() else None


def build_retriever(config: RetrievalConfig) -> Optional[LiteratureRetriever]:
    """PubMedRetriever якщо пошук увімкнено, інакше None"""
    if not config.enabled:
        return None
    return PubMedRetriever(config)
