"""
DxReasoning — Нейронна стратегія скорингу

DiagnosisNN: MLP знахідки → logits по всіх діагнозах знімка.
NeuralScoringStrategy: інференс замороженої моделі з checkpoint.

Модель лише споживається: навчання поза межами ядра.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import torch
import torch.nn as nn

from dx_reasoning.knowledge import FindingVocabulary, KnowledgeSnapshot
from dx_reasoning.schemas import DiseaseCandidate, NormalizedCase
from dx_reasoning.utils import KnowledgeUnavailableError, get_logger

from .strategies import ScoringStrategy

logger = get_logger(__name__)


class DiagnosisNN(nn.Module):
    """
    Нейронна мережа для скорингу діагнозів.

    Приймає multi-hot вектор знахідок та повертає logits для всіх діагнозів.

    Приклад:
        model = DiagnosisNN(n_findings=120, n_diseases=40, hidden_dims=[64, 32])

        x = torch.zeros(1, 120)
        logits = model(x)  # shape (1, 40)
    """

    def __init__(
        self,
        n_findings: int,
        n_diseases: int,
        hidden_dims: Optional[List[int]] = None,
        dropout: float = 0.3,
        use_batch_norm: bool = True
    ):
        """
        Args:
            n_findings: Розмір словника знахідок (вхід)
            n_diseases: Кількість діагнозів (вихід)
            hidden_dims: Розміри прихованих шарів
            dropout: Dropout rate
            use_batch_norm: Чи використовувати BatchNorm
        """
        super().__init__()

        self.n_findings = n_findings
        self.n_diseases = n_diseases
        self.hidden_dims = hidden_dims or [128, 64]
        self.dropout = dropout
        self.use_batch_norm = use_batch_norm

        layers = []
        in_dim = n_findings
        for out_dim in self.hidden_dims:
            layers.append(nn.Linear(in_dim, out_dim))
            if use_batch_norm:
                layers.append(nn.BatchNorm1d(out_dim))
            layers.append(nn.ReLU())
            layers.append(nn.Dropout(dropout))
            in_dim = out_dim

        self.hidden_layers = nn.Sequential(*layers)
        self.output_layer = nn.Linear(in_dim, n_diseases)

        self._init_weights()

    def _init_weights(self):
        """Xavier ініціалізація"""
        for module in self.modules():
            if isinstance(module, nn.Linear):
                nn.init.xavier_uniform_(module.weight)
                if module.bias is not None:
                    nn.init.zeros_(module.bias)

    def forward(self, findings: torch.Tensor) -> torch.Tensor:
        """
        Args:
            findings: shape (batch, n_findings)

        Returns:
            Logits shape (batch, n_diseases)
        """
        return self.output_layer(self.hidden_layers(findings))

    def predict_proba(self, findings: torch.Tensor) -> torch.Tensor:
        """Незалежні ймовірності (sigmoid) по кожному діагнозу"""
        return torch.sigmoid(self.forward(findings))

    def count_parameters(self) -> int:
        return sum(p.numel() for p in self.parameters() if p.requires_grad)

    def __repr__(self) -> str:
        return (
            f"DiagnosisNN(findings={self.n_findings}, diseases={self.n_diseases}, "
            f"hidden={self.hidden_dims}, params={self.count_parameters():,})"
        )


class NeuralScoringStrategy(ScoringStrategy):
    """
    Стратегія на основі замороженої DiagnosisNN.

    Приклад використання:
        strategy = NeuralScoringStrategy.from_checkpoint("models/dx_nn.pt")
        scores = strategy.score_batch(candidates, case, snapshot)
    """

    name = "neural"

    def __init__(
        self,
        model: DiagnosisNN,
        vocabulary: FindingVocabulary,
        disease_ids: Sequence[str],
        device: str = "cpu"
    ):
        if len(disease_ids) != model.n_diseases:
            raise ValueError(
                f"Model outputs {model.n_diseases} diseases, "
                f"but {len(disease_ids)} disease ids were given"
            )
        if vocabulary.size != model.n_findings:
            raise ValueError(
                f"Model expects {model.n_findings} findings, "
                f"vocabulary has {vocabulary.size}"
            )

        self.device = torch.device(device)
        self.model = model.to(self.device)
        self.model.eval()
        self.vocabulary = vocabulary
        self.disease_index: Dict[str, int] = {d: i for i, d in enumerate(disease_ids)}

    @classmethod
    def from_checkpoint(
        cls,
        path: Union[str, Path],
        device: str = "cpu"
    ) -> "NeuralScoringStrategy":
        """
        Завантажити стратегію з checkpoint.

        Формат checkpoint: model_state, finding_codes, disease_ids,
        hidden_dims, dropout, use_batch_norm.
        """
        path = Path(path)
        if not path.exists():
            raise KnowledgeUnavailableError(
                f"Scoring model checkpoint not found: {path}",
                details={"path": str(path)}
            )

        checkpoint = torch.load(path, map_location=device, weights_only=False)

        finding_codes = checkpoint["finding_codes"]
        disease_ids = checkpoint["disease_ids"]

        model = DiagnosisNN(
            n_findings=len(finding_codes),
            n_diseases=len(disease_ids),
            hidden_dims=checkpoint.get("hidden_dims"),
            dropout=checkpoint.get("dropout", 0.3),
            use_batch_norm=checkpoint.get("use_batch_norm", True),
        )
        model.load_state_dict(checkpoint["model_state"])

        logger.info(
            f"Loaded neural scoring model from {path} "
            f"({len(finding_codes)} findings, {len(disease_ids)} diseases)"
        )
        return cls(model, FindingVocabulary(finding_codes), disease_ids, device=device)

    def save_checkpoint(self, path: Union[str, Path]) -> None:
        """Зберегти модель у форматі, який читає from_checkpoint()"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        disease_ids = sorted(self.disease_index, key=self.disease_index.get)
        torch.save({
            "model_state": self.model.state_dict(),
            "finding_codes": self.vocabulary.codes,
            "disease_ids": disease_ids,
            "hidden_dims": self.model.hidden_dims,
            "dropout": self.model.dropout,
            "use_batch_norm": self.model.use_batch_norm,
        }, path)

    def _probabilities(self, profile: NormalizedCase) -> Optional[torch.Tensor]:
        codes = profile.finding_codes
        if not any(code in self.vocabulary for code in codes):
            return None

        vector = torch.from_numpy(self.vocabulary.encode(codes)).unsqueeze(0).to(self.device)
        with torch.no_grad():
            return self.model.predict_proba(vector)[0].cpu()

    def score(self, candidate, profile, snapshot):
        return self.score_batch([candidate], profile, snapshot)[candidate.disease_id]

    def score_batch(
        self,
        candidates: Sequence[DiseaseCandidate],
        profile: NormalizedCase,
        snapshot: KnowledgeSnapshot
    ) -> Dict[str, Optional[float]]:
        """Один forward pass на всю когорту"""
        probs = self._probabilities(profile)

        scores: Dict[str, Optional[float]] = {}
        for candidate in candidates:
            idx = self.disease_index.get(candidate.disease_id)
            if probs is None or idx is None:
                scores[candidate.disease_id] = None
            else:
                scores[candidate.disease_id] = float(probs[idx])
        return scores
