"""Scoring and filtering strategies."""
from .scoring import (
    ScoringStrategy,
    SemanticRankingStrategy,
    SubstringMatchStrategy,
    cosine_similarity,
)

__all__ = [
    "ScoringStrategy",
    "SemanticRankingStrategy",
    "SubstringMatchStrategy",
    "cosine_similarity",
]
