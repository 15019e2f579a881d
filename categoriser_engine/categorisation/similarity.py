"""
Similarity Scoring against learned category state.

Combines keyword, amount, pattern, temporal and structural sub-scores into a
single per-category score in [0, 1].
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Set

from ..exceptions import ComputationError
from .features import FeatureVector, compare_features, average_features, numeric_similarity
from .pattern_store import CategoryPatternEntry, CategoryPatternStore

logger = logging.getLogger(__name__)


DEFAULT_WEIGHTS = {
    "keywords": 0.30,
    "amount": 0.20,
    "patterns": 0.30,
    "temporal": 0.10,
    "structural": 0.10,
}

STRUCTURAL_FEATURES = ("length", "word_count", "upper_case_ratio", "digit_ratio", "special_char_ratio")
TEMPORAL_FEATURES = ("day_of_week", "day_of_month", "is_weekend")


@dataclass
class SimilarityBreakdown:
    """Sub-scores for one category."""
    keywords: float = 0.0
    amount: float = 0.0
    patterns: float = 0.0
    temporal: float = 0.0
    structural: float = 0.0
    total: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "keywords": self.keywords,
            "amount": self.amount,
            "patterns": self.patterns,
            "temporal": self.temporal,
            "structural": self.structural,
            "total": self.total,
        }


class SimilarityScorer:
    """Scores a transaction's features against each category's learned state."""

    def __init__(self, weights: Optional[Dict[str, float]] = None,
                 recent_patterns: int = 20, neutral_score: float = 0.5):
        self.weights = dict(weights or DEFAULT_WEIGHTS)
        self.recent_patterns = recent_patterns
        self.neutral_score = neutral_score

    def keyword_score(self, transaction_keywords: Set[str], entry: CategoryPatternEntry) -> float:
        if not transaction_keywords:
            return 0.0
        overlap = len(transaction_keywords & entry.keywords)
        return overlap / len(transaction_keywords)

    def amount_score(self, amount: float, entry: CategoryPatternEntry) -> float:
        amount_range = entry.amount_range
        if amount_range.contains(amount):
            return 1.0
        if not amount_range.is_set or amount <= 0:
            return 0.0
        return max(0.0, 1.0 - amount_range.distance(amount) / amount)

    def pattern_score(self, features: FeatureVector, entry: CategoryPatternEntry) -> float:
        if not entry.patterns:
            return self.neutral_score

        weighted_sum = 0.0
        total_weight = 0.0
        for pattern in entry.recent_patterns(self.recent_patterns):
            weighted_sum += compare_features(features, pattern.features) * pattern.weight
            total_weight += pattern.weight
        return weighted_sum / total_weight if total_weight > 0 else 0.0

    def temporal_score(self, features: FeatureVector, entry: CategoryPatternEntry) -> float:
        if not entry.patterns:
            return self.neutral_score

        profile = average_features((p.features for p in entry.patterns), TEMPORAL_FEATURES)
        day_of_week_sim = 1 - abs(features.day_of_week - profile["day_of_week"]) / 7
        day_of_month_sim = 1 - abs(features.day_of_month - profile["day_of_month"]) / 31
        weekend_sim = 1.0 if features.is_weekend == (profile["is_weekend"] > 0.5) else 0.0
        return (day_of_week_sim + day_of_month_sim + weekend_sim) / 3

    def structural_score(self, features: FeatureVector, entry: CategoryPatternEntry) -> float:
        if not entry.patterns:
            return self.neutral_score

        avg = average_features((p.features for p in entry.patterns), STRUCTURAL_FEATURES)
        similarities = [
            numeric_similarity(features.length, avg["length"]),
            numeric_similarity(features.word_count, avg["word_count"]),
            1 - abs(features.upper_case_ratio - avg["upper_case_ratio"]),
            1 - abs(features.digit_ratio - avg["digit_ratio"]),
            1 - abs(features.special_char_ratio - avg["special_char_ratio"]),
        ]
        return sum(similarities) / len(similarities)

    def score_category(self, features: FeatureVector, transaction_keywords: Set[str],
                       entry: CategoryPatternEntry) -> SimilarityBreakdown:
        """
        Score one category.

        Raises:
            ComputationError: if any sub-score cannot be computed
        """
        try:
            breakdown = SimilarityBreakdown(
                keywords=self.keyword_score(transaction_keywords, entry),
                amount=self.amount_score(features.amount, entry),
                patterns=self.pattern_score(features, entry),
                temporal=self.temporal_score(features, entry),
                structural=self.structural_score(features, entry),
            )
        except Exception as e:
            raise ComputationError("similarity", str(e), e) from e

        breakdown.total = sum(
            getattr(breakdown, component) * weight
            for component, weight in self.weights.items()
        )
        return breakdown

    def score_all(self, features: FeatureVector, transaction_keywords: Set[str],
                  store: CategoryPatternStore) -> Dict[str, SimilarityBreakdown]:
        """
        Score every category in the store.

        Categories whose scoring fails are logged and left out of the result.
        """
        scores: Dict[str, SimilarityBreakdown] = {}
        for category, entry in store:
            try:
                scores[category] = self.score_category(features, transaction_keywords, entry)
            except ComputationError as e:
                logger.warning("Error calculating similarity for category %s: %s", category, e)
        return scores
