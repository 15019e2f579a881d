"""
Ensemble decision over similarity and rule scores.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .rule_engine import RuleMatch


@dataclass
class EnsembleDecision:
    """Outcome of the ensemble decision."""
    category: str
    confidence: float
    alternatives: List[Tuple[str, float]] = field(default_factory=list)
    similarity_score: float = 0.0
    rule_score: float = 0.0
    accepted: bool = False
    bootstrap: bool = False


class EnsembleDecisionMaker:
    """Combines per-category similarity scores with the rule engine's best match."""

    def __init__(
        self,
        similarity_weight: float = 0.7,
        rule_weight: float = 0.3,
        acceptance_threshold: float = 0.4,
        bootstrap_fingerprint_count: int = 10,
        max_alternatives: int = 3,
        default_category: str = "Other",
    ):
        self.similarity_weight = similarity_weight
        self.rule_weight = rule_weight
        self.acceptance_threshold = acceptance_threshold
        self.bootstrap_fingerprint_count = bootstrap_fingerprint_count
        self.max_alternatives = max_alternatives
        self.default_category = default_category

    def combine(self, similarity_scores: Dict[str, float], rule_match: RuleMatch) -> Dict[str, float]:
        combined = {}
        for category, similarity in similarity_scores.items():
            score = similarity * self.similarity_weight
            if rule_match is not None and rule_match.category == category:
                score += rule_match.confidence * self.rule_weight
            combined[category] = score
        return combined

    def decide(self, similarity_scores: Dict[str, float], rule_match: RuleMatch,
               fingerprint_count: int) -> EnsembleDecision:
        """
        Pick a category from the combined scores.

        The top candidate is accepted when its combined score reaches the
        acceptance threshold, or when it is positive and fewer than
        bootstrap_fingerprint_count merchant fingerprints are known.

        Args:
            similarity_scores: Category -> similarity score in [0, 1]
            rule_match: Best rule-engine match
            fingerprint_count: Number of entries in the merchant fingerprint index

        Returns:
            EnsembleDecision (default category with confidence 0 when rejected)
        """
        combined = self.combine(similarity_scores, rule_match)
        ranked = sorted(combined.items(), key=lambda item: item[1], reverse=True)

        category, confidence = self.default_category, 0.0
        accepted = bootstrap = False
        if ranked:
            top_category, top_score = ranked[0]
            if top_score >= self.acceptance_threshold:
                accepted = True
            elif top_score > 0 and fingerprint_count < self.bootstrap_fingerprint_count:
                accepted = bootstrap = True
            if accepted:
                category, confidence = top_category, top_score

        alternatives = [
            (alt_category, alt_score)
            for alt_category, alt_score in ranked
            if alt_category != category
        ][:self.max_alternatives]

        return EnsembleDecision(
            category=category,
            confidence=confidence,
            alternatives=alternatives,
            similarity_score=similarity_scores.get(category, 0.0),
            rule_score=rule_match.confidence if rule_match is not None and rule_match.category == category else 0.0,
            accepted=accepted,
            bootstrap=bootstrap,
        )
