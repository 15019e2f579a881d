"""
Weighted Rule Matching for Transaction Categorisation.

Evaluates hand-authored regex rules per category and returns the best match.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .pattern_store import AmountRange

logger = logging.getLogger(__name__)


@dataclass
class RuleMatch:
    """Best rule-based match for a transaction."""
    category: str = "Other"
    confidence: float = 0.0
    reasoning: str = "No rules matched"
    matched_rules: List[str] = field(default_factory=list)


def compile_rule_pattern(pattern) -> Optional[re.Pattern]:
    """
    Compile a rule pattern.

    Args:
        pattern: Regex string or pre-compiled pattern

    Returns:
        Compiled pattern, or None if the pattern is empty or invalid
    """
    if isinstance(pattern, re.Pattern):
        return pattern
    if not isinstance(pattern, str) or not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.warning("Skipping invalid rule pattern %r: %s", pattern, e)
        return None


class RuleEngine:
    """Scores transactions against weighted per-category rules."""

    def __init__(self, rules: Optional[Dict[str, List[Dict]]] = None, amount_penalty: float = 0.7):
        """
        Args:
            rules: Mapping of category -> list of {"pattern", "weight"} dicts
            amount_penalty: Multiplier applied when the amount is outside the
                category's learned amount range
        """
        self.amount_penalty = amount_penalty
        self._rules: Dict[str, List[Dict]] = {}
        self._compiled: Dict[str, List[tuple]] = {}
        for category, category_rules in (rules or {}).items():
            self.set_rules(category, category_rules)

    @property
    def categories(self) -> List[str]:
        return list(self._rules)

    def rules_for(self, category: str) -> List[Dict]:
        return list(self._rules.get(category, []))

    def set_rules(self, category: str, rules: List[Dict]):
        """Replace the rules for a category. Malformed rules are kept but never scored."""
        self._rules[category] = list(rules) if isinstance(rules, (list, tuple)) else []
        compiled = []
        for rule in self._rules[category]:
            if not isinstance(rule, dict):
                continue
            weight = rule.get("weight")
            if isinstance(weight, bool) or not isinstance(weight, (int, float)):
                continue
            pattern = compile_rule_pattern(rule.get("pattern"))
            if pattern is None:
                continue
            compiled.append((pattern, float(weight)))
        self._compiled[category] = compiled

    def score_category(self, category: str, description: str, amount: float,
                       amount_range: Optional[AmountRange] = None) -> RuleMatch:
        """
        Score one category.

        Confidence is the matched share of the category's total rule weight,
        multiplied by the amount penalty when the amount is outside a learned range.
        """
        compiled = self._compiled.get(category, [])
        total_weight = sum(weight for _, weight in compiled)
        if total_weight <= 0:
            return RuleMatch(category=category, confidence=0.0, reasoning="No usable rules")

        matched_weight = 0.0
        matched_rules = []
        for pattern, weight in compiled:
            try:
                if pattern.search(description):
                    matched_weight += weight
                    matched_rules.append(pattern.pattern)
            except Exception as e:
                logger.warning("Error applying rule for category %s: %s", category, e)

        confidence = matched_weight / total_weight
        if amount_range is not None and amount_range.is_set and not amount_range.contains(amount):
            confidence *= self.amount_penalty

        return RuleMatch(
            category=category,
            confidence=confidence,
            reasoning=f"Matched rules: {', '.join(matched_rules)}",
            matched_rules=matched_rules,
        )

    def apply(self, description: Optional[str], amount: float,
              amount_range_for: Optional[Callable[[str], Optional[AmountRange]]] = None) -> RuleMatch:
        """
        Return the best-scoring category for a transaction.

        Args:
            description: Transaction description (matched lowercased)
            amount: Transaction amount (absolute value is used)
            amount_range_for: Callable returning the learned amount range of a category

        Returns:
            RuleMatch; category "Other" with confidence 0 when nothing matches
        """
        if not description:
            return RuleMatch(reasoning="No transaction data")

        text = str(description).lower()
        amount = abs(amount or 0.0)
        best = RuleMatch()

        for category in self._rules:
            try:
                amount_range = amount_range_for(category) if amount_range_for else None
                match = self.score_category(category, text, amount, amount_range)
            except Exception as e:
                logger.warning("Error processing rules for category %s: %s", category, e)
                continue

            if match.confidence > best.confidence:
                best = match

        return best
