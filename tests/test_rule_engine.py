"""
Tests for weighted rule matching.
"""

import re
import unittest

from categoriser_engine.categorisation.pattern_store import AmountRange
from categoriser_engine.categorisation.rule_engine import RuleEngine, RuleMatch, compile_rule_pattern
from categoriser_engine.patterns import DEFAULT_CATEGORY_PATTERNS
from categoriser_engine.config import rules_from_patterns


class TestRuleEngine(unittest.TestCase):
    """Test rule scoring and best-match selection."""

    def setUp(self):
        self.engine = RuleEngine({
            "Coffee": [
                {"pattern": r"coffee|espresso", "weight": 0.6},
                {"pattern": r"starbucks", "weight": 0.4},
            ],
            "Fuel": [
                {"pattern": r"shell|bp", "weight": 1.0},
            ],
        })

    def test_confidence_is_matched_weight_share(self):
        """Test confidence is the share of matched rule weight."""
        match = self.engine.apply("STARBUCKS STORE 12", -4.5)
        self.assertEqual(match.category, "Coffee")
        self.assertAlmostEqual(match.confidence, 0.4)
        self.assertEqual(match.matched_rules, ["starbucks"])
        self.assertIn("starbucks", match.reasoning)

    def test_full_match(self):
        """Test matching every rule gives full confidence."""
        match = self.engine.apply("Starbucks Coffee", 4.5)
        self.assertAlmostEqual(match.confidence, 1.0)

    def test_best_category_wins(self):
        """Test the highest-scoring category is returned."""
        match = self.engine.apply("SHELL OIL 1234", 40)
        self.assertEqual(match.category, "Fuel")
        self.assertAlmostEqual(match.confidence, 1.0)

    def test_no_match_returns_other(self):
        """Test no match returns Other with zero confidence."""
        match = self.engine.apply("LIBRARY FINE", 2.0)
        self.assertEqual(match.category, "Other")
        self.assertEqual(match.confidence, 0.0)
        self.assertEqual(match.reasoning, "No rules matched")

    def test_empty_description(self):
        """Test an empty description is not scored."""
        match = self.engine.apply("", 10.0)
        self.assertEqual(match, RuleMatch(reasoning="No transaction data"))

    def test_amount_outside_range_is_penalised(self):
        """Test amounts outside the learned range are penalised."""
        ranges = {"Fuel": AmountRange(min=5, max=150)}
        inside = self.engine.apply("SHELL", -40, ranges.get)
        outside = self.engine.apply("SHELL", -400, ranges.get)
        self.assertAlmostEqual(inside.confidence, 1.0)
        self.assertAlmostEqual(outside.confidence, 0.7)

    def test_unset_range_is_not_penalised(self):
        """Test an unset range applies no penalty."""
        match = self.engine.apply("SHELL", 4000, lambda category: AmountRange())
        self.assertAlmostEqual(match.confidence, 1.0)

    def test_malformed_rules_are_skipped(self):
        """Test malformed rules count toward neither total nor matched weight."""
        engine = RuleEngine({
            "Travel": [
                {"pattern": r"airline", "weight": 0.5},
                {"pattern": r"([unclosed", "weight": 0.5},
                {"pattern": r"hotel", "weight": "heavy"},
                {"pattern": r"train", "weight": True},
                "not a rule",
            ],
        })
        match = engine.apply("AIRLINE TICKET", 300)
        self.assertEqual(match.category, "Travel")
        self.assertAlmostEqual(match.confidence, 1.0)
        self.assertEqual(len(engine.rules_for("Travel")), 5)

    def test_category_without_usable_rules(self):
        """Test categories without usable rules never match."""
        engine = RuleEngine({"Empty": [], "Broken": [{"pattern": "", "weight": 1}]})
        self.assertEqual(engine.apply("anything", 1).category, "Other")

    def test_compile_rule_pattern(self):
        """Test rule pattern compilation."""
        compiled = re.compile("abc")
        self.assertIs(compile_rule_pattern(compiled), compiled)
        self.assertIsNone(compile_rule_pattern(None))
        self.assertIsNone(compile_rule_pattern("(unbalanced"))


class TestDefaultRules(unittest.TestCase):
    """Test the shipped category rules."""

    def setUp(self):
        self.engine = RuleEngine(rules_from_patterns(DEFAULT_CATEGORY_PATTERNS))

    def test_all_categories_have_rules(self):
        """Test every default category carries rules."""
        self.assertEqual(set(self.engine.categories), set(DEFAULT_CATEGORY_PATTERNS))

    def test_streaming_subscription(self):
        """Test streaming services match Entertainment."""
        match = self.engine.apply("NETFLIX.COM", -15.99)
        self.assertEqual(match.category, "Entertainment")

    def test_walmart_is_groceries_below_fast_path(self):
        """Test Walmart matches Groceries below the fast-path threshold."""
        match = self.engine.apply("WALMART SUPERCENTER #1234", -45.23)
        self.assertEqual(match.category, "Groceries")
        self.assertAlmostEqual(match.confidence, 0.9 / 2.55)


if __name__ == "__main__":
    unittest.main()
