"""
Tests for engine configuration merging and the CSV rule loader.
"""

import os
import tempfile
import unittest

from categoriser_engine import TransactionCategoriser, CategorisationMethod
from categoriser_engine.config import ENGINE_CONFIG, load_rules_csv, merge_config


class TestMergeConfig(unittest.TestCase):
    """Test configuration overrides."""

    def test_defaults_returned_as_copy(self):
        """Test merged configuration never mutates the defaults."""
        config = merge_config()
        config["ensemble"]["acceptance_threshold"] = 0.99
        self.assertEqual(ENGINE_CONFIG["ensemble"]["acceptance_threshold"], 0.4)

    def test_nested_override(self):
        """Test nested overrides keep sibling defaults."""
        config = merge_config({"similarity": {"weights": {"keywords": 0.5}}})
        self.assertEqual(config["similarity"]["weights"]["keywords"], 0.5)
        self.assertEqual(config["similarity"]["weights"]["amount"], 0.20)
        self.assertEqual(config["similarity"]["recent_patterns"], 20)

    def test_overrides_not_shared(self):
        """Test later changes to the override dict do not leak into the config."""
        overrides = {"fallback": {"default_category": "Uncategorised"}}
        config = merge_config(overrides)
        overrides["fallback"]["default_category"] = "Changed"
        self.assertEqual(config["fallback"]["default_category"], "Uncategorised")

    def test_hash_length_overrides_used_by_engine(self):
        """Test fingerprint and keyword hash lengths come from the configuration."""
        categoriser = TransactionCategoriser(config={
            "fingerprint": {"length": 12},
            "keywords": {"hash_length": 6},
        })
        txn = {"description": "WALMART SUPERCENTER #1234", "amount": -45.23}
        result = categoriser.categorize_transaction(txn)
        self.assertEqual(len(result.fingerprint), 12)
        self.assertEqual(result.category, "Groceries")
        self.assertAlmostEqual(result.details["similarity_breakdown"]["keywords"], 0.5)
        for _, entry in categoriser.pattern_store:
            self.assertTrue(all(len(h) == 6 for h in entry.keywords))

        for _ in range(3):
            categoriser.learn_from_transaction(txn, "Groceries")
        model = categoriser.export_model()
        self.assertEqual(len(model["merchant_fingerprints"][0]["fingerprint"]), 12)
        self.assertEqual(
            categoriser.categorize_transaction(txn).method, CategorisationMethod.EXACT_MERCHANT_MATCH
        )

    def test_default_category_override_used_by_engine(self):
        """Test the configured default category replaces 'Other'."""
        categoriser = TransactionCategoriser(
            config={"fallback": {"default_category": "Uncategorised"}},
            category_patterns={},
        )
        result = categoriser.categorize_transaction({"description": "ZZZ", "amount": -1})
        self.assertEqual(result.category, "Uncategorised")
        self.assertEqual(result.method, CategorisationMethod.FALLBACK_NO_MATCH)


class TestRuleLoader(unittest.TestCase):
    """Test loading rules from CSV."""

    def setUp(self):
        handle, self.path = tempfile.mkstemp(suffix=".csv")
        with os.fdopen(handle, "w", encoding="utf-8") as f:
            f.write(
                "category,pattern,weight\n"
                "Pets,petco|petsmart,0.9\n"
                "Pets,vet|veterinary,0.8\n"
                "Gym,,0.9\n"
                "Gym,fitness|gym,heavy\n"
                ",orphan,0.5\n"
                "Gym,puregym,1\n"
            )

    def tearDown(self):
        os.remove(self.path)

    def test_load_rules(self):
        """Test valid CSV rows load and blank or invalid rows are skipped."""
        rules = load_rules_csv(self.path)
        self.assertEqual(rules["Pets"], [
            {"pattern": "petco|petsmart", "weight": 0.9},
            {"pattern": "vet|veterinary", "weight": 0.8},
        ])
        self.assertEqual(rules["Gym"], [{"pattern": "puregym", "weight": 1.0}])
        self.assertEqual(set(rules), {"Pets", "Gym"})

    def test_invalid_weight_logged(self):
        """Test an invalid weight is logged with its line number."""
        with self.assertLogs("categoriser_engine.config.rule_loader", level="WARNING") as logs:
            load_rules_csv(self.path)
        self.assertTrue(any("line 5" in message for message in logs.output))

    def test_missing_file(self):
        """Test a missing rule file raises FileNotFoundError."""
        with self.assertRaises(FileNotFoundError):
            load_rules_csv(self.path + ".missing")

    def test_loaded_rules_drive_engine(self):
        """Test rules loaded from CSV are used by the engine."""
        categoriser = TransactionCategoriser(rules=load_rules_csv(self.path))
        result = categoriser.categorize_transaction({"description": "PUREGYM MONTHLY", "amount": -24.99})
        self.assertEqual(result.category, "Gym")
        self.assertEqual(result.method, CategorisationMethod.RULE_BASED)


if __name__ == "__main__":
    unittest.main()
