"""
Test suite for the batch categoriser.

Tests cover:
- Statement categorisation and per-row annotation
- Error tagging of malformed transactions
- Feedback batching
- DataFrame reporting
"""

import unittest
from decimal import Decimal

from categoriser_engine import (
    BatchCategoriser,
    InvalidTransactionError,
    TransactionCategoriser,
    run_statement_categorisation,
)
from categoriser_engine.categorisation.preprocess import generate_fingerprint


class TestBatchCategoriser(unittest.TestCase):
    """Test statement categorisation."""

    def setUp(self):
        self.batch = BatchCategoriser()
        self.transactions = [
            {"description": "WALMART SUPERCENTER #1234", "amount": -45.23, "date": "2024-01-15"},
            {"description": "NETFLIX.COM", "amount": -15.99, "date": "2024-01-16"},
            {"description": "", "amount": -3.00, "date": "2024-01-17"},
        ]

    def test_rows_are_annotated(self):
        """Test each row is copied and annotated with its categorisation."""
        rows = self.batch.categorise_transactions(self.transactions)
        self.assertEqual(len(rows), 3)
        self.assertEqual(rows[0]["category"], "Groceries")
        self.assertEqual(rows[0]["category_method"], "ensemble")
        self.assertEqual(rows[0]["description"], "WALMART SUPERCENTER #1234")
        self.assertEqual(len(rows[0]["suggested_categories"]), 3)
        self.assertEqual(rows[2]["category_method"], "fallback_empty_description")
        # Input rows are not mutated
        self.assertNotIn("category", self.transactions[0])

    def test_stats(self):
        """Test batch statistics count successes, methods and low-confidence results."""
        self.batch.categorise_transactions(self.transactions)
        stats = self.batch.last_stats
        self.assertEqual(stats.total_transactions, 3)
        self.assertEqual(stats.successful, 3)
        self.assertEqual(stats.failed, 0)
        self.assertEqual(stats.success_rate, 100.0)
        self.assertEqual(stats.method_counts["ensemble"], 2)
        self.assertGreater(stats.average_confidence, 0.0)
        self.assertGreaterEqual(stats.low_confidence, 1)

    def test_malformed_transactions_are_tagged(self):
        """Test malformed rows are tagged with an error method instead of failing the batch."""
        rows = self.batch.categorise_transactions([
            "not a transaction",
            {"amount": -10},
            {"description": "SHOP", "amount": "ten"},
            {"description": "SHOP", "amount": float("nan")},
        ])
        self.assertEqual(
            [row["category_method"] for row in rows],
            ["error_invalid_object", "error_missing_description",
             "error_invalid_amount", "error_invalid_amount"],
        )
        for row in rows:
            self.assertEqual(row["category"], "Other")
            self.assertEqual(row["category_confidence"], 0.0)
        self.assertEqual(self.batch.last_stats.failed, 4)
        self.assertEqual([error.index for error in self.batch.errors], [0, 1, 2, 3])

    def test_unconvertible_amounts_are_tagged(self):
        """Test signalling-NaN, infinite and oversized amounts are tagged without aborting the batch."""
        rows = self.batch.categorise_transactions([
            {"description": "SHOP", "amount": Decimal("sNaN")},
            {"description": "SHOP", "amount": Decimal("Infinity")},
            {"description": "SHOP", "amount": 10 ** 400},
            {"description": "WALMART SUPERCENTER #1234", "amount": Decimal("-45.23")},
        ])
        self.assertEqual(
            [row["category_method"] for row in rows[:3]],
            ["error_invalid_amount"] * 3,
        )
        self.assertEqual(rows[3]["category"], "Groceries")
        self.assertEqual(self.batch.last_stats.failed, 3)
        self.assertEqual(self.batch.last_stats.successful, 1)

    def test_empty_and_invalid_input(self):
        """Test an empty list returns no rows and a non-list raises."""
        self.assertEqual(self.batch.categorise_transactions([]), [])
        with self.assertRaises(InvalidTransactionError):
            self.batch.categorise_transactions(None)
        with self.assertRaises(InvalidTransactionError):
            self.batch.categorise_transactions({"description": "X", "amount": 1})


class TestFeedback(unittest.TestCase):
    """Test feedback batching."""

    def setUp(self):
        self.categoriser = TransactionCategoriser()
        self.batch = BatchCategoriser(self.categoriser)

    def test_feedback_applied_at_batch_size(self):
        """Test feedback is applied once ten items are queued."""
        for i in range(9):
            self.batch.provide_feedback("fp%d" % i, "Dining")
        self.assertEqual(len(self.categoriser.merchant_index), 0)
        self.assertEqual(self.batch.get_statistics()["pending_feedback"], 9)

        self.batch.provide_feedback("fp9", "Dining")
        self.assertEqual(len(self.categoriser.merchant_index), 10)
        self.assertEqual(len(self.batch.feedback_queue), 0)
        self.assertEqual(self.categoriser.merchant_index.lookup("fp3").confidence, 1.0)

    def test_flush_feedback(self):
        """Test flushing applies queued feedback and ignores blank fingerprints."""
        self.batch.provide_feedback("fp1", "Dining")
        self.batch.provide_feedback("", "Dining")
        self.assertEqual(self.batch.flush_feedback(), 2)
        self.assertEqual(len(self.categoriser.merchant_index), 1)

    def test_feedback_corrects_known_merchant(self):
        """Test user feedback overrides an established merchant category."""
        txn = {"description": "COSTCO WHOLESALE", "amount": -120.0}
        for _ in range(3):
            self.categoriser.learn_from_transaction(txn, "Groceries")
        fingerprint = generate_fingerprint(txn["description"])
        self.batch.provide_feedback(fingerprint, "Shopping")
        self.batch.flush_feedback()

        result = self.categoriser.categorize_transaction(txn)
        self.assertEqual(result.category, "Shopping")


class TestDataFrames(unittest.TestCase):
    """Test DataFrame reporting."""

    def setUp(self):
        self.batch = BatchCategoriser()
        self.rows = self.batch.categorise_transactions([
            {"description": "WALMART SUPERCENTER #1234", "amount": -45.23, "date": "2024-01-15"},
            {"description": "KROGER #88", "amount": -30.00, "date": "2024-01-18"},
            {"description": "NETFLIX.COM", "amount": -15.99, "date": "2024-01-16"},
            {"amount": -5},
        ])

    def test_results_to_dataframe(self):
        """Test categorised rows convert to a DataFrame."""
        df = self.batch.results_to_dataframe(self.rows)
        self.assertEqual(len(df), 4)
        self.assertIn("Category", df.columns)
        self.assertIn("Confidence", df.columns)
        self.assertEqual(df.loc[3, "Error"], "Missing description")

    def test_errors_to_dataframe(self):
        """Test processing errors convert to a DataFrame with fixed columns."""
        df = self.batch.errors_to_dataframe()
        self.assertEqual(list(df.columns), ["Index", "Error Type", "Error Message", "Timestamp"])
        self.assertEqual(len(df), 1)
        self.assertEqual(df.loc[0, "Error Type"], "error_missing_description")
        self.assertTrue(self.batch.errors_to_dataframe([]).empty)

    def test_category_summary(self):
        """Test the per-category summary counts rows and sums absolute amounts."""
        summary = self.batch.category_summary_dataframe(self.rows)
        groceries = summary[summary["Category"] == "Groceries"].iloc[0]
        self.assertEqual(groceries["Transactions"], 2)
        self.assertAlmostEqual(groceries["Total_Amount"], 75.23)


class TestRunStatementCategorisation(unittest.TestCase):
    """Test the package entry point."""

    def test_returns_rows_and_summary(self):
        """Test the entry point returns annotated rows and a summary."""
        result = run_statement_categorisation([
            {"description": "WALMART SUPERCENTER #1234", "amount": -45.23, "date": "2024-01-15"},
        ])
        self.assertEqual(result["categorized_transactions"][0]["category"], "Groceries")
        self.assertEqual(result["summary"]["total_transactions"], 1)
        self.assertEqual(result["summary"]["category_counts"], {"Groceries": 1})


if __name__ == "__main__":
    unittest.main()
