"""
Batch Categoriser for statement-level transaction categorisation.
Categorises whole statements, collects user feedback, and exports results.
"""

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .categorisation.engine import TransactionCategoriser
from .exceptions import InvalidTransactionError

logger = logging.getLogger(__name__)


@dataclass
class ProcessingError:
    """Details of a transaction that could not be categorised."""
    index: int
    error_type: str
    error_message: str
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


@dataclass
class BatchStats:
    """Statistics for a categorisation batch."""
    total_transactions: int = 0
    successful: int = 0
    failed: int = 0
    low_confidence: int = 0
    total_confidence: float = 0.0
    method_counts: Dict[str, int] = field(default_factory=dict)
    category_counts: Dict[str, int] = field(default_factory=dict)

    # Timing
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def average_confidence(self) -> float:
        """Calculate average confidence of successful categorisations."""
        if self.successful == 0:
            return 0.0
        return self.total_confidence / self.successful

    @property
    def processing_time(self) -> float:
        """Calculate total processing time in seconds."""
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return 0.0

    @property
    def success_rate(self) -> float:
        """Calculate success rate as percentage."""
        if self.total_transactions == 0:
            return 0.0
        return (self.successful / self.total_transactions) * 100

    def to_dict(self) -> Dict:
        return {
            "total_transactions": self.total_transactions,
            "successful": self.successful,
            "failed": self.failed,
            "low_confidence": self.low_confidence,
            "average_confidence": self.average_confidence,
            "success_rate": self.success_rate,
            "processing_time": self.processing_time,
            "method_counts": dict(self.method_counts),
            "category_counts": dict(self.category_counts),
        }


def _pre_validate(transaction: Any) -> Optional[tuple]:
    """Return (method, message) for a transaction that cannot be categorised."""
    if not isinstance(transaction, dict):
        return ("error_invalid_object", "Invalid transaction object")
    if transaction.get("description") is None:
        return ("error_missing_description", "Missing description")
    amount = transaction.get("amount")
    if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
        return ("error_invalid_amount", "Invalid amount")
    try:
        if not math.isfinite(float(amount)):
            return ("error_invalid_amount", "Invalid amount")
    except (ValueError, ArithmeticError):
        return ("error_invalid_amount", "Invalid amount")
    return None


class BatchCategoriser:
    """Categorises lists of transactions and applies user feedback in batches."""

    def __init__(self, categoriser: Optional[TransactionCategoriser] = None):
        """
        Args:
            categoriser: Engine to use (a new default engine if not given)
        """
        self.categoriser = categoriser or TransactionCategoriser()
        batch_config = self.categoriser.config["batch"]
        self.feedback_batch_size = batch_config["feedback_batch_size"]
        self.low_confidence_threshold = batch_config["low_confidence_threshold"]
        self.feedback_queue: List[Dict] = []
        self.last_stats = BatchStats()
        self.errors: List[ProcessingError] = []

    def categorise_transactions(self, transactions: List[Dict]) -> List[Dict]:
        """
        Categorise a list of transactions.

        Args:
            transactions: List of transaction dicts with keys:
                - description: Transaction description
                - amount: Signed transaction amount
                - date: (Optional) Transaction date

        Returns:
            Copies of the transactions annotated with category, category_confidence,
            category_method, suggested_categories, category_reasoning,
            category_error and fingerprint

        Raises:
            InvalidTransactionError: if transactions is not a list
        """
        if transactions is None:
            raise InvalidTransactionError("Transactions parameter is required")
        if not isinstance(transactions, list):
            raise InvalidTransactionError("Transactions must be a list")

        stats = BatchStats(total_transactions=len(transactions), start_time=datetime.now())
        self.errors = []
        self.last_stats = stats

        if not transactions:
            logger.info("No transactions to categorize")
            stats.end_time = datetime.now()
            return []

        method_counts: Counter = Counter()
        category_counts: Counter = Counter()
        categorised = []

        for idx, transaction in enumerate(transactions):
            problem = _pre_validate(transaction)
            if problem:
                method, message = problem
                logger.warning("Skipping transaction %d: %s", idx, message)
                row = dict(transaction) if isinstance(transaction, dict) else {}
                row.update({
                    "category": self.categoriser.default_category,
                    "category_confidence": 0.0,
                    "category_method": method,
                    "suggested_categories": [],
                    "category_reasoning": None,
                    "category_error": message,
                    "fingerprint": None,
                })
                categorised.append(row)
                self.errors.append(ProcessingError(index=idx, error_type=method, error_message=message))
                method_counts[method] += 1
                stats.failed += 1
                continue

            result = self.categoriser.categorize_transaction(transaction)
            row = dict(transaction)
            row.update({
                "category": result.category,
                "category_confidence": result.confidence,
                "category_method": result.method.value,
                "suggested_categories": [
                    {"category": alt.category, "confidence": alt.confidence}
                    for alt in result.alternative_categories
                ],
                "category_reasoning": result.reasoning,
                "category_error": result.error,
                "fingerprint": result.fingerprint,
            })
            categorised.append(row)

            method_counts[result.method.value] += 1
            if result.method.is_error:
                stats.failed += 1
                self.errors.append(ProcessingError(
                    index=idx, error_type=result.method.value, error_message=result.error or "",
                ))
                continue

            stats.successful += 1
            stats.total_confidence += result.confidence
            category_counts[result.category] += 1
            if result.confidence < self.low_confidence_threshold:
                stats.low_confidence += 1
                logger.info(
                    "Low confidence categorization: %.2f for category %s",
                    result.confidence, result.category,
                )

        stats.method_counts = dict(method_counts)
        stats.category_counts = dict(category_counts)
        stats.end_time = datetime.now()
        logger.info(
            "Categorization complete: %d successful, %d errors",
            stats.successful, stats.failed,
        )
        return categorised

    def provide_feedback(self, fingerprint: str, category: str):
        """
        Queue a user-confirmed category for a fingerprint.

        Feedback is applied to the merchant index in batches of feedback_batch_size.
        """
        self.feedback_queue.append({
            "fingerprint": fingerprint,
            "category": category,
            "timestamp": datetime.now(),
        })
        if len(self.feedback_queue) >= self.feedback_batch_size:
            self.process_feedback_batch()

    def process_feedback_batch(self) -> int:
        """Apply up to feedback_batch_size queued feedback items."""
        batch = self.feedback_queue[:self.feedback_batch_size]
        del self.feedback_queue[:self.feedback_batch_size]

        for feedback in batch:
            if not feedback["fingerprint"] or not feedback["category"]:
                continue
            self.categoriser.confirm_fingerprint(feedback["fingerprint"], feedback["category"])

        logger.info("Processed %d feedback items", len(batch))
        return len(batch)

    def flush_feedback(self) -> int:
        """Apply all queued feedback."""
        processed = 0
        while self.feedback_queue:
            processed += self.process_feedback_batch()
        return processed

    def get_statistics(self) -> Dict:
        """Engine statistics plus the last batch summary."""
        statistics = self.categoriser.get_statistics()
        statistics["last_batch"] = self.last_stats.to_dict()
        statistics["pending_feedback"] = len(self.feedback_queue)
        return statistics

    def results_to_dataframe(self, rows: List[Dict]):
        """
        Convert categorised transactions to a pandas DataFrame.

        Args:
            rows: Output of categorise_transactions()

        Returns:
            pandas DataFrame
        """
        import pandas as pd

        records = []
        for row in rows:
            suggestions = row.get("suggested_categories") or []
            records.append({
                "Date": row.get("date"),
                "Description": row.get("description"),
                "Amount": row.get("amount"),
                "Category": row.get("category"),
                "Confidence": round(row.get("category_confidence") or 0.0, 4),
                "Method": row.get("category_method"),
                "Alternatives": "; ".join(s["category"] for s in suggestions),
                "Fingerprint": row.get("fingerprint"),
                "Error": row.get("category_error") or "",
            })

        return pd.DataFrame(records)

    def errors_to_dataframe(self, errors: Optional[List[ProcessingError]] = None):
        """
        Convert processing errors to a pandas DataFrame.

        Args:
            errors: List of ProcessingError objects (defaults to the last batch)

        Returns:
            pandas DataFrame
        """
        import pandas as pd

        rows = []
        for error in (self.errors if errors is None else errors):
            rows.append({
                "Index": error.index,
                "Error Type": error.error_type,
                "Error Message": error.error_message,
                "Timestamp": error.timestamp,
            })

        return pd.DataFrame(rows, columns=["Index", "Error Type", "Error Message", "Timestamp"])

    def category_summary_dataframe(self, rows: List[Dict]):
        """Per-category transaction count, total amount and mean confidence."""
        frame = self.results_to_dataframe(rows)
        if frame.empty:
            return frame
        frame["Amount"] = frame["Amount"].apply(
            lambda value: abs(float(value)) if isinstance(value, (int, float, Decimal))
            and not isinstance(value, bool) else 0.0
        )
        return (
            frame.groupby("Category")
            .agg(Transactions=("Confidence", "size"),
                 Total_Amount=("Amount", "sum"),
                 Mean_Confidence=("Confidence", "mean"))
            .reset_index()
            .sort_values("Transactions", ascending=False)
            .reset_index(drop=True)
        )
