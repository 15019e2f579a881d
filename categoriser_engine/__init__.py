"""
Categoriser Engine - Adaptive Bank Transaction Categorisation.

A self-contained engine that assigns spending categories to bank-statement
transactions and improves as users confirm or correct them.

Main Components:
    - patterns: Seed keywords, amount bands and weighted rules per category
    - config: Engine thresholds, weights and learning parameters
    - categorisation: Fingerprinting, rules, similarity scoring, ensemble and learning
    - batch_processor: Statement-level categorisation, feedback and reporting
"""

from typing import Dict, List, Optional

# Core categorisation components
from .categorisation.engine import (
    TransactionCategoriser,
    CategorisationResult,
    CategorisationMethod,
    AlternativeCategory,
)
from .categorisation.preprocess import Transaction, generate_fingerprint

# Batch processing
from .batch_processor import BatchCategoriser, BatchStats, ProcessingError

# Configuration
from .config.engine_config import ENGINE_CONFIG, merge_config
from .config.rule_loader import load_rules_csv

from .patterns.category_patterns import DEFAULT_CATEGORY_PATTERNS

from .exceptions import (
    CategorisationError,
    InvalidTransactionError,
    ComputationError,
    ModelVersionMismatchError,
)


__version__ = "1.0.0"
__all__ = [
    # Categorisation
    "TransactionCategoriser",
    "CategorisationResult",
    "CategorisationMethod",
    "AlternativeCategory",
    "Transaction",
    "generate_fingerprint",
    # Batch processing
    "BatchCategoriser",
    "BatchStats",
    "ProcessingError",
    # Configuration
    "ENGINE_CONFIG",
    "merge_config",
    "load_rules_csv",
    "DEFAULT_CATEGORY_PATTERNS",
    # Errors
    "CategorisationError",
    "InvalidTransactionError",
    "ComputationError",
    "ModelVersionMismatchError",
    # Main function
    "run_statement_categorisation",
]


def run_statement_categorisation(
    transactions: List[Dict],
    categoriser: Optional[TransactionCategoriser] = None,
) -> Dict:
    """
    Main entry point for statement categorisation.

    Args:
        transactions: List of transaction dictionaries with keys:
            - description: Transaction description
            - amount: Signed transaction amount
            - date: Transaction date (string YYYY-MM-DD or datetime)
        categoriser: Engine holding learned state (a fresh engine if omitted)

    Returns:
        Dictionary containing:
            - categorized_transactions: Annotated copies of the transactions
            - summary: Batch statistics (counts, methods, categories, confidence)

    Example:
        >>> result = run_statement_categorisation([
        ...     {"description": "WALMART SUPERCENTER #1234", "amount": -45.23, "date": "2024-01-15"},
        ... ])
        >>> result["categorized_transactions"][0]["category"]
        'Groceries'
    """
    batch = BatchCategoriser(categoriser)
    categorized = batch.categorise_transactions(transactions)
    return {
        "categorized_transactions": categorized,
        "summary": batch.last_stats.to_dict(),
    }
