"""
Online learning from confirmed transaction categories.

Updates the category pattern store and merchant fingerprint index from user
confirmations, and batches processed events into a learning queue.
"""

import logging
import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Optional

from ..exceptions import InvalidTransactionError
from .features import FeatureVector, extract_features
from .merchant_index import MerchantFingerprintIndex
from .pattern_store import CategoryPatternStore
from .preprocess import (
    FINGERPRINT_LENGTH,
    KEYWORD_HASH_LENGTH,
    coerce_transaction,
    generate_fingerprint,
    hashed_keywords,
)

logger = logging.getLogger(__name__)


@dataclass
class LearningEvent:
    """A processed learning event waiting for batch housekeeping."""
    fingerprint: str
    category: str
    features: FeatureVector
    learned_at: datetime


class OnlineLearner:
    """Applies confirmed labels to the pattern store and fingerprint index."""

    def __init__(
        self,
        store: CategoryPatternStore,
        index: MerchantFingerprintIndex,
        batch_size: int = 50,
        min_token_length: int = 3,
        fingerprint_length: int = FINGERPRINT_LENGTH,
        keyword_hash_length: int = KEYWORD_HASH_LENGTH,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.index = index
        self.batch_size = batch_size
        self.min_token_length = min_token_length
        self.fingerprint_length = fingerprint_length
        self.keyword_hash_length = keyword_hash_length
        self.clock = clock or datetime.now
        self.learning_queue: List[LearningEvent] = []
        self.batches_processed = 0

    def learn(self, raw_transaction: Any, category: str, confidence: float = 1.0) -> bool:
        """
        Learn from a confirmed transaction category.

        Args:
            raw_transaction: Transaction mapping or Transaction
            category: Confirmed category name
            confidence: Confidence of the label, clamped to [0, 1]

        Returns:
            True on success, False if the input was invalid or learning failed
        """
        try:
            transaction = coerce_transaction(raw_transaction)
            if not transaction.description.strip():
                raise InvalidTransactionError("Transaction description is required")
            if not isinstance(category, str) or not category.strip():
                raise InvalidTransactionError("Category is required")
            if isinstance(confidence, bool) or not isinstance(confidence, (int, float)) \
                    or not math.isfinite(confidence):
                raise InvalidTransactionError("Confidence must be a number")
            confidence = min(1.0, max(0.0, float(confidence)))

            now = self.clock()
            fingerprint = generate_fingerprint(transaction.description, self.fingerprint_length)
            features = extract_features(transaction)
            keywords = hashed_keywords(
                transaction.description, self.min_token_length, self.keyword_hash_length
            )

            self.store.record(category, fingerprint, features, keywords, confidence, now)
            self.index.record(fingerprint, category, confidence, now)

            self.learning_queue.append(LearningEvent(
                fingerprint=fingerprint,
                category=category,
                features=features,
                learned_at=now,
            ))
            if len(self.learning_queue) >= self.batch_size:
                self.process_batch()

            logger.info("Learned pattern for category: %s (confidence: %.2f)", category, confidence)
            return True
        except Exception as e:
            logger.error("Learning error: %s", e)
            return False

    def process_batch(self) -> int:
        """
        Drain up to batch_size queued events and emit batch statistics.

        Returns:
            Number of events processed
        """
        batch = self.learning_queue[:self.batch_size]
        del self.learning_queue[:self.batch_size]
        try:
            per_category = Counter(event.category for event in batch)
            self.batches_processed += 1
            logger.info(
                "Processed batch learning for %d transactions across %d categories: %s",
                len(batch), len(per_category), dict(per_category),
            )
        except Exception as e:
            logger.warning("Batch learning housekeeping failed: %s", e)
        return len(batch)
