"""
Category Pattern Store.

Holds the learned state of every category: hashed keyword vocabulary, expected
amount band, and a decaying history of feature vectors from confirmed labels.
"""

import logging
import statistics
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterator, List, Optional, Set, Tuple

from .features import FeatureVector
from .preprocess import KEYWORD_HASH_LENGTH, hash_keyword

logger = logging.getLogger(__name__)


@dataclass
class AmountRange:
    """Expected absolute-amount band for a category. Both bounds None = not learned yet."""
    min: Optional[float] = None
    max: Optional[float] = None

    @property
    def is_set(self) -> bool:
        return self.min is not None and self.max is not None

    def contains(self, amount: float) -> bool:
        return self.is_set and self.min <= amount <= self.max

    def distance(self, amount: float) -> float:
        """Gap between amount and the nearest bound (0 when inside)."""
        if not self.is_set:
            return float("inf")
        if amount < self.min:
            return self.min - amount
        if amount > self.max:
            return amount - self.max
        return 0.0

    def widen(self, amount: float):
        self.min = amount if self.min is None else min(self.min, amount)
        self.max = amount if self.max is None else max(self.max, amount)

    def to_dict(self) -> Dict:
        return {"min": self.min, "max": self.max}

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "AmountRange":
        if not data:
            return cls()
        low, high = data.get("min"), data.get("max")
        return cls(
            min=float(low) if low is not None else None,
            max=float(high) if high is not None else None,
        )


@dataclass
class LearnedPattern:
    """One confirmed observation of a category."""
    fingerprint: str
    features: FeatureVector
    weight: float
    learned_at: datetime


@dataclass
class CategoryPatternEntry:
    """Learned state for one category."""
    keywords: Set[str] = field(default_factory=set)
    amount_range: AmountRange = field(default_factory=AmountRange)
    patterns: List[LearnedPattern] = field(default_factory=list)
    confidence: float = 0.0

    @property
    def mean_confidence(self) -> float:
        """Mean decayed weight of the stored patterns (entry confidence if none)."""
        if not self.patterns:
            return self.confidence
        return sum(p.weight for p in self.patterns) / len(self.patterns)

    def recent_patterns(self, limit: int) -> List[LearnedPattern]:
        return self.patterns[-limit:] if limit > 0 else []


class CategoryPatternStore:
    """Per-category learned state, keyed by category name."""

    def __init__(
        self,
        retention_days: int = 90,
        decay_factor: float = 0.95,
        outlier_sigma: float = 3.0,
        cold_start_patterns: int = 10,
        keyword_hash_length: int = KEYWORD_HASH_LENGTH,
    ):
        self.retention = timedelta(days=retention_days)
        self.decay_factor = decay_factor
        self.outlier_sigma = outlier_sigma
        self.cold_start_patterns = cold_start_patterns
        self.keyword_hash_length = keyword_hash_length
        self._entries: Dict[str, CategoryPatternEntry] = {}

    def __contains__(self, category: str) -> bool:
        return category in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Tuple[str, CategoryPatternEntry]]:
        return iter(list(self._entries.items()))

    def get(self, category: str) -> Optional[CategoryPatternEntry]:
        return self._entries.get(category)

    def categories(self) -> List[str]:
        return list(self._entries)

    def ensure(self, category: str) -> CategoryPatternEntry:
        """Return the entry for a category, creating an empty one if new."""
        entry = self._entries.get(category)
        if entry is None:
            entry = CategoryPatternEntry()
            self._entries[category] = entry
            logger.debug("Created pattern entry for new category %s", category)
        return entry

    def set_entry(self, category: str, entry: CategoryPatternEntry):
        self._entries[category] = entry

    def clear(self):
        self._entries.clear()

    def seed_category(self, category: str, keywords: List[str],
                      amount_range: Optional[Dict] = None, confidence: float = 0.8):
        """Seed a category with author-supplied keywords and amount band."""
        entry = self.ensure(category)
        entry.keywords.update(hash_keyword(k, self.keyword_hash_length) for k in keywords)
        if amount_range:
            entry.amount_range = AmountRange.from_dict(amount_range)
        entry.confidence = confidence

    def prune_and_decay(self, entry: CategoryPatternEntry, now: datetime):
        """Drop patterns past retention and decay the weights of the survivors."""
        cutoff = now - self.retention
        entry.patterns = [p for p in entry.patterns if p.learned_at > cutoff]
        for pattern in entry.patterns:
            pattern.weight *= self.decay_factor

    def accepts_amount(self, entry: CategoryPatternEntry, amount: float) -> bool:
        """
        Decide whether a new amount may widen the category's amount band.

        Until cold_start_patterns observations exist every amount is accepted;
        afterwards the amount must lie within outlier_sigma population standard
        deviations of the stored pattern amounts.
        """
        amounts = [p.features.amount for p in entry.patterns]
        if len(amounts) < self.cold_start_patterns:
            return True
        mean = statistics.fmean(amounts)
        std_dev = statistics.pstdev(amounts, mean)
        return abs(amount - mean) <= self.outlier_sigma * std_dev

    def record(
        self,
        category: str,
        fingerprint: str,
        features: FeatureVector,
        keywords: Set[str],
        weight: float,
        now: datetime,
    ) -> CategoryPatternEntry:
        """
        Record a confirmed observation for a category.

        Prunes and decays existing patterns, updates the amount band under the
        outlier policy, appends the new pattern and merges the hashed keywords.
        """
        entry = self.ensure(category)
        self.prune_and_decay(entry, now)

        amount = features.amount
        if self.accepts_amount(entry, amount):
            entry.amount_range.widen(amount)
        else:
            logger.debug(
                "Amount %.2f rejected as outlier for %s (range kept at %s-%s)",
                amount, category, entry.amount_range.min, entry.amount_range.max,
            )

        entry.patterns.append(LearnedPattern(
            fingerprint=fingerprint,
            features=features,
            weight=weight,
            learned_at=now,
        ))
        entry.keywords.update(keywords)
        return entry

    def total_patterns(self) -> int:
        return sum(len(entry.patterns) for entry in self._entries.values())
