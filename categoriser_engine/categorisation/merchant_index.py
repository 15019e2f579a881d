"""
Merchant Fingerprint Index.

Exact-match cache from description fingerprint to the last confirmed category.
Used as the categorisation fast path once a merchant is established.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterator, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class MerchantFingerprintEntry:
    """Last known categorisation of a fingerprint."""
    category: str
    confidence: float
    count: int
    last_seen: datetime


class MerchantFingerprintIndex:
    """Fingerprint -> MerchantFingerprintEntry map. Entries are never deleted."""

    def __init__(self, min_confidence: float = 0.9, min_count: int = 3):
        self.min_confidence = min_confidence
        self.min_count = min_count
        self._entries: Dict[str, MerchantFingerprintEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fingerprint: str) -> bool:
        return fingerprint in self._entries

    def __iter__(self) -> Iterator[Tuple[str, MerchantFingerprintEntry]]:
        return iter(list(self._entries.items()))

    def lookup(self, fingerprint: str) -> Optional[MerchantFingerprintEntry]:
        return self._entries.get(fingerprint)

    def record(self, fingerprint: str, category: str, confidence: float,
               now: Optional[datetime] = None) -> MerchantFingerprintEntry:
        """
        Upsert a fingerprint observation.

        The category is replaced, confidence becomes the maximum seen and the
        occurrence count is incremented.
        """
        now = now or datetime.now()
        existing = self._entries.get(fingerprint)
        if existing is None:
            entry = MerchantFingerprintEntry(
                category=category,
                confidence=confidence,
                count=1,
                last_seen=now,
            )
            self._entries[fingerprint] = entry
            return entry

        existing.category = category
        existing.confidence = max(existing.confidence, confidence)
        existing.count += 1
        existing.last_seen = now
        return existing

    def confirm(self, fingerprint: str, category: str,
                now: Optional[datetime] = None) -> MerchantFingerprintEntry:
        """
        Apply a user-confirmed category to a fingerprint.

        Confidence is set to 1.0 and the occurrence count preserved (at least 1),
        so confirmation alone never makes an unseen merchant eligible for the
        fast path.
        """
        now = now or datetime.now()
        existing = self._entries.get(fingerprint)
        entry = MerchantFingerprintEntry(
            category=category,
            confidence=1.0,
            count=existing.count if existing else 1,
            last_seen=now,
        )
        self._entries[fingerprint] = entry
        return entry

    def put(self, fingerprint: str, entry: MerchantFingerprintEntry):
        self._entries[fingerprint] = entry

    def clear(self):
        self._entries.clear()

    def is_established(self, entry: Optional[MerchantFingerprintEntry]) -> bool:
        """Whether an entry may short-circuit categorisation."""
        return (
            entry is not None
            and bool(entry.category)
            and entry.confidence >= self.min_confidence
            and entry.count >= self.min_count
        )

    def category_distribution(self) -> Dict[str, int]:
        distribution: Dict[str, int] = {}
        for entry in self._entries.values():
            distribution[entry.category] = distribution.get(entry.category, 0) + 1
        return distribution
