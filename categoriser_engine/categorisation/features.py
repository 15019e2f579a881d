"""
Feature extraction for transaction similarity scoring.
Derives a numeric/boolean feature vector from a transaction and compares vectors.
"""

import re
from dataclasses import dataclass, fields
from typing import Dict, Iterable

from .preprocess import Transaction, hash_keyword, EPOCH


NUMERIC_FEATURES = (
    "amount", "length", "word_count", "day_of_week", "day_of_month",
    "upper_case_ratio", "digit_ratio", "special_char_ratio",
)
BOOLEAN_FEATURES = (
    "has_currency", "has_location", "is_weekend", "is_round_amount", "has_card_number",
)
HASH_FEATURES = ("prefix_hash", "suffix_hash", "middle_hash")

# Substring width used for the structural hashes
STRUCTURAL_WINDOW = 8

_CURRENCY_RE = re.compile(r"\$|£|€|usd|eur|gbp")
_LOCATION_RE = re.compile(r"\b(st|ave|blvd|road|plaza|mall)\b")
_CARD_SUFFIX_RE = re.compile(r"\d{4}$")
_UPPER_RE = re.compile(r"[A-Z]")
_DIGIT_RE = re.compile(r"\d")
_SPECIAL_RE = re.compile(r"[^a-zA-Z0-9\s]")


@dataclass
class FeatureVector:
    """Features of a single transaction, computed per call."""
    # Numeric features
    amount: float = 0.0
    length: int = 0
    word_count: int = 0
    day_of_week: int = 0  # 0 = Sunday
    day_of_month: int = 1
    upper_case_ratio: float = 0.0
    digit_ratio: float = 0.0
    special_char_ratio: float = 0.0

    # Boolean features
    has_currency: bool = False
    has_location: bool = False
    is_weekend: bool = False
    is_round_amount: bool = False
    has_card_number: bool = False

    # Structural hashes
    prefix_hash: str = ""
    suffix_hash: str = ""
    middle_hash: str = ""

    def to_dict(self) -> Dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _ratio(pattern: re.Pattern, text: str) -> float:
    if not text:
        return 0.0
    return len(pattern.findall(text)) / len(text)


def extract_features(transaction: Transaction) -> FeatureVector:
    """
    Extract the feature vector for a transaction.

    Missing descriptions are treated as empty and missing dates as the epoch.

    Args:
        transaction: Validated transaction

    Returns:
        FeatureVector with ratios in [0, 1]
    """
    raw = transaction.description or ""
    description = raw.lower()
    amount = abs(transaction.amount or 0.0)
    txn_date = transaction.date or EPOCH

    day_of_week = txn_date.isoweekday() % 7
    mid = len(description) // 2
    middle_start = max(0, mid - STRUCTURAL_WINDOW // 2)

    return FeatureVector(
        amount=amount,
        length=len(description),
        word_count=len(description.split()),
        day_of_week=day_of_week,
        day_of_month=txn_date.day,
        upper_case_ratio=_ratio(_UPPER_RE, raw),
        digit_ratio=_ratio(_DIGIT_RE, raw),
        special_char_ratio=_ratio(_SPECIAL_RE, raw),
        has_currency=bool(_CURRENCY_RE.search(description)),
        has_location=bool(_LOCATION_RE.search(description)),
        is_weekend=day_of_week in (0, 6),
        is_round_amount=float(amount).is_integer(),
        has_card_number=bool(_CARD_SUFFIX_RE.search(description.strip())),
        prefix_hash=hash_keyword(description[:STRUCTURAL_WINDOW]),
        suffix_hash=hash_keyword(description[-STRUCTURAL_WINDOW:]),
        middle_hash=hash_keyword(description[middle_start:middle_start + STRUCTURAL_WINDOW]),
    )


def numeric_similarity(a: float, b: float) -> float:
    """Return 1 - |a-b|/max(a,b), or 1.0 when both values are zero."""
    largest = max(a, b)
    if largest <= 0:
        return 1.0
    return max(0.0, 1.0 - abs(a - b) / largest)


def compare_features(first: FeatureVector, second: FeatureVector) -> float:
    """
    Compare two feature vectors.

    Numeric features contribute their relative closeness, boolean features 1 when
    equal. Each matching structural hash counts as two perfect contributions;
    mismatched hashes are not counted.

    Returns:
        Similarity in [0, 1]
    """
    similarity = 0.0
    count = 0

    for name in NUMERIC_FEATURES:
        similarity += numeric_similarity(getattr(first, name), getattr(second, name))
        count += 1

    for name in BOOLEAN_FEATURES:
        similarity += 1.0 if getattr(first, name) == getattr(second, name) else 0.0
        count += 1

    for name in HASH_FEATURES:
        if getattr(first, name) == getattr(second, name):
            similarity += 2.0
            count += 2

    return similarity / count if count else 0.0


def average_features(vectors: Iterable[FeatureVector], names: Iterable[str]) -> Dict[str, float]:
    """Average the named numeric/boolean features over a collection of vectors."""
    vectors = list(vectors)
    names = list(names)
    if not vectors:
        return {name: 0.0 for name in names}
    return {
        name: sum(float(getattr(v, name)) for v in vectors) / len(vectors)
        for name in names
    }
