"""
Preprocessing utilities for transaction categorisation.
Handles transaction validation, description fingerprinting, and keyword extraction.
"""

import hashlib
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional

from ..exceptions import InvalidTransactionError
from ..patterns.category_patterns import STOP_WORDS


# Neutral date used when a transaction carries no usable date
EPOCH = datetime(1970, 1, 1)

FINGERPRINT_LENGTH = 16
KEYWORD_HASH_LENGTH = 8

_DIGITS_RE = re.compile(r"[0-9]")
_WHITESPACE_RE = re.compile(r"\s+")
_NON_WORD_RE = re.compile(r"[^\w\s]")
_TOKEN_SPLIT_RE = re.compile(r"[\s\-_#*]+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


@dataclass
class Transaction:
    """A bank-statement transaction as seen by the categoriser."""
    description: str
    amount: float  # signed; categorisation uses the absolute value
    date: Optional[datetime] = None

    @property
    def abs_amount(self) -> float:
        return abs(self.amount)


def normalize_description(description: Optional[str]) -> str:
    """
    Normalize a description for fingerprinting.

    Lowercases, strips digits, collapses whitespace, strips punctuation and trims.

    Args:
        description: Raw transaction description

    Returns:
        Normalized description ("" for None)
    """
    if description is None:
        return ""
    text = str(description).lower()
    text = _DIGITS_RE.sub("", text)
    text = _WHITESPACE_RE.sub(" ", text)
    text = _NON_WORD_RE.sub("", text)
    return text.strip()


def generate_fingerprint(description: Optional[str], length: int = FINGERPRINT_LENGTH) -> str:
    """
    Generate a stable fingerprint for a transaction description.

    Args:
        description: Raw transaction description

    Returns:
        First `length` hex characters of the SHA-256 digest of the normalized
        description, or "" when description is None

    Example:
        >>> generate_fingerprint("WALMART #123") == generate_fingerprint("walmart    123")
        True
    """
    if description is None:
        return ""
    normalized = normalize_description(description)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:length]


def hash_keyword(keyword: str, length: int = KEYWORD_HASH_LENGTH) -> str:
    """Hash a keyword so learned vocabularies never hold raw description text."""
    return hashlib.md5(keyword.lower().encode("utf-8")).hexdigest()[:length]


def extract_keywords(description: Optional[str], min_length: int = 3) -> List[str]:
    """
    Extract meaningful tokens from a description.

    Stop words, purely numeric tokens and tokens shorter than `min_length`
    are discarded.

    Args:
        description: Raw transaction description

    Returns:
        List of lowercase alphanumeric tokens, in order of appearance
    """
    if not description:
        return []

    keywords = []
    for word in _TOKEN_SPLIT_RE.split(str(description).lower()):
        if word.isdigit() or word in STOP_WORDS:
            continue
        token = _NON_ALNUM_RE.sub("", word)
        if len(token) < min_length or token.isdigit() or token in STOP_WORDS:
            continue
        keywords.append(token)
    return keywords


def hashed_keywords(description: Optional[str], min_length: int = 3,
                    hash_length: int = KEYWORD_HASH_LENGTH) -> set:
    """Return the set of hashed keywords for a description."""
    return {hash_keyword(k, hash_length) for k in extract_keywords(description, min_length)}


def parse_transaction_date(value: Any) -> datetime:
    """
    Parse a transaction date, falling back to the epoch.

    Args:
        value: datetime, date, or string beginning with YYYY-MM-DD

    Returns:
        Parsed datetime (EPOCH when missing or unparseable)
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value.strip():
        try:
            return datetime.strptime(value.strip()[:10], "%Y-%m-%d")
        except ValueError:
            return EPOCH
    return EPOCH


def _coerce_amount(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidTransactionError("Transaction amount must be a valid number")
    try:
        amount = float(value)
    except (ValueError, ArithmeticError):
        raise InvalidTransactionError("Transaction amount must be a valid number")
    if not math.isfinite(amount):
        raise InvalidTransactionError("Transaction amount must be a valid number")
    return amount


def coerce_transaction(raw: Any) -> Transaction:
    """
    Validate a raw transaction and convert it to a Transaction.

    Args:
        raw: Mapping with description/amount/date keys, or a Transaction

    Returns:
        Validated Transaction with a float amount and parsed date

    Raises:
        InvalidTransactionError: if the transaction is missing, not an object,
            has a non-string description or a non-numeric amount
    """
    if raw is None:
        raise InvalidTransactionError("Transaction object is required")

    if isinstance(raw, Transaction):
        description, amount, txn_date = raw.description, raw.amount, raw.date
    elif isinstance(raw, Mapping):
        description = raw.get("description")
        amount = raw.get("amount")
        txn_date = raw.get("date")
    else:
        raise InvalidTransactionError("Transaction must be an object")

    if description is None:
        raise InvalidTransactionError("Transaction description is required")
    if not isinstance(description, str):
        raise InvalidTransactionError("Transaction description must be a string")

    return Transaction(
        description=description,
        amount=_coerce_amount(amount),
        date=parse_transaction_date(txn_date),
    )
