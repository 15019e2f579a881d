"""
Model export/import for the adaptive categoriser.

Snapshots are privacy-preserving: categories carry hashed keywords and
aggregate statistics only, never raw descriptions or feature histories.
"""

import logging
from datetime import datetime
from typing import Dict, Optional

from ..exceptions import ModelVersionMismatchError
from .merchant_index import MerchantFingerprintEntry, MerchantFingerprintIndex
from .pattern_store import AmountRange, CategoryPatternEntry, CategoryPatternStore

logger = logging.getLogger(__name__)

MODEL_VERSION = "2.0"


def export_model(
    store: CategoryPatternStore,
    index: MerchantFingerprintIndex,
    version: str = MODEL_VERSION,
    now: Optional[datetime] = None,
) -> Dict:
    """
    Export the learned state as a JSON-ready snapshot.

    Returns:
        Dictionary containing:
            - version: Snapshot format version
            - export_date: ISO timestamp
            - categories: {name: {keyword_hashes, amount_range, pattern_count, avg_confidence}}
            - merchant_fingerprints: [{fingerprint, category, confidence, count}]
            - statistics: totals of categories, merchants and patterns
    """
    now = now or datetime.now()
    model = {
        "version": version,
        "export_date": now.isoformat(),
        "categories": {},
        "merchant_fingerprints": [],
        "statistics": {
            "total_categories": len(store),
            "total_merchants": len(index),
            "total_patterns": 0,
        },
    }

    for category, entry in store:
        model["categories"][category] = {
            "keyword_hashes": sorted(entry.keywords),
            "amount_range": entry.amount_range.to_dict(),
            "pattern_count": len(entry.patterns),
            "avg_confidence": entry.mean_confidence,
        }
        model["statistics"]["total_patterns"] += len(entry.patterns)

    for fingerprint, entry in index:
        model["merchant_fingerprints"].append({
            "fingerprint": fingerprint,
            "category": entry.category,
            "confidence": entry.confidence,
            "count": entry.count or 1,
        })

    return model


def import_model(
    store: CategoryPatternStore,
    index: MerchantFingerprintIndex,
    model: Dict,
    version: str = MODEL_VERSION,
    trust_imported_fingerprints: bool = True,
    imported_fingerprint_count: int = 10,
    default_category_confidence: float = 0.8,
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """
    Replace the learned state with a snapshot produced by export_model().

    Imported categories start with no pattern history. When
    trust_imported_fingerprints is set every fingerprint is given
    imported_fingerprint_count occurrences instead of its exported count.

    Returns:
        Counts of imported categories and merchants

    Raises:
        ModelVersionMismatchError: if the snapshot version differs, the
            snapshot is not a mapping with categories and merchant fingerprints,
            or a category cannot be parsed. The learned state is left
            unchanged when this is raised.
    """
    if not isinstance(model, dict):
        raise ModelVersionMismatchError("Model snapshot must be a mapping")
    if model.get("version") != version:
        raise ModelVersionMismatchError(
            f"Incompatible model version: {model.get('version')!r} (expected {version!r})"
        )

    categories = model.get("categories")
    fingerprints = model.get("merchant_fingerprints")
    if not isinstance(categories, dict) or not isinstance(fingerprints, list):
        raise ModelVersionMismatchError("Model snapshot is missing categories or merchant fingerprints")

    now = now or datetime.now()
    new_entries: Dict[str, CategoryPatternEntry] = {}
    new_fingerprints: Dict[str, MerchantFingerprintEntry] = {}

    for category, data in categories.items():
        try:
            data = data or {}
            avg_confidence = data.get("avg_confidence")
            new_entries[category] = CategoryPatternEntry(
                keywords=set(data.get("keyword_hashes") or []),
                amount_range=AmountRange.from_dict(data.get("amount_range")),
                patterns=[],
                confidence=float(avg_confidence) if avg_confidence else default_category_confidence,
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise ModelVersionMismatchError(
                f"Malformed category {category!r} in model snapshot: {e}"
            ) from e

    for item in fingerprints:
        try:
            fingerprint = item["fingerprint"]
            category = item["category"]
            if not isinstance(fingerprint, str) or not isinstance(category, str):
                raise TypeError("fingerprint and category must be strings")
            confidence = float(item["confidence"])
            count = imported_fingerprint_count if trust_imported_fingerprints else int(item.get("count") or 1)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed merchant fingerprint entry: %s", e)
            continue

        new_fingerprints[fingerprint] = MerchantFingerprintEntry(
            category=category,
            confidence=confidence,
            count=count,
            last_seen=now,
        )

    # Live state is only replaced once the whole snapshot has parsed
    store.clear()
    index.clear()
    for category, entry in new_entries.items():
        store.set_entry(category, entry)
    for fingerprint, entry in new_fingerprints.items():
        index.put(fingerprint, entry)

    logger.info("Imported model: %d categories, %d merchants", len(store), len(index))
    return {"categories": len(store), "merchants": len(index)}
