"""
Engine configuration for the adaptive transaction categoriser.
Contains matching thresholds, scoring weights, and learning parameters.
"""

import copy
from typing import Dict, Optional


ENGINE_CONFIG = {
    # Fingerprint and keyword hashing
    "fingerprint": {
        "length": 16,  # hex characters of the SHA-256 digest
    },
    "keywords": {
        "hash_length": 8,  # hex characters of the MD5 digest
        "min_token_length": 3,
    },

    # Merchant fingerprint fast path
    "merchant_index": {
        "min_confidence": 0.9,
        "min_count": 3,
    },

    # Hand-authored rule matching
    "rules": {
        "fast_path_confidence": 0.85,
        "amount_penalty": 0.7,  # multiplier when amount is outside the learned range
    },

    # Similarity scoring against learned category state
    "similarity": {
        "weights": {
            "keywords": 0.30,
            "amount": 0.20,
            "patterns": 0.30,
            "temporal": 0.10,
            "structural": 0.10,
        },
        "recent_patterns": 20,
        "neutral_score": 0.5,
    },

    # Ensemble decision
    "ensemble": {
        "similarity_weight": 0.7,
        "rule_weight": 0.3,
        "acceptance_threshold": 0.4,
        # Below this many known fingerprints any positive score is accepted
        "bootstrap_fingerprint_count": 10,
        "max_alternatives": 3,
    },

    # Online learning
    "learning": {
        "retention_days": 90,
        "decay_factor": 0.95,
        "outlier_sigma": 3.0,
        "cold_start_patterns": 10,
        "batch_size": 50,
    },

    # Fallback confidences
    "fallback": {
        "empty_description_confidence": 0.1,
        "no_match_confidence": 0.3,
        "default_category": "Other",
    },

    # Model export/import
    "model_io": {
        "version": "2.0",
        # Imported fingerprints are treated as established merchants with a fixed count.
        # Set to False to keep the counts stored in the snapshot instead.
        "trust_imported_fingerprints": True,
        "imported_fingerprint_count": 10,
        "default_category_confidence": 0.8,
    },

    # Batch processing
    "batch": {
        "feedback_batch_size": 10,
        "low_confidence_threshold": 0.8,
    },
}


def merge_config(overrides: Optional[Dict] = None, base: Optional[Dict] = None) -> Dict:
    """
    Deep-merge configuration overrides onto the engine defaults.

    Args:
        overrides: Partial configuration dict (same shape as ENGINE_CONFIG)
        base: Base configuration (defaults to ENGINE_CONFIG)

    Returns:
        A new configuration dict; neither input is mutated
    """
    merged = copy.deepcopy(base if base is not None else ENGINE_CONFIG)
    if not overrides:
        return merged

    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(value, merged[key])
        else:
            merged[key] = copy.deepcopy(value)

    return merged
