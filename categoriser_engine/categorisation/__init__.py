"""
Categorisation Module for the adaptive categoriser engine.

Orchestrates transaction categorisation through:
- Preprocessing (validation, fingerprinting, keyword hashing)
- Merchant fingerprint fast path
- Weighted rule matching
- Similarity scoring against learned category state
- Ensemble decision and online learning
"""

from .engine import (
    TransactionCategoriser,
    CategorisationResult,
    CategorisationMethod,
    AlternativeCategory,
)
from .preprocess import (
    Transaction,
    coerce_transaction,
    normalize_description,
    generate_fingerprint,
    hash_keyword,
    extract_keywords,
    parse_transaction_date,
)
from .features import FeatureVector, extract_features, compare_features
from .rule_engine import RuleEngine, RuleMatch
from .pattern_store import AmountRange, LearnedPattern, CategoryPatternEntry, CategoryPatternStore
from .merchant_index import MerchantFingerprintEntry, MerchantFingerprintIndex
from .similarity import SimilarityScorer, SimilarityBreakdown
from .ensemble import EnsembleDecisionMaker, EnsembleDecision
from .learner import OnlineLearner
from .model_io import export_model, import_model, MODEL_VERSION

__all__ = [
    # Main categoriser
    "TransactionCategoriser",
    "CategorisationResult",
    "CategorisationMethod",
    "AlternativeCategory",
    # Preprocessing utilities
    "Transaction",
    "coerce_transaction",
    "normalize_description",
    "generate_fingerprint",
    "hash_keyword",
    "extract_keywords",
    "parse_transaction_date",
    # Features
    "FeatureVector",
    "extract_features",
    "compare_features",
    # Components
    "RuleEngine",
    "RuleMatch",
    "AmountRange",
    "LearnedPattern",
    "CategoryPatternEntry",
    "CategoryPatternStore",
    "MerchantFingerprintEntry",
    "MerchantFingerprintIndex",
    "SimilarityScorer",
    "SimilarityBreakdown",
    "EnsembleDecisionMaker",
    "EnsembleDecision",
    "OnlineLearner",
    # Persistence
    "export_model",
    "import_model",
    "MODEL_VERSION",
]
