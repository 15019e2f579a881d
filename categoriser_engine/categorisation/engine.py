"""
Adaptive Transaction Categoriser.
Assigns spending categories to bank-statement transactions and learns from
user-confirmed labels without any external model service.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..config.engine_config import merge_config
from ..config.rule_loader import rules_from_patterns
from ..exceptions import InvalidTransactionError
from ..patterns.category_patterns import DEFAULT_CATEGORY_PATTERNS, FALLBACK_KEYWORD_RULES
from .ensemble import EnsembleDecisionMaker
from .features import extract_features
from .learner import OnlineLearner
from .merchant_index import MerchantFingerprintIndex
from .model_io import export_model, import_model
from .pattern_store import AmountRange, CategoryPatternStore
from .preprocess import coerce_transaction, generate_fingerprint, hashed_keywords
from .rule_engine import RuleEngine, RuleMatch
from .similarity import SimilarityScorer

logger = logging.getLogger(__name__)


class CategorisationMethod(Enum):
    """How a categorisation result was reached."""
    EXACT_MERCHANT_MATCH = "exact_merchant_match"
    RULE_BASED = "rule_based"
    ENSEMBLE = "ensemble"
    FALLBACK_EMPTY_DESCRIPTION = "fallback_empty_description"
    FALLBACK_KEYWORD = "fallback_keyword"
    FALLBACK_NO_MATCH = "fallback_no_match"
    ERROR_FALLBACK = "error_fallback"

    @property
    def is_fallback(self) -> bool:
        return self.value.startswith("fallback_")

    @property
    def is_error(self) -> bool:
        return self is CategorisationMethod.ERROR_FALLBACK


@dataclass
class AlternativeCategory:
    """Runner-up category from the ensemble."""
    category: str
    confidence: float


@dataclass
class CategorisationResult:
    """Result of transaction categorisation."""
    category: str
    confidence: float
    method: CategorisationMethod
    alternative_categories: List[AlternativeCategory] = field(default_factory=list)
    reasoning: Optional[str] = None
    error: Optional[str] = None
    fingerprint: Optional[str] = None
    details: Dict = field(default_factory=dict)

    def to_dict(self) -> Dict:
        """JSON-ready representation for the host's response shape."""
        result = {
            "category": self.category,
            "confidence": self.confidence,
            "method": self.method.value,
            "alternative_categories": [
                {"category": alt.category, "confidence": alt.confidence}
                for alt in self.alternative_categories
            ],
        }
        if self.reasoning is not None:
            result["reasoning"] = self.reasoning
        if self.error is not None:
            result["error"] = self.error
        if self.fingerprint is not None:
            result["fingerprint"] = self.fingerprint
        if self.details:
            result["details"] = self.details
        return result


class TransactionCategoriser:
    """Categorises transactions and learns from confirmed categories."""

    def __init__(
        self,
        config: Optional[Dict] = None,
        category_patterns: Optional[Dict[str, Dict]] = None,
        rules: Optional[Dict[str, List[Dict]]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the categoriser with seed patterns and rules.

        Args:
            config: Partial override of ENGINE_CONFIG
            category_patterns: Seed keywords/amount bands/rules per category
                (defaults to DEFAULT_CATEGORY_PATTERNS; pass {} for an empty engine)
            rules: Rule lists per category; defaults to the rules in category_patterns
            clock: Callable returning the current time (used for learning timestamps)
        """
        self.config = merge_config(config)
        self.clock = clock or datetime.now
        self._lock = threading.RLock()

        patterns = DEFAULT_CATEGORY_PATTERNS if category_patterns is None else category_patterns
        learning = self.config["learning"]
        similarity = self.config["similarity"]
        ensemble = self.config["ensemble"]
        fallback = self.config["fallback"]

        self.default_category = fallback["default_category"]
        self.fingerprint_length = self.config["fingerprint"]["length"]
        self.keyword_hash_length = self.config["keywords"]["hash_length"]
        self.pattern_store = CategoryPatternStore(
            retention_days=learning["retention_days"],
            decay_factor=learning["decay_factor"],
            outlier_sigma=learning["outlier_sigma"],
            cold_start_patterns=learning["cold_start_patterns"],
            keyword_hash_length=self.keyword_hash_length,
        )
        self.merchant_index = MerchantFingerprintIndex(
            min_confidence=self.config["merchant_index"]["min_confidence"],
            min_count=self.config["merchant_index"]["min_count"],
        )
        self.rule_engine = RuleEngine(
            rules if rules is not None else rules_from_patterns(patterns),
            amount_penalty=self.config["rules"]["amount_penalty"],
        )
        self.similarity_scorer = SimilarityScorer(
            weights=similarity["weights"],
            recent_patterns=similarity["recent_patterns"],
            neutral_score=similarity["neutral_score"],
        )
        self.ensemble = EnsembleDecisionMaker(
            similarity_weight=ensemble["similarity_weight"],
            rule_weight=ensemble["rule_weight"],
            acceptance_threshold=ensemble["acceptance_threshold"],
            bootstrap_fingerprint_count=ensemble["bootstrap_fingerprint_count"],
            max_alternatives=ensemble["max_alternatives"],
            default_category=self.default_category,
        )
        self.learner = OnlineLearner(
            self.pattern_store,
            self.merchant_index,
            batch_size=learning["batch_size"],
            min_token_length=self.config["keywords"]["min_token_length"],
            fingerprint_length=self.fingerprint_length,
            keyword_hash_length=self.keyword_hash_length,
            clock=self.clock,
        )

        for category, pattern_info in patterns.items():
            self.pattern_store.seed_category(
                category,
                pattern_info.get("keywords", []),
                pattern_info.get("amount_range"),
                confidence=self.config["model_io"]["default_category_confidence"],
            )

    # ------------------------------------------------------------------
    # Categorisation
    # ------------------------------------------------------------------

    def categorize_transaction(self, transaction: Any) -> CategorisationResult:
        """
        Categorise a single transaction.

        Stages, each a short-circuit: input validation, empty description,
        exact merchant match, rule-based match, ensemble (with keyword
        fallback). Never raises; failures degrade to an error_fallback result.

        Args:
            transaction: Mapping with description, amount and date keys, or a Transaction

        Returns:
            CategorisationResult
        """
        with self._lock:
            try:
                return self._categorize(transaction)
            except InvalidTransactionError as e:
                logger.warning("Invalid transaction: %s", e)
                return self._error_result(str(e))
            except Exception as e:
                logger.error("Categorization error: %s", e)
                return self._error_result(str(e))

    categorize = categorize_transaction

    def _categorize(self, raw: Any) -> CategorisationResult:
        transaction = coerce_transaction(raw)

        description = transaction.description.strip()
        if not description:
            return CategorisationResult(
                category=self.default_category,
                confidence=self.config["fallback"]["empty_description_confidence"],
                method=CategorisationMethod.FALLBACK_EMPTY_DESCRIPTION,
                reasoning="Empty or invalid description",
                error="Empty description",
            )

        fingerprint = generate_fingerprint(description, self.fingerprint_length)

        # Stage 1: established merchant
        try:
            entry = self.merchant_index.lookup(fingerprint)
            if self.merchant_index.is_established(entry):
                logger.debug("Exact merchant match for %s -> %s", fingerprint, entry.category)
                return CategorisationResult(
                    category=entry.category,
                    confidence=entry.confidence,
                    method=CategorisationMethod.EXACT_MERCHANT_MATCH,
                    reasoning=f"Known merchant seen {entry.count} times",
                    fingerprint=fingerprint,
                )
        except Exception as e:
            logger.warning("Error processing merchant fingerprint: %s", e)

        # Stage 2: hand-authored rules
        rule_match = RuleMatch()
        try:
            rule_match = self.rule_engine.apply(description, transaction.amount, self._amount_range_for)
        except Exception as e:
            logger.warning("Error in rule-based matching: %s", e)

        if rule_match.confidence >= self.config["rules"]["fast_path_confidence"]:
            return CategorisationResult(
                category=rule_match.category,
                confidence=rule_match.confidence,
                method=CategorisationMethod.RULE_BASED,
                reasoning=rule_match.reasoning,
                fingerprint=fingerprint,
                details={"matched_rules": list(rule_match.matched_rules)},
            )

        # Stage 3: similarity against learned state
        breakdowns = {}
        try:
            features = extract_features(transaction)
            keywords = hashed_keywords(
                description, self.config["keywords"]["min_token_length"], self.keyword_hash_length
            )
            breakdowns = self.similarity_scorer.score_all(features, keywords, self.pattern_store)
        except Exception as e:
            logger.warning("Error in pattern matching: %s", e)

        # Stage 4: ensemble decision
        try:
            if not breakdowns:
                raise ValueError("No similarity scores available")
            result = self._ensemble_result(breakdowns, rule_match)
        except Exception as e:
            logger.warning("Error in ensemble decision: %s", e)
            result = self._get_fallback_category(description, transaction.amount)

        result.fingerprint = fingerprint
        return result

    def _amount_range_for(self, category: str) -> Optional[AmountRange]:
        entry = self.pattern_store.get(category)
        return entry.amount_range if entry is not None else None

    def _ensemble_result(self, breakdowns: Dict, rule_match: RuleMatch) -> CategorisationResult:
        scores = {category: breakdown.total for category, breakdown in breakdowns.items()}
        decision = self.ensemble.decide(scores, rule_match, len(self.merchant_index))

        if decision.accepted:
            reasoning = (
                f"Ensemble of similarity ({decision.similarity_score:.2f}) "
                f"and rules ({decision.rule_score:.2f})"
            )
            if decision.bootstrap:
                reasoning += "; accepted in bootstrap mode"
        else:
            reasoning = "No category reached the acceptance threshold"

        details = {
            "pattern_score": decision.similarity_score,
            "rule_score": decision.rule_score,
            "bootstrap": decision.bootstrap,
        }
        if decision.category in breakdowns:
            details["similarity_breakdown"] = breakdowns[decision.category].to_dict()

        return CategorisationResult(
            category=decision.category,
            confidence=decision.confidence,
            method=CategorisationMethod.ENSEMBLE,
            alternative_categories=[
                AlternativeCategory(category=category, confidence=confidence)
                for category, confidence in decision.alternatives
            ],
            reasoning=reasoning,
            details=details,
        )

    def _get_fallback_category(self, description: str, amount: float) -> CategorisationResult:
        """Categorise from simple keyword heuristics."""
        desc = (description or "").lower()
        abs_amount = abs(amount or 0.0)

        for rule in FALLBACK_KEYWORD_RULES:
            matched = any(keyword in desc for keyword in rule["keywords"])
            if not matched and rule.get("amount_keywords"):
                matched = (
                    any(keyword in desc for keyword in rule["amount_keywords"])
                    and abs_amount > rule.get("min_amount", 0)
                )
            if matched:
                return CategorisationResult(
                    category=rule["category"],
                    confidence=rule["confidence"],
                    method=CategorisationMethod.FALLBACK_KEYWORD,
                    reasoning="Keyword-based fallback",
                )

        return CategorisationResult(
            category=self.default_category,
            confidence=self.config["fallback"]["no_match_confidence"],
            method=CategorisationMethod.FALLBACK_NO_MATCH,
            reasoning="No specific patterns matched",
        )

    def _error_result(self, message: str) -> CategorisationResult:
        return CategorisationResult(
            category=self.default_category,
            confidence=0.0,
            method=CategorisationMethod.ERROR_FALLBACK,
            reasoning=f"Categorization failed: {message}",
            error=message,
        )

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------

    def learn_from_transaction(self, transaction: Any, category: str, confidence: float = 1.0) -> bool:
        """
        Learn from a user-confirmed (or externally resolved) category.

        Returns:
            True on success; False if the input was invalid or learning failed
        """
        with self._lock:
            return self.learner.learn(transaction, category, confidence)

    learn = learn_from_transaction

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def export_model(self) -> Dict:
        """Export a privacy-preserving snapshot of the learned state."""
        with self._lock:
            return export_model(
                self.pattern_store,
                self.merchant_index,
                version=self.config["model_io"]["version"],
                now=self.clock(),
            )

    def import_model(self, model: Dict) -> Dict[str, int]:
        """
        Replace the learned state with an exported snapshot.

        Raises:
            ModelVersionMismatchError: if the snapshot is incompatible
        """
        model_io = self.config["model_io"]
        with self._lock:
            return import_model(
                self.pattern_store,
                self.merchant_index,
                model,
                version=model_io["version"],
                trust_imported_fingerprints=model_io["trust_imported_fingerprints"],
                imported_fingerprint_count=model_io["imported_fingerprint_count"],
                default_category_confidence=model_io["default_category_confidence"],
                now=self.clock(),
            )

    def get_statistics(self) -> Dict:
        """Privacy-safe statistics about the learned state."""
        with self._lock:
            return {
                "total_categories": len(self.pattern_store),
                "total_merchant_fingerprints": len(self.merchant_index),
                "total_patterns": self.pattern_store.total_patterns(),
                "pending_learning_events": len(self.learner.learning_queue),
                "category_distribution": self.merchant_index.category_distribution(),
            }

    def confirm_fingerprint(self, fingerprint: str, category: str):
        """Apply a user-confirmed category directly to a merchant fingerprint."""
        with self._lock:
            self.merchant_index.confirm(fingerprint, category, self.clock())
