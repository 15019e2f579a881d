"""
Category rule loader.
Loads author-supplied CSV files containing weighted categorisation rules.
"""

import csv
import logging
from typing import Dict, List
from pathlib import Path

logger = logging.getLogger(__name__)


def load_rules_csv(csv_path: str) -> Dict[str, List[Dict]]:
    """
    Load category rules from a CSV file.

    Args:
        csv_path: Path to CSV file containing rules

    Returns:
        Dictionary mapping category name to a list of {"pattern", "weight"} rules

    Example CSV format:
        category,pattern,weight
        Groceries,walmart|kroger|safeway,0.9
        Dining,restaurant|cafe|diner,0.9
    """
    rules: Dict[str, List[Dict]] = {}

    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"Rule file not found: {csv_path}")

    with open(csv_path, 'r', encoding='utf-8') as f:
        reader = csv.DictReader(f)
        for line_no, row in enumerate(reader, start=2):
            category = (row.get('category') or '').strip()
            pattern = (row.get('pattern') or '').strip()
            raw_weight = (row.get('weight') or '').strip()

            if not category or not pattern:
                continue

            try:
                weight = float(raw_weight)
            except ValueError:
                logger.warning("Skipping rule on line %d: invalid weight %r", line_no, raw_weight)
                continue

            rules.setdefault(category, []).append({
                'pattern': pattern,
                'weight': weight,
            })

    logger.debug("Loaded rules for %d categories from %s", len(rules), csv_path)
    return rules


def rules_from_patterns(category_patterns: Dict[str, Dict]) -> Dict[str, List[Dict]]:
    """
    Extract the rule lists from a category pattern dictionary.

    Args:
        category_patterns: Pattern dict in the DEFAULT_CATEGORY_PATTERNS format

    Returns:
        Dictionary mapping category name to its rule list
    """
    return {
        category: list(pattern_info.get('rules', []))
        for category, pattern_info in category_patterns.items()
    }
