"""
Configuration module for the adaptive categoriser engine.

This module contains the engine configuration dictionary and rule loading helpers.
"""

from .engine_config import ENGINE_CONFIG, merge_config
from .rule_loader import load_rules_csv, rules_from_patterns

__all__ = [
    "ENGINE_CONFIG",
    "merge_config",
    "load_rules_csv",
    "rules_from_patterns",
]
