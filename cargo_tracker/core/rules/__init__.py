"""
Cargo validation rule engine and configuration management.
"""

from .rule_config import REQUIRED_FIELDS, RuleConfigBuilder, RuleConfigLoader, default_rules
from .rule_engine import RuleEngine, validate

__all__ = [
    "REQUIRED_FIELDS",
    "RuleEngine",
    "RuleConfigLoader",
    "RuleConfigBuilder",
    "default_rules",
    "validate",
]
