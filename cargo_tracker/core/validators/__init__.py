"""
Validation rule implementations.

Provides validators for required fields and minimum list sizes.
"""

from .base_validator import BaseValidator, ValidationError
from .min_items_validator import MinItemsValidator
from .required_field_validator import RequiredFieldValidator

__all__ = [
    "BaseValidator",
    "ValidationError",
    "MinItemsValidator",
    "RequiredFieldValidator",
]
