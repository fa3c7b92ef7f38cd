"""
MinItemsValidator - validates that a list field holds enough non-blank entries.
"""

from typing import Any

from .base_validator import BaseValidator, ValidationError


class MinItemsValidator(BaseValidator):
    """
    Validates that a sequence field contains at least `min` non-blank entries.

    Parameters:
    - min: Minimum number of entries (default 1)
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        self.min_items = self.parameters.get("min", 1)
        if not isinstance(self.min_items, int) or self.min_items < 0:
            raise ValueError(f"MinItemsValidator 'min' must be a non-negative integer, got {self.min_items!r}")

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        if value is None:
            value = []

        if not isinstance(value, (list, tuple)):
            raise ValidationError(
                rule_name="min_items",
                field_name=self.field_name,
                message=f"Value must be a list, got {type(value).__name__}"
            )

        present = [item for item in value if str(item).strip()]
        if len(present) < self.min_items:
            raise ValidationError(
                rule_name="min_items",
                field_name=self.field_name,
                message=f"Expected at least {self.min_items} entries, got {len(present)}"
            )

    @property
    def rule_type(self) -> str:
        return "min_items"
