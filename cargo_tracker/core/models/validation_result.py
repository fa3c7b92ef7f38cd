"""
ValidationResult model representing the outcome of validating a cargo record (ephemeral).
"""

from typing import List

from pydantic import BaseModel, Field, field_validator


class ValidationResult(BaseModel):
    """
    Outcome of validating a record. Not persisted.

    Attributes:
        record_id: Which record was validated (None for unsaved records)
        passed: Overall validation status
        failed_fields: Unique names of the fields that violated a rule
        failed_rules: Rules that failed
        passed_rules: Rules that succeeded
    """

    record_id: str | None = None
    passed: bool
    failed_fields: List[str] = Field(default_factory=list)
    failed_rules: List[str] = Field(default_factory=list)
    passed_rules: List[str] = Field(default_factory=list)

    @field_validator("failed_fields")
    @classmethod
    def check_passed_consistency(cls, v, info):
        """Validate that passed=True implies failed_fields is empty."""
        if info.data.get("passed") and len(v) > 0:
            raise ValueError("passed=True but failed_fields is not empty")
        return v

    @classmethod
    def valid(cls, record_id: str | None = None, passed_rules: List[str] | None = None) -> "ValidationResult":
        return cls(record_id=record_id, passed=True, passed_rules=passed_rules or [])

    @classmethod
    def invalid(
        cls,
        failed_fields: List[str],
        record_id: str | None = None,
        failed_rules: List[str] | None = None,
        passed_rules: List[str] | None = None,
    ) -> "ValidationResult":
        return cls(
            record_id=record_id,
            passed=False,
            failed_fields=failed_fields,
            failed_rules=failed_rules or [],
            passed_rules=passed_rules or [],
        )

    class Config:
        json_schema_extra = {
            "example": {
                "record_id": "k3Jd9x",
                "passed": False,
                "failed_fields": ["kllNumber", "houseAirWaybills"],
                "failed_rules": ["kllNumber_required", "houseAirWaybills_min_items"],
                "passed_rules": ["consignee_required"],
            }
        }
