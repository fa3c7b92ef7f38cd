"""
Rule engine for validating cargo records at the create/update boundary.

The rule engine builds validators from rule configurations, applies every
one of them to a record and reports all violated fields in a single pass.
"""

from typing import Any

from cargo_tracker.core.models import CargoRecord, ValidationResult
from cargo_tracker.core.rules.rule_config import RuleConfigLoader, default_rules
from cargo_tracker.core.validators import (
    BaseValidator,
    MinItemsValidator,
    RequiredFieldValidator,
    ValidationError,
)
from cargo_tracker.observability.logger import get_logger
from cargo_tracker.observability.metrics import record_validation_failure

logger = get_logger(__name__)


class RuleEngine:
    """
    Orchestrates validation rules on cargo records.

    Rules run in configuration order. Failures are collected rather than
    raised so a caller can show the complete list of fields to correct.
    """

    VALIDATOR_REGISTRY = {
        "required_field": RequiredFieldValidator,
        "min_items": MinItemsValidator,
    }

    def __init__(self, rules: list[dict[str, Any]] | None = None):
        """
        Initialize the rule engine with validation rules.

        Args:
            rules: List of rule configurations, each containing:
                   - rule_name: str
                   - rule_type: str (required_field, min_items)
                   - field_name: str (stored camelCase name)
                   - parameters: Dict[str, Any] (optional)
                   - enabled: bool (default True)
                   Defaults to default_rules().
        """
        self.rules = default_rules() if rules is None else rules
        self.validators: list[tuple[str, BaseValidator]] = []
        self._build_validators()

    @classmethod
    def from_yaml(cls, config_path) -> "RuleEngine":
        """Build a rule engine from a YAML rules file."""
        return cls(RuleConfigLoader(config_path).load_rules())

    def _build_validators(self) -> None:
        for rule in self.rules:
            if not rule.get("enabled", True):
                continue

            rule_name = rule["rule_name"]
            rule_type = rule["rule_type"]

            validator_class = self.VALIDATOR_REGISTRY.get(rule_type)
            if not validator_class:
                raise ValueError(f"Unknown rule type: {rule_type}")

            try:
                validator = validator_class(rule["field_name"], rule.get("parameters", {}))
            except ValueError as e:
                raise ValueError(f"Failed to create validator for rule '{rule_name}': {e}") from e
            self.validators.append((rule_name, validator))

    def validate(self, record: CargoRecord) -> ValidationResult:
        """
        Validate a cargo record against all rules.

        Args:
            record: Canonical record (normalized or built from a form)

        Returns:
            ValidationResult listing every violated field
        """
        payload = record.model_dump(by_alias=True)
        passed_rules: list[str] = []
        failed_rules: list[str] = []
        failed_fields: list[str] = []

        for rule_name, validator in self.validators:
            try:
                validator.validate(payload.get(validator.field_name), payload)
                passed_rules.append(rule_name)
            except ValidationError as e:
                failed_rules.append(rule_name)
                if e.field_name not in failed_fields:
                    failed_fields.append(e.field_name)
                record_validation_failure(validator.rule_type, e.field_name)

        if failed_fields:
            logger.info(
                "Cargo record failed validation",
                extra={"record_id": record.id, "failed_fields": failed_fields},
            )
            return ValidationResult.invalid(
                failed_fields,
                record_id=record.id,
                failed_rules=failed_rules,
                passed_rules=passed_rules,
            )

        return ValidationResult.valid(record_id=record.id, passed_rules=passed_rules)

    def validate_batch(self, records: list[CargoRecord]) -> list[ValidationResult]:
        """Validate several records, one result per record."""
        return [self.validate(record) for record in records]

    def get_rule_summary(self) -> dict[str, Any]:
        """Counts of loaded rules, total and per rule type."""
        counts: dict[str, int] = {}
        for _, validator in self.validators:
            counts[validator.rule_type] = counts.get(validator.rule_type, 0) + 1
        return {"total_rules": len(self.validators), "rules_by_type": counts}


_default_engine: RuleEngine | None = None


def validate(record: CargoRecord) -> ValidationResult:
    """Validate a record against the default rule set."""
    global _default_engine
    if _default_engine is None:
        _default_engine = RuleEngine()
    return _default_engine.validate(record)
