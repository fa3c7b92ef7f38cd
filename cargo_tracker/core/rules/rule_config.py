"""
Rule configuration management.

Loads validation rules from YAML files and provides the default rule set
for cargo records.
"""

from pathlib import Path
from typing import Any

import yaml

REQUIRED_FIELDS = (
    "consignee",
    "consolNumber",
    "shipmentNumber",
    "masterAirWaybill",
    "kllNumber",
    "preAlertDate",
    "eta",
    "currentStatus",
)


class RuleConfigLoader:
    """
    Loads validation rules from YAML configuration files.

    Expected YAML format:
    ```yaml
    rules:
      consignee:
        - type: required_field

      houseAirWaybills:
        - type: min_items
          params:
            min: 1
    ```
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the rule config loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Rule configuration file not found: {config_path}")

    def load_rules(self) -> list[dict[str, Any]]:
        """
        Load and parse validation rules from YAML file.

        Returns:
            List of rule dictionaries suitable for RuleEngine

        Raises:
            ValueError: If YAML is invalid or missing required fields
        """
        with open(self.config_path) as f:
            config = yaml.safe_load(f)

        if not config or "rules" not in config:
            raise ValueError("Configuration file must contain 'rules' section")

        rules = []
        for field_name, field_rule_list in config["rules"].items():
            if not isinstance(field_rule_list, list):
                raise ValueError(f"Rules for field '{field_name}' must be a list")

            for idx, rule_def in enumerate(field_rule_list):
                rules.append(self._parse_rule(field_name, rule_def, idx))

        return rules

    def _parse_rule(self, field_name: str, rule_def: dict[str, Any], idx: int) -> dict[str, Any]:
        if "type" not in rule_def:
            raise ValueError(f"Rule for field '{field_name}' is missing 'type'")

        rule_type = rule_def["type"]
        rule_name = rule_def.get("name", f"{field_name}_{rule_type}_{idx}")
        parameters = rule_def.get("params", rule_def.get("parameters", {}))
        enabled = rule_def.get("enabled", True)

        return {
            "rule_name": rule_name,
            "rule_type": rule_type,
            "field_name": field_name,
            "parameters": parameters,
            "enabled": enabled,
        }


class RuleConfigBuilder:
    """
    Programmatically build rule configurations.
    """

    def __init__(self):
        self.rules: list[dict[str, Any]] = []

    def add_required_field(self, field_name: str, allow_empty_string: bool = False) -> "RuleConfigBuilder":
        """Add a required field rule."""
        self.rules.append({
            "rule_name": f"{field_name}_required",
            "rule_type": "required_field",
            "field_name": field_name,
            "parameters": {"allow_empty_string": allow_empty_string},
            "enabled": True,
        })
        return self

    def add_min_items(self, field_name: str, min_items: int = 1) -> "RuleConfigBuilder":
        """Add a minimum list size rule."""
        self.rules.append({
            "rule_name": f"{field_name}_min_items",
            "rule_type": "min_items",
            "field_name": field_name,
            "parameters": {"min": min_items},
            "enabled": True,
        })
        return self

    def build(self) -> list[dict[str, Any]]:
        """Build and return the rule configuration."""
        return self.rules


def default_rules() -> list[dict[str, Any]]:
    """Rules every saved cargo record must satisfy."""
    builder = RuleConfigBuilder()
    for field_name in REQUIRED_FIELDS:
        builder.add_required_field(field_name)
    return builder.add_min_items("houseAirWaybills").build()
