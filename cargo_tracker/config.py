"""
Configuration management for cargo-tracker.

Settings come from a YAML file (config/cargo_tracker.yaml by default),
then environment variables, which may themselves be loaded from a .env
file. Environment values win.
"""

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = Path("config") / "cargo_tracker.yaml"
COLLECTION_PATH_TEMPLATE = "artifacts/{app_id}/public/data/cargoItems"

# env var -> (section, key); section None means top level
ENV_OVERRIDES = {
    "CARGO_APP_ID": (None, "app_id"),
    "CARGO_STORE": (None, "store"),
    "CARGO_RULES_PATH": (None, "rules_path"),
    "LOG_LEVEL": (None, "log_level"),
    "LOG_FORMAT": (None, "log_format"),
    "METRICS_PORT": (None, "metrics_port"),
    "DB_HOST": ("database", "host"),
    "DB_PORT": ("database", "port"),
    "DB_NAME": ("database", "name"),
    "DB_USER": ("database", "user"),
    "DB_PASSWORD": ("database", "password"),
}


class DatabaseSettings(BaseModel):
    """Connection settings for the PostgreSQL document store."""

    host: str = "localhost"
    port: int = 5432
    name: str = "cargo"
    user: str = "cargo"
    password: str | None = None


class Settings(BaseModel):
    """
    Application settings.

    Attributes:
        app_id: Application namespace inside the document store
        store: Store backend ("memory" or "postgres")
        log_level: Logging level name
        log_format: "json" or "text"
        rules_path: Validation rules YAML (default rules when the file is absent)
        metrics_port: Port for the Prometheus endpoint
        database: PostgreSQL settings
    """

    app_id: str = Field("coordinator-cargo", min_length=1)
    store: Literal["memory", "postgres"] = "memory"
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    rules_path: str = "config/validation_rules.yaml"
    metrics_port: int = 8000
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    @property
    def collection_path(self) -> str:
        return COLLECTION_PATH_TEMPLATE.format(app_id=self.app_id)


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    return data


def load_settings(config_path: str | Path | None = None) -> Settings:
    """
    Load settings from YAML and the environment.

    Args:
        config_path: YAML file to read; defaults to config/cargo_tracker.yaml
            and is skipped silently when that default does not exist

    Returns:
        Validated Settings

    Raises:
        FileNotFoundError: If an explicitly given config file is missing
        pydantic.ValidationError: If a value has the wrong type
    """
    load_dotenv()

    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        data = _read_yaml(path)
    elif DEFAULT_CONFIG_PATH.exists():
        data = _read_yaml(DEFAULT_CONFIG_PATH)
    else:
        data = {}

    for env_var, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is None or value == "":
            continue
        if section is None:
            data[key] = value
        else:
            data.setdefault(section, {})[key] = value

    return Settings.model_validate(data)
