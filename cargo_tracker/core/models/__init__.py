"""
Core data models for cargo tracking.

All models use Pydantic for runtime validation and type safety.
"""

from .cargo_record import TERMINAL_STATUS, CargoRecord, FieldName
from .validation_result import ValidationResult

__all__ = [
    "TERMINAL_STATUS",
    "CargoRecord",
    "FieldName",
    "ValidationResult",
]
