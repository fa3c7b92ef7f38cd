"""
Record processing: normalization, search, ETA alerts and status helpers.

Every function here is pure over its arguments and safe to call again
with each new store snapshot.
"""

from .alerts import format_eta, is_eta_urgent, parse_eta, start_of_eta_day, urgent_record_ids
from .normalizer import normalize, normalize_snapshot, sort_by_consignee
from .query_engine import FIELD_ACCESSORS, field_value, filter_records, matches
from .status import StatusSelection, resolve_status, split_status

__all__ = [
    "normalize",
    "normalize_snapshot",
    "sort_by_consignee",
    "FIELD_ACCESSORS",
    "field_value",
    "filter_records",
    "matches",
    "format_eta",
    "is_eta_urgent",
    "parse_eta",
    "start_of_eta_day",
    "urgent_record_ids",
    "StatusSelection",
    "resolve_status",
    "split_status",
]
