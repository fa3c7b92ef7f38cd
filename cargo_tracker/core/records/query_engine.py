"""
Free-text search over cargo records.

Each searchable field has an explicit accessor producing the text that a
query is matched against. Matching is a case-insensitive substring test,
either on one chosen field or on any field.
"""

from collections.abc import Callable, Sequence

from cargo_tracker.core.models import CargoRecord, FieldName
from cargo_tracker.observability.logger import get_logger

logger = get_logger(__name__)


FIELD_ACCESSORS: dict[FieldName, Callable[[CargoRecord], str]] = {
    FieldName.CONSIGNEE: lambda r: r.consignee,
    FieldName.CONSOL_NUMBER: lambda r: r.consol_number,
    FieldName.SHIPMENT_NUMBER: lambda r: r.shipment_number,
    FieldName.MASTER_AIR_WAYBILL: lambda r: r.master_air_waybill,
    FieldName.HOUSE_AIR_WAYBILLS: lambda r: " ".join(r.house_air_waybills),
    FieldName.KLL_NUMBER: lambda r: r.kll_number,
    FieldName.PRE_ALERT_DATE: lambda r: r.pre_alert_date,
    FieldName.ETA: lambda r: r.eta,
    FieldName.CURRENT_STATUS: lambda r: r.current_status,
    FieldName.INSTRUCTIONS: lambda r: r.instructions,
}


def field_value(record: CargoRecord, field: FieldName) -> str:
    """Searchable text of one field (HAWBs joined with a single space)."""
    return FIELD_ACCESSORS[field](record)


def _resolve_field(field: FieldName | str | None) -> FieldName | None:
    resolved = FieldName.parse(field)
    if resolved is None and field:
        logger.debug("Unknown filter field, searching all fields", extra={"field": str(field)})
    return resolved


def matches(record: CargoRecord, query: str, field: FieldName | None = None) -> bool:
    """
    Test one record against an already trimmed query.

    A record whose chosen field is empty never matches.
    """
    needle = query.lower()
    if field is not None:
        value = field_value(record, field)
        return bool(value) and needle in value.lower()
    return any(needle in accessor(record).lower() for accessor in FIELD_ACCESSORS.values())


def filter_records(
    records: Sequence[CargoRecord],
    query: str | None,
    field: FieldName | str | None = None,
) -> list[CargoRecord]:
    """
    Select the records matching a search.

    Args:
        records: Canonical records, in display order
        query: Search text; blank matches everything
        field: Restrict matching to this field; blank or unknown names
            search every field

    Returns:
        Matching records in input order (records are not copied)
    """
    needle = (query or "").strip()
    resolved = _resolve_field(field)

    if not needle and resolved is None:
        return list(records)

    return [record for record in records if matches(record, needle, resolved)]
