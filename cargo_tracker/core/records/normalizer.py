"""
Normalization of raw store documents into canonical CargoRecords.

Stored documents come in three generations:

- canonical: camelCase keys as written by CargoRecord.to_document()
- legacy keys: the first release stored consignee as "name", the shipment
  number as "weight", the MAWB as "destination" and HAWBs as "hawbs"
- legacy status: a single HAWB was kept in a scalar "status" field

Normalization never fails: anything it cannot interpret becomes an empty
value, and the rule engine decides whether the result is acceptable.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from cargo_tracker.core.models import CargoRecord
from cargo_tracker.observability.logger import get_logger
from cargo_tracker.observability.metrics import record_normalization

logger = get_logger(__name__)

# canonical key -> key used by the first release
LEGACY_KEYS = {
    "consignee": "name",
    "shipmentNumber": "weight",
    "masterAirWaybill": "destination",
    "houseAirWaybills": "hawbs",
}

STRING_FIELDS = (
    "consignee",
    "consolNumber",
    "shipmentNumber",
    "masterAirWaybill",
    "kllNumber",
    "preAlertDate",
    "eta",
    "currentStatus",
    "instructions",
)

OPTIONAL_FIELDS = ("id", "userId", "createdAt", "updatedAt")


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _house_air_waybills(raw: Mapping[str, Any]) -> tuple[list[str], str]:
    """Resolve the HAWB list and report which shape supplied it."""
    if _is_sequence(raw.get("houseAirWaybills")):
        return [_as_text(v) for v in raw["houseAirWaybills"]], "canonical"
    if _is_sequence(raw.get("hawbs")):
        return [_as_text(v) for v in raw["hawbs"]], "legacy_keys"
    status = raw.get("status")
    if isinstance(status, str) and status:
        return [status], "legacy_status"
    return [], "canonical"


def normalize(raw: Mapping[str, Any] | CargoRecord) -> CargoRecord:
    """
    Convert a raw document (or an existing record) to a canonical CargoRecord.

    Args:
        raw: Mapping of stored field names to values, possibly legacy-shaped

    Returns:
        Canonical CargoRecord; normalize(normalize(x)) == normalize(x)
    """
    if isinstance(raw, CargoRecord):
        raw = raw.model_dump(by_alias=True)

    house_air_waybills, shape = _house_air_waybills(raw)

    data: dict[str, Any] = {"houseAirWaybills": house_air_waybills}
    for key in STRING_FIELDS:
        value = raw.get(key)
        legacy_key = LEGACY_KEYS.get(key)
        if value is None and legacy_key is not None and raw.get(legacy_key) is not None:
            value = raw[legacy_key]
            shape = "legacy_keys"
        data[key] = _as_text(value)

    for key in OPTIONAL_FIELDS:
        value = raw.get(key)
        data[key] = None if value is None else _as_text(value)

    record_normalization(shape)
    if shape != "canonical":
        logger.debug(
            "Normalized legacy-shaped cargo record",
            extra={"record_id": data["id"], "shape": shape},
        )

    return CargoRecord.model_validate(data)


def normalize_snapshot(raws: Iterable[Mapping[str, Any]]) -> list[CargoRecord]:
    """Normalize a batch of raw documents, preserving order."""
    return [normalize(raw) for raw in raws]


def sort_by_consignee(records: Iterable[CargoRecord]) -> list[CargoRecord]:
    """Order records by consignee, case-insensitively; ties keep input order."""
    return sorted(records, key=lambda record: record.consignee.casefold())
