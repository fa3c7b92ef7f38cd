"""
ETA alert evaluation.

A record is urgent from midnight of its ETA's calendar day onwards, until
its status becomes "Completed". Callers pass the current time explicitly;
a display refreshing once per second simply calls is_eta_urgent again.
"""

from collections.abc import Iterable
from datetime import datetime

from cargo_tracker.core.models import CargoRecord
from cargo_tracker.observability.logger import get_logger

logger = get_logger(__name__)


def parse_eta(value: str | None) -> datetime | None:
    """
    Parse an ISO 8601 date-time (or bare date, read as midnight).

    Returns:
        The parsed datetime, or None when the value is empty or unparsable
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Unparsable ETA", extra={"eta": value})
        return None


def _in_reference_of(eta: datetime, now: datetime) -> datetime:
    """Express eta in the same time reference as now."""
    if now.tzinfo is not None:
        if eta.tzinfo is None:
            return eta.replace(tzinfo=now.tzinfo)
        return eta.astimezone(now.tzinfo)
    if eta.tzinfo is not None:
        # Naive now is local wall-clock time
        return eta.astimezone().replace(tzinfo=None)
    return eta


def start_of_eta_day(eta: datetime, now: datetime) -> datetime:
    """Midnight of the ETA's calendar day, in now's time reference."""
    local_eta = _in_reference_of(eta, now)
    return local_eta.replace(hour=0, minute=0, second=0, microsecond=0)


def is_eta_urgent(record: CargoRecord, now: datetime) -> bool:
    """
    Whether the record's ETA should be flagged.

    Args:
        record: Canonical record
        now: Current time supplied by the caller

    Returns:
        True iff now is on or after the start of the ETA day and the
        record is not completed; False for a missing or unparsable ETA
    """
    eta = parse_eta(record.eta)
    if eta is None:
        return False
    return now >= start_of_eta_day(eta, now) and not record.is_completed


def urgent_record_ids(records: Iterable[CargoRecord], now: datetime) -> list[str]:
    """Ids of persisted records that are urgent at now."""
    return [
        record.id for record in records
        if record.id is not None and is_eta_urgent(record, now)
    ]


def format_eta(value: str | None) -> str:
    """Display form of an ETA: "N/A" when missing, raw text when unparsable."""
    if not value:
        return "N/A"
    eta = parse_eta(value)
    if eta is None:
        return value
    return eta.strftime("%Y-%m-%d %H:%M")
