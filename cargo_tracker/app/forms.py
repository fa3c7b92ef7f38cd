"""
CargoDraft: the contents of the add/edit form before submission.
"""

from pydantic import BaseModel, Field

from cargo_tracker.core.models import CargoRecord
from cargo_tracker.core.records import StatusSelection, resolve_status, split_status


class CargoDraft(BaseModel):
    """
    Form state for creating or editing a cargo record.

    Status is chosen as "Completed" or "Other (specify)" plus free text;
    to_record() resolves the pair into current_status.
    """

    id: str | None = None
    consignee: str = ""
    consol_number: str = ""
    shipment_number: str = ""
    master_air_waybill: str = ""
    house_air_waybills: list[str] = Field(default_factory=list)
    kll_number: str = ""
    pre_alert_date: str = ""
    eta: str = ""
    status_selection: StatusSelection = StatusSelection.OTHER
    custom_status: str = ""
    instructions: str = ""
    user_id: str | None = None
    created_at: str | None = None

    @classmethod
    def from_record(cls, record: CargoRecord) -> "CargoDraft":
        """Prefill the form for editing an existing record."""
        selection, custom_status = split_status(record.current_status)
        return cls(
            id=record.id,
            consignee=record.consignee,
            consol_number=record.consol_number,
            shipment_number=record.shipment_number,
            master_air_waybill=record.master_air_waybill,
            house_air_waybills=list(record.house_air_waybills),
            kll_number=record.kll_number,
            pre_alert_date=record.pre_alert_date,
            eta=record.eta,
            status_selection=selection,
            custom_status=custom_status,
            instructions=record.instructions,
            user_id=record.user_id,
            created_at=record.created_at,
        )

    def add_house_air_waybill(self, value: str) -> None:
        """Append a trimmed HAWB; blank input is ignored."""
        value = value.strip()
        if value:
            self.house_air_waybills.append(value)

    def remove_house_air_waybill(self, index: int) -> None:
        del self.house_air_waybills[index]

    @property
    def missing_custom_status(self) -> bool:
        return self.status_selection is StatusSelection.OTHER and not self.custom_status.strip()

    def to_record(self) -> CargoRecord:
        return CargoRecord(
            id=self.id,
            consignee=self.consignee,
            consol_number=self.consol_number,
            shipment_number=self.shipment_number,
            master_air_waybill=self.master_air_waybill,
            house_air_waybills=[h.strip() for h in self.house_air_waybills if h.strip()],
            kll_number=self.kll_number,
            pre_alert_date=self.pre_alert_date,
            eta=self.eta,
            current_status=resolve_status(self.status_selection, self.custom_status),
            instructions=self.instructions,
            user_id=self.user_id,
            created_at=self.created_at,
        )
