"""
CargoRecord model representing one tracked consignment in canonical shape.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

TERMINAL_STATUS = "Completed"


class FieldName(str, Enum):
    """Searchable record fields, valued by their stored (camelCase) names."""

    CONSIGNEE = "consignee"
    CONSOL_NUMBER = "consolNumber"
    SHIPMENT_NUMBER = "shipmentNumber"
    MASTER_AIR_WAYBILL = "masterAirWaybill"
    HOUSE_AIR_WAYBILLS = "houseAirWaybills"
    KLL_NUMBER = "kllNumber"
    PRE_ALERT_DATE = "preAlertDate"
    ETA = "eta"
    CURRENT_STATUS = "currentStatus"
    INSTRUCTIONS = "instructions"

    @classmethod
    def parse(cls, value: "FieldName | str | None") -> "FieldName | None":
        """
        Resolve a field name, returning None for blank or unknown names.

        Args:
            value: A FieldName, its string value, or None

        Returns:
            The matching FieldName, or None
        """
        if value is None or isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class CargoRecord(BaseModel):
    """
    A cargo record in canonical shape.

    Attributes use snake_case; the stored document uses the camelCase
    aliases. Required-ness of fields is enforced by the rule engine, not
    here, so that an incomplete record can still be normalized, listed and
    reported on.

    Attributes:
        id: Store-assigned identifier (None until persisted)
        consignee: Receiving party
        consol_number: Consolidation number
        shipment_number: Shipment number
        master_air_waybill: MAWB number
        house_air_waybills: HAWB numbers, insertion order preserved
        kll_number: KLL number
        pre_alert_date: Pre-alert calendar date (ISO 8601 date)
        eta: Estimated arrival (ISO 8601 date-time)
        current_status: "Completed" or free-text in-progress status
        instructions: Free-text handling instructions
        user_id: Identity that created the record
        created_at: Set by the service on creation
        updated_at: Set by the service on update
    """

    id: str | None = None
    consignee: str = ""
    consol_number: str = Field("", alias="consolNumber")
    shipment_number: str = Field("", alias="shipmentNumber")
    master_air_waybill: str = Field("", alias="masterAirWaybill")
    house_air_waybills: list[str] = Field(default_factory=list, alias="houseAirWaybills")
    kll_number: str = Field("", alias="kllNumber")
    pre_alert_date: str = Field("", alias="preAlertDate")
    eta: str = ""
    current_status: str = Field("", alias="currentStatus")
    instructions: str = ""
    user_id: str | None = Field(None, alias="userId")
    created_at: str | None = Field(None, alias="createdAt")
    updated_at: str | None = Field(None, alias="updatedAt")

    class Config:
        populate_by_name = True
        extra = "ignore"
        json_schema_extra = {
            "example": {
                "id": "k3Jd9x",
                "consignee": "John Doe Logistics",
                "consolNumber": "CONSOL-XYZ",
                "shipmentNumber": "SHIP-98765",
                "masterAirWaybill": "123-45678901",
                "houseAirWaybills": ["HAWB-001", "HAWB-002"],
                "kllNumber": "KLL-67890",
                "preAlertDate": "2024-06-01",
                "eta": "2024-06-10T08:00",
                "currentStatus": "In Transit",
                "instructions": "Keep refrigerated",
            }
        }

    @property
    def is_completed(self) -> bool:
        return self.current_status == TERMINAL_STATUS

    def to_document(self) -> dict[str, Any]:
        """
        Dump to the stored document shape: camelCase keys, no id, unset
        optional metadata omitted.
        """
        document = self.model_dump(by_alias=True, exclude={"id"})
        for key in ("userId", "createdAt", "updatedAt"):
            if document.get(key) is None:
                document.pop(key, None)
        return document
