"""
Unit tests for Pydantic data models.
"""

import pytest
from pydantic import ValidationError

from cargo_tracker.core.models import TERMINAL_STATUS, CargoRecord, FieldName, ValidationResult


class TestCargoRecord:
    """Tests for CargoRecord model"""

    def test_populate_by_alias(self, canonical_document):
        record = CargoRecord.model_validate(canonical_document)
        assert record.consol_number == "CONSOL-XYZ"
        assert record.house_air_waybills == ["A1", "B2"]

    def test_populate_by_name(self):
        record = CargoRecord(consol_number="C-1", house_air_waybills=["H"])
        assert record.consol_number == "C-1"
        assert record.house_air_waybills == ["H"]

    def test_defaults(self):
        record = CargoRecord()
        assert record.id is None
        assert record.consignee == ""
        assert record.house_air_waybills == []
        assert record.instructions == ""

    def test_to_document_uses_stored_names(self, valid_record):
        document = valid_record.to_document()
        assert "id" not in document
        assert document["consolNumber"] == "CONSOL-XYZ"
        assert document["houseAirWaybills"] == ["A1", "B2"]
        assert "consol_number" not in document

    def test_to_document_omits_unset_metadata(self, valid_record):
        document = valid_record.to_document()
        assert "createdAt" not in document
        assert "updatedAt" not in document
        assert "userId" not in document

    def test_to_document_keeps_set_metadata(self, valid_record):
        record = valid_record.model_copy(update={"created_at": "2024-06-01T10:00:00+00:00", "user_id": "u1"})
        document = record.to_document()
        assert document["createdAt"] == "2024-06-01T10:00:00+00:00"
        assert document["userId"] == "u1"

    def test_is_completed(self):
        assert CargoRecord(current_status=TERMINAL_STATUS).is_completed is True
        assert CargoRecord(current_status="In Transit").is_completed is False

    def test_house_air_waybills_not_shared_between_instances(self):
        first = CargoRecord()
        first.house_air_waybills.append("X")
        assert CargoRecord().house_air_waybills == []


class TestFieldName:
    """Tests for FieldName enumeration"""

    def test_values_match_stored_names(self):
        assert {f.value for f in FieldName} == {
            "consignee", "consolNumber", "shipmentNumber", "masterAirWaybill",
            "houseAirWaybills", "kllNumber", "preAlertDate", "eta",
            "currentStatus", "instructions",
        }

    @pytest.mark.parametrize("value,expected", [
        ("consolNumber", FieldName.CONSOL_NUMBER),
        (FieldName.ETA, FieldName.ETA),
        ("", None),
        (None, None),
        ("weight", None),
    ])
    def test_parse(self, value, expected):
        assert FieldName.parse(value) is expected


class TestValidationResult:
    """Tests for ValidationResult model"""

    def test_valid(self):
        result = ValidationResult.valid(record_id="r1")
        assert result.passed is True
        assert result.failed_fields == []

    def test_invalid(self):
        result = ValidationResult.invalid(["kllNumber"], record_id="r1")
        assert result.passed is False
        assert result.failed_fields == ["kllNumber"]

    def test_passed_with_failures_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            ValidationResult(passed=True, failed_fields=["eta"])
        assert "failed_fields" in str(exc_info.value)
