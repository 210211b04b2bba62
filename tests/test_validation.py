#!/usr/bin/env python3
"""Tests for payload validation."""

from datetime import date

import pytest

from fleetdocs import DocumentType, ValidationFailure
from fleetdocs.validation import (
    MAX_HISTORY_LIMIT,
    validate_document,
    validate_history_limit,
    validate_vehicle,
)

VEHICLE = {
    "type": "Van",
    "project": "South",
    "year": 2021,
    "model": "NQR",
    "brand": "Chevrolet",
    "license_plate": "EFGH-34",
}


class TestValidateVehicle:
    """Tests for validate_vehicle."""

    def test_valid_payload(self):
        assert validate_vehicle(VEHICLE) == VEHICLE

    def test_missing_field(self):
        data = dict(VEHICLE)
        del data["brand"]
        with pytest.raises(ValidationFailure) as excinfo:
            validate_vehicle(data)
        assert any("brand" in e for e in excinfo.value.errors)

    def test_empty_string_rejected(self):
        with pytest.raises(ValidationFailure):
            validate_vehicle(dict(VEHICLE, model=""))

    @pytest.mark.parametrize("year", [1899, date.today().year + 2, "old", 2021.5])
    def test_bad_year(self, year):
        with pytest.raises(ValidationFailure):
            validate_vehicle(dict(VEHICLE, year=year))

    def test_year_bounds_inclusive(self):
        assert validate_vehicle(dict(VEHICLE, year=1900))["year"] == 1900
        next_year = date.today().year + 1
        assert validate_vehicle(dict(VEHICLE, year=next_year))["year"] == next_year

    def test_numeric_string_year(self):
        assert validate_vehicle(dict(VEHICLE, year=" 2021 "))["year"] == 2021

    def test_float_year_normalized_to_int(self):
        year = validate_vehicle(dict(VEHICLE, year=2021.0))["year"]
        assert year == 2021
        assert type(year) is int

    def test_wire_names_and_unknown_keys(self):
        data = dict(VEHICLE, color="white")
        data["licensePlate"] = data.pop("license_plate")
        fields = validate_vehicle(data)
        assert fields["license_plate"] == "EFGH-34"
        assert "color" not in fields

    def test_partial_allows_subset(self):
        assert validate_vehicle({"project": "North"}, partial=True) == {
            "project": "North"
        }

    def test_partial_still_checks_types(self):
        with pytest.raises(ValidationFailure):
            validate_vehicle({"year": 1492}, partial=True)

    def test_non_object_payload(self):
        with pytest.raises(ValidationFailure):
            validate_vehicle(["not", "a", "dict"])

    def test_none_payload_is_empty(self):
        with pytest.raises(ValidationFailure):
            validate_vehicle(None)
        assert validate_vehicle(None, partial=True) == {}


class TestValidateDocument:
    """Tests for validate_document."""

    def test_parses_type_and_dates(self):
        fields = validate_document(
            {
                "type": "mandatory_insurance",
                "expirationDate": "2025-06-01",
                "issueDate": "2024-06-01T10:00:00Z",
            }
        )
        assert fields["type"] == DocumentType.MANDATORY_INSURANCE
        assert fields["expiration_date"] == date(2025, 6, 1)
        assert fields["issue_date"] == date(2024, 6, 1)

    def test_accepts_date_objects(self):
        fields = validate_document(
            {
                "type": "miscellaneous",
                "expiration_date": date(2025, 6, 1),
                "issue_date": date(2024, 6, 1),
            }
        )
        assert fields["expiration_date"] == date(2025, 6, 1)

    def test_missing_dates(self):
        with pytest.raises(ValidationFailure):
            validate_document({"type": "miscellaneous"})

    def test_unknown_type(self):
        with pytest.raises(ValidationFailure):
            validate_document(
                {
                    "type": "passport",
                    "expiration_date": "2025-06-01",
                    "issue_date": "2024-06-01",
                }
            )

    def test_invalid_date(self):
        with pytest.raises(ValidationFailure) as excinfo:
            validate_document(
                {
                    "type": "miscellaneous",
                    "expiration_date": "2025-13-45",
                    "issue_date": "2024-06-01",
                }
            )
        assert excinfo.value.errors[0].startswith("expiration_date")

    def test_optional_fields_may_be_null(self):
        fields = validate_document(
            {
                "type": "miscellaneous",
                "expiration_date": "2025-06-01",
                "issue_date": "2024-06-01",
                "name": None,
                "fileUrl": None,
                "observations": None,
            }
        )
        assert fields["name"] is None
        assert fields["file_url"] is None

    def test_partial_update(self):
        assert validate_document({"expiration_date": "2025-07-15"}, partial=True) == {
            "expiration_date": date(2025, 7, 15)
        }


class TestValidateHistoryLimit:
    """Tests for validate_history_limit."""

    def test_default(self):
        assert validate_history_limit(None) == 200
        assert validate_history_limit(None, default=25) == 25

    def test_capped(self):
        assert validate_history_limit(10_000) == MAX_HISTORY_LIMIT

    def test_passes_valid_value(self):
        assert validate_history_limit(1) == 1

    @pytest.mark.parametrize("limit", [0, -5, True, "20", 3.0])
    def test_rejects(self, limit):
        with pytest.raises(ValidationFailure):
            validate_history_limit(limit)
