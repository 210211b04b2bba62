#!/usr/bin/env python3
"""Tests for Vehicle class."""

from datetime import date

import pytest

from fleetdocs import Document, DocumentType, Status, Vehicle

TODAY = date(2025, 1, 1)


def doc(doc_id, expires, doc_type=DocumentType.TECHNICAL_INSPECTION):
    return Document(
        doc_id, "v1", doc_id, doc_type, expires, date(2024, 1, 1), "Annual"
    )


class TestVehicle:
    """Tests for Vehicle properties."""

    @pytest.fixture
    def vehicle(self):
        return Vehicle("v1", "Pickup", "North", 2022, "Hilux", "Toyota", "ABCD-12")

    def test_display_name(self, vehicle):
        assert vehicle.display_name == "Toyota Hilux (ABCD-12)"

    def test_documents_default_to_empty(self, vehicle):
        assert vehicle.documents == []

    def test_get_document(self, vehicle):
        vehicle.documents = [doc("d1", date(2025, 3, 1)), doc("d2", date(2025, 4, 1))]
        assert vehicle.get_document("d2").id == "d2"
        assert vehicle.get_document("missing") is None

    def test_earliest_expiring_document(self, vehicle):
        vehicle.documents = [doc("d1", date(2025, 3, 1)), doc("d2", date(2025, 1, 10))]
        assert vehicle.earliest_expiring_document.id == "d2"

    def test_status_follows_earliest_document(self, vehicle):
        vehicle.documents = [doc("d1", date(2025, 3, 1)), doc("d2", date(2025, 1, 10))]
        assert vehicle.status(TODAY) == Status.RED

    def test_status_without_documents_is_green(self, vehicle):
        assert vehicle.status(TODAY) == Status.GREEN
