#!/usr/bin/env python3
"""Tests for FleetService mutations and their history entries."""

from datetime import date, datetime, timedelta

import pytest

from fleetdocs import (
    DocumentType,
    DuplicateKey,
    FleetService,
    HistoryAction,
    HistoryLog,
    MemoryStore,
    NotFound,
    StorageFailure,
    ValidationFailure,
)


class Clock:
    """Manually advanced clock."""

    def __init__(self, now=datetime(2025, 1, 1, 9, 0)):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


VEHICLE = {
    "type": "Pickup",
    "project": "North",
    "year": 2022,
    "model": "Hilux",
    "brand": "Toyota",
    "license_plate": "ABCD-12",
}

INSPECTION = {
    "type": "technical_inspection",
    "expiration_date": "2025-01-15",
    "issue_date": "2024-07-15",
}


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def store(clock):
    return MemoryStore(clock=clock)


@pytest.fixture
def service(store, clock):
    return FleetService(store, clock=clock)


@pytest.fixture
def vehicle(service):
    return service.create_vehicle(VEHICLE).vehicle


@pytest.fixture
def document(service, vehicle):
    return service.add_document(vehicle.id, INSPECTION).document


class FailingHistoryStore(MemoryStore):
    """MemoryStore whose history appends always fail."""

    def append_history(self, entries):
        with self.transaction():
            raise StorageFailure("history table unavailable")


# =============================================================================
# Vehicles
# =============================================================================


class TestCreateVehicle:
    """Tests for create_vehicle."""

    def test_returns_vehicle_and_one_entry(self, service, clock):
        result = service.create_vehicle(VEHICLE)
        assert result.vehicle.license_plate == "ABCD-12"
        assert len(result.history_logs) == 1
        entry = result.history_logs[0]
        assert entry.action == HistoryAction.VEHICLE_CREATED
        assert entry.vehicle_id == result.vehicle.id
        assert entry.vehicle_name == "Toyota Hilux (ABCD-12)"
        assert entry.user == "Admin"
        assert entry.timestamp == clock.now

    def test_history_is_persisted(self, service):
        result = service.create_vehicle(VEHICLE)
        assert [h.id for h in service.list_history()] == [result.history_logs[0].id]

    def test_accepts_wire_names(self, service):
        data = dict(VEHICLE)
        data["licensePlate"] = data.pop("license_plate")
        assert service.create_vehicle(data).vehicle.license_plate == "ABCD-12"

    def test_duplicate_plate_writes_nothing(self, service, vehicle):
        with pytest.raises(DuplicateKey):
            service.create_vehicle(dict(VEHICLE, project="South"))
        assert len(service.list_vehicles()) == 1
        assert len(service.list_history()) == 1

    def test_invalid_payload_writes_nothing(self, service):
        with pytest.raises(ValidationFailure):
            service.create_vehicle(dict(VEHICLE, year=1800))
        assert service.list_vehicles() == []
        assert service.list_history() == []

    def test_custom_actor(self, store, clock):
        service = FleetService(store, actor="Fleet Manager", clock=clock)
        result = service.create_vehicle(VEHICLE)
        assert result.history_logs[0].user == "Fleet Manager"

    def test_history_failure_rolls_back_vehicle(self, clock):
        service = FleetService(FailingHistoryStore(clock=clock), clock=clock)
        with pytest.raises(StorageFailure):
            service.create_vehicle(VEHICLE)
        assert service.list_vehicles() == []


class TestUpdateVehicle:
    """Tests for update_vehicle."""

    def test_one_entry_per_changed_field(self, service, vehicle):
        result = service.update_vehicle(vehicle.id, {"project": "South"})
        assert result.vehicle.project == "South"
        assert len(result.history_logs) == 1
        entry = result.history_logs[0]
        assert entry.action == HistoryAction.VEHICLE_UPDATED
        assert entry.field == "project"
        assert entry.old_value == "North"
        assert entry.new_value == "South"

    def test_unchanged_fields_produce_no_entries(self, service, vehicle):
        result = service.update_vehicle(
            vehicle.id, {"project": "North", "year": 2022, "brand": "Lexus"}
        )
        assert [e.field for e in result.history_logs] == ["brand"]

    def test_noop_update_produces_no_entries(self, service, vehicle):
        result = service.update_vehicle(vehicle.id, dict(VEHICLE))
        assert result.history_logs == []
        assert len(service.list_history()) == 1

    def test_float_year_matches_stored_int(self, service, store, vehicle):
        result = service.update_vehicle(vehicle.id, {"year": 2022.0})
        assert result.history_logs == []
        stored = store.get_vehicle(vehicle.id).year
        assert stored == 2022
        assert type(stored) is int

    def test_unknown_keys_are_ignored(self, service, vehicle):
        result = service.update_vehicle(vehicle.id, {"color": "red"})
        assert result.history_logs == []

    def test_touches_updated_at(self, service, vehicle, clock):
        clock.advance(hours=1)
        result = service.update_vehicle(vehicle.id, {"project": "South"})
        assert result.vehicle.updated_at == clock.now
        assert result.vehicle.created_at == vehicle.created_at

    def test_plate_conflict(self, service, vehicle):
        other = service.create_vehicle(dict(VEHICLE, license_plate="ZZZZ-99")).vehicle
        with pytest.raises(DuplicateKey):
            service.update_vehicle(other.id, {"license_plate": "ABCD-12"})
        assert service.get_vehicle(other.id).license_plate == "ZZZZ-99"

    def test_unknown_vehicle(self, service):
        with pytest.raises(NotFound):
            service.update_vehicle("missing", {"project": "South"})
        assert service.list_history() == []

    def test_invalid_year(self, service, vehicle):
        with pytest.raises(ValidationFailure):
            service.update_vehicle(vehicle.id, {"year": "soon"})


class TestDeleteVehicle:
    """Tests for delete_vehicle."""

    def test_removes_vehicle_and_documents(self, service, vehicle, document):
        result = service.delete_vehicle(vehicle.id)
        assert result.vehicle.id == vehicle.id
        assert [d.id for d in result.vehicle.documents] == [document.id]
        assert service.list_vehicles() == []

    def test_single_entry_for_vehicle_only(self, service, vehicle, document):
        result = service.delete_vehicle(vehicle.id)
        assert [e.action for e in result.history_logs] == [
            HistoryAction.VEHICLE_DELETED
        ]
        assert "Toyota Hilux (ABCD-12)" in result.history_logs[0].details

    def test_cascade_logs_only_vehicle_deletion(self, service, store, vehicle):
        types = list(DocumentType)[:5]
        documents = [
            service.add_document(vehicle.id, dict(INSPECTION, type=t.value)).document
            for t in types
        ]
        result = service.delete_vehicle(vehicle.id)

        assert len(result.vehicle.documents) == 5
        for document in documents:
            with pytest.raises(NotFound):
                store.get_document(vehicle.id, document.id)
        actions = [h.action for h in service.list_history()]
        assert actions.count(HistoryAction.VEHICLE_DELETED) == 1
        assert HistoryAction.DOCUMENT_DELETED not in actions
        assert actions.count(HistoryAction.DOCUMENT_ADDED) == 5

    def test_history_outlives_vehicle(self, service, vehicle, document, clock):
        clock.advance(minutes=1)
        service.delete_vehicle(vehicle.id)
        history = service.list_history()
        assert [h.action for h in history] == [
            HistoryAction.VEHICLE_DELETED,
            HistoryAction.DOCUMENT_ADDED,
            HistoryAction.VEHICLE_CREATED,
        ]
        assert {h.vehicle_id for h in history} == {vehicle.id}

    def test_unknown_vehicle(self, service):
        with pytest.raises(NotFound):
            service.delete_vehicle("missing")


# =============================================================================
# Documents
# =============================================================================


class TestAddDocument:
    """Tests for add_document."""

    def test_defaults_name_and_frequency(self, service, vehicle):
        result = service.add_document(vehicle.id, INSPECTION)
        assert result.document.name == "Certificate - Technical Inspection"
        assert result.document.renewal_frequency == "Semiannual"
        assert result.document.type == DocumentType.TECHNICAL_INSPECTION
        assert result.document.expiration_date == date(2025, 1, 15)

    def test_explicit_name_and_frequency(self, service, vehicle):
        data = dict(INSPECTION, name="Inspection 2025", renewal_frequency="Annual")
        result = service.add_document(vehicle.id, data)
        assert result.document.name == "Inspection 2025"
        assert result.document.renewal_frequency == "Annual"

    def test_returns_refreshed_vehicle(self, service, vehicle):
        result = service.add_document(vehicle.id, INSPECTION)
        assert [d.id for d in result.vehicle.documents] == [result.document.id]

    def test_entry(self, service, vehicle):
        result = service.add_document(vehicle.id, INSPECTION)
        assert len(result.history_logs) == 1
        entry = result.history_logs[0]
        assert entry.action == HistoryAction.DOCUMENT_ADDED
        assert entry.vehicle_id == vehicle.id
        assert entry.field == "Certificate - Technical Inspection"

    def test_unknown_vehicle(self, service):
        with pytest.raises(NotFound):
            service.add_document("missing", INSPECTION)
        assert service.list_history() == []

    def test_bad_date(self, service, vehicle):
        with pytest.raises(ValidationFailure):
            service.add_document(vehicle.id, dict(INSPECTION, expiration_date="soon"))

    def test_bad_type(self, service, vehicle):
        with pytest.raises(ValidationFailure):
            service.add_document(vehicle.id, dict(INSPECTION, type="passport"))


class TestUpdateDocument:
    """Tests for update_document and renew_document."""

    def test_renewal(self, service, vehicle, document, clock):
        clock.advance(days=10)
        result = service.renew_document(
            vehicle.id,
            document.id,
            {"expiration_date": "2025-07-15", "issue_date": "2025-01-10"},
        )
        assert result.document.expiration_date == date(2025, 7, 15)
        assert result.document.last_renewal_date == clock.now
        assert len(result.history_logs) == 1
        entry = result.history_logs[0]
        assert entry.action == HistoryAction.DOCUMENT_RENEWED
        assert entry.old_value == "2025-01-15"
        assert entry.new_value == "2025-07-15"
        assert entry.details == "Document renewed - new expiration date: 2025-07-15"

    def test_non_date_update(self, service, vehicle, document):
        result = service.update_document(
            vehicle.id, document.id, {"observations": "Stored in glovebox"}
        )
        assert result.document.observations == "Stored in glovebox"
        assert result.document.last_renewal_date is None
        assert [e.action for e in result.history_logs] == [
            HistoryAction.DOCUMENT_UPDATED
        ]

    def test_issue_date_only_is_not_logged_as_renewal(self, service, vehicle, document):
        result = service.update_document(
            vehicle.id, document.id, {"issue_date": "2024-08-01"}
        )
        assert result.document.last_renewal_date is not None
        assert result.history_logs[0].action == HistoryAction.DOCUMENT_UPDATED

    def test_renewal_changes_vehicle_status(self, service, vehicle, document):
        reference = date(2025, 1, 10)
        assert service.get_vehicle(vehicle.id).status(reference).name == "RED"
        result = service.renew_document(
            vehicle.id, document.id, {"expiration_date": "2025-07-15"}
        )
        assert result.vehicle.status(reference).name == "GREEN"

    def test_unknown_document(self, service, vehicle):
        with pytest.raises(NotFound) as excinfo:
            service.update_document(vehicle.id, "missing", {"name": "x"})
        assert excinfo.value.entity == "document"

    def test_document_of_other_vehicle(self, service, vehicle, document):
        other = service.create_vehicle(dict(VEHICLE, license_plate="ZZZZ-99")).vehicle
        with pytest.raises(NotFound):
            service.update_document(other.id, document.id, {"name": "x"})

    def test_empty_name_rejected(self, service, vehicle, document):
        with pytest.raises(ValidationFailure):
            service.update_document(vehicle.id, document.id, {"name": ""})


class TestDeleteDocument:
    """Tests for delete_document."""

    def test_removes_document(self, service, vehicle, document):
        result = service.delete_document(vehicle.id, document.id)
        assert result.document.id == document.id
        assert result.vehicle.documents == []
        assert service.get_vehicle(vehicle.id).documents == []

    def test_entry(self, service, vehicle, document):
        result = service.delete_document(vehicle.id, document.id)
        assert [e.action for e in result.history_logs] == [
            HistoryAction.DOCUMENT_DELETED
        ]
        assert result.history_logs[0].field == "Certificate - Technical Inspection"

    def test_unknown_document(self, service, vehicle):
        with pytest.raises(NotFound):
            service.delete_document(vehicle.id, "missing")


# =============================================================================
# History listing
# =============================================================================


class TestListHistory:
    """Tests for list_history limits."""

    def add_entries(self, store, count):
        start = datetime(2025, 1, 1)
        store.append_history(
            [
                HistoryLog(
                    str(i),
                    HistoryAction.VEHICLE_CREATED,
                    start + timedelta(minutes=i),
                    "Admin",
                )
                for i in range(count)
            ]
        )

    def test_default_limit(self, service, store):
        self.add_entries(store, 250)
        history = service.list_history()
        assert len(history) == 200
        assert history[0].id == "249"

    def test_limit_is_capped(self, service, store):
        self.add_entries(store, 600)
        assert len(service.list_history(1000)) == 500

    def test_explicit_limit(self, service, store):
        self.add_entries(store, 10)
        assert [h.id for h in service.list_history(3)] == ["9", "8", "7"]

    @pytest.mark.parametrize("limit", [0, -1, "ten", 2.5])
    def test_invalid_limit(self, service, limit):
        with pytest.raises(ValidationFailure):
            service.list_history(limit)

    def test_configured_default(self, store, clock):
        self.add_entries(store, 20)
        service = FleetService(store, clock=clock, history_limit=5)
        assert len(service.list_history()) == 5
