"""
Fleet domain service: every mutation plus its audit trail.

Each public mutation validates its input first, then runs the store change
and the history append in one store transaction. Nothing is retried: a
StorageFailure reaches the caller as is.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .audit import DEFAULT_ACTOR, record_mutation
from .document import DEFAULT_RENEWAL_FREQUENCY, DOCUMENT_TYPE_LABELS, Document
from .errors import DuplicateKey, NotFound
from .history_log import HistoryAction, HistoryLog
from .store import FleetStore
from .validation import (
    DEFAULT_HISTORY_LIMIT,
    validate_document,
    validate_history_limit,
    validate_vehicle,
)
from .vehicle import Vehicle

logger = logging.getLogger(__name__)


@dataclass
class VehicleMutation:
    """Result of a vehicle mutation: the vehicle and the entries it produced."""

    vehicle: Vehicle
    history_logs: List[HistoryLog] = field(default_factory=list)


@dataclass
class DocumentMutation:
    """Result of a document mutation, with the refreshed parent vehicle."""

    vehicle: Vehicle
    document: Document
    history_logs: List[HistoryLog] = field(default_factory=list)


class FleetService:
    """Vehicle and document operations against a FleetStore."""

    def __init__(
        self,
        store: FleetStore,
        actor: str = DEFAULT_ACTOR,
        clock: Optional[Callable[[], datetime]] = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self.store = store
        self.actor = actor
        self.clock = clock or datetime.now
        self.history_limit = history_limit

    @contextmanager
    def _mutation(self, description: str):
        try:
            with self.store.transaction():
                yield
        except (NotFound, DuplicateKey) as e:
            logger.warning("%s rejected: %s", description, e)
            raise

    def _record(self, action: HistoryAction, before, after, **kwargs) -> List[HistoryLog]:
        logs = record_mutation(action, before, after, self.actor, **kwargs)
        self.store.append_history(logs)
        return logs

    # =========================================================================
    # Reads
    # =========================================================================

    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        return self.store.get_vehicle(vehicle_id)

    def list_vehicles(self) -> List[Vehicle]:
        return self.store.list_vehicles()

    def list_history(self, limit: Optional[int] = None) -> List[HistoryLog]:
        """Newest-first history, bounded by ``limit`` (default 200, max 500)."""
        return self.store.list_history(validate_history_limit(limit, self.history_limit))

    # =========================================================================
    # Vehicles
    # =========================================================================

    def create_vehicle(self, data: Dict[str, Any]) -> VehicleMutation:
        fields = validate_vehicle(data)
        now = self.clock()
        with self._mutation(f"Create vehicle {fields['license_plate']}"):
            vehicle = self.store.create_vehicle(fields)
            logs = self._record(
                HistoryAction.VEHICLE_CREATED, None, vehicle, timestamp=now
            )
        logger.info("Created vehicle %s", vehicle.display_name)
        return VehicleMutation(vehicle, logs)

    def update_vehicle(self, vehicle_id: str, data: Dict[str, Any]) -> VehicleMutation:
        """
        Apply a partial update.

        One history entry per field whose string form changed; an update
        that changes nothing produces no entries.
        """
        fields = validate_vehicle(data, partial=True)
        now = self.clock()
        with self._mutation(f"Update vehicle {vehicle_id}"):
            before = self.store.get_vehicle(vehicle_id)
            after = self.store.update_vehicle(vehicle_id, fields)
            logs = self._record(
                HistoryAction.VEHICLE_UPDATED,
                before,
                after,
                fields=list(fields),
                timestamp=now,
            )
        logger.info(
            "Updated vehicle %s (%d field(s) changed)", after.display_name, len(logs)
        )
        return VehicleMutation(after, logs)

    def delete_vehicle(self, vehicle_id: str) -> VehicleMutation:
        """Delete a vehicle and its documents. Only the vehicle deletion is logged."""
        now = self.clock()
        with self._mutation(f"Delete vehicle {vehicle_id}"):
            before = self.store.get_vehicle(vehicle_id)
            self.store.delete_vehicle(vehicle_id)
            logs = self._record(
                HistoryAction.VEHICLE_DELETED, before, None, timestamp=now
            )
        logger.info(
            "Deleted vehicle %s with %d document(s)",
            before.display_name,
            len(before.documents),
        )
        return VehicleMutation(before, logs)

    # =========================================================================
    # Documents
    # =========================================================================

    def add_document(self, vehicle_id: str, data: Dict[str, Any]) -> DocumentMutation:
        fields = validate_document(data)
        doc_type = fields["type"]
        if not fields.get("name"):
            fields["name"] = DOCUMENT_TYPE_LABELS[doc_type]
        if not fields.get("renewal_frequency"):
            fields["renewal_frequency"] = DEFAULT_RENEWAL_FREQUENCY[doc_type]
        now = self.clock()
        with self._mutation(f"Add document to vehicle {vehicle_id}"):
            document = self.store.create_document(vehicle_id, fields)
            vehicle = self.store.get_vehicle(vehicle_id)
            logs = self._record(
                HistoryAction.DOCUMENT_ADDED,
                None,
                document,
                vehicle=vehicle,
                timestamp=now,
            )
        logger.info("Added document %r to %s", document.name, vehicle.display_name)
        return DocumentMutation(vehicle, document, logs)

    def update_document(
        self, vehicle_id: str, document_id: str, data: Dict[str, Any]
    ) -> DocumentMutation:
        """
        Update a document. Changing its dates counts as a renewal.

        A renewal stamps ``last_renewal_date`` and, when the expiration date
        moves, is logged as "document renewed" with old/new dates.
        """
        fields = validate_document(data, partial=True)
        now = self.clock()
        with self._mutation(f"Update document {document_id}"):
            before = self.store.get_document(vehicle_id, document_id)
            renewed = any(
                key in fields and fields[key] != getattr(before, key)
                for key in ("expiration_date", "issue_date")
            )
            if renewed:
                fields["last_renewal_date"] = now
            after = self.store.update_document(vehicle_id, document_id, fields)
            vehicle = self.store.get_vehicle(vehicle_id)
            logs = self._record(
                HistoryAction.DOCUMENT_UPDATED,
                before,
                after,
                vehicle=vehicle,
                timestamp=now,
            )
        logger.info(
            "%s document %r of %s",
            "Renewed" if logs[0].action == HistoryAction.DOCUMENT_RENEWED else "Updated",
            after.name,
            vehicle.display_name,
        )
        return DocumentMutation(vehicle, after, logs)

    renew_document = update_document

    def delete_document(self, vehicle_id: str, document_id: str) -> DocumentMutation:
        now = self.clock()
        with self._mutation(f"Delete document {document_id}"):
            before = self.store.get_document(vehicle_id, document_id)
            self.store.delete_document(vehicle_id, document_id)
            vehicle = self.store.get_vehicle(vehicle_id)
            logs = self._record(
                HistoryAction.DOCUMENT_DELETED,
                before,
                None,
                vehicle=vehicle,
                timestamp=now,
            )
        logger.info("Deleted document %r of %s", before.name, vehicle.display_name)
        return DocumentMutation(vehicle, before, logs)
