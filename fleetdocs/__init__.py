"""
Fleet document tracking.

This package tracks vehicles and their regulatory documents:
- Status: Expiration urgency tiers (RED, YELLOW, GREEN)
- Vehicle / Document: The fleet aggregate and its paperwork
- HistoryLog: Append-only audit entries
- calculations: Status classification and urgency ordering
- FleetStore: Persistence adapter (MemoryStore, YamlStore)
- FleetService: Mutations, each atomic with its audit trail
"""

from .status import Status
from .document import Document, DocumentType, DOCUMENT_TYPE_LABELS
from .history_log import HistoryLog, HistoryAction, HISTORY_ACTION_LABELS
from .vehicle import Vehicle
from .calculations import (
    classify,
    days_until_expiration,
    documents_needing_attention,
    earliest_expiring,
    fleet_summary,
    search_vehicles,
    sort_by_urgency,
    vehicle_status,
)
from .errors import (
    FleetError,
    NotFound,
    DuplicateKey,
    ValidationFailure,
    StorageFailure,
)
from .audit import record_mutation
from .store import FleetStore, MemoryStore
from .loader import YamlStore, load_fleet
from .service import FleetService, VehicleMutation, DocumentMutation

__all__ = [
    "Status",
    "Document",
    "DocumentType",
    "DOCUMENT_TYPE_LABELS",
    "HistoryLog",
    "HistoryAction",
    "HISTORY_ACTION_LABELS",
    "Vehicle",
    "classify",
    "days_until_expiration",
    "documents_needing_attention",
    "earliest_expiring",
    "fleet_summary",
    "search_vehicles",
    "sort_by_urgency",
    "vehicle_status",
    "FleetError",
    "NotFound",
    "DuplicateKey",
    "ValidationFailure",
    "StorageFailure",
    "record_mutation",
    "FleetStore",
    "MemoryStore",
    "YamlStore",
    "load_fleet",
    "FleetService",
    "VehicleMutation",
    "DocumentMutation",
]
