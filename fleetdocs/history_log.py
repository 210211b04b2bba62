"""HistoryLog class for audit trail entries."""

from datetime import datetime
from enum import Enum
from typing import Optional


class HistoryAction(Enum):
    VEHICLE_CREATED = "vehicle_created"
    VEHICLE_UPDATED = "vehicle_updated"
    VEHICLE_DELETED = "vehicle_deleted"
    DOCUMENT_ADDED = "document_added"
    DOCUMENT_RENEWED = "document_renewed"
    DOCUMENT_UPDATED = "document_updated"
    DOCUMENT_DELETED = "document_deleted"


HISTORY_ACTION_LABELS = {
    HistoryAction.VEHICLE_CREATED: "Vehicle registered",
    HistoryAction.VEHICLE_UPDATED: "Vehicle information updated",
    HistoryAction.VEHICLE_DELETED: "Vehicle deleted",
    HistoryAction.DOCUMENT_ADDED: "Document added",
    HistoryAction.DOCUMENT_RENEWED: "Document renewed",
    HistoryAction.DOCUMENT_UPDATED: "Document updated",
    HistoryAction.DOCUMENT_DELETED: "Document deleted",
}


class HistoryLog:
    """An append-only record of one change to the fleet."""

    def __init__(
        self,
        id: str,
        action: HistoryAction,
        timestamp: datetime,
        user: str,
        vehicle_id: Optional[str] = None,
        vehicle_name: Optional[str] = None,
        field: Optional[str] = None,
        old_value: Optional[str] = None,
        new_value: Optional[str] = None,
        details: Optional[str] = None,
    ):
        self.id = id
        self.action = action
        self.timestamp = timestamp
        self.user = user
        self.vehicle_id = vehicle_id
        self.vehicle_name = vehicle_name
        self.field = field
        self.old_value = old_value
        self.new_value = new_value
        self.details = details

    @property
    def action_label(self) -> str:
        return HISTORY_ACTION_LABELS[self.action]

    def __repr__(self) -> str:
        return (
            f"HistoryLog({self.action.value!r}, {self.vehicle_name!r}, {self.timestamp})"
        )
