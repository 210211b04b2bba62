"""
Audit logging: derive history entries from a mutation.

Entries are built here but never stored here. The service appends them to
the store inside the same transaction as the entity change, so an entry
exists only if its mutation was committed.
"""

import uuid
from datetime import datetime
from typing import Any, Iterable, List, Optional, Union

from .document import Document
from .history_log import HistoryAction, HistoryLog
from .vehicle import Vehicle

DEFAULT_ACTOR = "Admin"

# Never diffed on vehicle updates
BOOKKEEPING_FIELDS = frozenset({"id", "created_at", "updated_at", "documents"})

Entity = Union[Vehicle, Document]


def new_id() -> str:
    return uuid.uuid4().hex


def _stringify(value: Any) -> str:
    """Old/new values are always compared and stored as strings."""
    return str(value)


def _date_string(value) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def record_mutation(
    action: HistoryAction,
    before: Optional[Entity],
    after: Optional[Entity],
    actor: str = DEFAULT_ACTOR,
    vehicle: Optional[Vehicle] = None,
    fields: Optional[Iterable[str]] = None,
    timestamp: Optional[datetime] = None,
) -> List[HistoryLog]:
    """
    Build the history entries describing one mutation.

    Args:
        action: What happened. For updates pass VEHICLE_UPDATED or
            DOCUMENT_UPDATED; a document update that moves the expiration
            date is logged as DOCUMENT_RENEWED.
        before: Entity state before the mutation (None for creates).
        after: Entity state after the mutation (None for deletes).
        actor: Identity recorded on every entry.
        vehicle: Owning vehicle, required for document actions.
        fields: Keys present in the update request (vehicle updates only).
        timestamp: Shared wall-clock time of the mutation (default: now).

    Returns:
        The entries, possibly empty for a no-op vehicle update.
    """
    timestamp = timestamp or datetime.now()

    def entry(vehicle_ref: Vehicle, **kwargs) -> HistoryLog:
        return HistoryLog(
            id=new_id(),
            action=kwargs.pop("action", action),
            timestamp=timestamp,
            user=actor,
            vehicle_id=vehicle_ref.id,
            vehicle_name=display_name,
            **kwargs,
        )

    if action == HistoryAction.VEHICLE_CREATED:
        display_name = after.display_name
        return [entry(after, details="Vehicle added to the fleet")]

    if action == HistoryAction.VEHICLE_DELETED:
        display_name = before.display_name
        details = f"Vehicle {display_name} removed from the fleet"
        return [entry(before, details=details)]

    if action == HistoryAction.VEHICLE_UPDATED:
        display_name = after.display_name
        logs = []
        for field in fields if fields is not None else ():
            if field in BOOKKEEPING_FIELDS:
                continue
            old_value = _stringify(getattr(before, field, None))
            new_value = _stringify(getattr(after, field, None))
            if old_value == new_value:
                continue
            logs.append(
                entry(
                    after,
                    field=field,
                    old_value=old_value,
                    new_value=new_value,
                    details=f'Field "{field}" updated',
                )
            )
        return logs

    if vehicle is None:
        raise ValueError(f"{action.value} requires the owning vehicle")
    display_name = vehicle.display_name

    if action == HistoryAction.DOCUMENT_ADDED:
        details = f'Document "{after.name}" added'
        return [entry(vehicle, field=after.name, details=details)]

    if action == HistoryAction.DOCUMENT_DELETED:
        details = f'Document "{before.name}" deleted'
        return [entry(vehicle, field=before.name, details=details)]

    if action in (HistoryAction.DOCUMENT_UPDATED, HistoryAction.DOCUMENT_RENEWED):
        old_expiration = _date_string(before.expiration_date)
        new_expiration = _date_string(after.expiration_date)
        if old_expiration != new_expiration:
            return [
                entry(
                    vehicle,
                    action=HistoryAction.DOCUMENT_RENEWED,
                    field=after.name,
                    old_value=old_expiration,
                    new_value=new_expiration,
                    details=f"Document renewed - new expiration date: {new_expiration}",
                )
            ]
        return [
            entry(
                vehicle,
                action=HistoryAction.DOCUMENT_UPDATED,
                field=after.name,
                details=f'Document "{after.name}" updated',
            )
        ]

    raise ValueError(f"Unsupported action: {action}")
