"""Helper functions for expiration status and urgency ordering."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, TYPE_CHECKING, Union

from .status import Status

if TYPE_CHECKING:
    from .document import Document
    from .vehicle import Vehicle

RED_THRESHOLD_DAYS = 15
YELLOW_THRESHOLD_DAYS = 30

DateLike = Union[date, datetime]


def _calendar_date(value: DateLike) -> date:
    """Drop the time of day so only calendar dates are compared."""
    if isinstance(value, datetime):
        return value.date()
    return value


def days_until_expiration(
    expiration_date: DateLike, reference_date: Optional[DateLike] = None
) -> int:
    """
    Signed number of calendar days until expiration.

    Negative means already expired by that many days. Two timestamps on the
    same calendar day give 0.
    """
    today = _calendar_date(reference_date) if reference_date else date.today()
    return (_calendar_date(expiration_date) - today).days


def classify(
    expiration_date: DateLike, reference_date: Optional[DateLike] = None
) -> Status:
    """Determine urgency tier from days remaining until expiration."""
    days = days_until_expiration(expiration_date, reference_date)
    if days <= RED_THRESHOLD_DAYS:
        return Status.RED
    if days <= YELLOW_THRESHOLD_DAYS:
        return Status.YELLOW
    return Status.GREEN


def earliest_expiring(documents: Iterable["Document"]) -> Optional["Document"]:
    """
    Document with the minimum expiration date, ignoring miscellaneous ones.

    Ties go to the first document encountered.
    """
    earliest = None
    for document in documents:
        if not document.is_trackable:
            continue
        if earliest is None or document.expiration_date < earliest.expiration_date:
            earliest = document
    return earliest


def vehicle_status(
    vehicle: "Vehicle", reference_date: Optional[DateLike] = None
) -> Status:
    """Status of the earliest-expiring document, GREEN when there is none."""
    earliest = earliest_expiring(vehicle.documents)
    if earliest is None:
        return Status.GREEN
    return classify(earliest.expiration_date, reference_date)


def sort_by_urgency(vehicles: Iterable["Vehicle"]) -> List["Vehicle"]:
    """
    Sort vehicles by their earliest-expiring document's date.

    Vehicles with no trackable document go last, keeping their relative order.
    """

    def key(vehicle):
        earliest = earliest_expiring(vehicle.documents)
        if earliest is None:
            return (1, date.min)
        return (0, earliest.expiration_date)

    return sorted(vehicles, key=key)


@dataclass
class DocumentAlert:
    """A trackable document that is not GREEN, with its owning vehicle."""

    vehicle: "Vehicle"
    document: "Document"
    status: Status
    days_until: int


def documents_needing_attention(
    vehicles: Iterable["Vehicle"], reference_date: Optional[DateLike] = None
) -> List[DocumentAlert]:
    """All RED and YELLOW documents across the fleet, most urgent first."""
    alerts = []
    for vehicle in vehicles:
        for document in vehicle.documents:
            if not document.is_trackable:
                continue
            status = classify(document.expiration_date, reference_date)
            if status == Status.GREEN:
                continue
            alerts.append(
                DocumentAlert(
                    vehicle=vehicle,
                    document=document,
                    status=status,
                    days_until=days_until_expiration(
                        document.expiration_date, reference_date
                    ),
                )
            )
    return sorted(alerts, key=lambda a: a.days_until)


@dataclass
class FleetSummary:
    """Dashboard counts of vehicles per status tier."""

    total: int = 0
    red: int = 0
    yellow: int = 0
    green: int = 0
    untracked: int = 0  # No trackable document at all


def fleet_summary(
    vehicles: Iterable["Vehicle"], reference_date: Optional[DateLike] = None
) -> FleetSummary:
    summary = FleetSummary()
    for vehicle in vehicles:
        summary.total += 1
        earliest = earliest_expiring(vehicle.documents)
        if earliest is None:
            summary.untracked += 1
            continue
        status = classify(earliest.expiration_date, reference_date)
        if status == Status.RED:
            summary.red += 1
        elif status == Status.YELLOW:
            summary.yellow += 1
        else:
            summary.green += 1
    return summary


def search_vehicles(
    vehicles: Iterable["Vehicle"], query: Optional[str]
) -> List["Vehicle"]:
    """Case-insensitive substring search over brand, model, plate, project and type."""
    vehicles = list(vehicles)
    if not query or not query.strip():
        return vehicles
    needle = query.strip().lower()
    return [
        v
        for v in vehicles
        if any(
            needle in str(value).lower()
            for value in (v.brand, v.model, v.license_plate, v.project, v.type)
        )
    ]
