"""Vehicle class - the aggregate owning a list of documents."""

from datetime import date, datetime
from typing import List, Optional

from .document import Document
from .status import Status
from .calculations import earliest_expiring, vehicle_status

# Fields a caller may set on create/update. Everything else is bookkeeping.
VEHICLE_FIELDS = ("type", "project", "year", "model", "brand", "license_plate")


class Vehicle:
    """A fleet vehicle and its documents."""

    def __init__(
        self,
        id: str,
        type: str,
        project: str,
        year: int,
        model: str,
        brand: str,
        license_plate: str,
        documents: Optional[List[Document]] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.type = type
        self.project = project
        self.year = year
        self.model = model
        self.brand = brand
        self.license_plate = license_plate
        self.documents = documents or []
        self.created_at = created_at
        self.updated_at = updated_at

    @property
    def display_name(self) -> str:
        """Human-readable vehicle name, as stored on history entries."""
        return f"{self.brand} {self.model} ({self.license_plate})"

    @property
    def earliest_expiring_document(self) -> Optional[Document]:
        return earliest_expiring(self.documents)

    def status(self, reference_date: Optional[date] = None) -> Status:
        """Overall status, derived fresh from the earliest-expiring document."""
        return vehicle_status(self, reference_date)

    def get_document(self, document_id: str) -> Optional[Document]:
        for document in self.documents:
            if document.id == document_id:
                return document
        return None

    def __repr__(self) -> str:
        return f"Vehicle({self.id!r}, {self.display_name!r})"
