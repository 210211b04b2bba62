"""Document class for vehicle regulatory and maintenance paperwork."""

from datetime import date, datetime
from enum import Enum
from typing import Optional


class DocumentType(Enum):
    """Closed set of document categories."""

    CIRCULATION_PERMIT = "circulation_permit"
    TECHNICAL_INSPECTION = "technical_inspection"
    EMISSIONS_CERTIFICATE = "emissions_certificate"
    MANDATORY_INSURANCE = "mandatory_insurance"
    GENERAL_MAINTENANCE = "general_maintenance"
    MISCELLANEOUS = "miscellaneous"


DOCUMENT_TYPE_LABELS = {
    DocumentType.CIRCULATION_PERMIT: "Circulation Permit",
    DocumentType.TECHNICAL_INSPECTION: "Certificate - Technical Inspection",
    DocumentType.EMISSIONS_CERTIFICATE: "Certificate - Emissions",
    DocumentType.MANDATORY_INSURANCE: "Mandatory Insurance",
    DocumentType.GENERAL_MAINTENANCE: "General Maintenance",
    DocumentType.MISCELLANEOUS: "Miscellaneous",
}

DEFAULT_RENEWAL_FREQUENCY = {
    DocumentType.CIRCULATION_PERMIT: "Annual",
    DocumentType.TECHNICAL_INSPECTION: "Semiannual",
    DocumentType.EMISSIONS_CERTIFICATE: "Semiannual",
    DocumentType.MANDATORY_INSURANCE: "Annual",
    DocumentType.GENERAL_MAINTENANCE: "Variable",
    DocumentType.MISCELLANEOUS: "Variable",
}


class Document:
    """A dated document owned by exactly one vehicle."""

    def __init__(
        self,
        id: str,
        vehicle_id: str,
        name: str,
        type: DocumentType,
        expiration_date: date,
        issue_date: date,
        renewal_frequency: str,
        last_renewal_date: Optional[datetime] = None,
        file_name: Optional[str] = None,
        file_url: Optional[str] = None,
        observations: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.name = name
        self.type = type
        self.expiration_date = expiration_date
        self.issue_date = issue_date
        self.renewal_frequency = renewal_frequency
        self.last_renewal_date = last_renewal_date
        self.file_name = file_name
        self.file_url = file_url
        self.observations = observations
        self.created_at = created_at

    @property
    def type_label(self) -> str:
        return DOCUMENT_TYPE_LABELS[self.type]

    @property
    def is_trackable(self) -> bool:
        """Miscellaneous documents never drive status or alerts."""
        return self.type is not DocumentType.MISCELLANEOUS

    def __repr__(self) -> str:
        return f"Document({self.id!r}, {self.name!r}, expires {self.expiration_date})"
