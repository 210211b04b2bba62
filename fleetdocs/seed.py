"""Sample fleet for demos, with expirations relative to the seeding day."""

from datetime import date, timedelta
from typing import List, Optional

from .service import FleetService
from .vehicle import Vehicle

SEED_VEHICLES = [
    {
        "type": "Pickup",
        "project": "North Project",
        "year": 2022,
        "model": "Hilux",
        "brand": "Toyota",
        "license_plate": "ABCD-12",
    },
    {
        "type": "Van",
        "project": "South Project",
        "year": 2021,
        "model": "NQR",
        "brand": "Chevrolet",
        "license_plate": "EFGH-34",
    },
    {
        "type": "Van",
        "project": "Central Project",
        "year": 2023,
        "model": "Sprinter",
        "brand": "Mercedes-Benz",
        "license_plate": "IJKL-56",
    },
    {
        "type": "Pickup",
        "project": "North Project",
        "year": 2020,
        "model": "Ranger",
        "brand": "Ford",
        "license_plate": "MNOP-78",
    },
    {
        "type": "Car",
        "project": "South Project",
        "year": 2019,
        "model": "FRR",
        "brand": "Isuzu",
        "license_plate": "QRST-90",
    },
    {
        "type": "Pickup",
        "project": "East Project",
        "year": 2022,
        "model": "D-Max",
        "brand": "Isuzu",
        "license_plate": "UVWX-12",
    },
]

# plate -> (days until expiration, days since issue) per document type, in order:
# circulation permit, technical inspection, emissions, insurance, maintenance
SEED_DOCUMENT_OFFSETS = {
    "ABCD-12": [(45, 320), (12, 168), (12, 168), (90, 275), (60, 30)],
    "EFGH-34": [(25, 340), (5, 175), (5, 175), (180, 185), (-3, 93)],
    "IJKL-56": [(120, 245), (75, 105), (75, 105), (200, 165), (40, 50)],
    "MNOP-78": [(-5, 370), (28, 152), (28, 152), (150, 215), (10, 80)],
    "QRST-90": [(60, 305), (45, 135), (45, 135), (100, 265), (85, 5)],
    "UVWX-12": [(22, 343), (50, 130), (50, 130), (200, 165), (70, 20)],
}

SEED_DOCUMENT_TYPES = [
    "circulation_permit",
    "technical_inspection",
    "emissions_certificate",
    "mandatory_insurance",
    "general_maintenance",
]


def seed_fleet(service: FleetService, today: Optional[date] = None) -> List[Vehicle]:
    """Create the sample vehicles and documents through the service, atomically."""
    today = today or date.today()
    vehicles = []
    with service.store.transaction():
        for data in SEED_VEHICLES:
            vehicle = service.create_vehicle(data).vehicle
            offsets = SEED_DOCUMENT_OFFSETS[data["license_plate"]]
            for doc_type, (expires_in, issued_ago) in zip(SEED_DOCUMENT_TYPES, offsets):
                service.add_document(
                    vehicle.id,
                    {
                        "type": doc_type,
                        "expiration_date": today + timedelta(days=expires_in),
                        "issue_date": today - timedelta(days=issued_ago),
                    },
                )
            vehicles.append(service.get_vehicle(vehicle.id))
    return vehicles
