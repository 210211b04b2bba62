#!/usr/bin/env python3
"""
Unified CLI for fleet document tracking.

Commands:
  init            - Create a data file (optionally with sample data)
  status          - Dashboard: vehicles ordered by their most urgent document
  attention       - Documents expired or expiring within 30 days
  documents       - List one vehicle's documents
  history         - View the audit log
  add-vehicle     - Register a vehicle
  update-vehicle  - Change vehicle fields
  delete-vehicle  - Remove a vehicle and its documents
  add-document    - Attach a document to a vehicle
  renew-document  - Update a document (new dates count as a renewal)
  delete-document - Remove a document
"""

import argparse
import sys
from datetime import date
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional

from fleetdocs import (
    Document,
    DocumentType,
    FleetError,
    FleetService,
    HistoryLog,
    NotFound,
    ValidationFailure,
    Vehicle,
    YamlStore,
    classify,
    days_until_expiration,
    documents_needing_attention,
    fleet_summary,
    search_vehicles,
    sort_by_urgency,
)
from fleetdocs.calculations import DocumentAlert
from fleetdocs.config import load_settings
from fleetdocs.loader import parse_date
from fleetdocs.logger import configure_logging
from fleetdocs.seed import seed_fleet

# =============================================================================
# Formatting helpers
# =============================================================================


def short_id(entity_id: Optional[str]) -> str:
    """First 8 characters of an id, enough to type on the command line."""
    return entity_id[:8] if entity_id else "-"


def format_date(value: Optional[date]) -> str:
    return value.isoformat() if value is not None else "-"


def format_timestamp(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value is not None else "-"


def format_days(days: Optional[int]) -> str:
    """Format days until expiration (e.g., '12d', 'today', '3d overdue')."""
    if days is None:
        return "-"
    if days < 0:
        return f"{abs(days)}d overdue"
    if days == 0:
        return "today"
    return f"{days}d"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


# =============================================================================
# Tables
# =============================================================================


def make_vehicle_table(
    vehicles: List[Vehicle], reference_date: Optional[date] = None
) -> List[List[str]]:
    """Convert vehicles to dashboard rows."""
    rows = []
    for vehicle in vehicles:
        earliest = vehicle.earliest_expiring_document
        if earliest is None:
            doc_name, expires, remaining = "-", "-", "-"
        else:
            doc_name = earliest.name
            expires = format_date(earliest.expiration_date)
            remaining = format_days(
                days_until_expiration(earliest.expiration_date, reference_date)
            )
        rows.append(
            [
                short_id(vehicle.id),
                vehicle.display_name,
                vehicle.type,
                vehicle.project,
                str(vehicle.year),
                vehicle.status(reference_date).label,
                truncate(doc_name),
                expires,
                remaining,
            ]
        )
    return rows


def make_document_table(
    documents: List[Document], reference_date: Optional[date] = None
) -> List[List[str]]:
    rows = []
    for document in documents:
        if document.is_trackable:
            status = classify(document.expiration_date, reference_date).label
        else:
            status = "-"
        rows.append(
            [
                short_id(document.id),
                truncate(document.name),
                document.type_label,
                format_date(document.issue_date),
                format_date(document.expiration_date),
                format_days(
                    days_until_expiration(document.expiration_date, reference_date)
                ),
                status,
                document.renewal_frequency,
                truncate(document.file_name, 20),
            ]
        )
    return rows


def make_attention_table(alerts: List[DocumentAlert]) -> List[List[str]]:
    return [
        [
            alert.status.label,
            alert.vehicle.display_name,
            truncate(alert.document.name),
            format_date(alert.document.expiration_date),
            format_days(alert.days_until),
        ]
        for alert in alerts
    ]


def make_history_table(entries: List[HistoryLog]) -> List[List[str]]:
    """Convert history entries to table rows."""
    rows = []
    for entry in entries:
        change = "-"
        if entry.old_value is not None or entry.new_value is not None:
            change = f"{entry.old_value} -> {entry.new_value}"
        rows.append(
            [
                format_timestamp(entry.timestamp),
                entry.action_label,
                entry.vehicle_name or "-",
                entry.field or "-",
                truncate(change, 40),
                truncate(entry.details, 50),
                entry.user,
            ]
        )
    return rows


# =============================================================================
# Lookup helpers
# =============================================================================


def find_vehicle(service: FleetService, key: str) -> Vehicle:
    """Find a vehicle by id, unique id prefix or license plate (case-insensitive)."""
    vehicles = service.list_vehicles()
    needle = key.lower()
    for vehicle in vehicles:
        if vehicle.id == key or vehicle.license_plate.lower() == needle:
            return vehicle
    matches = [v for v in vehicles if v.id.startswith(key)]
    if len(matches) == 1:
        return matches[0]
    raise NotFound("vehicle", key)


def find_document(vehicle: Vehicle, key: str) -> Document:
    """Find a vehicle's document by id or unique id prefix."""
    matches = [d for d in vehicle.documents if d.id == key]
    if not matches:
        matches = [d for d in vehicle.documents if d.id.startswith(key)]
    if len(matches) == 1:
        return matches[0]
    raise NotFound("document", key)


def _collect(args, names) -> dict:
    """Build a payload from the argparse attributes that were given."""
    return {
        field: getattr(args, attr)
        for attr, field in names
        if getattr(args, attr, None) is not None
    }


VEHICLE_ARGS = [
    ("type", "type"),
    ("project", "project"),
    ("year", "year"),
    ("model", "model"),
    ("brand", "brand"),
    ("plate", "license_plate"),
]

DOCUMENT_ARGS = [
    ("type", "type"),
    ("name", "name"),
    ("expires", "expiration_date"),
    ("issued", "issue_date"),
    ("frequency", "renewal_frequency"),
    ("file_name", "file_name"),
    ("file_url", "file_url"),
    ("notes", "observations"),
]


def print_history_logs(entries: List[HistoryLog]) -> None:
    if not entries:
        print("No changes recorded.")
        return
    for entry in entries:
        print(f"  [{entry.action_label}] {entry.details}")


# =============================================================================
# Commands
# =============================================================================


def cmd_init(args, service: FleetService):
    """Create an empty data file, optionally with sample vehicles."""
    if args.data_file.exists() and not args.force:
        print(f"Error: {args.data_file} already exists (use --force to reuse it)")
        return 1
    service.store.initialize()
    print(f"Initialized {args.data_file}")
    if args.seed:
        vehicles = seed_fleet(service)
        print(f"Seeded {len(vehicles)} vehicles.")
    return 0


def cmd_status(args, service: FleetService):
    """Dashboard: vehicles sorted by their earliest-expiring document."""
    reference_date = args.as_of or date.today()
    vehicles = service.list_vehicles()
    summary = fleet_summary(vehicles, reference_date)

    print(f"Fleet status as of {reference_date.isoformat()}")
    print(f"Vehicles: {summary.total}")
    print(f"  Critical (red):   {summary.red}")
    print(f"  To renew (yellow): {summary.yellow}")
    print(f"  Up to date (green): {summary.green}")
    if summary.untracked:
        print(f"  No tracked documents: {summary.untracked}")
    print()

    shown = sort_by_urgency(search_vehicles(vehicles, args.search))
    if args.search:
        print(f"Showing: {len(shown)} matching '{args.search}'")
    if not shown:
        print("No vehicles found.")
        return 0

    headers = [
        "ID",
        "Vehicle",
        "Type",
        "Project",
        "Year",
        "Status",
        "Next Document",
        "Expires",
        "Remaining",
    ]
    print(
        tabulate(
            make_vehicle_table(shown, reference_date),
            headers=headers,
            tablefmt="simple",
        )
    )
    return 0


def cmd_attention(args, service: FleetService):
    """Documents that are RED or YELLOW, most urgent first."""
    reference_date = args.as_of or date.today()
    alerts = documents_needing_attention(service.list_vehicles(), reference_date)
    if not alerts:
        print("All documents are up to date.")
        return 0
    headers = ["Status", "Vehicle", "Document", "Expires", "Remaining"]
    print(tabulate(make_attention_table(alerts), headers=headers, tablefmt="simple"))
    return 0


def cmd_documents(args, service: FleetService):
    """List a vehicle's documents."""
    vehicle = find_vehicle(service, args.vehicle)
    reference_date = args.as_of or date.today()
    print(f"Vehicle: {vehicle.display_name}")
    print(f"Status: {vehicle.status(reference_date).label}")
    print()
    if not vehicle.documents:
        print("No documents.")
        return 0
    headers = [
        "ID",
        "Name",
        "Type",
        "Issued",
        "Expires",
        "Remaining",
        "Status",
        "Frequency",
        "File",
    ]
    print(
        tabulate(
            make_document_table(vehicle.documents, reference_date),
            headers=headers,
            tablefmt="simple",
        )
    )
    return 0


def cmd_history(args, service: FleetService):
    """View the audit log, newest first."""
    entries = service.list_history(args.limit)
    if args.vehicle:
        needle = args.vehicle.lower()
        entries = [
            e
            for e in entries
            if (e.vehicle_id and e.vehicle_id.startswith(args.vehicle))
            or (e.vehicle_name and needle in e.vehicle_name.lower())
        ]
    if not entries:
        print("No history entries found.")
        return 0
    headers = ["Timestamp", "Action", "Vehicle", "Field", "Change", "Details", "User"]
    print(tabulate(make_history_table(entries), headers=headers, tablefmt="simple"))
    return 0


def cmd_add_vehicle(args, service: FleetService):
    result = service.create_vehicle(_collect(args, VEHICLE_ARGS))
    print(f"Added {result.vehicle.display_name} [{short_id(result.vehicle.id)}]")
    print_history_logs(result.history_logs)
    return 0


def cmd_update_vehicle(args, service: FleetService):
    vehicle = find_vehicle(service, args.vehicle)
    result = service.update_vehicle(vehicle.id, _collect(args, VEHICLE_ARGS))
    print(f"Updated {result.vehicle.display_name}")
    print_history_logs(result.history_logs)
    return 0


def cmd_delete_vehicle(args, service: FleetService):
    vehicle = find_vehicle(service, args.vehicle)
    result = service.delete_vehicle(vehicle.id)
    print(
        f"Deleted {result.vehicle.display_name} "
        f"and {len(result.vehicle.documents)} document(s)"
    )
    print_history_logs(result.history_logs)
    return 0


def cmd_add_document(args, service: FleetService):
    vehicle = find_vehicle(service, args.vehicle)
    result = service.add_document(vehicle.id, _collect(args, DOCUMENT_ARGS))
    print(
        f"Added '{result.document.name}' [{short_id(result.document.id)}] "
        f"to {result.vehicle.display_name}"
    )
    print_history_logs(result.history_logs)
    return 0


def cmd_renew_document(args, service: FleetService):
    vehicle = find_vehicle(service, args.vehicle)
    document = find_document(vehicle, args.document)
    result = service.renew_document(
        vehicle.id, document.id, _collect(args, DOCUMENT_ARGS)
    )
    print(f"Saved '{result.document.name}' on {result.vehicle.display_name}")
    print_history_logs(result.history_logs)
    return 0


def cmd_delete_document(args, service: FleetService):
    vehicle = find_vehicle(service, args.vehicle)
    document = find_document(vehicle, args.document)
    result = service.delete_document(vehicle.id, document.id)
    print(f"Deleted '{result.document.name}' from {result.vehicle.display_name}")
    print_history_logs(result.history_logs)
    return 0


COMMANDS = {
    "init": cmd_init,
    "status": cmd_status,
    "attention": cmd_attention,
    "documents": cmd_documents,
    "history": cmd_history,
    "add-vehicle": cmd_add_vehicle,
    "update-vehicle": cmd_update_vehicle,
    "delete-vehicle": cmd_delete_vehicle,
    "add-document": cmd_add_document,
    "renew-document": cmd_renew_document,
    "delete-document": cmd_delete_document,
}


# =============================================================================
# Main
# =============================================================================


def _add_vehicle_fields(parser, required: bool) -> None:
    parser.add_argument("--type", required=required, help="Vehicle type (e.g., Van)")
    parser.add_argument("--project", required=required, help="Project or assignment")
    parser.add_argument("--year", type=int, required=required, help="Model year")
    parser.add_argument("--model", required=required, help="Model name")
    parser.add_argument("--brand", required=required, help="Brand name")
    parser.add_argument("--plate", required=required, help="License plate (unique)")


def _add_document_fields(parser, required: bool) -> None:
    if required:
        parser.add_argument(
            "--type",
            required=True,
            choices=[t.value for t in DocumentType],
            help="Document category",
        )
    parser.add_argument(
        "--expires",
        type=parse_date,
        required=required,
        help="Expiration date (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--issued", type=parse_date, required=required, help="Issue date (YYYY-MM-DD)"
    )
    parser.add_argument("--name", help="Display name (default: category label)")
    parser.add_argument(
        "--frequency", help="Renewal frequency (e.g., Annual, Semiannual, Variable)"
    )
    parser.add_argument("--file-name", help="Attached file name")
    parser.add_argument("--file-url", help="Attached file URL")
    parser.add_argument("--notes", help="Observations")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fleet document tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s fleet.yaml init --seed
  %(prog)s fleet.yaml status
  %(prog)s fleet.yaml status --search north
  %(prog)s fleet.yaml attention
  %(prog)s fleet.yaml history --limit 20
  %(prog)s fleet.yaml add-vehicle --type Van --project North --year 2022 \\
      --model Sprinter --brand Mercedes-Benz --plate ABCD-12
  %(prog)s fleet.yaml update-vehicle ABCD-12 --project South
  %(prog)s fleet.yaml add-document ABCD-12 --type technical_inspection \\
      --issued 2025-01-15 --expires 2025-07-15
  %(prog)s fleet.yaml renew-document ABCD-12 3f2a9c1b --expires 2026-01-15
""",
    )
    parser.add_argument("data_file", type=Path, help="Path to fleet YAML file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Create a data file")
    init_parser.add_argument(
        "--seed", action="store_true", help="Add sample vehicles and documents"
    )
    init_parser.add_argument(
        "--force", action="store_true", help="Use the file even if it exists"
    )

    status_parser = subparsers.add_parser(
        "status", help="Vehicles ordered by their most urgent document"
    )
    status_parser.add_argument(
        "--as-of", type=parse_date, help="Reference date (default: today)"
    )
    status_parser.add_argument(
        "--search",
        type=str,
        help="Filter by brand, model, plate, project or type (case-insensitive)",
    )

    attention_parser = subparsers.add_parser(
        "attention", help="Documents expired or expiring within 30 days"
    )
    attention_parser.add_argument(
        "--as-of", type=parse_date, help="Reference date (default: today)"
    )

    documents_parser = subparsers.add_parser(
        "documents", help="List one vehicle's documents"
    )
    documents_parser.add_argument("vehicle", help="Vehicle id, id prefix or plate")
    documents_parser.add_argument(
        "--as-of", type=parse_date, help="Reference date (default: today)"
    )

    history_parser = subparsers.add_parser("history", help="View the audit log")
    history_parser.add_argument(
        "--limit", type=int, help="Maximum entries (default: 200, max: 500)"
    )
    history_parser.add_argument(
        "--vehicle", type=str, help="Filter by vehicle id prefix or name text"
    )

    add_vehicle_parser = subparsers.add_parser("add-vehicle", help="Register a vehicle")
    _add_vehicle_fields(add_vehicle_parser, required=True)

    update_vehicle_parser = subparsers.add_parser(
        "update-vehicle", help="Change vehicle fields"
    )
    update_vehicle_parser.add_argument("vehicle", help="Vehicle id, id prefix or plate")
    _add_vehicle_fields(update_vehicle_parser, required=False)

    delete_vehicle_parser = subparsers.add_parser(
        "delete-vehicle", help="Remove a vehicle and its documents"
    )
    delete_vehicle_parser.add_argument("vehicle", help="Vehicle id, id prefix or plate")

    add_document_parser = subparsers.add_parser(
        "add-document", help="Attach a document to a vehicle"
    )
    add_document_parser.add_argument("vehicle", help="Vehicle id, id prefix or plate")
    _add_document_fields(add_document_parser, required=True)

    renew_document_parser = subparsers.add_parser(
        "renew-document", help="Update a document (new dates count as a renewal)"
    )
    renew_document_parser.add_argument("vehicle", help="Vehicle id, id prefix or plate")
    renew_document_parser.add_argument("document", help="Document id or id prefix")
    _add_document_fields(renew_document_parser, required=False)

    delete_document_parser = subparsers.add_parser(
        "delete-document", help="Remove a document"
    )
    delete_document_parser.add_argument("vehicle", help="Vehicle id, id prefix or plate")
    delete_document_parser.add_argument("document", help="Document id or id prefix")

    return parser


def main(argv: Optional[List[str]] = None):
    args = build_parser().parse_args(argv)

    # Only init may create the data file
    if args.command != "init" and not args.data_file.exists():
        print(f"Error: File not found: {args.data_file}")
        return 1

    settings = load_settings()
    configure_logging(settings.log_level)
    service = FleetService(
        YamlStore(args.data_file),
        actor=settings.actor,
        history_limit=settings.history_limit,
    )

    try:
        return COMMANDS[args.command](args, service)
    except ValidationFailure as e:
        print("Error: invalid input")
        for error in e.errors:
            print(f"  {error}")
        return 1
    except FleetError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
