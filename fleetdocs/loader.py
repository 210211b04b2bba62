"""YAML loading and saving for fleet data, and the YAML-file store."""

import json
import logging
import os
import tempfile
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

import yaml
from dateutil.parser import isoparse

from .document import Document, DocumentType
from .errors import StorageFailure
from .history_log import HistoryAction, HistoryLog
from .store import MemoryStore
from .vehicle import Vehicle

logger = logging.getLogger(__name__)


def parse_date(value: Union[str, date, datetime]) -> date:
    """Parse an ISO-8601 date or timestamp down to its calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return isoparse(value).date()


def parse_datetime(value: Union[str, date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return isoparse(value)


def _optional_datetime(value) -> Optional[datetime]:
    return parse_datetime(value) if value else None


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


# =============================================================================
# Serialization (camelCase keys, shared with the JSON API)
# =============================================================================


def document_to_dict(document: Document) -> Dict[str, Any]:
    """Serialize a Document, omitting None values for cleaner YAML."""
    d: Dict[str, Any] = {
        "id": document.id,
        "vehicleId": document.vehicle_id,
        "name": document.name,
        "type": document.type.value,
        "expirationDate": document.expiration_date.isoformat(),
        "issueDate": document.issue_date.isoformat(),
        "renewalFrequency": document.renewal_frequency,
    }
    if document.last_renewal_date is not None:
        d["lastRenewalDate"] = document.last_renewal_date.isoformat()
    if document.file_name is not None:
        d["fileName"] = document.file_name
    if document.file_url is not None:
        d["fileUrl"] = document.file_url
    if document.observations is not None:
        d["observations"] = document.observations
    if document.created_at is not None:
        d["createdAt"] = document.created_at.isoformat()
    return d


def vehicle_to_dict(vehicle: Vehicle) -> Dict[str, Any]:
    return {
        "id": vehicle.id,
        "type": vehicle.type,
        "project": vehicle.project,
        "year": vehicle.year,
        "model": vehicle.model,
        "brand": vehicle.brand,
        "licensePlate": vehicle.license_plate,
        "createdAt": _isoformat(vehicle.created_at),
        "updatedAt": _isoformat(vehicle.updated_at),
        "documents": [document_to_dict(d) for d in vehicle.documents],
    }


def history_log_to_dict(entry: HistoryLog) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": entry.id,
        "action": entry.action.value,
        "timestamp": entry.timestamp.isoformat(),
        "user": entry.user,
    }
    for key, value in (
        ("vehicleId", entry.vehicle_id),
        ("vehicleName", entry.vehicle_name),
        ("field", entry.field),
        ("oldValue", entry.old_value),
        ("newValue", entry.new_value),
        ("details", entry.details),
    ):
        if value is not None:
            d[key] = value
    return d


def _parse_object(dct: Dict[str, Any]) -> Union[Vehicle, Document, HistoryLog, dict]:
    """Parse dictionary into appropriate object type."""
    # Document (nested inside a vehicle, parsed first)
    if "expirationDate" in dct:
        return Document(
            dct["id"],
            dct["vehicleId"],
            dct["name"],
            DocumentType(dct["type"]),
            parse_date(dct["expirationDate"]),
            parse_date(dct["issueDate"]),
            dct["renewalFrequency"],
            _optional_datetime(dct.get("lastRenewalDate")),
            dct.get("fileName"),
            dct.get("fileUrl"),
            dct.get("observations"),
            _optional_datetime(dct.get("createdAt")),
        )
    # Vehicle
    elif "licensePlate" in dct:
        return Vehicle(
            dct["id"],
            dct["type"],
            dct["project"],
            int(dct["year"]),
            dct["model"],
            dct["brand"],
            dct["licensePlate"],
            dct.get("documents"),
            _optional_datetime(dct.get("createdAt")),
            _optional_datetime(dct.get("updatedAt")),
        )
    # History entry
    elif "action" in dct:
        return HistoryLog(
            dct["id"],
            HistoryAction(dct["action"]),
            parse_datetime(dct["timestamp"]),
            dct["user"],
            dct.get("vehicleId"),
            dct.get("vehicleName"),
            dct.get("field"),
            dct.get("oldValue"),
            dct.get("newValue"),
            dct.get("details"),
        )
    else:
        # Top-level mapping
        return dct


def _normalize(data: Any) -> Any:
    """Round-trip through JSON so unquoted YAML dates become plain strings."""
    return json.loads(json.dumps(data, default=str))


def load_fleet(filename: Union[str, Path]) -> Tuple[List[Vehicle], List[HistoryLog]]:
    """Load vehicles and history from a fleet YAML file."""
    with open(filename, "rb") as fp:
        data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
    json_data = json.dumps(data, default=str)
    parsed = json.loads(json_data, object_hook=_parse_object)
    return parsed.get("vehicles") or [], parsed.get("history") or []


def fleet_to_dict(
    vehicles: Iterable[Vehicle], history: Iterable[HistoryLog]
) -> Dict[str, Any]:
    """Top-level mapping written to a fleet YAML file."""
    return {
        "vehicles": [vehicle_to_dict(v) for v in vehicles],
        "history": [history_log_to_dict(h) for h in history],
    }


def _write_yaml(path: Path, data: Dict[str, Any]) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w") as fp:
            yaml.dump(
                data,
                fp,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
                width=120,
            )
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


# =============================================================================
# YAML-file store
# =============================================================================


class YamlStore(MemoryStore):
    """
    Store backed by a single YAML file.

    The file is read at the start of each transaction and written once on
    commit (temporary file, then atomic replace), so a failed mutation
    never reaches the disk. A missing file is an empty fleet.
    """

    def __init__(
        self,
        filename: Union[str, Path],
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(clock)
        self.filename = Path(filename)
        self._loaded_data = None

    def initialize(self) -> None:
        """Create an empty data file if none exists yet."""
        if self.filename.exists():
            return
        try:
            _write_yaml(self.filename, fleet_to_dict([], []))
        except OSError as e:
            raise StorageFailure(f"Cannot create {self.filename}: {e}", e) from e

    def _current_data(self) -> Dict[str, Any]:
        return fleet_to_dict(self._vehicles.values(), self._history)

    def _begin(self) -> None:
        if not self.filename.exists():
            self._vehicles, self._history = {}, []
            self._loaded_data = self._current_data()
            return
        try:
            vehicles, history = load_fleet(self.filename)
        except (
            OSError,
            yaml.YAMLError,
            AttributeError,
            KeyError,
            TypeError,
            ValueError,
        ) as e:
            raise StorageFailure(f"Cannot read {self.filename}: {e}", e) from e
        self._vehicles = {v.id: v for v in vehicles}
        self._history = list(history)
        self._loaded_data = _normalize(self._current_data())

    def _commit(self) -> None:
        data = self._current_data()
        if data == self._loaded_data:
            return
        try:
            _write_yaml(self.filename, data)
        except (OSError, yaml.YAMLError) as e:
            raise StorageFailure(f"Cannot write {self.filename}: {e}", e) from e
        logger.debug("Wrote %s", self.filename)

    def _rollback(self) -> None:
        # Memory is reloaded from disk at the next transaction
        self._vehicles, self._history = {}, []
        self._loaded_data = None
        logger.debug("Discarded uncommitted changes to %s", self.filename)

    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        with self.transaction():
            return super().get_vehicle(vehicle_id)

    def get_document(self, vehicle_id: str, document_id: str) -> Document:
        with self.transaction():
            return super().get_document(vehicle_id, document_id)

    def list_vehicles(self) -> List[Vehicle]:
        with self.transaction():
            return super().list_vehicles()

    def list_history(self, limit: Optional[int] = None) -> List[HistoryLog]:
        with self.transaction():
            return super().list_history(limit)
