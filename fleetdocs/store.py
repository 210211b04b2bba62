"""
Persistence adapter interface and the in-memory store.

The domain service only talks to FleetStore. Every write runs inside
``transaction()``; nested transactions join the outer one, so the service
can group an entity change with its history entries and have both land or
neither.

Concurrency: transactions and reads are serialized per store instance by a
re-entrant lock. Nothing here locks across processes.
"""

import abc
import copy
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from .audit import new_id
from .document import Document
from .errors import DuplicateKey, NotFound
from .history_log import HistoryLog
from .vehicle import Vehicle

logger = logging.getLogger(__name__)


class FleetStore(abc.ABC):
    """Abstract store for vehicles, their documents and the history log."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or datetime.now
        self._lock = threading.RLock()
        self._depth = 0

    @contextmanager
    def transaction(self):
        """
        Group writes so they all commit or all roll back.

        The outermost transaction holds the store lock until it ends; other
        threads wait for it instead of joining it.
        """
        with self._lock:
            if self._depth:
                yield self
                return
            self._begin()
            self._depth = 1
            try:
                yield self
                self._commit()
            except BaseException:
                self._rollback()
                raise
            finally:
                self._depth = 0

    def _begin(self) -> None:
        pass

    def _commit(self) -> None:
        pass

    def _rollback(self) -> None:
        pass

    @abc.abstractmethod
    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        ...

    @abc.abstractmethod
    def get_document(self, vehicle_id: str, document_id: str) -> Document:
        ...

    @abc.abstractmethod
    def create_vehicle(self, fields: Dict[str, Any]) -> Vehicle:
        ...

    @abc.abstractmethod
    def update_vehicle(self, vehicle_id: str, fields: Dict[str, Any]) -> Vehicle:
        ...

    @abc.abstractmethod
    def delete_vehicle(self, vehicle_id: str) -> None:
        ...

    @abc.abstractmethod
    def create_document(self, vehicle_id: str, fields: Dict[str, Any]) -> Document:
        ...

    @abc.abstractmethod
    def update_document(
        self, vehicle_id: str, document_id: str, fields: Dict[str, Any]
    ) -> Document:
        ...

    @abc.abstractmethod
    def delete_document(self, vehicle_id: str, document_id: str) -> None:
        ...

    @abc.abstractmethod
    def append_history(self, entries: Iterable[HistoryLog]) -> None:
        ...

    @abc.abstractmethod
    def list_vehicles(self) -> List[Vehicle]:
        ...

    @abc.abstractmethod
    def list_history(self, limit: Optional[int] = None) -> List[HistoryLog]:
        ...


class MemoryStore(FleetStore):
    """
    Store keeping everything in process.

    Returned objects are copies, so callers can't change stored state
    except through the store methods.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        super().__init__(clock)
        self._vehicles: Dict[str, Vehicle] = {}
        self._history: List[HistoryLog] = []
        self._snapshot = None

    # -- transactions ---------------------------------------------------------

    def _begin(self) -> None:
        self._snapshot = copy.deepcopy((self._vehicles, self._history))

    def _commit(self) -> None:
        self._snapshot = None

    def _rollback(self) -> None:
        if self._snapshot is not None:
            self._vehicles, self._history = self._snapshot
            self._snapshot = None
            logger.debug("Rolled back in-memory transaction")

    # -- helpers --------------------------------------------------------------

    def _find_vehicle(self, vehicle_id: str) -> Vehicle:
        vehicle = self._vehicles.get(vehicle_id)
        if vehicle is None:
            raise NotFound("vehicle", vehicle_id)
        return vehicle

    def _find_document(self, vehicle_id: str, document_id: str) -> Document:
        vehicle = self._find_vehicle(vehicle_id)
        document = vehicle.get_document(document_id)
        if document is None:
            raise NotFound("document", document_id)
        return document

    def _check_plate(self, plate: str, vehicle_id: Optional[str] = None) -> None:
        for other in self._vehicles.values():
            if other.id != vehicle_id and other.license_plate == plate:
                raise DuplicateKey("license_plate", plate)

    # -- reads ----------------------------------------------------------------

    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        with self._lock:
            return copy.deepcopy(self._find_vehicle(vehicle_id))

    def get_document(self, vehicle_id: str, document_id: str) -> Document:
        with self._lock:
            return copy.deepcopy(self._find_document(vehicle_id, document_id))

    def list_vehicles(self) -> List[Vehicle]:
        with self._lock:
            return copy.deepcopy(list(self._vehicles.values()))

    def list_history(self, limit: Optional[int] = None) -> List[HistoryLog]:
        """Newest first; entries sharing a timestamp keep reverse insertion order."""
        with self._lock:
            entries = sorted(
                reversed(self._history), key=lambda h: h.timestamp, reverse=True
            )
            if limit is not None:
                entries = entries[:limit]
            return copy.deepcopy(entries)

    # -- writes ---------------------------------------------------------------

    def create_vehicle(self, fields: Dict[str, Any]) -> Vehicle:
        with self.transaction():
            self._check_plate(fields["license_plate"])
            now = self.clock()
            vehicle = Vehicle(id=new_id(), created_at=now, updated_at=now, **fields)
            self._vehicles[vehicle.id] = vehicle
            return copy.deepcopy(vehicle)

    def update_vehicle(self, vehicle_id: str, fields: Dict[str, Any]) -> Vehicle:
        with self.transaction():
            vehicle = self._find_vehicle(vehicle_id)
            if "license_plate" in fields:
                self._check_plate(fields["license_plate"], vehicle_id)
            for key, value in fields.items():
                setattr(vehicle, key, value)
            vehicle.updated_at = self.clock()
            return copy.deepcopy(vehicle)

    def delete_vehicle(self, vehicle_id: str) -> None:
        with self.transaction():
            self._find_vehicle(vehicle_id)
            # Documents live inside the vehicle, so they go with it
            del self._vehicles[vehicle_id]

    def create_document(self, vehicle_id: str, fields: Dict[str, Any]) -> Document:
        with self.transaction():
            vehicle = self._find_vehicle(vehicle_id)
            now = self.clock()
            document = Document(
                id=new_id(), vehicle_id=vehicle_id, created_at=now, **fields
            )
            vehicle.documents.append(document)
            vehicle.updated_at = now
            return copy.deepcopy(document)

    def update_document(
        self, vehicle_id: str, document_id: str, fields: Dict[str, Any]
    ) -> Document:
        with self.transaction():
            document = self._find_document(vehicle_id, document_id)
            for key, value in fields.items():
                setattr(document, key, value)
            self._vehicles[vehicle_id].updated_at = self.clock()
            return copy.deepcopy(document)

    def delete_document(self, vehicle_id: str, document_id: str) -> None:
        with self.transaction():
            document = self._find_document(vehicle_id, document_id)
            vehicle = self._vehicles[vehicle_id]
            vehicle.documents = [d for d in vehicle.documents if d.id != document.id]
            vehicle.updated_at = self.clock()

    def append_history(self, entries: Iterable[HistoryLog]) -> None:
        with self.transaction():
            self._history.extend(copy.deepcopy(list(entries)))
