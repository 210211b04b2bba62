"""Error taxonomy for the fleet domain."""
from typing import List, Optional


class FleetError(Exception):
    """Base class for all fleet domain errors."""


class NotFound(FleetError):
    """A referenced vehicle or document does not exist."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity.capitalize()} '{entity_id}' not found")
        self.entity = entity
        self.entity_id = entity_id


class DuplicateKey(FleetError):
    """A uniqueness constraint (the license plate) was violated."""

    def __init__(self, field: str, value: str):
        super().__init__(f"A vehicle with {field} '{value}' already exists")
        self.field = field
        self.value = value


class ValidationFailure(FleetError):
    """Structurally invalid input, rejected before touching the store."""

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class StorageFailure(FleetError):
    """The persistence layer itself failed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
