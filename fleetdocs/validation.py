"""Input validation for vehicle and document payloads (JSON Schema)."""

from datetime import date, datetime
from typing import Any, Dict, Optional

from jsonschema import Draft7Validator

from .document import DocumentType
from .errors import ValidationFailure
from .loader import parse_date

MIN_YEAR = 1900
DEFAULT_HISTORY_LIMIT = 200
MAX_HISTORY_LIMIT = 500

# Wire (camelCase) names accepted alongside the Python attribute names
WIRE_NAMES = {
    "licensePlate": "license_plate",
    "expirationDate": "expiration_date",
    "issueDate": "issue_date",
    "renewalFrequency": "renewal_frequency",
    "fileName": "file_name",
    "fileUrl": "file_url",
}

DATE_FIELDS = ("expiration_date", "issue_date")

_TEXT = {"type": "string", "minLength": 1}
_OPTIONAL_TEXT = {"type": ["string", "null"], "minLength": 1}


def vehicle_schema(partial: bool = False) -> Dict[str, Any]:
    """Schema for vehicle create (or update, when partial)."""
    return {
        "type": "object",
        "properties": {
            "type": _TEXT,
            "project": _TEXT,
            "year": {
                "type": "integer",
                "minimum": MIN_YEAR,
                "maximum": date.today().year + 1,
            },
            "model": _TEXT,
            "brand": _TEXT,
            "license_plate": _TEXT,
        },
        "required": []
        if partial
        else ["type", "project", "year", "model", "brand", "license_plate"],
    }


def document_schema(partial: bool = False) -> Dict[str, Any]:
    """Schema for document create (or update, when partial)."""
    return {
        "type": "object",
        "properties": {
            "type": {"enum": [t.value for t in DocumentType]},
            "name": _OPTIONAL_TEXT if not partial else _TEXT,
            "expiration_date": _TEXT,
            "issue_date": _TEXT,
            "renewal_frequency": _OPTIONAL_TEXT if not partial else _TEXT,
            "file_name": _OPTIONAL_TEXT,
            "file_url": _OPTIONAL_TEXT,
            "observations": _OPTIONAL_TEXT,
        },
        "required": [] if partial else ["type", "expiration_date", "issue_date"],
    }


def _prepare(data: Optional[Dict[str, Any]], schema: Dict[str, Any]) -> Dict[str, Any]:
    """Map wire names, drop unknown keys and stringify dates for the schema."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationFailure(["Payload must be an object"])
    known = schema["properties"]
    prepared = {}
    for key, value in data.items():
        key = WIRE_NAMES.get(key, key)
        if key not in known:
            continue
        if key in DATE_FIELDS and isinstance(value, (date, datetime)):
            value = value.isoformat()
        prepared[key] = value
    return prepared


def _check(instance: Dict[str, Any], schema: Dict[str, Any]) -> None:
    errors = []
    for error in sorted(Draft7Validator(schema).iter_errors(instance), key=str):
        path = ".".join(str(p) for p in error.path)
        errors.append(f"{path}: {error.message}" if path else error.message)
    if errors:
        raise ValidationFailure(errors)


def validate_vehicle(
    data: Optional[Dict[str, Any]], partial: bool = False
) -> Dict[str, Any]:
    """
    Validate a vehicle payload and return the clean fields.

    Numeric strings and integral floats are accepted for ``year``.
    """
    schema = vehicle_schema(partial)
    fields = _prepare(data, schema)
    year = fields.get("year")
    if isinstance(year, str) and year.strip().isdigit():
        fields["year"] = int(year.strip())
    _check(fields, schema)
    if isinstance(fields.get("year"), float):
        fields["year"] = int(fields["year"])
    return fields


def validate_document(
    data: Optional[Dict[str, Any]], partial: bool = False
) -> Dict[str, Any]:
    """Validate a document payload; dates and type come back parsed."""
    schema = document_schema(partial)
    fields = _prepare(data, schema)
    _check(fields, schema)

    errors = []
    for key in DATE_FIELDS:
        if key not in fields:
            continue
        try:
            fields[key] = parse_date(fields[key])
        except (ValueError, OverflowError):
            errors.append(f"{key}: invalid date {fields[key]!r}")
    if errors:
        raise ValidationFailure(errors)

    if "type" in fields:
        fields["type"] = DocumentType(fields["type"])
    return fields


def validate_history_limit(
    limit: Optional[int],
    default: int = DEFAULT_HISTORY_LIMIT,
    maximum: int = MAX_HISTORY_LIMIT,
) -> int:
    """Positive integer bound on history listings, capped at ``maximum``."""
    if limit is None:
        return min(default, maximum)
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationFailure([f"limit: must be a positive integer, got {limit!r}"])
    return min(limit, maximum)
