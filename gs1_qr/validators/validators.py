"""
GS1 Record Validation

Validates a candidate vaccine record before it is encoded into a GS1
element string:
- GTIN: digits only, up to 14 digits (shorter values are zero-padded on encode)
- Batch/Lot: alphanumeric, up to 20 characters
- Expiry: valid calendar date, not in the past
- Serial: alphanumeric, up to 20 characters

Validation never raises. Every problem is returned as a human-readable message.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from dateutil import parser as date_parser


GTIN_MAX_LENGTH = 14
BATCH_MAX_LENGTH = 20
SERIAL_MAX_LENGTH = 20

NUMERIC_PATTERN = re.compile(r"[0-9]+")
ALPHANUMERIC_PATTERN = re.compile(r"[A-Za-z0-9]+")
ISO_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

RECORD_FIELDS = ("gtin", "batch", "expiry", "serial")


@dataclass
class ValidationResult:
    """Result of a validation operation."""
    valid: bool
    errors: List[str] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)


def is_numeric(value: str) -> bool:
    """True if value is one or more ASCII digits."""
    return bool(NUMERIC_PATTERN.fullmatch(value))


def is_alphanumeric(value: str) -> bool:
    """True if value is one or more ASCII letters or digits."""
    return bool(ALPHANUMERIC_PATTERN.fullmatch(value))


def parse_iso_date(value: str) -> date:
    """
    Parse an ISO calendar date in the exact ``YYYY-MM-DD`` form.

    Reduced (``2030``, ``2030-12``), basic (``20301231``) and date-time forms
    are rejected so that an accepted expiry always encodes to the same day.

    Raises:
        ValueError: If the value is not a valid ``YYYY-MM-DD`` date.
    """
    if not ISO_DATE_PATTERN.fullmatch(value):
        raise ValueError(f"Expected YYYY-MM-DD date: {value!r}")
    return date_parser.isoparse(value).date()


def _field_value(candidate: Any, name: str) -> str:
    if candidate is None:
        return ""
    if isinstance(candidate, Mapping):
        value = candidate.get(name)
    else:
        value = getattr(candidate, name, None)
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value if isinstance(value, str) else str(value)


def _check_token(
    value: str,
    label: str,
    required_message: str,
    max_length: int,
    errors: List[str],
) -> None:
    if not value:
        errors.append(required_message)
    elif not is_alphanumeric(value):
        errors.append(f"{label} must be alphanumeric only")
    elif len(value) > max_length:
        errors.append(f"{label} must be {max_length} characters or less")


def validate_expiry(value: str, today: Optional[date] = None) -> ValidationResult:
    """
    Validate an expiry date string.

    Args:
        value: Expiry date, ISO ``YYYY-MM-DD``
        today: Reference date for the "not in the past" check (defaults to today)

    Returns:
        ValidationResult with the parsed ISO date in meta on success
    """
    result = ValidationResult(valid=True)

    if not value:
        result.valid = False
        result.errors.append("Expiry date is required")
        return result

    try:
        expiry = parse_iso_date(value)
    except (ValueError, OverflowError):
        result.valid = False
        result.errors.append("Expiry must be a valid date")
        return result

    reference = today or date.today()
    result.meta['iso_date'] = expiry.isoformat()
    result.meta['days_remaining'] = (expiry - reference).days

    if expiry < reference:
        result.valid = False
        result.errors.append("Expiry date cannot be in the past")

    return result


def validate_gs1_data(
    candidate: Union[Mapping[str, Any], Any, None],
    today: Optional[date] = None,
) -> List[str]:
    """
    Validate GS1 data before encoding.

    Fields are checked in order gtin, batch, expiry, serial. Within a field
    checks run empty -> format -> length and stop at the first failure.

    Args:
        candidate: Mapping or record object; missing fields count as empty
        today: Reference date for the expiry check (defaults to today)

    Returns:
        List of validation errors (empty if valid)
    """
    values = {name: _field_value(candidate, name) for name in RECORD_FIELDS}
    errors: List[str] = []

    gtin = values["gtin"]
    if not gtin:
        errors.append("GTIN is required")
    elif not is_numeric(gtin):
        errors.append("GTIN must contain only digits")
    elif len(gtin) > GTIN_MAX_LENGTH:
        errors.append(f"GTIN must be {GTIN_MAX_LENGTH} digits or less")

    _check_token(values["batch"], "Batch", "Batch number is required", BATCH_MAX_LENGTH, errors)

    errors.extend(validate_expiry(values["expiry"], today=today).errors)

    _check_token(values["serial"], "Serial", "Serial number is required", SERIAL_MAX_LENGTH, errors)

    return errors


def validate_record(
    candidate: Union[Mapping[str, Any], Any, None],
    today: Optional[date] = None,
) -> ValidationResult:
    """Validate a candidate record and wrap the outcome in a ValidationResult."""
    errors = validate_gs1_data(candidate, today=today)
    return ValidationResult(valid=not errors, errors=errors)
