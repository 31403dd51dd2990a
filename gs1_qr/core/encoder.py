"""
GS1 Encoder

Encodes vaccine data into the GS1 element string carried by the QR code:

    (01)GTIN(10)BATCH(17)EXPIRY(21)SERIAL

Application Identifiers used:
- (01) GTIN, 14 digits (left-padded with zeros)
- (10) Batch/lot number, alphanumeric, max 20 chars
- (17) Expiry date, YYMMDD
- (21) Serial number, alphanumeric, max 20 chars
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, List, Mapping, Optional, Union

from .record import AI_BATCH, AI_EXPIRY, AI_GTIN, AI_SERIAL, GS1Record
from ..validators.validators import GTIN_MAX_LENGTH, parse_iso_date, validate_gs1_data


@dataclass
class EncodeResult:
    """
    Result of a validated encode.

    Attributes:
        wire_string: Encoded GS1 string, empty when validation failed
        errors: Validation errors (empty on success)
    """
    wire_string: str = ""
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def pad_gtin(gtin: str) -> str:
    """
    Pad GTIN to 14 digits with leading zeros.

    Example: "123456789012" -> "00123456789012"
    """
    return gtin.rjust(GTIN_MAX_LENGTH, "0")


def format_expiry_for_gs1(expiry: str) -> str:
    """
    Format expiry date from YYYY-MM-DD to YYMMDD.

    Example: "2025-12-31" -> "251231"

    Raises:
        ValueError: If the expiry is not a valid date.
    """
    parsed = parse_iso_date(expiry)
    return f"{parsed.year % 100:02d}{parsed.month:02d}{parsed.day:02d}"


def _as_record(data: Union[GS1Record, Mapping[str, Any]]) -> GS1Record:
    if isinstance(data, GS1Record):
        return data
    return GS1Record.from_mapping(data)


def encode_gs1(data: Union[GS1Record, Mapping[str, Any]]) -> str:
    """
    Encode vaccine data into GS1 format.

    The data is assumed to have passed validate_gs1_data(); use
    encode_gs1_safe() for untrusted input.

    Returns:
        Formatted string: (01)GTIN(10)BATCH(17)EXPIRY(21)SERIAL
    """
    record = _as_record(data)
    return (
        f"({AI_GTIN}){pad_gtin(record.gtin)}"
        f"({AI_BATCH}){record.batch}"
        f"({AI_EXPIRY}){format_expiry_for_gs1(record.expiry)}"
        f"({AI_SERIAL}){record.serial}"
    )


def encode_gs1_safe(
    data: Union[GS1Record, Mapping[str, Any], None],
    today: Optional[date] = None,
) -> EncodeResult:
    """
    Validate then encode.

    Returns either the wire string with no errors, or an empty wire string
    with the validation errors. Never encodes partially.
    """
    errors = validate_gs1_data(data, today=today)
    if errors:
        return EncodeResult(wire_string="", errors=errors)
    return EncodeResult(wire_string=encode_gs1(data), errors=[])
