"""
GS1 Decoder

Decodes the GS1 element string carried by a QR code back into its fields:

    (01)GTIN(10)BATCH(17)EXPIRY(21)SERIAL

Recognition is strict: the four elements must appear in this exact order with
nothing before or after them. Batch and serial length is not re-checked here.

Known limitations:
- YYMMDD expiry is always read as 20YY (no dates in or after 2100).
- Leading zeros are stripped from the GTIN entirely, so a GTIN entered with
  its own leading zeros does not round-trip exactly.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from .record import GS1Record


logger = logging.getLogger(__name__)

GS1_PATTERN = re.compile(
    r"\(01\)([0-9]{14})"
    r"\(10\)([A-Za-z0-9]+)"
    r"\(17\)([0-9]{6})"
    r"\(21\)([A-Za-z0-9]+)"
)

SERIAL_PATTERN = re.compile(r"\(21\)([A-Za-z0-9]+)")

EXPECTED_FORMAT = "(01)GTIN(10)BATCH(17)EXPIRY(21)SERIAL"

ERROR_REQUIRED = "QR data is required and must be a string"
ERROR_INVALID_FORMAT = f"Invalid GS1 format. Expected: {EXPECTED_FORMAT}"
ERROR_DECODE_FAILED = "Failed to decode GS1 data"


@dataclass
class DecodeResult:
    """
    Result of a safe decode.

    Attributes:
        record: Decoded record, None on failure
        error: Error message, None on success
    """
    record: Optional[GS1Record] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.record is not None


def parse_expiry_from_gs1(yymmdd: str) -> str:
    """
    Parse expiry date from GS1 YYMMDD format to YYYY-MM-DD.

    Example: "251231" -> "2025-12-31"

    Raises:
        ValueError: If the value is not exactly 6 characters.
    """
    if len(yymmdd) != 6:
        raise ValueError(f"Invalid expiry format: {yymmdd}. Expected YYMMDD (6 digits)")

    yy, mm, dd = yymmdd[0:2], yymmdd[2:4], yymmdd[4:6]
    # Century is fixed: valid until 2099
    return f"20{yy}-{mm}-{dd}"


def strip_gtin_padding(gtin: str) -> str:
    """Remove leading zeros from a GTIN, keeping a single "0" for an all-zero value."""
    return gtin.lstrip("0") or "0"


def is_valid_gs1_format(qr_data: Any) -> bool:
    """Return True if qr_data is a complete GS1 string in the expected format."""
    if not isinstance(qr_data, str):
        return False
    return GS1_PATTERN.fullmatch(qr_data) is not None


def decode_gs1(qr_data: str) -> Optional[GS1Record]:
    """
    Decode a GS1 formatted string into its fields.

    Returns:
        GS1Record, or None if the string is not in GS1 format
    """
    if not isinstance(qr_data, str):
        return None

    match = GS1_PATTERN.fullmatch(qr_data)
    if not match:
        return None

    gtin, batch, expiry_yymmdd, serial = match.groups()
    return GS1Record(
        gtin=strip_gtin_padding(gtin),
        batch=batch,
        expiry=parse_expiry_from_gs1(expiry_yymmdd),
        serial=serial,
    )


def extract_serial(qr_data: str) -> Optional[str]:
    """
    Extract just the serial number (AI 21) for quick lookup.

    Returns:
        Serial, or None if no serial element is present
    """
    if not isinstance(qr_data, str):
        return None
    match = SERIAL_PATTERN.search(qr_data)
    return match.group(1) if match else None


def decode_gs1_safe(qr_data: Any) -> DecodeResult:
    """
    Decode with error reporting instead of exceptions.

    Returns:
        DecodeResult with either a record or an error message
    """
    if not qr_data or not isinstance(qr_data, str):
        return DecodeResult(error=ERROR_REQUIRED)

    if not is_valid_gs1_format(qr_data):
        return DecodeResult(error=ERROR_INVALID_FORMAT)

    try:
        record = decode_gs1(qr_data)
    except ValueError as exc:
        logger.warning("GS1 decode error for %r: %s", qr_data, exc)
        record = None

    if record is None:
        return DecodeResult(error=ERROR_DECODE_FAILED)

    return DecodeResult(record=record)
