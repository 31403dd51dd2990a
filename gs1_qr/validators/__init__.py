"""
Validation modules for the GS1 QR codec.
"""

from .validators import (
    validate_gs1_data,
    validate_record,
    validate_expiry,
    is_numeric,
    is_alphanumeric,
    parse_iso_date,
    ValidationResult,
    GTIN_MAX_LENGTH,
    BATCH_MAX_LENGTH,
    SERIAL_MAX_LENGTH,
)

__all__ = [
    "validate_gs1_data",
    "validate_record",
    "validate_expiry",
    "is_numeric",
    "is_alphanumeric",
    "parse_iso_date",
    "ValidationResult",
    "GTIN_MAX_LENGTH",
    "BATCH_MAX_LENGTH",
    "SERIAL_MAX_LENGTH",
]
