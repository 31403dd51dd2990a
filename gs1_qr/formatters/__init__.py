"""
Output formatters for the GS1 QR codec.
"""

from .json_formatter import (
    decode_gs1_to_json,
    decode_gs1_to_dict,
    format_record_dict,
    format_date_ddmmyyyy,
    AI_FIELD_NAMES,
)

__all__ = [
    "decode_gs1_to_json",
    "decode_gs1_to_dict",
    "format_record_dict",
    "format_date_ddmmyyyy",
    "AI_FIELD_NAMES",
]
