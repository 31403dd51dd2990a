"""
JSON Formatter for decoded GS1 QR payloads

Provides clean JSON output with:
- Human-readable field names
- Date formatting (dd/mm/yyyy)
- A single error object when the payload cannot be decoded
"""

from __future__ import annotations

import json
from typing import Any, Dict

from ..core.decoder import decode_gs1_safe
from ..core.record import AI_BATCH, AI_EXPIRY, AI_GTIN, AI_SERIAL, GS1Record


# AI Code to Human-Readable Name Mapping
AI_FIELD_NAMES = {
    AI_GTIN: "GTIN Code",
    AI_BATCH: "Batch/Lot Number",
    AI_EXPIRY: "Expiry Date",
    AI_SERIAL: "Serial Number",
}


def format_date_ddmmyyyy(iso_date: str) -> str:
    """
    Format an ISO date as dd/mm/yyyy.

    Values that are not YYYY-MM-DD are returned unchanged.
    """
    if len(iso_date) == 10 and iso_date[4] == "-" and iso_date[7] == "-":
        return f"{iso_date[8:10]}/{iso_date[5:7]}/{iso_date[0:4]}"
    return iso_date


def format_record_dict(record: GS1Record, include_wire_fields: bool = False) -> Dict[str, Any]:
    """
    Map a record to human-readable field names.

    Args:
        record: Decoded or user-entered record
        include_wire_fields: Also include the ISO expiry under "Expiry (ISO)"
    """
    output: Dict[str, Any] = {
        AI_FIELD_NAMES[AI_GTIN]: record.gtin,
        AI_FIELD_NAMES[AI_BATCH]: record.batch,
        AI_FIELD_NAMES[AI_EXPIRY]: format_date_ddmmyyyy(record.expiry),
        AI_FIELD_NAMES[AI_SERIAL]: record.serial,
    }
    if include_wire_fields:
        output["Expiry (ISO)"] = record.expiry
    return output


def decode_gs1_to_dict(qr_data: Any, include_wire_fields: bool = False) -> Dict[str, Any]:
    """
    Decode a GS1 QR payload and return a dictionary.

    Returns:
        Human-readable fields, or {"error": ..., "input": ...} on failure
    """
    result = decode_gs1_safe(qr_data)
    if result.record is None:
        return {"error": result.error, "input": qr_data}
    return format_record_dict(result.record, include_wire_fields=include_wire_fields)


def decode_gs1_to_json(qr_data: Any, include_wire_fields: bool = False) -> str:
    """
    Decode a GS1 QR payload and return clean JSON output.

    Example:
        >>> print(decode_gs1_to_json("(01)12345678901234(10)BATCH001(17)251231(21)SN001"))
        {
          "GTIN Code": "12345678901234",
          "Batch/Lot Number": "BATCH001",
          "Expiry Date": "31/12/2025",
          "Serial Number": "SN001"
        }
    """
    output = decode_gs1_to_dict(qr_data, include_wire_fields=include_wire_fields)
    return json.dumps(output, ensure_ascii=False, indent=2, default=str)
