"""
QR generation and scan services used by the Streamlit app.

Each function returns a ServiceResult carrying an HTTP-style status code so
that any front end (Streamlit pages, a future HTTP API) can map it directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Mapping, Optional

from pymongo.errors import PyMongoError

from gs1_qr import GS1Record, decode_gs1_safe, encode_gs1_safe

from . import storage
from .qr_render import DEFAULT_WIDTH, render_qr_data_url
from .rate_limit import FixedWindowRateLimiter
from .utils import clamp_limit, is_valid_email, today_start_utc


logger = logging.getLogger(__name__)

RECENT_SCANS_DEFAULT_LIMIT = 50
USER_SCANS_DEFAULT_LIMIT = 5
USER_SCANS_MAX_LIMIT = 50

ERROR_RATE_LIMITED = "Rate limit exceeded. Please try again later."
ERROR_DUPLICATE_SERIAL = "Serial number already used. Please use a different serial number."


@dataclass
class ServiceResult:
    status: int
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return 200 <= self.status < 300

    def to_dict(self) -> Dict[str, Any]:
        output: Dict[str, Any] = {"success": self.success}
        if self.data is not None:
            output.update(self.data)
        if self.error is not None:
            output["error"] = self.error
        return output


def generate_qr(
    payload: Mapping[str, Any],
    *,
    client_ip: Optional[str] = None,
    limiter: Optional[FixedWindowRateLimiter] = None,
    created_by: Optional[str] = None,
    today: Optional[date] = None,
    width: int = DEFAULT_WIDTH,
) -> ServiceResult:
    """
    Validate, encode, render and persist a new QR code.

    Status codes: 201 created, 400 invalid input, 409 duplicate serial,
    429 rate limited, 500 store failure.
    """
    if limiter is not None and not limiter.allow(client_ip or "unknown"):
        logger.warning("Rate limit exceeded for %s", client_ip or "unknown")
        return ServiceResult(429, error=ERROR_RATE_LIMITED)

    encoded = encode_gs1_safe(payload, today=today)
    if encoded.errors:
        return ServiceResult(400, error=", ".join(encoded.errors))

    qr_image_url = render_qr_data_url(encoded.wire_string, width=width)
    record = GS1Record.from_mapping(payload)

    try:
        qr_code = storage.create_qr_code(
            dict(record.to_dict(), qr_data=encoded.wire_string, created_by=created_by)
        )
    except storage.DuplicateSerialError:
        return ServiceResult(409, error=ERROR_DUPLICATE_SERIAL)
    except (storage.StorageError, PyMongoError, OSError) as exc:
        logger.exception("Failed to save QR code")
        return ServiceResult(500, error=f"Database error: {exc}")

    return ServiceResult(201, data={"data": qr_code, "qr_image_url": qr_image_url})


def _resolve_serial(payload: Mapping[str, Any]) -> ServiceResult:
    serial = payload.get("serial")
    qr_data = payload.get("qr_data")

    if serial:
        if not isinstance(serial, str):
            return ServiceResult(400, error="Serial number is required")
        return ServiceResult(200, data={"serial": serial})

    if qr_data:
        decoded = decode_gs1_safe(qr_data)
        if decoded.record is None:
            return ServiceResult(400, error=decoded.error)
        return ServiceResult(200, data={"serial": decoded.record.serial})

    return ServiceResult(400, error="Serial number is required")


def record_scan(payload: Mapping[str, Any]) -> ServiceResult:
    """
    Record a scan event from a scanner device.

    The payload carries `scanned_by` plus either the `serial` read from the
    QR code or the full scanned `qr_data`, which is decoded to find the serial.
    """
    resolved = _resolve_serial(payload)
    if not resolved.success:
        return resolved
    serial = resolved.data["serial"]

    scanned_by = payload.get("scanned_by")
    if not scanned_by or not isinstance(scanned_by, str):
        return ServiceResult(400, error="Scanned by (user email) is required")

    try:
        qr_code = storage.find_qr_by_serial(serial)
        if not qr_code:
            return ServiceResult(400, error=f"QR code with serial '{serial}' not found")

        scan_event = storage.create_scan_event(
            {
                "qr_code_id": qr_code["id"],
                "scanned_by": scanned_by,
                "device_info": payload.get("device_info"),
            }
        )
    except (storage.StorageError, PyMongoError, OSError):
        logger.exception("Failed to record scan event")
        return ServiceResult(500, error="Failed to record scan event")

    return ServiceResult(
        201,
        data={
            "id": scan_event["id"],
            "qr_code": {key: qr_code.get(key) for key in storage.QR_SUMMARY_FIELDS},
            "scanned_by": scan_event["scanned_by"],
            "scanned_at": scan_event["scanned_at"],
            "device_info": scan_event["device_info"],
        },
    )


def get_qr_code(qr_id: Optional[str]) -> ServiceResult:
    if not qr_id or not isinstance(qr_id, str):
        return ServiceResult(400, error="QR code ID is required")
    try:
        qr_code = storage.get_qr_code(qr_id)
    except (storage.StorageError, PyMongoError, OSError):
        logger.exception("QR lookup failed")
        return ServiceResult(500, error="Internal server error")
    if not qr_code:
        return ServiceResult(404, error="QR code not found")
    return ServiceResult(200, data=qr_code)


def get_recent_scans(limit: Any = None) -> ServiceResult:
    limit = clamp_limit(limit, RECENT_SCANS_DEFAULT_LIMIT, maximum=1000)
    try:
        scans = storage.list_recent_scans(limit=limit)
    except (storage.StorageError, PyMongoError, OSError):
        logger.exception("Failed to fetch recent scans")
        return ServiceResult(500, error="Failed to fetch recent scans")
    return ServiceResult(200, data={"scans": scans, "count": len(scans)})


def get_user_scans(email: Optional[str], limit: Any = None) -> ServiceResult:
    """A user's most recent scans (limit defaults to 5, clamped to 1..50)."""
    if not email or not isinstance(email, str):
        return ServiceResult(400, error="User email is required")
    if not is_valid_email(email):
        return ServiceResult(400, error="Invalid email format")

    limit = clamp_limit(limit, USER_SCANS_DEFAULT_LIMIT, maximum=USER_SCANS_MAX_LIMIT)
    try:
        scans = storage.list_scans_by_user(email, limit=limit)
    except (storage.StorageError, PyMongoError, OSError):
        logger.exception("Failed to fetch scans for %s", email)
        return ServiceResult(500, error="Failed to fetch scans")
    return ServiceResult(200, data={"data": scans, "count": len(scans)})


def get_scan_stats(today_start: Optional[str] = None) -> ServiceResult:
    """Totals for the dashboard: all scans, scans since local midnight, QR codes."""
    today_start = today_start or today_start_utc()
    try:
        stats = {
            "total_scans": storage.count_scans(),
            "scans_today": storage.count_scans(since=today_start),
            "total_qr_codes": storage.count_qr_codes(),
        }
    except (storage.StorageError, PyMongoError, OSError):
        logger.exception("Failed to fetch scan statistics")
        return ServiceResult(500, error="Failed to fetch scan statistics")
    return ServiceResult(200, data={"stats": stats})
