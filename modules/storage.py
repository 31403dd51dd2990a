"""
Persistence layer for generated QR codes and scan events.

Two backends share one API:
- MongoDB (pymongo), used when MONGODB_URI is set
- a local JSON file, used otherwise or when PERSISTENCE_BACKEND=json

Serial numbers are unique across QR codes. The MongoDB backend enforces this
with a unique index; the JSON backend checks on insert. Both raise
DuplicateSerialError.
"""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional
from uuid import uuid4

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import DuplicateKeyError, OperationFailure, PyMongoError


logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", str(BASE_DIR / "data")))
JSON_PATH = DATA_DIR / "app.json"
PERSISTENCE_BACKEND = os.getenv("PERSISTENCE_BACKEND", "")
MONGODB_URI = os.getenv("MONGODB_URI", "")
MONGODB_DB = os.getenv("MONGODB_DB", "VaccineTracker")

QR_SUMMARY_FIELDS = ("id", "gtin", "batch", "expiry", "serial", "qr_data")

_client: Optional[MongoClient] = None
# Guards the JSON file; writers hold it across the whole load-check-save cycle
_json_lock = threading.RLock()


class StorageError(Exception):
    """Base class for storage failures."""


class DuplicateSerialError(StorageError):
    """Raised when a QR code is created with a serial that already exists."""

    def __init__(self, serial: str):
        super().__init__(f"Serial number already exists: {serial}")
        self.serial = serial


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _get_client() -> MongoClient:
    global _client
    if _client is None:
        if not MONGODB_URI:
            raise ValueError("MONGODB_URI is required for MongoDB backend.")
        _client = MongoClient(MONGODB_URI)
    return _client


def get_db():
    return _get_client()[MONGODB_DB]


def _backend() -> str:
    if PERSISTENCE_BACKEND:
        return PERSISTENCE_BACKEND.strip().lower()
    if not MONGODB_URI:
        return "json"
    return "mongodb"


def backend_name() -> str:
    """Name of the active backend: "json" or "mongodb"."""
    return _backend()


def _empty_payload() -> Dict[str, Any]:
    return {"qr_codes": [], "scan_events": [], "settings": {}}


def _json_load() -> Dict[str, Any]:
    with _json_lock:
        JSON_PATH.parent.mkdir(parents=True, exist_ok=True)
        if not JSON_PATH.exists():
            return _empty_payload()
        with JSON_PATH.open("r", encoding="utf-8") as f:
            payload = json.load(f)
    for key, value in _empty_payload().items():
        payload.setdefault(key, value)
    return payload


def _json_save(payload: Dict[str, Any]) -> None:
    with _json_lock:
        JSON_PATH.parent.mkdir(parents=True, exist_ok=True)
        with JSON_PATH.open("w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=True, indent=2)


def _public(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in doc.items() if k != "_id"}


def init_db() -> None:
    if _backend() == "json":
        _json_save(_json_load())
        return
    db = get_db()
    db.qr_codes.create_index("serial", unique=True)
    db.qr_codes.create_index([("created_at", DESCENDING)])
    db.scan_events.create_index("qr_code_id")
    db.scan_events.create_index([("scanned_at", DESCENDING)])
    db.scan_events.create_index([("scanned_by", ASCENDING), ("scanned_at", DESCENDING)])
    db.settings.create_index("key", unique=True)


def check_connection() -> bool:
    if _backend() == "json":
        return True
    try:
        _get_client().admin.command("ping")
        return True
    except PyMongoError:
        logger.exception("MongoDB ping failed")
        return False


def set_setting(key: str, value: Any) -> None:
    if _backend() == "json":
        with _json_lock:
            payload = _json_load()
            payload["settings"][key] = value
            _json_save(payload)
        return
    db = get_db()
    db.settings.update_one(
        {"_id": key},
        {"$set": {"key": key, "value": value}},
        upsert=True,
    )


def get_setting(key: str, default: Any = None) -> Any:
    if _backend() == "json":
        payload = _json_load()
        return payload.get("settings", {}).get(key, default)
    db = get_db()
    doc = db.settings.find_one({"_id": key})
    if not doc:
        return default
    return doc.get("value", default)


# ---------------------------------------------------------------------------
# QR codes
# ---------------------------------------------------------------------------

def create_qr_code(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Persist a generated QR code.

    Returns:
        The stored QR code document.

    Raises:
        DuplicateSerialError: If the serial is already used.
    """
    qr_id = data.get("id") or str(uuid4())
    doc = {
        "_id": qr_id,
        "id": qr_id,
        "gtin": data.get("gtin") or "",
        "batch": data.get("batch") or "",
        "expiry": data.get("expiry") or "",
        "serial": data.get("serial") or "",
        "qr_data": data.get("qr_data") or "",
        "created_at": data.get("created_at") or _utc_now(),
        "created_by": data.get("created_by"),
    }
    if _backend() == "json":
        with _json_lock:
            payload = _json_load()
            if any(q.get("serial") == doc["serial"] for q in payload["qr_codes"]):
                raise DuplicateSerialError(doc["serial"])
            payload["qr_codes"].append(_public(doc))
            _json_save(payload)
    else:
        try:
            get_db().qr_codes.insert_one(doc)
        except DuplicateKeyError as exc:
            raise DuplicateSerialError(doc["serial"]) from exc
    logger.info("Created QR code %s (serial=%s)", qr_id, doc["serial"])
    return _public(doc)


def get_qr_code(qr_id: str) -> Optional[Dict[str, Any]]:
    if _backend() == "json":
        for doc in _json_load()["qr_codes"]:
            if doc.get("id") == qr_id:
                return dict(doc)
        return None
    doc = get_db().qr_codes.find_one({"_id": qr_id})
    return _public(doc) if doc else None


def find_qr_by_serial(serial: str) -> Optional[Dict[str, Any]]:
    if not serial:
        return None
    if _backend() == "json":
        for doc in _json_load()["qr_codes"]:
            if doc.get("serial") == serial:
                return dict(doc)
        return None
    doc = get_db().qr_codes.find_one({"serial": serial})
    return _public(doc) if doc else None


def list_qr_codes(limit: Optional[int] = None) -> List[Dict[str, Any]]:
    if _backend() == "json":
        docs = sorted(
            _json_load()["qr_codes"],
            key=lambda q: q.get("created_at", ""),
            reverse=True,
        )
        if limit:
            docs = docs[:limit]
        return [dict(d) for d in docs]
    cursor = get_db().qr_codes.find().sort("created_at", DESCENDING)
    if limit:
        cursor = cursor.limit(limit)
    return [_public(doc) for doc in cursor]


def count_qr_codes() -> int:
    if _backend() == "json":
        return len(_json_load()["qr_codes"])
    return get_db().qr_codes.count_documents({})


# ---------------------------------------------------------------------------
# Scan events
# ---------------------------------------------------------------------------

def create_scan_event(data: Dict[str, Any]) -> Dict[str, Any]:
    scan_id = data.get("id") or str(uuid4())
    doc = {
        "_id": scan_id,
        "id": scan_id,
        "qr_code_id": data.get("qr_code_id"),
        "scanned_by": data.get("scanned_by"),
        "scanned_at": data.get("scanned_at") or _utc_now(),
        "device_info": data.get("device_info") or None,
    }
    if _backend() == "json":
        with _json_lock:
            payload = _json_load()
            payload["scan_events"].append(_public(doc))
            _json_save(payload)
    else:
        get_db().scan_events.insert_one(doc)
    logger.info("Recorded scan %s for QR code %s by %s", scan_id, doc["qr_code_id"], doc["scanned_by"])
    return _public(doc)


def _qr_summary(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return None
    return {key: doc.get(key) for key in QR_SUMMARY_FIELDS}


def _attach_qr_codes(events: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Embed the scanned QR code's details into each scan event."""
    ids = list({e.get("qr_code_id") for e in events if e.get("qr_code_id")})
    if not ids:
        return [dict(e, qr_code=None) for e in events]
    if _backend() == "json":
        qr_map = {q["id"]: q for q in _json_load()["qr_codes"] if q.get("id") in ids}
    else:
        qr_map = {doc["_id"]: _public(doc) for doc in get_db().qr_codes.find({"_id": {"$in": ids}})}
    return [dict(e, qr_code=_qr_summary(qr_map.get(e.get("qr_code_id")))) for e in events]


def _json_scans(predicate=None) -> List[Dict[str, Any]]:
    events = _json_load()["scan_events"]
    if predicate is not None:
        events = [e for e in events if predicate(e)]
    return sorted(events, key=lambda e: e.get("scanned_at", ""), reverse=True)


def list_recent_scans(limit: int = 50) -> List[Dict[str, Any]]:
    """Most recent scan events first, with QR code details embedded."""
    if _backend() == "json":
        events = _json_scans()[:limit]
    else:
        cursor = get_db().scan_events.find().sort("scanned_at", DESCENDING).limit(limit)
        events = [_public(doc) for doc in cursor]
    return _attach_qr_codes(events)


def list_scans_by_user(email: str, limit: int = 5) -> List[Dict[str, Any]]:
    if _backend() == "json":
        events = _json_scans(lambda e: e.get("scanned_by") == email)[:limit]
    else:
        cursor = (
            get_db()
            .scan_events.find({"scanned_by": email})
            .sort("scanned_at", DESCENDING)
            .limit(limit)
        )
        events = [_public(doc) for doc in cursor]
    return _attach_qr_codes(events)


def list_scans_since(since: str) -> List[Dict[str, Any]]:
    """Scan events strictly after the given timestamp, oldest first."""
    if _backend() == "json":
        events = list(reversed(_json_scans(lambda e: e.get("scanned_at", "") > since)))
    else:
        cursor = get_db().scan_events.find({"scanned_at": {"$gt": since}}).sort("scanned_at", ASCENDING)
        events = [_public(doc) for doc in cursor]
    return _attach_qr_codes(events)


def count_scans(since: Optional[str] = None) -> int:
    """Count scan events, optionally only those at or after `since`."""
    if _backend() == "json":
        if since is None:
            return len(_json_load()["scan_events"])
        return len(_json_scans(lambda e: e.get("scanned_at", "") >= since))
    query = {"scanned_at": {"$gte": since}} if since else {}
    return get_db().scan_events.count_documents(query)


def _poll_scan_events(poll_interval: float, since: Optional[str]) -> Iterator[Dict[str, Any]]:
    cursor_ts = since or _utc_now()
    while True:
        for event in list_scans_since(cursor_ts):
            cursor_ts = event["scanned_at"]
            yield event
        time.sleep(poll_interval)


def watch_scan_events(poll_interval: float = 2.0, since: Optional[str] = None) -> Iterator[Dict[str, Any]]:
    """
    Yield new scan events as they are recorded.

    MongoDB uses a change stream on inserts (requires a replica set); if
    change streams are unavailable, and for the JSON backend, the store is
    polled every `poll_interval` seconds for events newer than `since`.
    """
    if _backend() == "json" or since is not None:
        yield from _poll_scan_events(poll_interval, since)
        return

    try:
        with get_db().scan_events.watch([{"$match": {"operationType": "insert"}}]) as stream:
            for change in stream:
                yield _attach_qr_codes([_public(change["fullDocument"])])[0]
    except OperationFailure as exc:
        logger.warning("Change streams unavailable (%s); falling back to polling", exc)
        yield from _poll_scan_events(poll_interval, None)
