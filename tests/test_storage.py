"""
Tests for the JSON storage backend.
"""

import threading

import pytest

from modules.storage import DuplicateSerialError


def _qr(serial: str, **extra) -> dict:
    data = {
        "gtin": "12345678901234",
        "batch": "B1",
        "expiry": "2026-01-01",
        "serial": serial,
        "qr_data": f"(01)12345678901234(10)B1(17)260101(21){serial}",
    }
    data.update(extra)
    return data


class TestQRCodes:

    def test_create_and_get(self, json_store):
        created = json_store.create_qr_code(_qr("S1", created_by="a@example.com"))
        assert "_id" not in created
        assert json_store.get_qr_code(created["id"]) == created
        assert json_store.find_qr_by_serial("S1") == created
        assert json_store.count_qr_codes() == 1

    def test_duplicate_serial(self, json_store):
        json_store.create_qr_code(_qr("S1"))
        with pytest.raises(DuplicateSerialError) as exc_info:
            json_store.create_qr_code(_qr("S1", batch="B2"))
        assert exc_info.value.serial == "S1"
        assert json_store.count_qr_codes() == 1

    def test_concurrent_duplicate_serial(self, json_store):
        """Test only one of many simultaneous creates with the same serial is stored."""
        outcomes = []

        def create():
            try:
                json_store.create_qr_code(_qr("S1"))
                outcomes.append("created")
            except DuplicateSerialError:
                outcomes.append("duplicate")

        threads = [threading.Thread(target=create) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("created") == 1
        assert outcomes.count("duplicate") == 7
        assert json_store.count_qr_codes() == 1

    def test_missing(self, json_store):
        assert json_store.get_qr_code("nope") is None
        assert json_store.find_qr_by_serial("") is None

    def test_list_newest_first(self, json_store):
        json_store.create_qr_code(_qr("S1", created_at="2025-01-01T00:00:00.000000Z"))
        json_store.create_qr_code(_qr("S2", created_at="2025-02-01T00:00:00.000000Z"))
        assert [q["serial"] for q in json_store.list_qr_codes()] == ["S2", "S1"]
        assert len(json_store.list_qr_codes(limit=1)) == 1


class TestScanEvents:

    def test_since_and_counts(self, json_store):
        qr = json_store.create_qr_code(_qr("S1"))
        for ts in ("2025-06-15T10:00:00.000000Z", "2025-06-15T11:00:00.000000Z", "2025-06-16T09:00:00.000000Z"):
            json_store.create_scan_event({"qr_code_id": qr["id"], "scanned_by": "a@example.com", "scanned_at": ts})

        since = json_store.list_scans_since("2025-06-15T10:00:00.000000Z")
        assert [e["scanned_at"][:13] for e in since] == ["2025-06-15T11", "2025-06-16T09"]
        assert since[0]["qr_code"]["serial"] == "S1"

        assert json_store.count_scans() == 3
        assert json_store.count_scans(since="2025-06-16T00:00:00.000000Z") == 1

    def test_orphan_scan_has_no_qr_code(self, json_store):
        json_store.create_scan_event({"qr_code_id": "gone", "scanned_by": "a@example.com"})
        assert json_store.list_recent_scans()[0]["qr_code"] is None

    def test_watch_yields_existing_events_after_since(self, json_store):
        qr = json_store.create_qr_code(_qr("S1"))
        json_store.create_scan_event(
            {"qr_code_id": qr["id"], "scanned_by": "a@example.com", "scanned_at": "2025-06-15T10:00:00.000000Z"}
        )
        json_store.create_scan_event(
            {"qr_code_id": qr["id"], "scanned_by": "b@example.com", "scanned_at": "2025-06-15T11:00:00.000000Z"}
        )

        feed = json_store.watch_scan_events(poll_interval=0.01, since="2025-06-15T00:00:00.000000Z")
        assert next(feed)["scanned_by"] == "a@example.com"
        assert next(feed)["scanned_by"] == "b@example.com"
        feed.close()


class TestSettings:

    def test_get_default_and_set(self, json_store):
        assert json_store.get_setting("recent_scans_limit", 50) == 50
        json_store.set_setting("recent_scans_limit", 20)
        assert json_store.get_setting("recent_scans_limit", 50) == 20

    def test_connection(self, json_store):
        assert json_store.check_connection()
        assert json_store.backend_name() == "json"
