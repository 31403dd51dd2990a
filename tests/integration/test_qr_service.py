"""
Integration tests for the QR generation and scan services against the JSON store.
"""

from datetime import date

import pytest

from gs1_qr import decode_gs1
from modules import qr_service
from modules.rate_limit import FixedWindowRateLimiter


@pytest.fixture
def saved_qr(json_store, valid_data, today):
    result = qr_service.generate_qr(valid_data, created_by="admin@example.com", today=today, width=128)
    assert result.status == 201
    return result.data["data"]


class TestGenerateQR:

    def test_created(self, json_store, valid_data, today):
        result = qr_service.generate_qr(valid_data, created_by="admin@example.com", today=today, width=128)

        assert result.status == 201
        assert result.success
        qr_code = result.data["data"]
        assert qr_code["qr_data"] == "(01)12345678901234(10)BATCH001(17)251231(21)SN001"
        assert qr_code["created_by"] == "admin@example.com"
        assert qr_code["serial"] == "SN001"
        assert result.data["qr_image_url"].startswith("data:image/png;base64,")
        assert json_store.find_qr_by_serial("SN001")["id"] == qr_code["id"]

    def test_validation_errors(self, json_store, today):
        result = qr_service.generate_qr({"gtin": "12A", "batch": "", "expiry": "", "serial": "S1"}, today=today)
        assert result.status == 400
        assert result.error == "GTIN must contain only digits, Batch number is required, Expiry date is required"
        assert json_store.count_qr_codes() == 0

    def test_stored_fields_match_encoded_payload(self, json_store, valid_data, today):
        """Test the stored expiry is the same day the QR payload carries."""
        valid_data["expiry"] = date(2025, 12, 31)
        result = qr_service.generate_qr(valid_data, today=today, width=128)

        assert result.status == 201
        qr_code = result.data["data"]
        assert qr_code["expiry"] == "2025-12-31"
        assert decode_gs1(qr_code["qr_data"]).expiry == qr_code["expiry"]

    def test_non_canonical_expiry_rejected(self, json_store, valid_data, today):
        valid_data["expiry"] = "2030-12-31T24:00"
        result = qr_service.generate_qr(valid_data, today=today, width=128)
        assert result.status == 400
        assert result.error == "Expiry must be a valid date"
        assert json_store.count_qr_codes() == 0

    def test_duplicate_serial(self, saved_qr, valid_data, today):
        valid_data["batch"] = "OTHER"
        result = qr_service.generate_qr(valid_data, today=today, width=128)
        assert result.status == 409
        assert result.error == qr_service.ERROR_DUPLICATE_SERIAL

    def test_rate_limited(self, json_store, valid_data, today):
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60)
        first = qr_service.generate_qr(valid_data, client_ip="1.2.3.4", limiter=limiter, today=today, width=128)
        valid_data["serial"] = "SN002"
        second = qr_service.generate_qr(valid_data, client_ip="1.2.3.4", limiter=limiter, today=today, width=128)
        other_client = qr_service.generate_qr(valid_data, client_ip="5.6.7.8", limiter=limiter, today=today, width=128)

        assert first.status == 201
        assert second.status == 429
        assert second.error == qr_service.ERROR_RATE_LIMITED
        assert other_client.status == 201

    def test_to_dict(self, json_store, today):
        result = qr_service.generate_qr({}, today=today)
        output = result.to_dict()
        assert output["success"] is False
        assert "GTIN is required" in output["error"]


class TestRecordScan:

    def test_scan_by_serial(self, saved_qr):
        result = qr_service.record_scan(
            {"serial": "SN001", "scanned_by": "nurse@example.com", "device_info": "iPhone"}
        )
        assert result.status == 201
        assert result.data["qr_code"]["id"] == saved_qr["id"]
        assert result.data["scanned_by"] == "nurse@example.com"
        assert result.data["device_info"] == "iPhone"
        assert result.data["scanned_at"].endswith("Z")

    def test_scan_by_qr_data(self, saved_qr):
        result = qr_service.record_scan({"qr_data": saved_qr["qr_data"], "scanned_by": "nurse@example.com"})
        assert result.status == 201
        assert result.data["qr_code"]["serial"] == "SN001"
        assert result.data["device_info"] is None

    def test_bad_qr_data(self, saved_qr):
        result = qr_service.record_scan({"qr_data": "garbage", "scanned_by": "nurse@example.com"})
        assert result.status == 400
        assert result.error.startswith("Invalid GS1 format")

    def test_unknown_serial(self, json_store):
        result = qr_service.record_scan({"serial": "NOPE", "scanned_by": "nurse@example.com"})
        assert result.status == 400
        assert result.error == "QR code with serial 'NOPE' not found"

    def test_missing_serial(self, json_store):
        result = qr_service.record_scan({"scanned_by": "nurse@example.com"})
        assert result.status == 400
        assert result.error == "Serial number is required"

    def test_missing_scanned_by(self, saved_qr):
        result = qr_service.record_scan({"serial": "SN001"})
        assert result.status == 400
        assert result.error == "Scanned by (user email) is required"


class TestQueries:

    def test_get_qr_code(self, saved_qr):
        result = qr_service.get_qr_code(saved_qr["id"])
        assert result.status == 200
        assert result.data["serial"] == "SN001"

    def test_get_qr_code_missing(self, json_store):
        assert qr_service.get_qr_code("does-not-exist").status == 404
        assert qr_service.get_qr_code("").status == 400

    def test_recent_scans_newest_first(self, saved_qr):
        for device in ("first", "second", "third"):
            qr_service.record_scan({"serial": "SN001", "scanned_by": "a@example.com", "device_info": device})

        result = qr_service.get_recent_scans(limit=2)
        assert result.status == 200
        assert result.data["count"] == 2
        assert [s["device_info"] for s in result.data["scans"]] == ["third", "second"]
        assert result.data["scans"][0]["qr_code"]["batch"] == "BATCH001"

    def test_user_scans(self, saved_qr):
        for _ in range(7):
            qr_service.record_scan({"serial": "SN001", "scanned_by": "a@example.com"})
        qr_service.record_scan({"serial": "SN001", "scanned_by": "b@example.com"})

        default = qr_service.get_user_scans("a@example.com")
        assert default.status == 200
        assert default.data["count"] == 5

        everything = qr_service.get_user_scans("a@example.com", limit="500")
        assert everything.data["count"] == 7

        minimum = qr_service.get_user_scans("a@example.com", limit=0)
        assert minimum.data["count"] == 1

    def test_user_scans_invalid_email(self, json_store):
        assert qr_service.get_user_scans("").error == "User email is required"
        result = qr_service.get_user_scans("not-an-email")
        assert result.status == 400
        assert result.error == "Invalid email format"

    def test_scan_stats(self, saved_qr):
        qr_service.record_scan({"serial": "SN001", "scanned_by": "a@example.com"})
        qr_service.record_scan({"serial": "SN001", "scanned_by": "a@example.com"})

        stats = qr_service.get_scan_stats().data["stats"]
        assert stats == {"total_scans": 2, "scans_today": 2, "total_qr_codes": 1}

        future = qr_service.get_scan_stats(today_start="2999-01-01T00:00:00.000000Z").data["stats"]
        assert future["scans_today"] == 0
        assert future["total_scans"] == 2
