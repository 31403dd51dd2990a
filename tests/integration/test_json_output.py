"""
Tests for JSON formatter output and the command line interface.

Ensures clean JSON output with:
- Human-readable field names
- Proper date formatting (dd/mm/yyyy)
- A single error object for undecodable input
"""

import json

from gs1_qr import decode_gs1_to_dict, decode_gs1_to_json, GS1Record, format_record_dict
from gs1_qr.__main__ import main
from gs1_qr.formatters import format_date_ddmmyyyy


VALID = "(01)12345678901234(10)BATCH001(17)251231(21)SN001"


class TestJSONOutput:
    """Test JSON output formatting."""

    def test_basic_json_output(self):
        data = json.loads(decode_gs1_to_json(VALID))

        assert data == {
            "GTIN Code": "12345678901234",
            "Batch/Lot Number": "BATCH001",
            "Expiry Date": "31/12/2025",
            "Serial Number": "SN001",
        }

        # Should NOT contain AI codes
        for ai in ("01", "10", "17", "21"):
            assert ai not in data

    def test_include_wire_fields(self):
        data = decode_gs1_to_dict(VALID, include_wire_fields=True)
        assert data["Expiry (ISO)"] == "2025-12-31"

    def test_error_output(self):
        data = decode_gs1_to_dict("not a gs1 string")
        assert set(data) == {"error", "input"}
        assert data["input"] == "not a gs1 string"
        assert data["error"].startswith("Invalid GS1 format")

    def test_format_record_dict(self):
        record = GS1Record("123", "L1", "2026-02-03", "S1")
        assert format_record_dict(record)["Expiry Date"] == "03/02/2026"

    def test_format_date_passthrough(self):
        assert format_date_ddmmyyyy("2025-13-99") == "99/13/2025"
        assert format_date_ddmmyyyy("bad") == "bad"


class TestCLI:
    """Test python -m gs1_qr."""

    def test_encode(self, capsys):
        code = main(["encode", "--gtin", "123", "--batch", "B1", "--expiry", "2099-01-31", "--serial", "S1"])
        assert code == 0
        assert capsys.readouterr().out.strip() == "(01)00000000000123(10)B1(17)990131(21)S1"

    def test_encode_invalid(self, capsys):
        code = main(["encode", "--gtin", "12A", "--batch", "B1", "--expiry", "2099-01-31", "--serial", "S1", "--json"])
        assert code == 1
        output = json.loads(capsys.readouterr().out)
        assert output == {"qr_data": "", "errors": ["GTIN must contain only digits"]}

    def test_decode_json(self, capsys):
        assert main(["decode", VALID, "--json"]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["Serial Number"] == "SN001"

    def test_decode_text(self, capsys):
        assert main(["decode", VALID]) == 0
        assert "Batch/Lot Number: BATCH001" in capsys.readouterr().out

    def test_decode_failure(self, capsys):
        assert main(["decode", "garbage"]) == 1
        assert "Invalid GS1 format" in capsys.readouterr().err

    def test_validate(self, capsys):
        assert main(["validate", "--gtin", "1", "--batch", "B", "--expiry", "2099-01-01", "--serial", "S"]) == 0
        assert capsys.readouterr().out.strip() == "OK"

    def test_validate_errors(self, capsys):
        assert main(["validate", "--json"]) == 1
        output = json.loads(capsys.readouterr().out)
        assert output["valid"] is False
        assert output["errors"][0] == "GTIN is required"
