"""
GS1 record model shared by the encoder and decoder.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping


# Application Identifiers carried in the QR payload, in wire order
AI_GTIN = "01"
AI_BATCH = "10"
AI_EXPIRY = "17"
AI_SERIAL = "21"


@dataclass(frozen=True)
class GS1Record:
    """
    A vaccine dose record as carried by a GS1 QR code.

    Attributes:
        gtin: Trade item number, 1-14 digits (zero-padded to 14 on encode)
        batch: Batch/lot number, 1-20 alphanumeric characters
        expiry: Expiry date in ISO YYYY-MM-DD format
        serial: Unique serial number, 1-20 alphanumeric characters
    """
    gtin: str
    batch: str
    expiry: str
    serial: str

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary representation."""
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GS1Record":
        """Build a record from a mapping, treating missing fields as empty."""
        values = {}
        for name in ("gtin", "batch", "expiry", "serial"):
            value = data.get(name)
            values[name] = "" if value is None else str(value)
        return cls(**values)
