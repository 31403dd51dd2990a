"""
GS1 QR Codec for vaccine dose tracking

Encodes a vaccine record (GTIN, batch, expiry, serial) into the GS1 element
string carried by a QR code, validates records before encoding, and decodes
scanned strings back into records.

Wire format: (01)GTIN(10)BATCH(17)YYMMDD(21)SERIAL
"""

from .core.record import GS1Record
from .core.encoder import (
    encode_gs1,
    encode_gs1_safe,
    format_expiry_for_gs1,
    pad_gtin,
    EncodeResult,
)
from .core.decoder import (
    decode_gs1,
    decode_gs1_safe,
    extract_serial,
    is_valid_gs1_format,
    parse_expiry_from_gs1,
    strip_gtin_padding,
    DecodeResult,
)
from .validators.validators import (
    validate_gs1_data,
    validate_record,
    ValidationResult,
)
from .formatters.json_formatter import (
    decode_gs1_to_json,
    decode_gs1_to_dict,
    format_record_dict,
)

__version__ = "1.0.0"
__all__ = [
    "GS1Record",
    "encode_gs1",
    "encode_gs1_safe",
    "format_expiry_for_gs1",
    "pad_gtin",
    "EncodeResult",
    "decode_gs1",
    "decode_gs1_safe",
    "extract_serial",
    "is_valid_gs1_format",
    "parse_expiry_from_gs1",
    "strip_gtin_padding",
    "DecodeResult",
    "validate_gs1_data",
    "validate_record",
    "ValidationResult",
    "decode_gs1_to_json",
    "decode_gs1_to_dict",
    "format_record_dict",
]
