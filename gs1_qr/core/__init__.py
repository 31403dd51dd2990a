"""
Core encoding and decoding modules for the GS1 QR codec.
"""

from .record import GS1Record
from .encoder import (
    encode_gs1,
    encode_gs1_safe,
    format_expiry_for_gs1,
    pad_gtin,
    EncodeResult,
)
from .decoder import (
    decode_gs1,
    decode_gs1_safe,
    extract_serial,
    is_valid_gs1_format,
    parse_expiry_from_gs1,
    strip_gtin_padding,
    DecodeResult,
)

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
]
