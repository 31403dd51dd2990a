"""
CLI interface for the GS1 QR codec.

Usage:
    python -m gs1_qr encode --gtin 12345678901234 --batch BATCH001 --expiry 2027-12-31 --serial SN001
    python -m gs1_qr decode "(01)12345678901234(10)BATCH001(17)271231(21)SN001"
    python -m gs1_qr validate --gtin 1234ABC --batch BATCH001 --expiry 2027-12-31 --serial SN001

Options:
    --json                Output as JSON
"""

import argparse
import json
import sys
from typing import List, Optional

from .core.decoder import decode_gs1_safe
from .core.encoder import encode_gs1_safe
from .formatters.json_formatter import format_record_dict
from .validators.validators import validate_gs1_data


def _record_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--gtin', default='', help='GTIN, up to 14 digits')
    parser.add_argument('--batch', default='', help='Batch/lot number')
    parser.add_argument('--expiry', default='', help='Expiry date (YYYY-MM-DD)')
    parser.add_argument('--serial', default='', help='Serial number')
    parser.add_argument('--json', action='store_true', help='Output result as JSON')


def _candidate(args: argparse.Namespace) -> dict:
    return {
        'gtin': args.gtin,
        'batch': args.batch,
        'expiry': args.expiry,
        'serial': args.serial,
    }


def format_errors(errors: List[str]) -> str:
    """Format validation errors for display."""
    lines = ["Validation failed:"]
    lines.extend(f"  - {error}" for error in errors)
    return '\n'.join(lines)


def _cmd_encode(args: argparse.Namespace) -> int:
    result = encode_gs1_safe(_candidate(args))
    if args.json:
        print(json.dumps({'qr_data': result.wire_string, 'errors': result.errors}, indent=2))
    elif result.errors:
        print(format_errors(result.errors), file=sys.stderr)
    else:
        print(result.wire_string)
    return 0 if result.ok else 1


def _cmd_decode(args: argparse.Namespace) -> int:
    result = decode_gs1_safe(args.qr_data)
    if result.record is None:
        if args.json:
            print(json.dumps({'error': result.error, 'input': args.qr_data}, indent=2))
        else:
            print(result.error, file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(format_record_dict(result.record), indent=2, ensure_ascii=False))
    else:
        for key, value in format_record_dict(result.record).items():
            print(f"{key}: {value}")
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    errors = validate_gs1_data(_candidate(args))
    if args.json:
        print(json.dumps({'valid': not errors, 'errors': errors}, indent=2))
    elif errors:
        print(format_errors(errors))
    else:
        print("OK")
    return 0 if not errors else 1


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog='gs1_qr',
        description='Encode, decode and validate GS1 QR payloads'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    encode_parser = subparsers.add_parser('encode', help='Validate and encode a record')
    _record_args(encode_parser)
    encode_parser.set_defaults(handler=_cmd_encode)

    decode_parser = subparsers.add_parser('decode', help='Decode a GS1 QR payload')
    decode_parser.add_argument('qr_data', help='GS1 string to decode')
    decode_parser.add_argument('--json', action='store_true', help='Output result as JSON')
    decode_parser.set_defaults(handler=_cmd_decode)

    validate_parser = subparsers.add_parser('validate', help='Validate a record without encoding')
    _record_args(validate_parser)
    validate_parser.set_defaults(handler=_cmd_validate)

    args = parser.parse_args(argv)
    return args.handler(args)


if __name__ == '__main__':
    sys.exit(main())
