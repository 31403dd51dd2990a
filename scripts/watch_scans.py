"""Live terminal feed of scan events."""

from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from modules.log_config import setup_logging  # noqa: E402
from modules.storage import watch_scan_events  # noqa: E402
from modules.utils import format_absolute_time  # noqa: E402


def main() -> None:
    setup_logging()
    print("Waiting for scans (Ctrl+C to stop)...")
    try:
        for event in watch_scan_events():
            qr = event.get("qr_code") or {}
            print(
                f"{format_absolute_time(event['scanned_at'])}  {event.get('scanned_by', '')}  "
                f"serial={qr.get('serial', '?')} batch={qr.get('batch', '?')} expiry={qr.get('expiry', '?')}"
            )
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
