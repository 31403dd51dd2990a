"""Print the URLs a phone on the same network can use to reach the app."""

from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from modules.utils import (  # noqa: E402
    build_server_url,
    get_all_local_ip_addresses,
    get_local_ip_address,
    is_private_ip,
)


def main(port: int = 8501) -> None:
    primary = get_local_ip_address()
    if not primary:
        print("No local network address found. Is this machine connected to a network?")
        return
    print(f"Local URL: {build_server_url(primary, port)}")
    if not is_private_ip(primary):
        print("Warning: address is not on a private network")
    for entry in get_all_local_ip_addresses():
        print(f"  {entry['interface']}: {build_server_url(entry['address'], port)}")


if __name__ == "__main__":
    main(int(sys.argv[1]) if len(sys.argv) > 1 else 8501)
