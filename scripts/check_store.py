from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from modules.storage import MONGODB_DB, backend_name, check_connection, init_db  # noqa: E402


def main() -> None:
    backend = backend_name()
    ok = check_connection()
    if ok:
        init_db()
    status = "OK" if ok else "FAILED"
    print(f"Store connection {status} (backend={backend}, db={MONGODB_DB})")


if __name__ == "__main__":
    main()
