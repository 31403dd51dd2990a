import base64
from datetime import date, datetime

from dateutil.relativedelta import relativedelta
import pandas as pd
import streamlit as st

from gs1_qr import decode_gs1_to_dict, encode_gs1_safe
from modules.auth import validate_login
from modules.log_config import setup_logging
from modules.qr_service import (
    generate_qr,
    get_qr_code,
    get_recent_scans,
    get_scan_stats,
    get_user_scans,
    record_scan,
)
from modules.rate_limit import FixedWindowRateLimiter
from modules.reports import export_csv, export_excel, export_pdf_report, scans_to_dataframe, summarize_scans
from modules.settings import DEFAULT_SETTINGS, load_settings, save_settings
from modules.storage import MONGODB_DB, backend_name, check_connection, init_db, list_qr_codes
from modules.utils import (
    build_server_url,
    expiry_status,
    format_absolute_time,
    format_relative_time,
    get_all_local_ip_addresses,
    get_local_ip_address,
    is_private_ip,
)


st.set_page_config(page_title="Vaccine QR Tracker", layout="wide")
setup_logging()
init_db()


def _now_stamp() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def _ensure_session_state():
    if "user" not in st.session_state:
        st.session_state.user = None
    if "last_generated" not in st.session_state:
        st.session_state.last_generated = None
    if "last_scan" not in st.session_state:
        st.session_state.last_scan = None


@st.cache_resource
def _rate_limiter(max_requests: int, window_seconds: int) -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(max_requests=max_requests, window_seconds=window_seconds)


def _client_ip() -> str:
    headers = st.context.headers
    forwarded = headers.get("X-Forwarded-For") if headers else None
    if forwarded:
        return forwarded.split(",")[0].strip()
    return "unknown"


def _data_url_bytes(data_url: str) -> bytes:
    return base64.b64decode(data_url.split(",", 1)[1])


def _status_badge(status: str) -> str:
    if status == "Valid":
        return "✅ Valid"
    if status == "Near Expiry":
        return "⚠️ Near Expiry"
    if status == "Expired":
        return "❌ Expired"
    return "❔ Unknown"


def _require_login():
    if st.session_state.user:
        return True
    st.title("Login")
    with st.form("login_form", clear_on_submit=False):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Login")
    if submitted:
        if validate_login(email, password):
            st.session_state.user = email.strip().lower()
            st.success("Logged in")
            st.rerun()
        else:
            st.error("Invalid credentials")
    return False


def _scan_rows(scans: list) -> pd.DataFrame:
    rows = []
    for scan in scans:
        qr = scan.get("qr_code") or {}
        rows.append(
            {
                "When": format_relative_time(scan["scanned_at"]),
                "Scanned By": scan.get("scanned_by", ""),
                "GTIN": qr.get("gtin", ""),
                "Batch": qr.get("batch", ""),
                "Serial": qr.get("serial", ""),
                "Expiry": qr.get("expiry", ""),
                "Device": scan.get("device_info") or "",
            }
        )
    return pd.DataFrame(rows)


def _generate_page(settings: dict):
    st.header("Generate QR Code")
    cols = st.columns(2)
    with cols[0]:
        gtin = st.text_input("GTIN", max_chars=14, help="Up to 14 digits, zero-padded on encode")
        batch = st.text_input("Batch / Lot", max_chars=20)
        expiry = st.date_input(
            "Expiry Date",
            value=date.today() + relativedelta(years=1),
            min_value=date.today(),
        )
        serial = st.text_input("Serial Number", max_chars=20)

    candidate = {
        "gtin": gtin.strip(),
        "batch": batch.strip(),
        "expiry": expiry.isoformat() if expiry else "",
        "serial": serial.strip(),
    }

    with cols[1]:
        st.subheader("Live Preview")
        preview = encode_gs1_safe(candidate)
        if preview.ok:
            st.code(preview.wire_string)
        else:
            for error in preview.errors:
                st.caption(f"• {error}")

    if st.button("Generate & Save", type="primary", disabled=not preview.ok):
        limiter = _rate_limiter(
            int(settings["rate_limit_max_requests"]),
            int(settings["rate_limit_window_seconds"]),
        )
        result = generate_qr(
            candidate,
            client_ip=_client_ip(),
            limiter=limiter,
            created_by=st.session_state.user,
            width=int(settings["qr_image_width"]),
        )
        if result.success:
            st.session_state.last_generated = result.data
            st.success("QR code saved")
        else:
            st.error(f"[{result.status}] {result.error}")

    generated = st.session_state.last_generated
    if generated:
        qr_code = generated["data"]
        png = _data_url_bytes(generated["qr_image_url"])
        st.image(png, caption=qr_code["qr_data"], width=256)
        st.download_button(
            "Download PNG",
            data=png,
            file_name=f"qr_{qr_code['serial']}.png",
            mime="image/png",
        )
        st.json(qr_code)


def _scan_page(settings: dict):
    st.header("Record Scan")
    with st.form("scan_form", clear_on_submit=True):
        scanned = st.text_input("Serial number or scanned QR data")
        device_info = st.text_input("Device info (optional)")
        submitted = st.form_submit_button("Record Scan")

    if submitted:
        scanned = scanned.strip()
        payload = {"scanned_by": st.session_state.user, "device_info": device_info.strip() or None}
        if scanned.startswith("("):
            payload["qr_data"] = scanned
        else:
            payload["serial"] = scanned
        result = record_scan(payload)
        if result.success:
            st.session_state.last_scan = result.data
            st.success("Scan recorded")
        else:
            st.error(result.error)

    last_scan = st.session_state.last_scan
    if last_scan:
        qr = last_scan["qr_code"]
        status = expiry_status(qr.get("expiry", ""), int(settings["near_expiry_months"]))
        st.subheader("Last Scan")
        st.write(_status_badge(status))
        st.json(decode_gs1_to_dict(qr.get("qr_data"), include_wire_fields=True))
        st.caption(f"Scanned at {format_absolute_time(last_scan['scanned_at'])}")


def _dashboard_page(settings: dict):
    st.header("Live Dashboard")
    refresh = int(settings["dashboard_refresh_seconds"]) or None

    @st.fragment(run_every=refresh)
    def _live_panel():
        stats = get_scan_stats()
        if stats.success:
            cols = st.columns(3)
            cols[0].metric("Total Scans", stats.data["stats"]["total_scans"])
            cols[1].metric("Scans Today", stats.data["stats"]["scans_today"])
            cols[2].metric("QR Codes", stats.data["stats"]["total_qr_codes"])
        else:
            st.error(stats.error)

        st.subheader("Recent Scans")
        recent = get_recent_scans(settings["recent_scans_limit"])
        if not recent.success:
            st.error(recent.error)
        elif not recent.data["scans"]:
            st.info("No scans yet. Scans appear here as soon as they are recorded.")
        else:
            st.dataframe(_scan_rows(recent.data["scans"]), use_container_width=True, hide_index=True)

    _live_panel()


def _lookup_page():
    st.header("QR Code Lookup")
    qr_codes = list_qr_codes(limit=200)
    options = {f"{q['serial']} | {q['batch']} | {q['id']}": q["id"] for q in qr_codes}
    selection = st.selectbox("Recent QR codes", ["--"] + list(options.keys()))
    manual_id = st.text_input("Or enter QR code ID")
    qr_id = manual_id.strip() or options.get(selection)
    if not qr_id:
        return
    result = get_qr_code(qr_id)
    if result.success:
        st.json(result.data)
        st.json(decode_gs1_to_dict(result.data.get("qr_data")))
    else:
        st.error(result.error)


def _user_scans_page(settings: dict):
    st.header("Scans by User")
    email = st.text_input("User email", value=st.session_state.user or "")
    limit = st.number_input("Limit", min_value=1, max_value=50, value=int(settings["user_scans_limit"]))
    if not email:
        return
    result = get_user_scans(email.strip(), limit)
    if not result.success:
        st.error(result.error)
        return
    if not result.data["data"]:
        st.info("No scans for this user.")
        return
    st.dataframe(_scan_rows(result.data["data"]), use_container_width=True, hide_index=True)


def _reports_page(settings: dict):
    st.header("Reports")
    limit = st.number_input("Scans to include", min_value=1, max_value=1000, value=500)
    recent = get_recent_scans(limit)
    if not recent.success:
        st.error(recent.error)
        return
    detailed = scans_to_dataframe(recent.data["scans"])
    summary = summarize_scans(detailed)
    st.subheader("Scans per Batch")
    st.dataframe(summary, use_container_width=True, hide_index=True)

    stamp = _now_stamp()
    cols = st.columns(3)
    if cols[0].button("Export CSV"):
        path = export_csv(detailed, f"scans_{stamp}.csv")
        st.success(f"Saved {path}")
    if cols[1].button("Export Excel"):
        path = export_excel(detailed, summary, f"scans_{stamp}.xlsx")
        st.success(f"Saved {path}")
    if cols[2].button("Export PDF"):
        stats = get_scan_stats()
        kpis = {}
        if stats.success:
            kpis = {k.replace("_", " ").title(): str(v) for k, v in stats.data["stats"].items()}
        path = export_pdf_report(
            "Vaccine Scan Report",
            detailed,
            summary,
            {"Generated by": st.session_state.user or "", "Scans included": str(len(detailed))},
            kpis,
            f"scans_{stamp}.pdf",
        )
        st.success(f"Saved {path}")


def _network_page(settings: dict):
    st.header("Network Info")
    st.caption("Open the app from a phone on the same network to scan QR codes.")
    port = int(settings["server_port"])
    primary = get_local_ip_address()
    if primary:
        st.metric("Local URL", build_server_url(primary, port))
        if not is_private_ip(primary):
            st.warning("This address is not on a private network.")
    else:
        st.warning("Could not detect a local network address.")
    addresses = get_all_local_ip_addresses()
    if addresses:
        st.table(pd.DataFrame(addresses))


def _settings_page():
    st.header("Settings")
    settings = load_settings()
    with st.form("settings_form"):
        updates = {}
        for key, default in DEFAULT_SETTINGS.items():
            label = key.replace("_", " ").capitalize()
            updates[key] = int(st.number_input(label, min_value=0, value=int(settings.get(key, default))))
        submitted = st.form_submit_button("Save Settings")
    if submitted:
        save_settings(updates)
        st.success("Settings saved")

    st.subheader("Storage")
    backend = backend_name()
    connected = check_connection()
    st.write(f"Backend: {backend}" + (f" (db={MONGODB_DB})" if backend == "mongodb" else ""))
    st.write("Connection: " + ("✅ OK" if connected else "❌ FAILED"))


def main():
    _ensure_session_state()
    if not _require_login():
        return

    settings = load_settings()

    st.sidebar.title("Navigation")
    st.sidebar.caption(f"Signed in as {st.session_state.user}")
    if st.sidebar.button("Logout"):
        st.session_state.user = None
        st.rerun()

    page = st.sidebar.radio(
        "Go to",
        [
            "Generate QR",
            "Record Scan",
            "Live Dashboard",
            "QR Lookup",
            "User Scans",
            "Reports",
            "Network Info",
            "Settings",
        ],
    )

    if page == "Generate QR":
        _generate_page(settings)
    elif page == "Record Scan":
        _scan_page(settings)
    elif page == "Live Dashboard":
        _dashboard_page(settings)
    elif page == "QR Lookup":
        _lookup_page()
    elif page == "User Scans":
        _user_scans_page(settings)
    elif page == "Reports":
        _reports_page(settings)
    elif page == "Network Info":
        _network_page(settings)
    elif page == "Settings":
        _settings_page()


if __name__ == "__main__":
    main()
