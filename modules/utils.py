"""
Utility helpers for the tracker UI and services.
"""

from __future__ import annotations

import ipaddress
import re
import socket
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

PRIVATE_NETWORKS = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
]


def _parse_timestamp(value: str) -> datetime:
    dt = date_parser.isoparse(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_absolute_time(value: str) -> str:
    dt = _parse_timestamp(value).astimezone()
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def format_relative_time(value: str, now: Optional[datetime] = None) -> str:
    """
    Convert a timestamp to relative time ("2 minutes ago").

    Anything older than a week is shown as an absolute date and time.
    """
    dt = _parse_timestamp(value)
    now = now or datetime.now(timezone.utc)
    seconds = int((now - dt).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if seconds < 10:
        return "just now"
    if seconds < 60:
        return f"{seconds} seconds ago"
    if minutes == 1:
        return "1 minute ago"
    if minutes < 60:
        return f"{minutes} minutes ago"
    if hours == 1:
        return "1 hour ago"
    if hours < 24:
        return f"{hours} hours ago"
    if days == 1:
        return "1 day ago"
    if days < 7:
        return f"{days} days ago"
    return format_absolute_time(value)


def expiry_status(expiry_date: str, near_months: int, today: Optional[date] = None) -> str:
    """
    Returns: Valid, Near Expiry, Expired, Unknown
    """
    if not expiry_date:
        return "Unknown"
    try:
        expiry = date_parser.isoparse(expiry_date).date()
    except ValueError:
        return "Unknown"
    today = today or date.today()
    if expiry < today:
        return "Expired"
    if expiry <= today + relativedelta(months=near_months):
        return "Near Expiry"
    return "Valid"


def is_valid_email(value: str) -> bool:
    return bool(value) and EMAIL_PATTERN.fullmatch(value) is not None


def clamp_limit(value, default: int, minimum: int = 1, maximum: int = 50) -> int:
    """Parse a limit parameter and clamp it into [minimum, maximum]."""
    if value is None or value == "":
        return default
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return default
    return min(max(limit, minimum), maximum)


def today_start_utc(now: Optional[datetime] = None) -> str:
    """Local midnight of the current day as a UTC timestamp string."""
    local_now = (now or datetime.now(timezone.utc)).astimezone()
    midnight = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def is_private_ip(ip: str) -> bool:
    """True for IPv4 addresses in 10/8, 172.16/12, 192.168/16 or loopback."""
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    if address.version != 4:
        return False
    return any(address in network for network in PRIVATE_NETWORKS)


def get_local_ip_address() -> Optional[str]:
    """
    Return the LAN IPv4 address of this machine, or None.

    A UDP socket "connect" sends no packets; it only selects the outbound
    interface.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        try:
            sock.connect(("10.255.255.255", 1))
            address = sock.getsockname()[0]
        except OSError:
            return None
    if address.startswith("127."):
        return None
    return address


def get_all_local_ip_addresses() -> List[Dict[str, str]]:
    """All non-loopback IPv4 addresses bound to this host name."""
    hostname = socket.gethostname()
    try:
        infos = socket.getaddrinfo(hostname, None, socket.AF_INET)
    except socket.gaierror:
        return []
    seen = []
    results = []
    for info in infos:
        address = info[4][0]
        if address.startswith("127.") or address in seen:
            continue
        seen.append(address)
        results.append({"interface": hostname, "address": address})
    return results


def build_server_url(ip_address: str, port: int) -> str:
    return f"http://{ip_address}:{port}"

