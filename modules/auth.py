"""
Simple authentication utilities.

Users are identified by email; the email is recorded as `created_by` on
generated QR codes and as `scanned_by` on scan events.
"""

from __future__ import annotations

import json
import os
from typing import Dict, Optional


DEFAULT_USERS = {
    "admin@example.com": "admin",
}


def load_users() -> Dict[str, str]:
    """Users from the TRACKER_USERS env var (JSON object email -> password), else defaults."""
    raw = os.getenv("TRACKER_USERS", "")
    if not raw:
        return dict(DEFAULT_USERS)
    users = json.loads(raw)
    return {str(k).strip().lower(): str(v) for k, v in users.items()}


def validate_login(email: str, password: str, users: Optional[Dict[str, str]] = None) -> bool:
    users = users or load_users()
    return bool(email) and users.get(email.strip().lower()) == password
