"""
Application settings persistence.
"""

from __future__ import annotations

from typing import Any, Dict

import streamlit as st

from .storage import get_setting, set_setting


DEFAULT_SETTINGS: Dict[str, Any] = {
    "rate_limit_max_requests": 10,
    "rate_limit_window_seconds": 60,
    "recent_scans_limit": 50,
    "user_scans_limit": 5,
    "dashboard_refresh_seconds": 5,
    "qr_image_width": 512,
    "near_expiry_months": 6,
    "server_port": 8501,
}


@st.cache_data(ttl=300)
def load_settings() -> Dict[str, Any]:
    settings = {}
    for key, default in DEFAULT_SETTINGS.items():
        settings[key] = get_setting(key, default)
    return settings


def save_settings(updates: Dict[str, Any]) -> None:
    for key, value in updates.items():
        set_setting(key, value)
    load_settings.clear()
