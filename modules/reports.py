"""
Scan report generation (CSV/Excel/PDF).
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas


EXPORTS_DIR = Path(os.getenv("EXPORTS_DIR", str(Path(__file__).resolve().parent.parent / "exports")))

SCAN_COLUMNS = [
    "scanned_at",
    "scanned_by",
    "gtin",
    "batch",
    "expiry",
    "serial",
    "device_info",
    "qr_data",
]

SUMMARY_COLUMNS = ["gtin", "batch", "expiry", "scan_count", "unique_serials", "last_scanned_at"]

COLUMN_WEIGHTS = {"scanned_by": 1.6, "qr_data": 2.4, "device_info": 1.4, "scanned_at": 1.4}
RIGHT_ALIGN = ["gtin", "expiry", "scan_count", "unique_serials"]
MAX_CHARS = {"qr_data": 60, "device_info": 30, "scanned_by": 32}


def ensure_exports_dir() -> None:
    EXPORTS_DIR.mkdir(parents=True, exist_ok=True)


def scans_to_dataframe(scans: List[Dict[str, Any]]) -> pd.DataFrame:
    """Flatten scan events (with embedded qr_code) into one row per scan."""
    rows = []
    for scan in scans:
        qr = scan.get("qr_code") or {}
        rows.append(
            {
                "scanned_at": scan.get("scanned_at", ""),
                "scanned_by": scan.get("scanned_by", ""),
                "gtin": qr.get("gtin", ""),
                "batch": qr.get("batch", ""),
                "expiry": qr.get("expiry", ""),
                "serial": qr.get("serial", ""),
                "device_info": scan.get("device_info") or "",
                "qr_data": qr.get("qr_data", ""),
            }
        )
    return pd.DataFrame(rows, columns=SCAN_COLUMNS)


def summarize_scans(df: pd.DataFrame) -> pd.DataFrame:
    """Scan counts per product batch."""
    if df.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)
    summary = (
        df.groupby(["gtin", "batch", "expiry"], as_index=False)
        .agg(
            scan_count=("serial", "size"),
            unique_serials=("serial", "nunique"),
            last_scanned_at=("scanned_at", "max"),
        )
        .sort_values(["scan_count", "last_scanned_at"], ascending=[False, False])
    )
    return summary[SUMMARY_COLUMNS].reset_index(drop=True)


def export_csv(df: pd.DataFrame, filename: str) -> Path:
    ensure_exports_dir()
    path = EXPORTS_DIR / filename
    df.to_csv(path, index=False)
    return path


def export_excel(detailed: pd.DataFrame, summary: pd.DataFrame, filename: str) -> Path:
    ensure_exports_dir()
    path = EXPORTS_DIR / filename
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        detailed.to_excel(writer, sheet_name="Detailed", index=False)
        summary.to_excel(writer, sheet_name="Summary", index=False)
    return path


def _compute_col_widths(df: pd.DataFrame, width: float, weights: Optional[Dict[str, float]] = None) -> List[float]:
    col_names = list(df.columns)
    if not col_names:
        return []
    max_lens = []
    sample = df.head(50)
    for col in col_names:
        max_len = len(str(col))
        for v in sample[col].tolist():
            max_len = max(max_len, len(str(v)) if v is not None else 0)
        weight = 1.0
        if weights and col in weights:
            weight = max(0.2, weights[col])
        max_lens.append(max_len * weight)
    total = sum(max_lens) or 1
    raw = [width * (l / total) for l in max_lens]
    min_w = width * 0.03
    max_w = width * 0.3
    clamped = [min(max(r, min_w), max_w) for r in raw]
    scale = width / sum(clamped)
    return [w * scale for w in clamped]


def _draw_footer(c: canvas.Canvas, page_width: float, footer_left: str) -> None:
    y = 0.35 * inch
    c.setFont("Helvetica-Oblique", 8)
    c.drawString(0.5 * inch, y, footer_left)
    c.drawRightString(page_width - 0.5 * inch, y, f"Page {c.getPageNumber()}")


def _draw_table(
    c: canvas.Canvas,
    df: pd.DataFrame,
    x: float,
    y: float,
    width: float,
    min_y: float,
    page_size: tuple,
    footer_text: str,
) -> float:
    page_width, page_height = page_size
    if df.empty:
        c.setFont("Helvetica-Oblique", 9)
        c.drawString(x, y, "No data available.")
        return y - 0.25 * inch

    col_names = list(df.columns)
    col_widths = _compute_col_widths(df, width, COLUMN_WEIGHTS)
    row_height = 0.22 * inch
    right_align = set(RIGHT_ALIGN)

    def draw_row(values, y_pos, font="Helvetica"):
        c.setFont(font, 8.5)
        x_pos = x
        for idx, v in enumerate(values):
            col_name = col_names[idx]
            text = str(v) if v is not None else ""
            limit = MAX_CHARS.get(col_name, 30)
            if len(text) > limit:
                text = text[: max(0, limit - 1)] + "…"
            if col_name in right_align:
                c.drawRightString(x_pos + col_widths[idx] - 2, y_pos, text)
            else:
                c.drawString(x_pos, y_pos, text)
            x_pos += col_widths[idx]

    def draw_header(y_pos):
        c.setFillGray(0.9)
        c.rect(x, y_pos - 0.02 * inch, width, row_height, fill=1, stroke=0)
        c.setFillGray(0)
        draw_row(col_names, y_pos, font="Helvetica-Bold")
        c.line(x, y_pos - 0.04 * inch, x + width, y_pos - 0.04 * inch)

    draw_header(y)
    y -= row_height

    for row_index, (_, row) in enumerate(df.iterrows()):
        if row_index % 2 == 1:
            c.setFillGray(0.97)
            c.rect(x, y - 0.02 * inch, width, row_height, fill=1, stroke=0)
            c.setFillGray(0)
        draw_row(row.tolist(), y)
        y -= row_height
        if y < min_y:
            _draw_footer(c, page_width, footer_text)
            c.showPage()
            y = page_height - 0.5 * inch
            draw_header(y)
            y -= row_height
    return y


def export_pdf_report(
    report_title: str,
    detailed: pd.DataFrame,
    summary: pd.DataFrame,
    metadata: Dict[str, str],
    kpis: Dict[str, str],
    filename: str,
) -> Path:
    """Write a landscape A4 PDF: title, metadata, KPIs, summary table, then detailed scans."""
    ensure_exports_dir()
    path = EXPORTS_DIR / filename
    page_size = landscape(A4)
    width, height = page_size
    c = canvas.Canvas(str(path), pagesize=page_size)
    x = 0.5 * inch
    y = height - 0.5 * inch
    footer = f"{report_title} | Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}"

    c.setFont("Helvetica-Bold", 16)
    c.drawString(x, y, report_title)
    y -= 0.35 * inch

    c.setFont("Helvetica", 9.5)
    for key, value in metadata.items():
        c.drawString(x, y, f"{key}: {value}")
        y -= 0.2 * inch

    y -= 0.1 * inch
    c.setFont("Helvetica-Bold", 11)
    c.drawString(x, y, "KPIs")
    y -= 0.25 * inch
    c.setFont("Helvetica", 9.5)
    for key, value in kpis.items():
        c.drawString(x, y, f"{key}: {value}")
        y -= 0.2 * inch

    y -= 0.1 * inch
    c.setFont("Helvetica-Bold", 11)
    c.drawString(x, y, "Scans per Batch")
    y -= 0.25 * inch
    _draw_table(c, summary, x, y, width - inch, 0.5 * inch, page_size, footer)
    _draw_footer(c, width, footer)

    c.showPage()
    y = height - 0.5 * inch
    c.setFont("Helvetica-Bold", 12)
    c.drawString(x, y, "Scan Events")
    y -= 0.3 * inch
    _draw_table(c, detailed, x, y, width - inch, 0.5 * inch, page_size, footer)
    _draw_footer(c, width, footer)

    c.save()
    return path
