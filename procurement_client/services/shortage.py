# procurement_client/services/shortage.py
"""
BOM shortage calculator.

A bill of materials is read from an Excel/CSV sheet, every line is looked
up against inventory and the shortage for a production run is:

    total_required = quantity_required * production_quantity
    shortage       = max(total_required - on_hand, 0)
"""

import io
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional, Union

import pandas as pd
from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from ..client import ApiClient, ApiError
from ..client.normalize import to_float
from ..models.bom import BomLine, PendingIssueRequest, ShortageLine
from .inventory import fetch_pending_issue_requests, search_component

logger = logging.getLogger(__name__)

BOM_COLUMNS = {
    "ITEM DESCRIPTION": "description",
    "MPN": "mpn",
    "PART NO": "part_no",
    "MAKE": "make",
    "QTY": "quantity_required",
}

SHORTAGE_FILTERS = ("all", "shortage", "no-shortage")

PENDING_STATUS = "Inventory Approval Pending"

_NON_PRINTABLE = re.compile(r"[^\x20-\x7E]")


# ---------- reading the sheet ----------

def _clean_header(name: Any) -> str:
    return _NON_PRINTABLE.sub("", str(name)).strip()


def _quantity(raw: str, row_number: int) -> float:
    text = raw.strip()
    if not text:
        return 1.0
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"Row {row_number}: QTY {raw!r} is not a number")


def read_bom(source: Union[str, Path, bytes, io.IOBase], filename: Optional[str] = None) -> List[BomLine]:
    """
    Parse a BOM sheet (first worksheet of an .xlsx/.xls, or a .csv).

    Every cell is read as text; a blank QTY counts as 1.
    """
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    name = (filename or (str(source) if isinstance(source, (str, Path)) else "")).lower()

    if name.endswith(".csv"):
        df = pd.read_csv(source, dtype=str, keep_default_na=False)
    else:
        df = pd.read_excel(source, sheet_name=0, dtype=str, keep_default_na=False)

    df.columns = [_clean_header(c) for c in df.columns]
    df = df.replace(r"^\s*$", "", regex=True)
    df = df[(df != "").any(axis=1)]

    lines = []
    for i, (_, row) in enumerate(df.iterrows(), start=1):
        values = {field: str(row.get(column, "") or "") for column, field in BOM_COLUMNS.items()}
        lines.append(
            BomLine(
                key=i,
                description=values["description"],
                mpn=values["mpn"],
                part_no=values["part_no"],
                make=values["make"],
                quantity_required=_quantity(values["quantity_required"], i),
            )
        )
    logger.info("Read %d BOM lines", len(lines))
    return lines


# ---------- shortage ----------

def _with_totals(line: BomLine, on_hand: float, production_quantity: int, **extra) -> ShortageLine:
    total = line.quantity_required * production_quantity
    return ShortageLine(
        **line.model_dump(include=set(BomLine.model_fields)),
        on_hand_quantity=on_hand,
        total_required=total,
        shortage=max(total - on_hand, 0),
        **extra,
    )


def _check_production_quantity(production_quantity: int) -> None:
    if production_quantity < 1:
        raise ValueError("Production quantity must be at least 1")


def lookup_line(client: ApiClient, line: BomLine, production_quantity: int = 1) -> ShortageLine:
    """
    Look one BOM line up in inventory (by MPN when present, else by
    description). A failed lookup keeps the line with nothing on hand.
    """
    _check_production_quantity(production_quantity)
    kind = "mpn" if line.mpn else "description"
    try:
        match = search_component(client, line.mpn or line.description, kind)
    except ApiError as e:
        logger.warning("Failed to fetch data for %s: %s", line.description or line.mpn, e)
        return _with_totals(line, 0, production_quantity, component_id=None, lookup_failed=True)

    return _with_totals(
        line,
        to_float(match.get("on_hand_quantity")),
        production_quantity,
        component_id=match.get("component_id") or None,
    )


def calculate_shortage(client: ApiClient, lines: List[BomLine], production_quantity: int = 1) -> List[ShortageLine]:
    """One inventory lookup per line, in sheet order."""
    _check_production_quantity(production_quantity)
    return [lookup_line(client, line, production_quantity) for line in lines]


def recalculate(lines: List[ShortageLine], production_quantity: int) -> List[ShortageLine]:
    """New production quantity over already looked-up lines (no requests)."""
    _check_production_quantity(production_quantity)
    return [
        _with_totals(
            line,
            line.on_hand_quantity,
            production_quantity,
            component_id=line.component_id,
            lookup_failed=line.lookup_failed,
        )
        for line in lines
    ]


def filter_shortage(lines: List[ShortageLine], status: str = "all", query: str = "") -> List[ShortageLine]:
    if status not in SHORTAGE_FILTERS:
        raise ValueError(f"Unknown shortage filter: {status!r}")

    if status == "shortage":
        lines = [l for l in lines if l.shortage > 0]
    elif status == "no-shortage":
        lines = [l for l in lines if l.shortage == 0]

    if query:
        q = query.lower()
        lines = [
            l for l in lines
            if q in l.description.lower() or q in l.mpn.lower() or (l.part_no and q in l.part_no.lower())
        ]
    return lines


def pending_requests(client: ApiClient) -> List[PendingIssueRequest]:
    """Issue requests still waiting on inventory approval."""
    rows = [r for r in fetch_pending_issue_requests(client) if r.get("status") == PENDING_STATUS]
    return [
        PendingIssueRequest(
            key=i + 1,
            umi=r.get("umi"),
            component_id=r.get("component_id"),
            mpn=r.get("mpn") or "N/A",
            description=r.get("item_description") or "N/A",
            requested_quantity=to_float(r.get("updated_requestedqty")),
            requested_by=r.get("user_name") or "N/A",
            date=r.get("date"),
        )
        for i, r in enumerate(rows)
    ]


# ---------- PDF report ----------

REPORT_HEADERS = [
    "S.No", "Description", "MPN", "Part No", "Make",
    "Qty Required", "Total Required", "On Hand", "Shortage",
]
# x offsets (points) of each column
REPORT_COLUMNS = [30, 60, 200, 290, 360, 420, 470, 520, 560]

HEADER_FILL = HexColor("#0066CC")
STRIPE_FILL = HexColor("#F0F0F0")
ROW_HEIGHT = 14


def report_filename(now: Optional[datetime] = None) -> str:
    return f"Shortage_Report_{(now or datetime.now()).strftime('%Y%m%d_%H%M%S')}.pdf"


def _fmt(value: float) -> str:
    return f"{value:g}"


def _clip(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 3] + "..."


def build_report_pdf(lines: List[ShortageLine], generated_at: Optional[datetime] = None) -> bytes:
    """Render the (already filtered) shortage lines as a one-table PDF."""
    generated_at = generated_at or datetime.now()
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    c.setTitle("BOM Shortage Report")
    width, height = A4

    def header_row(y: float) -> None:
        c.setFillColor(HEADER_FILL)
        c.rect(REPORT_COLUMNS[0] - 4, y - 4, width - 2 * (REPORT_COLUMNS[0] - 4), ROW_HEIGHT, fill=1, stroke=0)
        c.setFillColor(HexColor("#FFFFFF"))
        c.setFont("Helvetica-Bold", 7)
        for x, title in zip(REPORT_COLUMNS, REPORT_HEADERS):
            c.drawString(x, y, title)
        c.setFillColor(HexColor("#000000"))
        c.setFont("Helvetica", 7)

    c.setFont("Helvetica-Bold", 16)
    c.drawString(40, height - 50, "BOM Shortage Report")
    c.setFont("Helvetica", 10)
    c.drawString(40, height - 66, f"Date: {generated_at.strftime('%Y-%m-%d')}")

    y = height - 95
    header_row(y)
    y -= ROW_HEIGHT

    for index, line in enumerate(lines, start=1):
        if y < 40:
            c.showPage()
            y = height - 50
            header_row(y)
            y -= ROW_HEIGHT
        if index % 2 == 0:
            c.setFillColor(STRIPE_FILL)
            c.rect(REPORT_COLUMNS[0] - 4, y - 4, width - 2 * (REPORT_COLUMNS[0] - 4), ROW_HEIGHT, fill=1, stroke=0)
            c.setFillColor(HexColor("#000000"))
        cells = [
            str(index),
            _clip(line.description or "-", 30),
            _clip(line.mpn or "-", 18),
            _clip(line.part_no or "-", 14),
            _clip(line.make or "-", 12),
            _fmt(line.quantity_required),
            _fmt(line.total_required),
            _fmt(line.on_hand_quantity),
            _fmt(line.shortage),
        ]
        for x, text in zip(REPORT_COLUMNS, cells):
            c.drawString(x, y, text)
        y -= ROW_HEIGHT

    c.save()
    return buffer.getvalue()
