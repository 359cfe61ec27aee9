# procurement_client/services/purchase_orders.py

import logging
import re
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Union

from ..client import ApiClient, ApiError, PreconditionError
from ..client.normalize import duplicates, or_default, to_float, to_int, to_text
from ..config import settings
from ..events import PO_STATUS_UPDATED, BACKORDER_STATUS_UPDATED, StatusChanged
from ..models.purchase import Component, PurchaseOrder, ReceivingLine, ReceivingOrder
from ..session import PO_COMPONENT_VIEW_ROLES, PO_STATUS_UPDATE_ROLES
from ..utils.helpers import calendar_date, normalize_date_string

logger = logging.getLogger(__name__)

# Rows in this state are handled by the quality-inspection screens
QC_PENDING_STATUS = "Material Delivered & Quality Check Pending"

EXPECTED_BACKORDER_STATUSES = [
    re.compile(r"Returned"),
    re.compile(r"Warehouse In, Backordered \(\d+\)"),
    re.compile(r"Warehouse In, Backordered \(\d+\) Returned \(\d+\)"),
]


# ---------- raised purchase orders ----------

def _component(row: Mapping[str, Any]) -> Component:
    return Component(
        component_id=row.get("component_id"),
        po_number=str(row["po_number"]),
        mrf_no=to_text(row.get("mrf_no"), "-"),
        vendor_name=to_text(row.get("vendor_name"), "-"),
        po_created_at=or_default(row.get("po_created_at"), None),
        po_status=to_text(row.get("po_status"), "-"),
        expected_delivery_date=or_default(row.get("expected_delivery_date"), None),
        project_name=to_text(row.get("project_name"), "-"),
        direct_sequence=to_text(row.get("direct_sequence"), "-"),
        mpn=to_text(row.get("mpn")),
        item_description=to_text(row.get("item_description")),
        make=to_text(row.get("make")),
        part_no=to_text(row.get("part_no")),
        uom=to_text(row.get("uom")),
        on_hand_quantity=to_float(row.get("on_hand_quantity")),
        initial_requested_quantity=to_int(row.get("initial_requested_quantity")),
        updated_requested_quantity=to_int(row.get("updated_requested_quantity")),
        rate_per_unit=to_float(row.get("rate_per_unit")),
        amount=to_float(row.get("amount")),
        gst_amount=to_float(row.get("gst_amount")),
    )


def fetch_all_purchase_orders(client: ApiClient) -> List[Component]:
    """
    All raised PO lines, flattened (one entry per component).

    Rows without a PO number are dropped; numeric fields are coerced.
    Use group_purchase_orders() to rebuild the PO -> components tree.
    """
    body = client.request("fetch purchase orders", "GET", "/purchase-orders//purchase-orders/")

    if isinstance(body, list):
        rows = body
    elif isinstance(body, Mapping) and isinstance(body.get("data"), list):
        rows = body["data"]
    else:
        raise ApiError("Failed to fetch purchase orders: Unexpected response structure: data is not an array")

    repeated = duplicates(row.get("po_number") for row in rows)
    if repeated:
        logger.warning("Duplicate PO numbers detected: %s", repeated)

    return [_component(row) for row in rows if row.get("po_number")]


def group_purchase_orders(components: List[Component]) -> List[PurchaseOrder]:
    """Group flattened lines by po_number, in first-seen order."""
    grouped: Dict[str, PurchaseOrder] = {}
    for c in components:
        po = grouped.get(c.po_number)
        if po is None:
            po = PurchaseOrder(
                po_number=c.po_number,
                mrf_no=c.mrf_no or "-",
                vendor_name=c.vendor_name or "-",
                po_created_at=c.po_created_at,
                po_status=c.po_status or "-",
                expected_delivery_date=c.expected_delivery_date,
            )
            grouped[c.po_number] = po
        po.components.append(c)
    return list(grouped.values())


def _check_delivery_date(expected_delivery_date: Any, today: date) -> str:
    day = calendar_date(expected_delivery_date)
    if day is None or day < today:
        raise PreconditionError("Expected delivery date must be a valid date and cannot be in the past")
    return day.isoformat()


def _totals(body: Any) -> Dict[str, Any]:
    """The server's recomputed line totals, with or without a `data` wrapper."""
    if isinstance(body, Mapping) and isinstance(body.get("data"), Mapping):
        body = body["data"]
    result = dict(body) if isinstance(body, Mapping) else {}
    result["amount"] = to_float(result.get("amount"))
    result["gst_amount"] = to_float(result.get("gst_amount"))
    return result


def update_purchase_order(
    client: ApiClient,
    po_number: str,
    component_id: Union[int, str],
    expected_delivery_date: Any,
    updated_requested_quantity: Any,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Change the delivery date and ordered quantity of one PO line.

    Returns the server's authoritative `amount` / `gst_amount`.
    """
    if not po_number or not component_id or not expected_delivery_date or updated_requested_quantity is None:
        raise PreconditionError(
            "Missing required fields: po_number, component_id, expected_delivery_date, "
            "and updated_requested_quantity are required"
        )
    day = _check_delivery_date(expected_delivery_date, today or settings.today())

    try:
        quantity = float(updated_requested_quantity)
    except (TypeError, ValueError):
        quantity = float("nan")
    if not quantity > 0:
        raise PreconditionError("Updated requested quantity must be a positive number")

    body = client.request(
        "update purchase order",
        "PUT",
        "/purchase-orders/update",
        json={
            "po_number": po_number,
            "component_id": component_id,
            "expected_delivery_date": day,
            "updated_requested_quantity": updated_requested_quantity,
        },
        timeout=settings.update_timeout_seconds,
    )
    logger.info("Updated PO %s line %s", po_number, component_id)
    return _totals(body)


# ---------- backordered / returned ----------

def _is_expected_backorder_status(status: Optional[str]) -> bool:
    return bool(status) and any(p.fullmatch(status) for p in EXPECTED_BACKORDER_STATUSES)


def fetch_backordered_returned_pos(client: ApiClient) -> List[Component]:
    """PO lines currently in a backordered and/or returned state."""
    body = client.request(
        "fetch backordered/returned purchase orders", "GET", "/purchase-orders/backordered-returned"
    )
    rows = body.get("data") if isinstance(body, Mapping) else None
    if not isinstance(rows, list):
        rows = []

    result = []
    for row in rows:
        if not _is_expected_backorder_status(row.get("po_status")):
            logger.warning(
                "Unexpected status for PO %s: %s", row.get("po_number"), row.get("po_status")
            )
        result.append(
            Component(
                component_id=or_default(row.get("component_id"), None),
                po_number=to_text(row.get("po_number")),
                mrf_no=to_text(row.get("mrf_no")),
                vendor_name=to_text(row.get("vendor_name")),
                po_created_at=to_text(row.get("po_created_at")),
                po_status=to_text(row.get("po_status"), "Unknown"),
                expected_delivery_date=to_text(row.get("expected_delivery_date")),
                project_name=to_text(row.get("project_name")),
                mpn=to_text(row.get("mpn")),
                item_description=to_text(row.get("item_description")),
                make=to_text(row.get("make")),
                part_no=to_text(row.get("part_no")),
                uom=to_text(row.get("uom")),
                on_hand_quantity=to_float(row.get("on_hand_quantity")),
                initial_requested_quantity=to_int(row.get("initial_requested_quantity")),
                updated_requested_quantity=to_int(row.get("updated_requested_quantity")),
                rate_per_unit=to_float(row.get("rate_per_unit")),
                amount=to_float(row.get("amount")),
                gst_amount=to_float(row.get("gst_amount")),
                backorder_sequence=or_default(row.get("backorder_sequence"), None),
                pending_quantity=to_float(row.get("pending_quantity")),
                return_sequence=or_default(row.get("return_sequence"), None),
                return_reordered_quantity=to_float(row.get("return_reordered_quantity")),
                received_quantity=to_float(row.get("received_quantity")),
            )
        )
    return result


def update_backorder_item(
    client: ApiClient,
    po_number: str,
    component_id: Union[int, str],
    expected_delivery_date: Any,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Move the expected delivery date of a backordered line."""
    if not po_number or not component_id or not expected_delivery_date:
        raise PreconditionError(
            "Missing required fields: po_number, component_id, and expected_delivery_date are required"
        )
    day = _check_delivery_date(expected_delivery_date, today or settings.today())

    body = client.request(
        "update backorder item",
        "PUT",
        "/purchase-orders/backorder-items/update",
        json={"po_number": po_number, "component_id": component_id, "expected_delivery_date": day},
        timeout=settings.update_timeout_seconds,
    )
    logger.info("Updated backorder line %s of PO %s", component_id, po_number)
    return dict(body) if isinstance(body, Mapping) else {}


# ---------- receiving side (delivery / QC pending) ----------

def fetch_purchase_order_components(client: ApiClient) -> List[ReceivingLine]:
    client.session.require_role(
        PO_COMPONENT_VIEW_ROLES,
        "Unauthorized: Only inventory team, purchase head, or admin can access purchase order components",
    )
    body = client.request(
        "fetch purchase order components", "GET", "/nc-requests/purchase-order-components"
    )
    rows = (body.get("data") if isinstance(body, Mapping) else None) or []
    if not isinstance(rows, list):
        raise ApiError(
            "Failed to fetch purchase order components: "
            "Expected an array of purchase order components, but received an invalid format."
        )

    return [
        ReceivingLine(
            component_id=or_default(row.get("component_id"), None),
            po_number=to_text(row.get("po_number")),
            mrf_no=to_text(row.get("mrf_no")),
            mrr_no=to_text(row.get("mrr_no")),
            vendor_name=to_text(row.get("vendor_name")),
            created_at=to_text(row.get("created_at")),
            mpn=to_text(row.get("mpn")),
            item_description=to_text(row.get("item_description")),
            part_no=to_text(row.get("part_no")),
            make=to_text(row.get("make")),
            uom=to_text(row.get("uom")),
            updated_requested_quantity=to_float(row.get("updated_requested_quantity")),
            expected_delivery_date=to_text(row.get("expected_delivery_date")),
            status=to_text(row.get("status"), "Material Delivery Pending"),
            backorder_sequence=to_text(row.get("backorder_sequence")),
            backorder_pending_quantity=to_float(row.get("backorder_pending_quantity")),
            return_sequence=to_text(row.get("return_sequence")),
            return_reordered_quantity=to_float(row.get("return_reordered_quantity")),
            location=to_text(row.get("location")),
        )
        for row in rows
    ]


def group_receiving_lines(lines: List[ReceivingLine]) -> Dict[str, Any]:
    """
    Shape the receiving view: QC-pending rows dropped, POs sorted by number
    (descending), one line per (po_number, mpn), plus which optional
    columns carry any data.
    """
    visible = [line for line in lines if line.status != QC_PENDING_STATUS]

    orders: Dict[str, ReceivingOrder] = {}
    backorder_sequences = []
    for line in visible:
        if line.po_number not in orders:
            orders[line.po_number] = ReceivingOrder(
                po_number=line.po_number,
                mrf_no=line.mrf_no or "-",
                vendor_name=line.vendor_name or "-",
                created_at=line.created_at or "-",
                status=line.status or "Material Delivery Pending",
            )
        if line.backorder_sequence and line.backorder_sequence != "N/A":
            backorder_sequences.append(
                {"po_number": line.po_number, "backorder_sequence": line.backorder_sequence}
            )

    unique: Dict[tuple, ReceivingLine] = {}
    for line in visible:
        unique.setdefault((line.po_number, line.mpn), line)
    components = list(unique.values())

    columns = {
        "backorder_sequence": any(
            c.backorder_sequence != "N/A" and "material delivery pending" in c.status
            for c in components
        ),
        "backorder_pending_quantity": any(c.backorder_pending_quantity for c in components),
        "return_sequence": any(c.return_sequence != "N/A" for c in components),
        "return_reordered_quantity": any(c.return_reordered_quantity for c in components),
    }

    return {
        "orders": sorted(orders.values(), key=lambda o: o.po_number.casefold(), reverse=True),
        "components": components,
        "backorder_sequences": backorder_sequences,
        "columns": columns,
    }


def update_purchase_order_status(client: ApiClient, po_number: str, mpn: str, status: str) -> Any:
    client.session.require_role(
        PO_STATUS_UPDATE_ROLES,
        "Unauthorized: Only inventory team or admin can update purchase order status",
    )
    body = client.request(
        "update purchase order status",
        "POST",
        "/nc-requests/update-po-status",
        json={"po_number": po_number, "mpn": mpn, "status": status},
    )
    client.bus.publish(
        StatusChanged(PO_STATUS_UPDATED, key=po_number, status=status, payload={"mpn": mpn})
    )
    return body


def update_backorder_status(
    client: ApiClient,
    po_number: str,
    mpn: str,
    backorder_sequence: Any,
    status: str,
) -> Any:
    if not client.session.is_authenticated:
        raise PreconditionError("No token found")
    body = client.request(
        "update backorder status",
        "POST",
        "/nc-requests/update-bo-status",
        json={
            "po_number": po_number,
            "mpn": mpn,
            "backorder_sequence": backorder_sequence,
            "status": status,
        },
    )
    client.bus.publish(
        StatusChanged(
            BACKORDER_STATUS_UPDATED,
            key=po_number,
            status=status,
            payload={"mpn": mpn, "backorder_sequence": backorder_sequence},
        )
    )
    return body


def update_receiving_status(client: ApiClient, line: ReceivingLine, status: str) -> Any:
    """
    Route a status change to the PO or the backorder endpoint depending on
    where the line currently is.
    """
    if line.status == "Material Delivery Pending":
        return update_purchase_order_status(client, line.po_number, line.mpn, status)
    if "material delivery pending" in line.status:
        return update_backorder_status(
            client, line.po_number, line.mpn, line.backorder_sequence, status
        )
    raise PreconditionError("Invalid status for update")
