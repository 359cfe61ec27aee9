# procurement_client/api/purchase_orders.py

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ..client import ApiClient
from ..config import settings
from ..models.purchase import PurchaseOrder
from ..services.purchase_orders import (
    fetch_all_purchase_orders,
    fetch_backordered_returned_pos,
    fetch_purchase_order_components,
    group_purchase_orders,
    group_receiving_lines,
    update_purchase_order,
)
from ..views.delivery import classify, due_today
from ..views.listing import ASC, DESC, PURCHASE_ORDER_SPEC, FilterState, ListView
from .deps import get_client

router = APIRouter(prefix="/api/purchase-orders", tags=["purchase-orders"])


class LineUpdate(BaseModel):
    expected_delivery_date: str
    updated_requested_quantity: int


def _summary(po: PurchaseOrder) -> Dict[str, Any]:
    """PO header plus its delivery badge, without the lines."""
    data = po.model_dump(exclude={"components"})
    data["delivery_status"] = classify(po.expected_delivery_date, po.po_status, settings.today()).to_dict()
    data["component_count"] = len(po.components)
    return data


@router.get("")
def list_purchase_orders(
    q: str = "",
    date: str = "",
    mrf_only: bool = False,
    sort: Optional[str] = "po_number",
    direction: str = Query(DESC, pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    client: ApiClient = Depends(get_client),
):
    """
    Raised POs after text / created-date / MRF-only filters, sorted and paged.
    """
    components = fetch_all_purchase_orders(client)
    view = ListView(
        spec=PURCHASE_ORDER_SPEC,
        sort_key=sort,
        sort_direction=direction,
        page_size=page_size or settings.page_size,
    )
    view.set_data(group_purchase_orders(components), components)
    view.filters = FilterState(text=q, date=date, flag=mrf_only)
    view.refresh()
    view.go_to_page(page)

    return {
        "total": len(view.rows),
        "page": view.page,
        "total_pages": view.total_pages,
        "items": [_summary(po) for po in view.page_rows],
    }


@router.get("/due-today")
def list_due_today(client: ApiClient = Depends(get_client)):
    """POs expected today (vendor reminder list)."""
    orders = group_purchase_orders(fetch_all_purchase_orders(client))
    return [_summary(po) for po in due_today(orders, settings.today())]


@router.get("/backordered-returned")
def list_backordered_returned(client: ApiClient = Depends(get_client)):
    components = fetch_backordered_returned_pos(client)
    return [
        {**_summary(po), "components": [c.model_dump() for c in po.components]}
        for po in group_purchase_orders(components)
    ]


@router.get("/receiving")
def receiving_view(client: ApiClient = Depends(get_client)):
    """Lines waiting for delivery, grouped per PO (QC-pending lines left out)."""
    shaped = group_receiving_lines(fetch_purchase_order_components(client))
    return {
        "orders": [o.model_dump() for o in shaped["orders"]],
        "components": [c.model_dump() for c in shaped["components"]],
        "backorder_sequences": shaped["backorder_sequences"],
        "columns": shaped["columns"],
    }


@router.get("/{po_number}/components")
def list_components(
    po_number: str,
    sort: Optional[str] = None,
    direction: str = Query(ASC, pattern="^(asc|desc)$"),
    client: ApiClient = Depends(get_client),
):
    components = [c for c in fetch_all_purchase_orders(client) if c.po_number == po_number]
    if not components:
        raise HTTPException(status_code=404, detail=f"PO {po_number} not found")

    view = ListView(spec=PURCHASE_ORDER_SPEC, sort_key=sort, sort_direction=direction)
    orders = group_purchase_orders(components)
    view.set_data(orders, components)
    view.drill_into(orders[0])
    return [c.model_dump() for c in view.rows]


@router.put("/{po_number}/components/{component_id}")
def update_line(
    po_number: str,
    component_id: str,
    body: LineUpdate,
    client: ApiClient = Depends(get_client),
) -> Dict[str, Any]:
    """Change one line's delivery date and quantity; returns the server totals."""
    return update_purchase_order(
        client,
        po_number,
        int(component_id) if component_id.isdigit() else component_id,
        body.expected_delivery_date,
        body.updated_requested_quantity,
        today=settings.today(),
    )

