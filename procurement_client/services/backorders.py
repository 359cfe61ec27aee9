# procurement_client/services/backorders.py

import logging
from typing import Any, Iterable, List, Mapping, Optional, Union
from urllib.parse import quote

from ..client import ApiClient, PreconditionError
from ..client.normalize import or_default, to_float, to_text, unwrap_list
from ..models.backorder import BackorderItem

logger = logging.getLogger(__name__)

MATERIAL_IN_STATUSES = ("QC Cleared", "QC Rejected")


def _item(row: Mapping[str, Any]) -> BackorderItem:
    return BackorderItem(
        backorder_number=to_text(row.get("po_number")),
        mpn=to_text(row.get("mpn")),
        item_description=to_text(row.get("item_description")),
        part_no=to_text(row.get("mpn_received")),
        make=to_text(row.get("make_received")),
        uom=to_text(row.get("uom")),
        received_quantity=to_float(row.get("received_quantity")),
        passed_quantity=to_float(row.get("passed_quantity")),
        failed_quantity=to_float(row.get("failed_quantity")),
        reordered_quantity=to_float(row.get("reordered_quantity")),
        material_in_quantity=to_float(row.get("material_in_quantity")),
        status=to_text(row.get("status"), "Unknown"),
        expected_delivery_date=to_text(row.get("expected_delivery_date")),
        component_id=or_default(row.get("component_id"), None),
        location=to_text(row.get("location")),
        mrr_no=to_text(row.get("mrr_no"), "-"),
        note=to_text(row.get("note"), "-"),
        vendor_name=to_text(row.get("vendor_name"), "Unknown Vendor"),
        mrf_no=to_text(row.get("mrf_no"), "-"),
        coc_received=bool(row.get("coc_received")),
        date_code=to_text(row.get("date_code")),
        lot_code=to_text(row.get("lot_code")),
        return_sequence=or_default(row.get("return_sequence"), None),
        backorder_sequence=or_default(row.get("backorder_sequence"), None),
    )


def fetch_backorder_items(client: ApiClient) -> List[BackorderItem]:
    """Quality-inspected backorder lines (QC Cleared or QC Rejected)."""
    body = client.request(
        "fetch backorder items",
        "GET",
        "/quality-inspection/components",
        params={"status": list(MATERIAL_IN_STATUSES)},
    )
    return [_item(row) for row in unwrap_list(body)]


def update_backorder_material_in(
    client: ApiClient,
    mpn: str,
    material_in_quantity: Union[int, float, None],
    mrf_no: Optional[str] = None,
) -> Any:
    """Record the cumulative material-in quantity of a backorder line."""
    if not isinstance(mpn, str) or not mpn.strip():
        raise PreconditionError("Invalid or missing mpn")
    if material_in_quantity is None:
        raise PreconditionError("Material in quantity is required")
    if material_in_quantity < 0:
        raise PreconditionError("Material in quantity must be a non-negative number")

    body = client.request(
        "update material in",
        "PUT",
        f"/backorder-items/{quote(mpn, safe='')}/material-in",
        json={"material_in_quantity": material_in_quantity, "mrf_no": mrf_no or None},
    )
    logger.info("Material in for %s set to %s", mpn, material_in_quantity)
    return body


def _payload(components: Iterable[Any]) -> List[Any]:
    return [c.model_dump() if isinstance(c, BackorderItem) else c for c in components]


def submit_backorder(client: ApiClient, components: Iterable[Any]) -> Any:
    """Raise a new backorder for the short-delivered lines."""
    return client.request("submit backorder", "POST", "/backorder", json={"components": _payload(components)})


def submit_return(client: ApiClient, components: Iterable[Any]) -> Any:
    """Send QC-rejected lines back to the vendor."""
    return client.request("submit return", "POST", "/return", json={"components": _payload(components)})
