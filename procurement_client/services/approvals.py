# procurement_client/services/approvals.py

import logging
from typing import Any, Dict, List, Optional

from ..client import ApiClient, ApiError
from ..client.normalize import to_float, unwrap_list
from ..models.approval import ApprovalLine, ApprovalRequest

logger = logging.getLogger(__name__)


def _requests(rows: List[Dict[str, Any]], date_key: str = "created_at") -> List[ApprovalRequest]:
    return [
        ApprovalRequest(
            key=i + 1,
            umi=str(row.get("umi")),
            reference=str(row.get("umi")),
            user_name=row.get("user_name"),
            user_id=row.get("user_id"),
            date=row.get(date_key) or row.get("date"),
            status=row.get("status"),
        )
        for i, row in enumerate(rows)
    ]


def fetch_approval_requests(client: ApiClient) -> List[ApprovalRequest]:
    body = client.request("fetch approval requests", "GET", "/approvals/approval-requests")
    return _requests(unwrap_list(body))


def fetch_past_approved_requests(client: ApiClient) -> List[ApprovalRequest]:
    body = client.request("fetch past approved requests", "GET", "/approvals/past-approved")
    return _requests(unwrap_list(body))


def fetch_request_details(client: ApiClient, umi: str) -> List[ApprovalLine]:
    body = client.request("fetch request details", "GET", f"/approvals/request-details/{umi}")
    return [
        ApprovalLine(
            key=i + 1,
            basket_id=row.get("basket_id"),
            component_id=row.get("component_id"),
            item_description=row.get("item_description"),
            mpn=row.get("mpn"),
            on_hand_qty=to_float(row.get("on_hand_quantity")),
            requested_qty=to_float(row.get("updated_requestedqty")),
        )
        for i, row in enumerate(unwrap_list(body))
    ]


def approve_request(
    client: ApiClient,
    umi: str,
    updated_items: List[Dict[str, Any]],
    note: Optional[str] = None,
    priority: Optional[str] = None,
) -> Any:
    return client.request(
        "approve request",
        "PUT",
        f"/approvals/approve-request/{umi}",
        json={"updatedItems": updated_items, "note": note, "priority": priority},
    )


def reject_request(client: ApiClient, umi: str, note: Optional[str] = None) -> Any:
    return client.request("reject request", "PUT", f"/approvals/reject-request/{umi}", json={"note": note})


def fetch_mrf_existence(client: ApiClient, umi: str) -> Dict[str, Any]:
    """
    Whether an MRF was already raised for this UMI.
    Lookup failures read as "no MRF" instead of raising.
    """
    try:
        body = client.request(f"check MRF existence for UMI {umi}", "GET", f"/approvals/check-mrf/{umi}")
    except ApiError:
        return {"exists": False, "mrf_no": None}
    if not isinstance(body, dict):
        return {"exists": False, "mrf_no": None}
    return {"exists": bool(body.get("exists")), "mrf_no": body.get("mrf_no")}
