# procurement_client/services/returns.py

from typing import Any, Dict, List, Optional

from ..client import ApiClient
from ..client.normalize import unwrap_list

RETURN_REQUEST_ENDPOINTS = {
    "pending": "/returns/return-requests",
    "past": "/returns/past-return-requests",
}


def submit_return_form(client: ApiClient, items: List[Dict[str, Any]]) -> Any:
    """Returns {message, urfNo, status}."""
    return client.request("submit return form", "POST", "/returns/submit-return-form", json={"items": items})


def _with_status(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [{**row, "status": row.get("status") or "Unknown"} for row in rows]


def fetch_return_requests(client: ApiClient, kind: str = "pending") -> List[Dict[str, Any]]:
    """
    Return requests for the inventory team.

    kind is "pending", "past" or "all"; "all" issues both requests and
    concatenates pending before past.
    """
    if kind == "all":
        rows = []
        for k in ("pending", "past"):
            body = client.request(f"fetch {k} return requests", "GET", RETURN_REQUEST_ENDPOINTS[k])
            rows.extend(unwrap_list(body))
        return _with_status(rows)

    if kind not in RETURN_REQUEST_ENDPOINTS:
        raise ValueError(f"Unknown return request kind: {kind!r}")
    body = client.request(f"fetch {kind} return requests", "GET", RETURN_REQUEST_ENDPOINTS[kind])
    return _with_status(unwrap_list(body))


def fetch_user_return_requests(client: ApiClient) -> List[Dict[str, Any]]:
    body = client.request("fetch user's return requests", "GET", "/returns/user-return-requests")
    return [
        {**row, "status": row.get("status") or "Unknown", "user_id": row.get("user_id") or "unknown"}
        for row in unwrap_list(body)
    ]


def approve_return_request(client: ApiClient, urf_id: str, note: Optional[str] = None) -> Any:
    return client.request(
        "approve return request", "PUT", f"/returns/approve-return/{urf_id}", json={"note": note}
    )


def reject_return_request(client: ApiClient, urf_id: str, note: Optional[str] = None) -> Any:
    return client.request(
        "reject return request", "PUT", f"/returns/reject-return/{urf_id}", json={"note": note}
    )
