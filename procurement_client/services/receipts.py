# procurement_client/services/receipts.py
"""
Receipt confirmations. Each one moves a request to its next status on the
backend and tells the rest of the client about it through the event bus.
"""

from typing import Any

from ..client import ApiClient
from ..events import (
    MRF_RECEIPT_CONFIRMED,
    NOTIFICATION_CONFIRMED,
    RECEIPT_CONFIRMED,
    StatusChanged,
)


def confirm_receipt(client: ApiClient, umi: str) -> Any:
    body = client.request("confirm receipt", "POST", f"/nc-requests/confirm-receipt/{umi}", json={})
    client.bus.publish(StatusChanged(RECEIPT_CONFIRMED, key=umi, status="Receiving Pending"))
    return body


def confirm_mrf_receipt(client: ApiClient, mrf_no: str) -> Any:
    body = client.request("confirm MRF receipt", "POST", f"/mrf-approvals/confirm-receipt/{mrf_no}", json={})
    client.bus.publish(StatusChanged(MRF_RECEIPT_CONFIRMED, key=mrf_no, status="Request Accepted"))
    return body


def confirm_notification_receipt(client: ApiClient, umi: str) -> Any:
    body = client.request("confirm notification receipt", "POST", f"/notifications/confirm/{umi}", json={})
    client.bus.publish(StatusChanged(NOTIFICATION_CONFIRMED, key=umi, status="Issued"))
    return body
