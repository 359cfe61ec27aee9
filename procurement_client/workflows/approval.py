# procurement_client/workflows/approval.py
"""
Approval review of material requests by department heads.
"""

import logging
from typing import Any, Dict, List, Optional

from ..client import ApiClient
from ..client.normalize import to_float
from ..models.approval import ApprovalLine, ApprovalRequest
from ..services.approvals import (
    approve_request,
    fetch_approval_requests,
    fetch_past_approved_requests,
    fetch_request_details,
    reject_request,
)
from .screen import Screen

logger = logging.getLogger(__name__)

REQUEST_FILTERS = ("all", "own", "employee")


class ApprovalScreen(Screen):

    def __init__(self, client: ApiClient):
        super().__init__(client)
        self.requests: List[ApprovalRequest] = []
        self.past_requests: List[ApprovalRequest] = []
        self.filter_type = "all"
        self.show_past = False
        self.selected: Optional[ApprovalRequest] = None
        self.details: List[ApprovalLine] = []

    # --- lists ---

    def load(self) -> bool:
        self.error = None
        requests = self._call(
            fetch_approval_requests, self.client, failure="Failed to fetch approval requests."
        )
        if requests is None:
            return False
        self.requests = requests
        self.show_past = False
        return True

    def load_past(self) -> bool:
        self.error = None
        self.show_past = True
        past = self._call(
            fetch_past_approved_requests, self.client, failure="Failed to fetch past approved requests."
        )
        self.past_requests = past or []
        return past is not None

    def set_filter(self, filter_type: str) -> None:
        if filter_type not in REQUEST_FILTERS:
            raise ValueError(f"Unknown request filter: {filter_type!r}")
        self.filter_type = filter_type

    @property
    def visible_requests(self) -> List[ApprovalRequest]:
        if self.show_past:
            return self.past_requests
        user_id = self.session.user_id
        if self.filter_type == "own":
            return [r for r in self.requests if r.user_id == user_id]
        if self.filter_type == "employee":
            return [r for r in self.requests if r.user_id != user_id]
        return list(self.requests)

    # --- details ---

    @property
    def is_past(self) -> bool:
        return self.show_past

    @property
    def can_edit_quantities(self) -> bool:
        return self.session.is_head and not self.is_past

    def select(self, request: ApprovalRequest) -> bool:
        self.selected = request
        self.error = None
        details = self._call(
            fetch_request_details, self.client, request.umi, failure="Failed to fetch request details."
        )
        if details is None:
            self.details = []
            return False
        if not details:
            self.error = "No details available for this request."
        self.details = details
        return bool(details)

    def set_requested_qty(self, key: int, value: Any) -> Optional[ApprovalLine]:
        """Heads only, never on past requests; bounded to [0, on hand]."""
        if not self.can_edit_quantities:
            return None
        for line in self.details:
            if line.key == key:
                line.requested_qty = min(max(to_float(value), 0), line.on_hand_qty)
                return line
        return None

    def updated_items(self) -> List[Dict[str, Any]]:
        return [
            {"basket_id": line.basket_id, "updated_requestedqty": line.requested_qty}
            for line in self.details
        ]

    def _close(self, umi: str) -> None:
        self.requests = [r for r in self.requests if r.umi != umi]
        self.selected = None
        self.details = []

    def approve(self, note: Optional[str] = None, priority: Optional[str] = None) -> bool:
        if self.selected is None or self.is_past:
            return False
        umi = self.selected.umi
        done = self._call(self._approve, umi, note, priority, failure="Failed to approve request.")
        if not done:
            return False
        logger.info("Approved request %s", umi)
        self._close(umi)
        return True

    def reject(self, note: Optional[str] = None) -> bool:
        if self.selected is None or self.is_past:
            return False
        umi = self.selected.umi
        done = self._call(self._reject, umi, note, failure="Failed to reject request.")
        if not done:
            return False
        logger.info("Rejected request %s", umi)
        self._close(umi)
        return True

    def _approve(self, umi: str, note: Optional[str], priority: Optional[str]) -> bool:
        approve_request(self.client, umi, self.updated_items(), note, priority)
        return True

    def _reject(self, umi: str, note: Optional[str]) -> bool:
        reject_request(self.client, umi, note)
        return True
