# procurement_client/workflows/components_screen.py
"""
Receiving view of the inventory team: PO lines still waiting for the
material (first delivery or a backorder), and the move to quality check
once it arrives.
"""

import logging
from typing import Any, Dict, List, Optional

from ..client import ApiClient
from ..models.purchase import ReceivingLine, ReceivingOrder
from ..services.purchase_orders import (
    QC_PENDING_STATUS,
    fetch_purchase_order_components,
    group_receiving_lines,
    update_receiving_status,
)
from ..session import PO_COMPONENT_VIEW_ROLES
from ..views.listing import RECEIVING_SPEC, ListView
from .screen import Screen

logger = logging.getLogger(__name__)


class ComponentsScreen(Screen):

    def __init__(self, client: ApiClient, debounce_wait: Optional[float] = None):
        super().__init__(client)
        self.orders: List[ReceivingOrder] = []
        self.components: List[ReceivingLine] = []
        self.backorder_sequences: List[Dict[str, Any]] = []
        self.columns: Dict[str, bool] = {}
        self.view = ListView(spec=RECEIVING_SPEC)
        self.search = self.debounce(self.view.set_text, debounce_wait)
        self.pending: Optional[ReceivingLine] = None

    def load(self) -> bool:
        self.error = None
        if not self.session.is_authenticated:
            self.error = "No authentication token found. Please log in."
            return False
        if self.session.role not in PO_COMPONENT_VIEW_ROLES:
            self.error = "Unauthorized: Only inventory team, purchase head, or admin can access this page."
            return False

        lines = self._call(fetch_purchase_order_components, self.client)
        if lines is None:
            return False
        shaped = group_receiving_lines(lines)
        self.orders = shaped["orders"]
        self.components = shaped["components"]
        self.backorder_sequences = shaped["backorder_sequences"]
        self.columns = shaped["columns"]
        self.view.set_data(self.orders, self.components)
        if not self.components:
            self.error = (
                'No purchase order components found with status "Material Delivery Pending" '
                "or related statuses."
            )
        return True

    def open(self, order: ReceivingOrder) -> None:
        self.view.drill_into(order)

    def back(self) -> None:
        self.view.back()

    # --- status change, with a confirmation step ---

    def request_status_update(self, line: ReceivingLine) -> None:
        self.pending = line

    def cancel_status_update(self) -> None:
        self.pending = None

    def confirm_status_update(self, status: str = QC_PENDING_STATUS) -> Optional[ReceivingLine]:
        if self.pending is None:
            return None
        line, self.pending = self.pending, None
        self.error = None

        # the call may return an empty body, so success is tracked separately
        done = self._call(self._update, line, status)
        if not done:
            return None

        updated = line.model_copy(update={"status": status})
        same = lambda c: c.po_number == line.po_number and c.mpn == line.mpn  # noqa: E731
        self.components = [updated if same(c) else c for c in self.components]
        self.view.replace_child(same, updated)
        logger.info("PO %s / %s moved to %s", line.po_number, line.mpn, status)
        return updated

    def _update(self, line: ReceivingLine, status: str) -> bool:
        update_receiving_status(self.client, line, status)
        return True
