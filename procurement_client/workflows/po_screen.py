# procurement_client/workflows/po_screen.py
"""
Purchase-order screens of the purchase head:

- RaisedPurchaseOrdersScreen: every raised PO, quantity and date editable
  once the PO is unlocked (only while its delivery label allows it)
- BackorderedReturnedScreen: POs in a backordered / returned state, only
  the expected delivery date is editable
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from ..client import ApiClient, ApiError
from ..config import Policy, get_policy, settings
from ..events import PO_STATUS_UPDATED, BACKORDER_STATUS_UPDATED, StatusChanged
from ..models.purchase import Component, PurchaseOrder
from ..services.purchase_orders import (
    fetch_all_purchase_orders,
    fetch_backordered_returned_pos,
    group_purchase_orders,
    update_backorder_item,
    update_purchase_order,
)
from ..session import PO_EDIT_ROLES
from ..views.delivery import DeliveryStatus, can_unlock, classify, due_today
from ..views.listing import DESC, PURCHASE_ORDER_SPEC, ListView
from .editing import Banner, EditBuffer, RowEditor, UnlockRegistry, WorkflowError
from .screen import Screen

logger = logging.getLogger(__name__)

NO_TOKEN_ERROR = "No authentication token found. Please log in."
FETCH_ERROR = "Failed to fetch purchase orders. Please try again."


def _same_line(a: Component, b: Component) -> bool:
    return a.po_number == b.po_number and a.component_id == b.component_id


class PurchaseOrderScreen(Screen):
    """
    Shared list/edit behaviour of the PO screens.

    Subclasses provide `_fetch()` (the flattened lines) and `_send()`
    (one confirmed edit).
    """

    required_roles: Optional[Sequence[str]] = PO_EDIT_ROLES
    quantity_editable = True
    success_message = "Purchase order updated successfully!"

    def __init__(
        self,
        client: ApiClient,
        today: Optional[date] = None,
        policy: Optional[Policy] = None,
        banner: Optional[Banner] = None,
        debounce_wait: Optional[float] = None,
    ):
        super().__init__(client)
        self.today = today or settings.today()
        self.policy = policy or get_policy()
        self.purchase_orders: List[PurchaseOrder] = []
        self.view = ListView(spec=PURCHASE_ORDER_SPEC, sort_key="po_number", sort_direction=DESC)
        self.unlocks = UnlockRegistry()
        self.editor = RowEditor(
            self._send,
            self.unlocks,
            quantity_editable=self.quantity_editable,
            policy=self.policy,
            today=self.today,
            banner=banner,
            success_message=self.success_message,
        )
        self.search = self.debounce(self.view.set_text, debounce_wait)
        self.subscribe(PO_STATUS_UPDATED, self._on_status_changed)
        self.subscribe(BACKORDER_STATUS_UPDATED, self._on_status_changed)

    # --- hooks ---

    def _fetch(self) -> List[Component]:
        raise NotImplementedError

    def _send(self, row: Component, buffer: EditBuffer) -> Dict[str, Any]:
        raise NotImplementedError

    # --- loading ---

    def load(self) -> bool:
        self.error = None
        if not self.session.is_authenticated:
            self.error = NO_TOKEN_ERROR
            return False
        if self.required_roles and self.session.role not in self.required_roles:
            self.error = 'Unauthorized: Only users with the "purchase_head" role can access this page.'
            return False

        components = self._call(self._fetch, failure=FETCH_ERROR)
        if components is None:
            return False
        self.purchase_orders = group_purchase_orders(components)
        self.view.set_data(self.purchase_orders, components)
        logger.info("Loaded %d purchase orders (%d lines)", len(self.purchase_orders), len(components))
        return True

    def _on_status_changed(self, event: StatusChanged) -> None:
        if self.purchase_orders:
            self.load()

    # --- derived ---

    def delivery_status(self, po: Any) -> DeliveryStatus:
        return classify(po.expected_delivery_date, po.po_status, self.today)

    def due_today(self) -> List[PurchaseOrder]:
        return due_today(self.purchase_orders, self.today)

    @property
    def banner(self) -> Optional[str]:
        return self.editor.banner.message

    # --- list controls ---

    def search_text(self, text: str) -> None:
        self.search.call(text)

    def open(self, po: PurchaseOrder) -> None:
        self.view.drill_into(po)

    def back(self) -> None:
        self.view.back()

    # --- editing ---

    def toggle_unlock(self, po: PurchaseOrder) -> bool:
        return self.unlocks.toggle(po.po_number)

    def begin_edit(self, row: Component) -> EditBuffer:
        return self.editor.begin(row)

    def set_quantity(self, row: Component, value: Any) -> EditBuffer:
        return self.editor.set_quantity(row, value)

    def set_delivery_date(self, row: Component, value: Any) -> EditBuffer:
        return self.editor.set_delivery_date(row, value)

    def submit_edit(self, row: Component) -> EditBuffer:
        return self.editor.submit(row)

    def cancel_edit(self, row: Component) -> None:
        self.editor.cancel(row)

    def confirm_edit(self, row: Component) -> Optional[Component]:
        """Send the pending edit; returns the saved row, None on failure."""
        if self.disposed:
            return None
        try:
            updated = self.editor.confirm(row)
        except ApiError as e:
            self.error = str(e)
            return None
        if self.disposed:
            return None

        self.error = None
        self.view.replace_child(lambda c: _same_line(c, row), updated)
        for po in self.purchase_orders:
            if po.po_number == row.po_number:
                po.components = [updated if _same_line(c, row) else c for c in po.components]
        return updated


class RaisedPurchaseOrdersScreen(PurchaseOrderScreen):

    def _fetch(self) -> List[Component]:
        return fetch_all_purchase_orders(self.client)

    def _send(self, row: Component, buffer: EditBuffer) -> Dict[str, Any]:
        return update_purchase_order(
            self.client,
            row.po_number,
            row.component_id,
            buffer.expected_delivery_date,
            buffer.updated_requested_quantity,
            today=self.today,
        )

    def toggle_unlock(self, po: PurchaseOrder) -> bool:
        """Locking is always allowed; unlocking only for editable delivery labels."""
        if not self.unlocks.is_unlocked(po.po_number):
            label = self.delivery_status(po).label
            if not can_unlock(label, self.policy):
                raise WorkflowError(f"PO {po.po_number} cannot be unlocked while {label}")
        return super().toggle_unlock(po)


class BackorderedReturnedScreen(PurchaseOrderScreen):

    quantity_editable = False

    def _fetch(self) -> List[Component]:
        return fetch_backordered_returned_pos(self.client)

    def _send(self, row: Component, buffer: EditBuffer) -> Dict[str, Any]:
        return update_backorder_item(
            self.client,
            row.po_number,
            row.component_id,
            buffer.expected_delivery_date,
            today=self.today,
        )

    @staticmethod
    def pending_quantity(row: Component) -> float:
        return (row.updated_requested_quantity or 0) - (row.received_quantity or 0)

    @staticmethod
    def sequence_label(po: PurchaseOrder) -> str:
        """Backorder and/or return number, depending on the PO status."""
        status = po.po_status or ""
        first = po.components[0] if po.components else None
        backorder = (first.backorder_sequence if first else None) or "-"
        returned = (first.return_sequence if first else None) or "-"

        is_backordered = "Backordered" in status
        is_returned = "Returned" in status
        if is_backordered and is_returned:
            return f"{backorder} / {returned}"
        if is_backordered:
            return str(backorder)
        if is_returned:
            return str(returned)
        return "-"
