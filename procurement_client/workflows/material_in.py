# procurement_client/workflows/material_in.py
"""
Backorder material-in screen of the inventory team.

QC-inspected backorder lines are grouped by backorder number. For each
line the user records how much material went into the warehouse, and may
pick lines for a follow-up backorder (short delivery) or a return to the
vendor (QC rejected). A line is picked for one or the other, never both.
"""

import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from ..client import ApiClient
from ..client.normalize import is_blank, to_float
from ..events import MATERIAL_IN_UPDATED, StatusChanged
from ..models.backorder import Backorder, BackorderItem
from ..services.backorders import (
    MATERIAL_IN_STATUSES,
    fetch_backorder_items,
    submit_backorder,
    submit_return,
    update_backorder_material_in,
)
from ..views.listing import BACKORDER_SPEC, ListView
from .screen import Screen

logger = logging.getLogger(__name__)

ItemKey = Tuple[str, str]

_VALID_STATUSES = {s.lower() for s in MATERIAL_IN_STATUSES}


def group_backorders(items: List[BackorderItem]) -> List[Backorder]:
    """One header per backorder number (first line wins), newest number first."""
    grouped: Dict[str, Backorder] = {}
    for item in items:
        if item.backorder_number not in grouped:
            grouped[item.backorder_number] = Backorder(
                backorder_number=item.backorder_number,
                mrf_no=item.mrf_no or "-",
                vendor_name=item.vendor_name or "Unknown Vendor",
                status=item.status or "Unknown",
            )
    return sorted(grouped.values(), key=lambda b: b.backorder_number.casefold(), reverse=True)


def backorder_line(item: BackorderItem) -> Dict[str, Any]:
    """Payload line for a new backorder: what was ordered and what is still missing."""
    ordered = item.reordered_quantity
    return {
        **item.model_dump(),
        "po_number": item.backorder_number,
        "ordered_quantity": ordered,
        "pending_quantity": max(0, ordered - item.received_quantity),
    }


class MaterialInScreen(Screen):

    def __init__(self, client: ApiClient, debounce_wait: Optional[float] = None):
        super().__init__(client)
        self.items: List[BackorderItem] = []
        self.backorders: List[Backorder] = []
        self.view = ListView(spec=BACKORDER_SPEC)
        self.search = self.debounce(self.view.set_text, debounce_wait)

        # material-in input per line; None while the field is blank
        self.drafts: Dict[ItemKey, Optional[float]] = {}
        self.pending: Optional[Tuple[BackorderItem, float]] = None

        self.for_backorder: Set[ItemKey] = set()
        self.for_return: Set[ItemKey] = set()

    # --- loading ---

    def load(self) -> bool:
        self.error = None
        items = self._call(fetch_backorder_items, self.client)
        if items is None:
            return False
        if not items:
            self.error = "No backorder items found."
            self._apply([])
            return False

        valid = [
            item for item in items
            if item.backorder_number != "N/A" and item.status.lower() in _VALID_STATUSES
        ]
        if not valid:
            self.error = "No valid backorder items found for Material In."
            self._apply([])
            return False

        self._apply(valid)
        logger.info("Loaded %d backorder lines in %d backorders", len(valid), len(self.backorders))
        return True

    def _apply(self, items: List[BackorderItem]) -> None:
        self.items = items
        self.backorders = group_backorders(items)
        self.view.set_data(self.backorders, items)
        self.drafts = {item.key: item.material_in_quantity for item in items}
        keys = {item.key for item in items}
        self.for_backorder &= keys
        self.for_return &= keys

    def items_of(self, backorder_number: str) -> List[BackorderItem]:
        return [item for item in self.items if item.backorder_number == backorder_number]

    # --- material in ---

    def set_material_in(self, item: BackorderItem, value: Any) -> Optional[float]:
        """
        Stage a material-in quantity, clamped to
        [already recorded material in, reordered quantity].
        """
        if is_blank(value) and value != 0:
            self.drafts[item.key] = None
            return None
        quantity = to_float(value)
        quantity = max(item.material_in_quantity, min(quantity, item.reordered_quantity))
        self.drafts[item.key] = quantity
        return quantity

    def request_material_in(self, item: BackorderItem) -> float:
        """Ask for confirmation; a blank input keeps the recorded quantity."""
        draft = self.drafts.get(item.key)
        quantity = item.material_in_quantity if draft is None else draft
        self.pending = (item, quantity)
        return quantity

    def confirm_material_in(self) -> bool:
        """Write the pending quantity, then reload the list."""
        if self.pending is None:
            return False
        item, quantity = self.pending
        self.pending = None

        mrf_no = item.mrf_no if item.mrf_no not in ("-", "N/A") else None
        result = self._call(self._write_material_in, item, quantity, mrf_no)
        if result is None:
            return False
        self.client.bus.publish(
            StatusChanged(
                MATERIAL_IN_UPDATED,
                key=item.backorder_number,
                status=item.status,
                payload={"mpn": item.mpn, "material_in_quantity": quantity},
            )
        )
        return self.load()

    def _write_material_in(self, item: BackorderItem, quantity: float, mrf_no: Optional[str]) -> bool:
        update_backorder_material_in(self.client, item.mpn, quantity, mrf_no)
        return True

    def cancel_material_in(self) -> None:
        self.pending = None

    def is_backorder_complete(self, backorder_number: str) -> bool:
        items = self.items_of(backorder_number)
        return bool(items) and all(item.material_in_done for item in items)

    # --- backorder / return selection ---

    def toggle_backorder(self, item: BackorderItem) -> bool:
        if item.key in self.for_backorder:
            self.for_backorder.discard(item.key)
            return False
        self.for_backorder.add(item.key)
        self.for_return.discard(item.key)
        return True

    def toggle_return(self, item: BackorderItem) -> bool:
        if item.key in self.for_return:
            self.for_return.discard(item.key)
            return False
        self.for_return.add(item.key)
        self.for_backorder.discard(item.key)
        return True

    def backorder_candidates(self) -> List[BackorderItem]:
        return [item for item in self.items if item.key in self.for_backorder and item.can_backorder]

    def return_candidates(self) -> List[BackorderItem]:
        return [item for item in self.items if item.key in self.for_return and item.can_return]

    def create_backorder(self) -> Any:
        candidates = self.backorder_candidates()
        if not candidates:
            self.error = (
                "No items eligible for backorder selected "
                "(ensure items are selected and ordered quantity exceeds received quantity)."
            )
            return None
        self.error = None
        response = self._call(submit_backorder, self.client, [backorder_line(i) for i in candidates])
        if response is not None:
            self.for_backorder.clear()
        return response

    def create_return(self) -> Any:
        candidates = self.return_candidates()
        if not candidates:
            self.error = "No QC Rejected items with failed quantity selected for return."
            return None
        self.error = None
        response = self._call(submit_return, self.client, candidates)
        if response is not None:
            self.for_return.clear()
        return response
