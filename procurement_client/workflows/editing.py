# procurement_client/workflows/editing.py
"""
Inline edit-and-submit for PO lines.

Per row:  Viewing -> Editing -> PendingConfirm -> Viewing
          (cancel -> Viewing, failed confirm -> Editing, buffer kept)

Nothing is sent before confirm(). Staged amounts are only a preview; the
values kept after a successful confirm are the server's.
"""

import logging
import time
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Mapping, Optional, Set

from ..client import ApiError
from ..client.normalize import to_int
from ..config import Policy, get_policy, settings
from ..utils.helpers import calendar_date

logger = logging.getLogger(__name__)


class EditState(str, Enum):
    VIEWING = "viewing"
    EDITING = "editing"
    PENDING_CONFIRM = "pending_confirm"


class WorkflowError(Exception):
    """An edit was attempted that the workflow does not allow."""


class UnlockRegistry:
    """PO numbers the user has unlocked for inline editing (local only)."""

    def __init__(self) -> None:
        self._unlocked: Set[Hashable] = set()

    def toggle(self, key: Hashable) -> bool:
        """Flip the lock; returns True when the key is now unlocked."""
        if key in self._unlocked:
            self._unlocked.discard(key)
            return False
        self._unlocked.add(key)
        return True

    def is_unlocked(self, key: Hashable) -> bool:
        return key in self._unlocked

    def __contains__(self, key: Hashable) -> bool:
        return key in self._unlocked

    def __len__(self) -> int:
        return len(self._unlocked)


@dataclass
class EditBuffer:
    expected_delivery_date: Any
    updated_requested_quantity: int
    amount: float
    gst_amount: float


class Banner:
    """A message that disappears `lifetime` seconds after it is shown."""

    def __init__(self, lifetime: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.lifetime = settings.banner_seconds if lifetime is None else lifetime
        self.clock = clock
        self._message: Optional[str] = None
        self._shown_at = 0.0

    def show(self, message: str) -> None:
        self._message = message
        self._shown_at = self.clock()

    def clear(self) -> None:
        self._message = None

    @property
    def message(self) -> Optional[str]:
        if self._message is not None and self.clock() - self._shown_at >= self.lifetime:
            self._message = None
        return self._message


# submit(row, buffer) -> fields the server says the row now has
Submitter = Callable[[Any, EditBuffer], Mapping[str, Any]]


class RowEditor:
    """
    Edit state machine for the rows of one screen.

    Args:
        submit: Sends one confirmed edit; returns server-side field values
        unlocks: Parent keys whose rows may be edited
        parent_key / row_key: How to find a row's parent and identity
        quantity_editable: False for date-only edits
    """

    def __init__(
        self,
        submit: Submitter,
        unlocks: UnlockRegistry,
        *,
        parent_key: Callable[[Any], Hashable] = lambda row: row.po_number,
        row_key: Callable[[Any], Hashable] = lambda row: (row.po_number, row.component_id),
        quantity_editable: bool = True,
        policy: Optional[Policy] = None,
        today: Optional[date] = None,
        banner: Optional[Banner] = None,
        success_message: str = "Purchase order updated successfully!",
    ):
        self.submit_fn = submit
        self.unlocks = unlocks
        self.parent_key = parent_key
        self.row_key = row_key
        self.quantity_editable = quantity_editable
        self.policy = policy or get_policy()
        self.today = today or settings.today()
        self.banner = banner or Banner()
        self.success_message = success_message

        self._states: Dict[Hashable, EditState] = {}
        self._buffers: Dict[Hashable, EditBuffer] = {}
        self.errors: Dict[Hashable, str] = {}

    # --- inspection ---

    def state_of(self, row: Any) -> EditState:
        return self._states.get(self.row_key(row), EditState.VIEWING)

    def buffer_of(self, row: Any) -> Optional[EditBuffer]:
        return self._buffers.get(self.row_key(row))

    def _require(self, row: Any, *states: EditState) -> EditBuffer:
        if self.state_of(row) not in states:
            raise WorkflowError(
                f"Row {self.row_key(row)} is {self.state_of(row).value}, "
                f"expected {' or '.join(s.value for s in states)}"
            )
        return self._buffers[self.row_key(row)]

    def _totals(self, rate: float, quantity: int) -> Dict[str, float]:
        amount = rate * quantity
        return {"amount": amount, "gst_amount": amount * self.policy.GST_RATE}

    # --- transitions ---

    def begin(self, row: Any) -> EditBuffer:
        """Viewing -> Editing. The row's parent must be unlocked."""
        if not self.unlocks.is_unlocked(self.parent_key(row)):
            raise WorkflowError(f"PO {self.parent_key(row)} is locked")
        if self.state_of(row) != EditState.VIEWING:
            return self._buffers[self.row_key(row)]

        quantity = row.updated_requested_quantity
        buffer = EditBuffer(
            expected_delivery_date=row.expected_delivery_date,
            updated_requested_quantity=quantity,
            **self._totals(row.rate_per_unit, quantity),
        )
        key = self.row_key(row)
        self._buffers[key] = buffer
        self._states[key] = EditState.EDITING
        self.errors.pop(key, None)
        return buffer

    def set_quantity(self, row: Any, value: Any) -> EditBuffer:
        """Stage a new quantity and preview amount / GST from it."""
        buffer = self._require(row, EditState.EDITING)
        if not self.quantity_editable:
            raise WorkflowError("Quantity is not editable here")
        quantity = to_int(value)
        totals = self._totals(row.rate_per_unit, quantity)
        buffer.updated_requested_quantity = quantity
        buffer.amount = totals["amount"]
        buffer.gst_amount = totals["gst_amount"]
        return buffer

    def set_delivery_date(self, row: Any, value: Any) -> EditBuffer:
        buffer = self._require(row, EditState.EDITING)
        day = calendar_date(value)
        if day is None:
            raise WorkflowError(f"Not a date: {value!r}")
        if day < self.today:
            raise WorkflowError(f"Expected delivery date cannot be before {self.today.isoformat()}")
        buffer.expected_delivery_date = day.isoformat()
        return buffer

    def submit(self, row: Any) -> EditBuffer:
        """Editing -> PendingConfirm; nothing is sent yet."""
        buffer = self._require(row, EditState.EDITING)
        self._states[self.row_key(row)] = EditState.PENDING_CONFIRM
        return buffer

    def confirm(self, row: Any) -> Any:
        """
        PendingConfirm -> Viewing: send the edit and return the updated row
        with the server's values merged in. On failure the row goes back
        to Editing with its buffer, and the error is re-raised.
        """
        buffer = self._require(row, EditState.PENDING_CONFIRM)
        key = self.row_key(row)
        try:
            server = self.submit_fn(row, buffer)
        except ApiError as e:
            self._states[key] = EditState.EDITING
            self.errors[key] = str(e)
            raise

        update: Dict[str, Any] = {"expected_delivery_date": buffer.expected_delivery_date}
        if self.quantity_editable:
            update["updated_requested_quantity"] = buffer.updated_requested_quantity
        for name in ("amount", "gst_amount"):
            if server and name in server:
                update[name] = server[name]

        self._states.pop(key, None)
        self._buffers.pop(key, None)
        self.errors.pop(key, None)
        self.banner.show(self.success_message)
        logger.info("Row %s saved", key)
        return row.model_copy(update=update)

    def cancel(self, row: Any) -> None:
        """Drop the buffer without sending anything."""
        key = self.row_key(row)
        self._states.pop(key, None)
        self._buffers.pop(key, None)
