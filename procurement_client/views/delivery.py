# procurement_client/views/delivery.py
"""
Delivery status derivation for purchase orders.

Every comparison is made on calendar days against an injected "today",
so the same expected date classifies the same way whatever its
time-of-day component.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Iterable, List, Optional

from ..config import Policy, get_policy, settings
from ..utils.helpers import calendar_date


class Urgency(str, Enum):
    DELIVERED = "delivered"
    UNKNOWN = "unknown"
    DUE_TODAY = "due_today"
    DELAYED = "delayed"
    DUE_SOON = "due_soon"
    ON_TIME = "on_time"


@dataclass(frozen=True)
class DeliveryStatus:
    label: str
    urgency: Urgency

    def to_dict(self):
        return {"label": self.label, "urgency": self.urgency.value}


def classify(expected_date: Any, current_status: Optional[str], today: Optional[date] = None) -> DeliveryStatus:
    """
    Badge label for a PO:

    - Delivered POs stay Delivered whatever their date
    - no expected date: the current status (or Unknown)
    - due on `today`: Expected Delivery Today
    - past: Delayed
    - one day ahead: Due Soon
    - otherwise the current status (or On Time)
    """
    if current_status == "Delivered":
        return DeliveryStatus("Delivered", Urgency.DELIVERED)

    delivery_day = calendar_date(expected_date)
    if delivery_day is None:
        return DeliveryStatus(current_status or "Unknown", Urgency.UNKNOWN)

    today = today or settings.today()
    if delivery_day == today:
        return DeliveryStatus("Expected Delivery Today", Urgency.DUE_TODAY)

    diff_days = (delivery_day - today).days
    if diff_days < 0:
        return DeliveryStatus("Delayed", Urgency.DELAYED)
    if diff_days <= 1:
        return DeliveryStatus("Due Soon", Urgency.DUE_SOON)
    return DeliveryStatus(current_status or "On Time", Urgency.ON_TIME)


def is_due_on(expected_date: Any, today: date) -> bool:
    day = calendar_date(expected_date)
    return day is not None and day == today


def due_today(purchase_orders: Iterable[Any], today: Optional[date] = None) -> List[Any]:
    """POs whose expected delivery falls on `today` (vendor reminder list)."""
    today = today or settings.today()
    return [po for po in purchase_orders if is_due_on(po.expected_delivery_date, today)]


def can_unlock(label: str, policy: Optional[Policy] = None) -> bool:
    """Whether a PO showing this delivery label may be unlocked for editing."""
    return label in (policy or get_policy()).UNLOCKABLE_STATUSES
