from typing import List, Optional, Union

from sqlmodel import SQLModel, Field


class Component(SQLModel):
    """One PO line as the backend returns it: PO header fields repeated per line."""
    component_id: Optional[Union[int, str]] = None
    po_number: str
    mrf_no: str = "-"
    vendor_name: str = "-"
    po_created_at: Optional[str] = None
    po_status: str = "-"
    expected_delivery_date: Optional[str] = None
    project_name: str = "-"
    direct_sequence: str = "-"

    mpn: str = "N/A"
    item_description: str = "N/A"
    make: str = "N/A"
    part_no: str = "N/A"
    uom: str = "N/A"
    on_hand_quantity: float = 0

    initial_requested_quantity: int = 0
    updated_requested_quantity: int = 0
    rate_per_unit: float = 0.0
    amount: float = 0.0
    gst_amount: float = 0.0

    # backorder / return bookkeeping (backordered-returned listing only)
    backorder_sequence: Optional[Union[int, str]] = None
    pending_quantity: float = 0
    return_sequence: Optional[Union[int, str]] = None
    return_reordered_quantity: float = 0
    received_quantity: float = 0


class PurchaseOrder(SQLModel):
    po_number: str
    mrf_no: str = "-"
    vendor_name: str = "-"
    po_created_at: Optional[str] = None
    po_status: str = "-"
    expected_delivery_date: Optional[str] = None
    components: List[Component] = Field(default_factory=list)


class ReceivingLine(SQLModel):
    """A PO line awaiting delivery / quality check on the receiving side."""
    component_id: Optional[Union[int, str]] = None
    po_number: str = "N/A"
    mrf_no: str = "N/A"
    mrr_no: str = "N/A"
    vendor_name: str = "N/A"
    created_at: str = "N/A"  # YYYY-MM-DD from the server
    mpn: str = "N/A"
    item_description: str = "N/A"
    part_no: str = "N/A"
    make: str = "N/A"
    uom: str = "N/A"
    updated_requested_quantity: float = 0
    expected_delivery_date: str = "N/A"
    status: str = "Material Delivery Pending"
    backorder_sequence: str = "N/A"
    backorder_pending_quantity: float = 0
    return_sequence: str = "N/A"
    return_reordered_quantity: float = 0
    location: str = "N/A"


class ReceivingOrder(SQLModel):
    po_number: str
    mrf_no: str = "-"
    vendor_name: str = "-"
    created_at: str = "-"
    status: str = "Material Delivery Pending"
