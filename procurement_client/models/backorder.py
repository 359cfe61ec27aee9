from typing import Optional, Tuple, Union

from sqlmodel import SQLModel


class BackorderItem(SQLModel):
    """A QC-inspected backorder line waiting for material-in."""
    backorder_number: str = "N/A"
    mpn: str = "N/A"
    item_description: str = "N/A"
    part_no: str = "N/A"
    make: str = "N/A"
    uom: str = "N/A"
    received_quantity: float = 0
    passed_quantity: float = 0
    failed_quantity: float = 0
    reordered_quantity: float = 0
    material_in_quantity: float = 0
    status: str = "Unknown"
    expected_delivery_date: str = "N/A"
    component_id: Optional[Union[int, str]] = None
    location: str = "N/A"
    mrr_no: str = "-"
    note: str = "-"
    vendor_name: str = "Unknown Vendor"
    mrf_no: str = "-"
    coc_received: bool = False
    date_code: str = "N/A"
    lot_code: str = "N/A"
    return_sequence: Optional[Union[int, str]] = None
    backorder_sequence: Optional[Union[int, str]] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.backorder_number, self.mpn)

    @property
    def material_in_done(self) -> bool:
        return self.material_in_quantity > 0

    @property
    def can_backorder(self) -> bool:
        return self.reordered_quantity > self.received_quantity

    @property
    def can_return(self) -> bool:
        return self.status.lower() == "qc rejected" and self.failed_quantity > 0


class Backorder(SQLModel):
    backorder_number: str
    mrf_no: str = "-"
    vendor_name: str = "Unknown Vendor"
    status: str = "Unknown"


class ReturnLine(SQLModel):
    """One row of a material return form."""
    umi: Optional[str] = None
    component_id: Optional[Union[int, str]] = None
    project_name: Optional[str] = None
    received_quantity: float = 0
    item_description: str = "N/A"
    mpn: str = "N/A"
    part_no: str = "N/A"
    make: str = "N/A"
    return_qty: Optional[int] = None
    reason_for_return: str = ""
    status: str = "Not Initiated"
