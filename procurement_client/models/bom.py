from typing import Optional, Union

from sqlmodel import SQLModel


class BomLine(SQLModel):
    """One row of an uploaded bill of materials."""
    key: int
    description: str = ""
    mpn: str = ""
    part_no: str = ""
    make: str = ""
    quantity_required: float = 1


class ShortageLine(BomLine):
    component_id: Optional[Union[int, str]] = None
    on_hand_quantity: float = 0
    total_required: float = 0
    shortage: float = 0
    lookup_failed: bool = False


class PendingIssueRequest(SQLModel):
    key: int
    umi: Optional[str] = None
    component_id: Optional[Union[int, str]] = None
    mpn: str = "N/A"
    description: str = "N/A"
    requested_quantity: float = 0
    requested_by: str = "N/A"
    date: Optional[str] = None
