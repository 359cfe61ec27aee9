from typing import Optional, Union

from sqlmodel import SQLModel


class ApprovalRequest(SQLModel):
    key: int
    umi: str
    reference: str
    user_name: Optional[str] = None
    user_id: Optional[Union[int, str]] = None
    date: Optional[str] = None
    status: Optional[str] = None


class ApprovalLine(SQLModel):
    key: int
    basket_id: Optional[Union[int, str]] = None
    component_id: Optional[Union[int, str]] = None
    item_description: Optional[str] = None
    mpn: Optional[str] = None
    on_hand_qty: float = 0
    requested_qty: float = 0
