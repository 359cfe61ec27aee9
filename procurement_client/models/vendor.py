from typing import Optional, Union

from sqlmodel import SQLModel


class Vendor(SQLModel):
    id: Optional[Union[int, str]] = None
    gstin: str
    name: str
    address: str
    pan: str
    contact_person_name: Optional[str] = None
    contact_no: Optional[str] = None
    email_id: Optional[str] = None
