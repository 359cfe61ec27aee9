# procurement_client/workflows/vendor_form.py
"""
Vendor creation form with client-side validation.
"""

import re
from typing import Any, Dict, Optional

from ..client import ApiClient, ApiError
from ..models.vendor import Vendor
from ..services.vendors import DUPLICATE_GSTIN_ERROR, create_vendor
from .screen import Screen

FIELDS = ("gstin", "name", "address", "pan", "contact_person_name", "contact_no", "email_id")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
CONTACT_PATTERN = re.compile(r"^\d{10}$")


def derive_pan(gstin: str) -> str:
    """A GSTIN embeds the PAN: drop the 2-char state code and the 3-char suffix."""
    return gstin[2:-3] if len(gstin) == 15 else ""


def validate(data: Dict[str, str]) -> Dict[str, str]:
    """Field -> message for every invalid field; empty when the form is valid."""
    errors: Dict[str, str] = {}
    gstin, pan = data.get("gstin", ""), data.get("pan", "")
    if not gstin:
        errors["gstin"] = "GSTIN is required"
    elif len(gstin) != 15:
        errors["gstin"] = "GSTIN must be 15 characters"
    if not data.get("name"):
        errors["name"] = "Name is required"
    if not data.get("address"):
        errors["address"] = "Address is required"
    if not pan:
        errors["pan"] = "PAN is required"
    elif len(pan) != 10:
        errors["pan"] = "PAN must be 10 characters"
    if data.get("contact_no") and not CONTACT_PATTERN.match(data["contact_no"]):
        errors["contact_no"] = "Contact number must be a 10-digit number"
    if data.get("email_id") and not EMAIL_PATTERN.match(data["email_id"]):
        errors["email_id"] = "Invalid email format"
    return errors


class VendorFormScreen(Screen):

    def __init__(self, client: ApiClient):
        super().__init__(client)
        self.data: Dict[str, str] = {name: "" for name in FIELDS}
        self.errors: Dict[str, str] = {}
        self.saved: Optional[Any] = None

    def set_field(self, name: str, value: Any) -> None:
        if name not in FIELDS:
            raise KeyError(name)
        text = "" if value is None else str(value)
        if name in ("gstin", "pan"):
            text = text.upper()
        self.data[name] = text
        if name == "gstin":
            self.data["pan"] = derive_pan(text)
        self.errors.pop(name, None)

    def validate(self) -> bool:
        self.errors = validate(self.data)
        return not self.errors

    def reset(self) -> None:
        self.data = {name: "" for name in FIELDS}
        self.errors = {}

    def save(self) -> bool:
        """Validate and create the vendor; the form is cleared on success."""
        if not self.validate():
            return False
        self.error = None
        try:
            self.saved = create_vendor(self.client, Vendor(**self.data))
        except ApiError as e:
            if isinstance(e.payload, dict) and e.payload.get("error") == DUPLICATE_GSTIN_ERROR:
                self.errors["gstin"] = DUPLICATE_GSTIN_ERROR
            else:
                self.error = str(e)
            return False
        self.reset()
        return True
