# procurement_client/session.py
"""
Authenticated user context handed to the API client.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .errors import PreconditionError

logger = logging.getLogger(__name__)


# Page permissions per role
ROLE_PERMISSIONS: Dict[str, List[str]] = {
    "admin": ["home", "RequestForPartno", "Addto_Basket", "Search_Inv", "Inv_Receipts"],
    "deep": ["home", "RequestForPartno"],
    "inventory": [
        "inventory", "home", "RequestForPartno", "Search_Inv", "Inv_Receipts",
        "purchase", "material_in_access",
    ],
    "purchase_head": [
        "mrf_search_access", "mrf_review_access", "purchase_head_mrf_search_access",
        "vendors", "vendors_creation", "purchase_head_access", "raise_po_request_access",
        "review_po_request_access", "safety_stock_access", "purchase_access",
    ],
    "inventory_head": ["material_in_access", "safety_stock_access", "inv_access"],
    "purchase_employee": [],
    "ceo": ["mrf_search_access", "mrf_review_access", "ceo_access"],
    "quality_head": ["quality_inspection"],
    "quality_employee": ["quality_inspection"],
}

PO_COMPONENT_VIEW_ROLES = ("inventory_head", "inventory_employee", "admin", "purchase_head")
PO_STATUS_UPDATE_ROLES = ("inventory_head", "inventory_employee", "admin")
PO_EDIT_ROLES = ("purchase_head",)


@dataclass
class UserSession:
    token: Optional[str] = None
    user_id: Optional[str] = None
    role: Optional[str] = None
    permissions: List[str] = field(default_factory=list)
    email: Optional[str] = None
    name: Optional[str] = None

    def auth_headers(self) -> Dict[str, str]:
        if not self.token:
            logger.warning("No auth token found!")
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_head(self) -> bool:
        """Heads of any department (and admins) may change approved quantities."""
        role = self.role or ""
        return role.endswith("_head") or role == "admin"

    @property
    def department(self) -> str:
        match = re.match(r"^(\w+)_(head|employee)$", self.role or "")
        return match.group(1) if match else "N/A"

    def has_permission(self, permission: str) -> bool:
        granted = self.permissions or ROLE_PERMISSIONS.get(self.role or "", [])
        return permission in granted

    def require_role(self, roles: Iterable[str], message: str) -> None:
        """Raise PreconditionError(message) unless the session holds one of `roles`."""
        if not self.role or self.role not in tuple(roles):
            raise PreconditionError(message)
