# procurement_client/services/vendors.py

from typing import Any, Dict, List, Union

from ..client import ApiClient
from ..client.normalize import unwrap_list
from ..models.vendor import Vendor

DUPLICATE_GSTIN_ERROR = "Vendor with this GSTIN already exists"


def _body(vendor: Union[Vendor, Dict[str, Any]]) -> Dict[str, Any]:
    data = vendor.model_dump(exclude={"id"}) if isinstance(vendor, Vendor) else dict(vendor)
    # optional contact fields go out as null rather than ""
    for key in ("contact_person_name", "contact_no", "email_id"):
        data[key] = data.get(key) or None
    return data


def fetch_vendors(client: ApiClient) -> Any:
    return client.request("fetch vendors", "GET", "/vendors")


def fetch_all_vendors(client: ApiClient) -> List[Dict[str, Any]]:
    body = client.request("fetch all vendors", "GET", "/vendors/vendors")
    return unwrap_list(body)


def fetch_vendor_by_gstin(client: ApiClient, gstin: str) -> Any:
    return client.request("fetch vendor by GSTIN", "GET", f"/vendors/gstin/{gstin}")


def create_vendor(client: ApiClient, vendor: Union[Vendor, Dict[str, Any]]) -> Any:
    return client.request("create vendor", "POST", "/vendors/vendors", json=_body(vendor))


def update_vendor(client: ApiClient, vendor_id: Union[int, str], vendor: Union[Vendor, Dict[str, Any]]) -> Any:
    return client.request("update vendor", "PUT", f"/vendors/vendors/{vendor_id}", json=_body(vendor))
