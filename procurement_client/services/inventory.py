# procurement_client/services/inventory.py

from typing import Any, Dict, List

from ..client import ApiClient
from ..client.normalize import unwrap_list


def search_component(client: ApiClient, query: str, kind: str = "mpn") -> Dict[str, Any]:
    """
    Best stock match for an MPN or a description (kind "mpn" / "description").
    Empty dict when nothing matches.
    """
    body = client.request(
        "search components",
        "GET",
        "/non_coc_components/search",
        params={"query": query, "type": kind},
    )
    rows = unwrap_list(body)
    return rows[0] if rows else {}


def fetch_pending_issue_requests(client: ApiClient) -> List[Dict[str, Any]]:
    body = client.request("fetch pending non-COC issue requests", "GET", "/nc-requests/pending")
    return unwrap_list(body)
