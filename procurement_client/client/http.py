# procurement_client/client/http.py
"""
HTTP transport for the procurement backend.

Every service function goes through ApiClient.request(), which attaches
the session's bearer token, issues exactly one request and turns any
failure into an ApiError carrying the action that failed.
"""

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from ..config import settings
from ..events import EventBus
from ..session import UserSession
from ..errors import ApiError

logger = logging.getLogger(__name__)

# Sentinel: fall back to the client-wide timeout
DEFAULT = object()


def server_message(response: httpx.Response) -> Optional[str]:
    """The `error` (or `message`) field of a JSON error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, Mapping):
        for key in ("error", "message"):
            if body.get(key):
                return str(body[key])
    return None


class ApiClient:
    """
    Thin wrapper over httpx.Client bound to one base URL and one session.

    Args:
        base_url: Backend root, e.g. https://host/api
        session: Authenticated user; its token is read on every request
        bus: Event bus for status-change notifications
        transport: Optional httpx transport (tests pass a MockTransport)
        timeout: Client-wide timeout in seconds; None disables it
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[UserSession] = None,
        bus: Optional[EventBus] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.session = session or UserSession()
        self.bus = bus or EventBus()
        self.client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def request(
        self,
        action: str,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        timeout: Any = DEFAULT,
        authenticated: bool = True,
    ) -> Any:
        """
        Issue one request and return the decoded JSON body (None when empty).

        Raises:
            ApiError: "Failed to <action>: <server or transport message>"
        """
        if self.client.is_closed:
            raise ApiError(f"Failed to {action}: client closed")

        headers: Dict[str, str] = self.session.auth_headers() if authenticated else {}
        kwargs: Dict[str, Any] = {"params": params, "json": json, "headers": headers}
        if timeout is not DEFAULT:
            kwargs["timeout"] = timeout

        logger.debug("%s %s (%s)", method, path, action)
        try:
            response = self.client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            reason = server_message(e.response) or f"HTTP {e.response.status_code}"
            logger.error("Error %s: %s", action, reason)
            raise ApiError(
                f"Failed to {action}: {reason}",
                status_code=e.response.status_code,
                payload=_safe_json(e.response),
            ) from e
        except httpx.HTTPError as e:
            reason = str(e) or e.__class__.__name__
            logger.error("Error %s: %s", action, reason)
            raise ApiError(f"Failed to {action}: {reason}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"Failed to {action}: invalid JSON in response") from e

    def close(self):
        """Close the HTTP client; later requests fail fast."""
        self.client.close()

    @property
    def closed(self) -> bool:
        return self.client.is_closed

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None
