# procurement_client/services/auth.py

import logging

from ..client import ApiClient
from ..session import UserSession

logger = logging.getLogger(__name__)


def login(client: ApiClient, email: str, password: str) -> UserSession:
    """
    Authenticate and install the new session on the client.
    Later requests carry the returned bearer token.
    """
    body = client.request(
        "log in", "POST", "/auth/login", json={"email": email, "password": password}, authenticated=False
    )
    body = body or {}
    session = UserSession(
        token=body.get("token"),
        user_id=body.get("user_id"),
        role=body.get("role"),
        permissions=list(body.get("permissions") or []),
        email=email,
        name=body.get("name"),
    )
    client.session = session
    logger.info("Logged in as %s (%s)", email, session.role)
    return session


def logout(client: ApiClient) -> None:
    client.session = UserSession()
