# procurement_client/api/deps.py

from typing import Iterator, Optional

from fastapi import Header

from ..client import ApiClient
from ..session import UserSession


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_client(
    authorization: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None),
) -> Iterator[ApiClient]:
    """
    One backend client per incoming request, carrying the caller's token.
    Role and user id are forwarded for the checks made on this side.
    """
    session = UserSession(token=bearer_token(authorization), role=x_user_role, user_id=x_user_id)
    client = ApiClient(session=session)
    try:
        yield client
    finally:
        client.close()
