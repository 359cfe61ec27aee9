from typing import Any, Optional


class ApiError(Exception):
    """
    Any failed backend operation.

    The message always reads "Failed to <action>: <reason>" for transport
    and server failures, so callers can show it to the user as is.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def __str__(self) -> str:
        return self.message


class PreconditionError(ApiError):
    """Client-side check failed; no request was sent."""
