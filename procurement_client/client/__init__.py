from ..errors import ApiError, PreconditionError
from .http import ApiClient

__all__ = [
    "ApiClient",
    "ApiError",
    "PreconditionError",
]
