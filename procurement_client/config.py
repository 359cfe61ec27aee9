# procurement_client/config.py

import logging
import os
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import FrozenSet, Optional


def _env_date(name: str) -> Optional[date]:
    raw = os.getenv(name)
    if not raw:
        return None
    return datetime.strptime(raw.strip(), "%Y-%m-%d").date()


class Settings:
    """
    Very simple settings holder.
    Reads the backend URL and view knobs from the environment,
    otherwise falls back to the production defaults.
    """

    def __init__(self) -> None:
        self.api_base_url: str = os.getenv(
            "PROCUREMENT_API_BASE_URL", "https://erp1-iwt1.onrender.com/api"
        )
        # None means "use the wall clock"
        self.reference_date: Optional[date] = _env_date("PROCUREMENT_REFERENCE_DATE")
        self.page_size: int = int(os.getenv("PROCUREMENT_PAGE_SIZE", "10"))
        self.update_timeout_seconds: float = float(os.getenv("PROCUREMENT_UPDATE_TIMEOUT", "10"))
        self.banner_seconds: float = float(os.getenv("PROCUREMENT_BANNER_SECONDS", "3"))
        self.search_debounce_seconds: float = float(os.getenv("PROCUREMENT_SEARCH_DEBOUNCE", "0.3"))
        self.log_level: str = os.getenv("PROCUREMENT_LOG_LEVEL", "INFO")

    def today(self) -> date:
        """The day all delivery comparisons are made against."""
        return self.reference_date or date.today()


settings = Settings()


DEFAULT_UNLOCKABLE_STATUSES = frozenset(
    {
        "Material Delivery Pending",
        "Delayed",
        "Expected Delivery Today",
        "Backordered",
    }
)


@dataclass
class Policy:
    """Business rules shared by every screen that prices or edits PO lines."""

    GST_RATE: float = 0.18

    # Delivery labels for which a PO may be unlocked for inline editing
    UNLOCKABLE_STATUSES: FrozenSet[str] = field(default_factory=lambda: DEFAULT_UNLOCKABLE_STATUSES)

    @classmethod
    def from_env(cls) -> "Policy":
        """Load policy overrides from environment variables."""
        return cls(GST_RATE=float(os.getenv("PROCUREMENT_GST_RATE", "0.18")))


# Global policy instance
_policy: Optional[Policy] = None


def get_policy() -> Policy:
    """Get or create the global policy."""
    global _policy
    if _policy is None:
        _policy = Policy.from_env()
    return _policy


def set_policy(policy: Optional[Policy]) -> None:
    """Replace the global policy (None resets to the environment defaults)."""
    global _policy
    _policy = policy


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
