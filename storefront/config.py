"""
Storefront configuration.

All settings come from environment variables; a local `.env` file is
loaded first when present.
"""
import os
from dataclasses import dataclass
from functools import cache

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the cart client and the cart service."""
    api_base_url: str = "http://localhost:8000"
    api_timeout: float = 10.0
    fetch_retries: int = 2
    session_id: str | None = None
    currency: str = "INR"
    guest_cart_ttl_days: int = 30

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        base_url = os.environ.get("CART_API_BASE_URL", cls.api_base_url)
        if not base_url.startswith("http"):
            base_url = f"https://{base_url}"

        return cls(
            api_base_url=base_url.rstrip("/"),
            api_timeout=_env_float("CART_API_TIMEOUT", cls.api_timeout),
            fetch_retries=max(0, _env_int("CART_FETCH_RETRIES", cls.fetch_retries)),
            session_id=os.environ.get("CART_SESSION_ID") or None,
            currency=os.environ.get("CART_CURRENCY", cls.currency),
            guest_cart_ttl_days=_env_int("GUEST_CART_TTL_DAYS", cls.guest_cart_ttl_days),
        )


@cache
def get_settings() -> Settings:
    """Get Settings singleton."""
    return Settings.from_env()
