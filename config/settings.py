"""
Application settings.

All configuration comes from environment variables. A `.env` file at the
project root is loaded first so local development does not need exported
variables.

Environment variables:
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
- PAYLOAD_CMS_URL: Base URL of the website CMS that owns the form submissions
- PAYLOAD_CMS_API_KEY: API key for the CMS (optional, some CMS configs allow public read)
- WEBSITE_WEBHOOK_SECRET: Shared secret for the webhook and sync endpoints (optional)
- CMS_TIMEOUT_SECONDS: HTTP timeout for CMS requests (default: 15)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

# Look for .env in the project root
env_path = Path(__file__).parent.parent / ".env"

DEFAULT_PAYLOAD_CMS_URL: str = "https://propertyquestturkey.com"


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: str | None
    supabase_key: str | None
    payload_cms_url: str
    payload_cms_api_key: str | None
    webhook_secret: str | None
    cms_timeout_seconds: float

    def require_supabase_credentials(self) -> tuple[str, str]:
        """Return (url, key) or raise if either is missing."""
        if not self.supabase_url:
            raise RuntimeError(
                "Missing environment variable: SUPABASE_URL. "
                "Set SUPABASE_URL to your Supabase project URL."
            )
        if not self.supabase_key:
            raise RuntimeError(
                "Missing environment variable: SUPABASE_KEY. "
                "Set SUPABASE_KEY to your Supabase API key."
            )
        return self.supabase_url, self.supabase_key


def load_settings() -> Settings:
    """Read settings from the environment (after loading `.env`)."""

    load_dotenv(dotenv_path=env_path)

    return Settings(
        supabase_url=os.getenv("SUPABASE_URL") or None,
        supabase_key=os.getenv("SUPABASE_KEY") or None,
        payload_cms_url=(os.getenv("PAYLOAD_CMS_URL") or DEFAULT_PAYLOAD_CMS_URL).rstrip("/"),
        payload_cms_api_key=os.getenv("PAYLOAD_CMS_API_KEY") or None,
        webhook_secret=os.getenv("WEBSITE_WEBHOOK_SECRET") or None,
        cms_timeout_seconds=float(os.getenv("CMS_TIMEOUT_SECONDS") or "15"),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, loaded once."""
    return load_settings()


__all__ = ["Settings", "get_settings", "load_settings"]
