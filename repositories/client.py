"""
Supabase client initialization.

This module contains *only* the database connection setup. The client is
created on first use so that importing a repository never requires
credentials; see `config.settings` for the environment variables.
"""

from __future__ import annotations

from functools import lru_cache

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

from config.settings import get_settings


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Return the process-wide Supabase client.

    Raises:
        RuntimeError: if SUPABASE_URL or SUPABASE_KEY is not set.
    """

    url, key = get_settings().require_supabase_credentials()
    return create_client(url, key)


__all__ = ["get_supabase"]
