from functools import lru_cache

from supabase import Client, create_client

from nutriplan.core.config import get_settings


@lru_cache
def get_supabase() -> Client:
    """Shared Supabase client (service key). Used as a FastAPI dependency."""
    settings = get_settings()
    url = settings.supabase_url
    key = settings.supabase_key

    if not url or not key:
        raise EnvironmentError("Supabase URL and Key must be set in .env file")

    return create_client(url, key)
