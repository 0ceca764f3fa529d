from supabase import create_client, Client

from config import get_settings

_client: Client | None = None


def get_supabase() -> Client | None:
    """Get or create the Supabase client for the venue store."""
    global _client
    if _client is None:
        settings = get_settings()
        if settings.supabase_url and settings.supabase_key:
            _client = create_client(settings.supabase_url, settings.supabase_key)
    return _client
