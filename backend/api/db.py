from supabase import Client

from deals.services import Services

# Global handles - set during app startup
_supabase_client: Client | None = None
_services: Services | None = None


def set_supabase_client(client: Client | None) -> None:
    """Set the global Supabase client (called from app lifespan)."""
    global _supabase_client
    _supabase_client = client


def get_supabase() -> Client | None:
    """Get the shared Supabase client, used for member auth."""
    return _supabase_client


def set_services(services: Services | None) -> None:
    global _services
    _services = services


def get_services() -> Services:
    """Get the deal pipeline services built at startup."""
    if _services is None:
        raise RuntimeError("Services not initialised; is the app lifespan running?")
    return _services
