import threading

from supabase import create_client, Client

from app.core.config import settings

# Thread-local storage for Supabase client to avoid connection pool sharing issues
_thread_local = threading.local()


def get_supabase_client() -> Client:
    """Get a thread-local Supabase client.

    FastAPI runs sync routes in a threadpool; sharing one HTTP/2 client
    across those threads leads to "Server disconnected" errors on stale
    pooled connections, so every worker thread gets its own.
    """
    if not settings.supabase_url or not settings.supabase_secret_key:
        raise RuntimeError(
            "Supabase credentials not configured. "
            "Set SUPABASE_URL and SUPABASE_SECRET_KEY environment variables."
        )

    if not hasattr(_thread_local, "client"):
        _thread_local.client = create_client(
            settings.supabase_url,
            settings.supabase_secret_key,
        )
    return _thread_local.client


def reset_supabase_client() -> None:
    """Drop the thread-local client so the next call reconnects."""
    if hasattr(_thread_local, "client"):
        delattr(_thread_local, "client")
