# app/core/supabase_client.py
from functools import lru_cache

import httpx
from supabase import Client, ClientOptions, create_client

from app.core.config import get_settings
from app.core.errors import ConfigError

settings = get_settings()


def _client_options() -> ClientOptions:
    """
    Server-side client options.

    - no token refresh loop and no session persistence: the backend never
      holds a user session of its own
    - every Auth call is bounded by PROVIDER_TIMEOUT_SECONDS
    """
    return ClientOptions(
        auto_refresh_token=False,
        persist_session=False,
        httpx_client=httpx.Client(timeout=settings.PROVIDER_TIMEOUT_SECONDS),
    )


def supabase_public() -> Client:
    """
    Create a Supabase client with the anon/public key.

    Use cases:
      - password sign-in on behalf of a user

    Not cached: signing in stores the user's session on the client,
    so each login gets its own instance.
    """
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY, _client_options())


@lru_cache
def supabase_admin() -> Client:
    """
    Create a Supabase client with the service role key.

    Use cases:
      - verifying access tokens (auth.get_user(jwt))
      - admin Auth operations (create_user, list_users, invite, sign_out)

    WARNING:
      - Never expose service role key to frontend.
      - Only backend should call this.

    Raises:
        ConfigError: if SUPABASE_SERVICE_ROLE_KEY is not set.
    """
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise ConfigError(details="Missing SUPABASE_SERVICE_ROLE_KEY in .env")
    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_ROLE_KEY,
        _client_options(),
    )
