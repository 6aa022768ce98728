# snfoods/core/supabase_client.py
from functools import lru_cache

import httpx
from supabase import AuthError, Client, ClientOptions, PostgrestAPIError, create_client

from snfoods.core.config import get_settings
from snfoods.core.errors import DispatchError, PersistenceError, RemoteTimeoutError

settings = get_settings()


def _options() -> ClientOptions:
    return ClientOptions(
        postgrest_client_timeout=settings.REMOTE_TIMEOUT_SECONDS,
        auto_refresh_token=False,
        persist_session=False,
    )


@lru_cache
def supabase_public() -> Client:
    """
    Create a Supabase client with the anon/public key.

    Use cases:
      - calling public edge functions
      - reading public tables

    Note: This client still respects RLS.
    """
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY, _options())


@lru_cache
def supabase_admin() -> Client:
    """
    Create a Supabase client with the service role key.

    Use cases:
      - generate_order_number / generate_account_number RPCs
      - admin Auth operations
      - any operation that needs to bypass RLS

    WARNING:
      - Never expose service role key to frontend.
      - Only backend should call this.

    Raises:
        RuntimeError: if SUPABASE_SERVICE_ROLE_KEY is not set.
    """
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError("Missing SUPABASE_SERVICE_ROLE_KEY in .env")
    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_ROLE_KEY,
        _options(),
    )


def call_text_rpc(client: Client, function_name: str) -> str:
    """
    Call a no-argument Postgres function that returns text and return the
    value.

    Raises:
        RemoteTimeoutError: the call exceeded REMOTE_TIMEOUT_SECONDS.
        PersistenceError: the function failed or returned nothing.
    """
    try:
        response = client.rpc(function_name).execute()
    except httpx.TimeoutException as exc:
        raise RemoteTimeoutError(f"{function_name}() timed out") from exc
    except (PostgrestAPIError, httpx.HTTPError) as exc:
        raise PersistenceError(f"{function_name}() failed: {exc}") from exc

    value = response.data
    if isinstance(value, list):
        value = value[0] if value else None
    if not value:
        raise PersistenceError(f"{function_name}() returned no value")
    return str(value)


def invite_user_by_email(
    client: Client,
    email: str,
    data: dict[str, str],
    redirect_to: str,
) -> str:
    """
    Send a Supabase Auth invitation and return the new auth user's id.

    `data` becomes the user's user_metadata.

    Raises:
        RemoteTimeoutError: the call exceeded REMOTE_TIMEOUT_SECONDS.
        DispatchError: Supabase Auth refused the invitation.
    """
    try:
        response = client.auth.admin.invite_user_by_email(
            email,
            {"data": data, "redirect_to": redirect_to},
        )
    except httpx.TimeoutException as exc:
        raise RemoteTimeoutError("Invitation timed out") from exc
    except (AuthError, httpx.HTTPError) as exc:
        raise DispatchError(f"Invitation failed: {exc}") from exc

    user = getattr(response, "user", None)
    if user is None or not user.id:
        raise DispatchError("Invitation failed: no user returned")
    return str(user.id)
