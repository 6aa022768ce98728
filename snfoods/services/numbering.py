# snfoods/services/numbering.py
from typing import Callable, Protocol

from supabase import Client

from snfoods.core.supabase_client import call_text_rpc, supabase_admin


class NumberGenerator(Protocol):
    """
    Anything that returns a fresh, globally unique identifier string
    (order numbers, account numbers). The format is owned by the generator.
    """

    def __call__(self) -> str: ...


class SupabaseRpcNumberGenerator:
    """
    Identifiers from a database-side sequence function called over
    Supabase RPC.
    """

    function_name: str

    def __init__(self, client_factory: Callable[[], Client] = supabase_admin):
        self._client_factory = client_factory

    def __call__(self) -> str:
        return call_text_rpc(self._client_factory(), self.function_name)


class OrderNumberGenerator(SupabaseRpcNumberGenerator):
    function_name = "generate_order_number"


class AccountNumberGenerator(SupabaseRpcNumberGenerator):
    function_name = "generate_account_number"
