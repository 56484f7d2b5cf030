from .supabase_auth import (
    SupabaseAuthClient,
    SupabaseAuthError,
    SupabaseConflictError,
    SupabaseError,
    SupabaseRequestError,
)

__all__ = [
    "SupabaseAuthClient",
    "SupabaseAuthError",
    "SupabaseConflictError",
    "SupabaseError",
    "SupabaseRequestError",
]
