"""
Database helpers for the Filmle backend.
"""

from filmle_backend.db.errors import describe_supabase_error, is_missing_table_error
from filmle_backend.db.supabase import create_supabase_client

__all__ = [
    "create_supabase_client",
    "describe_supabase_error",
    "is_missing_table_error",
]
