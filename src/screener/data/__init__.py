"""Row source layer.

Provides the PostgREST client, paginated fetch pipeline with timeout and
retry, row parsers, and the generation-guarded query cache.
"""

from screener.data.cache import QueryCache
from screener.data.client import OrderBy, RowSourceClient
from screener.data.fetcher import RowFetcher
from screener.data.source import CachedRowSource
from screener.data.supabase_client import SupabaseClient

__all__ = [
    "CachedRowSource",
    "OrderBy",
    "QueryCache",
    "RowFetcher",
    "RowSourceClient",
    "SupabaseClient",
]
