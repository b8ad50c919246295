# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Shared Supabase client (database, storage)
# - document_store.py: Path-addressed JSON documents on a Supabase table
# - image_generator.py: OpenAI image edit wrapper
# - utils.py: Shared utilities (timestamps, derived ids)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import product_id_from_name, utc_timestamp

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Utils
    "product_id_from_name",
    "utc_timestamp",
]
