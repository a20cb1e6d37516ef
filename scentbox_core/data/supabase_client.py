# =============================================================================
# scentbox_core/data/supabase_client.py
# Supabase Client Configuration for ScentBox
# Creates the client and the shared table helper used by remote sources
# =============================================================================

from __future__ import annotations
from typing import Any, Dict, List, Optional

import pandas as pd
from supabase import Client, create_client

from scentbox_core.config import AppConfig
from scentbox_core.errors import ConfigurationError
from scentbox_core.logging import get_logger

logger = get_logger(__name__)

# PostgREST caps a single response at 1000 rows
MAX_ROWS_PER_REQUEST = 1000


def get_supabase_client(config: AppConfig) -> Client:
    """
    Initialize and return a Supabase client from the app configuration.

    Expects credentials in scentbox.toml:
        [supabase]
        url = "https://your-project.supabase.co"
        key = "your-anon-key"

    Raises:
        ConfigurationError: credentials missing or client creation failed
    """
    if not (config.supabase_url and config.supabase_key):
        raise ConfigurationError(
            "Supabase credentials not found. Configure [supabase] url/key in scentbox.toml.",
            config_key="supabase",
        )

    try:
        client: Client = create_client(config.supabase_url, config.supabase_key)
    except Exception as e:
        raise ConfigurationError(f"Failed to initialize Supabase client: {e}", config_key="supabase.url") from e

    logger.info("Supabase client initialized")
    return client


def close_supabase_client(client: Optional[Client]) -> None:
    """
    Close the HTTP session behind a Supabase client.
    Call this on shutdown; errors are logged and ignored.
    """
    if client is None:
        return
    try:
        postgrest = getattr(client, "postgrest", None)
        session = getattr(postgrest, "session", None)
        if session is not None and hasattr(session, "close"):
            session.close()
    except Exception as e:
        logger.debug(f"Ignoring error while closing Supabase client: {e}")


class SupabaseTable:
    """
    Thin wrapper around one Supabase table.

    Errors are NOT caught here; remote sources let them propagate so the
    retry layer can classify them.
    """

    def __init__(self, client: Client, table_name: str):
        """
        Args:
            client: Supabase client
            table_name: Name of the Supabase table
        """
        self.client = client
        self.table_name = table_name

    def table(self):
        return self.client.table(self.table_name)

    def fetch_all(self, columns: str = "*", order_by: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Fetch ALL rows of the table (handles the 1000 row response limit).

        Args:
            columns: PostgREST select expression
            order_by: Column to order by (optional)

        Returns:
            List of row dicts
        """
        all_data: List[Dict[str, Any]] = []
        offset = 0

        while True:
            query = self.table().select(columns)
            if order_by:
                query = query.order(order_by)
            response = query.range(offset, offset + MAX_ROWS_PER_REQUEST - 1).execute()

            if not response.data:
                break
            all_data.extend(response.data)
            # Fewer rows than requested means we reached the end
            if len(response.data) < MAX_ROWS_PER_REQUEST:
                break
            offset += MAX_ROWS_PER_REQUEST

        return all_data

    def fetch_frame(self, columns: str = "*", order_by: Optional[str] = None) -> pd.DataFrame:
        """Same as fetch_all, as a DataFrame."""
        rows = self.fetch_all(columns, order_by)
        return pd.DataFrame(rows) if rows else pd.DataFrame()
