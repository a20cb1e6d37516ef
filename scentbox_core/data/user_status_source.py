# =============================================================================
# scentbox_core/data/user_status_source.py
# Remote per-user item status (Supabase "user_perfumes" table)
# =============================================================================

from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Set

from supabase import Client

from scentbox_core.domain import RemoteStatusEntry, UserStatus, decode_status, encode_status
from scentbox_core.errors import CorruptRecordError, NotSupportedError
from scentbox_core.logging import get_logger
from .catalog_source import parse_timestamp
from .supabase_client import SupabaseTable

logger = get_logger(__name__)


def reject_none_status(status: UserStatus) -> None:
    if status is UserStatus.NONE:
        raise NotSupportedError("Status 'none' is stored as a delete, not an upsert")


class RemoteUserStatusSource(ABC):
    """
    Remote status store. No retry here; callers wrap calls in with_retry.
    """

    @abstractmethod
    def upsert(self, user_id: str, item_id: str, status: UserStatus, created_at: Optional[datetime] = None) -> None:
        ...

    @abstractmethod
    def delete(self, user_id: str, item_id: str) -> None:
        """Remove the status row; a missing row is not an error."""

    @abstractmethod
    def list_by_status(self, user_id: str, status: UserStatus) -> Set[str]:
        ...

    @abstractmethod
    def list_all(self, user_id: str) -> List[RemoteStatusEntry]:
        ...

    @abstractmethod
    def get_status(self, user_id: str, item_id: str) -> Optional[UserStatus]:
        ...


def entries_from_rows(rows) -> List[RemoteStatusEntry]:
    """Map user_perfumes rows, skipping (and logging) unknown status values."""
    entries = []
    for row in rows or []:
        try:
            status = decode_status(row.get("status"))
        except CorruptRecordError as e:
            logger.warning(f"Skipping remote status for item {row.get('perfume_id')}: {e.message}")
            continue
        entries.append(
            RemoteStatusEntry(
                item_id=str(row["perfume_id"]),
                status=status,
                created_at=parse_timestamp(row.get("created_at")),
            )
        )
    return entries


class SupabaseUserStatusSource(RemoteUserStatusSource):
    """User statuses in the Supabase ``user_perfumes`` table."""

    TABLE = "user_perfumes"
    ON_CONFLICT = "user_id,perfume_id"

    def __init__(self, client: Client):
        self.client = client
        self.user_perfumes = SupabaseTable(client, self.TABLE)

    def upsert(self, user_id: str, item_id: str, status: UserStatus, created_at: Optional[datetime] = None) -> None:
        reject_none_status(status)
        data = {
            "user_id": user_id,
            "perfume_id": item_id,
            "status": encode_status(status),
            "created_at": (created_at or datetime.now()).isoformat(),
        }
        self.user_perfumes.table().upsert(data, on_conflict=self.ON_CONFLICT).execute()

    def delete(self, user_id: str, item_id: str) -> None:
        self.user_perfumes.table().delete().eq("user_id", user_id).eq("perfume_id", item_id).execute()

    def list_by_status(self, user_id: str, status: UserStatus) -> Set[str]:
        response = (
            self.user_perfumes.table()
            .select("perfume_id")
            .eq("user_id", user_id)
            .eq("status", encode_status(status))
            .execute()
        )
        return {str(row["perfume_id"]) for row in response.data or []}

    def list_all(self, user_id: str) -> List[RemoteStatusEntry]:
        response = self.user_perfumes.table().select("*").eq("user_id", user_id).execute()
        return entries_from_rows(response.data)

    def get_status(self, user_id: str, item_id: str) -> Optional[UserStatus]:
        response = (
            self.user_perfumes.table()
            .select("*")
            .eq("user_id", user_id)
            .eq("perfume_id", item_id)
            .execute()
        )
        entries = entries_from_rows(response.data)
        return entries[0].status if entries else None
