# =============================================================================
# scentbox_core/data/catalog_source.py
# Remote catalog source (Supabase "perfumes" table)
# =============================================================================
"""
Remote catalog access.

The server applies text search, brand, concentration, longevity, sillage
and ordering; note, occasion and rating filters are applied on the client
after the page arrives. Page ranges are inclusive on both ends.

Nothing here retries. Transport errors propagate unchanged and are
classified by ``with_retry`` at the call site.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd
from supabase import Client

from scentbox_core.domain import (
    NOTE_ROLES,
    Brand,
    CatalogItem,
    Note,
    PerfumeFilter,
    SortOption,
)
from scentbox_core.logging import get_logger
from .supabase_client import SupabaseTable

logger = get_logger(__name__)

FACETS = ("brand", "concentration")

PERFUME_COLUMNS = "*, brands(*), perfume_notes(note_type, notes(*))"
# Inner join variant so a brand filter drops rows without that brand
PERFUME_COLUMNS_BRAND_JOIN = "*, brands!inner(*), perfume_notes(note_type, notes(*))"


# =============================================================================
# SEARCH PATTERN HELPERS
# =============================================================================

def escape_like_pattern(text: str) -> str:
    """
    Escape LIKE metacharacters so user input matches literally.

    The backslash is escaped first, then % and _.
    """
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_search_pattern(text: str) -> str:
    """Substring pattern for ilike: %escaped%"""
    return f"%{escape_like_pattern(text)}%"


# =============================================================================
# ROW MAPPING
# =============================================================================

def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.warning(f"Unparseable timestamp from remote: {value!r}")
        return None


def item_from_row(row: Dict[str, Any]) -> CatalogItem:
    """Map one row of the ``perfumes`` select (with joined brand and notes)."""
    brand = None
    brand_row = row.get("brands")
    if isinstance(brand_row, dict) and brand_row.get("name"):
        brand = Brand(name=brand_row["name"], country=brand_row.get("country"))

    notes: Dict[str, List[Note]] = {role: [] for role in NOTE_ROLES}
    for junction in row.get("perfume_notes") or []:
        role = junction.get("note_type")
        note_row = junction.get("notes")
        if role not in notes or not isinstance(note_row, dict) or not note_row.get("name"):
            continue
        notes[role].append(Note(name=note_row["name"], category=note_row.get("category")))

    return CatalogItem(
        id=str(row["id"]),
        name=row["name"],
        concentration=row.get("concentration"),
        longevity=row.get("longevity"),
        sillage=row.get("sillage"),
        performance=float(row.get("performance") or 0.0),
        description=row.get("desc"),
        image_url=row.get("image_url"),
        occasions=list(row.get("occasions") or []),
        brand=brand,
        top_notes=notes["top"],
        mid_notes=notes["mid"],
        base_notes=notes["base"],
        created_at=parse_timestamp(row.get("created_at")),
    )


# =============================================================================
# CLIENT-SIDE FILTERS
# =============================================================================

def matches_client_filters(item: CatalogItem, filter: Optional[PerfumeFilter]) -> bool:
    """Note, occasion and rating checks the server query does not express."""
    if filter is None:
        return True

    if filter.note_names:
        wanted = {name.casefold() for name in filter.note_names}
        if not wanted & {note.name.casefold() for note in item.all_notes}:
            return False

    if filter.occasions:
        wanted = {tag.casefold() for tag in filter.occasions}
        if not wanted & {tag.casefold() for tag in item.occasions}:
            return False

    if filter.min_rating is not None and item.performance < filter.min_rating:
        return False
    if filter.max_rating is not None and item.performance > filter.max_rating:
        return False

    return True


def apply_client_filters(items: Iterable[CatalogItem], filter: Optional[PerfumeFilter]) -> List[CatalogItem]:
    return [item for item in items if matches_client_filters(item, filter)]


def facet_values(frame: pd.DataFrame, column: str) -> List[str]:
    """Deduplicated, sorted, non-null values of one column."""
    if frame.empty or column not in frame.columns:
        return []
    values = frame[column].dropna().astype(str).str.strip()
    values = values[values != ""].drop_duplicates().sort_values()
    return values.tolist()


# =============================================================================
# PAGES AND SOURCES
# =============================================================================

@dataclass
class CatalogPage:
    """
    One remote page.

    ``items`` are what is left after client-side filters; ``row_count`` is
    how many rows the server returned for the range. Whether the remote has
    more is decided from ``row_count``, since a filtered page can be short
    while later pages still match.
    """
    items: List[CatalogItem]
    row_count: int

    def is_full(self, page_size: int) -> bool:
        return self.row_count >= page_size


class RemoteCatalogSource(ABC):
    """Read-only access to the remote catalog."""

    @abstractmethod
    def total_count(self, search_text: Optional[str] = None, filter: Optional[PerfumeFilter] = None) -> int:
        """
        Number of items matching the server-side part of the query.

        With client-side filters active this is an upper bound.
        """

    @abstractmethod
    def fetch_page(
        self,
        page: int,
        page_size: int,
        filter: Optional[PerfumeFilter] = None,
        sort: SortOption = SortOption.NAME_ASC,
        search_text: Optional[str] = None,
    ) -> CatalogPage:
        """One page of items, client-side filters already applied."""

    @abstractmethod
    def list_facet_values(self, facet: str) -> List[str]:
        """Distinct values for a filter picker ("brand" or "concentration")."""

    @staticmethod
    def page_range(page: int, page_size: int):
        if page < 0 or page_size <= 0:
            raise ValueError("page must be >= 0 and page_size > 0")
        start = page * page_size
        return start, start + page_size - 1


class SupabaseCatalogSource(RemoteCatalogSource):
    """Catalog backed by the Supabase ``perfumes`` table."""

    TABLE = "perfumes"

    def __init__(self, client: Client):
        self.client = client
        self.perfumes = SupabaseTable(client, self.TABLE)
        self.brands = SupabaseTable(client, "brands")

    def _apply_server_filters(self, query, filter: Optional[PerfumeFilter], search_text: Optional[str]):
        if search_text:
            query = query.ilike("name", build_search_pattern(search_text))
        if filter is None:
            return query
        if filter.brand_name is not None:
            query = query.eq("brands.name", filter.brand_name)
        if filter.concentration is not None:
            query = query.eq("concentration", filter.concentration)
        if filter.longevity is not None:
            query = query.ilike("longevity", escape_like_pattern(filter.longevity))
        if filter.sillage is not None:
            query = query.ilike("sillage", escape_like_pattern(filter.sillage))
        return query

    @staticmethod
    def _needs_brand_join(filter: Optional[PerfumeFilter]) -> bool:
        return filter is not None and filter.brand_name is not None

    def total_count(self, search_text: Optional[str] = None, filter: Optional[PerfumeFilter] = None) -> int:
        columns = "id, brands!inner(name)" if self._needs_brand_join(filter) else "id"
        query = self.perfumes.table().select(columns, count="exact")
        query = self._apply_server_filters(query, filter, search_text)
        response = query.limit(1).execute()
        return int(response.count or 0)

    def fetch_page(
        self,
        page: int,
        page_size: int,
        filter: Optional[PerfumeFilter] = None,
        sort: SortOption = SortOption.NAME_ASC,
        search_text: Optional[str] = None,
    ) -> CatalogPage:
        start, end = self.page_range(page, page_size)
        columns = PERFUME_COLUMNS_BRAND_JOIN if self._needs_brand_join(filter) else PERFUME_COLUMNS

        query = self.perfumes.table().select(columns)
        query = self._apply_server_filters(query, filter, search_text)
        column, ascending = sort.remote_order
        response = query.order(column, desc=not ascending).range(start, end).execute()

        items = [item_from_row(row) for row in response.data or []]
        filtered = apply_client_filters(items, filter)
        logger.debug(
            f"Fetched page {page} ({len(items)} rows, {len(filtered)} after client filters)"
        )
        return CatalogPage(items=filtered, row_count=len(items))

    def list_facet_values(self, facet: str) -> List[str]:
        if facet not in FACETS:
            raise ValueError(f"Unknown facet: {facet}")
        if facet == "brand":
            return facet_values(self.brands.fetch_frame("name"), "name")
        return facet_values(self.perfumes.fetch_frame("concentration"), "concentration")
