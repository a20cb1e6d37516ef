# =============================================================================
# scentbox_core/data/mock_sources.py
# In-memory remote sources for demos, development and tests
# =============================================================================

from __future__ import annotations
import threading
import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Set, Tuple

import pandas as pd

from scentbox_core.domain import (
    Brand,
    CatalogItem,
    Note,
    PerfumeFilter,
    RemoteStatusEntry,
    Review,
    SortOption,
    UserStatus,
)
from .catalog_source import CatalogPage, RemoteCatalogSource, apply_client_filters, facet_values
from .review_source import RemoteReviewSource, author_from_email
from .user_status_source import RemoteUserStatusSource, reject_none_status


class FailureInjection:
    """
    Shared helper: make the next N calls (or all calls) raise.

    Every call is recorded in ``calls`` as (method, args).
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._error: Optional[BaseException] = None
        self._remaining: Optional[int] = None
        self.calls: List[Tuple[str, tuple]] = []

    def fail_with(self, error: BaseException, times: Optional[int] = None) -> None:
        """Raise ``error`` on the next ``times`` calls (forever if None)."""
        with self._lock:
            self._error = error
            self._remaining = times

    def clear_failure(self) -> None:
        with self._lock:
            self._error = None
            self._remaining = None

    def call_count(self, method: Optional[str] = None) -> int:
        with self._lock:
            return len([c for c in self.calls if method is None or c[0] == method])

    def _record(self, method: str, *args) -> None:
        with self._lock:
            self.calls.append((method, args))
            if self._error is None:
                return
            error = self._error
            if self._remaining is not None:
                self._remaining -= 1
                if self._remaining <= 0:
                    self._error = None
                    self._remaining = None
        raise error


def _sort_key(item: CatalogItem, column: str):
    if column == "name":
        return (item.name.casefold(), item.id)
    if column == "performance":
        return (item.performance, item.id)
    created = item.created_at
    return (created is not None, created or datetime.min, item.id)


class MockCatalogSource(FailureInjection, RemoteCatalogSource):
    """In-memory catalog honouring the same query contract as Supabase."""

    def __init__(self, items: Optional[List[CatalogItem]] = None):
        FailureInjection.__init__(self)
        self.items: List[CatalogItem] = list(items or [])

    def _server_side(self, filter: Optional[PerfumeFilter], search_text: Optional[str]) -> List[CatalogItem]:
        result = self.items
        if search_text:
            needle = search_text.casefold()
            result = [i for i in result if needle in i.name.casefold()]
        if filter is None:
            return list(result)
        if filter.brand_name is not None:
            result = [i for i in result if i.brand is not None and i.brand.name == filter.brand_name]
        if filter.concentration is not None:
            result = [i for i in result if i.concentration == filter.concentration]
        if filter.longevity is not None:
            result = [i for i in result if (i.longevity or "").casefold() == filter.longevity.casefold()]
        if filter.sillage is not None:
            result = [i for i in result if (i.sillage or "").casefold() == filter.sillage.casefold()]
        return list(result)

    def total_count(self, search_text: Optional[str] = None, filter: Optional[PerfumeFilter] = None) -> int:
        self._record("total_count", search_text, filter)
        return len(self._server_side(filter, search_text))

    def fetch_page(
        self,
        page: int,
        page_size: int,
        filter: Optional[PerfumeFilter] = None,
        sort: SortOption = SortOption.NAME_ASC,
        search_text: Optional[str] = None,
    ) -> CatalogPage:
        self._record("fetch_page", page, page_size, filter, sort, search_text)
        start, end = self.page_range(page, page_size)
        column, ascending = sort.remote_order
        rows = sorted(
            self._server_side(filter, search_text),
            key=lambda item: _sort_key(item, column),
            reverse=not ascending,
        )[start:end + 1]
        return CatalogPage(items=apply_client_filters(rows, filter), row_count=len(rows))

    def list_facet_values(self, facet: str) -> List[str]:
        self._record("list_facet_values", facet)
        frame = pd.DataFrame(
            {
                "brand": [i.brand.name if i.brand else None for i in self.items],
                "concentration": [i.concentration for i in self.items],
            }
        )
        if facet not in frame.columns:
            raise ValueError(f"Unknown facet: {facet}")
        return facet_values(frame, facet)


class MockUserStatusSource(FailureInjection, RemoteUserStatusSource):
    """In-memory user_perfumes table keyed by (user_id, item_id)."""

    def __init__(self):
        FailureInjection.__init__(self)
        self.rows: Dict[Tuple[str, str], RemoteStatusEntry] = {}

    def upsert(self, user_id: str, item_id: str, status: UserStatus, created_at: Optional[datetime] = None) -> None:
        self._record("upsert", user_id, item_id, status)
        reject_none_status(status)
        self.rows[(user_id, item_id)] = RemoteStatusEntry(
            item_id=item_id, status=status, created_at=created_at or datetime.now()
        )

    def delete(self, user_id: str, item_id: str) -> None:
        self._record("delete", user_id, item_id)
        self.rows.pop((user_id, item_id), None)

    def list_by_status(self, user_id: str, status: UserStatus) -> Set[str]:
        self._record("list_by_status", user_id, status)
        return {e.item_id for (uid, _), e in self.rows.items() if uid == user_id and e.status is status}

    def list_all(self, user_id: str) -> List[RemoteStatusEntry]:
        self._record("list_all", user_id)
        return [e for (uid, _), e in self.rows.items() if uid == user_id]

    def get_status(self, user_id: str, item_id: str) -> Optional[UserStatus]:
        self._record("get_status", user_id, item_id)
        entry = self.rows.get((user_id, item_id))
        return entry.status if entry else None


class MockReviewSource(FailureInjection, RemoteReviewSource):
    """In-memory reviews table with an optional username per user."""

    def __init__(self, usernames: Optional[Dict[str, str]] = None):
        FailureInjection.__init__(self)
        self.reviews: Dict[str, Review] = {}
        self.usernames = dict(usernames or {})

    def _for_item(self, item_id: str) -> List[Review]:
        reviews = [r for r in self.reviews.values() if r.item_id == item_id]
        return sorted(reviews, key=lambda r: r.created_at, reverse=True)

    def fetch_reviews(self, item_id: str, page: int = 0, page_size: int = 10) -> List[Review]:
        self._record("fetch_reviews", item_id, page, page_size)
        start, end = RemoteCatalogSource.page_range(page, page_size)
        return self._for_item(item_id)[start:end + 1]

    def fetch_ratings(self, item_id: str) -> List[int]:
        self._record("fetch_ratings", item_id)
        return [r.rating for r in self._for_item(item_id)]

    def fetch_existing_review(self, item_id: str, user_id: str) -> Optional[Review]:
        self._record("fetch_existing_review", item_id, user_id)
        for review in self._for_item(item_id):
            if review.user_id == user_id:
                return review
        return None

    def insert_review(self, review: Review) -> None:
        self._record("insert_review", review.id)
        self.reviews[review.id] = review

    def update_review(self, review: Review) -> None:
        self._record("update_review", review.id)
        existing = self.reviews.get(review.id)
        if existing is not None:
            review.created_at = existing.created_at
        self.reviews[review.id] = review

    def delete_review(self, review_id: str) -> None:
        self._record("delete_review", review_id)
        self.reviews.pop(review_id, None)

    def resolve_author_name(self, user_id: str, email: Optional[str] = None) -> str:
        return self.usernames.get(user_id) or author_from_email(email)


# =============================================================================
# DEMO DATA
# =============================================================================

_DEMO_BRANDS = [
    Brand("Chanel", "France"),
    Brand("Dior", "France"),
    Brand("Creed", "United Kingdom"),
    Brand("Tom Ford", "United States"),
    Brand("Le Labo", "United States"),
]

_DEMO_NOTES = {
    "top": [Note("Bergamot", "Citrus"), Note("Lemon", "Citrus"), Note("Pink Pepper", "Spicy")],
    "mid": [Note("Rose", "Floral"), Note("Jasmine", "Floral"), Note("Lavender", "Aromatic")],
    "base": [Note("Vanilla", "Gourmand"), Note("Sandalwood", "Woody"), Note("Musk", "Musky")],
}

_DEMO_NAMES = [
    "No. 5", "Bleu", "Sauvage", "J'adore", "Aventus", "Silver Mountain Water",
    "Oud Wood", "Tobacco Vanille", "Santal 33", "Another 13", "Coco Mademoiselle",
    "Fahrenheit", "Green Irish Tweed", "Black Orchid", "The Noir 29",
]


def sample_catalog(count: int = 45) -> List[CatalogItem]:
    """Deterministic demo catalog for the mock provider."""
    concentrations = ["EDT", "EDP", "Parfum"]
    longevities = ["Short", "Moderate", "Long"]
    sillages = ["Intimate", "Moderate", "Strong"]
    occasions = ["Daily", "Office", "Evening", "Summer", "Winter"]
    base_time = datetime(2024, 1, 1)

    items = []
    for i in range(count):
        brand = _DEMO_BRANDS[i % len(_DEMO_BRANDS)]
        name = _DEMO_NAMES[i % len(_DEMO_NAMES)]
        if i >= len(_DEMO_NAMES):
            name = f"{name} {i // len(_DEMO_NAMES) + 1}"
        items.append(
            CatalogItem(
                id=str(uuid.UUID(int=i + 1)),
                name=name,
                concentration=concentrations[i % 3],
                longevity=longevities[(i // 3) % 3],
                sillage=sillages[(i // 2) % 3],
                performance=round(2.5 + (i * 7 % 25) / 10, 1),
                occasions=[occasions[i % 5], occasions[(i + 2) % 5]],
                brand=brand,
                top_notes=[_DEMO_NOTES["top"][i % 3]],
                mid_notes=[_DEMO_NOTES["mid"][(i + 1) % 3]],
                base_notes=[_DEMO_NOTES["base"][(i + 2) % 3]],
                created_at=base_time + timedelta(days=i),
            )
        )
    return items
