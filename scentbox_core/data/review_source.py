# =============================================================================
# scentbox_core/data/review_source.py
# Remote reviews (Supabase "reviews" and "profiles" tables)
# =============================================================================

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from supabase import Client

from scentbox_core.domain import Review
from scentbox_core.logging import get_logger
from .catalog_source import RemoteCatalogSource, parse_timestamp
from .supabase_client import SupabaseTable

logger = get_logger(__name__)

UNKNOWN_AUTHOR = "Unknown"


def author_from_email(email: Optional[str]) -> str:
    """Fallback display name: the part of the e-mail before the @."""
    if not email:
        return UNKNOWN_AUTHOR
    return email.split("@")[0] or UNKNOWN_AUTHOR


def review_from_row(row: Dict[str, Any]) -> Review:
    return Review(
        id=str(row["id"]),
        item_id=str(row["perfume_id"]),
        title=row.get("title") or "",
        text=row.get("text") or "",
        rating=int(row["rating"]),
        created_at=parse_timestamp(row.get("created_at")),
        author_name=row.get("author_name"),
        user_id=str(row["user_id"]) if row.get("user_id") else None,
    )


def review_to_row(review: Review) -> Dict[str, Any]:
    return {
        "id": review.id,
        "perfume_id": review.item_id,
        "user_id": review.user_id,
        "author_name": review.author_name,
        "title": review.title,
        "text": review.text,
        "rating": review.rating,
        "created_at": review.created_at.isoformat() if review.created_at else None,
    }


class RemoteReviewSource(ABC):

    @abstractmethod
    def fetch_reviews(self, item_id: str, page: int = 0, page_size: int = 10) -> List[Review]:
        """Reviews for an item, newest first."""

    @abstractmethod
    def fetch_ratings(self, item_id: str) -> List[int]:
        ...

    @abstractmethod
    def fetch_existing_review(self, item_id: str, user_id: str) -> Optional[Review]:
        ...

    @abstractmethod
    def insert_review(self, review: Review) -> None:
        ...

    @abstractmethod
    def update_review(self, review: Review) -> None:
        ...

    @abstractmethod
    def delete_review(self, review_id: str) -> None:
        ...

    @abstractmethod
    def resolve_author_name(self, user_id: str, email: Optional[str] = None) -> str:
        """Profile username if set, else the e-mail prefix."""


class SupabaseReviewSource(RemoteReviewSource):
    """Reviews in Supabase; author names come from ``profiles``."""

    def __init__(self, client: Client):
        self.client = client
        self.reviews = SupabaseTable(client, "reviews")
        self.profiles = SupabaseTable(client, "profiles")

    def fetch_reviews(self, item_id: str, page: int = 0, page_size: int = 10) -> List[Review]:
        start, end = RemoteCatalogSource.page_range(page, page_size)
        response = (
            self.reviews.table()
            .select("*")
            .eq("perfume_id", item_id)
            .order("created_at", desc=True)
            .range(start, end)
            .execute()
        )
        return [review_from_row(row) for row in response.data or []]

    def fetch_ratings(self, item_id: str) -> List[int]:
        response = self.reviews.table().select("rating").eq("perfume_id", item_id).execute()
        return [int(row["rating"]) for row in response.data or [] if row.get("rating") is not None]

    def fetch_existing_review(self, item_id: str, user_id: str) -> Optional[Review]:
        response = (
            self.reviews.table()
            .select("*")
            .eq("perfume_id", item_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return review_from_row(rows[0]) if rows else None

    def insert_review(self, review: Review) -> None:
        self.reviews.table().insert(review_to_row(review)).execute()

    def update_review(self, review: Review) -> None:
        (
            self.reviews.table()
            .update({
                "title": review.title,
                "text": review.text,
                "rating": review.rating,
                "author_name": review.author_name,
            })
            .eq("id", review.id)
            .execute()
        )

    def delete_review(self, review_id: str) -> None:
        self.reviews.table().delete().eq("id", review_id).execute()

    def resolve_author_name(self, user_id: str, email: Optional[str] = None) -> str:
        try:
            response = self.profiles.table().select("*").eq("id", user_id).limit(1).execute()
            rows = response.data or []
            if rows and rows[0].get("username"):
                return rows[0]["username"]
        except Exception as e:
            # A missing profile must not block saving a review
            logger.warning(f"Could not load profile for {user_id}: {e}")
        return author_from_email(email)
