# =============================================================================
# scentbox_core/domain/entities.py
# Catalog entities shared by the local store and the remote sources
# =============================================================================
"""
Plain dataclasses for the catalog.

Brand and Note are value objects keyed by name. A CatalogItem holds its
brand and notes by value; nothing points back from a Brand or Note to the
items using it (the local store answers that with an index scan).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from scentbox_core.errors import DataValidationError
from .status import UserStatus

NOTE_ROLES = ("top", "mid", "base")


@dataclass
class Brand:
    name: str
    country: Optional[str] = None


@dataclass
class Note:
    name: str
    category: Optional[str] = None


@dataclass
class CatalogItem:
    """A perfume in the catalog."""
    id: str
    name: str
    concentration: Optional[str] = None
    longevity: Optional[str] = None
    sillage: Optional[str] = None
    performance: float = 0.0
    description: Optional[str] = None
    image_url: Optional[str] = None
    occasions: List[str] = field(default_factory=list)
    brand: Optional[Brand] = None
    top_notes: List[Note] = field(default_factory=list)
    mid_notes: List[Note] = field(default_factory=list)
    base_notes: List[Note] = field(default_factory=list)
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.id:
            raise DataValidationError("Catalog item needs an identifier", field="id")
        if not self.name or not self.name.strip():
            raise DataValidationError("Catalog item name must not be empty", field="name")

    @property
    def all_notes(self) -> List[Note]:
        return self.top_notes + self.mid_notes + self.base_notes

    def notes_for(self, role: str) -> List[Note]:
        if role not in NOTE_ROLES:
            raise ValueError(f"Unknown note role: {role}")
        return getattr(self, f"{role}_notes")


@dataclass
class UserStatusRecord:
    """Status of one item for one user, with its pending-sync marker."""
    user_id: str
    item_id: str
    status: UserStatus = UserStatus.NONE
    created_at: datetime = field(default_factory=datetime.now)
    personal_notes: Optional[str] = None
    pending_sync: bool = False


@dataclass
class RemoteStatusEntry:
    """One row of the remote user-status listing."""
    item_id: str
    status: UserStatus
    created_at: Optional[datetime] = None


@dataclass
class Review:
    id: str
    item_id: str
    title: str
    text: str
    rating: int
    created_at: datetime = field(default_factory=datetime.now)
    author_name: Optional[str] = None
    user_id: Optional[str] = None

    MIN_RATING = 1
    MAX_RATING = 5

    def __post_init__(self):
        if not isinstance(self.rating, int) or not self.MIN_RATING <= self.rating <= self.MAX_RATING:
            raise DataValidationError(
                "Rating must be between 1 and 5",
                field="rating",
                expected="1-5",
                actual=str(self.rating),
            )


@dataclass
class RatingStats:
    average: Optional[float]
    count: int
