# =============================================================================
# scentbox_core/domain/filters.py
# Filter and sort values exposed to the presentation layer
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


@dataclass(frozen=True)
class PerfumeFilter:
    """Catalog filter. Lists are stored as tuples so the value stays hashable."""
    brand_name: Optional[str] = None
    concentration: Optional[str] = None
    longevity: Optional[str] = None
    sillage: Optional[str] = None
    note_names: Tuple[str, ...] = field(default_factory=tuple)
    occasions: Tuple[str, ...] = field(default_factory=tuple)
    min_rating: Optional[float] = None
    max_rating: Optional[float] = None

    def __post_init__(self):
        # Accept lists from callers
        object.__setattr__(self, "note_names", tuple(self.note_names))
        object.__setattr__(self, "occasions", tuple(self.occasions))

    @property
    def is_empty(self) -> bool:
        return (
            self.brand_name is None
            and self.concentration is None
            and self.longevity is None
            and self.sillage is None
            and not self.note_names
            and not self.occasions
            and self.min_rating is None
            and self.max_rating is None
        )

    @property
    def active_count(self) -> int:
        """Number of active filters, min/max rating count as one."""
        count = 0
        for value in (self.brand_name, self.concentration, self.longevity, self.sillage):
            if value is not None:
                count += 1
        if self.note_names:
            count += 1
        if self.occasions:
            count += 1
        if self.min_rating is not None or self.max_rating is not None:
            count += 1
        return count

    @property
    def has_client_side_filters(self) -> bool:
        """Filters the remote query cannot express directly."""
        return bool(self.note_names or self.occasions) or (
            self.min_rating is not None or self.max_rating is not None
        )

    @property
    def cache_key(self) -> str:
        parts = [
            self.brand_name or "",
            self.concentration or "",
            self.longevity or "",
            self.sillage or "",
            ",".join(sorted(self.note_names)),
            ",".join(sorted(self.occasions)),
            "" if self.min_rating is None else str(float(self.min_rating)),
            "" if self.max_rating is None else str(float(self.max_rating)),
        ]
        return "|".join(parts)


class SortOption(Enum):
    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"
    RATING_DESC = "rating_desc"
    RATING_ASC = "rating_asc"
    NEWEST = "newest"
    POPULAR = "popular"

    @property
    def remote_order(self) -> Tuple[str, bool]:
        """(column, ascending) on the remote catalog table."""
        return _REMOTE_ORDER[self]

    @property
    def local_order(self) -> Tuple[str, bool]:
        """(ordering key, descending) for the local store."""
        return _LOCAL_ORDER[self]

    @property
    def label(self) -> str:
        return _LABELS[self]


_REMOTE_ORDER = {
    SortOption.NAME_ASC: ("name", True),
    SortOption.NAME_DESC: ("name", False),
    SortOption.RATING_DESC: ("performance", False),
    SortOption.RATING_ASC: ("performance", True),
    SortOption.NEWEST: ("created_at", False),
    SortOption.POPULAR: ("performance", False),
}

_LOCAL_ORDER = {
    SortOption.NAME_ASC: ("name", False),
    SortOption.NAME_DESC: ("name", True),
    SortOption.RATING_DESC: ("performance", True),
    SortOption.RATING_ASC: ("performance", False),
    SortOption.NEWEST: ("created", True),
    SortOption.POPULAR: ("performance", True),
}

_LABELS = {
    SortOption.NAME_ASC: "Name (A-Z)",
    SortOption.NAME_DESC: "Name (Z-A)",
    SortOption.RATING_DESC: "Best rated",
    SortOption.RATING_ASC: "Lowest rated",
    SortOption.NEWEST: "Newest",
    SortOption.POPULAR: "Most popular",
}
