"""Catalog domain values: entities, user status codec, filter and sort."""

from .status import (
    UserStatus,
    STATUS_ENCODING_VERSION,
    encode_status,
    decode_status,
)
from .entities import (
    NOTE_ROLES,
    Brand,
    Note,
    CatalogItem,
    UserStatusRecord,
    RemoteStatusEntry,
    Review,
    RatingStats,
)
from .filters import PerfumeFilter, SortOption

__all__ = [
    "UserStatus",
    "STATUS_ENCODING_VERSION",
    "encode_status",
    "decode_status",
    "NOTE_ROLES",
    "Brand",
    "Note",
    "CatalogItem",
    "UserStatusRecord",
    "RemoteStatusEntry",
    "Review",
    "RatingStats",
    "PerfumeFilter",
    "SortOption",
]
