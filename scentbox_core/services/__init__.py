# =============================================================================
# scentbox_core/services/__init__.py
# Service Layer for ScentBox
# =============================================================================

from .base_service import BaseService, ServiceResult
from .review_service import ReviewService, compute_rating_stats, REVIEW_PAGE_SIZE

__all__ = [
    "BaseService",
    "ServiceResult",
    "ReviewService",
    "compute_rating_stats",
    "REVIEW_PAGE_SIZE",
]
