# =============================================================================
# scentbox_core/services/review_service.py
# Reviews for a catalog item
# =============================================================================
"""
Review operations for the detail screen.

One review per user per item: saving again updates the existing review
instead of inserting a second one. Reviews are remote-only; nothing is
cached locally.
"""

from __future__ import annotations
import uuid
from datetime import datetime
from typing import Callable, List, Optional

import pandas as pd

from scentbox_core.auth import AuthContext
from scentbox_core.data.retry import INITIAL_DELAY, MAX_ATTEMPTS, with_retry
from scentbox_core.data.review_source import RemoteReviewSource
from scentbox_core.domain import RatingStats, Review
from scentbox_core.errors import DataValidationError
from scentbox_core.logging import record
from .base_service import BaseService, ServiceResult

REVIEW_PAGE_SIZE = 10


def compute_rating_stats(ratings: List[int]) -> RatingStats:
    series = pd.Series(ratings, dtype="float64").dropna()
    if series.empty:
        return RatingStats(average=None, count=0)
    return RatingStats(average=round(float(series.mean()), 2), count=int(series.count()))


class ReviewService(BaseService):

    def __init__(
        self,
        source: RemoteReviewSource,
        auth: Optional[AuthContext] = None,
        retry_attempts: int = MAX_ATTEMPTS,
        retry_initial_delay: float = INITIAL_DELAY,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        super().__init__(auth)
        self.source = source
        self.retry_attempts = retry_attempts
        self.retry_initial_delay = retry_initial_delay
        self._sleep = sleep

    def _retry(self, operation, description: str):
        return with_retry(
            operation,
            max_attempts=self.retry_attempts,
            initial_delay=self.retry_initial_delay,
            sleep=self._sleep,
            description=description,
        )

    def list_reviews(self, item_id: str, page: int = 0, page_size: int = REVIEW_PAGE_SIZE) -> ServiceResult:
        """Newest first, paginated."""
        return self.safe_execute(
            f"Loading reviews for {item_id}",
            self._retry,
            lambda: self.source.fetch_reviews(item_id, page, page_size),
            "fetch reviews",
        )

    def rating_stats(self, item_id: str) -> ServiceResult:
        def load() -> RatingStats:
            ratings = self._retry(lambda: self.source.fetch_ratings(item_id), "fetch ratings")
            return compute_rating_stats(ratings)

        return self.safe_execute(f"Loading rating stats for {item_id}", load)

    def existing_review(self, item_id: str) -> ServiceResult:
        """The current user's review of this item, or None."""
        def load() -> Optional[Review]:
            user_id = self.require_user()
            return self._retry(lambda: self.source.fetch_existing_review(item_id, user_id), "fetch own review")

        return self.safe_execute(f"Checking own review for {item_id}", load)

    def save_review(self, item_id: str, title: str, text: str, rating: int) -> ServiceResult:
        """
        Create the user's review, or update it if one exists.

        Returns:
            ServiceResult with the saved Review; validation errors (rating
            outside 1-5, signed out) fail without a remote call
        """
        def save() -> Review:
            user_id = self.require_user()
            if not isinstance(rating, int) or not Review.MIN_RATING <= rating <= Review.MAX_RATING:
                raise DataValidationError(
                    "Rating must be between 1 and 5", field="rating", expected="1-5", actual=str(rating)
                )
            existing = self._retry(lambda: self.source.fetch_existing_review(item_id, user_id), "fetch own review")
            author = self.source.resolve_author_name(user_id, self.auth.current_user_email())

            review = Review(
                id=existing.id if existing else str(uuid.uuid4()),
                item_id=item_id,
                title=title.strip(),
                text=text.strip(),
                rating=rating,
                created_at=existing.created_at if existing else datetime.now(),
                author_name=author,
                user_id=user_id,
            )

            if existing:
                self._retry(lambda: self.source.update_review(review), "update review")
                record("reviews", "info", f"Updated review {review.id}")
            else:
                self._retry(lambda: self.source.insert_review(review), "insert review")
                record("reviews", "info", f"Created review {review.id}")
            return review

        return self.safe_execute(
            f"Saving review for {item_id}",
            save,
        )

    def delete_review(self, review_id: str) -> ServiceResult:
        def delete() -> str:
            self.require_user()
            self._retry(lambda: self.source.delete_review(review_id), "delete review")
            record("reviews", "info", f"Deleted review {review_id}")
            return review_id

        return self.safe_execute(f"Deleting review {review_id}", delete)
