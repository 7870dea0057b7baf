from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

import requests

from .api_client import StorefrontAPIError, StorefrontClient
from .logger import get_logger
from .schemas import Review, ReviewIn

logger = get_logger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def review_problems(product_id: Optional[str], review: Optional[ReviewIn]) -> list[str]:
    """Everything wrong with a submission; empty when it can be sent."""
    problems: list[str] = []
    if not (product_id or "").strip():
        problems.append("productId is required")
    if review is None:
        problems.append("review is required")
        return problems
    if not (review.name or "").strip():
        problems.append("name is required")
    if not (review.comment or "").strip():
        problems.append("comment is required")
    if review.rating is None:
        problems.append("rating is required")
    elif not MIN_RATING <= review.rating <= MAX_RATING:
        problems.append(f"rating must be between {MIN_RATING} and {MAX_RATING}")
    return problems


def build_review(review: ReviewIn, now: Optional[datetime] = None) -> Review:
    now = now or datetime.now(timezone.utc)
    return Review(
        name=(review.name or "").strip(),
        rating=review.rating,
        comment=(review.comment or "").strip(),
        date=now.isoformat(),
    )


def average_rating(reviews: Iterable[Review]) -> float:
    ratings = [r.rating for r in reviews]
    if not ratings:
        return 0.0
    return sum(ratings) / len(ratings)


@dataclass
class ReviewResult:
    ok: bool
    message: str
    review: Optional[dict] = None


class ReviewSubmitter:
    """Product-page side of a review: validate locally, then send it once."""

    def __init__(self, client: StorefrontClient) -> None:
        self.client = client
        self.loading = False

    def submit(self, product_id: str, review: ReviewIn) -> ReviewResult:
        if self.loading:
            return ReviewResult(False, "A review is already being submitted.")

        problems = review_problems(product_id, review)
        if problems:
            logger.info("Review for %s rejected: %s", product_id, "; ".join(problems))
            return ReviewResult(False, "Please fill out all fields and provide a rating.")

        self.loading = True
        try:
            data = self.client.submit_review(product_id, review)
        except (StorefrontAPIError, requests.RequestException, ValueError) as e:
            logger.error("Error submitting review for %s: %s", product_id, e)
            return ReviewResult(False, "Failed to submit review. Please try again.")
        finally:
            self.loading = False

        return ReviewResult(True, "Review submitted successfully!", review=data.get("review"))
