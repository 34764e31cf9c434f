from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from rich import print as rprint

from .api import ShopAPI
from .errors import NetworkError, ValidationError
from .notifications import Notifier
from .schemas import Identifier, Review, parse_rows
from .session import SessionStore

Confirm = Callable[[str], bool]


def average_rating(reviews: Sequence[Review]) -> float:
    """Mean rating rounded to one decimal; 0.0 when there are no reviews."""

    if not reviews:
        return 0.0
    return round(sum(review.rating for review in reviews) / len(reviews), 1)


def validate_review(rating: int, comment: str) -> None:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be a whole number between 1 and 5")
    if not comment.strip():
        raise ValidationError("Please write a comment")


class ReviewBoard:
    """Reviews for one product at a time; each user holds at most one per product."""

    def __init__(self, api: ShopAPI, session: SessionStore, notifier: Notifier, confirm: Confirm) -> None:
        self.api = api
        self.session = session
        self.notifier = notifier
        self.confirm = confirm
        self.product_id: Optional[Identifier] = None
        self.reviews: List[Review] = []
        self.user_review: Optional[Review] = None

    async def load(self, product_id: Identifier) -> List[Review]:
        if product_id != self.product_id:
            self.user_review = None
        self.product_id = product_id
        try:
            rows = await self.api.reviews.list(product_id)
            self.reviews = parse_rows(Review, rows, "review")
        except NetworkError as exc:
            rprint(f"[red]Error loading reviews:[/red] {exc}")
        return self.reviews

    async def load_user_review(self, product_id: Identifier) -> Optional[Review]:
        user = self.session.user
        if user is None:
            self.user_review = None
            return None
        try:
            rows = await self.api.reviews.find(user.id, product_id)
            self.user_review = Review.model_validate(rows[0]) if rows else None
        except NetworkError as exc:
            rprint(f"[red]Error checking user review:[/red] {exc}")
        return self.user_review

    def other_reviews(self) -> List[Review]:
        if self.user_review is None:
            return list(self.reviews)
        return [review for review in self.reviews if review.id != self.user_review.id]

    def average(self) -> float:
        return average_rating(self.reviews)

    async def submit(self, product_id: Identifier, rating: int, comment: str) -> bool:
        """Create the user's review for ``product_id``, or update the one they already wrote."""

        user = self.session.user
        if user is None:
            self.notifier.warning("Please login to leave a review")
            return False
        try:
            validate_review(rating, comment)
        except ValidationError as exc:
            self.notifier.error(str(exc))
            return False

        try:
            rows = await self.api.reviews.find(user.id, product_id)
            existing = Review.model_validate(rows[0]) if rows else None
            if existing is not None:
                await self.api.reviews.update(existing.id, {"rating": rating, "comment": comment})
                message = "Review updated successfully!"
            else:
                review = Review(
                    user_id=user.id,
                    product_id=product_id,
                    user_name=user.name or user.email,
                    rating=rating,
                    comment=comment,
                    date=datetime.now(timezone.utc).isoformat(),
                )
                await self.api.reviews.create(review.to_wire())
                message = "Review submitted successfully!"
        except NetworkError as exc:
            rprint(f"[red]Error submitting review:[/red] {exc}")
            self.notifier.error("Failed to submit review. Please try again.")
            return False

        self.notifier.success(message)
        await self.load(product_id)
        await self.load_user_review(product_id)
        return True

    async def delete(self, review_id: Identifier) -> bool:
        if not self.confirm("Are you sure you want to delete your review?"):
            return False
        try:
            await self.api.reviews.delete(review_id)
        except NetworkError as exc:
            rprint(f"[red]Error deleting review:[/red] {exc}")
            self.notifier.error("Failed to delete review. Please try again.")
            return False

        self.notifier.success("Review deleted successfully!")
        if self.user_review is not None and self.user_review.id == review_id:
            self.user_review = None
        if self.product_id is not None:
            await self.load(self.product_id)
        return True
