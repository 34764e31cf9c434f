import asyncio

import pytest

from shop.orders import can_cancel, status_label
from shop.reviews import average_rating
from shop.schemas import Review
from shop.storefront import Storefront


def _order(user_id, status, order_id):
    return {"id": order_id, "userId": user_id, "items": [], "total": 10.0, "date": "2026-01-02T10:00:00", "status": status}


@pytest.mark.parametrize(
    "status, allowed",
    [("pending", True), ("processing", True), ("shipped", False), ("delivered", False), ("cancelled", False)],
)
def test_can_cancel(status, allowed):
    assert can_cancel(status) is allowed


def test_status_label_falls_back_to_raw_value():
    assert status_label("shipped") == "Shipped"
    assert status_label("lost") == "lost"


def test_cancel_pending_order(signed_in, backend, notifier):
    backend.seed("orders", [_order(signed_in.user.id, "pending", 1)])
    asyncio.run(signed_in.orders.load())

    ok = asyncio.run(signed_in.orders.cancel(signed_in.orders.get(1)))

    assert ok is True
    assert backend.find("orders", 1)["status"] == "cancelled"
    assert signed_in.orders.get(1).status == "cancelled"
    assert notifier.last().level == "success"


def test_cancel_delivered_order_is_not_sent(signed_in, backend, notifier):
    backend.seed("orders", [_order(signed_in.user.id, "delivered", 1)])
    asyncio.run(signed_in.orders.load())

    ok = asyncio.run(signed_in.orders.cancel(signed_in.orders.get(1)))

    assert ok is False
    assert backend.calls_to("PATCH", "orders") == []
    assert backend.find("orders", 1)["status"] == "delivered"
    assert notifier.last().level == "warning"


def test_orders_only_lists_own(signed_in, backend):
    backend.seed("orders", [_order(signed_in.user.id, "pending", 1), _order(999, "pending", 2)])

    orders = asyncio.run(signed_in.orders.load())

    assert [order.id for order in orders] == [1]


def test_delete_order_needs_confirmation(api, storage, backend):
    declined = Storefront(api=api, storage=storage, confirm=lambda message: False)
    asyncio.run(declined.register("ada@example.com", "secret123", "Ada"))
    backend.seed("orders", [_order(declined.user.id, "delivered", 1)])

    assert asyncio.run(declined.orders.delete(1)) is False
    assert backend.find("orders", 1) is not None

    accepted = Storefront(api=api, storage=storage)
    assert asyncio.run(accepted.orders.delete(1)) is True
    assert backend.find("orders", 1) is None


def test_average_rating():
    reviews = [Review(user_id=1, product_id=1, rating=r) for r in (5, 3, 4)]

    assert average_rating(reviews) == 4.0
    assert average_rating([]) == 0.0
    assert isinstance(average_rating([]), float)
    assert average_rating([Review(user_id=1, product_id=1, rating=r) for r in (5, 4, 4)]) == 4.3


def test_submit_creates_then_updates_single_review(signed_in, backend, notifier):
    board = signed_in.reviews

    assert asyncio.run(board.submit(1, 4, "Solid sound")) is True
    assert notifier.last().message == "Review submitted successfully!"
    assert asyncio.run(board.submit(1, 2, "Broke after a week")) is True
    assert notifier.last().message == "Review updated successfully!"

    [row] = backend.tables["reviews"]
    assert row["rating"] == 2
    assert row["comment"] == "Broke after a week"
    assert row["userName"] == "Ada"
    assert row["userId"] == signed_in.user.id
    assert board.user_review.id == row["id"]
    assert board.average() == 2.0


def test_other_reviews_excludes_own(signed_in, backend):
    backend.seed("reviews", [{"id": 50, "userId": 999, "productId": 1, "userName": "Bo", "rating": 5, "comment": "Great"}])
    board = signed_in.reviews
    asyncio.run(board.submit(1, 3, "Fine"))

    assert [review.id for review in board.reviews] == [50, 51]
    assert [review.id for review in board.other_reviews()] == [50]
    assert board.average() == 4.0


@pytest.mark.parametrize("rating, comment", [(0, "x"), (6, "x"), (3, "   ")])
def test_submit_rejects_invalid_input(signed_in, backend, notifier, rating, comment):
    assert asyncio.run(signed_in.reviews.submit(1, rating, comment)) is False
    assert backend.calls_to("POST", "reviews") == []
    assert notifier.last().level == "error"


def test_submit_requires_login(shop, backend, notifier):
    assert asyncio.run(shop.reviews.submit(1, 5, "Great")) is False
    assert notifier.last().message == "Please login to leave a review"


def test_delete_review(signed_in, backend):
    board = signed_in.reviews
    asyncio.run(board.submit(1, 5, "Love it"))
    review_id = board.user_review.id

    assert asyncio.run(board.delete(review_id)) is True
    assert board.user_review is None
    assert board.reviews == []
    assert backend.tables["reviews"] == []


def test_failed_review_submit_notifies(signed_in, backend, notifier):
    backend.fail("POST", "reviews")

    assert asyncio.run(signed_in.reviews.submit(1, 5, "Love it")) is False
    assert notifier.last().message == "Failed to submit review. Please try again."
