from __future__ import annotations

from typing import Callable, List

from rich import print as rprint

from .api import ShopAPI
from .errors import NetworkError
from .notifications import Notifier
from .schemas import Identifier, Order, parse_rows
from .session import SessionStore

CANCELLABLE_STATUSES = frozenset({"pending", "processing"})

STATUS_LABELS = {
    "pending": "Pending",
    "processing": "Processing",
    "shipped": "Shipped",
    "delivered": "Delivered",
    "cancelled": "Cancelled",
}

Confirm = Callable[[str], bool]


def can_cancel(status: str) -> bool:
    return status in CANCELLABLE_STATUSES


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


class OrderHistory:
    """The signed-in user's past orders, with cancel and delete."""

    def __init__(self, api: ShopAPI, session: SessionStore, notifier: Notifier, confirm: Confirm) -> None:
        self.api = api
        self.session = session
        self.notifier = notifier
        self.confirm = confirm
        self.orders: List[Order] = []
        self.loading = False

    def reset(self) -> None:
        self.orders = []

    async def load(self) -> List[Order]:
        user = self.session.user
        if user is None:
            return []
        self.loading = True
        try:
            rows = await self.api.orders.list(user.id)
            self.orders = parse_rows(Order, rows, "order")
        except NetworkError as exc:
            rprint(f"[red]Error loading orders:[/red] {exc}")
            self.orders = []
        finally:
            self.loading = False
        return self.orders

    async def cancel(self, order: Order) -> bool:
        """Cancel ``order`` if its status still allows it; nothing is sent otherwise."""

        if not can_cancel(order.status):
            self.notifier.warning(f"Orders that are {status_label(order.status).lower()} cannot be cancelled")
            return False
        try:
            await self.api.orders.cancel(order.id)
        except NetworkError as exc:
            rprint(f"[red]Error cancelling order:[/red] {exc}")
            self.notifier.error("Failed to cancel order. Please try again.")
            return False
        self.notifier.success("Order cancelled successfully!")
        await self.load()
        return True

    async def delete(self, order_id: Identifier) -> bool:
        if not self.confirm("Are you sure you want to delete this order? This action cannot be undone."):
            return False
        try:
            await self.api.orders.delete(order_id)
        except NetworkError as exc:
            rprint(f"[red]Error deleting order:[/red] {exc}")
            self.notifier.error("Failed to delete order. Please try again.")
            return False
        self.notifier.success("Order deleted successfully!")
        await self.load()
        return True

    def get(self, order_id: Identifier) -> Order | None:
        return next((order for order in self.orders if order.id == order_id), None)
