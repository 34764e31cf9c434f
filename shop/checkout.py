from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from rich import print as rprint

from .api import ShopAPI
from .cart import CartStore
from .errors import InsufficientStockError, NetworkError, ShopError, error_detail
from .notifications import Notifier
from .schemas import CheckoutResult, Identifier, Order, OrderLine
from .session import SessionStore

CHECKOUT_FALLBACK = "Failed to place order. Please try again."


class Checkout:
    """Turn the current cart into an order.

    The steps are not atomic: once the order exists, stock decrements are
    best-effort per product and a failure there is only logged.
    """

    def __init__(self, api: ShopAPI, session: SessionStore, cart: CartStore, notifier: Notifier) -> None:
        self.api = api
        self.session = session
        self.cart = cart
        self.notifier = notifier
        self.in_progress = False

    def check_stock(self) -> None:
        """Raise InsufficientStockError for the first line exceeding its snapshot stock."""

        for item in self.cart.items:
            if item.quantity > item.product.stock:
                raise InsufficientStockError(item.product.name, item.product.stock)

    def build_order(self) -> Order:
        user = self.session.user
        return Order(
            user_id=user.id,
            items=[
                OrderLine(
                    product_id=item.product_id,
                    product=item.product,
                    quantity=item.quantity,
                    price=item.product.price,
                )
                for item in self.cart.items
            ],
            total=self.cart.total_price(),
            date=datetime.now(timezone.utc).isoformat(),
            status="pending",
        )

    async def run(self) -> CheckoutResult:
        user = self.session.user
        if user is None:
            return CheckoutResult(success=False, error="Not signed in")
        if not self.cart.items:
            return CheckoutResult(success=False, error="Cart is empty")

        try:
            self.check_stock()
        except InsufficientStockError as exc:
            self.notifier.error(str(exc))
            return CheckoutResult(success=False, error=str(exc))

        self.in_progress = True
        try:
            order = self.build_order()
            created = await self.api.orders.create(order.to_wire())
            if isinstance(created, dict):
                order = order.model_copy(update={"id": created.get("id")})
            failures = await self._decrement_stock(order.items)
            await self.cart.clear()
        except ShopError as exc:
            rprint(f"[red]Checkout failed:[/red] {exc!r}")
            detail = error_detail(exc, CHECKOUT_FALLBACK)
            self.notifier.error(f"Checkout failed: {detail}")
            return CheckoutResult(success=False, error=detail)
        finally:
            self.in_progress = False

        self.notifier.success("Order placed successfully!")
        return CheckoutResult(success=True, order=order, stock_failures=failures)

    async def _decrement_stock(self, lines: List[OrderLine]) -> List[Identifier]:
        failures: List[Identifier] = []
        for line in lines:
            try:
                current = await self.api.products.get(line.product_id)
                new_stock = current["stock"] - line.quantity
                if new_stock >= 0:
                    await self.api.products.update(line.product_id, {"stock": new_stock})
            except (NetworkError, KeyError, TypeError) as exc:
                rprint(f"[yellow]Failed to update stock for product {line.product_id}:[/yellow] {exc}")
                failures.append(line.product_id)
        return failures
