from __future__ import annotations

from typing import List, Optional

from rich import print as rprint

from .api import ShopAPI
from .errors import NetworkError
from .schemas import CartItem, Identifier, Product, User, parse_rows
from .session import SessionStore


class CartStore:
    """The signed-in user's cart, kept in step with ``/carts`` via optimistic updates.

    Every mutation swaps ``items`` for a new list, so a snapshot taken before a
    request can be restored as-is when the request fails.
    """

    def __init__(self, api: ShopAPI, session: SessionStore) -> None:
        self.api = api
        self.session = session
        self.items: List[CartItem] = []
        self.loading = False

    @property
    def user(self) -> Optional[User]:
        return self.session.user

    def reset(self) -> None:
        self.items = []
        self.loading = False

    def find(self, product_id: Identifier) -> Optional[CartItem]:
        return next((item for item in self.items if item.product_id == product_id), None)

    def contains(self, product_id: Identifier) -> bool:
        return self.find(product_id) is not None

    async def load(self, silent: bool = False) -> None:
        """Fetch the user's cart; ``silent`` leaves ``loading`` untouched."""

        if self.user is None:
            return
        if not silent:
            self.loading = True
        try:
            rows = await self.api.carts.list(self.user.id)
            self.items = parse_rows(CartItem, rows, "cart")
        except NetworkError as exc:
            rprint(f"[red]Error loading cart:[/red] {exc}")
        finally:
            if not silent:
                self.loading = False

    async def add(self, product: Product) -> None:
        user = self.user
        if user is None:
            return

        existing = self.find(product.id)
        if existing is not None:
            # No rollback on this path: a failed PATCH leaves the bumped quantity
            # in place until the next load.
            self.items = [
                item.model_copy(update={"quantity": item.quantity + 1}) if item.product_id == product.id else item
                for item in self.items
            ]
            try:
                await self.api.carts.update(existing.id, {"quantity": existing.quantity + 1})
            except NetworkError as exc:
                rprint(f"[red]Error adding to cart:[/red] {exc}")
            return

        try:
            await self.api.carts.create(
                {
                    "userId": user.id,
                    "productId": product.id,
                    "product": product.to_wire(),
                    "quantity": 1,
                }
            )
        except NetworkError as exc:
            rprint(f"[red]Error adding to cart:[/red] {exc}")
        await self.load(silent=True)

    async def update_quantity(self, item_id: Identifier, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line."""

        if self.user is None:
            return
        if quantity <= 0:
            await self.remove(item_id)
            return

        previous = self.items
        self.items = [
            item.model_copy(update={"quantity": quantity}) if item.id == item_id else item for item in self.items
        ]
        try:
            await self.api.carts.update(item_id, {"quantity": quantity})
        except NetworkError as exc:
            rprint(f"[red]Error updating cart:[/red] {exc}")
            self.items = previous

    async def remove(self, item_id: Identifier) -> None:
        if self.user is None:
            return

        previous = self.items
        self.items = [item for item in self.items if item.id != item_id]
        try:
            await self.api.carts.delete(item_id)
        except NetworkError as exc:
            rprint(f"[red]Error removing from cart:[/red] {exc}")
            self.items = previous

    async def clear(self) -> None:
        user = self.user
        if user is None:
            return

        self.items = []
        try:
            await self.api.carts.clear(user.id)
        except NetworkError as exc:
            rprint(f"[red]Error clearing cart:[/red] {exc}")
            await self.load(silent=True)

    def total_price(self) -> float:
        return sum(item.product.price * item.quantity for item in self.items)

    def count(self) -> int:
        return sum(item.quantity for item in self.items)
