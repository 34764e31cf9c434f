from __future__ import annotations

import itertools
from typing import List, Optional

from pydantic import ValidationError as SchemaError
from rich import print as rprint

from .api import ShopAPI
from .errors import NetworkError
from .schemas import FavouriteItem, Identifier, Product, User, parse_rows
from .session import SessionStore

TEMP_ID_PREFIX = "temp-"


class FavouritesStore:
    """The signed-in user's favourites, inserted optimistically under a temporary id.

    ``add`` places a placeholder tagged ``is_temp`` before the create request
    resolves. When the response arrives it looks at the live list again: if the
    placeholder was toggled off in the meantime the freshly created record is
    deleted on the server, otherwise the placeholder is swapped for it in place.
    ``remove`` of a placeholder never talks to the server for that reason.
    """

    def __init__(self, api: ShopAPI, session: SessionStore) -> None:
        self.api = api
        self.session = session
        self.items: List[FavouriteItem] = []
        self.loading = False
        self._temp_ids = itertools.count(1)

    @property
    def user(self) -> Optional[User]:
        return self.session.user

    def reset(self) -> None:
        self.items = []
        self.loading = False

    def find(self, product_id: Identifier) -> Optional[FavouriteItem]:
        return next((item for item in self.items if item.product_id == product_id), None)

    def contains(self, product_id: Identifier) -> bool:
        return self.find(product_id) is not None

    def _next_temp_id(self) -> str:
        return f"{TEMP_ID_PREFIX}{next(self._temp_ids)}"

    async def load(self, silent: bool = False) -> None:
        if self.user is None:
            return
        if not silent:
            self.loading = True
        try:
            rows = await self.api.favourites.list(self.user.id)
            self.items = parse_rows(FavouriteItem, rows, "favourite")
        except NetworkError as exc:
            rprint(f"[red]Error loading favourites:[/red] {exc}")
        finally:
            if not silent:
                self.loading = False

    async def add(self, product: Product) -> None:
        user = self.user
        if user is None or self.contains(product.id):
            return

        temp_id = self._next_temp_id()
        placeholder = FavouriteItem(
            id=temp_id,
            user_id=user.id,
            product_id=product.id,
            product=product,
            is_temp=True,
        )
        self.items = [*self.items, placeholder]

        try:
            created = await self.api.favourites.create(
                {"userId": user.id, "productId": product.id, "product": product.to_wire()}
            )
            confirmed = FavouriteItem.model_validate(created)

            if not any(item.id == temp_id for item in self.items):
                # Toggled off while the create was in flight.
                await self.api.favourites.delete(confirmed.id)
                return

            self.items = [confirmed if item.id == temp_id else item for item in self.items]
        except NetworkError as exc:
            rprint(f"[red]Error adding to favourites:[/red] {exc}")
            self.items = [item for item in self.items if item.id != temp_id]
        except SchemaError as exc:
            rprint(f"[red]Unexpected favourite from server:[/red] {exc.error_count()} invalid field(s)")
            self.items = [item for item in self.items if item.id != temp_id]
            await self.load(silent=True)

    async def remove(self, item_id: Identifier) -> None:
        if self.user is None:
            return

        previous = self.items
        target = next((item for item in self.items if item.id == item_id), None)
        if target is None:
            return

        self.items = [item for item in self.items if item.id != item_id]
        if target.is_temp:
            return

        try:
            await self.api.favourites.delete(item_id)
        except NetworkError as exc:
            rprint(f"[red]Error removing from favourites:[/red] {exc}")
            self.items = previous

    async def toggle(self, product: Product) -> bool:
        """Flip the favourite state of ``product``; returns True when it was added."""

        if self.user is None:
            return False
        existing = self.find(product.id)
        if existing is not None:
            await self.remove(existing.id)
            return False
        await self.add(product)
        return True
