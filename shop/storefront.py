from __future__ import annotations

import asyncio
from typing import Callable, Optional

from config import Settings, settings as default_settings
from .api import RESTClient, ShopAPI
from .cart import CartStore
from .catalog import ProductCatalog
from .checkout import Checkout
from .favourites import FavouritesStore
from .notifications import Notifier
from .orders import OrderHistory
from .reviews import ReviewBoard
from .schemas import AuthResult
from .session import SessionStore
from .storage import KeyValueStorage


def always_confirm(message: str) -> bool:
    return True


class Storefront:
    """Every service of one shopping session, wired together.

    Nothing here is module-global: two Storefront objects with different
    storage act as two independent shoppers.
    """

    def __init__(
        self,
        api: Optional[ShopAPI] = None,
        storage: Optional[KeyValueStorage] = None,
        notifier: Optional[Notifier] = None,
        confirm: Callable[[str], bool] = always_confirm,
        settings: Optional[Settings] = None,
    ) -> None:
        cfg = settings or default_settings
        self.storage = storage or KeyValueStorage(cfg.storage_path)
        if api is None:
            client = RESTClient(
                base_url=cfg.api_base_url,
                timeout=cfg.request_timeout,
                token_provider=lambda: self.storage.get("token"),
            )
            api = ShopAPI(client)
        self.api = api
        self.notifier = notifier or Notifier()

        self.session = SessionStore(self.api, self.storage)
        self.catalog = ProductCatalog(self.api)
        self.cart = CartStore(self.api, self.session)
        self.favourites = FavouritesStore(self.api, self.session)
        self.checkout = Checkout(self.api, self.session, self.cart, self.notifier)
        self.orders = OrderHistory(self.api, self.session, self.notifier, confirm)
        self.reviews = ReviewBoard(self.api, self.session, self.notifier, confirm)

    @property
    def user(self):
        return self.session.user

    async def start(self) -> None:
        """Load per-user state for an identity restored from storage."""

        if self.session.is_authenticated:
            await self._load_user_state()

    async def login(self, email: str, password: str) -> AuthResult:
        result = await self.session.login(email, password)
        if result.success:
            await self._load_user_state()
        return result

    async def register(self, email: str, password: str, name: str) -> AuthResult:
        result = await self.session.register(email, password, name)
        if result.success:
            await self._load_user_state()
        return result

    def logout(self) -> None:
        self.session.logout()
        self.cart.reset()
        self.favourites.reset()
        self.orders.reset()
        self.reviews.user_review = None

    async def _load_user_state(self) -> None:
        await asyncio.gather(self.cart.load(), self.favourites.load())
