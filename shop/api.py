from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

import requests

from config import settings
from .errors import NetworkError
from .schemas import Identifier

TokenProvider = Callable[[], Optional[str]]


class RESTClient:
    """Issue JSON requests against the storefront API with a bearer token attached."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        token_provider: TokenProvider | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.token_provider = token_provider
        self._session = requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    async def request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Send one request and return the decoded body.

        The blocking ``requests`` call runs in a worker thread so several
        requests can be in flight at once. The token is read on the
        caller's thread: storage connections stay on the thread that opened them.
        """

        headers = self._auth_headers()
        return await asyncio.to_thread(self._send, method, path, params, json, headers)

    async def get(self, path: str, params: Dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    def _send(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None,
        json: Any,
        headers: Dict[str, str],
    ) -> Any:
        kwargs: dict[str, Any] = {"headers": headers}
        if params:
            kwargs["params"] = params
        if json is not None:
            kwargs["json"] = json

        try:
            response = self._session.request(
                method=method,
                url=self._build_url(path),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise NetworkError(f"{method} {path} failed: {exc}") from exc

        body = self._decode(response)
        if not response.ok:
            raise NetworkError(
                f"{method} {path} -> {response.status_code} {response.reason}",
                status_code=response.status_code,
                payload=body,
            )
        return body

    def _auth_headers(self) -> dict[str, str]:
        token = self.token_provider() if self.token_provider else None
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    def _build_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url}{path}"

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text


class _Resource:
    def __init__(self, client: RESTClient) -> None:
        self.client = client


class AuthAPI(_Resource):
    async def login(self, email: str, password: str) -> Any:
        return await self.client.post("/login", {"email": email, "password": password})

    async def register(self, email: str, password: str, name: str) -> Any:
        return await self.client.post("/register", {"email": email, "password": password, "name": name})


class ProductsAPI(_Resource):
    async def list(self) -> List[dict]:
        return await self.client.get("/products") or []

    async def get(self, product_id: Identifier) -> dict:
        return await self.client.get(f"/products/{product_id}")

    async def update(self, product_id: Identifier, fields: Dict[str, Any]) -> dict:
        return await self.client.patch(f"/products/{product_id}", fields)


class CartAPI(_Resource):
    async def list(self, user_id: Identifier) -> List[dict]:
        return await self.client.get("/carts", {"userId": user_id}) or []

    async def create(self, item: Dict[str, Any]) -> dict:
        return await self.client.post("/carts", item)

    async def update(self, item_id: Identifier, fields: Dict[str, Any]) -> dict:
        return await self.client.patch(f"/carts/{item_id}", fields)

    async def delete(self, item_id: Identifier) -> Any:
        return await self.client.delete(f"/carts/{item_id}")

    async def clear(self, user_id: Identifier) -> None:
        """Delete every cart row the server holds for ``user_id``."""

        items = await self.list(user_id)
        await asyncio.gather(*(self.delete(item["id"]) for item in items))


class FavouritesAPI(_Resource):
    async def list(self, user_id: Identifier) -> List[dict]:
        return await self.client.get("/favourites", {"userId": user_id}) or []

    async def find(self, user_id: Identifier, product_id: Identifier) -> List[dict]:
        return await self.client.get("/favourites", {"userId": user_id, "productId": product_id}) or []

    async def create(self, item: Dict[str, Any]) -> dict:
        return await self.client.post("/favourites", item)

    async def delete(self, item_id: Identifier) -> Any:
        return await self.client.delete(f"/favourites/{item_id}")


class OrdersAPI(_Resource):
    async def list(self, user_id: Identifier) -> List[dict]:
        return await self.client.get("/orders", {"userId": user_id}) or []

    async def get(self, order_id: Identifier) -> dict:
        return await self.client.get(f"/orders/{order_id}")

    async def create(self, order: Dict[str, Any]) -> dict:
        return await self.client.post("/orders", order)

    async def update(self, order_id: Identifier, fields: Dict[str, Any]) -> dict:
        return await self.client.patch(f"/orders/{order_id}", fields)

    async def cancel(self, order_id: Identifier) -> dict:
        return await self.update(order_id, {"status": "cancelled"})

    async def delete(self, order_id: Identifier) -> Any:
        return await self.client.delete(f"/orders/{order_id}")


class ReviewsAPI(_Resource):
    async def list(self, product_id: Identifier) -> List[dict]:
        return await self.client.get("/reviews", {"productId": product_id}) or []

    async def find(self, user_id: Identifier, product_id: Identifier) -> List[dict]:
        return await self.client.get("/reviews", {"userId": user_id, "productId": product_id}) or []

    async def create(self, review: Dict[str, Any]) -> dict:
        return await self.client.post("/reviews", review)

    async def update(self, review_id: Identifier, fields: Dict[str, Any]) -> dict:
        return await self.client.patch(f"/reviews/{review_id}", fields)

    async def delete(self, review_id: Identifier) -> Any:
        return await self.client.delete(f"/reviews/{review_id}")


class UsersAPI(_Resource):
    async def get(self, user_id: Identifier) -> dict:
        return await self.client.get(f"/users/{user_id}")

    async def update(self, user_id: Identifier, fields: Dict[str, Any]) -> dict:
        return await self.client.patch(f"/users/{user_id}", fields)


class ShopAPI:
    """All REST resources of the storefront, sharing one client."""

    def __init__(self, client: RESTClient) -> None:
        self.client = client
        self.auth = AuthAPI(client)
        self.products = ProductsAPI(client)
        self.carts = CartAPI(client)
        self.favourites = FavouritesAPI(client)
        self.orders = OrdersAPI(client)
        self.reviews = ReviewsAPI(client)
        self.users = UsersAPI(client)
