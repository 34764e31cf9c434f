from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from rich import print as rprint

from .api import ShopAPI
from .errors import NetworkError
from .schemas import Identifier, Product, parse_rows

ALL_CATEGORIES = "All"
DEFAULT_PRICE_RANGE: Tuple[float, float] = (0, 15000)
LOW_STOCK_THRESHOLD = 10

_SORTS: Dict[str, Tuple[Callable[[Product], object], bool]] = {
    "price-low": (lambda p: p.price, False),
    "price-high": (lambda p: p.price, True),
    "rating": (lambda p: p.rating, True),
    "name-asc": (lambda p: p.name.lower(), False),
    "name-desc": (lambda p: p.name.lower(), True),
}
SORT_OPTIONS = ("default", *_SORTS)


def filter_products(
    products: Sequence[Product],
    search: str = "",
    category: str = ALL_CATEGORIES,
    price_range: Tuple[float, float] = DEFAULT_PRICE_RANGE,
    min_rating: float = 0,
    sort_by: str = "default",
) -> List[Product]:
    """Apply the shop's search box, filters and sort order to ``products``."""

    filtered = list(products)

    if search:
        needle = search.lower()
        filtered = [p for p in filtered if needle in p.name.lower() or needle in p.description.lower()]

    if category != ALL_CATEGORIES:
        filtered = [p for p in filtered if p.category == category]

    low, high = price_range
    filtered = [p for p in filtered if low <= p.price <= high]

    if min_rating > 0:
        filtered = [p for p in filtered if p.rating >= min_rating]

    if sort_by in _SORTS:
        key, reverse = _SORTS[sort_by]
        filtered.sort(key=key, reverse=reverse)
    elif sort_by != "default":
        raise ValueError(f"Unknown sort order: {sort_by}")

    return filtered


def stock_label(product: Product) -> str:
    if product.stock <= 0:
        return "Out of Stock"
    if product.stock > LOW_STOCK_THRESHOLD:
        return f"In Stock ({product.stock} available)"
    return f"Low Stock ({product.stock} left)"


class ProductCatalog:
    """Read-only view over ``/products``."""

    def __init__(self, api: ShopAPI) -> None:
        self.api = api
        self.products: List[Product] = []
        self.loading = False

    async def load(self) -> List[Product]:
        self.loading = True
        try:
            rows = await self.api.products.list()
            self.products = parse_rows(Product, rows, "product")
        except NetworkError as exc:
            rprint(f"[red]Error loading products:[/red] {exc}")
        finally:
            self.loading = False
        return self.products

    async def get(self, product_id: Identifier) -> Optional[Product]:
        try:
            return Product.model_validate(await self.api.products.get(product_id))
        except NetworkError as exc:
            rprint(f"[red]Error loading product {product_id}:[/red] {exc}")
            return None

    def categories(self) -> List[str]:
        seen = dict.fromkeys(p.category for p in self.products)
        return [ALL_CATEGORIES, *seen]

    def related(self, product: Product, limit: int = 4) -> List[Product]:
        return [p for p in self.products if p.category == product.category and p.id != product.id][:limit]

    def search(self, **filters) -> List[Product]:
        return filter_products(self.products, **filters)
