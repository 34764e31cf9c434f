from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as SchemaError
from rich import print as rprint

# json-server hands out integer ids, json-server-auth sometimes strings.
Identifier = Union[int, str]

OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]


class WireModel(BaseModel):
    """Base for records exchanged with the REST API (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class User(WireModel):
    id: Identifier
    email: str = ""
    name: str = ""
    phone: str = ""
    address: str = ""


class Product(WireModel):
    id: Identifier
    name: str
    description: str = ""
    price: float = 0.0
    category: str = ""
    rating: float = 0.0
    stock: int = 0
    image: Optional[str] = None
    specs: Dict[str, Any] = Field(default_factory=dict)


class CartItem(WireModel):
    """One line of a user's cart; ``product`` is a snapshot taken at add time."""

    id: Identifier
    user_id: Identifier = Field(alias="userId")
    product_id: Identifier = Field(alias="productId")
    product: Product
    quantity: int = 1


class FavouriteItem(WireModel):
    id: Identifier
    user_id: Identifier = Field(alias="userId")
    product_id: Identifier = Field(alias="productId")
    product: Product
    is_temp: bool = Field(False, alias="isTemp")


class OrderLine(WireModel):
    product_id: Identifier = Field(alias="productId")
    product: Product
    quantity: int
    price: float


class Order(WireModel):
    id: Optional[Identifier] = None
    user_id: Identifier = Field(alias="userId")
    items: List[OrderLine] = Field(default_factory=list)
    total: float = 0.0
    date: str = ""
    status: OrderStatus = "pending"


class Review(WireModel):
    id: Optional[Identifier] = None
    user_id: Identifier = Field(alias="userId")
    product_id: Identifier = Field(alias="productId")
    user_name: str = Field("", alias="userName")
    rating: int = 5
    comment: str = ""
    date: str = ""


class AuthResult(BaseModel):
    success: bool
    error: Optional[str] = None


class CheckoutResult(BaseModel):
    success: bool
    order: Optional[Order] = None
    error: Optional[str] = None
    stock_failures: List[Identifier] = Field(default_factory=list)


def coerce_id(raw: Identifier) -> Identifier:
    """Turn a digit-only string (e.g. from the command line) into an int id."""

    if isinstance(raw, str) and raw.isdigit():
        return int(raw)
    return raw


ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_rows(model: Type[ModelT], rows: Any, label: str) -> List[ModelT]:
    """Validate server rows as ``model``, logging and skipping the ones that do not fit."""

    parsed: List[ModelT] = []
    for row in rows or []:
        try:
            parsed.append(model.model_validate(row))
        except SchemaError as exc:
            row_id = row.get("id") if isinstance(row, dict) else None
            rprint(f"[yellow]Skipping malformed {label} row {row_id}:[/yellow] {exc.error_count()} invalid field(s)")
    return parsed
