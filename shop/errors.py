from __future__ import annotations

import json
from typing import Any, Optional


class ShopError(Exception):
    """Base class for storefront client failures."""


class AuthError(ShopError):
    """The auth endpoint answered without a token or a user."""


class NetworkError(ShopError):
    """A request failed: timeout, connectivity or a non-2xx response."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class ValidationError(ShopError):
    """A client-side rule rejected the operation before any request was sent."""


class InsufficientStockError(ValidationError):
    def __init__(self, product_name: str, available: int) -> None:
        super().__init__(f"Not enough stock for {product_name}. Available: {available}")
        self.product_name = product_name
        self.available = available


def error_detail(exc: BaseException, fallback: str) -> str:
    """Pick the most informative message an error carries.

    Order: plain-text payload, payload["message"], payload["error"],
    the JSON-dumped payload, the exception message, then ``fallback``.
    """

    payload = getattr(exc, "payload", None)
    if payload:
        if isinstance(payload, str):
            return payload
        if isinstance(payload, dict):
            if payload.get("message"):
                return str(payload["message"])
            if payload.get("error"):
                return str(payload["error"])
        return json.dumps(payload)
    message = str(exc)
    return message or fallback
