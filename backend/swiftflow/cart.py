# Overview: Shopper cart value object and the WhatsApp order handoff.

"""
A cart holds items from exactly one store. Adding an item from another store
starts a fresh cart for that store; a stored cart that mixes stores is
treated as corrupt and loads empty.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from urllib.parse import quote

from .time_utils import format_cents
from .validation import ValidationError


WHATSAPP_BASE_URL = "https://wa.me/"


def _whole_number(value, message: str) -> int:
    """Accept ints, integral floats and digit strings; anything else is invalid."""
    if isinstance(value, bool):
        raise ValidationError(message)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.removeprefix("-").isdecimal():
            return int(text)
        raise ValidationError(message)
    if isinstance(value, int):
        return value
    raise ValidationError(message)


def _price_cents(raw: dict) -> int:
    for key in ("price_cents", "priceCents"):
        if raw.get(key) is not None:
            cents = _whole_number(raw[key], "Cart item price must be a whole number of cents")
            if cents < 0:
                raise ValidationError("Cart item price cannot be negative")
            return cents
    # Legacy carts stored a decimal rand amount
    try:
        return int((Decimal(str(raw.get("price", 0))) * 100).quantize(Decimal("1")))
    except (InvalidOperation, ValueError):
        raise ValidationError("Cart item price is not a number")


@dataclass
class CartItem:
    product_id: str
    name: str
    price_cents: int
    quantity: int
    store_id: str
    size: str | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> "CartItem":
        if not isinstance(raw, dict):
            raise ValidationError("Cart item must be an object")
        product_id = raw.get("product_id") or raw.get("productId") or raw.get("id")
        store_id = raw.get("store_id") or raw.get("storeId")
        if not product_id or not store_id:
            raise ValidationError("Cart item needs a product and a store")
        quantity = _whole_number(raw.get("quantity", 1), "Cart item quantity must be an integer")
        if quantity <= 0:
            raise ValidationError("Cart item quantity must be positive")
        size = raw.get("size")
        return cls(
            product_id=str(product_id),
            name=str(raw.get("name") or ""),
            price_cents=_price_cents(raw),
            quantity=quantity,
            store_id=str(store_id),
            size=str(size).upper() if size else None,
        )

    @property
    def line_total_cents(self) -> int:
        return self.price_cents * self.quantity

    def same_line(self, other: "CartItem") -> bool:
        return self.product_id == other.product_id and self.size == other.size

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price_cents": self.price_cents,
            "quantity": self.quantity,
            "store_id": self.store_id,
            "size": self.size,
        }


@dataclass
class Cart:
    items: list[CartItem] = field(default_factory=list)

    @classmethod
    def load(cls, raw) -> "Cart":
        if not raw:
            return cls()
        if not isinstance(raw, list):
            raise ValidationError("Cart must be a list of items")
        items = [CartItem.from_dict(entry) for entry in raw]
        if len({item.store_id for item in items}) > 1:
            return cls()
        cart = cls()
        for item in items:
            cart.add(item)
        return cart

    @property
    def store_id(self) -> str | None:
        return self.items[0].store_id if self.items else None

    @property
    def total_cents(self) -> int:
        return sum(item.line_total_cents for item in self.items)

    def _find(self, product_id: str, size: str | None) -> CartItem | None:
        for item in self.items:
            if item.product_id == product_id and item.size == size:
                return item
        return None

    def add(self, item: CartItem) -> None:
        if self.store_id is not None and item.store_id != self.store_id:
            self.reset()
        existing = self._find(item.product_id, item.size)
        if existing is not None:
            existing.quantity += item.quantity
        else:
            self.items.append(item)

    def update_quantity(self, product_id: str, quantity: int, size: str | None = None) -> None:
        """A quantity of zero or less removes the line."""
        item = self._find(product_id, size)
        if item is None:
            raise ValidationError("Item is not in the cart")
        if quantity <= 0:
            self.items.remove(item)
        else:
            item.quantity = int(quantity)

    def remove(self, product_id: str, size: str | None = None) -> None:
        item = self._find(product_id, size)
        if item is not None:
            self.items.remove(item)

    def reset(self) -> None:
        self.items = []

    def to_list(self) -> list[dict]:
        return [item.to_dict() for item in self.items]

    def to_order_items(self) -> list[dict]:
        return [
            {"product_id": item.product_id, "quantity": item.quantity, "size": item.size}
            for item in self.items
        ]

    def whatsapp_message(self, customer_name: str, customer_phone: str, currency_symbol: str = "R") -> str:
        if not self.items:
            raise ValidationError("Cart is empty")
        lines = []
        for item in self.items:
            label = f"{item.name} ({item.size})" if item.size else item.name
            lines.append(f"- {label} x{item.quantity} ({format_cents(item.price_cents, currency_symbol)})")
        return (
            "Hi! I'd like to place an order:\n\n"
            + "\n".join(lines)
            + f"\n\nTotal: {format_cents(self.total_cents, currency_symbol)}"
            + f"\n\nName: {customer_name}\nPhone: {customer_phone}"
        )

    def whatsapp_link(self, customer_name: str, customer_phone: str, currency_symbol: str = "R") -> str:
        message = self.whatsapp_message(customer_name, customer_phone, currency_symbol)
        return f"{WHATSAPP_BASE_URL}?text={quote(message, safe='')}"
