"""
Canonical request shapes for orders and product media.

Clients in the wild send several generations of the same document: `items`
or `cartItems`, `productId` or `id`, `customerName` or `customer_name`, a
single `imageUrl` or an `imageUrls` list. Every payload is normalized here,
once, into one in-memory type; services never branch on field presence.
Client-supplied totals (`total`, `totalPrice`) are dropped because totals are
always computed server-side from price snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..validation import ValidationError


SCHEMA_VERSION = 2


@dataclass(frozen=True)
class LineRequest:
    product_id: str
    quantity: int
    size: str | None = None


@dataclass(frozen=True)
class CheckoutRequest:
    customer_name: str
    customer_phone: str
    lines: tuple[LineRequest, ...] = field(default_factory=tuple)

    def quantities_by_product(self) -> dict[str, int]:
        totals: dict[str, int] = {}
        for line in self.lines:
            totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
        return totals


def _first(data: dict, *keys, default=None):
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _parse_quantity(raw, index: int) -> int:
    if isinstance(raw, bool):
        raise ValidationError(f"items[{index}].quantity must be a positive integer")
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    if isinstance(raw, str) and raw.strip().isdigit():
        raw = int(raw.strip())
    if not isinstance(raw, int) or raw <= 0:
        raise ValidationError(f"items[{index}].quantity must be a positive integer")
    return raw


def normalize_line(raw: dict, index: int) -> LineRequest:
    if not isinstance(raw, dict):
        raise ValidationError(f"items[{index}] must be an object")

    product_id = str(_first(raw, "product_id", "productId", "id", default="")).strip()
    if not product_id:
        raise ValidationError(f"items[{index}].product_id is required")

    quantity = _parse_quantity(_first(raw, "quantity", "qty", default=1), index)

    size = _first(raw, "size")
    size = str(size).strip().upper() if size not in (None, "") else None
    return LineRequest(product_id=product_id, quantity=quantity, size=size or None)


def normalize_checkout(payload: dict | None, *, require_customer: bool = True) -> CheckoutRequest:
    """
    Normalize an order submission.

    Accepts either a nested `customer` object or flat customer fields.
    Raises ValidationError listing every missing customer field.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    customer = payload.get("customer") if isinstance(payload.get("customer"), dict) else payload
    name = str(_first(customer, "name", "customer_name", "customerName", default="")).strip()
    phone = str(_first(customer, "phone", "customer_phone", "customerPhone", default="")).strip()

    if require_customer:
        missing = [label for label, value in (("customer_name", name), ("customer_phone", phone)) if not value]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", details={"fields": missing})

    raw_items = _first(payload, "items", "cartItems", "lines", default=[])
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("An order needs at least one item")

    lines = tuple(normalize_line(item, i) for i, item in enumerate(raw_items))
    return CheckoutRequest(customer_name=name, customer_phone=phone, lines=lines)


def normalize_media(payload: dict) -> list[dict] | None:
    """
    Collapse the media shapes into [{"url", "kind"}].

    Returns None when the payload says nothing about media (so partial updates
    leave it alone).
    """
    if "media" in payload:
        media = payload["media"]
        if not isinstance(media, list):
            raise ValidationError("media must be a list")
        normalized = []
        for entry in media:
            if isinstance(entry, str):
                normalized.append({"url": entry.strip(), "kind": "image"})
            elif isinstance(entry, dict):
                normalized.append({
                    "url": str(entry.get("url") or "").strip(),
                    "kind": str(entry.get("kind") or "image").strip().lower(),
                })
            else:
                raise ValidationError("media entries must be urls or objects")
        return normalized

    legacy_keys = ("imageUrls", "imageUrl", "videoUrl")
    if not any(key in payload for key in legacy_keys):
        return None

    urls = list(payload.get("imageUrls") or [])
    if payload.get("imageUrl") and payload["imageUrl"] not in urls:
        urls.insert(0, payload["imageUrl"])
    normalized = [{"url": str(url).strip(), "kind": "image"} for url in urls if str(url).strip()]
    if payload.get("videoUrl"):
        normalized.append({"url": str(payload["videoUrl"]).strip(), "kind": "video"})
    return normalized
