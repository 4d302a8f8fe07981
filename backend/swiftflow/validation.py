from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, JSON
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: R9,999,999.99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999
MAX_STOCK = 1_000_000

ALLOWED_SIZES = ("S", "M", "L", "XL")
MEDIA_KINDS = ("image", "video")

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ValidationError(ValueError):
    """400-level input problem."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""


class NotFoundError(LookupError):
    """404-level: the target document does not exist for this owner."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or "e" in stripped.lower() or "." in stripped:
                raise ValidationError(f"{col.key} must be a plain integer")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        raise ValidationError(f"{col.key} must be an integer")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)

    if isinstance(coltype, JSON):
        if not isinstance(value, (list, dict)):
            raise ValidationError(f"{col.key} must be a list or object")
        return value

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def require_text(data: dict, *fields: str) -> dict[str, str]:
    """Pull required non-empty strings out of a payload; collects every missing field."""
    values: dict[str, str] = {}
    missing = []
    for field in fields:
        raw = data.get(field)
        value = str(raw).strip() if raw is not None else ""
        if not value:
            missing.append(field)
        values[field] = value
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", details={"fields": missing})
    return values


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if "price_cents" in patch and patch["price_cents"] is not None:
        price = patch["price_cents"]
        if price < 0:
            raise ValidationError("price_cents must be >= 0")
        if price > MAX_PRICE_CENTS:
            raise ValidationError(f"price_cents cannot exceed {MAX_PRICE_CENTS} (R{MAX_PRICE_CENTS / 100:,.2f})")

    if "stock" in patch and patch["stock"] is not None:
        if patch["stock"] < 0:
            raise ValidationError("stock must be >= 0")
        if patch["stock"] > MAX_STOCK:
            raise ValidationError(f"stock cannot exceed {MAX_STOCK}")

    if patch.get("sizes") is not None:
        sizes = patch["sizes"]
        if not isinstance(sizes, list) or any(s not in ALLOWED_SIZES for s in sizes):
            raise ValidationError(f"sizes must be a list drawn from {', '.join(ALLOWED_SIZES)}")
        if len(set(sizes)) != len(sizes):
            raise ValidationError("sizes must not repeat")

    if "media" in patch:
        enforce_rules_media(patch["media"])


def enforce_rules_media(media) -> None:
    # At least one image, at most one short video
    if not isinstance(media, list) or not media:
        raise ValidationError("media must contain at least one image")
    for entry in media:
        if not isinstance(entry, dict) or not str(entry.get("url") or "").strip():
            raise ValidationError("each media entry needs a url")
        if entry.get("kind") not in MEDIA_KINDS:
            raise ValidationError("media kind must be image or video")
    kinds = [entry["kind"] for entry in media]
    if "image" not in kinds:
        raise ValidationError("media must contain at least one image")
    if kinds.count("video") > 1:
        raise ValidationError("only one video is allowed per product")


def enforce_rules_owner_profile(patch: dict) -> None:
    color = patch.get("brand_color")
    if color and not _HEX_COLOR.match(color):
        raise ValidationError("brand_color must be a hex color like #6b7280")

    payment_email = patch.get("payment_email")
    if payment_email and not _EMAIL.match(payment_email):
        raise ValidationError("payment_email must be a valid email address")


def validate_email(value: str | None, field: str = "email") -> str:
    email = (value or "").strip().lower()
    if not _EMAIL.match(email):
        raise ValidationError(f"{field} must be a valid email address")
    return email
