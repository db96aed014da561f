from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .money import to_cents


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: wire key -> column key that clients are allowed to set
      (security boundary; anything else is rejected)
    - required_on_create: wire keys required for POST
    - money_fields: wire keys carrying decimal amounts, stored as cents
    """
    writable_fields: dict[str, str]
    required_on_create: set[str] = field(default_factory=set)
    money_fields: set[str] = field(default_factory=set)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


# INTEGER column range
MAX_INT = 2**31 - 1


def _bounded(value: int, name: str) -> int:
    if abs(value) > MAX_INT:
        raise ValidationError(f"{name} is out of range")
    return value


def parse_int(value: Any, name: str) -> int:
    """
    Strict integer parsing for JSON bodies and query strings.

    Rejects bools, floats, scientific notation, decimals and values outside
    the INTEGER column range.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return _bounded(value, name)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{name} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{name} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{name} must be an integer (no decimals)")
        try:
            parsed = int(stripped)
        except ValueError:
            raise ValidationError(f"{name} must be an integer")
        return _bounded(parsed, name)
    if isinstance(value, float):
        raise ValidationError(f"{name} must be an integer, not a decimal")
    raise ValidationError(f"{name} must be an integer")


def _coerce_value(col, value: Any, wire_key: str):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return parse_int(value, wire_key)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{wire_key} must be true or false")

    if isinstance(coltype, (String, Text)):
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise ValidationError(f"{wire_key} must be a string")
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
    Returns a cleaned patch dict keyed by column name.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[policy.writable_fields[k]]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[col.key] = None
            continue

        if k in policy.money_fields:
            val = to_cents(raw, k)
            if val < 0:
                raise ValidationError(f"{k} must be >= 0")
            patch[col.key] = val
            continue

        val = _coerce_value(col, raw, k)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[col.key] = val

    return patch


def require_json_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


# Order.note and InventoryMovement.note are String(255)
NOTE_MAX_LENGTH = 255


def parse_note(value: Any, name: str = "note") -> str | None:
    """Optional free-text note: stripped, blank becomes None, bounded length."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    value = value.strip()
    if len(value) > NOTE_MAX_LENGTH:
        raise ValidationError(f"{name} too long (max {NOTE_MAX_LENGTH})")
    return value or None


def parse_cart_items(raw_items: Any) -> list[dict]:
    """Map wire cart lines ({productId, quantity}) to service form."""
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("Cart cannot be empty")

    items = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        if "productId" not in raw or "quantity" not in raw:
            raise ValidationError(f"items[{index}] requires productId and quantity")
        items.append({
            "product_id": parse_int(raw["productId"], f"items[{index}].productId"),
            "quantity": parse_int(raw["quantity"], f"items[{index}].quantity"),
        })
    return items
