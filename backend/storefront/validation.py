from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, JSON
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationFailed
from .models.sales import DISCOUNT_TYPES, PAYMENT_METHODS


# Maximum price: Rs. 99,999,999
# This prevents database overflow issues and nonsensical prices
MAX_PRICE = 99_999_999

MAX_PRODUCT_IMAGES = 5

MAX_SALE_QTY = 1_000_000
MAX_DISCOUNT_PERCENT = 100

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# =============================================================================
# Scalar coercion
# =============================================================================

def _coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationFailed(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationFailed(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationFailed(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationFailed(f"{key} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationFailed(f"{key} must be an integer, not a decimal")
    raise ValidationFailed(f"{key} must be an integer")


def _coerce_number(key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationFailed(f"{key} must be a number")
    return value


def _coerce_str(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationFailed(f"{key} must be a string")
    return value.strip()


def _coerce_value(key: str, col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return _coerce_int(key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationFailed(f"{key} must be true or false")

    if isinstance(coltype, JSON):
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValidationFailed(f"{key} must be a list of strings")
        return list(value)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return _coerce_str(key, value)

    # Default: leave as-is
    return value


# =============================================================================
# Model payloads (products, settings)
# =============================================================================

@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - fields: API field name -> model column key (the writable allowlist)
    - required_on_create: API fields required for POST
    - non_blank: API fields that may not be empty strings
    """
    fields: dict[str, str]
    required_on_create: frozenset[str] = frozenset()
    non_blank: frozenset[str] = frozenset()


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


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
    - a policy allowlist (fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by model column.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationFailed("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in payload)
        if missing:
            raise ValidationFailed(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.fields:
            raise ValidationFailed(f"Field not allowed: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col_key = policy.fields[k]
        col = cols[col_key]

        if raw is None:
            if not col.nullable:
                raise ValidationFailed(f"{k} cannot be null")
            patch[col_key] = None
            continue

        val = _coerce_value(k, col, raw)

        if k in policy.non_blank and isinstance(val, str) and val == "":
            raise ValidationFailed(f"{k} is required")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationFailed(f"{k} exceeds max length {col.type.length}")

        patch[col_key] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    for key, label in (("getting_price", "Getting price"), ("selling_price", "Selling price")):
        if key in patch and patch[key] is not None:
            if patch[key] < 0:
                raise ValidationFailed(f"{label} must be >= 0")
            if patch[key] > MAX_PRICE:
                raise ValidationFailed(f"{label} cannot exceed {MAX_PRICE}")

    if "stock_qty" in patch and patch["stock_qty"] is not None and patch["stock_qty"] < 0:
        raise ValidationFailed("Stock must be >= 0")

    if "image_file_ids" in patch and len(patch["image_file_ids"] or []) > MAX_PRODUCT_IMAGES:
        raise ValidationFailed(f"Maximum {MAX_PRODUCT_IMAGES} images allowed")


# =============================================================================
# Sale request contract
# =============================================================================

SALE_FIELDS = {"items", "discount", "discountType", "paymentMethod"}
SALE_ITEM_FIELDS = {"productId", "productName", "sku", "qty", "unitPrice", "gettingPrice", "subtotal"}


@dataclass(frozen=True)
class SaleItemInput:
    product_id: Any  # resolved by the sale validator; may be malformed
    product_name: str
    sku: str
    qty: int
    unit_price: int
    getting_price: int
    subtotal: int


@dataclass(frozen=True)
class SaleRequest:
    items: tuple[SaleItemInput, ...]
    discount: float
    discount_type: str
    payment_method: str


def _reject_unknown(payload: dict, allowed: set[str], where: str) -> None:
    unknown = sorted(k for k in payload if k not in allowed)
    if unknown:
        raise ValidationFailed(f"Unknown field{'s' if len(unknown) > 1 else ''} in {where}: {', '.join(unknown)}")


def non_negative_int(key: str, value: Any, *, minimum: int = 0, maximum: int | None = None) -> int:
    val = _coerce_int(key, value)
    if val < minimum:
        raise ValidationFailed(f"{key} must be >= {minimum}")
    if maximum is not None and val > maximum:
        raise ValidationFailed(f"{key} must be <= {maximum}")
    return val


def _parse_sale_item(index: int, raw: Any) -> SaleItemInput:
    where = f"items[{index}]"
    if not isinstance(raw, dict):
        raise ValidationFailed(f"{where} must be an object")
    _reject_unknown(raw, SALE_ITEM_FIELDS, where)

    missing = sorted(f for f in SALE_ITEM_FIELDS if f not in raw)
    if missing:
        raise ValidationFailed(f"{where} missing required fields: {', '.join(missing)}")

    product_id = raw["productId"]
    if product_id is None or (isinstance(product_id, str) and not product_id.strip()):
        raise ValidationFailed(f"{where}.productId is required")

    product_name = _coerce_str(f"{where}.productName", raw["productName"])
    if not product_name:
        raise ValidationFailed(f"{where}.productName is required")

    qty = non_negative_int(f"{where}.qty", raw["qty"], minimum=1, maximum=MAX_SALE_QTY)
    unit_price = non_negative_int(f"{where}.unitPrice", raw["unitPrice"], maximum=MAX_PRICE)
    getting_price = non_negative_int(f"{where}.gettingPrice", raw["gettingPrice"], maximum=MAX_PRICE)
    subtotal = non_negative_int(f"{where}.subtotal", raw["subtotal"], maximum=MAX_PRICE)

    if subtotal != qty * unit_price:
        raise ValidationFailed(f"{where}.subtotal must equal qty x unitPrice")

    return SaleItemInput(
        product_id=product_id,
        product_name=product_name,
        sku=_coerce_str(f"{where}.sku", raw["sku"]),
        qty=qty,
        unit_price=unit_price,
        getting_price=getting_price,
        subtotal=subtotal,
    )


def parse_sale_request(payload: Any) -> SaleRequest:
    """
    Boundary validation for POST /api/sales.

    Rejects unknown and missing fields before anything reaches the sale
    service. discount defaults to 0 and discountType to "flat"; a flat
    discount is a whole amount, a percent discount may be fractional but
    must be finite and at most 100.

    Money is whole rupees: unitPrice, gettingPrice, subtotal and a flat
    discount must be integers between 0 and MAX_PRICE, so a decimal price
    such as 99.5 is rejected with 400.
    """
    if not isinstance(payload, dict):
        raise ValidationFailed("Invalid JSON payload")
    _reject_unknown(payload, SALE_FIELDS, "sale")

    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationFailed("At least one item required")
    parsed_items = tuple(_parse_sale_item(i, raw) for i, raw in enumerate(items))

    discount_type = payload.get("discountType", "flat")
    if discount_type not in DISCOUNT_TYPES:
        raise ValidationFailed(f"discountType must be one of: {', '.join(DISCOUNT_TYPES)}")

    raw_discount = payload.get("discount", 0)
    if discount_type == "flat":
        discount = non_negative_int("discount", raw_discount, maximum=MAX_PRICE)
    else:
        discount = _coerce_number("discount", raw_discount)
        # NaN and Infinity pass json.loads
        if isinstance(discount, float) and not math.isfinite(discount):
            raise ValidationFailed("discount must be a finite number")
        if discount < 0:
            raise ValidationFailed("discount must be >= 0")
        if discount > MAX_DISCOUNT_PERCENT:
            raise ValidationFailed(f"discount must be <= {MAX_DISCOUNT_PERCENT} for a percent discount")

    payment_method = payload.get("paymentMethod")
    if payment_method is None:
        raise ValidationFailed("paymentMethod is required")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationFailed(f"paymentMethod must be one of: {', '.join(PAYMENT_METHODS)}")

    return SaleRequest(
        items=parsed_items,
        discount=discount,
        discount_type=discount_type,
        payment_method=payment_method,
    )


# =============================================================================
# Small helpers for hand-rolled public payloads (feedback, stock requests)
# =============================================================================

def require_text(payload: dict, key: str, *, min_len: int = 1, max_len: int | None = None,
                 message: str | None = None) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or len(value.strip()) < min_len:
        raise ValidationFailed(message or f"{key} is required")
    value = value.strip()
    if max_len is not None and len(value) > max_len:
        raise ValidationFailed(f"{key} exceeds max length {max_len}")
    return value


def optional_text(payload: dict, key: str, *, max_len: int | None = None) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationFailed(f"{key} must be a string")
    value = value.strip()
    if max_len is not None and len(value) > max_len:
        raise ValidationFailed(f"{key} exceeds max length {max_len}")
    return value or None


def require_int_in_range(payload: dict, key: str, *, minimum: int, maximum: int) -> int:
    if key not in payload:
        raise ValidationFailed(f"{key} is required")
    value = _coerce_int(key, payload[key])
    if value < minimum or value > maximum:
        raise ValidationFailed(f"{key} must be between {minimum} and {maximum}")
    return value
