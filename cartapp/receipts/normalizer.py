"""Coercion of raw extraction records into RecognizedLineItem values."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from typing import Any

from .models import RecognizedLineItem

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_NON_DIGIT = re.compile(r"[^0-9]")

MIN_BARCODE_LENGTH = 5

_FIELDS = ("name", "quantity", "price", "barcode")


def normalize_items(records: Iterable[Any]) -> list[RecognizedLineItem]:
    """Turn loosely-typed extraction records into clean line items.

    Records may be mappings (keys matched case-insensitively) or objects
    exposing the fields as attributes, so already-normalized items pass
    through unchanged. Records without a usable name are dropped; every
    other field falls back to its default instead of raising.
    """
    items: list[RecognizedLineItem] = []
    for record in records:
        fields = _read_fields(record)
        name = _coerce_name(fields["name"])
        if not name:
            continue
        items.append(
            RecognizedLineItem(
                name=name,
                quantity=_coerce_quantity(fields["quantity"]),
                price=_coerce_price(fields["price"]),
                barcode=normalize_barcode(fields["barcode"]),
            )
        )
    return items


def _read_fields(record: Any) -> dict[str, Any]:
    if record is None:
        return dict.fromkeys(_FIELDS)
    if isinstance(record, Mapping):
        lowered = {str(k).strip().lower(): v for k, v in record.items()}
        return {f: lowered.get(f) for f in _FIELDS}
    return {f: getattr(record, f, None) for f in _FIELDS}


def _coerce_name(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _coerce_quantity(value: Any) -> int:
    qty: int | None = None
    if isinstance(value, bool):
        qty = None
    elif isinstance(value, int):
        qty = value
    elif isinstance(value, float):
        qty = int(value) if math.isfinite(value) else None
    elif isinstance(value, str):
        m = _LEADING_INT.match(value)
        qty = int(m.group(1)) if m else None

    if qty is None or qty < 1:
        return 1
    return qty


def _coerce_price(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        price = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(price) or price < 0:
        return 0.0
    return price


def digits_only(value: Any) -> str | None:
    """Strip everything but ASCII digits; None when nothing is left."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    digits = _NON_DIGIT.sub("", str(value))
    return digits or None


def normalize_barcode(value: Any) -> str | None:
    """Digits-only barcode of a recognized item, or None if too short."""
    digits = digits_only(value)
    if digits is None or len(digits) < MIN_BARCODE_LENGTH:
        return None
    return digits
