"""Receipt-to-cart reconciliation.

Each recognized receipt line is matched against the cart (barcode first,
then fuzzy name) and the matched cart line is decremented by the purchased
quantity. Decrements are applied to a working copy of the quantities as the
loop goes, so two receipt lines hitting the same cart line decrement it
cumulatively.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from .matching import NameMatcher
from .models import Cart, CartLineItem, Product, RecognizedLineItem

logger = logging.getLogger(__name__)


@dataclass
class RemainingEntry:
    """A cart line that was matched, with its quantity after the decrement."""

    cart_line_id: int | None
    product: Product
    quantity: int
    # position of the line in the reconciled cart_lines
    line_index: int | None = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict:
        return {
            "cart_line_id": self.cart_line_id,
            "product": self.product.to_dict(),
            "quantity": self.quantity,
        }


@dataclass
class ReconciliationResult:
    remaining: list[RemainingEntry] = field(default_factory=list)
    not_found: list[RecognizedLineItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "remaining": [r.to_dict() for r in self.remaining],
            "not_found": [r.to_dict() for r in self.not_found],
        }


def reconcile(
    recognized: Sequence[RecognizedLineItem],
    cart_lines: Sequence[CartLineItem],
    matcher: NameMatcher | None = None,
) -> ReconciliationResult:
    """Match recognized receipt lines against cart lines.

    The cart lines themselves are not modified; use
    :func:`apply_reconciliation` to produce the updated cart.

    Raises:
        ValueError: If ``cart_lines`` is None.
    """
    if cart_lines is None:
        raise ValueError("cart_lines is required (pass an empty list for an empty cart)")
    matcher = matcher or NameMatcher()

    working = [line.quantity or 0 for line in cart_lines]
    result = ReconciliationResult()

    for rec in recognized:
        idx = _match_line(rec, cart_lines, matcher)
        if idx is None:
            result.not_found.append(rec)
            continue

        line = cart_lines[idx]
        new_qty = max(0, working[idx] - rec.quantity)
        working[idx] = new_qty
        result.remaining.append(
            RemainingEntry(
                cart_line_id=line.id,
                product=line.product,
                quantity=new_qty,
                line_index=idx,
            )
        )
        logger.debug(
            "Matched %r to cart line %s (%r), quantity now %d",
            rec.name, line.id, line.product.name, new_qty,
        )

    return result


def _match_line(
    rec: RecognizedLineItem,
    cart_lines: Sequence[CartLineItem],
    matcher: NameMatcher,
) -> int | None:
    if rec.barcode:
        for idx, line in enumerate(cart_lines):
            if line.product.barcode == rec.barcode:
                return idx

    if not rec.name:
        return None

    candidates = [
        idx for idx, line in enumerate(cart_lines)
        if matcher.is_similar(rec.name, line.product.name)
    ]
    if not candidates:
        return None
    if len(candidates) > 1:
        logger.debug(
            "Ambiguous name match for %r: %d cart lines, using the first (%r)",
            rec.name, len(candidates), cart_lines[candidates[0]].product.name,
        )
    return candidates[0]


def apply_reconciliation(cart: Cart, result: ReconciliationResult) -> Cart:
    """Return a copy of ``cart`` with the reconciled quantities applied.

    Lines whose final quantity is zero or below are removed; unmatched lines
    are kept as they are, in their original order.

    Entries are tied to lines by their position in the reconciled
    ``cart_lines`` (checked against the product), so lines without an id
    are handled too. Entries built by hand fall back to the line id.
    """
    if cart is None:
        raise ValueError("cart is required")

    final_qty: dict[int, int] = {}
    for entry in result.remaining:
        idx = _entry_index(entry, cart.items)
        if idx is not None:
            final_qty[idx] = entry.quantity

    items: list[CartLineItem] = []
    for idx, line in enumerate(cart.items):
        qty = final_qty.get(idx, line.quantity)
        if (qty or 0) <= 0:
            continue
        items.append(replace(line, quantity=qty))

    return replace(cart, items=items)


def _entry_index(entry: RemainingEntry, items: Sequence[CartLineItem]) -> int | None:
    idx = entry.line_index
    if idx is not None and 0 <= idx < len(items) and items[idx].product is entry.product:
        return idx
    if entry.cart_line_id is None:
        return None
    for idx, line in enumerate(items):
        if line.id == entry.cart_line_id:
            return idx
    return None
