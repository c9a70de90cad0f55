"""Receipt scan workflow: extract → reconcile → persist."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .db import CartNotFoundError
from .models import Cart, RecognizedLineItem
from .reconcile import RemainingEntry, apply_reconciliation, reconcile

if TYPE_CHECKING:
    from .db import CartDB
    from .extraction import ReceiptExtractor
    from .matching import NameMatcher

logger = logging.getLogger(__name__)


@dataclass
class ScanReport:
    receipt_path: str
    recognized: list[RecognizedLineItem]
    remaining: list[RemainingEntry]
    not_found: list[RecognizedLineItem]
    cart: Cart

    def to_dict(self) -> dict:
        return {
            "receipt_path": self.receipt_path,
            "recognized": [r.to_dict() for r in self.recognized],
            "remaining": [r.to_dict() for r in self.remaining],
            "not_found": [r.to_dict() for r in self.not_found],
            "cart": self.cart.to_dict(),
        }


class ReceiptScanner:
    """Reconciles a stored cart against a photographed receipt."""

    def __init__(
        self,
        extractor: ReceiptExtractor,
        db: CartDB,
        matcher: NameMatcher | None = None,
    ) -> None:
        self._extractor = extractor
        self._db = db
        self._matcher = matcher

    async def scan(self, image_path: str | Path, cart_id: int) -> ScanReport:
        """Scan a receipt and remove what was bought from the cart.

        The cart is read, reconciled and saved back in one go; edits made to
        the same cart while the extraction call is running are overwritten.

        Raises:
            FileNotFoundError: If the receipt image does not exist.
            CartNotFoundError: If the cart does not exist.
        """
        path = Path(image_path)
        if not path.is_file():
            raise FileNotFoundError(f"No receipt image at {path}")
        if self._db.get_cart(cart_id) is None:
            raise CartNotFoundError(cart_id)

        recognized = await self._extractor.extract_items(str(path))
        logger.info("Recognized %d item(s) on %s", len(recognized), path.name)

        cart = self._db.get_cart(cart_id)
        if cart is None:
            raise CartNotFoundError(cart_id)

        result = reconcile(recognized, cart.items, self._matcher)
        updated = apply_reconciliation(cart, result)
        self._db.save_cart(updated)
        logger.info(
            "Cart %s reconciled: %d matched, %d not found, %d line(s) left",
            cart_id, len(result.remaining), len(result.not_found), len(updated.items),
        )

        return ScanReport(
            receipt_path=str(path),
            recognized=recognized,
            remaining=result.remaining,
            not_found=result.not_found,
            cart=updated,
        )
