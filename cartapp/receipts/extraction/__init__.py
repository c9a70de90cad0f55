"""Receipt extraction backends: base class, response parsing and factory."""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from ..models import RecognizedLineItem
from ..normalizer import normalize_items

if TYPE_CHECKING:
    from ..config import ReceiptsConfig

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)

RECEIPT_PROMPT = """\
You are given a photo of a supermarket receipt.
Return ONLY valid JSON of this shape, with no other text:
{
  "items": [
    {"name": "product name", "quantity": number, "price": number, "barcode": "string or null"}
  ]
}

Rules:
- Skip lines that are not products: totals, payment, cashier, card details,
  headers, queue numbers, times and dates.
- Merge "deal" / "refund" lines (negative amounts) into the product line they
  belong to and report the final price actually paid for that product.
- Quantity: for "X2" or "2 units" set quantity=2.
- price is always a positive number. If there is a discount, use the price
  after the discount.
- Try to read the barcode (a run of 7-14 digits, often starting with 729).
  If it is not clear, use null.
- If a product name is partial or garbled, clean it up to a short natural
  name (without words like "price", "deal", "refund" or "register").
- Keep product names in the language printed on the receipt.
"""


class ReceiptExtractor(ABC):
    """Abstract base for reading purchase lines from a receipt image.

    Subclasses only talk to their model API; parsing, normalization and the
    fallback retry live here.
    """

    def __init__(self, model: str, fallback_model: str = "") -> None:
        self._model = model
        self._fallback_model = fallback_model

    @abstractmethod
    async def _complete(self, image_path: str, model: str) -> str:
        """Send the image and prompt to ``model`` and return the raw text."""
        ...

    async def extract_items(self, image_path: str) -> list[RecognizedLineItem]:
        """Extract normalized line items from a receipt image.

        When the primary model yields no usable items, the fallback model is
        tried once. Failures of the fallback call are logged and treated as
        "no items", since the stronger model may not be available.
        """
        text = await self._complete(image_path, self._model)
        items = normalize_items(parse_response(text))
        if items or not self._fallback_model:
            return items

        logger.info(
            "No items from %s, retrying with %s", self._model, self._fallback_model
        )
        try:
            text = await self._complete(image_path, self._fallback_model)
        except Exception:
            logger.warning(
                "Fallback extraction with %s failed", self._fallback_model,
                exc_info=True,
            )
            return []
        return normalize_items(parse_response(text))


def parse_response(text: str | None) -> list[dict]:
    """Parse the model's JSON answer into a list of raw item records.

    Accepts ``{"items": [...]}`` or a bare array. Anything else yields an
    empty list.
    """
    cleaned = _FENCE.sub("", text or "").strip()

    if not cleaned:
        return []

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("Could not parse extraction response as JSON: %.200s", cleaned)
        return []

    if isinstance(parsed, list):
        items = parsed
    elif isinstance(parsed, dict) and isinstance(parsed.get("items"), list):
        items = parsed["items"]
    else:
        return []
    return [item for item in items if isinstance(item, dict)]


def create_extractor(config: ReceiptsConfig) -> ReceiptExtractor:
    """Create a receipt extractor based on configuration."""
    backend_name = config.extraction.backend

    match backend_name:
        case "claude":
            from .claude import ClaudeReceiptExtractor

            return ClaudeReceiptExtractor(
                api_key=config.extraction.claude.api_key,
                model=config.extraction.claude.model,
                fallback_model=config.extraction.claude.fallback_model,
            )
        case "gemini":
            from .gemini import GeminiReceiptExtractor

            return GeminiReceiptExtractor(
                api_key=config.extraction.gemini.api_key,
                model=config.extraction.gemini.model,
                fallback_model=config.extraction.gemini.fallback_model,
            )
        case _:
            raise ValueError(
                f"Unknown extraction backend: {backend_name!r} "
                f"(choose claude or gemini)"
            )
