"""Receipt scanning and shopping-cart reconciliation."""

from .config import (
    DatabaseConfig,
    ExtractionConfig,
    MatchingConfig,
    ReceiptsConfig,
    load_config,
)
from .matching import NameMatcher, is_similar, normalize_name
from .models import Cart, CartLineItem, Product, RecognizedLineItem
from .normalizer import normalize_items
from .reconcile import (
    ReconciliationResult,
    RemainingEntry,
    apply_reconciliation,
    reconcile,
)
from .scan import ReceiptScanner, ScanReport

__all__ = [
    "RecognizedLineItem",
    "Product",
    "CartLineItem",
    "Cart",
    "normalize_items",
    "NameMatcher",
    "normalize_name",
    "is_similar",
    "reconcile",
    "apply_reconciliation",
    "ReconciliationResult",
    "RemainingEntry",
    "ReceiptScanner",
    "ScanReport",
    "ReceiptsConfig",
    "ExtractionConfig",
    "MatchingConfig",
    "DatabaseConfig",
    "load_config",
]
