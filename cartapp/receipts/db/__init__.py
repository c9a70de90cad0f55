"""SQLite database module for carts and products."""

from .carts import CartDB, CartNotFoundError
from .schema import ensure_schema

__all__ = [
    "CartDB",
    "CartNotFoundError",
    "ensure_schema",
]
