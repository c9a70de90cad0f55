"""Cart and product storage."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from ..models import Cart, CartLineItem, Product
from ..normalizer import digits_only
from .schema import ensure_schema


class CartNotFoundError(LookupError):
    """Raised when a cart id does not exist."""

    def __init__(self, cart_id: int) -> None:
        super().__init__(f"Cart not found: {cart_id}")
        self.cart_id = cart_id


class CartDB:
    """Manages the products, carts and cart_items tables."""

    def __init__(self, db_path: str | Path = "~/.config/cartapp/carts.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # -- products ---------------------------------------------------------

    def add_product(
        self, name: str, barcode: str | None = None, price: float = 0.0
    ) -> int:
        """Insert a product and return its ID.

        The barcode is stored digits-only so it lines up with recognized
        receipt barcodes.
        """
        conn = self._get_conn()
        cur = conn.execute(
            "INSERT INTO products (name, barcode, price) VALUES (?, ?, ?)",
            (name, digits_only(barcode), price),
        )
        conn.commit()
        return cur.lastrowid

    def get_product(self, product_id: int) -> Product | None:
        row = self._get_conn().execute(
            "SELECT * FROM products WHERE id = ?", (product_id,)
        ).fetchone()
        return _row_to_product(row) if row else None

    def find_product_by_barcode(self, barcode: str) -> Product | None:
        row = self._get_conn().execute(
            "SELECT * FROM products WHERE barcode = ?", (digits_only(barcode),)
        ).fetchone()
        return _row_to_product(row) if row else None

    def find_product_by_name(self, name: str) -> Product | None:
        """Exact (case-sensitive) name lookup; returns the oldest match."""
        row = self._get_conn().execute(
            "SELECT * FROM products WHERE name = ? ORDER BY id LIMIT 1", (name,)
        ).fetchone()
        return _row_to_product(row) if row else None

    # -- carts ------------------------------------------------------------

    def create_cart(self, name: str) -> int:
        conn = self._get_conn()
        cur = conn.execute("INSERT INTO carts (name) VALUES (?)", (name,))
        conn.commit()
        return cur.lastrowid

    def list_carts(self) -> list[dict]:
        """Return all carts with their line counts."""
        rows = self._get_conn().execute(
            """SELECT c.id, c.name, c.updated_at, COUNT(i.id) AS line_count
               FROM carts c LEFT JOIN cart_items i ON i.cart_id = c.id
               GROUP BY c.id
               ORDER BY c.id"""
        ).fetchall()
        return [dict(r) for r in rows]

    def add_item(self, cart_id: int, product_id: int, quantity: int = 1) -> int:
        """Add a product line to a cart.

        Returns:
            The new cart line ID.

        Raises:
            CartNotFoundError: If the cart does not exist.
            ValueError: If quantity is below 1.
        """
        if quantity < 1:
            raise ValueError(f"quantity must be at least 1, got {quantity}")
        conn = self._get_conn()
        self._require_cart(cart_id)
        cur = conn.execute(
            "INSERT INTO cart_items (cart_id, product_id, quantity) VALUES (?, ?, ?)",
            (cart_id, product_id, quantity),
        )
        self._touch(cart_id)
        conn.commit()
        return cur.lastrowid

    def delete_item(self, line_id: int) -> None:
        """Delete a cart line by ID."""
        conn = self._get_conn()
        conn.execute("DELETE FROM cart_items WHERE id = ?", (line_id,))
        conn.commit()

    def get_cart(self, cart_id: int) -> Cart | None:
        """Return a cart with its lines and their products populated."""
        conn = self._get_conn()
        cart_row = conn.execute(
            "SELECT id, name FROM carts WHERE id = ?", (cart_id,)
        ).fetchone()
        if cart_row is None:
            return None

        rows = conn.execute(
            """SELECT i.id AS line_id, i.quantity,
                      p.id, p.name, p.barcode, p.price
               FROM cart_items i JOIN products p ON p.id = i.product_id
               WHERE i.cart_id = ?
               ORDER BY i.id""",
            (cart_id,),
        ).fetchall()
        items = [
            CartLineItem(
                id=r["line_id"],
                product=_row_to_product(r),
                quantity=r["quantity"],
            )
            for r in rows
        ]
        return Cart(id=cart_row["id"], name=cart_row["name"], items=items)

    def save_cart(self, cart: Cart) -> None:
        """Persist the line quantities of ``cart``.

        Lines with a quantity of zero or below are deleted, as are stored
        lines that are no longer present in ``cart.items``. The write is
        last-write-wins: concurrent edits made since ``get_cart`` are lost.

        Raises:
            CartNotFoundError: If the cart does not exist.
        """
        conn = self._get_conn()
        self._require_cart(cart.id)

        keep: list[int] = []
        with conn:
            for line in cart.items:
                if line.id is None or (line.quantity or 0) <= 0:
                    continue
                conn.execute(
                    "UPDATE cart_items SET quantity = ? WHERE id = ? AND cart_id = ?",
                    (line.quantity, line.id, cart.id),
                )
                keep.append(line.id)

            placeholders = ",".join("?" for _ in keep)
            if keep:
                conn.execute(
                    f"DELETE FROM cart_items WHERE cart_id = ? AND id NOT IN ({placeholders})",
                    (cart.id, *keep),
                )
            else:
                conn.execute("DELETE FROM cart_items WHERE cart_id = ?", (cart.id,))
            self._touch(cart.id)

    def _require_cart(self, cart_id: int | None) -> None:
        row = self._get_conn().execute(
            "SELECT 1 FROM carts WHERE id = ?", (cart_id,)
        ).fetchone()
        if row is None:
            raise CartNotFoundError(cart_id)

    def _touch(self, cart_id: int) -> None:
        self._get_conn().execute(
            "UPDATE carts SET updated_at = datetime('now', 'localtime') WHERE id = ?",
            (cart_id,),
        )


def _row_to_product(row: sqlite3.Row) -> Product:
    return Product(
        id=row["id"],
        name=row["name"],
        barcode=row["barcode"],
        price=row["price"],
    )
