"""Data models for carts, products and recognized receipt lines."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass
class RecognizedLineItem:
    """A single purchase line read off a receipt image."""

    name: str
    quantity: int = 1
    price: float = 0.0
    barcode: str | None = None  # digits only, at least 5 long

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Product:
    id: int | None
    name: str
    barcode: str | None = None
    price: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CartLineItem:
    """A (product, quantity) pair owned by a cart."""

    id: int | None
    product: Product
    quantity: int | None = 1

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product": self.product.to_dict(),
            "quantity": self.quantity,
        }


@dataclass
class Cart:
    id: int | None
    name: str
    items: list[CartLineItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "items": [item.to_dict() for item in self.items],
        }
