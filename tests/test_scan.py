"""Tests for the receipt scan workflow."""

import pytest

from cartapp.receipts.db import CartDB, CartNotFoundError
from cartapp.receipts.extraction import ReceiptExtractor
from cartapp.receipts.models import RecognizedLineItem
from cartapp.receipts.scan import ReceiptScanner


class StubExtractor(ReceiptExtractor):
    def __init__(self, items):
        super().__init__(model="stub")
        self.items = items
        self.paths = []

    async def _complete(self, image_path, model):
        raise AssertionError("not used")

    async def extract_items(self, image_path):
        self.paths.append(image_path)
        return list(self.items)


@pytest.fixture
def db(tmp_path):
    carts = CartDB(db_path=tmp_path / "scan.db")
    yield carts
    carts.close()


@pytest.fixture
def cart_id(db):
    cid = db.create_cart("Family")
    db.add_item(cid, db.add_product("Bread", barcode="111"), quantity=3)
    db.add_item(cid, db.add_product("Milk 1L", barcode="222"), quantity=1)
    return cid


@pytest.fixture
def receipt(tmp_path):
    img = tmp_path / "receipt.jpg"
    img.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg")
    return img


@pytest.mark.asyncio
async def test_scan_updates_cart(db, cart_id, receipt):
    extractor = StubExtractor([
        RecognizedLineItem(name="Bread", quantity=1, barcode="111"),
        RecognizedLineItem(name="milk", quantity=1),
        RecognizedLineItem(name="Eggs", quantity=6, price=18.9),
    ])
    report = await ReceiptScanner(extractor, db).scan(receipt, cart_id)

    assert extractor.paths == [str(receipt)]
    assert len(report.recognized) == 3
    assert [(r.product.name, r.quantity) for r in report.remaining] == [
        ("Bread", 2),
        ("Milk 1L", 0),
    ]
    assert [r.name for r in report.not_found] == ["Eggs"]
    assert [(i.product.name, i.quantity) for i in report.cart.items] == [("Bread", 2)]

    stored = db.get_cart(cart_id)
    assert [(i.product.name, i.quantity) for i in stored.items] == [("Bread", 2)]


@pytest.mark.asyncio
async def test_scan_with_no_items_leaves_cart(db, cart_id, receipt):
    report = await ReceiptScanner(StubExtractor([]), db).scan(receipt, cart_id)
    assert report.recognized == []
    assert report.remaining == []
    assert report.not_found == []
    assert len(db.get_cart(cart_id).items) == 2


@pytest.mark.asyncio
async def test_scan_missing_image(db, cart_id, tmp_path):
    extractor = StubExtractor([])
    with pytest.raises(FileNotFoundError):
        await ReceiptScanner(extractor, db).scan(tmp_path / "nope.jpg", cart_id)
    assert extractor.paths == []


@pytest.mark.asyncio
async def test_scan_missing_cart(db, receipt):
    extractor = StubExtractor([RecognizedLineItem(name="Bread")])
    with pytest.raises(CartNotFoundError):
        await ReceiptScanner(extractor, db).scan(receipt, 404)
    assert extractor.paths == []


@pytest.mark.asyncio
async def test_report_to_dict(db, cart_id, receipt):
    extractor = StubExtractor([RecognizedLineItem(name="Bread", quantity=3)])
    report = await ReceiptScanner(extractor, db).scan(receipt, cart_id)
    data = report.to_dict()

    assert data["receipt_path"] == str(receipt)
    assert data["recognized"] == [
        {"name": "Bread", "quantity": 3, "price": 0.0, "barcode": None}
    ]
    assert data["remaining"][0]["quantity"] == 0
    assert data["remaining"][0]["product"]["name"] == "Bread"
    assert data["not_found"] == []
    assert [i["product"]["name"] for i in data["cart"]["items"]] == ["Milk 1L"]
