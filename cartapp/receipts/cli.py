"""CLI entry point for the receipts module."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from .config import load_config
from .db import CartDB, CartNotFoundError
from .extraction import create_extractor, parse_response
from .matching import NameMatcher, get_similarity
from .normalizer import digits_only, normalize_items
from .reconcile import apply_reconciliation, reconcile
from .scan import ReceiptScanner


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="cartapp-receipts",
        description="Shopping cart receipts: scan a receipt and tick off what was bought",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to the configuration file (TOML)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # carts
    sub.add_parser("carts", help="List carts")

    # cart ...
    cart_parser = sub.add_parser("cart", help="Manage a cart")
    cart_sub = cart_parser.add_subparsers(dest="cart_command")

    create_parser = cart_sub.add_parser("create", help="Create a cart")
    create_parser.add_argument("name", type=str)

    show_parser = cart_sub.add_parser("show", help="Show a cart")
    show_parser.add_argument("cart_id", type=int)
    show_parser.add_argument("--json", action="store_true", help="Output as JSON")

    add_parser = cart_sub.add_parser("add", help="Add a product line to a cart")
    add_parser.add_argument("cart_id", type=int)
    add_parser.add_argument("name", type=str)
    add_parser.add_argument("--barcode", type=str, default=None)
    add_parser.add_argument("--price", type=float, default=0.0)
    add_parser.add_argument("--qty", type=int, default=1)

    # scan
    scan_parser = sub.add_parser("scan", help="Scan a receipt image against a cart")
    scan_parser.add_argument("image", type=str, help="Receipt image file")
    scan_parser.add_argument("--cart", type=int, required=True, dest="cart_id")
    scan_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # reconcile
    rec_parser = sub.add_parser(
        "reconcile", help="Reconcile already-extracted receipt JSON against a cart"
    )
    rec_parser.add_argument("items", type=str, help="JSON file ('-' for stdin)")
    rec_parser.add_argument("--cart", type=int, required=True, dest="cart_id")
    rec_parser.add_argument(
        "--dry-run", action="store_true", help="Do not save the updated cart"
    )
    rec_parser.add_argument("--json", action="store_true", help="Output as JSON")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    load_dotenv()

    config = load_config(args.config)
    db = CartDB(db_path=config.database.path)

    try:
        match args.command:
            case "carts":
                _cmd_carts(db)
            case "cart":
                if args.cart_command is None:
                    cart_parser.print_help()
                    sys.exit(1)
                _cmd_cart(db, args)
            case "scan":
                asyncio.run(_cmd_scan(config, db, args))
            case "reconcile":
                _cmd_reconcile(config, db, args)
    except (CartNotFoundError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


def _build_matcher(config) -> NameMatcher:
    return NameMatcher(
        threshold=config.matching.threshold,
        min_substring_length=config.matching.min_substring_length,
        similarity=get_similarity(config.matching.metric),
    )


def _cmd_carts(db: CartDB) -> None:
    carts = db.list_carts()
    if not carts:
        print("No carts yet.")
        return
    for c in carts:
        print(f"  #{c['id']:<4} {c['name']:<24} {c['line_count']} line(s)")


def _cmd_cart(db: CartDB, args) -> None:
    match args.cart_command:
        case "create":
            cart_id = db.create_cart(args.name)
            print(f"Created cart #{cart_id}: {args.name}")
        case "show":
            cart = db.get_cart(args.cart_id)
            if cart is None:
                raise CartNotFoundError(args.cart_id)
            if args.json:
                print(json.dumps(cart.to_dict(), ensure_ascii=False, indent=2))
                return
            _print_cart(cart)
        case "add":
            barcode = digits_only(args.barcode)
            # a barcode identifies the product on its own
            if barcode:
                product = db.find_product_by_barcode(barcode)
            else:
                product = db.find_product_by_name(args.name)
            if product is None:
                product_id = db.add_product(args.name, barcode=barcode, price=args.price)
            else:
                product_id = product.id
            line_id = db.add_item(args.cart_id, product_id, quantity=args.qty)
            print(f"Added {args.name} x{args.qty} to cart #{args.cart_id} (line {line_id})")


def _print_cart(cart) -> None:
    print(f"Cart #{cart.id}: {cart.name}")
    if not cart.items:
        print("  (empty)")
        return
    for line in cart.items:
        barcode = f"  [{line.product.barcode}]" if line.product.barcode else ""
        print(f"  {line.product.name:<24} x{line.quantity}{barcode}")


def _print_report(remaining, not_found, cart) -> None:
    if remaining:
        print(f"\nMatched ({len(remaining)}):")
        for r in remaining:
            status = "removed" if r.quantity <= 0 else f"{r.quantity} left"
            print(f"  {r.product.name:<24} {status}")
    if not_found:
        print(f"\nNot in cart ({len(not_found)}):")
        for item in not_found:
            print(f"  {item.name:<24} x{item.quantity}  {item.price:.2f}")
    print()
    _print_cart(cart)


async def _cmd_scan(config, db: CartDB, args) -> None:
    extractor = create_extractor(config)
    scanner = ReceiptScanner(extractor, db, matcher=_build_matcher(config))

    if not args.json:
        print("Reading receipt...")
    report = await scanner.scan(args.image, args.cart_id)

    if args.json:
        print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
        return
    if not report.recognized:
        print("No items were recognized on the receipt.")
    _print_report(report.remaining, report.not_found, report.cart)


def _cmd_reconcile(config, db: CartDB, args) -> None:
    if args.items == "-":
        text = sys.stdin.read()
    else:
        text = Path(args.items).read_text(encoding="utf-8")

    recognized = normalize_items(parse_response(text))
    cart = db.get_cart(args.cart_id)
    if cart is None:
        raise CartNotFoundError(args.cart_id)

    result = reconcile(recognized, cart.items, _build_matcher(config))
    updated = apply_reconciliation(cart, result)
    if not args.dry_run:
        db.save_cart(updated)

    if args.json:
        data = {
            "recognized": [r.to_dict() for r in recognized],
            **result.to_dict(),
            "cart": updated.to_dict(),
        }
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return
    _print_report(result.remaining, result.not_found, updated)
