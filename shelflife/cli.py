"""CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date

from dotenv import load_dotenv

from .config import load_config
from .dates import UNKNOWN, format_for_display
from .db import InventoryDB
from .expiry import (
    FILTERS,
    SORT_KEYS,
    badge_label,
    days_left,
    expiring_ingredients,
    filter_items,
    sort_items,
    summarize,
)
from .items import RawItem, annotate, annotate_all
from .notifications import NotificationCenter
from .scheduler import check_expiring_items, refresh_user_notifications
from .store import SQLiteStore
from .vision import create_backend


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="shelflife",
        description="Food inventory expiry tracking",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to the config file (TOML)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command")

    # normalize
    norm_parser = sub.add_parser("normalize", help="Normalize an expiry date string")
    norm_parser.add_argument("raw", type=str)
    norm_parser.add_argument("--hint", type=str, default="", help="Label text near the date")
    norm_parser.add_argument("--today", type=_iso_date, default=None)
    norm_parser.add_argument("--json", action="store_true", help="Output JSON")

    # scan
    scan_parser = sub.add_parser("scan", help="Extract items from receipt/label photos")
    scan_parser.add_argument("--image", type=str, nargs="+", required=True)
    scan_parser.add_argument("--user", type=str, default=None)
    scan_parser.add_argument("--save", action="store_true", help="Add items to inventory")
    scan_parser.add_argument("--json", action="store_true", help="Output JSON")

    # add
    add_parser = sub.add_parser("add", help="Add an item by hand")
    add_parser.add_argument("--user", type=str, required=True)
    add_parser.add_argument("name", type=str)
    add_parser.add_argument("quantity", type=str)
    add_parser.add_argument("expiry", type=str)
    add_parser.add_argument("--hint", type=str, default="")

    # list
    list_parser = sub.add_parser("list", help="Show a user's inventory")
    list_parser.add_argument("--user", type=str, required=True)
    list_parser.add_argument("--filter", choices=FILTERS, default="all")
    list_parser.add_argument("--sort", choices=SORT_KEYS, default="expiry")
    list_parser.add_argument("--today", type=_iso_date, default=None)
    list_parser.add_argument("--json", action="store_true", help="Output JSON")

    # notify
    notify_parser = sub.add_parser("notify", help="Refresh and show a user's notifications")
    notify_parser.add_argument("--user", type=str, required=True)
    notify_parser.add_argument("--today", type=_iso_date, default=None)
    notify_parser.add_argument("--mark-read", action="store_true")

    # check
    check_parser = sub.add_parser("check", help="List items expiring soon across users")
    check_parser.add_argument("--days-ahead", type=int, default=None)
    check_parser.add_argument("--today", type=_iso_date, default=None)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_dotenv()
    config = load_config(args.config)

    match args.command:
        case "normalize":
            _cmd_normalize(config, args)
        case "scan":
            asyncio.run(_cmd_scan(config, args))
        case "add":
            _cmd_add(config, args)
        case "list":
            _cmd_list(config, args)
        case "notify":
            _cmd_notify(config, args)
        case "check":
            _cmd_check(config, args)


def _open_db(config) -> InventoryDB:
    return InventoryDB(
        config.database.path,
        normalizer=config.expiry.normalizer(),
        soon_days=config.expiry.soon_days,
    )


def _cmd_normalize(config, args) -> None:
    item = annotate(
        RawItem(raw_name="", raw_expiry=args.raw, context_hint=args.hint),
        args.today or date.today(),
        normalizer=config.expiry.normalizer(),
        soon_days=config.expiry.soon_days,
    )
    if args.json:
        data = item.to_dict()
        del data["item_name"], data["quantity"]
        print(json.dumps(data, indent=2))
        return
    print(item.expiry_date)
    if item.expiry_date != UNKNOWN:
        print(f"  {format_for_display(item.expiry_date)}  [{badge_label(item.days_left)}]")


async def _cmd_scan(config, args) -> None:
    backend = create_backend(config)
    print("Extracting items...")
    raws = await backend.extract_items(args.image)
    items = annotate_all(
        raws,
        normalizer=config.expiry.normalizer(),
        soon_days=config.expiry.soon_days,
    )

    if args.json:
        print(json.dumps([i.to_dict() for i in items], ensure_ascii=False, indent=2))
    else:
        print(f"\nFound {len(items)} item(s):")
        for i in items:
            print(f"  {i.item_name:<24} {i.quantity:<10} {i.expiry_date:<10}  [{badge_label(i.days_left)}]")

    if args.save:
        if not args.user:
            print("--save requires --user", file=sys.stderr)
            sys.exit(1)
        db = _open_db(config)
        try:
            ids = db.add_items(args.user, raws)
        finally:
            db.close()
        print(f"Saved {len(ids)} item(s) for {args.user}")


def _cmd_add(config, args) -> None:
    raw = RawItem(
        raw_name=args.name,
        raw_quantity=args.quantity,
        raw_expiry=args.expiry,
        context_hint=args.hint,
    )
    db = _open_db(config)
    try:
        (item_id,) = db.add_items(args.user, [raw])
    finally:
        db.close()
    canonical = config.expiry.normalizer().normalize(args.expiry, args.hint)
    print(f"Added #{item_id}: {args.name} ({args.quantity}), expires {canonical}")
    if canonical == UNKNOWN:
        print(f"  Could not read expiry date {args.expiry!r}", file=sys.stderr)


def _cmd_list(config, args) -> None:
    today = args.today or date.today()
    db = _open_db(config)
    try:
        items = db.get_inventory_with_metadata(args.user, today)
    finally:
        db.close()

    shown = sort_items(
        filter_items(items, args.filter, config.expiry.filter_days), args.sort
    )

    if args.json:
        print(json.dumps([i.to_dict() for i in shown], ensure_ascii=False, indent=2))
        return

    summary = summarize(items, config.expiry.filter_days)
    print(
        f"Total {summary.total} | fresh {summary.fresh} | "
        f"expiring {summary.expiring} | expired {summary.expired} | "
        f"unknown {summary.unknown}"
    )
    if not shown:
        print("No items.")
        return
    for i in shown:
        print(
            f"  #{i.item_id:<4} {i.item_name:<24} {i.quantity:<10} "
            f"{format_for_display(i.expiry_date):<13} [{badge_label(i.days_left)}]"
        )

    cook_first = expiring_ingredients(items, config.expiry.recipe_days)
    if cook_first:
        print(f"\nUse soon: {', '.join(cook_first)}")


def _cmd_notify(config, args) -> None:
    today = args.today or date.today()
    db = _open_db(config)
    store = SQLiteStore(config.database.path)
    try:
        added = refresh_user_notifications(
            db, store, args.user, config.notifications, today
        )
        center = NotificationCenter(store, args.user)
        center.load()
        if args.mark_read:
            center.mark_all_read()
            center.save()
    finally:
        store.close()
        db.close()

    print(f"{center.unread_count} unread ({added} new)")
    for n in center.notifications:
        marker = " " if n.read else "*"
        print(f" {marker} {n.title}: {n.message}")


def _cmd_check(config, args) -> None:
    days_ahead = args.days_ahead
    if days_ahead is None:
        days_ahead = config.scheduler.days_ahead
    db = _open_db(config)
    try:
        result = check_expiring_items(db, days_ahead, args.today)
    finally:
        db.close()

    if not result.reminders:
        print(f"No items expiring on {result.check_date}.")
        return
    print(f"{result.count} item(s) expiring on {result.check_date}:")
    for r in result.reminders:
        left = days_left(r.expiry_date, args.today)
        print(f"  [{r.user_id}] {r.item_name} ({r.quantity})  {left}d")
