#!/usr/bin/env python3
"""
Inspect or tamper with the shared store from a separate context.

Writes made here show up as cross-context changes to a running watchdog,
which makes this handy for corruption drills:

    python scripts/store_util.py set-raw app_users "{not json"
"""

import argparse
import sys
from pathlib import Path

import dotenv

dotenv.load_dotenv()

sys.path.insert(0, str(Path(__file__).parent.parent))

from storeguard.core.store import KVStore, StoreError
from storeguard.util.logging import sanitize_payload


def main():
    parser = argparse.ArgumentParser(description="Store inspection and drill utility")
    parser.add_argument("--db", help="Path to the store database (default: STORE_DB_PATH)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List keys with a value preview")

    get_cmd = sub.add_parser("get", help="Print the raw value of a key")
    get_cmd.add_argument("key")

    set_cmd = sub.add_parser("set-raw", help="Store raw text under a key, unvalidated")
    set_cmd.add_argument("key")
    set_cmd.add_argument("value")

    del_cmd = sub.add_parser("delete", help="Remove a key")
    del_cmd.add_argument("key")

    sub.add_parser("clear", help="Remove every key")

    args = parser.parse_args()

    try:
        store = KVStore(args.db, context_id="store_util")

        if args.command == "list":
            for key in store.keys():
                print(f"{key}: {sanitize_payload(store.get_item(key) or '', limit=60)}")
            print(f"📦 {store.used_bytes()} bytes used")

        elif args.command == "get":
            raw = store.get_item(args.key)
            if raw is None:
                print(f"❌ Key not found: {args.key}")
                sys.exit(1)
            print(raw)

        elif args.command == "set-raw":
            store.set_item(args.key, args.value)
            print(f"✓ Wrote {len(args.value)} chars to {args.key}")

        elif args.command == "delete":
            if store.remove_item(args.key):
                print(f"✓ Deleted {args.key}")
            else:
                print(f"Key not found: {args.key}")

        elif args.command == "clear":
            store.clear()
            print("✓ Store cleared")

    except StoreError as e:
        print(f"💥 Store error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
