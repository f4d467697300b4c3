#!/usr/bin/env python3
"""
Run the store watchdog in the foreground.

Sweeps the monitored records at startup and every interval, and repairs
records that other processes corrupt in between, until interrupted.
"""

import argparse
import sys
import time
from pathlib import Path

import dotenv

# Settings are read at import time, so .env must be loaded first
dotenv.load_dotenv()

# Add the parent directory to sys.path to import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from storeguard.core.config import validate_watchdog_config
from storeguard.core.store import KVStore, StoreError
from storeguard.core.watchdog import WatchdogOptions, configure


def print_result(result):
    if result.repaired_keys:
        print(f"🔧 Repaired [{', '.join(result.repaired_keys)}]")
    for error in result.errors:
        print(f"❌ {error}")
    if result.is_healthy and not result.repaired_keys:
        print("✅ All monitored records healthy")


def main():
    parser = argparse.ArgumentParser(description="Run the store integrity watchdog")
    parser.add_argument("--db", help="Path to the store database (default: STORE_DB_PATH)")
    parser.add_argument("--interval-ms", type=int, help="Sweep interval in milliseconds")
    parser.add_argument("--once", action="store_true", help="Run a single sweep and exit")
    parser.add_argument(
        "--force-repair",
        action="store_true",
        help="Reset every monitored record to its default and exit"
    )
    args = parser.parse_args()

    issues = validate_watchdog_config()
    if issues:
        print(f"❌ Invalid configuration: {issues}")
        sys.exit(1)

    try:
        store = KVStore(args.db)
    except StoreError as e:
        print(f"💥 Cannot open store: {e}")
        sys.exit(1)

    overrides = {"on_repair": lambda key, reason: print(f"🔧 {key}: {reason}")}
    if args.interval_ms is not None:
        overrides["interval_ms"] = args.interval_ms

    if args.once or args.force_repair:
        handle = configure(options=WatchdogOptions.from_env(enabled=False, **overrides), store=store)
        if args.force_repair:
            print("🚨 Force repairing ALL monitored keys...")
            handle.force_repair_all()
            result = handle.get_health_status()
        else:
            result = handle.run_health_check()
        print_result(result)
        sys.exit(0 if result.is_healthy else 2)

    handle = configure(options=WatchdogOptions.from_env(enabled=True, **overrides), store=store)
    print(f"🏃 Watchdog running on {store.db_path} (every {handle.options.interval_ms} ms)")
    print("💡 Press Ctrl+C to stop")

    try:
        while handle.is_running:
            time.sleep(0.5)
    except KeyboardInterrupt:
        print("\n👋 Shutting down gracefully...")
    finally:
        handle.stop()


if __name__ == "__main__":
    main()
