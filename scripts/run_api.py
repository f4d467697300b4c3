#!/usr/bin/env python3
"""
Serve the watchdog HTTP API with uvicorn.
"""

import argparse
import sys
from pathlib import Path

import dotenv

dotenv.load_dotenv()

sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn

from storeguard.core.config import API_ENABLED


def main():
    parser = argparse.ArgumentParser(description="Serve the store watchdog API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    if not API_ENABLED:
        print("❌ API disabled (API_ENABLED=false)")
        sys.exit(1)

    uvicorn.run("storeguard.api.main:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
