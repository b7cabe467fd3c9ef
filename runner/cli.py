from __future__ import annotations

import argparse
import os


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments for the smoke runner."""
    parser = argparse.ArgumentParser(description="Stateless token auth smoke runner")
    parser.add_argument("--base-url", default=os.getenv("BASE_URL", "http://127.0.0.1:8000"))
    parser.add_argument("--user-id", default="smoke-user")
    parser.add_argument("--user-key", default="smoke-key")
    parser.add_argument("--user-rkey", default="smoke-rkey")
    parser.add_argument("--timeout", type=float, default=20.0)
    return parser.parse_args(argv)
