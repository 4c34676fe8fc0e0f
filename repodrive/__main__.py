"""Run the service: python -m repodrive [--host H] [--port P]."""

import argparse

import uvicorn

from repodrive.config import get_settings


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="repodrive")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=get_settings().port)
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    uvicorn.run("repodrive.main:app", host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
