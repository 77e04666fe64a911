from __future__ import annotations

import argparse
from collections.abc import Sequence

import uvicorn

from nodepulse_api.logging import get_logger
from nodepulse_core.config import get_settings, load_env_file

logger = get_logger("nodepulse.server")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Serve the node status dashboard.")
    parser.add_argument(
        "--host",
        default=settings.host,
        help="Bind address. Defaults to NODEPULSE_HOST.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help="Bind port. Defaults to NODEPULSE_PORT.",
    )
    return parser.parse_args(argv)


def run(argv: Sequence[str] | None = None) -> int:
    load_env_file()
    args = parse_args(argv)
    logger.info("dashboard_listening", url=f"http://{args.host}:{args.port}")
    uvicorn.run("nodepulse_api.main:app", host=args.host, port=args.port, log_config=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
