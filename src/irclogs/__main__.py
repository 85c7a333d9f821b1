"""
IRC log service entry point.

Usage:
    python -m irclogs --config config.yaml [--host HOST] [--port PORT]

When the config file does not exist a starter one is written and the
process exits so the operator can edit it.
"""

from __future__ import annotations

import argparse
import os
import sys

from pathlib import Path

import uvicorn

from pydantic import ValidationError

from irclogs.api.main import create_app
from irclogs.core.constants import CONFIG_PATH_ENV, get_config_path, get_settings, write_default_config
from irclogs.utils.logger import logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="irclogs", description="IRC log browser with an ask assistant")
    parser.add_argument("--config", type=Path, help=f"YAML config file (default: ${CONFIG_PATH_ENV} or ./config.yaml)")
    parser.add_argument("--host", help="Override the bind host")
    parser.add_argument("--port", type=int, help="Override the bind port")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.config is not None:
        os.environ[CONFIG_PATH_ENV] = str(args.config)
    config_path = get_config_path()

    if not config_path.exists():
        try:
            write_default_config(config_path)
        except OSError as e:
            logger.error(f"Cannot write default config to {config_path}: {e}")
            return 1
        logger.info(f"Wrote default config to {config_path}; edit it and start again")
        return 0

    try:
        settings = get_settings()
    except ValidationError as e:
        logger.error(f"Invalid configuration in {config_path}: {e}")
        return 1

    host = args.host or settings.api_host
    port = args.port or settings.api_port
    logger.info(f"Serving {settings.site_title} on {host}:{port}{settings.base_path or '/'}")

    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
