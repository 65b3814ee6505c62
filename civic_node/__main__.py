# civic_node/__main__.py
"""
Entry point for running the Civic Treasury Node as a module:
    python -m civic_node [--config ./civic_config.yaml] [--host 127.0.0.1] [--port 8000]

Env toggles (see config.py for the full list):
  CIVIC_ADMIN=...       -> genesis admin principal
  CIVIC_PERSIST=1       -> snapshot state to CIVIC_DATA_DIR after every call
  CIVIC_LOG_LEVEL=DEBUG -> log level
"""

from __future__ import annotations

import argparse
import logging
import os

import uvicorn

from . import config as civic_config
from .app import create_app


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        prog="civic-node",
        description="Run the Civic Treasury Node HTTP API",
    )
    p.add_argument(
        "--config",
        default=os.environ.get("CIVIC_CONFIG", civic_config.CONFIG_FILENAME),
        help="Path to YAML config (default: ./civic_config.yaml)",
    )
    p.add_argument("--host", default=None, help="Bind address (overrides config)")
    p.add_argument("--port", type=int, default=None, help="Port (overrides config)")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    cfg = civic_config.load_config(args.config)

    logging.basicConfig(
        level=civic_config.get_log_level(cfg),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    host = args.host or civic_config.get_bind_host(cfg)
    port = args.port or civic_config.get_bind_port(cfg)

    app = create_app(cfg)
    uvicorn.run(app, host=host, port=port, log_level=civic_config.get_log_level(cfg).lower())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
