"""Command that starts the bank's HTTP server."""

import argparse
import sqlite3
import sys

from basicbank.api import Server
from basicbank.config import load_config
from basicbank.store import Store


def _fail(message):
    print(message, file=sys.stderr)
    return 1


def main(argv=None):
    """Load the configuration, open the database and serve the API until stopped."""
    parser = argparse.ArgumentParser(prog="basicbank", description="Run the bank's HTTP API.")
    parser.add_argument(
        "--config-dir",
        default=".",
        help="directory that holds app.env (default: the current directory)",
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config_dir)
    except (OSError, ValueError):
        return _fail("cannot load config")

    try:
        store = Store(config.db_source)
    except sqlite3.Error as exc:
        return _fail(f"cannot connect to the db: {exc}")

    with store:
        try:
            Server(store).start(config.server_address)
        except (OSError, ValueError):
            return _fail("cannot start server")
    return 0