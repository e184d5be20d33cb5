#!/usr/bin/env python3
"""Entry point: run the build beacon daemon.

Usage: run_beacon.py [config.yaml] [--debug]
Exit codes: 0 stopped by SIGINT/SIGTERM, 1 light missing or unusable at startup, 2 bad config.
"""

import logging
import os
import sys

# Relative CLI paths are the caller's; config/ defaults resolve from the project root
_INVOCATION_DIR = os.getcwd()
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _PROJECT_ROOT)
os.chdir(_PROJECT_ROOT)

EXIT_BAD_CONFIG = 2

# ANSI escape per level; WARNING is what a transient (blue) tick looks like in the log
_STYLE = {
    logging.DEBUG: "\033[90m",
    logging.INFO: "\033[36m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[1;31m",
    logging.CRITICAL: "\033[1;31m",
}
_RESET = "\033[0m"


class ColoredFormatter(logging.Formatter):
    """Colors the [LEVEL] tag only, so messages stay grep-able."""

    def format(self, record: logging.LogRecord) -> str:
        style = _STYLE.get(record.levelno, "")
        record.levelname = f"{style}[{record.levelname}]{_RESET}"
        return super().format(record)


def setup_logging(debug: bool = False) -> None:
    """Log to stdout. --debug also shows the httpx request lines."""
    handler = logging.StreamHandler(sys.stdout)
    if sys.stdout.isatty():
        formatter = ColoredFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    handler.setFormatter(formatter)
    logging.root.handlers.clear()
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG if debug else logging.INFO)
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    setup_logging(debug="--debug" in argv)
    positional = [a for a in argv if not a.startswith("--")]

    from src.app.beacon import run_daemon
    from src.core.errors import ConfigError

    config_path = positional[0] if positional else os.environ.get("BEACON_CONFIG")
    if config_path and not os.path.isabs(config_path):
        config_path = os.path.join(_INVOCATION_DIR, config_path)
    try:
        return run_daemon(config_path)
    except ConfigError as e:
        logging.getLogger("run_beacon").error("Invalid config: %s", e)
        return EXIT_BAD_CONFIG


if __name__ == "__main__":
    sys.exit(main())
