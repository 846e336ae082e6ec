# watchrun/main.py

"""
watchrun - run shell commands when watched paths change
"""
import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .exceptions import ConfigError
from .utils.config import Config, DEFAULT_CONFIG_PATH, load_config
from .utils.logger import setup_logging
from .watchdog.monitor import FileMonitor

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="watchrun",
        description="Monitors file system events & triggers actions.",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        metavar="FILE",
        help="Path to the configuration file (default: config.toml)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


async def main(config: Config) -> int:
    """Run the monitor until interrupted"""
    monitor = FileMonitor(config)

    loop = asyncio.get_running_loop()
    if sys.platform != 'win32':
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, monitor.request_stop)

    try:
        await monitor.run()
    finally:
        if sys.platform != 'win32':
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)

    logger.info("Watcher stopped. Exiting.")
    return 0


def cli(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        if e.__cause__ is not None:
            print(f" -> {type(e.__cause__).__name__}: {e.__cause__}", file=sys.stderr)
        return 1

    setup_logging(
        log_level=config.log_level,
        log_file=config.log_file,
        log_format=config.log_format,
    )
    logger.debug(f"Loaded configuration: {config.to_json()}")

    try:
        return asyncio.run(main(config))
    except KeyboardInterrupt:
        # Windows has no loop signal handlers; Ctrl+C lands here
        logger.info("Interrupted. Exiting.")
        return 0


if __name__ == "__main__":
    raise SystemExit(cli())
