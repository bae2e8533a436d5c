# src/todo_sync/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (simulated service + sync engine), then runs the
console connector on an asyncio event loop until /exit, EOF or Ctrl+C.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import ConsoleReporter, run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    if not isinstance(console_level, int):
        console_level = logging.INFO

    log_file = setup_logging(log_dir=settings.data_dir, console_level=console_level)
    logger.info("Starting %s (log file %s)...", settings.app_name, log_file)

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings, reporter=ConsoleReporter())

    try:
        asyncio.run(run_console_loop(state))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    finally:
        state.running = False
        logger.info("Bye.")


if __name__ == "__main__":
    main()
