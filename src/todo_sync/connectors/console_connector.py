# src/todo_sync/connectors/console_connector.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
import threading
from datetime import datetime
from typing import TextIO

from ..cli.commands import registry as command_registry
from ..cli.commands import render_tasks
from ..core.state import AppState
from ..tasks.errors import TodoSyncError, friendly_error_message
from ..tasks.task_models import OperationKind, OperationOutcome

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleReporter:
    """
    OutcomeReporter that prints notifications to the terminal.

    Presentation rules:
    - fetch successes are silent (the list itself is the feedback),
    - completion toggles are silent on success; content edits are announced.
    """

    def __init__(self, out=None) -> None:
        self._out = out or sys.stdout

    def should_announce(self, outcome: OperationOutcome) -> bool:
        if not outcome.success:
            return True
        if outcome.operation == OperationKind.FETCH:
            return False
        if outcome.operation == OperationKind.UPDATE:
            return "title" in outcome.fields or "description" in outcome.fields
        return True

    def report(self, outcome: OperationOutcome) -> None:
        if not self.should_announce(outcome):
            return
        tag = "OK" if outcome.success else "ERROR"
        print(f"[{_ts_local()}] [{tag}] {outcome.message}", file=self._out, flush=True)


class LineReader:
    """
    Reads console lines on a daemon thread and hands them to the event loop.

    The thread never holds up interpreter exit, so Ctrl+C at an idle prompt ends the app
    right away. End of input is delivered as EOFError from read_line().
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdin
        self._queue: asyncio.Queue[str | None] | None = None
        self.thread: threading.Thread | None = None

    def start(self) -> None:
        if self.thread is not None:
            return
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._queue = queue

        def _put(line: str | None) -> None:
            # Loop may already be closed when the user quits mid-read.
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(queue.put_nowait, line)

        def _pump() -> None:
            try:
                for line in iter(self._stream.readline, ""):
                    _put(line.rstrip("\r\n"))
            except (OSError, ValueError):
                logger.debug("Console input stream closed.", exc_info=True)
            finally:
                _put(None)

        self.thread = threading.Thread(target=_pump, name="console-stdin", daemon=True)
        self.thread.start()

    async def read_line(self, prompt: str) -> str:
        self.start()
        assert self._queue is not None
        print(prompt, end="", flush=True)
        line = await self._queue.get()
        if line is None:
            raise EOFError
        return line


async def run_console_loop(state: AppState, reader: LineReader | None = None) -> None:
    reader = reader or LineReader()
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Manage your tasks. Use /help for commands. Use /exit to quit.\n")

    def emit(text: str) -> None:
        # Immediate user-visible feedback while the service is "on the network".
        _print_ts(text)

    emit("Loading your tasks...")
    await state.engine.fetch_all()
    print(render_tasks(state), flush=True)

    while state.running:
        try:
            user_input = (await reader.read_line(">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not user_input.startswith("/"):
            # Plain text is a shortcut for /add.
            user_input = f"/add {user_input}"

        try:
            response = await command_registry.handle(state, user_input, emit=emit)
        except TodoSyncError as e:
            response = friendly_error_message(e)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is not None:
            print(response, flush=True)

    state.running = False
    logger.info("Console connector finished.")
