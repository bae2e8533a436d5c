# tests/test_console_connector.py

from __future__ import annotations

import asyncio
import io
import os

import pytest

from todo_sync.cli.bootstrap import create_initial_state
from todo_sync.connectors.console_connector import LineReader, run_console_loop
from todo_sync.tasks.task_models import TaskFilter

from .fakes import RecordingReporter, ScriptedBackend


@pytest.fixture()
def app(settings, backend: ScriptedBackend):
    return create_initial_state(settings=settings, backend=backend, reporter=RecordingReporter())


@pytest.mark.asyncio
async def test_console_loop_runs_commands_until_exit(app, capsys) -> None:
    reader = LineReader(io.StringIO("/filter completed\nbuy milk\n/exit\n/list\n"))

    await asyncio.wait_for(run_console_loop(app, reader=reader), timeout=5)

    out = capsys.readouterr().out
    assert "middle" in out
    assert app.engine.filter == TaskFilter.COMPLETED
    assert any(t.title == "buy milk" for t in app.engine.tasks)
    assert app.running is False


@pytest.mark.asyncio
async def test_console_loop_stops_on_end_of_input(app) -> None:
    reader = LineReader(io.StringIO(""))

    await asyncio.wait_for(run_console_loop(app, reader=reader), timeout=5)

    assert app.running is False
    assert reader.thread is not None and reader.thread.daemon is True


@pytest.mark.asyncio
async def test_waiting_for_input_does_not_block_cancellation(app) -> None:
    # Nothing is ever written: the reader thread stays blocked in readline().
    read_fd, write_fd = os.pipe()
    stream = os.fdopen(read_fd, "r")
    reader = LineReader(stream)
    runner = asyncio.create_task(run_console_loop(app, reader=reader))

    for _ in range(50):
        if reader.thread is not None:
            break
        await asyncio.sleep(0.01)
    runner.cancel()

    with pytest.raises(asyncio.CancelledError):
        await asyncio.wait_for(runner, timeout=1)
    assert reader.thread.daemon is True
    assert reader.thread.is_alive()

    os.close(write_fd)
    reader.thread.join(timeout=1)
    assert not reader.thread.is_alive()
    stream.close()
