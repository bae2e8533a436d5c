# tests/test_logging_setup.py

from __future__ import annotations

import logging

import pytest

from todo_sync.logging_setup import _ConsoleNoiseFilter, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


def test_console_filter_keeps_backend_and_third_party_quiet() -> None:
    noise = _ConsoleNoiseFilter()

    assert noise.filter(_record("todo_sync.tasks.sync_engine", logging.INFO))
    assert not noise.filter(_record("todo_sync.tasks.task_backend", logging.INFO))
    assert noise.filter(_record("todo_sync.tasks.task_backend", logging.WARNING))
    assert not noise.filter(_record("py.warnings", logging.WARNING))
    assert not noise.filter(_record("urllib3", logging.WARNING))
    assert noise.filter(_record("urllib3", logging.ERROR))


@pytest.fixture()
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)


def test_setup_logging_writes_every_record_to_the_file(tmp_path, restore_root_logging) -> None:
    log_file = setup_logging(log_dir=tmp_path / "logs")
    setup_logging(log_dir=tmp_path / "logs")

    logging.getLogger("todo_sync.tasks.task_backend").debug("backend detail")
    for h in logging.getLogger().handlers:
        h.flush()

    assert log_file == tmp_path / "logs" / "todo_sync.log"
    assert len([h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]) == 1
    assert "backend detail" in log_file.read_text(encoding="utf-8")
