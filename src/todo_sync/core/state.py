# src/todo_sync/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..config import Settings
from ..tasks.sync_engine import SyncEngine
from .ports import TaskBackend


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Settings

    backend: TaskBackend
    engine: SyncEngine

    running: bool = True
