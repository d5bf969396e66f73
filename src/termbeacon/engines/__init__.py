"""Highlighting engine: scheduling, change observation and orchestration."""

from termbeacon.engines.controller import EngineController, EngineState
from termbeacon.engines.scheduler import ChunkedTask, IdleScheduler
from termbeacon.engines.watcher import ChangeWatcher

__all__ = ["ChangeWatcher", "ChunkedTask", "EngineController", "EngineState", "IdleScheduler"]
