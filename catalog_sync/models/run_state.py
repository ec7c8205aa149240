"""
Run state models.

The state of the single sync run slot, plus the bounded run log.
Owned and mutated by the run coordinator; everyone else reads snapshots
produced by `to_dict()`.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Deque, Optional

DEFAULT_LOG_CAPACITY = 1000


class RunPhase(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    DOWNLOADING = "downloading"
    CONNECTING = "connecting"
    FETCHING = "fetching"
    SYNCING = "syncing"
    COMPLETE = "complete"
    ERROR = "error"
    STOPPED = "stopped"

    @property
    def is_terminal(self) -> bool:
        return self in (RunPhase.COMPLETE, RunPhase.ERROR, RunPhase.STOPPED)


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARN = "warn"
    ERROR = "error"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LogEntry:
    timestamp: datetime
    message: str
    severity: Severity = Severity.INFO

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
            "severity": self.severity.value,
        }


@dataclass
class RunState:
    """Counters, phase and log of the current (or last) run."""
    running: bool = False
    phase: RunPhase = RunPhase.IDLE
    progress: int = 0
    total: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    current_group: str = ""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    mode: Optional[str] = None
    method: Optional[str] = None
    stop_requested: bool = False
    log_capacity: int = DEFAULT_LOG_CAPACITY
    logs: Deque[LogEntry] = field(default=None)

    def __post_init__(self):
        if self.logs is None:
            self.logs = deque(maxlen=self.log_capacity)

    def append_log(self, entry: LogEntry) -> None:
        """Append to the ring; the oldest entry is evicted past capacity."""
        self.logs.append(entry)

    @property
    def elapsed_seconds(self) -> Optional[float]:
        if self.start_time is None:
            return None
        end = self.end_time or utc_now()
        return (end - self.start_time).total_seconds()

    def to_dict(self, include_logs: bool = True) -> dict:
        data = {
            "running": self.running,
            "phase": self.phase.value,
            "progress": self.progress,
            "total": self.total,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors,
            "current_group": self.current_group,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "mode": self.mode,
            "method": self.method,
            "stop_requested": self.stop_requested,
            "elapsed_seconds": self.elapsed_seconds,
        }
        if include_logs:
            data["logs"] = [entry.to_dict() for entry in self.logs]
        return data
