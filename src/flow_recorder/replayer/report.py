"""
Replay Report - Per-command results of a best-effort replay.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from flow_recorder.recorder.models import utc_now
from flow_recorder.replayer.commands import ScriptCommand


@dataclass
class CommandResult:
    """Outcome of one script command."""
    command: ScriptCommand
    success: bool
    duration_ms: float = 0.0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line_number": self.command.line_number,
            "kind": self.command.kind.value,
            "source": self.command.source,
            "success": self.success,
            "duration_ms": self.duration_ms,
            "error": self.error,
        }


@dataclass
class ReplayReport:
    """
    Summary of a replay.

    Attributes:
        recording_id: Replayed recording
        started_at: When the replay started
        completed_at: When the replay ended (completed, stopped or errored)
        total_commands: Commands recognized in the script
        results: One result per command that was attempted
        stopped: True if stop() cut the replay short
        error: Fatal error that aborted the replay, if any
    """
    recording_id: str
    started_at: datetime = field(default_factory=utc_now)
    completed_at: Optional[datetime] = None
    total_commands: int = 0
    results: List[CommandResult] = field(default_factory=list)
    stopped: bool = False
    error: Optional[str] = None

    @property
    def executed(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def success(self) -> bool:
        """True only when every command ran and none failed."""
        return self.failed == 0 and not self.stopped and self.error is None

    @property
    def duration_seconds(self) -> float:
        if not self.completed_at:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "recording_id": self.recording_id,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "total_commands": self.total_commands,
            "executed": self.executed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "stopped": self.stopped,
            "success": self.success,
            "error": self.error,
            "duration_seconds": self.duration_seconds,
            "results": [r.to_dict() for r in self.results],
        }
