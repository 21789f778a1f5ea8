"""
Base Mode - Abstract interface for interaction modes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from flow_recorder.interfaces.page import IPageExecutor


class ModeType(Enum):
    """Types of interaction modes."""
    RECORD_REPLAY = "record_replay"


@dataclass
class ModeConfig:
    """
    Configuration for an interaction mode.

    Attributes:
        mode_type: Type of mode
        options: Mode-specific options
    """
    mode_type: ModeType
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ModeResult:
    """
    Result from running a mode operation.

    Attributes:
        success: Whether the operation succeeded
        steps_executed: Number of actions recorded or commands replayed
        data: Operation payload
        error: Error message if failed
    """
    success: bool
    steps_executed: int = 0
    data: Optional[Any] = None
    error: Optional[str] = None


class IInteractionMode(ABC):
    """
    Abstract interface for interaction modes.

    A mode is started against a page and then driven with command dicts.
    """

    @property
    @abstractmethod
    def mode_type(self) -> ModeType:
        """The type of this mode."""
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of the mode."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Description of how this mode works."""
        ...

    @abstractmethod
    async def start(
        self,
        page: IPageExecutor,
        config: ModeConfig,
        **kwargs: Any,
    ) -> None:
        """
        Start the mode.

        Args:
            page: Page to operate on
            config: Mode configuration
            **kwargs: Additional mode-specific arguments
        """
        ...

    @abstractmethod
    async def execute(self, input_data: Any) -> ModeResult:
        """
        Execute one operation.

        Args:
            input_data: Mode-specific command

        Returns:
            Result of execution
        """
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the mode and cleanup."""
        ...
