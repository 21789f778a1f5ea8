"""
Script Commands - Line-oriented recognition of generated script commands.

No parse tree is built. Each trimmed line is matched against a fixed set of
command shapes; anything that does not match is inert, so hand-edited
scripts with extra lines still replay.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Pattern, Tuple

from flow_recorder.recorder.script_generator import (
    MANUAL_STEP_MARKER,
    QUOTED,
    unescape_js_string,
)


class CommandKind(str, Enum):
    """Recognized command shapes."""
    NAVIGATE = "navigate"
    CLICK = "click"
    FILL = "fill"
    KEY_PRESS = "key_press"
    SELECT = "select"
    SCROLL = "scroll"
    WAIT = "wait"
    MANUAL_STEP = "manual_step"


@dataclass
class ScriptCommand:
    """
    One recognized script line.

    Attributes:
        kind: Command shape
        args: Unescaped string arguments in source order
        line_number: 1-based line in the script
        source: The trimmed source line
    """
    kind: CommandKind
    args: Tuple[str, ...] = field(default_factory=tuple)
    line_number: int = 0
    source: str = ""

    @property
    def is_executable(self) -> bool:
        """False for annotations that carry no page side effect."""
        return self.kind != CommandKind.MANUAL_STEP

    def arg(self, index: int, default: str = "") -> str:
        return self.args[index] if index < len(self.args) else default


class IScriptParser(ABC):
    """Turns script text into an ordered list of commands."""

    @abstractmethod
    def parse(self, text: str) -> List[ScriptCommand]:
        """
        Parse a script.

        Must not raise for unrecognized content.
        """
        ...


# Every shape is anchored at the start of the statement, so command-like
# text in a trailing comment or inside a quoted value is never matched.
_STATEMENT = r"(?:await\s+)?page\."

_PATTERNS: List[Tuple[CommandKind, Pattern[str]]] = [
    (CommandKind.NAVIGATE, re.compile(_STATEMENT + r"goto\(\s*" + QUOTED)),
    (CommandKind.CLICK, re.compile(_STATEMENT + r"click\(\s*" + QUOTED)),
    (CommandKind.FILL, re.compile(_STATEMENT + r"fill\(\s*" + QUOTED + r",\s*" + QUOTED)),
    (CommandKind.KEY_PRESS, re.compile(_STATEMENT + r"keyboard\.press\(\s*" + QUOTED)),
    (CommandKind.SELECT, re.compile(_STATEMENT + r"selectOption\(\s*" + QUOTED + r",\s*" + QUOTED)),
    (
        CommandKind.SCROLL,
        re.compile(
            _STATEMENT
            + r"evaluate\(\s*\(\)\s*=>\s*window\.scrollTo\(\s*(-?\d+)\s*,\s*(-?\d+)\s*\)"
        ),
    ),
    (CommandKind.WAIT, re.compile(_STATEMENT + r"waitForTimeout\(\s*(\d+)\s*\)")),
]

# Numeric captures are not string literals and must not be unescaped
_NUMERIC_KINDS = frozenset({CommandKind.SCROLL, CommandKind.WAIT})


class LineScriptParser(IScriptParser):
    """
    Default parser: trim, skip comments and the import preamble, match shapes.

    Example:
        >>> LineScriptParser().parse("await page.click('#go');")
        [ScriptCommand(kind=<CommandKind.CLICK: 'click'>, args=('#go',), ...)]
    """

    def parse(self, text: str) -> List[ScriptCommand]:
        commands = []
        for line_number, raw in enumerate(text.splitlines(), 1):
            command = self.parse_line(raw, line_number)
            if command is not None:
                commands.append(command)
        return commands

    def parse_line(self, raw: str, line_number: int = 0) -> Optional[ScriptCommand]:
        """Recognize a single line, or return None if it is inert."""
        line = raw.strip()
        if not line or line.startswith("import "):
            return None

        if line.startswith("//"):
            if line.startswith(MANUAL_STEP_MARKER):
                description = line[len(MANUAL_STEP_MARKER):].strip()
                return ScriptCommand(CommandKind.MANUAL_STEP, (description,), line_number, line)
            return None

        for kind, pattern in _PATTERNS:
            match = pattern.match(line)
            if match:
                groups = match.groups()
                if kind not in _NUMERIC_KINDS:
                    groups = tuple(unescape_js_string(g) for g in groups)
                return ScriptCommand(kind, tuple(groups), line_number, line)
        return None
