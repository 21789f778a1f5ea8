"""
Playwright Script Generator - Serialize recordings into Playwright Test scripts.

The generated comment header is the only persisted metadata of a recording.
``parse_script_metadata`` recovers it by scanning the same markers the
generator writes, so both live in this module and change together.
"""

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from flow_recorder.recorder.models import (
    ActionKind,
    RecordedAction,
    Recording,
    RecordingMetadata,
)
from flow_recorder.recorder.selectors import preferred_selector

IMPORT_LINE = "import { test, expect } from '@playwright/test';"
ID_MARKER = "// Recording ID:"
CREATED_MARKER = "// Created:"
DESCRIPTION_MARKER = "// Description:"
MANUAL_STEP_MARKER = "// MANUAL STEP:"
ENTER_COMMENT = " // May trigger form submission"
INDENT = "  "

DEFAULT_WAIT_MS = 1000
EPOCH = datetime.fromtimestamp(0, timezone.utc)

# A single-quoted JS string literal, escapes included
QUOTED = r"'((?:[^'\\]|\\.)*)'"
_TEST_NAME_RE = re.compile(r"test\(\s*" + QUOTED)
_GOTO_RE = re.compile(r"(?:await\s+)?page\.goto\(\s*" + QUOTED)
_UNESCAPE_RE = re.compile(r"\\(.)")
_UNESCAPES = {"n": "\n", "r": "\r", "t": "\t"}


@dataclass
class ScriptMetadata:
    """Header fields written at the top of a generated script."""
    id: str
    name: str
    created_at: datetime
    description: Optional[str] = None
    target_site: Optional[str] = None

    @classmethod
    def from_recording(cls, recording: Recording) -> "ScriptMetadata":
        return cls(
            id=recording.id,
            name=recording.name,
            created_at=recording.created_at,
            description=recording.description,
            target_site=recording.metadata.target_site,
        )


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a trailing ``Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(text: str) -> datetime:
    """Inverse of format_timestamp(); anything unparseable maps to the epoch."""
    text = text.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        value = datetime.fromisoformat(text)
    except ValueError:
        return EPOCH
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def escape_js_string(value: Optional[str]) -> str:
    """Escape a value for embedding in a single-quoted JS string."""
    if value is None:
        return ""
    return (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


def unescape_js_string(value: str) -> str:
    """Inverse of escape_js_string()."""
    return _UNESCAPE_RE.sub(lambda m: _UNESCAPES.get(m.group(1), m.group(1)), value)


def _single_line(value: str) -> str:
    return " ".join(value.split())


class PlaywrightScriptGenerator:
    """
    Generates Playwright Test scripts from recorded actions.

    Consecutive ``input`` actions on the same locator collapse into one
    ``page.fill`` carrying the last value.

    Example:
        >>> generator = PlaywrightScriptGenerator()
        >>> script = generator.generate(ScriptMetadata.from_recording(rec), rec.actions)
    """

    def generate_recording(self, recording: Recording) -> str:
        """Generate the script for a whole recording."""
        return self.generate(ScriptMetadata.from_recording(recording), recording.actions)

    def generate(self, metadata: ScriptMetadata, actions: List[RecordedAction]) -> str:
        """
        Generate a script.

        Args:
            metadata: Header fields
            actions: Actions in capture order

        Returns:
            Script text; deterministic for identical input
        """
        lines = [IMPORT_LINE, ""]
        lines.append(f"{ID_MARKER} {metadata.id}")
        lines.append(f"{CREATED_MARKER} {format_timestamp(metadata.created_at)}")
        if metadata.description:
            lines.append(f"{DESCRIPTION_MARKER} {escape_js_string(metadata.description)}")
        lines.append("")

        lines.append(f"test('{escape_js_string(metadata.name)}', async ({{ page }}) => {{")

        if metadata.target_site:
            lines.append(f"{INDENT}// Navigate to starting URL")
            lines.append(f"{INDENT}await page.goto('{escape_js_string(metadata.target_site)}');")
            lines.append("")

        lines.extend(INDENT + line for line in self._generate_body(actions, metadata.target_site))
        lines.append("});")
        return "\n".join(lines) + "\n"

    def _generate_body(self, actions: List[RecordedAction], start_url: Optional[str]) -> List[str]:
        body: List[str] = []
        last_url = start_url
        # (selector, last value, action that produced it)
        pending: Optional[Tuple[str, str, RecordedAction]] = None

        def flush() -> None:
            nonlocal pending
            if pending:
                selector, value, action = pending
                body.append(self._fill_command(selector, value, action))
                pending = None

        def note_url(action: RecordedAction) -> None:
            nonlocal last_url
            if action.page_url and action.page_url != last_url:
                body.append(f"// Page navigated to: {action.page_url}")
                last_url = action.page_url

        for action in actions:
            if action.kind == ActionKind.INPUT:
                selector = preferred_selector(action.locator)
                if pending and pending[0] == selector:
                    pending = (selector, action.value or "", action)
                    continue
                flush()
                note_url(action)
                pending = (selector, action.value or "", action)
                continue

            flush()
            note_url(action)
            body.append(self._generate_action(action))

        flush()
        return body

    def _generate_action(self, action: RecordedAction) -> str:
        """Generate the line for a single non-input action."""
        if action.kind == ActionKind.CLICK:
            return self._click_command(action)
        if action.kind == ActionKind.KEYPRESS:
            return self._keypress_command(action)
        if action.kind == ActionKind.SELECT:
            selector = escape_js_string(preferred_selector(action.locator))
            return f"await page.selectOption('{selector}', '{escape_js_string(action.value)}');"
        if action.kind == ActionKind.SCROLL:
            x, y = self._scroll_coordinates(action.value)
            return f"await page.evaluate(() => window.scrollTo({x}, {y}));"
        if action.kind == ActionKind.MANUAL_STEP:
            description = _single_line(action.description or "") or "Complete this step manually"
            return f"{MANUAL_STEP_MARKER} {description}"
        if action.kind == ActionKind.WAIT:
            return f"await page.waitForTimeout({self._wait_ms(action.value)});"
        raise ValueError(f"Unsupported action kind: {action.kind}")

    def _click_command(self, action: RecordedAction) -> str:
        selector = escape_js_string(preferred_selector(action.locator))
        return f"await page.click('{selector}');{self._text_comment(action)}"

    def _fill_command(self, selector: str, value: str, action: RecordedAction) -> str:
        return (
            f"await page.fill('{escape_js_string(selector)}', '{escape_js_string(value)}');"
            f"{self._text_comment(action)}"
        )

    def _keypress_command(self, action: RecordedAction) -> str:
        key = self._key_name(action.value)
        comment = ENTER_COMMENT if key == "Enter" else ""
        return f"await page.keyboard.press('{escape_js_string(key)}');{comment}"

    @staticmethod
    def _text_comment(action: RecordedAction) -> str:
        if action.locator and action.locator.text:
            return f' // "{_single_line(action.locator.text)}"'
        return ""

    @staticmethod
    def _key_name(value: Optional[str]) -> str:
        """Key from a key-info JSON payload or a plain key string."""
        if not value:
            return "Enter"
        try:
            info = json.loads(value)
        except ValueError:
            return value.strip() or "Enter"
        if isinstance(info, dict):
            return str(info.get("key") or "Enter")
        if isinstance(info, str) and info:
            return info
        return "Enter"

    @staticmethod
    def _scroll_coordinates(value: Optional[str]) -> Tuple[int, int]:
        try:
            data = json.loads(value or "{}")
            return int(data.get("x") or 0), int(data.get("y") or 0)
        except (ValueError, TypeError, AttributeError):
            return 0, 0

    @staticmethod
    def _wait_ms(value: Optional[str]) -> int:
        try:
            return int(float(value)) if value is not None else DEFAULT_WAIT_MS
        except ValueError:
            return DEFAULT_WAIT_MS


def parse_script_metadata(filename: str, content: str, suffix: str = ".spec.ts") -> Recording:
    """
    Recover recording metadata from a stored script.

    Header markers are only honoured on lines that start with them, before
    the first statement (normally the ``test(`` line), so values embedded in
    commands can never override them. The test-block name, the first
    navigation and the manual-step lines come from statement starts as well.
    The returned Recording has no actions.

    Args:
        filename: Stored file name; its stem is the fallback id
        content: Script text
        suffix: File suffix to strip for the fallback id
    """
    recording_id = filename[: -len(suffix)] if suffix and filename.endswith(suffix) else filename
    name: Optional[str] = None
    description: Optional[str] = None
    created_at = EPOCH
    target_site: Optional[str] = None
    manual_steps = 0
    in_header = True

    for raw in content.splitlines():
        line = raw.strip()
        if in_header:
            if line.startswith(ID_MARKER):
                recording_id = line[len(ID_MARKER):].strip() or recording_id
                continue
            if line.startswith(CREATED_MARKER):
                created_at = parse_timestamp(line[len(CREATED_MARKER):])
                continue
            if line.startswith(DESCRIPTION_MARKER):
                # Trailing whitespace belongs to the escaped value
                value = raw.lstrip()[len(DESCRIPTION_MARKER):]
                description = unescape_js_string(value[1:] if value.startswith(" ") else value) or None
                continue

        if line.startswith(MANUAL_STEP_MARKER):
            manual_steps += 1
        elif in_header and name is None and (match := _TEST_NAME_RE.match(line)):
            name = unescape_js_string(match.group(1))
        elif target_site is None and (match := _GOTO_RE.match(line)):
            target_site = unescape_js_string(match.group(1))

        if line and not line.startswith(("//", "import ")):
            in_header = False

    return Recording(
        id=recording_id,
        name=name if name is not None else recording_id,
        description=description,
        created_at=created_at,
        updated_at=created_at,
        actions=[],
        metadata=RecordingMetadata(
            target_site=target_site,
            manual_steps=manual_steps,
        ),
    )
