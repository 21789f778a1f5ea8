"""
Tests for the Playwright script generator and header parsing.
"""

import json
from datetime import datetime, timezone

import pytest

from flow_recorder.recorder.models import (
    ActionKind,
    ElementSelector,
    RecordedAction,
    Recording,
    RecordingMetadata,
)
from flow_recorder.recorder.script_generator import (
    ENTER_COMMENT,
    MANUAL_STEP_MARKER,
    PlaywrightScriptGenerator,
    ScriptMetadata,
    escape_js_string,
    format_timestamp,
    parse_script_metadata,
    parse_timestamp,
    unescape_js_string,
)

URL = "https://example.com"


def action(kind, selector_id=None, value=None, page_url=URL, **kwargs):
    locator = ElementSelector(id=selector_id) if selector_id else None
    return RecordedAction(kind=kind, page_url=page_url, locator=locator, value=value, **kwargs)


def metadata(**kwargs):
    defaults = {
        "id": "4d6870eb-c94b-42f3-9a1f-e342420cd298",
        "name": "Recording-2025-11-17T00-55-07",
        "created_at": datetime(2025, 11, 17, 0, 55, 7, 65000, tzinfo=timezone.utc),
        "target_site": URL,
    }
    defaults.update(kwargs)
    return ScriptMetadata(**defaults)


def body_lines(script):
    """Executable and comment lines inside the test block."""
    lines = script.splitlines()
    start = next(i for i, line in enumerate(lines) if line.startswith("test("))
    return [line.strip() for line in lines[start + 1:-1] if line.strip()]


class TestGenerate:
    """Test script generation."""

    def test_example_scenario(self):
        """Click, two inputs and Enter produce four commands in order."""
        key = json.dumps({"key": "Enter", "code": "Enter"})
        actions = [
            action(ActionKind.CLICK, "go"),
            action(ActionKind.INPUT, "q", "a"),
            action(ActionKind.INPUT, "q", "ab"),
            action(ActionKind.KEYPRESS, "q", key),
        ]

        script = PlaywrightScriptGenerator().generate(metadata(), actions)

        assert body_lines(script) == [
            "// Navigate to starting URL",
            "await page.goto('https://example.com');",
            "await page.click('#go');",
            "await page.fill('#q', 'ab');",
            "await page.keyboard.press('Enter');" + ENTER_COMMENT,
        ]

    def test_header_and_structure(self):
        """Header lines come first and the block is closed."""
        script = PlaywrightScriptGenerator().generate(
            metadata(description="checkout flow"), []
        )
        lines = script.splitlines()

        assert lines[0] == "import { test, expect } from '@playwright/test';"
        assert lines[2] == "// Recording ID: 4d6870eb-c94b-42f3-9a1f-e342420cd298"
        assert lines[3] == "// Created: 2025-11-17T00:55:07.065Z"
        assert lines[4] == "// Description: checkout flow"
        assert lines[6] == "test('Recording-2025-11-17T00-55-07', async ({ page }) => {"
        assert lines[-1] == "});"
        assert script.endswith("\n")

    def test_no_target_site_omits_navigation(self):
        """Without a target site no goto is emitted."""
        script = PlaywrightScriptGenerator().generate(metadata(target_site=None), [])
        assert "page.goto" not in script

    def test_deterministic(self):
        """Identical input yields identical output."""
        actions = [action(ActionKind.CLICK, "go"), action(ActionKind.INPUT, "q", "x")]
        generator = PlaywrightScriptGenerator()
        assert generator.generate(metadata(), actions) == generator.generate(metadata(), actions)


class TestConsolidation:
    """Test merging of consecutive inputs."""

    def test_same_locator_keeps_last_value(self):
        """Keystroke-by-keystroke input becomes one fill."""
        actions = [action(ActionKind.INPUT, "q", v) for v in ["h", "he", "hel", "hell", "hello"]]
        script = PlaywrightScriptGenerator().generate(metadata(), actions)

        assert script.count("page.fill(") == 1
        assert "await page.fill('#q', 'hello');" in script

    def test_different_locator_flushes(self):
        """A new locator emits the pending fill first."""
        actions = [
            action(ActionKind.INPUT, "user", "bob"),
            action(ActionKind.INPUT, "pass", "s3"),
            action(ActionKind.INPUT, "pass", "s3cret"),
        ]
        fills = [l for l in body_lines(PlaywrightScriptGenerator().generate(metadata(), actions)) if "fill" in l]

        assert fills == [
            "await page.fill('#user', 'bob');",
            "await page.fill('#pass', 's3cret');",
        ]

    def test_non_input_action_flushes(self):
        """An interleaved click splits input runs on the same locator."""
        actions = [
            action(ActionKind.INPUT, "q", "a"),
            action(ActionKind.CLICK, "go"),
            action(ActionKind.INPUT, "q", "b"),
        ]
        lines = body_lines(PlaywrightScriptGenerator().generate(metadata(), actions))

        assert lines[-3:] == [
            "await page.fill('#q', 'a');",
            "await page.click('#go');",
            "await page.fill('#q', 'b');",
        ]

    def test_navigation_comment_does_not_split_inputs(self):
        """A URL change in the middle of an input run keeps one fill."""
        actions = [
            action(ActionKind.INPUT, "q", "a"),
            action(ActionKind.INPUT, "q", "ab", page_url=URL + "/#search"),
        ]
        script = PlaywrightScriptGenerator().generate(metadata(), actions)
        assert script.count("page.fill(") == 1


class TestActionKinds:
    """Test per-kind serialization."""

    def test_click_text_comment(self):
        """Captured text is appended as a comment."""
        click = RecordedAction(
            kind=ActionKind.CLICK,
            page_url=URL,
            locator=ElementSelector(css_path="button.primary", text="Sign in"),
        )
        script = PlaywrightScriptGenerator().generate(metadata(), [click])
        assert "await page.click('button.primary'); // \"Sign in\"" in script

    def test_keypress_other_key_has_no_comment(self):
        """Only Enter carries the submission comment."""
        script = PlaywrightScriptGenerator().generate(
            metadata(), [action(ActionKind.KEYPRESS, "q", json.dumps({"key": "Tab"}))]
        )
        assert "await page.keyboard.press('Tab');\n" in script

    def test_keypress_plain_key(self):
        """A plain key string is accepted."""
        script = PlaywrightScriptGenerator().generate(
            metadata(), [action(ActionKind.KEYPRESS, "q", "Escape")]
        )
        assert "page.keyboard.press('Escape');" in script

    def test_select(self):
        script = PlaywrightScriptGenerator().generate(
            metadata(), [action(ActionKind.SELECT, "country", "NO")]
        )
        assert "await page.selectOption('#country', 'NO');" in script

    def test_scroll(self):
        script = PlaywrightScriptGenerator().generate(
            metadata(), [action(ActionKind.SCROLL, value=json.dumps({"x": 0, "y": 640}))]
        )
        assert "await page.evaluate(() => window.scrollTo(0, 640));" in script

    @pytest.mark.parametrize("value", [None, "not json", "[1, 2]"])
    def test_scroll_malformed_falls_back_to_origin(self, value):
        """Missing or malformed coordinates scroll to (0, 0)."""
        script = PlaywrightScriptGenerator().generate(
            metadata(), [action(ActionKind.SCROLL, value=value)]
        )
        assert "window.scrollTo(0, 0)" in script

    def test_wait(self):
        script = PlaywrightScriptGenerator().generate(
            metadata(), [action(ActionKind.WAIT, value="2500")]
        )
        assert "await page.waitForTimeout(2500);" in script

    def test_wait_default(self):
        """An unparsable duration defaults to one second."""
        script = PlaywrightScriptGenerator().generate(
            metadata(), [action(ActionKind.WAIT, value="soon")]
        )
        assert "await page.waitForTimeout(1000);" in script

    def test_manual_step(self):
        """Manual steps are comments, never commands."""
        step = action(ActionKind.MANUAL_STEP, description="scan badge")
        script = PlaywrightScriptGenerator().generate(metadata(), [step])
        assert f"{MANUAL_STEP_MARKER} scan badge" in script

    def test_page_navigated_comment(self):
        """A change of page URL is annotated."""
        actions = [
            action(ActionKind.CLICK, "next"),
            action(ActionKind.CLICK, "buy", page_url=URL + "/cart"),
        ]
        script = PlaywrightScriptGenerator().generate(metadata(), actions)
        assert "// Page navigated to: https://example.com/cart" in script
        assert script.count("Page navigated to") == 1

    def test_values_are_escaped(self):
        """Quotes, backslashes and newlines cannot break out of the literal."""
        script = PlaywrightScriptGenerator().generate(
            metadata(), [action(ActionKind.INPUT, "bio", "it's a\\b\nline")]
        )
        assert "await page.fill('#bio', 'it\\'s a\\\\b\\nline');" in script


class TestEscaping:
    """Test JS string escaping helpers."""

    @pytest.mark.parametrize("value", ["plain", "it's", "back\\slash", "two\nlines", "cr\r"])
    def test_unescape_inverts_escape(self, value):
        assert unescape_js_string(escape_js_string(value)) == value

    def test_escape_none(self):
        assert escape_js_string(None) == ""


class TestTimestamps:
    """Test ISO timestamp formatting."""

    def test_format_millisecond_precision(self):
        value = datetime(2025, 11, 17, 0, 55, 7, 65999, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2025-11-17T00:55:07.065Z"

    def test_parse_roundtrip(self):
        text = "2025-11-17T00:55:07.065Z"
        assert format_timestamp(parse_timestamp(text)) == text

    def test_parse_garbage_is_epoch(self):
        assert parse_timestamp("yesterday").year == 1970


class TestParseScriptMetadata:
    """Test metadata recovery from generated scripts."""

    def test_header_roundtrip(self):
        """id, createdAt and description survive generation and parsing."""
        recording = Recording(
            name="Checkout 'fast'",
            description="buy one item",
            created_at=datetime(2025, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc),
            metadata=RecordingMetadata(target_site=URL),
        )
        script = PlaywrightScriptGenerator().generate_recording(recording)

        parsed = parse_script_metadata(f"{recording.id}.spec.ts", script)

        assert parsed.id == recording.id
        assert format_timestamp(parsed.created_at) == format_timestamp(recording.created_at)
        assert parsed.description == "buy one item"
        assert parsed.name == "Checkout 'fast'"
        assert parsed.metadata.target_site == URL
        assert parsed.actions == []

    def test_manual_step_count(self):
        """The manual-step count equals the number of manual_step actions."""
        actions = [
            action(ActionKind.CLICK, "go"),
            action(ActionKind.MANUAL_STEP, description="scan badge"),
            action(ActionKind.INPUT, "q", "x"),
            action(ActionKind.MANUAL_STEP, description="approve on phone"),
        ]
        script = PlaywrightScriptGenerator().generate(metadata(), actions)

        parsed = parse_script_metadata("x.spec.ts", script)

        assert parsed.metadata.manual_steps == 2

    def test_missing_id_falls_back_to_filename(self):
        """Scripts without an id comment use their file stem."""
        script = "test('hand written', async ({ page }) => {\n});\n"
        parsed = parse_script_metadata("my-flow.spec.ts", script)

        assert parsed.id == "my-flow"
        assert parsed.name == "hand written"
        assert parsed.metadata.target_site is None

    def test_missing_name_falls_back_to_id(self):
        parsed = parse_script_metadata("bare.spec.ts", "// Recording ID: abc\n")
        assert parsed.name == "abc"

    @pytest.mark.parametrize("description", [
        "line1\nline2  x",
        "it's   spaced  ",
        "  leading and \\ backslash\r\n",
    ])
    def test_description_exact_roundtrip(self, description):
        """Descriptions come back unchanged, whitespace and newlines included."""
        script = PlaywrightScriptGenerator().generate(metadata(description=description), [])

        parsed = parse_script_metadata("x.spec.ts", script)

        assert parsed.description == description

    def test_description_stays_on_one_header_line(self):
        script = PlaywrightScriptGenerator().generate(metadata(description="one\ntwo"), [])
        assert "// Description: one\\ntwo" in script.splitlines()

    def test_marker_text_in_values_does_not_override_header(self):
        """Header markers typed into the page are not mistaken for metadata."""
        created = datetime(2025, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
        actions = [
            action(ActionKind.INPUT, "q", "// Recording ID: evil"),
            action(ActionKind.INPUT, "when", "// Created: 1999-01-01T00:00:00.000Z"),
            action(ActionKind.SELECT, "note", "// Description: hijacked"),
            action(ActionKind.INPUT, "step", "// MANUAL STEP: x"),
        ]
        script = PlaywrightScriptGenerator().generate(
            metadata(id="rec-1", created_at=created, description="real"), actions
        )

        parsed = parse_script_metadata("rec-1.spec.ts", script)

        assert parsed.id == "rec-1"
        assert parsed.created_at == created
        assert parsed.description == "real"
        assert parsed.metadata.manual_steps == 0

    def test_navigation_text_in_click_comment_is_not_target_site(self):
        locator = ElementSelector(id="link", text="page.goto('https://evil.test')")
        click = RecordedAction(kind=ActionKind.CLICK, page_url=URL, locator=locator)
        script = PlaywrightScriptGenerator().generate(metadata(target_site=None), [click])

        parsed = parse_script_metadata("x.spec.ts", script)

        assert parsed.metadata.target_site is None
