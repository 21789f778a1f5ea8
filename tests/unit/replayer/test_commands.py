"""
Tests for line-oriented script command recognition.
"""

import pytest

from flow_recorder.replayer.commands import CommandKind, LineScriptParser


@pytest.fixture
def parser():
    return LineScriptParser()


SCRIPT = """import { test, expect } from '@playwright/test';

// Recording ID: abc
// Created: 2025-11-17T00:55:07.065Z

test('flow', async ({ page }) => {
  // Navigate to starting URL
  await page.goto('https://example.com/');

  await page.click('#go'); // "Go"
  await page.fill('#q', 'it\\'s here');
  await page.keyboard.press('Enter'); // May trigger form submission
  // MANUAL STEP: scan badge
  await page.selectOption('#country', 'NO');
  await page.evaluate(() => window.scrollTo(0, 640));
  await page.waitForTimeout(1500);
  console.log('not a command');
});
"""


class TestLineScriptParser:
    """Test parsing generated scripts."""

    def test_parses_generated_script(self, parser):
        commands = parser.parse(SCRIPT)

        assert [c.kind for c in commands] == [
            CommandKind.NAVIGATE,
            CommandKind.CLICK,
            CommandKind.FILL,
            CommandKind.KEY_PRESS,
            CommandKind.MANUAL_STEP,
            CommandKind.SELECT,
            CommandKind.SCROLL,
            CommandKind.WAIT,
        ]

    def test_arguments(self, parser):
        commands = {c.kind: c for c in parser.parse(SCRIPT)}

        assert commands[CommandKind.NAVIGATE].args == ("https://example.com/",)
        assert commands[CommandKind.CLICK].args == ("#go",)
        assert commands[CommandKind.FILL].args == ("#q", "it's here")
        assert commands[CommandKind.KEY_PRESS].args == ("Enter",)
        assert commands[CommandKind.MANUAL_STEP].args == ("scan badge",)
        assert commands[CommandKind.SELECT].args == ("#country", "NO")
        assert commands[CommandKind.SCROLL].args == ("0", "640")
        assert commands[CommandKind.WAIT].args == ("1500",)

    def test_line_numbers_and_source(self, parser):
        click = next(c for c in parser.parse(SCRIPT) if c.kind == CommandKind.CLICK)

        assert click.line_number == 10
        assert click.source == "await page.click('#go'); // \"Go\""

    def test_manual_step_not_executable(self, parser):
        step = next(c for c in parser.parse(SCRIPT) if c.kind == CommandKind.MANUAL_STEP)
        assert step.is_executable is False

    @pytest.mark.parametrize("line", [
        "",
        "   ",
        "// just a comment",
        "// Page navigated to: https://example.com/cart",
        "import { test } from '@playwright/test';",
        "const x = 1;",
        "await page.hover('#menu');",
        "});",
    ])
    def test_inert_lines(self, parser, line):
        assert parser.parse_line(line) is None

    def test_hand_edited_whitespace(self, parser):
        command = parser.parse_line("      await page.fill( '#q',   'x' );")
        assert command.kind == CommandKind.FILL
        assert command.args == ("#q", "x")

    def test_fill_with_comma_in_value(self, parser):
        command = parser.parse_line("await page.fill('#q', 'a, b');")
        assert command.args == ("#q", "a, b")

    def test_xpath_selector(self, parser):
        command = parser.parse_line("""await page.click('//*[@id="main"]/ul[1]/li[2]/a[1]');""")
        assert command.args == ('//*[@id="main"]/ul[1]/li[2]/a[1]',)

    def test_empty_script(self, parser):
        assert parser.parse("") == []

    def test_command_text_in_trailing_comment_is_ignored(self, parser):
        """Captured link text that looks like a command stays a comment."""
        command = parser.parse_line(
            """await page.click('#link'); // "page.goto('https://evil.test')\""""
        )
        assert command.kind == CommandKind.CLICK
        assert command.args == ("#link",)

    def test_command_text_inside_value_is_ignored(self, parser):
        command = parser.parse_line(
            "await page.fill('#q', 'await page.goto(\\'https://evil.test\\')');"
        )
        assert command.kind == CommandKind.FILL
        assert command.args == ("#q", "await page.goto('https://evil.test')")

    @pytest.mark.parametrize("line", [
        "console.log(page.goto('https://evil.test'));",
        "const done = await page.click('#go');",
        "await page.evaluate(() => doThings()); // window.scrollTo(0, 99)",
    ])
    def test_shapes_must_start_the_statement(self, parser, line):
        assert parser.parse_line(line) is None
