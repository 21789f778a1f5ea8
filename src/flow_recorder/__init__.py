"""
Flow Recorder - Record browser workflows once, replay them automatically.

User interactions on a live page are captured into an action log, serialized
as a human-editable Playwright Test script, and later replayed line by line
against a page with best-effort execution.

Example:
    >>> from flow_recorder import ActionRecorder, ActionReplayer, ScriptStore
    >>> store = ScriptStore("./recordings")
    >>> recorder = ActionRecorder(store)
    >>> await recorder.start(executor, "checkout")
    >>> recording = await recorder.stop()
    >>> report = await ActionReplayer(store).start_replay(executor, ReplayOptions(recording.id))
"""

__version__ = "0.1.0"

# Public API exports
from flow_recorder.config.settings import Settings
from flow_recorder.recorder import ActionRecorder, PlaywrightScriptGenerator, ScriptStore
from flow_recorder.replayer import ActionReplayer, ReplayOptions, ReplayReport

__all__ = [
    "Settings",
    "ActionRecorder",
    "PlaywrightScriptGenerator",
    "ScriptStore",
    "ActionReplayer",
    "ReplayOptions",
    "ReplayReport",
    "__version__",
]
