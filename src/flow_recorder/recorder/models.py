"""
Recording data model - actions, locators and recordings.

A Recording is mutable only while the recorder owns it. Once stopped it is
serialized to script text, and from then on the script is the source of
truth; loading a stored recording yields metadata with an empty action list.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class ActionKind(str, Enum):
    """Kinds of recordable actions."""
    CLICK = "click"
    INPUT = "input"
    SELECT = "select"
    SCROLL = "scroll"
    KEYPRESS = "keypress"
    MANUAL_STEP = "manual_step"
    WAIT = "wait"


# Page-level kinds that carry no locator
LOCATORLESS_KINDS = frozenset({ActionKind.SCROLL, ActionKind.WAIT, ActionKind.MANUAL_STEP})


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Opaque unique identifier."""
    return str(uuid.uuid4())


@dataclass
class ElementSelector:
    """
    Descriptor used to re-find an element at replay time.

    Not a live reference: the element it was captured from may be gone.

    Attributes:
        id: The element's id attribute
        css_path: Ancestor-walk CSS path
        name: The element's name attribute
        text: Short trimmed text content
        xpath: Positional XPath
    """
    id: Optional[str] = None
    css_path: Optional[str] = None
    name: Optional[str] = None
    text: Optional[str] = None
    xpath: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        """True when no field is populated."""
        return not any((self.id, self.css_path, self.name, self.text, self.xpath))

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary, dropping empty fields."""
        result = {
            "id": self.id,
            "css": self.css_path,
            "name": self.name,
            "text": self.text,
            "xpath": self.xpath,
        }
        return {k: v for k, v in result.items() if v}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ElementSelector":
        """
        Create from a dictionary.

        Accepts both ``css`` (what the capture script sends) and ``css_path``.
        """
        data = data or {}
        return cls(
            id=data.get("id") or None,
            css_path=data.get("css") or data.get("css_path") or None,
            name=data.get("name") or None,
            text=data.get("text") or None,
            xpath=data.get("xpath") or None,
        )


@dataclass
class RecordedAction:
    """
    One captured interaction.

    Attributes:
        kind: What happened
        page_url: URL of the document active when the action occurred
        locator: Target element (absent for scroll, wait, manual_step)
        value: Typed text, selected option, key info JSON, scroll JSON or ms
        description: Annotation for manual steps
        screenshot: Data URL of a page capture (manual steps)
        timestamp: Capture time, used for ordering only
        id: Opaque identifier
    """
    kind: ActionKind
    page_url: str = ""
    locator: Optional[ElementSelector] = None
    value: Optional[str] = None
    description: Optional[str] = None
    screenshot: Optional[str] = None
    timestamp: datetime = field(default_factory=utc_now)
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        self.kind = ActionKind(self.kind)
        if self.locator is None and self.kind not in LOCATORLESS_KINDS:
            raise ValueError(f"Action of kind '{self.kind.value}' requires a locator")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result: Dict[str, Any] = {
            "id": self.id,
            "kind": self.kind.value,
            "timestamp": self.timestamp.isoformat(),
            "page_url": self.page_url,
        }
        if self.locator:
            result["locator"] = self.locator.to_dict()
        if self.value is not None:
            result["value"] = self.value
        if self.description:
            result["description"] = self.description
        return result


@dataclass
class RecordingMetadata:
    """
    Recording metadata recovered from (and written into) the script header.

    Attributes:
        target_site: URL the recording started on
        manual_steps: Number of manual_step actions
    """
    target_site: Optional[str] = None
    manual_steps: int = 0


@dataclass
class Recording:
    """A named, ordered capture session."""
    name: str
    description: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    actions: List[RecordedAction] = field(default_factory=list)
    metadata: RecordingMetadata = field(default_factory=RecordingMetadata)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "actions": [a.to_dict() for a in self.actions],
            "metadata": {
                "target_site": self.metadata.target_site,
                "manual_steps": self.metadata.manual_steps,
            },
        }
