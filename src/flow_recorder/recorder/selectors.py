"""
Selector Resolver - Turn a DOM element into a locator descriptor.

The resolver exists twice: ``resolve_selector`` works on a ``DomNode``
snapshot in Python, and ``SELECTOR_RESOLVER_JS`` is the same algorithm
injected into the page by the capture listener. Both must agree.

Precedence when a descriptor is turned back into a single selector string
is fixed: id > css path > name > xpath > text.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from flow_recorder.recorder.models import ElementSelector

MAX_CSS_DEPTH = 5
MAX_TEXT_LENGTH = 50


@dataclass(eq=False)
class DomNode:
    """
    Serializable snapshot of a DOM element and its tree position.

    Attributes:
        tag: Lower-case tag name
        attributes: Element attributes
        text: Text content (descendants included)
        parent: Parent node, None for the document element
        children: Element children in document order
    """
    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    parent: Optional["DomNode"] = None
    children: List["DomNode"] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.tag = self.tag.lower()

    def append(self, child: "DomNode") -> "DomNode":
        """Attach a child node and return it."""
        child.parent = self
        self.children.append(child)
        return child

    @property
    def element_id(self) -> Optional[str]:
        return self.attributes.get("id") or None

    @property
    def class_list(self) -> List[str]:
        return self.attributes.get("class", "").split()


def resolve_selector(node: DomNode) -> ElementSelector:
    """
    Build an ElementSelector with every field cheaply derivable from a node.

    Never fails; worst case only ``css_path`` is populated.
    """
    text = node.text.strip()
    return ElementSelector(
        id=node.element_id,
        css_path=build_css_path(node),
        name=node.attributes.get("name") or None,
        text=text if 0 < len(text) < MAX_TEXT_LENGTH else None,
        xpath=build_xpath(node),
    )


def build_css_path(node: DomNode) -> str:
    """Ancestor walk anchored at the nearest id, capped at MAX_CSS_DEPTH steps."""
    if node.element_id:
        return f"#{node.element_id}"

    path: List[str] = []
    current: Optional[DomNode] = node
    while current is not None and len(path) < MAX_CSS_DEPTH:
        if current.element_id:
            path.insert(0, f"#{current.element_id}")
            break
        step = current.tag
        if current.class_list:
            step += "." + ".".join(current.class_list)
        path.insert(0, step)
        current = current.parent
    return " > ".join(path)


def build_xpath(node: DomNode) -> str:
    """Positional XPath, short-circuited at an id or the document root."""
    if node.element_id:
        return f'//*[@id="{node.element_id}"]'
    if node.parent is None:
        return f"/{node.tag}"

    same_tag = [c for c in node.parent.children if c.tag == node.tag]
    index = next(i for i, c in enumerate(same_tag, 1) if c is node)
    return f"{build_xpath(node.parent)}/{node.tag}[{index}]"


def preferred_selector(selector: Optional[ElementSelector]) -> str:
    """
    Collapse a descriptor into the one selector string a script carries.

    Returns ``body`` for a missing or empty descriptor.
    """
    if selector is None:
        return "body"
    if selector.id:
        return f"#{selector.id}"
    if selector.css_path:
        return selector.css_path
    if selector.name:
        return f'[name="{selector.name}"]'
    if selector.xpath:
        return selector.xpath
    if selector.text:
        return f"text={selector.text}"
    return "body"


SELECTOR_RESOLVER_JS = r"""
function __flowResolveSelector(element) {
    const selectors = {};
    if (element.id) selectors.id = element.id;
    if (element.getAttribute && element.getAttribute('name')) {
        selectors.name = element.getAttribute('name');
    }

    if (element.id) {
        selectors.css = '#' + element.id;
    } else {
        const path = [];
        let current = element;
        while (current && current.nodeType === Node.ELEMENT_NODE && path.length < 5) {
            if (current.id) {
                path.unshift('#' + current.id);
                break;
            }
            let step = current.nodeName.toLowerCase();
            if (typeof current.className === 'string' && current.className.trim()) {
                step += '.' + current.className.trim().split(/\s+/).join('.');
            }
            path.unshift(step);
            current = current.parentElement;
        }
        selectors.css = path.join(' > ');
    }

    function xpathOf(node) {
        if (node.id) return '//*[@id="' + node.id + '"]';
        const parent = node.parentElement;
        const tag = node.tagName.toLowerCase();
        if (!parent) return '/' + tag;
        let index = 0;
        for (const sibling of parent.children) {
            if (sibling.tagName === node.tagName) index++;
            if (sibling === node) break;
        }
        return xpathOf(parent) + '/' + tag + '[' + index + ']';
    }
    selectors.xpath = xpathOf(element);

    const text = (element.textContent || '').trim();
    if (text.length > 0 && text.length < 50) selectors.text = text;

    return selectors;
}
"""

RESOLVE_ELEMENT_JS = r"""
function __flowFindElement(selector) {
    if (selector.startsWith('/') || selector.startsWith('(')) {
        return document.evaluate(
            selector, document, null, XPathResult.FIRST_ORDERED_NODE_TYPE, null
        ).singleNodeValue;
    }
    if (selector.startsWith('text=')) {
        const wanted = selector.slice(5);
        let match = null;
        for (const el of document.querySelectorAll('body *')) {
            if ((el.textContent || '').trim() === wanted) match = el;
        }
        return match;
    }
    return document.querySelector(selector);
}
"""
