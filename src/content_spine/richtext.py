"""Text helpers shared by the entry mappers."""

import re
from typing import Any

DESCRIPTION_MAX_LENGTH = 400
ELLIPSIS = "…"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")


def slugify(text: str | None) -> str:
    """Lowercase, collapse non-alphanumeric runs into one hyphen, trim hyphens."""
    return _NON_ALNUM.sub("-", (text or "").lower()).strip("-")


def _text_leaves(node: Any):
    """Depth-first walk yielding the value of every text node."""
    stack = [node]
    while stack:
        current = stack.pop()
        if not isinstance(current, dict):
            continue
        if current.get("nodeType") == "text" and isinstance(current.get("value"), str):
            yield current["value"]
        children = current.get("content") or []
        # reversed so children pop in document order
        stack.extend(reversed(children))


def flatten_rich_text(document: Any, max_length: int = DESCRIPTION_MAX_LENGTH) -> str:
    """
    Flatten a rich-text document tree to plain text.

    Text leaves are joined with spaces, whitespace runs collapse to one space,
    and text longer than ``max_length`` is cut and ends with an ellipsis.
    The result never exceeds ``max_length`` characters.
    """
    text = _WHITESPACE.sub(" ", " ".join(_text_leaves(document))).strip()
    if len(text) <= max_length:
        return text
    return text[: max_length - len(ELLIPSIS)].rstrip() + ELLIPSIS
