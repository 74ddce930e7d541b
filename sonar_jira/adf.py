"""sonar_jira.adf

Tiny builders and one parser for Atlassian Document Format (ADF).

Jira Cloud's v3 API takes rich-text fields (description, comments, paragraph
custom fields) as ADF JSON. We only need a handful of node types, so these are
plain functions returning dicts rather than a document model.

The reference field
-------------------
Every ticket we create stores the originating Sonar key in a paragraph custom
field. The expected shape is::

    {"type": "doc", "version": 1,
     "content": [{"type": "paragraph",
                  "content": [{"type": "text", "text": "<sonar key>"}]}]}

:func:`parse_reference_field` is the only place that walks that shape back.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

Node = Dict[str, Any]


def text(value: str) -> Node:
    return {"type": "text", "text": value}


def link_text(value: str, href: str) -> Node:
    return {"type": "text", "text": value, "marks": [{"type": "link", "attrs": {"href": href}}]}


def paragraph(*content: Node) -> Node:
    return {"type": "paragraph", "content": list(content)}


def list_item(*content: Node) -> Node:
    return {"type": "listItem", "content": list(content)}


def bullet_list(items: List[Node]) -> Node:
    return {"type": "bulletList", "content": list(items)}


def heading(value: str, level: int = 3) -> Node:
    return {"type": "heading", "attrs": {"level": level}, "content": [text(value)]}


def doc(*content: Node) -> Node:
    return {"type": "doc", "version": 1, "content": list(content)}


def reference_doc(identifier: str) -> Node:
    """Document whose only text run is ``identifier``."""
    return doc(paragraph(text(identifier)))


def _first_child(node: Any) -> Optional[Mapping[str, Any]]:
    if not isinstance(node, Mapping):
        return None
    content = node.get("content")
    if not isinstance(content, list) or not content:
        return None
    first = content[0]
    return first if isinstance(first, Mapping) else None


def parse_reference_field(value: Any) -> Optional[str]:
    """Return the identifier stored in a reference field, or None.

    None covers every unusable shape: missing field, empty document, a first
    block without text, non-string text, or text that is blank after
    stripping.
    """
    first_paragraph = _first_child(value)
    first_run = _first_child(first_paragraph)
    if first_run is None:
        return None
    raw = first_run.get("text")
    if not isinstance(raw, str):
        return None
    return raw.strip() or None
