"""
Helpers for Lexical-style rich-text JSON.

A document looks like `{"root": {"type": "root", "children": [...]}}` where
each node carries either a `text` string or a `children` list.
"""

import copy
from typing import Any, Dict, Iterator, List, Optional

RichText = Dict[str, Any]


def _root_children(rich_text: Optional[RichText]) -> Optional[List[Any]]:
    if not isinstance(rich_text, dict):
        return None
    root = rich_text.get("root")
    if not isinstance(root, dict):
        return None
    children = root.get("children")
    return children if isinstance(children, list) else None


def _node_text(node: Any) -> str:
    if not isinstance(node, dict):
        return ""
    if node.get("text"):
        return str(node["text"])
    children = node.get("children")
    if isinstance(children, list):
        return "".join(_node_text(child) for child in children)
    return ""


def extract_plain_text(rich_text: Optional[RichText]) -> str:
    """
    Flatten a rich-text document to plain text.

    Top-level blocks are joined with newlines, inline children are
    concatenated, and the result is trimmed.

    Args:
        rich_text: Document, or None.

    Returns:
        str: Plain text; "" when the document is missing or has no children.
    """
    children = _root_children(rich_text)
    if not children:
        return ""
    return "\n".join(_node_text(child) for child in children).strip()


def create_rich_text_from_plain(text: str) -> RichText:
    """
    Build a document with one paragraph per line of `text`.

    An empty string yields a single empty paragraph.
    """
    paragraphs = [
        {
            "type": "paragraph",
            "children": [{"type": "text", "text": line, "version": 1}],
            "direction": "ltr",
            "format": "",
            "indent": 0,
            "version": 1,
        }
        for line in text.split("\n")
    ]
    return {
        "root": {
            "type": "root",
            "children": paragraphs,
            "direction": "ltr",
            "format": "",
            "indent": 0,
            "version": 1,
        }
    }


def _iter_text_nodes(node: Any) -> Iterator[Dict[str, Any]]:
    """Depth-first, document-order walk over nodes that carry a text string."""
    if isinstance(node, dict):
        if isinstance(node.get("text"), str):
            yield node
        children = node.get("children")
        if isinstance(children, list):
            for child in children:
                yield from _iter_text_nodes(child)
    elif isinstance(node, list):
        for child in node:
            yield from _iter_text_nodes(child)


def collect_text_leaves(rich_text: Optional[RichText]) -> List[str]:
    """Text of every text node of a document, in document order."""
    if not isinstance(rich_text, dict) or not isinstance(rich_text.get("root"), dict):
        return []
    return [node["text"] for node in _iter_text_nodes(rich_text["root"])]


def sync_rich_text_format(source: Optional[RichText], target: Optional[RichText]) -> Optional[RichText]:
    """
    Copy the structure of `source` while keeping the text of `target`.

    The i-th text node of the result takes the i-th text of `target`. When
    `source` has more text nodes than `target`, the extra nodes keep their
    source text; surplus target texts are dropped.

    Args:
        source: Document whose formatting is authoritative.
        target: Document whose (translated) text is kept.

    Returns:
        RichText | None: None when `source` is None; a copy of `source` when
        `target` has no root.
    """
    if source is None:
        return None
    result = copy.deepcopy(source)
    if not isinstance(target, dict) or not isinstance(target.get("root"), dict):
        return result
    if not isinstance(result.get("root"), dict):
        return result

    translated = collect_text_leaves(target)
    for index, node in enumerate(_iter_text_nodes(result["root"])):
        if index >= len(translated):
            break
        node["text"] = translated[index]
    return result
