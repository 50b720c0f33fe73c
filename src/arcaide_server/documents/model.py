"""
Rich-Text Document Model

Every long-form field (arc hook, thing description, ...) is stored as a
structured node tree produced by the editor, plus a derived plain-text
shadow used for search indexing and link rewriting.

Node shapes
-----------
- Element node: ``{"type": "paragraph", "children": [...], ...}``
- Text leaf:    ``{"text": "...", "bold": True, ...}``

Style flags on leaves are opaque to the server and are preserved as-is.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from ..core.errors import InvalidDocumentError


Node = Dict[str, Any]
Document = List[Node]


def empty_document() -> Document:
    """Return the canonical empty document (a single empty paragraph)."""
    return [{"type": "paragraph", "children": [{"text": ""}]}]


def _paragraph(text: str) -> Node:
    return {"type": "paragraph", "children": [{"text": text}]}


# ---------------------------------------------------------------------
# Validation / Normalization
# ---------------------------------------------------------------------

def _validate_node(node: Any, path: str) -> None:
    if not isinstance(node, dict):
        raise InvalidDocumentError(f"Node at {path} must be an object")

    if "text" in node:
        if not isinstance(node["text"], str):
            raise InvalidDocumentError(f"Text leaf at {path} must carry a string")
        return

    children = node.get("children")
    if not isinstance(children, list):
        raise InvalidDocumentError(f"Element at {path} must have a children list")

    for i, child in enumerate(children):
        _validate_node(child, f"{path}.{i}")


def normalize_document(value: Any) -> Document:
    """
    Coerce an incoming rich-text value into a valid, non-empty document.

    Accepts None, an empty string or list, a JSON string, a single node or
    a list of nodes. A string that is not JSON is treated as plain text and
    becomes one paragraph per line.

    Raises
    ------
    InvalidDocumentError
        If the value is not a tree of element nodes and text leaves.
    """
    if value is None:
        return empty_document()

    if isinstance(value, str):
        if not value.strip():
            return empty_document()
        try:
            value = json.loads(value)
        except ValueError:
            return [_paragraph(line) for line in value.split("\n")]

    if isinstance(value, dict):
        value = [value]

    if not isinstance(value, list):
        raise InvalidDocumentError("Document must be a list of nodes")

    if not value:
        return empty_document()

    for i, node in enumerate(value):
        _validate_node(node, str(i))

    return value


# ---------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------

def serialize_document(value: Any) -> str:
    """
    JSON codec used for every JSON column.

    Link markers (``[[type#slug]]``) must survive serialization byte-for-byte
    because rename propagation rewrites them with a literal substring replace
    on the stored text.
    """
    return json.dumps(value, ensure_ascii=False)


def deserialize_document(raw: str) -> Any:
    return json.loads(raw)


# ---------------------------------------------------------------------
# Plain-Text Projection
# ---------------------------------------------------------------------

def _node_text(node: Any) -> str:
    if not isinstance(node, dict):
        return ""

    text = node.get("text")
    if isinstance(text, str):
        return text

    children = node.get("children")
    if isinstance(children, list):
        return "".join(_node_text(child) for child in children)

    return ""


def project_plain_text(document: Any) -> str:
    """
    Flatten a document into a single plain-text string.

    Direct children of the root are joined with newlines, deeper children
    are concatenated. Style flags are dropped. ``None`` projects to ``""``;
    a string is parsed as JSON when possible and otherwise returned verbatim.
    """
    if not document:
        return ""

    if isinstance(document, str):
        try:
            document = json.loads(document)
        except ValueError:
            return document

    if isinstance(document, list):
        return "\n".join(_node_text(node) for node in document)

    return _node_text(document)
