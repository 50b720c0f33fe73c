"""
Link Syntax Resolver

Recognizes the ``[[type#slug]]`` cross-reference syntax embedded in the
plain-text projection of a document.

Variants
--------
- Empty:     ``[[]]`` or whitespace only. The editor shows an entity search.
- Resolved:  ``[[arc#some-slug]]``. Split on the first ``#``.
- Malformed: anything else. Handled exactly like Empty.

Ranges reported here are independent of any other tokenization of the same
text (markdown highlighting etc.); callers must not assume the two sets of
ranges are disjoint.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Tuple


LINK_PATTERN = re.compile(r"\[\[([^\]]*)\]\]")

LINK_TYPES = ("arc", "thing")


class LinkKind(str, Enum):
    EMPTY = "empty"
    RESOLVED = "resolved"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class LinkReference:
    kind: LinkKind
    start: int
    end: int
    link_type: Optional[str] = None
    slug: Optional[str] = None

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def needs_search(self) -> bool:
        """Empty and malformed markers both prompt the user to pick a target."""
        return self.kind is not LinkKind.RESOLVED


def classify_link(content: str) -> Tuple[LinkKind, Optional[str], Optional[str]]:
    """Classify the text found between ``[[`` and ``]]``."""
    content = content.strip()

    if not content:
        return LinkKind.EMPTY, None, None

    if "#" in content:
        link_type, _, slug = content.partition("#")
        return LinkKind.RESOLVED, link_type, slug

    return LinkKind.MALFORMED, None, None


def iter_link_references(text: str) -> Iterator[LinkReference]:
    """
    Lazily yield every link marker in ``text``, left to right.

    Matches never overlap. The generator holds no state beyond the scan, so
    callers can simply call it again after mutating the text.
    """
    if not text:
        return

    for match in LINK_PATTERN.finditer(text):
        kind, link_type, slug = classify_link(match.group(1))
        yield LinkReference(
            kind=kind,
            start=match.start(),
            end=match.end(),
            link_type=link_type,
            slug=slug,
        )


def format_link(link_type: str, slug: str) -> str:
    return f"[[{link_type}#{slug}]]"
