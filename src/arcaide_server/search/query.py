"""
Search Query Compiler

Pulls the literal, correctable words out of an FTS5 query while leaving its
structure (boolean operators, column filters, prefix wildcards) intact, and
writes spelling corrections back into the query text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Mapping, Sequence, Set


TERM_CHARS = "A-Za-z0-9\u0080-\uffff"
TERM_PATTERN = re.compile(f"[{TERM_CHARS}]+")

FTS_OPERATORS = frozenset({"AND", "OR", "NOT", "NEAR"})

# Characters that make an adjacent word part of the query syntax:
# in ``title:dragon`` both words belong to a column filter, ``drag*`` is a
# prefix query.
_QUALIFIER_CHARS = (":", "*")


@dataclass(frozen=True)
class ExtractedQuery:
    terms: List[str] = field(default_factory=list)
    template: str = ""


def sanitize_query(query: str) -> str:
    """Drop every character that is not alphanumeric or whitespace, then trim."""
    if not query:
        return ""
    return "".join(ch for ch in query if ch.isalnum() or ch.isspace()).strip()


# Only upper-case AND/OR/NOT are binary operators to FTS5. NEAR needs a
# parenthesized group, which sanitizing has already removed.
_BINARY_OPERATORS = frozenset({"AND", "OR", "NOT"})


def strip_dangling_operators(query: str) -> str:
    """
    Drop boolean operators that have no operand on one side.

    Leading and trailing operators are removed and a run of consecutive
    operators keeps only its last one, so ``"OR dragon AND NOT klarg AND"``
    becomes ``"dragon NOT klarg"``. A query made only of operators becomes
    the empty string.
    """
    tokens: List[str] = []

    for token in query.split():
        if token in _BINARY_OPERATORS and tokens and tokens[-1] in _BINARY_OPERATORS:
            tokens[-1] = token
        elif token in _BINARY_OPERATORS and not tokens:
            continue
        else:
            tokens.append(token)

    while tokens and tokens[-1] in _BINARY_OPERATORS:
        tokens.pop()

    return " ".join(tokens)


def extract_search_terms(query: str) -> ExtractedQuery:
    """
    Return the searchable words of ``query`` in order, duplicates included.

    Operators (any case), column filters (both the column name and its
    qualified word) and prefix-wildcard stems are skipped. The template is
    the query itself; corrections are applied later by
    :func:`apply_corrections`.
    """
    terms: List[str] = []

    for match in TERM_PATTERN.finditer(query):
        term = match.group(0)
        prev_char = query[match.start() - 1:match.start()]
        next_char = query[match.end():match.end() + 1]

        if term.upper() in FTS_OPERATORS:
            continue
        if next_char in _QUALIFIER_CHARS:
            continue
        if prev_char == ":":
            continue

        terms.append(term)

    return ExtractedQuery(terms=terms, template=query)


def _whole_word(term: str) -> re.Pattern:
    # Boundaries use the same character class as the tokenizer so that
    # adjacent operator syntax (``:``, ``*``, quotes) is never consumed.
    return re.compile(
        f"(?<![{TERM_CHARS}]){re.escape(term)}(?![{TERM_CHARS}])",
        re.IGNORECASE,
    )


def _match_case(matched: str, correction: str) -> str:
    """Capitalize the correction when the user capitalized the word."""
    if matched[:1].isupper() and not matched.isupper():
        return correction[:1].upper() + correction[1:]
    return correction


def apply_corrections(
    template: str,
    terms: Sequence[str],
    corrections: Mapping[str, str],
) -> str:
    """
    Rewrite ``template`` with corrected spellings.

    ``corrections`` is keyed by lower-cased term. Every case-insensitive,
    whole-word occurrence of a corrected term is replaced. Terms whose
    correction equals the original (ignoring case) are left untouched.
    """
    corrected = template
    seen: Set[str] = set()

    for term in terms:
        key = term.lower()
        if key in seen:
            continue
        seen.add(key)

        correction = corrections.get(key)
        if not correction or correction.lower() == key:
            continue

        corrected = _whole_word(term).sub(
            lambda m, c=correction: _match_case(m.group(0), c),
            corrected,
        )

    return corrected
