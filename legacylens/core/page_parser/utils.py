"""Shared helpers for page extraction.

Expression handling, attribute sanitizing, snippet windows and the
lenient page-source reader used by every extractor.
"""

import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# ${...} EL, %{...} OGNL, #{...} deferred EL
_EXPRESSION_RE = re.compile(r"\$\{[^}]+\}|%\{[^}]+\}|#\{[^}]+\}")
_SCRIPTLET_DELIMITERS = ("<%=", "<%", "%>")
_WHITESPACE_RE = re.compile(r"\s+")

SNIPPET_RADIUS = 40
SNIPPET_LIMIT = 160

_TRUE_VALUES = frozenset({"true", "1", "yes", "y"})


def read_page_source(path: str) -> str:
    """Read a page template as text. Raises OSError on failure."""
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def parse_markup(raw: str) -> BeautifulSoup:
    """Parse template text into a lenient tag tree.

    Tag and attribute names are lower-cased by the builder, so legacy tags
    appear as ``s:textfield``, ``c:foreach`` and so on.
    """
    return BeautifulSoup(raw, "html.parser", multi_valued_attributes=None)


def find_expressions(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return _EXPRESSION_RE.findall(text)


def first_expression(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    match = _EXPRESSION_RE.search(text)
    return match.group(0) if match else None


def has_expression(text: Optional[str]) -> bool:
    return bool(text) and _EXPRESSION_RE.search(text) is not None


def normalize_expression(expression: Optional[str]) -> Optional[str]:
    """Strip the ``${``/``%{``/``#{`` and ``}`` delimiters."""
    if expression is None:
        return None
    value = expression.strip()
    if len(value) >= 3 and value[0] in "$%#" and value[1] == "{" and value.endswith("}"):
        value = value[2:-1]
    value = value.strip()
    return value or None


def strip_expressions(text: Optional[str]) -> str:
    if not text:
        return ""
    return _EXPRESSION_RE.sub("", text)


def sanitize_attribute(value: Optional[str]) -> Optional[str]:
    """Drop embedded expressions and scriptlet delimiters; blank becomes None."""
    if value is None:
        return None
    cleaned = strip_expressions(value)
    for delimiter in _SCRIPTLET_DELIMITERS:
        cleaned = cleaned.replace(delimiter, "")
    cleaned = cleaned.strip()
    return cleaned or None


def collapse_whitespace(text: Optional[str]) -> str:
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def parse_boolean(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in _TRUE_VALUES


def parse_int(value: Optional[str]) -> Optional[int]:
    cleaned = sanitize_attribute(value)
    if cleaned is None:
        return None
    try:
        return int(cleaned)
    except ValueError:
        logger.debug(f"Ignoring non-numeric length attribute: {value!r}")
        return None


def snippet(raw: str, start: int, end: int) -> str:
    """Context window around a regex match, single line, bounded length."""
    window = raw[max(0, start - SNIPPET_RADIUS):min(len(raw), end + SNIPPET_RADIUS)]
    window = window.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")
    return truncate(window, SNIPPET_LIMIT)


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit]


def is_page_reference(value: Optional[str]) -> bool:
    """True when a URL-ish value points at a page template."""
    if not value:
        return False
    lowered = value.lower()
    return ".jsp" in lowered
