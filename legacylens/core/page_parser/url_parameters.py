"""Query-string parameter usage in links, form actions and scripts."""

import re
from typing import List

from .base import BasePageExtractor
from .models import Confidence, FactCollector, Page, UrlParameter
from .utils import SNIPPET_LIMIT, parse_markup, snippet, truncate

_PARAMETER_RE = re.compile(r"[A-Za-z0-9_]+(?==)")
_LOCATION_RE = re.compile(
    r"(?:window\.location|location|parent\.frame\.location|parent\.location)(?:\.href)?"
    r"\s*[:=]\s*['\"]([^'\"]+)['\"]",
    re.IGNORECASE,
)
_QUOTED_QUERY_RE = re.compile(r"(['\"])([^'\"]*\?[^'\"]*)\1")
_INLINE_QUERY_RE = re.compile(r"[^\s'\"<>]*\?[^\s'\"<>]*")


def parameter_names(candidate: str) -> List[str]:
    """Names assigned in a query string; empty when there is no '?'."""
    if not candidate or "?" not in candidate:
        return []
    return _PARAMETER_RE.findall(candidate)


class UrlParameterExtractor(BasePageExtractor):
    name = "url-parameters"

    def extract_source(self, raw: str) -> List[UrlParameter]:
        collector = FactCollector()
        soup = parse_markup(raw)

        for anchor in soup.find_all("a", href=True):
            self._collect(collector, anchor["href"], "href", truncate(str(anchor), SNIPPET_LIMIT))
        for form in soup.find_all("form", action=True):
            self._collect(collector, form["action"], "form-action", truncate(str(form), SNIPPET_LIMIT))

        for match in _LOCATION_RE.finditer(raw):
            self._collect(collector, match.group(1), "script-location",
                          snippet(raw, match.start(), match.end()))
        for match in _QUOTED_QUERY_RE.finditer(raw):
            self._collect(collector, match.group(2), "js-string",
                          snippet(raw, match.start(), match.end()))
        for match in _INLINE_QUERY_RE.finditer(raw):
            self._collect(collector, match.group(0), "inline-query",
                          snippet(raw, match.start(), match.end()))
        return collector.items()

    @staticmethod
    def _collect(collector: FactCollector, candidate: str, source: str, context: str) -> None:
        for name in parameter_names(candidate):
            collector.add(UrlParameter(
                name=name, source=source, snippet=context, confidence=Confidence.HIGH,
            ))

    def apply(self, page: Page, facts: List[UrlParameter]) -> None:
        page.url_parameters = facts
