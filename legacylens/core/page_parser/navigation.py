"""Navigation target extraction (links and script redirects to other pages)."""

import re
from typing import List

from .base import BasePageExtractor
from .models import Confidence, FactCollector, NavigationTarget, Page
from .utils import SNIPPET_LIMIT, is_page_reference, parse_markup, snippet, truncate

_LOCATION_RE = re.compile(
    r"(window\.location|location|parent\.frame\.location|parent\.location)"
    r"\s*[:=]\s*['\"]([^'\"]+\.jspf?[^'\"]*)['\"]",
    re.IGNORECASE,
)
_JSP_STRING_RE = re.compile(r"(['\"])([^'\"]+\.jspf?[^'\"]*)\1", re.IGNORECASE)


class NavigationTargetExtractor(BasePageExtractor):
    name = "navigation"

    def extract_source(self, raw: str) -> List[NavigationTarget]:
        collector = FactCollector()
        soup = parse_markup(raw)
        for anchor in soup.find_all("a", href=True):
            href = anchor["href"].strip()
            if is_page_reference(href):
                collector.add(NavigationTarget(
                    target_page=href,
                    source_pattern="href",
                    snippet=truncate(str(anchor), SNIPPET_LIMIT),
                    confidence=Confidence.HIGH,
                ))
        for match in _LOCATION_RE.finditer(raw):
            collector.add(NavigationTarget(
                target_page=match.group(2).strip(),
                source_pattern="script-location",
                snippet=snippet(raw, match.start(), match.end()),
            ))
        for match in _JSP_STRING_RE.finditer(raw):
            collector.add(NavigationTarget(
                target_page=match.group(2).strip(),
                source_pattern="js-string",
                snippet=snippet(raw, match.start(), match.end()),
            ))
        return collector.items()

    def apply(self, page: Page, facts: List[NavigationTarget]) -> None:
        page.navigation_targets = facts
